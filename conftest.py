import pytest

from library import Library
from storage import InMemoryBookStore, SqliteBookStore


@pytest.fixture
def db_file(tmp_path, request):
    # One database file per test
    return str(tmp_path / f"test_{request.node.name}.db")


@pytest.fixture(params=["memory", "sqlite"])
def store(request, db_file):
    """Every gateway test runs against both implementations."""
    if request.param == "memory":
        s = InMemoryBookStore()
    else:
        s = SqliteBookStore(db_file)
    yield s
    s.close()


@pytest.fixture
def lib(store):
    return Library(store)


@pytest.fixture(autouse=True)
def _plain_output(monkeypatch):
    # Output mode is an environment variable; keep it from leaking between tests
    monkeypatch.delenv("LIB_CLI_OUTPUT", raising=False)
