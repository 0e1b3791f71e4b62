"""Tkinter desktop window for the book collection.

The window only talks to the ``Library`` it is handed; the current list,
last search and sort order live in ``BookListState``.
"""

import tkinter as tk
from tkinter import filedialog, messagebox, ttk
from typing import Optional

from errors import LibraryError, NotFound
from library import Library
from storage import SEARCHABLE_FIELDS
from utils.cli_config import CLIConfig
from utils.ui_helpers import EXPORT_COLUMNS, export_csv
from view_state import BookListState

FORM_FIELDS = ("title", "author", "genre", "copies")


class BookCollectionApp:
    def __init__(self, root: tk.Tk, library: Library, preferences: Optional[CLIConfig] = None) -> None:
        self.root = root
        self.library = library
        self.preferences = preferences
        # the window shows the whole list in one scrollable table, so paging is unused
        self.state = BookListState.from_preferences(library, preferences or {})
        self.selected_id: Optional[int] = None

        self.root.title("Book Collection")
        self.root.minsize(720, 420)

        self.form_vars = {name: tk.StringVar() for name in FORM_FIELDS}
        self.search_var = tk.StringVar()
        self.search_field_var = tk.StringVar(value="title")
        self.status_var = tk.StringVar(value="")

        self._build_form()
        self._build_search_bar()
        self._build_table()
        ttk.Label(root, textvariable=self.status_var, anchor="w").pack(fill="x", padx=10, pady=(0, 8))

        self.refresh()

    def _pref(self, key: str, default):
        return self.preferences.get(key, default) if self.preferences else default

    # ---------- Layout ----------
    def _build_form(self) -> None:
        form = ttk.LabelFrame(self.root, text="Book")
        form.pack(fill="x", padx=10, pady=(10, 5))

        for col, name in enumerate(FORM_FIELDS):
            ttk.Label(form, text=f"{name.title()}:").grid(row=0, column=col * 2, padx=(8, 2), pady=6, sticky="e")
            width = 8 if name == "copies" else 22
            ttk.Entry(form, textvariable=self.form_vars[name], width=width).grid(
                row=0, column=col * 2 + 1, padx=(0, 8), pady=6, sticky="w"
            )

        buttons = ttk.Frame(form)
        buttons.grid(row=1, column=0, columnspan=len(FORM_FIELDS) * 2, pady=(0, 6), sticky="w", padx=8)
        ttk.Button(buttons, text="Add", command=self.on_add).pack(side="left", padx=2)
        ttk.Button(buttons, text="Update", command=self.on_update).pack(side="left", padx=2)
        ttk.Button(buttons, text="Delete", command=self.on_delete).pack(side="left", padx=2)
        ttk.Button(buttons, text="Clear", command=self.clear_form).pack(side="left", padx=2)
        ttk.Button(buttons, text="Export CSV", command=self.on_export).pack(side="left", padx=2)

    def _build_search_bar(self) -> None:
        bar = ttk.Frame(self.root)
        bar.pack(fill="x", padx=10, pady=5)

        ttk.Label(bar, text="Search:").pack(side="left")
        entry = ttk.Entry(bar, textvariable=self.search_var, width=30)
        entry.pack(side="left", padx=4)
        entry.bind("<Return>", lambda e: self.on_search())
        ttk.Combobox(
            bar, textvariable=self.search_field_var, values=SEARCHABLE_FIELDS, state="readonly", width=8
        ).pack(side="left", padx=4)
        ttk.Button(bar, text="Search", command=self.on_search).pack(side="left", padx=2)
        ttk.Button(bar, text="Show all", command=self.on_show_all).pack(side="left", padx=2)

    def _build_table(self) -> None:
        frame = ttk.Frame(self.root)
        frame.pack(fill="both", expand=True, padx=10, pady=5)

        self.tree = ttk.Treeview(frame, columns=EXPORT_COLUMNS, show="headings", height=16, selectmode="browse")
        for column in EXPORT_COLUMNS:
            self.tree.heading(column, text=column.title(), command=lambda c=column: self.on_sort(c))
            numeric = column in ("id", "copies")
            self.tree.column(column, width=70 if numeric else 200, anchor="e" if numeric else "w")

        scrollbar = ttk.Scrollbar(frame, orient="vertical", command=self.tree.yview)
        self.tree.configure(yscrollcommand=scrollbar.set)
        self.tree.pack(side="left", fill="both", expand=True)
        scrollbar.pack(side="right", fill="y")
        self.tree.bind("<<TreeviewSelect>>", self.on_select)

    # ---------- Rendering ----------
    def refresh(self) -> None:
        try:
            books = self.state.refresh()
        except LibraryError as e:
            self._show_error(e)
            return
        self._render(books)

    def _render(self, books) -> None:
        self.tree.delete(*self.tree.get_children())
        for book in books:
            self.tree.insert("", "end", iid=str(book.id), values=(book.id, book.title, book.author, book.genre, book.copies))

        arrow = "▼" if self.state.descending else "▲"
        for column in EXPORT_COLUMNS:
            label = column.title()
            if column == self.state.sort_key:
                label = f"{label} {arrow}"
            self.tree.heading(column, text=label)

        if self.state.query:
            field, term = self.state.query
            self.status_var.set(f"{len(books)} books where {field} contains '{term}'")
        else:
            self.status_var.set(f"{len(books)} books")

    def _show_error(self, error: LibraryError) -> None:
        if isinstance(error, NotFound):
            messagebox.showwarning("Not found", str(error))
        else:
            messagebox.showerror("Error", str(error))

    def _form_values(self) -> dict:
        return {name: var.get() for name, var in self.form_vars.items()}

    def clear_form(self) -> None:
        for var in self.form_vars.values():
            var.set("")
        self.selected_id = None
        self.tree.selection_remove(*self.tree.selection())

    # ---------- Actions ----------
    def on_select(self, _event=None) -> None:
        selection = self.tree.selection()
        if not selection:
            return
        values = self.tree.item(selection[0], "values")
        self.selected_id = int(values[0])
        for name, value in zip(FORM_FIELDS, values[1:]):
            self.form_vars[name].set(value)

    def on_add(self) -> None:
        try:
            book = self.library.add_book(**self._form_values())
        except LibraryError as e:
            self._show_error(e)
            return
        self.clear_form()
        self.refresh()
        self.status_var.set(f"Added '{book.title}' (id {book.id})")

    def on_update(self) -> None:
        if self.selected_id is None:
            messagebox.showinfo("Update", "Select a book in the table first.")
            return
        try:
            book = self.library.update_book(self.selected_id, **self._form_values())
        except LibraryError as e:
            self._show_error(e)
            return
        self.refresh()
        self.status_var.set(f"Updated '{book.title}'")

    def on_delete(self) -> None:
        if self.selected_id is None:
            messagebox.showinfo("Delete", "Select a book in the table first.")
            return
        if self._pref("ui_settings.confirm_deletions", True) and not messagebox.askyesno(
            "Delete", f"Delete book {self.selected_id}?"
        ):
            return
        try:
            self.library.remove_book(self.selected_id)
        except LibraryError as e:
            self._show_error(e)
            return
        self.clear_form()
        self.refresh()

    def on_search(self) -> None:
        term = self.search_var.get().strip()
        try:
            if term:
                books = self.state.search(self.search_field_var.get(), term)
            else:
                books = self.state.clear_search()
        except LibraryError as e:
            self._show_error(e)
            return
        self._render(books)

    def on_show_all(self) -> None:
        self.search_var.set("")
        try:
            books = self.state.clear_search()
        except LibraryError as e:
            self._show_error(e)
            return
        self._render(books)

    def on_sort(self, column: str) -> None:
        self.state.toggle_sort(column)
        self._render(self.state.books)

    def on_export(self) -> None:
        path = filedialog.asksaveasfilename(
            defaultextension=".csv",
            initialfile=self._pref("preferences.export_file", "books_export.csv"),
            filetypes=[("CSV files", "*.csv")],
        )
        if not path:
            return
        try:
            count = export_csv(self.state.books, path)
        except OSError as e:
            messagebox.showerror("Export", f"Could not write {path}:\n{e}")
            return
        self.status_var.set(f"Exported {count} books to {path}")


def run_gui(library: Library, preferences: Optional[CLIConfig] = None) -> None:
    root = tk.Tk()
    BookCollectionApp(root, library, preferences)
    root.mainloop()
