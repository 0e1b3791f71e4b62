"""
Preferences for the Book Collection terminal and desktop UIs.
Stored as JSON in the user's home directory.
"""

import copy
import json
from pathlib import Path
from typing import Dict, Any, Optional
from rich.console import Console

console = Console()

DEFAULT_CONFIG: Dict[str, Any] = {
    "preferences": {
        "sort_by": "id",
        "sort_descending": False,
        "page_size": 20,
        "export_file": "books_export.csv",
    },
    "ui_settings": {
        "confirm_deletions": True,
    },
}


class CLIConfig:
    """Manages user preferences."""

    def __init__(self, config_dir: Optional[Path] = None):
        self.config_dir = Path(config_dir) if config_dir else Path.home() / ".book-collection"
        self.config_file = self.config_dir / "config.json"
        self.config: Dict[str, Any] = {}
        self.load_config()

    def load_config(self) -> None:
        """Load configuration from file or create default."""
        if self.config_file.exists():
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    self.config = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                console.print(f"[yellow]⚠️  Could not load config: {e}[/]")
                self.create_default_config()
        else:
            self.create_default_config()

    def create_default_config(self) -> None:
        self.config = copy.deepcopy(DEFAULT_CONFIG)
        self.save_config()

    def save_config(self) -> None:
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(self.config, f, indent=2, ensure_ascii=False)
        except OSError as e:
            console.print(f"[red]❌ Could not save config: {e}[/]")

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'preferences.page_size')."""
        value = self.config
        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """Set configuration value using dot notation."""
        keys = key.split('.')
        config = self.config

        # Navigate to the parent dictionary
        for k in keys[:-1]:
            if not isinstance(config.get(k), dict):
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value
        self.save_config()

    def reset_to_default(self) -> None:
        self.create_default_config()
        console.print("[green]✅ Configuration reset to default values[/]")

    def show_config(self) -> None:
        """Display current configuration."""
        from rich.tree import Tree

        tree = Tree("📄 Book Collection Configuration", style="bold blue")
        for section, values in self.config.items():
            section_tree = tree.add(f"[bold cyan]{section.title()}[/]")
            if isinstance(values, dict):
                for key, value in values.items():
                    section_tree.add(f"[yellow]{key}[/]: [white]{value}[/]")
            else:
                section_tree.add(f"[white]{values}[/]")

        console.print(tree)
        console.print(f"\n[dim]Config file: {self.config_file}[/]")
