"""JSON File-based Store Implementation.

Files live at `<data_dir>/<category>/<name>.json`.
"""
import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence

from testvault.domain.interfaces import DataStore
from testvault.errors import DataFileNotFoundError

logger = logging.getLogger(__name__)


class JsonFileStore(DataStore):
    def __init__(self, data_dir: str):
        self.data_dir = Path(data_dir)

    def path_for(self, category: str, name: str, suffix: str = ".json") -> Path:
        return self.data_dir / category / f"{name}{suffix}"

    def ensure_categories(self, categories: Sequence[str]) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        for category in categories:
            (self.data_dir / category).mkdir(parents=True, exist_ok=True)

    def exists(self, category: str, name: str) -> bool:
        return self.path_for(category, name).exists()

    def read(self, category: str, name: str) -> Any:
        path = self.path_for(category, name)
        if not path.exists():
            raise DataFileNotFoundError(f"Test data file not found: {path}")

        with open(path, 'r') as f:
            return json.load(f)

    def write(self, category: str, name: str, data: Any) -> str:
        path = self.path_for(category, name)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w') as f:
            json.dump(data, f, indent=2)

        logger.debug(f"Wrote test data to {path}")
        return str(path)

    def write_csv(self, category: str, name: str, rows: List[Dict[str, Any]]) -> str:
        if not rows:
            raise ValueError("Data must be a non-empty list for CSV export")

        path = self.path_for(category, name, suffix=".csv")
        path.parent.mkdir(parents=True, exist_ok=True)

        # Header from the first row, nested values serialized as JSON
        fieldnames = list(rows[0].keys())
        with open(path, 'w', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
            writer.writeheader()
            for row in rows:
                writer.writerow({
                    k: json.dumps(v) if isinstance(v, (dict, list)) else v
                    for k, v in row.items()
                })

        return str(path)

    def list_names(self, category: str) -> List[str]:
        directory = self.data_dir / category
        if not directory.exists():
            return []
        return sorted(p.stem for p in directory.glob("*.json"))

    def clear_category(self, category: str) -> int:
        directory = self.data_dir / category
        if not directory.exists():
            return 0

        removed = 0
        for entry in directory.iterdir():
            if entry.is_file():
                entry.unlink()
                removed += 1
        return removed
