"""In-process store used when Google Sheets is not configured."""

from __future__ import annotations

import threading
import uuid
from typing import Dict, List, Mapping, Optional, Sequence

from ..schema import get_schema
from .base import TabularStore


class InMemoryStore(TabularStore):
    """Keeps every table as a list of rows guarded by a lock."""

    def __init__(self, seed: Mapping[str, Sequence[Sequence[str]]] | None = None) -> None:
        self._lock = threading.Lock()
        self.spreadsheet_id = "local"
        self._tables: Dict[str, List[List[str]]] = {
            name: [columns] for name, columns in self.header_rows().items()
        }
        for table, rows in (seed or {}).items():
            get_schema(table)
            self._tables[table].extend([str(cell) for cell in row] for row in rows)

    def read_values(self, table: str) -> List[List[str]]:
        get_schema(table)
        with self._lock:
            return [list(row) for row in self._tables[table]]

    def append_values(self, table: str, rows: Sequence[Sequence[str]]) -> None:
        get_schema(table)
        with self._lock:
            self._tables[table].extend(list(row) for row in rows)

    def update_values(self, table: str, start_row: int, rows: Sequence[Sequence[str]]) -> None:
        get_schema(table)
        with self._lock:
            values = self._tables[table]
            for offset, row in enumerate(rows):
                index = start_row - 1 + offset
                while len(values) <= index:
                    values.append([])
                values[index] = list(row)

    def clear_values(self, table: str, start_row: int, end_row: Optional[int] = None) -> None:
        schema = get_schema(table)
        with self._lock:
            values = self._tables[table]
            if end_row is None:
                del values[start_row - 1:]
                return
            for index in range(start_row - 1, min(end_row, len(values))):
                values[index] = [""] * len(schema.columns)

    def create_spreadsheet(self, title: str) -> Dict[str, str]:
        with self._lock:
            self._tables = {name: [columns] for name, columns in self.header_rows().items()}
            self.spreadsheet_id = f"local-{uuid.uuid4().hex[:12]}"
        return {"spreadsheetId": self.spreadsheet_id, "spreadsheetUrl": "", "title": title}


__all__ = ["InMemoryStore"]
