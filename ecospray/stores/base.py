"""Base class for the spreadsheet-shaped content store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from ..errors import InputValidationError
from ..schema import CMS_SCHEMA, SITE_CONFIG, get_schema, record_to_row, row_to_record

# Sheet row 1 holds the headers; data index 0 lives on row 2.
HEADER_ROWS = 1


class TabularStore(ABC):
    """Contract for stores holding one header-led table per schema entry.

    Subclasses provide raw value primitives addressed by 1-based sheet rows;
    the record helpers below shape rows through the table registry.
    """

    @abstractmethod
    def read_values(self, table: str) -> List[List[str]]:
        """Return every row of ``table`` including the header row."""

    @abstractmethod
    def append_values(self, table: str, rows: Sequence[Sequence[str]]) -> None:
        """Append ``rows`` after the last populated row in one write."""

    @abstractmethod
    def update_values(self, table: str, start_row: int, rows: Sequence[Sequence[str]]) -> None:
        """Overwrite rows beginning at 1-based ``start_row``."""

    @abstractmethod
    def clear_values(self, table: str, start_row: int, end_row: Optional[int] = None) -> None:
        """Blank rows ``start_row..end_row``; ``None`` clears to the end of the table."""

    @abstractmethod
    def create_spreadsheet(self, title: str) -> Dict[str, str]:
        """Create a spreadsheet with a tab per table; returns its id and URL."""

    def read_records(self, table: str) -> List[Dict[str, str]]:
        get_schema(table)
        values = self.read_values(table)
        if len(values) <= HEADER_ROWS:
            return []
        header = values[0]
        return [row_to_record(header, row) for row in values[HEADER_ROWS:]]

    def append_record(self, table: str, record: Mapping[str, Any]) -> None:
        self.append_records(table, [record])

    def append_records(self, table: str, records: Iterable[Mapping[str, Any]]) -> int:
        rows = [record_to_row(table, record) for record in records]
        if not rows:
            return 0
        self.append_values(table, rows)
        return len(rows)

    def update_record(self, table: str, index: int, record: Mapping[str, Any]) -> None:
        self.update_values(table, _sheet_row(index), [record_to_row(table, record)])

    def delete_record(self, table: str, index: int) -> None:
        get_schema(table)
        row = _sheet_row(index)
        self.clear_values(table, row, row)

    def site_config(self) -> Dict[str, str]:
        config: Dict[str, str] = {}
        for record in self.read_records(SITE_CONFIG):
            if record.get("key"):
                config[record["key"]] = record.get("value", "")
        return config

    def upsert_config(self, key: str, value: str) -> None:
        values = self.read_values(SITE_CONFIG)
        for offset, row in enumerate(values[HEADER_ROWS:], start=HEADER_ROWS + 1):
            if row and row[0] == key:
                self.update_values(SITE_CONFIG, offset, [[key, value]])
                return
        self.append_values(SITE_CONFIG, [[key, value]])

    def replace_config(self, config: Mapping[str, Any]) -> int:
        """Clear every config row, then write ``config`` so no stale key survives."""
        rows = [record_to_row(SITE_CONFIG, {"key": key, "value": value}) for key, value in config.items()]
        self.clear_values(SITE_CONFIG, HEADER_ROWS + 1)
        if rows:
            self.update_values(SITE_CONFIG, HEADER_ROWS + 1, rows)
        return len(rows)

    def initialize(self, title: str) -> Dict[str, str]:
        """Create every table with its header row; used by the setup wizard."""
        return self.create_spreadsheet(title)

    @staticmethod
    def header_rows() -> Dict[str, List[str]]:
        return {name: list(schema.columns) for name, schema in CMS_SCHEMA.items()}


def _sheet_row(index: int) -> int:
    if isinstance(index, bool) or not isinstance(index, int) or index < 0:
        raise InputValidationError("rowIndex must be a non-negative integer")
    return index + HEADER_ROWS + 1


__all__ = ["HEADER_ROWS", "TabularStore"]
