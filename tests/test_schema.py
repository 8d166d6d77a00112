"""Tests for the table registry and row shaping."""

from __future__ import annotations

import pytest

from ecospray.errors import InputValidationError, InvalidTableError
from ecospray.schema import (
    CMS_SCHEMA,
    CONTENT_TABLES,
    column_letter,
    get_schema,
    last_column,
    record_to_row,
    require_content_table,
    row_to_record,
)


def test_registry_contains_content_and_crm_tables() -> None:
    for name in ("site_config", "pages", "services", "contacts", "activities", "0n_events"):
        assert name in CMS_SCHEMA
    assert CMS_SCHEMA["site_config"].columns == ("key", "value")


def test_event_log_is_not_a_content_table() -> None:
    assert "0n_events" not in CONTENT_TABLES
    assert set(CONTENT_TABLES) == set(CMS_SCHEMA) - {"0n_events"}


def test_unknown_table_is_a_validation_error() -> None:
    with pytest.raises(InvalidTableError) as excinfo:
        get_schema("users")
    assert isinstance(excinfo.value, InputValidationError)
    assert excinfo.value.status_code == 400


def test_require_content_table_rejects_event_log_and_non_strings() -> None:
    with pytest.raises(InvalidTableError):
        require_content_table("0n_events")
    with pytest.raises(InvalidTableError):
        require_content_table(None)
    assert require_content_table("stats").name == "stats"


def test_record_to_row_drops_unknown_and_fills_missing() -> None:
    row = record_to_row("stats", {"id": "stat-1", "value": 500, "bogus": "x"})
    assert row == ["stat-1", "500", "", ""]


def test_record_to_row_stringifies_values() -> None:
    row = record_to_row(
        "services",
        {"id": "svc-1", "title": None, "features": ["Air sealing", "R-value"], "order": 2},
    )
    assert row[0] == "svc-1"
    assert row[1] == ""
    assert row[6] == "Air sealing,R-value"
    assert row[7] == "2"
    assert len(row) == len(CMS_SCHEMA["services"].columns)


def test_row_to_record_pads_short_rows() -> None:
    record = row_to_record(["key", "value"], ["theme"])
    assert record == {"key": "theme", "value": ""}


def test_column_letters() -> None:
    assert column_letter(1) == "A"
    assert column_letter(26) == "Z"
    assert column_letter(27) == "AA"
    assert last_column("site_config") == "B"
    assert last_column("testimonials") == "I"
    with pytest.raises(ValueError):
        column_letter(0)
