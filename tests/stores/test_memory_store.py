"""Tests for the record helpers shared by every tabular store."""

from __future__ import annotations

import pytest

from ecospray.errors import InputValidationError, InvalidTableError
from ecospray.schema import CONTENT_TABLES
from ecospray.stores.memory import InMemoryStore


def test_every_content_table_reads_as_a_list(memory_store: InMemoryStore) -> None:
    for table in CONTENT_TABLES:
        assert memory_store.read_records(table) == []


def test_unknown_table_is_rejected(memory_store: InMemoryStore) -> None:
    with pytest.raises(InvalidTableError):
        memory_store.read_records("users")


def test_append_records_batches_and_shapes_rows(memory_store: InMemoryStore) -> None:
    count = memory_store.append_records(
        "stats",
        [{"id": "stat-1", "value": "500+", "extra": "dropped"}, {"id": "stat-2", "label": "Homes"}],
    )

    assert count == 2
    assert memory_store.read_values("stats")[1:] == [
        ["stat-1", "500+", "", ""],
        ["stat-2", "", "Homes", ""],
    ]


def test_empty_append_is_a_no_op() -> None:
    class CountingStore(InMemoryStore):
        appends = 0

        def append_values(self, table, rows):
            self.appends += 1
            super().append_values(table, rows)

    store = CountingStore()

    assert store.append_records("services", []) == 0
    assert store.appends == 0


def test_update_and_delete_use_data_indexes(memory_store: InMemoryStore) -> None:
    memory_store.append_records("tags", [{"id": "t1", "name": "hot"}, {"id": "t2", "name": "cold"}])

    memory_store.update_record("tags", 1, {"id": "t2", "name": "warm", "color": "orange"})
    memory_store.delete_record("tags", 0)

    assert memory_store.read_records("tags") == [
        {"id": "", "name": "", "color": ""},
        {"id": "t2", "name": "warm", "color": "orange"},
    ]


@pytest.mark.parametrize("index", [-1, True, "2"])
def test_bad_row_index_is_rejected(memory_store: InMemoryStore, index: object) -> None:
    with pytest.raises(InputValidationError):
        memory_store.update_record("tags", index, {})  # type: ignore[arg-type]


def test_upsert_config_updates_in_place(memory_store: InMemoryStore) -> None:
    memory_store.upsert_config("theme", "light")
    memory_store.upsert_config("locale", "en")
    memory_store.upsert_config("theme", "dark")

    assert memory_store.site_config() == {"theme": "dark", "locale": "en"}
    assert len(memory_store.read_values("site_config")) == 3


def test_replace_config_drops_stale_keys(memory_store: InMemoryStore) -> None:
    memory_store.replace_config({"theme": "light", "locale": "en"})
    memory_store.replace_config({"theme": "dark"})

    assert memory_store.site_config() == {"theme": "dark"}


def test_initialize_resets_tables() -> None:
    store = InMemoryStore(seed={"stats": [["stat-1", "1", "One", "1"]]})

    result = store.initialize("Acme - Site Content")

    assert result["spreadsheetId"].startswith("local-")
    assert store.read_records("stats") == []
    assert store.read_values("contacts")[0][:3] == ["id", "first_name", "last_name"]
