"""Fixed table registry for the spreadsheet-backed CMS and CRM."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from .errors import InvalidTableError


@dataclass(frozen=True)
class TableSchema:
    """Ordered column layout of a single sheet tab."""

    name: str
    description: str
    columns: Tuple[str, ...]


def _table(name: str, description: str, *columns: str) -> TableSchema:
    return TableSchema(name=name, description=description, columns=tuple(columns))


CMS_SCHEMA: Dict[str, TableSchema] = {
    schema.name: schema
    for schema in (
        _table("site_config", "Key-value pairs for site configuration", "key", "value"),
        _table(
            "pages",
            "Website pages with content",
            "id", "title", "slug", "content", "meta_description", "status", "updated_at",
        ),
        _table(
            "blog_posts",
            "Blog posts with full content",
            "id", "title", "slug", "content", "excerpt", "image_id", "published_at", "status",
        ),
        _table(
            "navigation",
            "Navigation menu items",
            "id", "label", "href", "order", "parent_id", "visible",
        ),
        _table(
            "media_log",
            "Media file metadata log",
            "id", "file_name", "drive_file_id", "mime_type", "subfolder", "uploaded_at",
        ),
        _table(
            "services",
            "Spray foam service offerings",
            "id", "title", "description", "icon", "image", "color", "features", "order",
        ),
        _table(
            "testimonials",
            "Customer testimonials and reviews",
            "id", "name", "role", "content", "rating", "project", "location", "image", "order",
        ),
        _table("stats", "Hero section statistics", "id", "value", "label", "order"),
        _table(
            "contacts",
            "CRM contacts",
            "id", "first_name", "last_name", "email", "phone", "company", "tags", "source", "created_at",
        ),
        _table(
            "leads",
            "Lead pipeline entries",
            "id", "contact_id", "stage", "value", "notes", "assigned_to", "created_at", "updated_at",
        ),
        _table("pipeline", "Pipeline stage definitions", "id", "name", "order", "color"),
        _table(
            "activities",
            "CRM activity log",
            "id", "contact_id", "type", "description", "created_at",
        ),
        _table("tags", "Contact tag definitions", "id", "name", "color"),
        _table(
            "0n_events",
            "Cross-layer event log",
            "id", "timestamp", "layer", "event_type", "payload", "agent_id",
        ),
    )
}

# Tables the CMS content endpoints may touch. The event log is write-only
# from the public forms.
CONTENT_TABLES: Tuple[str, ...] = tuple(name for name in CMS_SCHEMA if name != "0n_events")

SITE_CONFIG = "site_config"


def get_schema(name: str) -> TableSchema:
    """Return the schema for ``name`` or raise before any I/O happens."""
    schema = CMS_SCHEMA.get(name) if isinstance(name, str) else None
    if schema is None:
        raise InvalidTableError(f"Invalid sheet. Valid: {', '.join(CMS_SCHEMA)}")
    return schema


def require_content_table(name: Any) -> TableSchema:
    """Validate a table name against the CMS endpoint allow-list."""
    if not isinstance(name, str) or name not in CONTENT_TABLES:
        raise InvalidTableError(f"Invalid sheet. Valid: {', '.join(CONTENT_TABLES)}")
    return CMS_SCHEMA[name]


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_cell(item) for item in value)
    return str(value)


def record_to_row(name: str, record: Mapping[str, Any]) -> List[str]:
    """Shape ``record`` into a positional row for table ``name``.

    Unknown keys are dropped and missing columns default to an empty string.
    """
    schema = get_schema(name)
    return [_cell(record.get(column)) for column in schema.columns]


def row_to_record(header: Sequence[str], row: Sequence[Any]) -> Dict[str, str]:
    """Map a raw sheet row back onto its header names."""
    record: Dict[str, str] = {}
    for index, column in enumerate(header):
        if not column:
            continue
        record[str(column)] = _cell(row[index]) if index < len(row) else ""
    return record


def column_letter(index: int) -> str:
    """Return the A1 column letter for a 1-based column index."""
    if index < 1:
        raise ValueError("column index must be >= 1")
    letters = ""
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(65 + remainder) + letters
    return letters


def last_column(name: str) -> str:
    return column_letter(len(get_schema(name).columns))


__all__ = [
    "CMS_SCHEMA",
    "CONTENT_TABLES",
    "SITE_CONFIG",
    "TableSchema",
    "column_letter",
    "get_schema",
    "last_column",
    "record_to_row",
    "require_content_table",
    "row_to_record",
]
