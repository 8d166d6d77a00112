"""Write extracted content into the destination spreadsheet."""

from __future__ import annotations

from typing import Callable, Dict, Optional

from .errors import ContentWriteError, EcosprayError, InputValidationError
from .logging import get_logger
from .models import ExtractedContent, LIST_CATEGORIES, Record
from .schema import SITE_CONFIG
from .stores.base import TabularStore
from .stores.sheets import GoogleSheetsStore

StoreFactory = Callable[[str, str], TabularStore]

# businessInfo field -> site_config key
BUSINESS_CONFIG_KEYS: Dict[str, str] = {
    "name": "business_name",
    "phone": "phone",
    "email": "email",
    "tagline": "tagline",
    "industry": "industry",
}


def open_sheets_store(destination_id: str, credentials_key: str) -> TabularStore:
    return GoogleSheetsStore.from_credentials_key(credentials_key, destination_id)


def merged_site_config(content: ExtractedContent) -> Optional[Record]:
    """Combine extracted site_config with business info, or None when both are absent."""
    business = {
        BUSINESS_CONFIG_KEYS[key]: value
        for key, value in content.business_info.items()
        if key in BUSINESS_CONFIG_KEYS and value
    }
    if content.site_config is None and not business:
        return None
    merged: Record = dict(content.site_config or {})
    for key, value in business.items():
        merged.setdefault(key, value)
    return merged


class ContentWriter:
    """Maps each present category onto its table in one batched write.

    List categories are append-only; ``site_config`` is cleared and rewritten.
    """

    def __init__(self, store_factory: StoreFactory | None = None) -> None:
        self.store_factory = store_factory or open_sheets_store
        self.logger = get_logger("writer")

    def write(
        self,
        content: ExtractedContent,
        destination_id: str,
        credentials_key: str,
    ) -> Dict[str, int]:
        if not destination_id:
            raise InputValidationError("destinationId is required")
        if not credentials_key:
            raise InputValidationError("destinationKey is required")
        store = self.store_factory(destination_id, credentials_key)
        return self.write_to(store, content)

    def write_to(self, store: TabularStore, content: ExtractedContent) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        failures: Dict[str, str] = {}

        for category in LIST_CATEGORIES:
            rows = content.category(category)
            if rows is None:
                continue
            try:
                counts[category] = store.append_records(category, rows)
            except EcosprayError as exc:
                self.logger.error("Writing %s failed: %s", category, exc.message)
                failures[category] = exc.message

        config = merged_site_config(content)
        if config is not None:
            try:
                counts[SITE_CONFIG] = store.replace_config(config)
            except EcosprayError as exc:
                self.logger.error("Writing %s failed: %s", SITE_CONFIG, exc.message)
                failures[SITE_CONFIG] = exc.message

        if failures:
            raise ContentWriteError(failures, counts)
        self.logger.info(
            "Wrote %s", ", ".join(f"{name}={count}" for name, count in counts.items()) or "nothing"
        )
        return counts


__all__ = ["BUSINESS_CONFIG_KEYS", "ContentWriter", "merged_site_config", "open_sheets_store"]
