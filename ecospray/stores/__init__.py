"""Tabular stores holding the CMS and CRM tables."""

from .base import TabularStore
from .memory import InMemoryStore
from .sheets import GoogleSheetsStore, validate_credentials

__all__ = ["GoogleSheetsStore", "InMemoryStore", "TabularStore", "validate_credentials"]
