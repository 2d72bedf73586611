"""
Abstract catalog store interface used by the ingestion pipeline and queries.
"""
from abc import ABC, abstractmethod
from datetime import date
from typing import List

from ..models import IndexedPhoto


class CatalogStore(ABC):
    """Append-only table of IndexedPhoto records with hash and date lookups."""

    @abstractmethod
    def initialize(self) -> None:
        """Ensure schema and indexes exist. Must be safe to call repeatedly."""

    @abstractmethod
    def insert(self, photo: IndexedPhoto) -> IndexedPhoto:
        """Append a record and return it with record_id and indexed_at assigned."""

    @abstractmethod
    def find_by_hash(self, content_hash: str) -> List[IndexedPhoto]:
        """Return every record with exactly this content hash, oldest first."""

    @abstractmethod
    def find_by_date(self, day: date) -> List[IndexedPhoto]:
        """Return every record captured on this calendar day, oldest first."""

    @abstractmethod
    def count(self) -> int:
        """Total number of records in the catalog."""
