import sqlite3
import logging
import threading
from contextlib import nullcontext
from dataclasses import replace
from datetime import date, datetime, UTC
from typing import Optional, List, Tuple, Any

from ..exceptions import StoreFailure
from ..models import IndexedPhoto
from .base import CatalogStore
from .schema import init_schema

_COLUMNS = "id, file_path, content_hash, captured_at, camera_model, indexed_at"

class SQLiteCatalogStore(CatalogStore):
    """
    SQLite-backed catalog.

    Every statement binds values through '?' placeholders. Paths, hashes and
    camera models come straight off disk and are never spliced into SQL text.
    """

    def __init__(self, conn: sqlite3.Connection, write_lock: Optional[threading.Lock] = None):
        self.conn = conn
        self._write_lock = write_lock

    def initialize(self) -> None:
        try:
            init_schema(self.conn)
        except sqlite3.Error as e:
            raise StoreFailure(f"Schema initialization failed: {e}") from e

    def insert(self, photo: IndexedPhoto) -> IndexedPhoto:
        """
        Appends a new record. Never updates or merges with existing rows.
        Each insert is committed on its own so an aborted scan keeps its progress.
        """
        indexed_at = datetime.now(UTC)
        # Keep the camera wall-clock time; an offset would make date() shift the day to UTC
        captured_at = photo.captured_at.replace(tzinfo=None) if photo.captured_at else None
        captured_str = captured_at.isoformat() if captured_at else None

        lock = self._write_lock if self._write_lock is not None else nullcontext()
        try:
            with lock, self.conn:
                cur = self.conn.execute("""
                    INSERT INTO photos (file_path, content_hash, captured_at, camera_model, indexed_at)
                    VALUES (?, ?, ?, ?, ?)
                """, (
                    str(photo.file_path), photo.content_hash, captured_str,
                    photo.camera_model, indexed_at.isoformat()
                ))
                record_id = cur.lastrowid
        except sqlite3.Error as e:
            raise StoreFailure(f"Insert failed for {photo.file_path}: {e}") from e

        if record_id is None:
            raise StoreFailure("Database INSERT failed to return a row ID.")

        logging.debug(f"Inserted record {record_id} for {photo.file_path}")
        return replace(photo, captured_at=captured_at, record_id=record_id, indexed_at=indexed_at)

    def find_by_hash(self, content_hash: str) -> List[IndexedPhoto]:
        return self._select(
            f"SELECT {_COLUMNS} FROM photos WHERE content_hash = ? ORDER BY id",
            (content_hash,),
        )

    def find_by_date(self, day: date) -> List[IndexedPhoto]:
        """Matches on the calendar day of captured_at; time of day is ignored."""
        if isinstance(day, datetime):
            day = day.date()
        return self._select(
            f"SELECT {_COLUMNS} FROM photos WHERE date(captured_at) = ? ORDER BY id",
            (day.isoformat(),),
        )

    def count(self) -> int:
        try:
            cur = self.conn.execute("SELECT COUNT(*) FROM photos")
            return cur.fetchone()[0]
        except sqlite3.Error as e:
            raise StoreFailure(f"Count failed: {e}") from e

    def _select(self, sql: str, params: Tuple[Any, ...]) -> List[IndexedPhoto]:
        try:
            cur = self.conn.execute(sql, params)
            rows = cur.fetchall()
        except sqlite3.Error as e:
            raise StoreFailure(f"Query failed: {e}") from e
        return [self._row_to_photo(r) for r in rows]

    @staticmethod
    def _row_to_photo(row: Tuple[Any, ...]) -> IndexedPhoto:
        record_id, file_path, content_hash, captured_str, camera_model, indexed_str = row
        return IndexedPhoto(
            file_path=file_path,
            content_hash=content_hash,
            captured_at=datetime.fromisoformat(captured_str) if captured_str else None,
            camera_model=camera_model,
            record_id=record_id,
            indexed_at=datetime.fromisoformat(indexed_str),
        )
