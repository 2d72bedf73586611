"""
Database connection management.
"""
import sqlite3
import logging
import threading
from pathlib import Path
from typing import Optional, Union

from ..exceptions import StoreFailure
from .ops import SQLiteCatalogStore

class DBManager:
    """
    Single owner of the catalog connection.
    Open once, hand the store to whoever needs it, close on every exit path.
    """

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        # Thread-safe write lock for parallel operations
        # SQLite WAL mode allows multiple readers, but writes need serialization
        self._write_lock = threading.Lock()

    def connect(self) -> sqlite3.Connection:
        """
        Connects to the SQLite database and configures performance pragmas.
        """
        if self._conn:
            return self._conn

        logging.info(f"Connecting to database: {self.db_path}")
        try:
            # Opened cross-thread so a store handed to another thread still works;
            # writes go through write_lock
            conn = sqlite3.connect(self.db_path, check_same_thread=False)

            # Performance Tuning (Safe for single-writer, multi-reader)
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
            conn.execute("PRAGMA temp_store=MEMORY;")
        except sqlite3.Error as e:
            raise StoreFailure(f"Cannot open catalog {self.db_path}: {e}") from e

        # Ensure schema exists
        try:
            SQLiteCatalogStore(conn).initialize()
        except StoreFailure:
            conn.close()
            raise

        self._conn = conn
        return self._conn

    def store(self) -> SQLiteCatalogStore:
        """Returns a catalog store bound to the open connection."""
        return SQLiteCatalogStore(self.connect(), write_lock=self._write_lock)

    def close(self):
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> SQLiteCatalogStore:
        try:
            return self.store()
        except BaseException:
            self.close()
            raise

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @property
    def write_lock(self) -> threading.Lock:
        """Returns the write lock for thread-safe database operations."""
        return self._write_lock
