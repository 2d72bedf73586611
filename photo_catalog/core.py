import logging
import threading
from datetime import date
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .database.db import DBManager
from .models import IndexedPhoto, ScanSummary
from .scanning.filesystem import TreeWalker, ABORT
from .scanning.hasher import FileHasher
from .scanning.pipeline import IngestionPipeline
from . import config

class PhotoCatalogApp:
    """
    Front door for scans and lookups.
    Each operation opens the catalog once and closes it on every exit path.
    """

    def __init__(self, db_path: Union[str, Path], hash_algorithm: Optional[str] = None):
        self.db_manager = DBManager(db_path)
        self.hash_algorithm = hash_algorithm

    def scan(self,
             root: Path,
             max_workers: int = config.DEFAULT_WORKERS,
             on_error: str = ABORT,
             extensions: Optional[Iterable[str]] = None,
             show_progress: bool = False,
             cancel_event: Optional[threading.Event] = None) -> ScanSummary:
        """
        Indexes every recognized image under root into the catalog.

        Raises WalkFailure, IOFailure or StoreFailure on the first fatal error;
        whatever was inserted before that point stays in the catalog.
        """
        with self.db_manager as store:
            pipeline = IngestionPipeline(
                store,
                walker=TreeWalker(extensions=extensions, on_error=on_error),
                hasher=FileHasher(self.hash_algorithm),
                max_workers=max_workers,
                show_progress=show_progress,
            )
            summary = pipeline.scan(root, cancel_event=cancel_event)
            logging.info(f"Catalog now holds {store.count()} records.")
            return summary

    def lookup_by_hash(self, content_hash: str) -> List[IndexedPhoto]:
        # Digests are stored lowercase; accept pasted uppercase too
        with self.db_manager as store:
            return store.find_by_hash(content_hash.strip().lower())

    def lookup_by_date(self, day: date) -> List[IndexedPhoto]:
        with self.db_manager as store:
            return store.find_by_date(day)
