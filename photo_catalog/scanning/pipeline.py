import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, Future, FIRST_COMPLETED, wait
from pathlib import Path
from typing import Optional, Set, List, Tuple

from tqdm import tqdm

from .. import config
from ..database.base import CatalogStore
from ..exceptions import MetadataExtractionError, NoMetadataBlock, ScanCancelled
from ..metadata.extract import MetadataExtractor
from ..models import CaptureMetadata, IndexedPhoto, ScanSummary
from .filesystem import TreeWalker
from .hasher import FileHasher


class AbortSignal:
    """
    Stop flag shared by the walker and every file task.
    Set internally on the first fatal error, or externally via cancel_event.
    """

    def __init__(self, cancel_event: Optional[threading.Event] = None):
        self._aborted = threading.Event()
        self._cancel_event = cancel_event

    def set(self):
        self._aborted.set()

    def is_set(self) -> bool:
        return self._aborted.is_set() or self.cancelled

    @property
    def cancelled(self) -> bool:
        return self._cancel_event is not None and self._cancel_event.is_set()


class IngestionPipeline:
    """
    Walk -> Hash -> Extract -> Insert, one file at a time or on a bounded pool.

    Failure policy:
      - Hash failure (IOFailure), walk failure (WalkFailure) and insert
        failure (StoreFailure) abort the whole scan.
      - Metadata problems are logged and the file is stored without metadata.
    Nothing is rolled back; rows inserted before an abort stay in the catalog.
    """

    def __init__(self,
                 store: CatalogStore,
                 walker: Optional[TreeWalker] = None,
                 hasher: Optional[FileHasher] = None,
                 extractor: Optional[MetadataExtractor] = None,
                 max_workers: int = config.DEFAULT_WORKERS,
                 extract_timeout: Optional[float] = config.EXTRACT_TIMEOUT_SEC,
                 show_progress: bool = False):
        self.store = store
        self.walker = walker or TreeWalker()
        self.hasher = hasher or FileHasher()
        self.extractor = extractor or MetadataExtractor()
        self.max_workers = max(1, min(max_workers, config.MAX_WORKERS))
        self.extract_timeout = extract_timeout
        self.show_progress = show_progress

        self._count_lock = threading.Lock()

    def scan(self, root: Path, cancel_event: Optional[threading.Event] = None) -> ScanSummary:
        """
        Indexes every recognized image under root.

        Raises:
            WalkFailure, IOFailure, StoreFailure: first fatal error, scan aborted.
            ScanCancelled: cancel_event was set before the scan finished.
        """
        root = Path(root)
        summary = ScanSummary(root=root)
        signal = AbortSignal(cancel_event)
        t0 = time.perf_counter()

        logging.info(f"Scanning {root} (workers={self.max_workers})...")

        progress = tqdm(desc="Scanning", unit="file", disable=not self.show_progress)
        try:
            if self.max_workers <= 1:
                self._scan_sequential(root, summary, signal, progress)
            else:
                self._scan_parallel(root, summary, signal, progress)
        finally:
            progress.close()
            summary.elapsed_sec = time.perf_counter() - t0

        logging.info(
            f"Scan complete. Indexed {summary.files_indexed} files "
            f"({summary.metadata_missing} without metadata) in {summary.elapsed_sec:.1f}s."
        )
        return summary

    def _scan_sequential(self, root: Path, summary: ScanSummary, signal: AbortSignal, progress: tqdm):
        """Sequential scanning (reference behavior)."""
        for path in self.walker.iter_files(root, signal):
            self._process_single_file(path, summary, signal)
            progress.update(1)

    def _scan_parallel(self, root: Path, summary: ScanSummary, signal: AbortSignal, progress: tqdm):
        """
        Bounded pool consuming the walker lazily.
        Workers only hash and extract; every insert runs here, on the calling thread,
        so the store's connection never crosses threads.
        The first error sets the abort signal; in-flight tasks drain, then it is re-raised.
        """
        max_in_flight = self.max_workers * 2
        in_flight: Set[Future] = set()
        errors: List[BaseException] = []

        def collect(done):
            for fut in done:
                in_flight.discard(fut)
                err = fut.exception()
                if err is None and not signal.is_set():
                    photo, missing = fut.result()
                    try:
                        self._persist(photo, missing, summary)
                    except Exception as e:
                        err = e
                    else:
                        progress.update(1)
                if err is not None:
                    errors.append(err)
                    signal.set()

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="ingest") as executor:
            try:
                for path in self.walker.iter_files(root, signal):
                    if signal.is_set():
                        break
                    in_flight.add(executor.submit(self._guarded_task, path, signal))
                    if len(in_flight) >= max_in_flight:
                        done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
                        collect(done)
            except ScanCancelled:
                # Walker saw the signal; the reason is decided after draining
                pass
            except BaseException:
                signal.set()
                raise
            finally:
                if in_flight:
                    done, _ = wait(in_flight)
                    collect(done)

        # Tasks that merely noticed the abort report ScanCancelled; the real failure wins
        fatal = [e for e in errors if not isinstance(e, ScanCancelled)]
        if fatal:
            raise fatal[0]
        if errors or signal.cancelled:
            raise ScanCancelled(f"Scan of {root} cancelled")

    def _guarded_task(self, path: Path, signal: AbortSignal) -> Tuple[IndexedPhoto, bool]:
        """Pool entry point: any failure stops the walker and idle tasks right away."""
        try:
            return self._prepare(path, signal)
        except BaseException:
            signal.set()
            raise

    def _process_single_file(self, path: Path, summary: ScanSummary, signal: AbortSignal) -> IndexedPhoto:
        """Hash, extract, insert. Fatal errors propagate to the caller unchanged."""
        photo, missing = self._prepare(path, signal)
        return self._persist(photo, missing, summary)

    def _prepare(self, path: Path, signal: AbortSignal) -> Tuple[IndexedPhoto, bool]:
        """Builds the unsaved record. Returns it with a flag for missing metadata."""
        if signal.is_set():
            raise ScanCancelled(f"Scan stopped before {path}")

        # 1. Content hash (IOFailure is fatal)
        content_hash = self.hasher.compute_hash(path)

        # 2. Capture metadata (never fatal)
        meta = self._extract_metadata(path)
        missing = meta is None
        if missing:
            meta = CaptureMetadata()

        photo = IndexedPhoto(
            file_path=str(path),
            content_hash=content_hash,
            captured_at=meta.captured_at,
            camera_model=meta.camera_model,
        )
        return photo, missing

    def _persist(self, photo: IndexedPhoto, missing: bool, summary: ScanSummary) -> IndexedPhoto:
        # 3. Persist (StoreFailure is fatal)
        stored = self.store.insert(photo)

        with self._count_lock:
            summary.files_indexed += 1
            if missing:
                summary.metadata_missing += 1
            processed = summary.files_indexed

        if processed % config.PROGRESS_LOG_EVERY == 0:
            logging.info(f"Indexed {processed} files...")
        return stored

    def _extract_metadata(self, path: Path) -> Optional[CaptureMetadata]:
        try:
            return self.extractor.extract_with_timeout(path, self.extract_timeout)
        except NoMetadataBlock:
            logging.warning(f"No EXIF data for {path}; indexing without capture metadata")
        except MetadataExtractionError as e:
            logging.warning(f"Could not read EXIF data for {path}: {e}")
        return None
