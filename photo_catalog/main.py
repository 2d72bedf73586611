import argparse
import logging
import os
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, Optional, Sequence

from .core import PhotoCatalogApp
from .exceptions import PhotoCatalogError
from .models import IndexedPhoto
from .scanning.filesystem import ABORT, SKIP
from . import config

def setup_logging(verbose: bool, log_file: Optional[Path] = None):
    """Sets up logging to the console and, optionally, a log file."""
    log_level = logging.DEBUG if verbose else logging.INFO

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.insert(0, logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
    )

    # Turn down exifread's own chatter (it logs "File format not recognized")
    logging.getLogger("exifread").setLevel(logging.ERROR)

def parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date {value!r}, expected YYYY-MM-DD")

def parse_args(argv: Optional[Sequence[str]] = None):
    p = argparse.ArgumentParser(prog="photo-catalog", description="Photo library catalog: index by content hash and capture date.")

    p.add_argument("--db", type=Path,
                   default=Path(os.environ.get(config.DB_ENV_VAR, config.DEFAULT_DB_NAME)),
                   help=f"Path to SQLite catalog (default: ${config.DB_ENV_VAR} or {config.DEFAULT_DB_NAME})")
    p.add_argument("--hash-algorithm", default=config.HASH_ALGORITHM,
                   help=f"Content digest to use (default: {config.HASH_ALGORITHM})")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    p.add_argument("--log-file", type=Path, default=None, help="Also write the log to this file")

    sub = p.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Scan photo library and save to catalog")
    scan.add_argument("root", type=Path, help="Root directory of the photo library")
    scan.add_argument("--workers", type=int, default=config.DEFAULT_WORKERS,
                      help=f"Parallel hashing/extraction workers (default: {config.DEFAULT_WORKERS}, max {config.MAX_WORKERS})")
    scan.add_argument("--skip-unreadable", action="store_true",
                      help="Skip unreadable directories instead of aborting the scan")
    scan.add_argument("--ext", action="append", default=None, dest="extensions",
                      help="Recognized image extension; repeat for several (default: .jpg .jpeg .png)")
    scan.add_argument("--progress", action="store_true", help="Show a progress bar")

    find_hash = sub.add_parser("find-hash", help="Find photos by content hash")
    find_hash.add_argument("hash", help="Hex digest as produced by 'scan'")

    find_date = sub.add_parser("find-date", help="Find photos by capture date (YYYY-MM-DD)")
    find_date.add_argument("date", type=parse_date, help="Capture date, YYYY-MM-DD")

    return p.parse_args(argv)

def format_photo(photo: IndexedPhoto) -> str:
    taken = photo.captured_at.isoformat(sep=" ") if photo.captured_at else "-"
    return (
        f"File: {photo.file_path}\n"
        f"Hash: {photo.content_hash}\n"
        f"Taken: {taken}\n"
        f"Camera: {photo.camera_model or '-'}\n"
    )

def print_photos(photos: Iterable[IndexedPhoto]):
    for photo in photos:
        print(format_photo(photo))

def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    app = PhotoCatalogApp(args.db, hash_algorithm=args.hash_algorithm)

    try:
        if args.command == "scan":
            app.scan(
                args.root,
                max_workers=args.workers,
                on_error=SKIP if args.skip_unreadable else ABORT,
                extensions=args.extensions,
                show_progress=args.progress,
            )
        elif args.command == "find-hash":
            print_photos(app.lookup_by_hash(args.hash))
        elif args.command == "find-date":
            print_photos(app.lookup_by_date(args.date))
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        return 1
    except PhotoCatalogError as e:
        cause = getattr(e, "cause", None) or e.__cause__
        logging.error(f"{args.command} failed: {e}" + (f" (cause: {cause!r})" if cause else ""))
        return 1
    except Exception:
        logging.exception(f"Fatal error during {args.command}.")
        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main())
