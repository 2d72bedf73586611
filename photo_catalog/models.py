from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

@dataclass
class CaptureMetadata:
    """
    Best-effort capture info pulled from an EXIF block.
    Either field may be missing even when the block itself exists.
    """
    captured_at: Optional[datetime] = None
    camera_model: Optional[str] = None


@dataclass
class IndexedPhoto:
    """
    One catalog row. Built by the pipeline without identity;
    the store fills in record_id and indexed_at on insert.
    """
    file_path: str
    content_hash: str

    # Capture metadata (None when the file had no usable EXIF)
    captured_at: Optional[datetime] = None
    camera_model: Optional[str] = None

    # Store-assigned
    record_id: Optional[int] = None
    indexed_at: Optional[datetime] = None


@dataclass
class ScanSummary:
    root: Path
    files_indexed: int = 0
    metadata_missing: int = 0
    elapsed_sec: float = 0.0
