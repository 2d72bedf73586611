"""
Custom exception hierarchy for the photo catalog.

Scan-fatal errors (IOFailure, WalkFailure, StoreFailure) carry enough context
for the caller to report the failing path and the underlying cause. Metadata
errors are recoverable and never leave the ingestion pipeline.
"""
from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]


class PhotoCatalogError(Exception):
    """Base exception for all photo catalog errors."""
    pass


class _PathError(PhotoCatalogError):
    """An error tied to a specific filesystem path."""

    def __init__(self, path: PathLike, cause: Optional[BaseException] = None):
        self.path = Path(path)
        self.cause = cause
        message = str(self.path) if cause is None else f"{self.path}: {cause}"
        super().__init__(message)


class IOFailure(_PathError):
    """Raised when a file's bytes cannot be read for hashing."""
    pass


class WalkFailure(_PathError):
    """Raised when a directory cannot be enumerated during a scan."""
    pass


class MetadataExtractionError(_PathError):
    """Raised when metadata cannot be extracted from a file."""
    pass


class NoMetadataBlock(MetadataExtractionError):
    """Raised when a file carries no recognizable EXIF block at all."""

    def __init__(self, path: PathLike):
        super().__init__(path)

    def __str__(self):
        return f"No EXIF block found in {self.path}"


class MetadataTimeout(MetadataExtractionError):
    """Raised when metadata parsing exceeds its time budget."""
    pass


class StoreFailure(PhotoCatalogError):
    """Raised when catalog store operations fail."""
    pass


class ScanCancelled(PhotoCatalogError):
    """Raised when a scan is stopped through its cancellation signal."""
    pass
