import logging
import threading
from pathlib import Path
from datetime import datetime
from typing import Optional, Mapping, Any, Dict

import exifread

from .. import config
from ..exceptions import MetadataExtractionError, MetadataTimeout, NoMetadataBlock
from ..models import CaptureMetadata


class MetadataExtractor:
    """
    Pulls capture time and camera model out of an embedded EXIF block.

    Two distinct outcomes matter to callers:
      - No EXIF block at all -> NoMetadataBlock (expected for many PNGs/exports).
      - Block present but missing fields -> CaptureMetadata with None fields.
    Anything else that goes wrong while parsing is a MetadataExtractionError.
    """

    def extract(self, path: Path) -> CaptureMetadata:
        try:
            with path.open('rb') as f:
                # details=False skips MakerNotes and thumbnails; much faster
                tags = exifread.process_file(f, details=False)
        except Exception as e:
            # exifread raises a zoo of errors on truncated/corrupt files
            raise MetadataExtractionError(path, e) from e

        if not tags:
            raise NoMetadataBlock(path)

        dt = self._parse_exif_date(tags)
        if dt is None:
            logging.debug(
                "EXIF tags present but no datetime found for %s (tags tried: %s)",
                path,
                ", ".join(config.DATE_TAGS),
            )

        camera = None
        if config.MODEL_TAG in tags:
            camera = str(tags[config.MODEL_TAG]).strip() or None

        return CaptureMetadata(captured_at=dt, camera_model=camera)

    def extract_with_timeout(self, path: Path, timeout: Optional[float]) -> CaptureMetadata:
        """
        Same as extract(), but gives up waiting after `timeout` seconds.

        Each parse runs on its own daemon thread. A hung parser cannot be
        killed, but it neither holds up later files nor blocks interpreter exit.
        """
        if timeout is None:
            return self.extract(path)

        outcome: Dict[str, Any] = {}

        def run():
            try:
                outcome["meta"] = self.extract(path)
            except BaseException as e:
                outcome["error"] = e

        worker = threading.Thread(target=run, name=f"exif-{path.name}", daemon=True)
        worker.start()
        worker.join(timeout)

        if worker.is_alive():
            raise MetadataTimeout(path, TimeoutError(f"parsing exceeded {timeout:g}s"))
        if "error" in outcome:
            raise outcome["error"]
        return outcome["meta"]

    def _parse_exif_date(self, tags: Mapping[str, Any]) -> Optional[datetime]:
        """Helper to parse standard EXIF date strings from exifread."""
        for tag in config.DATE_TAGS:
            if tag in tags:
                try:
                    # EXIF format is "YYYY:MM:DD HH:MM:SS", sometimes NUL padded
                    return datetime.strptime(str(tags[tag]).strip().strip('\x00'),
                                             config.EXIF_DATE_FORMAT)
                except ValueError:
                    continue
        return None
