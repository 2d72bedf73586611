import os
import logging
from pathlib import Path
from typing import Iterable, Iterator, Optional, Set

from .. import config
from ..exceptions import ScanCancelled, WalkFailure

ABORT = "abort"
SKIP = "skip"

class TreeWalker:
    """
    Enumerates candidate image files under a root directory.

    Traversal is depth-first with entries sorted by name, so a given tree
    always produces the same sequence. Symlinks are neither followed nor
    yielded.

    Error policy:
      - 'abort' (default): an unreadable directory stops the walk with WalkFailure.
      - 'skip': the directory is logged and skipped; the walk continues.
    """

    def __init__(self, extensions: Optional[Iterable[str]] = None, on_error: str = ABORT):
        if on_error not in (ABORT, SKIP):
            raise ValueError(f"Unknown walk error policy: {on_error!r}")
        exts = config.IMAGE_EXTS if extensions is None else extensions
        self.extensions: Set[str] = {self._normalize_ext(e) for e in exts}
        self.on_error = on_error

    def is_candidate(self, path: Path) -> bool:
        return path.suffix.lower() in self.extensions

    def iter_files(self, root: Path, cancel_event=None) -> Iterator[Path]:
        """
        Depth-first walker using os.scandir for speed.
        cancel_event is anything with is_set() (threading.Event, AbortSignal).
        """
        root = Path(root)

        # A single file is a valid (if tiny) tree
        if root.is_file() and not root.is_symlink():
            if self.is_candidate(root):
                yield root
            return

        stack = [root]
        while stack:
            if cancel_event is not None and cancel_event.is_set():
                raise ScanCancelled(f"Walk of {root} cancelled")

            current = stack.pop()
            try:
                with os.scandir(current) as it:
                    entries = list(it)
            except OSError as e:
                if self.on_error == SKIP:
                    logging.warning(f"Skipping unreadable directory {current}: {e}")
                    continue
                raise WalkFailure(current, e) from e

            # Sort for stable traversal order
            entries.sort(key=lambda e: (e.name.lower(), e.name))

            dirs = []
            files = []
            for e in entries:
                if e.is_dir(follow_symlinks=False):
                    dirs.append(Path(e.path))
                elif e.is_file(follow_symlinks=False):
                    files.append(Path(e.path))

            # Push dirs to stack (reversed so we process A before Z)
            for d in reversed(dirs):
                stack.append(d)

            for f in files:
                if self.is_candidate(f):
                    yield f

    @staticmethod
    def _normalize_ext(ext: str) -> str:
        ext = ext.strip().lower()
        return ext if ext.startswith('.') else f'.{ext}'
