import hashlib
from pathlib import Path
from typing import BinaryIO, Optional

from .. import config
from ..exceptions import IOFailure

class FileHasher:
    def __init__(self, algorithm: Optional[str] = None, chunk_size: int = config.HASH_CHUNK_SIZE):
        self.algorithm = algorithm or config.HASH_ALGORITHM
        self.chunk_size = chunk_size
        # Fail fast on unknown algorithm names rather than on the first file
        hashlib.new(self.algorithm)

    def compute_hash(self, path: Path) -> str:
        """
        Computes the content fingerprint of the whole file.

        Raises:
            IOFailure: if the file cannot be opened or fully read.
        """
        try:
            with open(path, 'rb') as f:
                return self.hash_stream(f)
        except OSError as e:
            raise IOFailure(path, e) from e

    def hash_stream(self, fileobj: BinaryIO) -> str:
        """
        Hashes an already open binary handle from its current position to EOF.
        Caller should ensure the handle is at position 0.
        """
        h = hashlib.new(self.algorithm)
        while chunk := fileobj.read(self.chunk_size):
            h.update(chunk)
        return h.hexdigest()
