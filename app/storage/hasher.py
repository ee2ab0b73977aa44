import hashlib
from pathlib import Path
from typing import BinaryIO

from app.storage.exceptions import ChecksumMismatchError

CHUNK_SIZE = 64 * 1024


class ContentHasher:
    """SHA-256 digests computed by streaming, never loading a whole file."""

    def __init__(self, chunk_size: int = CHUNK_SIZE) -> None:
        self._chunk_size = chunk_size

    def digest_stream(self, stream: BinaryIO) -> str:
        """Hex digest of everything left in ``stream``. Read errors propagate."""
        digest = hashlib.sha256()
        for chunk in iter(lambda: stream.read(self._chunk_size), b""):
            digest.update(chunk)
        return digest.hexdigest()

    def digest_file(self, path: Path) -> str:
        with path.open("rb") as stream:
            return self.digest_stream(stream)

    def verify_file(self, path: Path, expected: str, filename: str | None = None) -> str:
        """Return the file's digest, or raise if it does not match ``expected``.

        Comparison ignores case and surrounding whitespace of the client value.

        Raises:
            ChecksumMismatchError: if the digests differ.
            OSError: if the file cannot be read.
        """
        actual = self.digest_file(path)
        if actual != expected.strip().lower():
            raise ChecksumMismatchError(filename or path.name, expected, actual)
        return actual
