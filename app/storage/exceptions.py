class StorageError(Exception):
    """Base exception for storage-related errors."""


class ChecksumMismatchError(StorageError):
    """Raised when a received file's digest differs from the client's digest."""

    def __init__(self, filename: str, expected: str, actual: str) -> None:
        super().__init__(
            f"Checksum mismatch for '{filename}': expected {expected}, got {actual}"
        )
        self.filename = filename
        self.expected = expected
        self.actual = actual


class UnsupportedStorageTierError(StorageError):
    """Raised when a storage tier name is not one of the configured tiers."""
