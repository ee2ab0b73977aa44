class ProcessingError(Exception):
    """Base exception for asset-processing errors."""


class JobPayloadError(ProcessingError):
    """Raised when a job payload is missing fields or has wrong types."""


class PersistenceError(ProcessingError):
    """Raised when the asset row or its metadata cannot be written."""


class AssetNotFoundError(ProcessingError):
    """Raised when an asset cannot be found in the database."""


class SourceFileMissingError(ProcessingError):
    """Raised when a job's stored source file is no longer on disk."""
