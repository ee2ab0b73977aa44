class PreviewGenerationError(Exception):
    """Raised when a preview cannot be derived from a source file."""


class ExternalToolError(PreviewGenerationError):
    """Raised when an external converter is missing, exits non-zero or times out."""
