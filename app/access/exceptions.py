class AccessDeniedError(Exception):
    """Raised when a user may not read an asset or upload into a group."""
