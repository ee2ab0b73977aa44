class PdfRasterizationError(Exception):
    """Raised when a PDF page cannot be rendered to an image."""
