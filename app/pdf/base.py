from abc import ABC, abstractmethod
from pathlib import Path


class BasePdfRasterizer(ABC):
    """Contract for all PDF rendering adapters."""

    @abstractmethod
    def rasterize_first_page(self, pdf_path: Path, output_path: Path, dpi: int = 72) -> Path:
        """Render page one of ``pdf_path`` into a PNG at ``output_path``.

        Args:
            pdf_path: PDF file to read. It is never modified.
            output_path: Destination PNG file; its directory must exist.
            dpi: Render resolution.

        Returns:
            The path written.

        Raises:
            PdfRasterizationError: if the file cannot be opened, has no
                pages, or rendering fails.
        """
