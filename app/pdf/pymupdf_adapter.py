from pathlib import Path

import pymupdf

from app.pdf.base import BasePdfRasterizer
from app.pdf.exceptions import PdfRasterizationError


class PyMuPdfAdapter(BasePdfRasterizer):
    """Renders PDF pages using PyMuPDF."""

    def rasterize_first_page(self, pdf_path: Path, output_path: Path, dpi: int = 72) -> Path:
        try:
            with pymupdf.open(str(pdf_path)) as doc:  # type: ignore[no-untyped-call]
                if doc.page_count == 0:
                    raise PdfRasterizationError(f"{pdf_path.name} has no pages")
                pixmap = doc[0].get_pixmap(dpi=dpi)
                pixmap.save(str(output_path))
            return output_path
        except PdfRasterizationError:
            raise
        except Exception as exc:
            raise PdfRasterizationError(f"pymupdf rasterization failed: {exc}") from exc
