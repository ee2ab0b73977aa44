from pathlib import Path

import pdfplumber

from app.pdf.base import BasePdfRasterizer
from app.pdf.exceptions import PdfRasterizationError


class PdfPlumberAdapter(BasePdfRasterizer):
    """Renders PDF pages using pdfplumber's page images."""

    def rasterize_first_page(self, pdf_path: Path, output_path: Path, dpi: int = 72) -> Path:
        try:
            with pdfplumber.open(str(pdf_path)) as pdf:
                if not pdf.pages:
                    raise PdfRasterizationError(f"{pdf_path.name} has no pages")
                image = pdf.pages[0].to_image(resolution=dpi)
                image.save(output_path, format="PNG")
            return output_path
        except PdfRasterizationError:
            raise
        except Exception as exc:
            raise PdfRasterizationError(f"pdfplumber rasterization failed: {exc}") from exc
