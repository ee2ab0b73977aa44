from app.config.settings import Settings
from app.pdf.base import BasePdfRasterizer
from app.pdf.pdfplumber_adapter import PdfPlumberAdapter
from app.pdf.pymupdf_adapter import PyMuPdfAdapter


class PdfRasterizerFactory:
    """Creates the correct PDF rasterizer based on settings."""

    ADAPTERS: dict[str, type[BasePdfRasterizer]] = {
        "pymupdf": PyMuPdfAdapter,
        "pdfplumber": PdfPlumberAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> BasePdfRasterizer:
        engine = settings.pdf_engine.lower()
        adapter_cls = cls.ADAPTERS.get(engine)
        if adapter_cls is None:
            raise ValueError(
                f"Unknown PDF engine '{engine}'. Choose from: {list(cls.ADAPTERS)}"
            )
        return adapter_cls()
