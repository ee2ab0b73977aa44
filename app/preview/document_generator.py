import tempfile
from pathlib import Path

from app.logging.logger import Log
from app.pdf.base import BasePdfRasterizer
from app.pdf.exceptions import PdfRasterizationError
from app.preview.base import BasePreviewGenerator
from app.preview.exceptions import ExternalToolError, PreviewGenerationError
from app.preview.external import run_tool
from app.preview.placeholder_generator import PlaceholderPreviewGenerator
from app.storage.filenames import preview_filename, split_extension

PDF_MIME_TYPE = "application/pdf"

OFFICE_MIME_TYPES: frozenset[str] = frozenset(
    {
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-powerpoint",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        "application/vnd.oasis.opendocument.text",
        "application/vnd.oasis.opendocument.spreadsheet",
        "application/vnd.oasis.opendocument.presentation",
        "application/rtf",
    }
)

OFFICE_EXTENSIONS: frozenset[str] = frozenset(
    {".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".odt", ".ods", ".odp", ".rtf"}
)


def document_format(input_path: Path, mime_type: str | None) -> str:
    """Return ``pdf``, ``office`` or ``other`` from the MIME type or file extension."""
    mime = (mime_type or "").lower()
    ext = split_extension(input_path.name)[1].lower()
    if mime == PDF_MIME_TYPE or ext == ".pdf":
        return "pdf"
    if mime in OFFICE_MIME_TYPES or ext in OFFICE_EXTENSIONS:
        return "office"
    return "other"


class DocumentPreviewGenerator(BasePreviewGenerator):
    """Rasterizes page one of PDFs; office files are converted to PDF first.

    Anything else gets an SVG placeholder.
    """

    def __init__(
        self,
        rasterizer: BasePdfRasterizer,
        placeholder: PlaceholderPreviewGenerator,
        soffice_binary: str = "soffice",
        dpi: int = 72,
        timeout_seconds: int = 120,
    ) -> None:
        self._rasterizer = rasterizer
        self._placeholder = placeholder
        self._soffice = soffice_binary
        self._dpi = dpi
        self._timeout = timeout_seconds

    def generate(
        self,
        input_path: Path,
        output_dir: Path,
        declared_name: str,
        mime_type: str | None = None,
    ) -> str:
        output_dir.mkdir(parents=True, exist_ok=True)
        kind = document_format(input_path, mime_type)
        if kind == "pdf":
            return self._rasterize(input_path, output_dir, input_path.name)
        if kind == "office":
            # The intermediate PDF lives only as long as the temp dir.
            with tempfile.TemporaryDirectory(prefix="dam-office-") as tmp:
                pdf_path = self._convert_to_pdf(input_path, Path(tmp))
                return self._rasterize(pdf_path, output_dir, input_path.name)
        Log.info(f"No renderer for {declared_name} ({mime_type}), using placeholder")
        return self._placeholder.generate(input_path, output_dir, declared_name, mime_type)

    def _rasterize(self, pdf_path: Path, output_dir: Path, stored_name: str) -> str:
        name = preview_filename(stored_name, ".png")
        try:
            self._rasterizer.rasterize_first_page(pdf_path, output_dir / name, dpi=self._dpi)
        except PdfRasterizationError as exc:
            raise PreviewGenerationError(str(exc)) from exc
        return name

    def _convert_to_pdf(self, input_path: Path, work_dir: Path) -> Path:
        profile_dir = work_dir / "profile"
        run_tool(
            [
                self._soffice,
                f"-env:UserInstallation={profile_dir.as_uri()}",
                "--headless",
                "--convert-to", "pdf",
                "--outdir", str(work_dir),
                str(input_path),
            ],
            self._timeout,
        )
        pdf_path = work_dir / f"{split_extension(input_path.name)[0]}.pdf"
        if not pdf_path.exists():
            raise ExternalToolError(f"soffice produced no PDF for {input_path.name}")
        return pdf_path
