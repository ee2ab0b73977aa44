from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from app.pdf.exceptions import PdfRasterizationError
from app.pdf.pymupdf_adapter import PyMuPdfAdapter
from app.preview.document_generator import DocumentPreviewGenerator, document_format
from app.preview.exceptions import ExternalToolError, PreviewGenerationError
from app.preview.placeholder_generator import PlaceholderPreviewGenerator


def _make_generator(rasterizer: object | None = None) -> DocumentPreviewGenerator:
    return DocumentPreviewGenerator(
        rasterizer=rasterizer or MagicMock(),
        placeholder=PlaceholderPreviewGenerator(),
        soffice_binary="soffice",
        dpi=72,
        timeout_seconds=30,
    )


class TestDocumentFormat:
    def test_pdf_by_mime(self) -> None:
        assert document_format(Path("x.bin"), "application/pdf") == "pdf"

    def test_pdf_by_extension(self) -> None:
        assert document_format(Path("x.PDF"), None) == "pdf"

    def test_office_by_mime(self) -> None:
        mime = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
        assert document_format(Path("x"), mime) == "office"

    def test_office_by_extension(self) -> None:
        assert document_format(Path("sheet.xlsx"), "application/octet-stream") == "office"

    def test_other(self) -> None:
        assert document_format(Path("notes.txt"), "text/plain") == "other"


class TestPdfPreview:
    def test_rasterizes_first_page_to_png(self, tmp_path: Path, sample_pdf_file: Path) -> None:
        generator = _make_generator(PyMuPdfAdapter())

        name = generator.generate(sample_pdf_file, tmp_path / "thumbs", "Report.pdf")

        assert name == "thumb_report-1-2.png"
        assert (tmp_path / "thumbs" / name).read_bytes().startswith(b"\x89PNG")

    def test_rasterizer_error_becomes_preview_error(self, tmp_path: Path) -> None:
        rasterizer = MagicMock()
        rasterizer.rasterize_first_page.side_effect = PdfRasterizationError("corrupt")

        with pytest.raises(PreviewGenerationError, match="corrupt"):
            _make_generator(rasterizer).generate(
                tmp_path / "a.pdf", tmp_path / "thumbs", "a.pdf", "application/pdf"
            )


class TestOfficePreview:
    def test_converts_then_rasterizes(self, tmp_path: Path) -> None:
        source = tmp_path / "memo-1-2.docx"
        source.write_bytes(b"docx")
        rasterizer = MagicMock()
        seen: dict[str, Path] = {}

        def fake_soffice(args: list[str], timeout_seconds: int) -> str:
            outdir = Path(args[args.index("--outdir") + 1])
            (outdir / "memo-1-2.pdf").write_bytes(b"%PDF")
            seen["outdir"] = outdir
            return ""

        with patch("app.preview.document_generator.run_tool", side_effect=fake_soffice):
            name = _make_generator(rasterizer).generate(source, tmp_path / "thumbs", "memo.docx")

        assert name == "thumb_memo-1-2.png"
        pdf_path, output_path = rasterizer.rasterize_first_page.call_args.args
        assert pdf_path == seen["outdir"] / "memo-1-2.pdf"
        assert output_path == tmp_path / "thumbs" / name
        assert not seen["outdir"].exists()

    def test_missing_converted_pdf_raises(self, tmp_path: Path) -> None:
        source = tmp_path / "memo-1-2.docx"
        source.write_bytes(b"docx")

        with patch("app.preview.document_generator.run_tool", return_value=""):
            with pytest.raises(ExternalToolError, match="no PDF"):
                _make_generator().generate(source, tmp_path / "thumbs", "memo.docx")


class TestPlaceholderFallback:
    def test_unsupported_document_gets_svg(self, tmp_path: Path) -> None:
        source = tmp_path / "notes-1-2.txt"
        source.write_text("hello")
        rasterizer = MagicMock()

        name = _make_generator(rasterizer).generate(
            source, tmp_path / "thumbs", "notes.txt", "text/plain"
        )

        assert name == "thumb_notes-1-2.svg"
        rasterizer.rasterize_first_page.assert_not_called()
