import io
from pathlib import Path

import pytest
from PIL import Image
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Hello PDF World")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Generate a two-page PDF with known text on each page."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Page one content")
    c.showPage()
    c.drawString(72, 720, "Page two content")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def sample_pdf_file(tmp_path: Path, sample_pdf_bytes: bytes) -> Path:
    path = tmp_path / "report-1-2.pdf"
    path.write_bytes(sample_pdf_bytes)
    return path


@pytest.fixture()
def landscape_png_file(tmp_path: Path) -> Path:
    """An 800x400 RGB PNG."""
    path = tmp_path / "landscape-1-2.png"
    Image.new("RGB", (800, 400), color=(200, 30, 30)).save(path, format="PNG")
    return path


@pytest.fixture()
def small_jpeg_file(tmp_path: Path) -> Path:
    """A 120x80 JPEG, already smaller than a thumbnail."""
    path = tmp_path / "small-1-2.jpg"
    Image.new("RGB", (120, 80), color=(10, 120, 10)).save(path, format="JPEG")
    return path
