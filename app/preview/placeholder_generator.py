from pathlib import Path
from xml.sax.saxutils import escape

from app.preview.base import BasePreviewGenerator
from app.storage.filenames import preview_filename

CANVAS_WIDTH = 800
CANVAS_HEIGHT = 1000

_TEMPLATE = """<svg width="{width}" height="{height}" xmlns="http://www.w3.org/2000/svg">
  <rect width="100%" height="100%" fill="#f8fafc" />
  <text x="50%" y="45%" dominant-baseline="middle" text-anchor="middle"
        font-size="36" fill="#111827"
        font-family="Arial, Helvetica, sans-serif">{label}</text>
  <text x="50%" y="55%" dominant-baseline="middle" text-anchor="middle"
        font-size="20" fill="#6b7280"
        font-family="Arial, Helvetica, sans-serif">{filename}</text>
</svg>
"""


def render_placeholder_svg(filename: str, label: str = "DOCUMENT") -> str:
    return _TEMPLATE.format(
        width=CANVAS_WIDTH,
        height=CANVAS_HEIGHT,
        label=escape(label),
        filename=escape(filename),
    )


class PlaceholderPreviewGenerator(BasePreviewGenerator):
    """Writes a static SVG card showing the asset's filename. No decoding involved."""

    def __init__(self, label: str = "DOCUMENT") -> None:
        self._label = label

    def generate(
        self,
        input_path: Path,
        output_dir: Path,
        declared_name: str,
        mime_type: str | None = None,
    ) -> str:
        output_dir.mkdir(parents=True, exist_ok=True)
        name = preview_filename(input_path.name, ".svg")
        (output_dir / name).write_text(
            render_placeholder_svg(declared_name, self._label), encoding="utf-8"
        )
        return name
