from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from app.preview.base import BasePreviewGenerator
from app.preview.exceptions import PreviewGenerationError
from app.storage.filenames import preview_filename


class ImagePreviewGenerator(BasePreviewGenerator):
    """Fits a raster image into a square bounding box and writes a PNG.

    Aspect ratio is preserved and images smaller than the box are not enlarged.
    """

    def __init__(self, max_size: int = 300) -> None:
        self._max_size = max_size

    def generate(
        self,
        input_path: Path,
        output_dir: Path,
        declared_name: str,
        mime_type: str | None = None,
    ) -> str:
        output_dir.mkdir(parents=True, exist_ok=True)
        name = preview_filename(input_path.name, ".png")
        try:
            with Image.open(input_path) as img:
                out = ImageOps.exif_transpose(img)
                if out.mode not in ("RGB", "RGBA", "L", "LA"):
                    out = out.convert("RGBA")
                out.thumbnail((self._max_size, self._max_size))
                out.save(output_dir / name, format="PNG", optimize=True)
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            raise PreviewGenerationError(
                f"cannot build image preview for {declared_name}: {exc}"
            ) from exc
        return name
