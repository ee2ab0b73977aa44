from pathlib import Path

from app.preview.base import BasePreviewGenerator
from app.preview.exceptions import PreviewGenerationError
from app.preview.external import run_tool
from app.storage.filenames import preview_filename


class VideoPreviewGenerator(BasePreviewGenerator):
    """Captures one frame at a fixed fraction of the video's duration."""

    def __init__(
        self,
        ffmpeg_binary: str = "ffmpeg",
        ffprobe_binary: str = "ffprobe",
        frame_fraction: float = 0.3,
        width: int = 640,
        height: int = 360,
        timeout_seconds: int = 120,
    ) -> None:
        if not 0.0 <= frame_fraction < 1.0:
            raise ValueError("frame_fraction must be in [0, 1)")
        self._ffmpeg = ffmpeg_binary
        self._ffprobe = ffprobe_binary
        self._frame_fraction = frame_fraction
        self._width = width
        self._height = height
        self._timeout = timeout_seconds

    def generate(
        self,
        input_path: Path,
        output_dir: Path,
        declared_name: str,
        mime_type: str | None = None,
    ) -> str:
        output_dir.mkdir(parents=True, exist_ok=True)
        name = preview_filename(input_path.name, ".jpg")
        timestamp = self.probe_duration(input_path) * self._frame_fraction
        run_tool(
            [
                self._ffmpeg,
                "-hide_banner",
                "-loglevel", "error",
                "-y",
                "-ss", f"{timestamp:.3f}",
                "-i", str(input_path),
                "-frames:v", "1",
                "-vf", f"scale={self._width}:{self._height}",
                str(output_dir / name),
            ],
            self._timeout,
        )
        if not (output_dir / name).exists():
            raise PreviewGenerationError(f"ffmpeg produced no frame for {declared_name}")
        return name

    def probe_duration(self, input_path: Path) -> float:
        """Duration in seconds as reported by ffprobe."""
        output = run_tool(
            [
                self._ffprobe,
                "-v", "error",
                "-show_entries", "format=duration",
                "-of", "default=noprint_wrappers=1:nokey=1",
                str(input_path),
            ],
            self._timeout,
        )
        try:
            duration = float(output.strip())
        except ValueError as exc:
            raise PreviewGenerationError(
                f"ffprobe returned no duration for {input_path.name}: {output.strip()!r}"
            ) from exc
        if duration < 0:
            raise PreviewGenerationError(f"negative duration for {input_path.name}")
        return duration
