from pathlib import Path
from unittest.mock import patch

import pytest

from app.preview.exceptions import ExternalToolError, PreviewGenerationError
from app.preview.video_generator import VideoPreviewGenerator


def _fake_tools(duration: str = "10.0", write_frame: bool = True):  # type: ignore[no-untyped-def]
    """side_effect for run_tool: ffprobe prints a duration, ffmpeg writes the frame."""

    def fake(args: list[str], timeout_seconds: int) -> str:
        if args[0] == "ffprobe":
            return f"{duration}\n"
        if write_frame:
            Path(args[-1]).write_bytes(b"jpeg")
        return ""

    return fake


class TestVideoPreviewGenerator:
    def test_captures_frame_at_fraction_of_duration(self, tmp_path: Path) -> None:
        source = tmp_path / "clip-1-2.mp4"
        source.write_bytes(b"video")

        with patch("app.preview.video_generator.run_tool", side_effect=_fake_tools()) as mock_run:
            name = VideoPreviewGenerator(timeout_seconds=45).generate(
                source, tmp_path / "thumbs", "clip.mp4"
            )

        assert name == "thumb_clip-1-2.jpg"
        assert (tmp_path / "thumbs" / name).exists()
        ffmpeg_args, timeout = mock_run.call_args_list[1].args
        assert ffmpeg_args[ffmpeg_args.index("-ss") + 1] == "3.000"
        assert ffmpeg_args[ffmpeg_args.index("-vf") + 1] == "scale=640:360"
        assert ffmpeg_args[ffmpeg_args.index("-frames:v") + 1] == "1"
        assert timeout == 45

    def test_missing_output_raises(self, tmp_path: Path) -> None:
        source = tmp_path / "clip-1-2.mp4"
        source.write_bytes(b"video")

        with patch(
            "app.preview.video_generator.run_tool",
            side_effect=_fake_tools(write_frame=False),
        ):
            with pytest.raises(PreviewGenerationError, match="no frame"):
                VideoPreviewGenerator().generate(source, tmp_path / "thumbs", "clip.mp4")

    def test_unparseable_duration_raises(self, tmp_path: Path) -> None:
        source = tmp_path / "clip-1-2.mp4"
        source.write_bytes(b"video")

        with patch(
            "app.preview.video_generator.run_tool", side_effect=_fake_tools(duration="N/A")
        ):
            with pytest.raises(PreviewGenerationError, match="no duration"):
                VideoPreviewGenerator().generate(source, tmp_path / "thumbs", "clip.mp4")

    def test_tool_failure_propagates(self, tmp_path: Path) -> None:
        with patch(
            "app.preview.video_generator.run_tool",
            side_effect=ExternalToolError("ffprobe is not installed"),
        ):
            with pytest.raises(ExternalToolError):
                VideoPreviewGenerator().generate(tmp_path / "x.mp4", tmp_path, "x.mp4")

    def test_rejects_fraction_outside_range(self) -> None:
        with pytest.raises(ValueError):
            VideoPreviewGenerator(frame_fraction=1.0)
