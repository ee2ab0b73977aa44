from app.config.settings import Settings
from app.pdf.factory import PdfRasterizerFactory
from app.preview.base import BasePreviewGenerator
from app.preview.document_generator import DocumentPreviewGenerator
from app.preview.image_generator import ImagePreviewGenerator
from app.preview.placeholder_generator import PlaceholderPreviewGenerator
from app.preview.video_generator import VideoPreviewGenerator
from app.queue.models import JobKind


class PreviewGeneratorRegistry:
    """Picks the preview variant for a classified media kind."""

    def __init__(self, generators: dict[JobKind, BasePreviewGenerator]) -> None:
        self._generators = dict(generators)

    def for_kind(self, kind: JobKind | str) -> BasePreviewGenerator:
        kind = JobKind(kind)
        generator = self._generators.get(kind)
        if generator is None:
            raise ValueError(
                f"No preview generator for '{kind.value}'. "
                f"Registered: {[k.value for k in self._generators]}"
            )
        return generator

    @classmethod
    def from_settings(cls, settings: Settings) -> "PreviewGeneratorRegistry":
        timeout = settings.external_tool_timeout_seconds
        placeholder = PlaceholderPreviewGenerator()
        return cls(
            {
                JobKind.IMAGE: ImagePreviewGenerator(max_size=settings.thumbnail_max_size),
                JobKind.VIDEO: VideoPreviewGenerator(
                    ffmpeg_binary=settings.ffmpeg_binary,
                    ffprobe_binary=settings.ffprobe_binary,
                    frame_fraction=settings.video_frame_fraction,
                    width=settings.video_frame_width,
                    height=settings.video_frame_height,
                    timeout_seconds=timeout,
                ),
                JobKind.DOCUMENT: DocumentPreviewGenerator(
                    rasterizer=PdfRasterizerFactory.create(settings),
                    placeholder=placeholder,
                    soffice_binary=settings.soffice_binary,
                    dpi=settings.pdf_render_dpi,
                    timeout_seconds=timeout,
                ),
            }
        )
