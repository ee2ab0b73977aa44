from abc import ABC, abstractmethod
from pathlib import Path


class BasePreviewGenerator(ABC):
    """Contract shared by every preview variant."""

    @abstractmethod
    def generate(
        self,
        input_path: Path,
        output_dir: Path,
        declared_name: str,
        mime_type: str | None = None,
    ) -> str:
        """Derive a preview of ``input_path`` inside ``output_dir``.

        Args:
            input_path: Stored source file. It is never modified or moved.
            output_dir: Directory for the preview; created when missing.
            declared_name: Client-declared original filename, for labels.
            mime_type: Declared MIME type, when the variant needs it.

        Returns:
            The preview's filename (not a path) inside ``output_dir``.

        Raises:
            PreviewGenerationError: if the source cannot be decoded or an
                external tool fails.
        """
