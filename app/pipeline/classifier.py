from app.queue.models import JobKind


def classify_media_type(mime_type: str | None) -> JobKind:
    """Route a declared MIME type to a media job kind.

    ``image/*`` and ``video/*`` get their own kinds; everything else, including
    unknown or empty types, goes to the document pipeline.
    """
    mime = (mime_type or "").strip().lower()
    if mime.startswith("image/"):
        return JobKind.IMAGE
    if mime.startswith("video/"):
        return JobKind.VIDEO
    return JobKind.DOCUMENT
