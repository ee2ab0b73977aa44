import random
import re
import time
import unicodedata
from pathlib import PurePath

_WHITESPACE = re.compile(r"\s+")
_UNSAFE = re.compile(r"[\\/:*?\"<>|\x00-\x1f]")


def sanitize_filename(name: str) -> str:
    """Normalize a client-declared filename for use on disk.

    Drops any directory part, NFC-normalizes, replaces runs of whitespace with
    ``_`` and strips characters that are unsafe in file names.
    """
    base = PurePath(name.replace("\\", "/")).name
    base = unicodedata.normalize("NFC", base)
    base = _WHITESPACE.sub("_", base.strip())
    base = _UNSAFE.sub("", base)
    return base or "file"


def split_extension(name: str) -> tuple[str, str]:
    """Split at the final dot: ``a.b.png`` -> (``a.b``, ``.png``).

    A leading dot alone (``.env``) is not an extension.
    """
    index = name.rfind(".")
    if index <= 0:
        return name, ""
    return name[:index], name[index:]


def unique_stored_filename(original_name: str) -> str:
    """Stored name: sanitized base + ``-<epoch millis>-<random>`` + extension.

    Two uploads with the same original name get different stored names.
    """
    base, ext = split_extension(sanitize_filename(original_name))
    suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    return f"{base}-{suffix}{ext}"


def preview_filename(stored_name: str, extension: str) -> str:
    """Deterministic preview name derived from the stored file's base name."""
    base, _ext = split_extension(stored_name)
    return f"thumb_{base}{extension}"
