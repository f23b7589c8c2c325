from __future__ import annotations

import re
import secrets
import time

SAFE_FILENAME_REGEX = re.compile(r"[a-zA-Z0-9._-]+")
_EXTENSION_STRIP_REGEX = re.compile(r"[^A-Za-z0-9]")
DEFAULT_EXTENSION = "bin"


def validate_filename(filename: str) -> bool:
    """Reject anything that could escape the upload directory."""
    if not filename or ".." in filename or filename.startswith("/") or "\\" in filename:
        return False
    return bool(SAFE_FILENAME_REGEX.fullmatch(filename))


def generate_secure_filename(original_name: str) -> str:
    """
    Build `{epoch_millis}_{16 hex}.{ext}` for storage.

    Only the extension of the client's name survives, stripped down to
    alphanumerics. Names without one get `.bin`.
    """
    name = original_name or ""
    ext = name.rsplit(".", 1)[-1] if "." in name else ""
    ext = _EXTENSION_STRIP_REGEX.sub("", ext) or DEFAULT_EXTENSION
    timestamp = int(time.time() * 1000)
    random_part = secrets.token_hex(8)
    return f"{timestamp}_{random_part}.{ext}"
