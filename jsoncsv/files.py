"""
Upload and download helpers around the conversion core.

- byte-size labels and upload size limits
- best-effort decoding of uploaded bytes to text
- download file naming
"""

from __future__ import annotations

import logging
import math
import time
from typing import Optional

from charset_normalizer import from_bytes

from .models import FileSizeCheck
from .rules import MAX_UPLOAD_MB

logger = logging.getLogger("jsoncsv.files")

SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_bytes(size: int) -> str:
    if size < 0:
        raise ValueError("size must not be negative")
    if size == 0:
        return "0 Bytes"

    k = 1024
    i = 0
    while i < len(SIZE_UNITS) - 1 and size >= k ** (i + 1):
        i += 1
    value = math.floor(size / k ** i * 100 + 0.5) / 100
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[i]}"


def validate_file_size(size_bytes: int, max_size_mb: float = MAX_UPLOAD_MB) -> FileSizeCheck:
    max_bytes = max_size_mb * 1024 * 1024
    if size_bytes > max_bytes:
        max_label = f"{max_size_mb:g}"
        return FileSizeCheck(
            valid=False,
            error=f"File size exceeds {max_label}MB limit ({format_bytes(size_bytes)})",
        )
    return FileSizeCheck(valid=True)


def decode_upload(raw: bytes) -> str:
    """
    Decode uploaded bytes to text.

    Rules:
    - Detect encoding best-effort via charset-normalizer.
    - A UTF-8 BOM is dropped rather than kept as a leading character.
    - If decoding fails, fall back to UTF-8, with replacement characters as a last resort.
    """
    if not raw:
        return ""

    detected: Optional[str] = None
    match = from_bytes(raw).best()
    if match is not None:
        detected = match.encoding

    decode_used = detected or "utf-8"
    if raw.startswith(b"\xef\xbb\xbf") and decode_used.lower().replace("-", "_") in ("utf_8", "utf8"):
        decode_used = "utf-8-sig"

    try:
        return raw.decode(decode_used)
    except (LookupError, UnicodeDecodeError):
        logger.warning("could not decode upload as %s, falling back to utf-8", decode_used)

    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        return raw.decode("utf-8-sig", errors="replace")


def download_filename(extension: str, now: Optional[float] = None) -> str:
    """Name offered for a converted download, e.g. ``converted-1700000000000.csv``."""
    stamp = int((time.time() if now is None else now) * 1000)
    return f"converted-{stamp}.{extension.lstrip('.')}"
