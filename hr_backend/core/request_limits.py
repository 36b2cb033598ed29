"""Upload size limits."""

from __future__ import annotations

from typing import BinaryIO, Optional

from fastapi import Request

from .config import max_upload_bytes
from .errors import ValidationFailed

CHUNK_SIZE = 1024 * 1024
# Multipart framing and form fields on top of the file itself.
MULTIPART_OVERHEAD_BYTES = 64 * 1024


def _too_large() -> ValidationFailed:
    limit_mb = max_upload_bytes() / (1024 * 1024)
    return ValidationFailed(f"File size exceeds maximum limit of {limit_mb:g}MB", status_code=413)


def enforce_upload_limit(request: Request) -> None:
    length = request.headers.get("content-length")
    if not length:
        return
    try:
        too_large = int(length) > max_upload_bytes() + MULTIPART_OVERHEAD_BYTES
    except ValueError:
        return
    if too_large:
        raise _too_large()


def copy_upload_stream(source: BinaryIO, dest: BinaryIO, *, max_bytes: Optional[int] = None) -> int:
    """Copy `source` into `dest` in chunks, failing once `max_bytes` is exceeded."""
    limit = max_bytes or max_upload_bytes()
    copied = 0
    while True:
        chunk = source.read(CHUNK_SIZE)
        if not chunk:
            break
        copied += len(chunk)
        if copied > limit:
            raise _too_large()
        dest.write(chunk)
    return copied
