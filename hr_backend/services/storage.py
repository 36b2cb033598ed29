"""
Blob storage for uploaded documents.

Blobs are addressed by a relative storage key such as
`employees/12/passport/20240101_101500_1a2b3c4d_scan.pdf`. The key is the only
thing persisted; absolute paths are derived from the storage root on demand.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import tempfile
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Optional

from ..core.config import document_storage_dir
from ..core.errors import StorageFault
from ..core.request_limits import copy_upload_stream

logger = logging.getLogger("storage")

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
STAGING_DIR = ".staging"


@dataclass
class StorageResult:
    storage_key: str
    size: int


def sanitize_file_name(name: Optional[str]) -> str:
    base = os.path.basename((name or "").replace("\\", "/")).strip()
    cleaned = _UNSAFE_CHARS.sub("_", base).strip("._")
    if not cleaned:
        cleaned = "file"
    if len(cleaned) > 100:
        stem, dot, ext = cleaned.rpartition(".")
        if dot and len(ext) <= 10:
            cleaned = stem[: 100 - len(ext) - 1] + "." + ext
        else:
            cleaned = cleaned[:100]
    return cleaned


def generate_file_name(original_name: Optional[str]) -> str:
    """UTC timestamp + random token + sanitized original name."""
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    return f"{stamp}_{uuid.uuid4().hex[:8]}_{sanitize_file_name(original_name)}"


def storage_key(owner_dir: str, owner_id: int, document_type: str, file_name: str) -> str:
    return f"{owner_dir}/{int(owner_id)}/{document_type}/{file_name}"


class StorageProvider:
    def put(self, key: str, data: bytes) -> StorageResult:
        raise NotImplementedError

    def put_file(self, key: str, source: BinaryIO, *, max_bytes: Optional[int] = None) -> StorageResult:
        raise NotImplementedError

    def exists(self, key: str) -> bool:
        raise NotImplementedError

    def delete(self, key: str) -> bool:
        raise NotImplementedError

    def move(self, src_key: str, dest_key: str) -> None:
        raise NotImplementedError

    def resolve(self, key: str) -> Path:
        raise NotImplementedError


class LocalStorageProvider(StorageProvider):
    def __init__(self, root: Optional[Path] = None) -> None:
        self.root = (root or document_storage_dir()).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def resolve(self, key: str) -> Path:
        if not key or key.startswith("/") or "\\" in key:
            raise StorageFault(f"Invalid storage key: {key!r}")
        path = (self.root / key).resolve()
        if path == self.root or self.root not in path.parents:
            raise StorageFault(f"Storage key escapes storage root: {key!r}")
        return path

    def put(self, key: str, data: bytes) -> StorageResult:
        path = self.resolve(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return StorageResult(storage_key=key, size=len(data))

    def put_file(self, key: str, source: BinaryIO, *, max_bytes: Optional[int] = None) -> StorageResult:
        """
        Stream `source` to `key` via a temp file in the same directory.

        A partially written file never appears under `key`; if the size limit
        trips or the copy fails, the temp file is removed and the error
        propagates.
        """
        path = self.resolve(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path: Optional[Path] = None
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=path.name, suffix=".part", dir=str(path.parent))
            tmp_path = Path(tmp_name)
            with os.fdopen(fd, "wb") as out:
                size = copy_upload_stream(source, out, max_bytes=max_bytes)
                out.flush()
                os.fsync(out.fileno())
            os.replace(str(tmp_path), str(path))
            tmp_path = None
            return StorageResult(storage_key=key, size=size)
        finally:
            if tmp_path is not None and tmp_path.exists():
                try:
                    tmp_path.unlink(missing_ok=True)
                except Exception as exc:
                    logger.warning("Failed to cleanup partial upload path=%s err=%s", tmp_path, exc)

    def exists(self, key: str) -> bool:
        try:
            return self.resolve(key).is_file()
        except StorageFault:
            return False

    def delete(self, key: str) -> bool:
        path = self.resolve(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        self._prune_empty_dirs(path.parent)
        return True

    def move(self, src_key: str, dest_key: str) -> None:
        src = self.resolve(src_key)
        dest = self.resolve(dest_key)
        if not src.is_file():
            raise StorageFault(f"Blob not found: {src_key}")
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(src), str(dest))
        self._prune_empty_dirs(src.parent)

    def staging_key(self) -> str:
        return f"{STAGING_DIR}/{uuid.uuid4().hex}.upload"

    def _prune_empty_dirs(self, directory: Path) -> None:
        current = directory
        while current != self.root and self.root in current.parents:
            try:
                current.rmdir()
            except OSError:
                return
            current = current.parent


def get_storage_provider() -> LocalStorageProvider:
    return LocalStorageProvider()
