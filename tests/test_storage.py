import io
from pathlib import Path

import pytest

from hr_backend.core.errors import StorageFault, ValidationFailed
from hr_backend.services.storage import (
    LocalStorageProvider,
    generate_file_name,
    sanitize_file_name,
    storage_key,
)


def _files(root: Path) -> list[Path]:
    return [p for p in root.rglob("*") if p.is_file()]


def test_generated_names_are_unique_and_sanitized():
    first = generate_file_name("../../etc/passwd")
    second = generate_file_name("../../etc/passwd")
    assert first != second
    assert "/" not in first and ".." not in first
    assert first.endswith("_passwd")
    assert sanitize_file_name("my scan (1).pdf") == "my_scan_1_.pdf"
    assert sanitize_file_name("") == "file"


def test_storage_key_layout():
    assert storage_key("employees", 12, "passport", "a.pdf") == "employees/12/passport/a.pdf"


@pytest.mark.parametrize("key", ["../outside.pdf", "/etc/passwd", "employees/../../x", "", "a\\b"])
def test_resolve_rejects_keys_outside_root(tmp_path: Path, key: str):
    storage = LocalStorageProvider(tmp_path)
    with pytest.raises(StorageFault):
        storage.resolve(key)


def test_put_file_round_trip_and_delete_prunes_dirs(tmp_path: Path):
    storage = LocalStorageProvider(tmp_path)
    data = b"%PDF-1.4 sample" * 100
    result = storage.put_file("employees/1/passport/x.pdf", io.BytesIO(data))
    assert result.size == len(data)
    assert storage.resolve("employees/1/passport/x.pdf").read_bytes() == data
    assert storage.exists("employees/1/passport/x.pdf")

    assert storage.delete("employees/1/passport/x.pdf") is True
    assert storage.delete("employees/1/passport/x.pdf") is False
    assert not (tmp_path / "employees").exists()


def test_put_file_over_limit_leaves_nothing(tmp_path: Path):
    storage = LocalStorageProvider(tmp_path)
    with pytest.raises(ValidationFailed) as exc:
        storage.put_file("branches/1/license/big.pdf", io.BytesIO(b"x" * 5000), max_bytes=1024)
    assert exc.value.status_code == 413
    assert _files(tmp_path) == []


def test_move_relocates_blob(tmp_path: Path):
    storage = LocalStorageProvider(tmp_path)
    storage.put(".staging/abc.upload", b"hello")
    storage.move(".staging/abc.upload", "branches/2/license/final.pdf")
    assert not storage.exists(".staging/abc.upload")
    assert storage.resolve("branches/2/license/final.pdf").read_bytes() == b"hello"
    with pytest.raises(StorageFault):
        storage.move(".staging/missing.upload", "branches/2/license/other.pdf")
