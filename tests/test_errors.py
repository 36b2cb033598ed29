import logging

import pytest
from sqlalchemy.exc import IntegrityError

from hr_backend.core import errors


def _integrity(message: str) -> IntegrityError:
    return IntegrityError("INSERT ...", {}, Exception(message))


def test_log_exception_includes_context(caplog):
    logger = logging.getLogger("test_errors")
    caplog.set_level(logging.ERROR)
    try:
        raise RuntimeError("boom")
    except RuntimeError as exc:
        errors.log_exception(logger, "Blob cleanup failed", extra={"key": "a/b.pdf", "skip": None}, exc=exc)
    assert any("Blob cleanup failed key=a/b.pdf: boom" in rec.getMessage() for rec in caplog.records)


@pytest.mark.parametrize(
    "message,kind,status",
    [
        ("UNIQUE constraint failed: employees.employee_id_number", "duplicate", 409),
        ('duplicate key value violates unique constraint "users_username_key"', "duplicate", 409),
        ("FOREIGN KEY constraint failed", "missing_reference", 400),
        ('insert or update on table "employees" violates foreign key constraint', "missing_reference", 400),
        ("NOT NULL constraint failed: employees.first_name", "missing_reference", 400),
    ],
)
def test_integrity_errors_are_classified(message, kind, status):
    conflict = errors.integrity_conflict_from(_integrity(message))
    assert conflict.kind == kind
    assert conflict.status_code == status


def test_error_status_codes():
    assert errors.Unauthenticated("x").status_code == 401
    assert errors.Forbidden("x").status_code == 403
    assert errors.NotFound("x").status_code == 404
    assert errors.ValidationFailed("x").status_code == 400
    assert errors.ValidationFailed("x", status_code=413).status_code == 413
    assert errors.StorageFault("x").status_code == 500
