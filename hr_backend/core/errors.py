"""
Error taxonomy and shared error-handling helpers.

Services raise the domain exceptions below; the API layer translates them
into JSON responses through a single exception handler.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError


def _format_extra(extra: dict | None) -> str:
    if not extra:
        return ""
    parts: list[str] = []
    for key, value in extra.items():
        if value is None:
            continue
        parts.append(f"{key}={value}")
    return f" {' '.join(parts)}" if parts else ""


def log_exception(logger: logging.Logger, msg: str, *, extra: dict | None = None, exc: Exception | None = None) -> None:
    """
    Log an exception with context. Uses logger.exception for stack traces.
    """
    suffix = _format_extra(extra)
    if exc is not None:
        logger.error(f"{msg}{suffix}: {exc}", exc_info=exc)
        return
    logger.exception(f"{msg}{suffix}")


class HRError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    code = "internal_error"

    def __init__(self, detail: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(detail)
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code


class Unauthenticated(HRError):
    status_code = 401
    code = "unauthenticated"


class Forbidden(HRError):
    status_code = 403
    code = "forbidden"


class NotFound(HRError):
    status_code = 404
    code = "not_found"


class ValidationFailed(HRError):
    status_code = 400
    code = "validation_failed"


class IntegrityConflict(HRError):
    """Store rejected a write. `kind` is "duplicate" or "missing_reference"."""

    status_code = 409
    code = "conflict"

    def __init__(self, detail: str, *, kind: str = "duplicate") -> None:
        super().__init__(detail, status_code=409 if kind == "duplicate" else 400)
        self.kind = kind


class StorageFault(HRError):
    status_code = 500
    code = "storage_fault"


def integrity_conflict_from(exc: IntegrityError) -> IntegrityConflict:
    message = str(getattr(exc, "orig", None) or exc)
    lowered = message.lower()
    if "foreign key" in lowered or "violates foreign" in lowered:
        return IntegrityConflict("Invalid reference. Related record does not exist.", kind="missing_reference")
    if "not null" in lowered:
        return IntegrityConflict("Required field is missing.", kind="missing_reference")
    return IntegrityConflict("Duplicate entry. This record already exists.", kind="duplicate")


async def hr_error_handler(request: Request, exc: HRError) -> JSONResponse:
    logger = logging.getLogger("api")
    if exc.status_code >= 500:
        logger.error("%s %s failed code=%s detail=%s", request.method, request.url.path, exc.code, exc.detail)
    else:
        logger.info("%s %s rejected code=%s detail=%s", request.method, request.url.path, exc.code, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
        headers={"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = jsonable_encoder(exc.errors())
    logging.getLogger("api").info("%s %s rejected code=validation_failed errors=%s", request.method, request.url.path, len(errors))
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    detail = f"{location}: {first.get('msg')}" if location else "Invalid request"
    return JSONResponse(
        status_code=400,
        content={"detail": detail, "code": ValidationFailed.code, "errors": errors},
    )
