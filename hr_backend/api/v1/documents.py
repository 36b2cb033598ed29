"""
Document APIs.

`build_document_router` produces the same set of endpoints for each document
owner kind; this module mounts the employee documents router and
`branch_documents` mounts the branch one.
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Type

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from ...core.access import Principal, branch_scope
from ...core.auth import get_current_principal, require_main_manager
from ...core.db import get_db
from ...core.errors import ValidationFailed
from ...core.pagination import clamp_page_size, set_pagination_headers
from ...core.request_limits import enforce_upload_limit
from ...schemas.document import DocumentOut, DocumentPreview, EmployeeDocumentOut
from ...services import documents as document_service
from ...services.documents import OwnerKind

INLINE_PREVIEW_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif"}


def _parse_date(raw: Optional[str], field: str) -> Optional[date]:
    if raw is None or not raw.strip():
        return None
    try:
        return date.fromisoformat(raw.strip())
    except ValueError as exc:
        raise ValidationFailed(f"{field} must be a date in YYYY-MM-DD format") from exc


def _metadata_from_form(description: Optional[str], expiry_date: Optional[str]) -> dict:
    """Only fields present in the form are returned; an empty string clears a value."""
    changes: dict = {}
    if description is not None:
        changes["description"] = description.strip() or None
    if expiry_date is not None:
        changes["expiry_date"] = _parse_date(expiry_date, "expiry_date")
    return changes


def build_document_router(
    kind: OwnerKind,
    *,
    prefix: str,
    tag: str,
    owner_param: str,
    out_schema: Type[DocumentOut],
) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[tag])

    def _out(doc) -> dict:
        return out_schema.model_validate(doc).model_dump()

    def _resolve_owner_id(owner_id: Optional[int], principal: Principal) -> int:
        if owner_id is not None:
            return owner_id
        # Branch managers default to their own branch.
        if kind is OwnerKind.BRANCH:
            scope = branch_scope(principal)
            if scope is not None:
                return scope
        raise ValidationFailed(f"{owner_param} is required")

    @router.get("")
    def list_documents(
        response: Response,
        owner_id: Optional[int] = Query(None, alias=owner_param),
        document_type: Optional[str] = Query(None),
        mime_type: Optional[str] = Query(None),
        is_verified: Optional[bool] = Query(None),
        search: Optional[str] = Query(None),
        expiring_within_days: Optional[int] = Query(None, ge=0),
        include_inactive: bool = Query(False),
        page: int = Query(1, ge=1),
        page_size: int = Query(50, ge=1),
        db: Session = Depends(get_db),
        principal: Principal = Depends(get_current_principal),
    ) -> dict:
        page_size = clamp_page_size(page_size)
        items, total = document_service.list_documents(
            db,
            kind,
            principal,
            owner_id=owner_id,
            document_type=document_type,
            mime_type=mime_type,
            is_verified=is_verified,
            search=search,
            expiring_within_days=expiring_within_days,
            include_inactive=include_inactive,
            page=page,
            page_size=page_size,
        )
        set_pagination_headers(response, total=total, page=page, page_size=page_size)
        return {
            "items": [_out(d) for d in items],
            "total": total,
            "page": page,
            "page_size": page_size,
        }

    @router.post("", status_code=201, dependencies=[Depends(enforce_upload_limit)])
    def upload_document(
        document_type: str = Form(...),
        owner_id: Optional[int] = Form(None, alias=owner_param),
        description: Optional[str] = Form(None),
        expiry_date: Optional[str] = Form(None),
        file: UploadFile = File(...),
        db: Session = Depends(get_db),
        principal: Principal = Depends(get_current_principal),
    ) -> dict:
        doc = document_service.upload(
            db,
            kind,
            _resolve_owner_id(owner_id, principal),
            document_type,
            source=file.file,
            file_name=file.filename or "",
            mime_type=file.content_type,
            principal=principal,
            metadata=_metadata_from_form(description, expiry_date),
        )
        return {"message": "Document uploaded successfully", "document": _out(doc)}

    @router.get("/{document_id}")
    def get_document(
        document_id: int,
        include_inactive: bool = Query(False),
        db: Session = Depends(get_db),
        principal: Principal = Depends(get_current_principal),
    ) -> dict:
        doc = document_service.get_document(db, kind, document_id, principal, include_inactive=include_inactive)
        return _out(doc)

    @router.put("/{document_id}", dependencies=[Depends(enforce_upload_limit)])
    def update_document(
        document_id: int,
        description: Optional[str] = Form(None),
        expiry_date: Optional[str] = Form(None),
        file: Optional[UploadFile] = File(None),
        db: Session = Depends(get_db),
        principal: Principal = Depends(get_current_principal),
    ) -> dict:
        metadata = _metadata_from_form(description, expiry_date)
        if file is not None and file.filename:
            doc = document_service.replace(
                db,
                kind,
                document_id,
                principal,
                source=file.file,
                file_name=file.filename,
                mime_type=file.content_type,
                metadata=metadata,
            )
        else:
            doc = document_service.replace(db, kind, document_id, principal, metadata=metadata)
        return {"message": "Document updated successfully", "document": _out(doc)}

    @router.delete("/{document_id}")
    def delete_document(
        document_id: int,
        purge_file: bool = Query(False),
        db: Session = Depends(get_db),
        principal: Principal = Depends(get_current_principal),
    ) -> dict:
        doc = document_service.soft_delete(db, kind, document_id, principal, purge_file=purge_file)
        return {"status": "ok", "message": "Document deleted successfully", "document_id": doc.id}

    @router.post("/{document_id}/verify")
    def verify_document(
        document_id: int,
        db: Session = Depends(get_db),
        principal: Principal = Depends(require_main_manager),
    ) -> dict:
        doc = document_service.verify(db, kind, document_id, principal)
        return {"message": "Document verified successfully", "document": _out(doc)}

    @router.get("/{document_id}/download")
    def download_document(
        document_id: int,
        db: Session = Depends(get_db),
        principal: Principal = Depends(get_current_principal),
    ) -> FileResponse:
        doc, path = document_service.open_document(db, kind, document_id, principal)
        return FileResponse(path, media_type=doc.mime_type, filename=doc.file_name)

    @router.get("/{document_id}/preview")
    def preview_document(
        document_id: int,
        db: Session = Depends(get_db),
        principal: Principal = Depends(get_current_principal),
    ):
        doc, path = document_service.open_document(db, kind, document_id, principal)
        if doc.mime_type in INLINE_PREVIEW_TYPES:
            return FileResponse(
                path,
                media_type=doc.mime_type,
                filename=doc.file_name,
                content_disposition_type="inline",
            )
        return DocumentPreview(
            id=doc.id,
            file_name=doc.file_name,
            mime_type=doc.mime_type,
            file_size=doc.file_size,
            document_type=doc.document_type,
            download_url=f"{prefix}/{doc.id}/download",
        ).model_dump()

    return router


router = build_document_router(
    OwnerKind.EMPLOYEE,
    prefix="/api/v1/documents",
    tag="documents",
    owner_param="employee_id",
    out_schema=EmployeeDocumentOut,
)
