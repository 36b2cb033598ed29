"""
Document lifecycle: upload, replace, verify, soft delete and download for
employee and branch documents.

Every operation checks access against the branch that owns the document
before touching the database or blob storage. Blob writes happen before the
database commit and blob removals after it; a failed upload or replacement
removes whatever it already wrote.
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, BinaryIO, Optional, Type, Union

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.access import (
    Operation,
    Principal,
    PrincipalSource,
    Resource,
    allowed_roles,
    require_access,
    scope_query,
)
from ..core.config import ALLOWED_MIME_TYPES, employee_document_types, exclusive_document_types
from ..core.errors import Forbidden, NotFound, StorageFault, ValidationFailed, integrity_conflict_from, log_exception
from ..core.pagination import paginate
from ..models.branch import Branch
from ..models.document import BranchDocument, EmployeeDocument
from ..models.employee import Employee
from ..models.user import User
from .storage import LocalStorageProvider, generate_file_name, get_storage_provider, storage_key

logger = logging.getLogger("documents")

Document = Union[EmployeeDocument, BranchDocument]

_DOCUMENT_TYPE_RE = re.compile(r"^[a-z0-9_]{1,64}$")
EDITABLE_METADATA = ("description", "expiry_date")
CROSS_BRANCH_MESSAGE = "Access denied. You can only access documents from your own branch."


class OwnerKind(str, enum.Enum):
    EMPLOYEE = "employee"
    BRANCH = "branch"


@dataclass(frozen=True)
class _OwnerSpec:
    model: Type[Any]
    owner_model: Type[Any]
    owner_field: str
    storage_dir: str
    label: str


_SPECS = {
    OwnerKind.EMPLOYEE: _OwnerSpec(EmployeeDocument, Employee, "employee_id", "employees", "Employee"),
    OwnerKind.BRANCH: _OwnerSpec(BranchDocument, Branch, "branch_id", "branches", "Branch"),
}


def _spec(kind: OwnerKind) -> _OwnerSpec:
    return _SPECS[OwnerKind(kind)]


def _utc_now() -> datetime:
    return datetime.utcnow()


def normalize_document_type(kind: OwnerKind, raw: Optional[str]) -> str:
    value = (raw or "").strip().lower()
    if not value:
        raise ValidationFailed("Document type is required")
    if not _DOCUMENT_TYPE_RE.match(value):
        raise ValidationFailed("Document type may only contain lowercase letters, digits and underscores")
    if OwnerKind(kind) is OwnerKind.EMPLOYEE:
        allowed = employee_document_types()
        if value not in allowed:
            raise ValidationFailed("Invalid document type. Allowed types: " + ", ".join(sorted(allowed)))
    return value


def normalize_mime_type(raw: Optional[str]) -> str:
    value = (raw or "").split(";", 1)[0].strip().lower()
    if value not in ALLOWED_MIME_TYPES:
        raise ValidationFailed("Invalid file type. Only PDF, JPEG, PNG, and GIF files are allowed.")
    return value


def _file_extension(file_name: str) -> Optional[str]:
    suffix = Path(file_name or "").suffix.lower()
    return suffix[:16] or None


def _owner_branch_id(kind: OwnerKind, owner) -> Optional[int]:
    if OwnerKind(kind) is OwnerKind.BRANCH:
        return owner.id
    return owner.branch_id


def _load_active_owner(db: Session, kind: OwnerKind, owner_id: int):
    spec = _spec(kind)
    owner = db.get(spec.owner_model, owner_id)
    if owner is None or not owner.is_active:
        raise NotFound(f"{spec.label} not found")
    return owner


def _lock_owner(db: Session, kind: OwnerKind, owner_id: int) -> None:
    """
    Serialize document writers for one owner until the transaction ends.

    The UPDATE rewrites nothing but takes the owner's row lock (and SQLite's
    database write lock, where FOR UPDATE is ignored), so a second writer
    reads the siblings only after the first one has committed.
    """
    spec = _spec(kind)
    model = spec.owner_model
    result = db.execute(
        update(model)
        .where(model.id == owner_id, model.is_active.is_(True))
        .values(is_active=True, updated_at=model.updated_at)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFound(f"{spec.label} not found")


def _acting_user_id(db: Session, principal: Principal) -> Optional[int]:
    """Id of the acting user if it is a live users row; branch logins map to None."""
    if principal.source is not PrincipalSource.USER:
        return None
    if db.get(User, principal.id) is None:
        return None
    return principal.id


def _apply_metadata(doc: Document, changes: Optional[dict]) -> bool:
    changed = False
    for key in EDITABLE_METADATA:
        if changes and key in changes:
            setattr(doc, key, changes[key])
            changed = True
    return changed


def _remove_blob(storage: LocalStorageProvider, key: Optional[str], *, reason: str) -> None:
    if not key:
        return
    try:
        storage.delete(key)
    except Exception as exc:
        log_exception(logger, "Blob cleanup failed", extra={"key": key, "reason": reason}, exc=exc)


def _stage_blob(
    storage: LocalStorageProvider,
    *,
    source: BinaryIO,
    owner_dir: str,
    owner_id: int,
    document_type: str,
    file_name: str,
) -> tuple[str, int]:
    """Write the upload to a staging key, then move it to its canonical key."""
    staged = storage.staging_key()
    try:
        result = storage.put_file(staged, source)
        if result.size <= 0:
            raise ValidationFailed("No file uploaded or file is empty")
        key = storage_key(owner_dir, owner_id, document_type, generate_file_name(file_name))
        storage.move(staged, key)
    except BaseException:
        _remove_blob(storage, staged, reason="staging failed")
        raise
    return key, result.size


def _lock_active_rows(db: Session, kind: OwnerKind, owner_id: int, document_type: str) -> list:
    spec = _spec(kind)
    owner_col = getattr(spec.model, spec.owner_field)
    return (
        db.query(spec.model)
        .filter(
            owner_col == owner_id,
            spec.model.document_type == document_type,
            spec.model.is_active.is_(True),
        )
        .order_by(spec.model.id)
        .with_for_update()
        .populate_existing()
        .all()
    )


def deactivate_siblings(
    db: Session,
    kind: OwnerKind,
    owner_id: int,
    document_type: str,
    excluding_id: Optional[int] = None,
) -> list[int]:
    """
    Lock the owner and its active rows for `document_type`, then deactivate
    all but `excluding_id`. Does not commit.

    When `excluding_id` is given it must still be among the active rows,
    otherwise a concurrent writer already superseded it and NotFound is raised.
    """
    _lock_owner(db, kind, owner_id)
    rows = _lock_active_rows(db, kind, owner_id, document_type)
    if excluding_id is not None and excluding_id not in {row.id for row in rows}:
        raise NotFound("Document not found")
    deactivated: list[int] = []
    now = _utc_now()
    for row in rows:
        if row.id == excluding_id:
            continue
        row.is_active = False
        row.updated_at = now
        deactivated.append(row.id)
    return deactivated


def get_document(
    db: Session,
    kind: OwnerKind,
    document_id: int,
    principal: Principal,
    *,
    operation: Operation = Operation.READ,
    include_inactive: bool = False,
) -> Document:
    """
    Load one document for `operation`. A soft-deleted document or one whose
    owner is soft-deleted is NotFound unless `include_inactive` is set.
    """
    spec = _spec(kind)
    doc = db.get(spec.model, document_id)
    if doc is None or (not doc.is_active and not include_inactive):
        raise NotFound("Document not found")
    owner = db.get(spec.owner_model, doc.owner_id)
    if owner is None or (not owner.is_active and not include_inactive):
        raise NotFound("Document not found")
    require_access(
        principal,
        _owner_branch_id(kind, owner),
        operation,
        Resource.DOCUMENT,
        message=CROSS_BRANCH_MESSAGE,
    )
    return doc


def list_documents(
    db: Session,
    kind: OwnerKind,
    principal: Principal,
    *,
    owner_id: Optional[int] = None,
    document_type: Optional[str] = None,
    mime_type: Optional[str] = None,
    is_verified: Optional[bool] = None,
    search: Optional[str] = None,
    expiring_within_days: Optional[int] = None,
    include_inactive: bool = False,
    page: int = 1,
    page_size: int = 50,
) -> tuple[list, int]:
    spec = _spec(kind)
    model = spec.model
    owner_model = spec.owner_model
    query = db.query(model).join(owner_model, owner_model.id == getattr(model, spec.owner_field))
    if OwnerKind(kind) is OwnerKind.EMPLOYEE:
        query = scope_query(query, Employee.branch_id, principal)
    else:
        query = scope_query(query, model.branch_id, principal)

    if owner_id is not None:
        query = query.filter(getattr(model, spec.owner_field) == owner_id)
    if not include_inactive:
        query = query.filter(model.is_active.is_(True), owner_model.is_active.is_(True))
    if document_type:
        query = query.filter(model.document_type == document_type.strip().lower())
    if mime_type:
        query = query.filter(model.mime_type == mime_type.strip().lower())
    if is_verified is not None:
        query = query.filter(model.is_verified.is_(is_verified))
    if search and search.strip():
        query = query.filter(model.file_name.icontains(search.strip(), autoescape=True))
    if expiring_within_days is not None:
        today = date.today()
        query = query.filter(
            model.expiry_date.is_not(None),
            model.expiry_date >= today,
            model.expiry_date <= today + timedelta(days=max(expiring_within_days, 0)),
        )

    query = query.order_by(model.uploaded_at.desc(), model.id.desc())
    return paginate(query, page=page, page_size=page_size)


def upload(
    db: Session,
    kind: OwnerKind,
    owner_id: int,
    document_type: str,
    *,
    source: BinaryIO,
    file_name: str,
    mime_type: Optional[str],
    principal: Principal,
    metadata: Optional[dict] = None,
    storage: Optional[LocalStorageProvider] = None,
) -> Document:
    spec = _spec(kind)
    doc_type = normalize_document_type(kind, document_type)
    mime = normalize_mime_type(mime_type)
    if not (file_name or "").strip():
        raise ValidationFailed("No file uploaded")
    owner = _load_active_owner(db, kind, owner_id)
    require_access(
        principal,
        _owner_branch_id(kind, owner),
        Operation.CREATE,
        Resource.DOCUMENT,
        message=CROSS_BRANCH_MESSAGE,
    )

    storage = storage or get_storage_provider()
    key, size = _stage_blob(
        storage,
        source=source,
        owner_dir=spec.storage_dir,
        owner_id=owner_id,
        document_type=doc_type,
        file_name=file_name,
    )
    committed = False
    try:
        superseded: list[int] = []
        if doc_type in exclusive_document_types():
            superseded = deactivate_siblings(db, kind, owner_id, doc_type)
        doc = spec.model(
            document_type=doc_type,
            file_name=file_name,
            storage_path=key,
            mime_type=mime,
            file_size=size,
            file_extension=_file_extension(file_name),
            is_verified=False,
            is_active=True,
            uploaded_by=_acting_user_id(db, principal),
        )
        setattr(doc, spec.owner_field, owner_id)
        _apply_metadata(doc, metadata)
        db.add(doc)
        try:
            db.commit()
        except IntegrityError as exc:
            raise integrity_conflict_from(exc) from exc
        committed = True
    finally:
        if not committed:
            db.rollback()
            _remove_blob(storage, key, reason="upload aborted")
    db.refresh(doc)
    logger.info(
        "Document uploaded kind=%s id=%s owner=%s type=%s size=%s superseded=%s",
        kind.value,
        doc.id,
        owner_id,
        doc_type,
        size,
        superseded or None,
    )
    return doc


def replace(
    db: Session,
    kind: OwnerKind,
    document_id: int,
    principal: Principal,
    *,
    source: Optional[BinaryIO] = None,
    file_name: Optional[str] = None,
    mime_type: Optional[str] = None,
    metadata: Optional[dict] = None,
    storage: Optional[LocalStorageProvider] = None,
) -> Document:
    """
    Update a document's metadata and optionally swap its file.

    Metadata-only edits leave verification untouched. With a new file, the
    new blob is written first, the row (and, for exclusive types, its active
    siblings) is updated in one transaction, and the old blob is removed only
    after the commit.
    """
    spec = _spec(kind)
    doc = get_document(db, kind, document_id, principal, operation=Operation.UPDATE)

    if source is None:
        if _apply_metadata(doc, metadata):
            doc.updated_at = _utc_now()
            db.commit()
            db.refresh(doc)
            logger.info("Document metadata updated kind=%s id=%s", kind.value, doc.id)
        return doc

    mime = normalize_mime_type(mime_type)
    if not (file_name or "").strip():
        raise ValidationFailed("No file uploaded")
    storage = storage or get_storage_provider()
    owner_id = doc.owner_id
    new_key, size = _stage_blob(
        storage,
        source=source,
        owner_dir=spec.storage_dir,
        owner_id=owner_id,
        document_type=doc.document_type,
        file_name=file_name,
    )
    old_key: Optional[str] = None
    committed = False
    try:
        _lock_owner(db, kind, owner_id)
        # Re-read under the lock; a concurrent replace may have moved the blob.
        db.refresh(doc)
        if not doc.is_active:
            raise NotFound("Document not found")
        old_key = doc.storage_path
        superseded: list[int] = []
        if doc.document_type in exclusive_document_types():
            superseded = deactivate_siblings(db, kind, owner_id, doc.document_type, excluding_id=doc.id)
        now = _utc_now()
        doc.file_name = file_name
        doc.storage_path = new_key
        doc.mime_type = mime
        doc.file_size = size
        doc.file_extension = _file_extension(file_name)
        doc.uploaded_at = now
        doc.updated_at = now
        _apply_metadata(doc, metadata)
        try:
            db.commit()
        except IntegrityError as exc:
            raise integrity_conflict_from(exc) from exc
        committed = True
    finally:
        if not committed:
            db.rollback()
            _remove_blob(storage, new_key, reason="replace aborted")
    _remove_blob(storage, old_key, reason="replaced")
    db.refresh(doc)
    logger.info(
        "Document file replaced kind=%s id=%s type=%s superseded=%s",
        kind.value,
        doc.id,
        doc.document_type,
        superseded or None,
    )
    return doc


def verify(db: Session, kind: OwnerKind, document_id: int, principal: Principal) -> Document:
    if principal.role not in allowed_roles(Resource.DOCUMENT, Operation.VERIFY):
        raise Forbidden("Only main managers can verify documents")
    doc = get_document(db, kind, document_id, principal, operation=Operation.VERIFY)
    if doc.is_verified:
        return doc
    doc.is_verified = True
    doc.verified_by = _acting_user_id(db, principal)
    doc.verified_at = _utc_now()
    db.commit()
    db.refresh(doc)
    logger.info("Document verified kind=%s id=%s by=%s", kind.value, doc.id, principal.username)
    return doc


def soft_delete(
    db: Session,
    kind: OwnerKind,
    document_id: int,
    principal: Principal,
    *,
    purge_file: bool = False,
    storage: Optional[LocalStorageProvider] = None,
) -> Document:
    doc = get_document(db, kind, document_id, principal, operation=Operation.DELETE)
    doc.is_active = False
    doc.updated_at = _utc_now()
    db.commit()
    db.refresh(doc)
    if purge_file:
        _remove_blob(storage or get_storage_provider(), doc.storage_path, reason="purged")
    logger.info("Document deleted kind=%s id=%s purge_file=%s", kind.value, doc.id, purge_file)
    return doc


def open_document(
    db: Session,
    kind: OwnerKind,
    document_id: int,
    principal: Principal,
    *,
    storage: Optional[LocalStorageProvider] = None,
) -> tuple[Document, Path]:
    """Return the document and the on-disk path of its blob."""
    doc = get_document(db, kind, document_id, principal)
    storage = storage or get_storage_provider()
    if not storage.exists(doc.storage_path):
        logger.error(
            "Blob missing for active document kind=%s id=%s key=%s",
            kind.value,
            doc.id,
            doc.storage_path,
        )
        raise StorageFault("Document file is missing from storage")
    return doc, storage.resolve(doc.storage_path)
