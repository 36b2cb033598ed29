"""
Branch CRUD. Branches are soft-deleted only.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.access import Operation, Principal, Resource, require_access, scope_query
from ..core.errors import NotFound, integrity_conflict_from
from ..core.pagination import paginate
from ..core.security import hash_password
from ..models.branch import Branch
from ..schemas.branch import BranchCreate, BranchUpdate
from .credentials import ensure_username_available

logger = logging.getLogger("branches")


def _commit(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise integrity_conflict_from(exc) from exc


def list_branches(
    db: Session,
    principal: Principal,
    *,
    search: Optional[str] = None,
    kind: Optional[str] = None,
    include_inactive: bool = False,
    page: int = 1,
    page_size: int = 50,
) -> tuple[list[Branch], int]:
    query = scope_query(db.query(Branch), Branch.id, principal)
    if not include_inactive:
        query = query.filter(Branch.is_active.is_(True))
    if kind:
        query = query.filter(Branch.kind == kind)
    if search and search.strip():
        term = search.strip()
        query = query.filter(
            or_(
                Branch.name.icontains(term, autoescape=True),
                Branch.location.icontains(term, autoescape=True),
            )
        )
    query = query.order_by(Branch.name.asc(), Branch.id.asc())
    return paginate(query, page=page, page_size=page_size)


def get_branch(
    db: Session,
    branch_id: int,
    principal: Principal,
    *,
    operation: Operation = Operation.READ,
    include_inactive: bool = False,
) -> Branch:
    branch = db.get(Branch, branch_id)
    if branch is None or (not branch.is_active and not include_inactive):
        raise NotFound("Branch not found")
    require_access(
        principal,
        branch.id,
        operation,
        Resource.BRANCH,
        message="Access denied. You can only access your own branch.",
    )
    return branch


def create_branch(db: Session, payload: BranchCreate, principal: Principal) -> Branch:
    require_access(principal, None, Operation.CREATE, Resource.BRANCH, message="Only main managers can create branches")
    username = ensure_username_available(db, payload.username)
    branch = Branch(
        name=payload.name.strip(),
        location=payload.location.strip(),
        kind=payload.kind.value,
        username=username,
        password_hash=hash_password(payload.password),
        is_active=True,
    )
    db.add(branch)
    _commit(db)
    db.refresh(branch)
    logger.info("Branch created id=%s name=%s", branch.id, branch.name)
    return branch


def update_branch(db: Session, branch_id: int, payload: BranchUpdate, principal: Principal) -> Branch:
    branch = get_branch(db, branch_id, principal, operation=Operation.UPDATE, include_inactive=True)
    changes = payload.model_dump(exclude_unset=True)
    if "username" in changes and changes["username"] is not None:
        branch.username = ensure_username_available(db, changes.pop("username"), exclude_branch_id=branch.id)
    password = changes.pop("password", None)
    if password:
        branch.password_hash = hash_password(password)
    for key, value in changes.items():
        if value is None:
            continue
        if key == "kind":
            value = value.value
        setattr(branch, key, value)
    _commit(db)
    db.refresh(branch)
    logger.info("Branch updated id=%s fields=%s", branch.id, ",".join(sorted(payload.model_fields_set)))
    return branch


def delete_branch(db: Session, branch_id: int, principal: Principal) -> Branch:
    branch = get_branch(db, branch_id, principal, operation=Operation.DELETE)
    branch.is_active = False
    _commit(db)
    db.refresh(branch)
    logger.info("Branch deactivated id=%s", branch.id)
    return branch
