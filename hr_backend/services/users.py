"""
User account management for main managers.

Only branch manager accounts are created here; the main manager account is
seeded at startup.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.access import Operation, Principal, PrincipalSource, Resource, Role, require_access
from ..core.errors import IntegrityConflict, NotFound, ValidationFailed, integrity_conflict_from
from ..core.pagination import paginate
from ..core.security import hash_password
from ..models.branch import Branch
from ..models.user import User
from ..schemas.user import UserCreate, UserUpdate
from .credentials import ensure_username_available

logger = logging.getLogger("users")

MAIN_ONLY_MESSAGE = "Only main managers can manage user accounts"


def _commit(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise integrity_conflict_from(exc) from exc


def _require_branch(db: Session, branch_id: Optional[int]) -> int:
    if branch_id is None:
        raise ValidationFailed("branch_id is required for branch managers")
    branch = db.get(Branch, branch_id)
    if branch is None or not branch.is_active:
        raise IntegrityConflict("Invalid reference. Branch does not exist.", kind="missing_reference")
    return branch.id


def list_users(
    db: Session,
    principal: Principal,
    *,
    role: Optional[str] = None,
    branch_id: Optional[int] = None,
    include_inactive: bool = False,
    page: int = 1,
    page_size: int = 50,
) -> tuple[list[User], int]:
    require_access(principal, None, Operation.READ, Resource.USER, message=MAIN_ONLY_MESSAGE)
    query = db.query(User)
    if not include_inactive:
        query = query.filter(User.is_active.is_(True))
    if role:
        query = query.filter(User.role == role)
    if branch_id is not None:
        query = query.filter(User.branch_id == branch_id)
    query = query.order_by(User.created_at.desc(), User.id.desc())
    return paginate(query, page=page, page_size=page_size)


def get_user(
    db: Session,
    user_id: int,
    principal: Principal,
    *,
    operation: Operation = Operation.READ,
    include_inactive: bool = False,
) -> User:
    require_access(principal, None, operation, Resource.USER, message=MAIN_ONLY_MESSAGE)
    user = db.get(User, user_id)
    if user is None or (not user.is_active and not include_inactive):
        raise NotFound("User not found")
    return user


def create_user(db: Session, payload: UserCreate, principal: Principal) -> User:
    require_access(principal, None, Operation.CREATE, Resource.USER, message=MAIN_ONLY_MESSAGE)
    if payload.role is not Role.BRANCH_MANAGER:
        raise ValidationFailed("Only branch manager accounts can be created")
    username = ensure_username_available(db, payload.username)
    branch_id = _require_branch(db, payload.branch_id)
    creator = principal.id if principal.source is PrincipalSource.USER and db.get(User, principal.id) else None
    user = User(
        username=username,
        password_hash=hash_password(payload.password),
        role=Role.BRANCH_MANAGER.value,
        branch_id=branch_id,
        full_name=payload.full_name.strip(),
        email=payload.email,
        is_active=True,
        created_by=creator,
    )
    db.add(user)
    _commit(db)
    db.refresh(user)
    logger.info("User created id=%s username=%s branch=%s", user.id, user.username, branch_id)
    return user


def update_user(db: Session, user_id: int, payload: UserUpdate, principal: Principal) -> User:
    user = get_user(db, user_id, principal, operation=Operation.UPDATE, include_inactive=True)
    changes = payload.model_dump(exclude_unset=True)
    password = changes.pop("password", None)
    if password:
        user.password_hash = hash_password(password)
    if "branch_id" in changes:
        branch_id = changes.pop("branch_id")
        if user.role == Role.BRANCH_MANAGER.value:
            user.branch_id = _require_branch(db, branch_id)
        elif branch_id is not None:
            raise ValidationFailed("Main managers cannot be assigned to a branch")
    for key, value in changes.items():
        if key in ("full_name", "is_active") and value is None:
            continue
        setattr(user, key, value)
    _commit(db)
    db.refresh(user)
    logger.info("User updated id=%s", user.id)
    return user


def delete_user(db: Session, user_id: int, principal: Principal) -> User:
    user = get_user(db, user_id, principal, operation=Operation.DELETE)
    if principal.source is PrincipalSource.USER and user.id == principal.id:
        raise ValidationFailed("You cannot deactivate your own account")
    user.is_active = False
    _commit(db)
    db.refresh(user)
    logger.info("User deactivated id=%s", user.id)
    return user
