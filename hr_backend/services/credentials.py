"""
Credential lookup and verification.

Users are consulted first, then branches. A branch login is normalized into a
`branch_manager` principal bound to the branch itself, so downstream code only
ever sees one principal shape.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..core.access import Principal, PrincipalSource, Role
from ..core.errors import Forbidden, IntegrityConflict, Unauthenticated, ValidationFailed
from ..core.security import verify_password
from ..models.branch import Branch
from ..models.user import User

logger = logging.getLogger("auth")

INVALID_CREDENTIALS = "Invalid username or password"


def find_principal_record(db: Session, username: str) -> Optional[Union[User, Branch]]:
    name = (username or "").strip().lower()
    if not name:
        return None
    user = db.query(User).filter(func.lower(User.username) == name).first()
    if user is not None:
        return user
    return db.query(Branch).filter(func.lower(Branch.username) == name).first()


def principal_for(record: Union[User, Branch]) -> Principal:
    if isinstance(record, Branch):
        return Principal(
            id=record.id,
            username=record.username,
            role=Role.BRANCH_MANAGER,
            branch_id=record.id,
            source=PrincipalSource.BRANCH,
            active=bool(record.is_active),
        )
    try:
        role = Role(record.role)
    except ValueError as exc:
        raise Forbidden(f"Account has an unknown role: {record.role}") from exc
    if role is Role.BRANCH_MANAGER and record.branch_id is None:
        raise Forbidden("Account is not assigned to a branch")
    return Principal(
        id=record.id,
        username=record.username,
        role=role,
        branch_id=record.branch_id if role is Role.BRANCH_MANAGER else None,
        source=PrincipalSource.USER,
        active=bool(record.is_active),
    )


def authenticate(db: Session, username: str, password: str) -> Principal:
    """Resolve credentials to a principal or raise Unauthenticated/Forbidden."""
    if not (username or "").strip() or not password:
        raise ValidationFailed("Username and password are required")
    record = find_principal_record(db, username)
    if record is None:
        logger.info("Login failed: unknown username=%s", username.strip())
        raise Unauthenticated(INVALID_CREDENTIALS)
    if not record.is_active:
        logger.info("Login refused: inactive account username=%s", record.username)
        raise Forbidden("Account is inactive. Please contact administrator.")
    if not verify_password(password, record.password_hash):
        logger.info("Login failed: bad password username=%s", record.username)
        raise Unauthenticated(INVALID_CREDENTIALS)
    principal = principal_for(record)
    logger.info("Login ok username=%s role=%s source=%s", principal.username, principal.role.value, principal.source.value)
    return principal


def load_current_record(db: Session, principal: Principal) -> Optional[Union[User, Branch]]:
    if principal.source is PrincipalSource.BRANCH:
        return db.get(Branch, principal.id)
    return db.get(User, principal.id)


def ensure_username_available(
    db: Session,
    username: str,
    *,
    exclude_user_id: Optional[int] = None,
    exclude_branch_id: Optional[int] = None,
) -> str:
    """
    Usernames are shared between users and branches because login consults
    both tables. Returns the trimmed username.
    """
    name = (username or "").strip()
    if not name:
        raise ValidationFailed("Username is required")
    if " " in name:
        raise ValidationFailed("Username cannot contain spaces")
    lowered = name.lower()
    user_q = db.query(User.id).filter(func.lower(User.username) == lowered)
    if exclude_user_id is not None:
        user_q = user_q.filter(User.id != exclude_user_id)
    branch_q = db.query(Branch.id).filter(func.lower(Branch.username) == lowered)
    if exclude_branch_id is not None:
        branch_q = branch_q.filter(Branch.id != exclude_branch_id)
    if user_q.first() is not None or branch_q.first() is not None:
        raise IntegrityConflict("Username already exists", kind="duplicate")
    return name
