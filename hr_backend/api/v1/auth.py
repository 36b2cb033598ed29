"""
Authentication endpoints: login and current principal.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...core.access import Principal
from ...core.auth import get_current_principal
from ...core.db import get_db
from ...core.errors import Forbidden, Unauthenticated
from ...schemas.auth import LoginRequest, LoginResponse, PrincipalOut
from ...services import credentials
from ...services.sessions import issue_token


router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


def _principal_out(principal: Principal) -> PrincipalOut:
    return PrincipalOut(
        id=principal.id,
        username=principal.username,
        role=principal.role.value,
        branch_id=principal.branch_id,
        source=principal.source.value,
    )


@router.post("/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> dict:
    principal = credentials.authenticate(db, payload.username, payload.password)
    token = issue_token(principal)
    return LoginResponse(access_token=token, user=_principal_out(principal)).model_dump()


@router.get("/me")
def me(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> dict:
    record = credentials.load_current_record(db, principal)
    if record is None:
        raise Unauthenticated("Account no longer exists. Please login again.")
    if not record.is_active:
        raise Forbidden("Account is inactive. Please contact administrator.")
    return _principal_out(principal).model_dump()
