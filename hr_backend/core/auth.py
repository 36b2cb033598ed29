"""
FastAPI dependencies that resolve the calling principal from a bearer token.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header

from .access import Principal, Role
from .errors import Forbidden, Unauthenticated
from ..services.sessions import verify_token


def _extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    if not authorization.lower().startswith("bearer "):
        return None
    token = authorization.split(" ", 1)[1].strip()
    return token or None


def get_current_principal(authorization: Optional[str] = Header(None)) -> Principal:
    token = _extract_bearer_token(authorization)
    if not token:
        raise Unauthenticated("Authentication required. Please provide a Bearer token.")
    return verify_token(token)


def get_optional_principal(authorization: Optional[str] = Header(None)) -> Optional[Principal]:
    if not authorization:
        return None
    return get_current_principal(authorization=authorization)


def require_roles(*roles: Role):
    def _dep(principal: Principal = Depends(get_current_principal)) -> Principal:
        if roles and principal.role not in roles:
            raise Forbidden("Insufficient permissions. Required role: " + " or ".join(r.value for r in roles))
        return principal

    return _dep


require_main_manager = require_roles(Role.MAIN_MANAGER)
