"""
Session issuing and verification.

Tokens carry the normalized principal claims so the rest of the system never
needs to know whether the caller logged in as a user or as a branch.
"""

from __future__ import annotations

import logging

from ..core.access import Principal, PrincipalSource, Role
from ..core.errors import Unauthenticated
from ..core.security import TokenExpired, TokenInvalid, create_access_token, decode_access_token

logger = logging.getLogger("sessions")


def issue_token(principal: Principal) -> str:
    return create_access_token(
        {
            "sub": principal.username,
            "id": principal.id,
            "role": principal.role.value,
            "branch_id": principal.branch_id,
            "src": principal.source.value,
        }
    )


def principal_from_claims(claims: dict) -> Principal:
    try:
        role = Role(str(claims.get("role") or "").strip().lower())
        source = PrincipalSource(str(claims.get("src") or PrincipalSource.USER.value))
        principal_id = int(claims["id"])
        branch_raw = claims.get("branch_id")
        branch_id = int(branch_raw) if branch_raw is not None else None
        username = str(claims.get("sub") or "").strip()
        if not username:
            raise ValueError("missing sub")
        return Principal(
            id=principal_id,
            username=username,
            role=role,
            branch_id=branch_id,
            source=source,
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise Unauthenticated("Invalid token claims") from exc


def verify_token(token: str) -> Principal:
    try:
        claims = decode_access_token(token)
    except TokenExpired as exc:
        raise Unauthenticated("Token has expired. Please login again.") from exc
    except TokenInvalid as exc:
        logger.debug("Rejected token: %s", exc)
        raise Unauthenticated("Invalid token. Please login again.") from exc
    return principal_from_claims(claims)
