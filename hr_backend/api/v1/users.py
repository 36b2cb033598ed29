"""
User account APIs (main managers only).
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ...core.access import Principal, Role
from ...core.auth import require_main_manager
from ...core.db import get_db
from ...core.pagination import clamp_page_size, set_pagination_headers
from ...schemas.user import UserCreate, UserOut, UserUpdate
from ...services import users as user_service


router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("")
def list_users(
    response: Response,
    role: Optional[Role] = Query(None),
    branch_id: Optional[int] = Query(None),
    include_inactive: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_main_manager),
) -> dict:
    page_size = clamp_page_size(page_size)
    items, total = user_service.list_users(
        db,
        principal,
        role=role.value if role else None,
        branch_id=branch_id,
        include_inactive=include_inactive,
        page=page,
        page_size=page_size,
    )
    set_pagination_headers(response, total=total, page=page, page_size=page_size)
    return {
        "items": [UserOut.model_validate(u).model_dump() for u in items],
        "total": total,
        "page": page,
        "page_size": page_size,
    }


@router.post("", status_code=201)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_main_manager),
) -> dict:
    user = user_service.create_user(db, payload, principal)
    return UserOut.model_validate(user).model_dump()


@router.get("/{user_id}")
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_main_manager),
) -> dict:
    user = user_service.get_user(db, user_id, principal)
    return UserOut.model_validate(user).model_dump()


@router.put("/{user_id}")
def update_user(
    user_id: int,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_main_manager),
) -> dict:
    user = user_service.update_user(db, user_id, payload, principal)
    return UserOut.model_validate(user).model_dump()


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_main_manager),
) -> dict:
    user = user_service.delete_user(db, user_id, principal)
    return {"status": "ok", "message": "User deactivated successfully", "user_id": user.id}
