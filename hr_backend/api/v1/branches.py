"""
Branch management APIs.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ...core.access import Principal
from ...core.auth import get_current_principal, require_main_manager
from ...core.db import get_db
from ...core.pagination import clamp_page_size, set_pagination_headers
from ...models.branch import BranchKind
from ...schemas.branch import BranchCreate, BranchOut, BranchUpdate
from ...services import branches as branch_service


router = APIRouter(prefix="/api/v1/branches", tags=["branches"])


@router.get("")
def list_branches(
    response: Response,
    search: Optional[str] = Query(None),
    kind: Optional[BranchKind] = Query(None),
    include_inactive: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> dict:
    page_size = clamp_page_size(page_size)
    items, total = branch_service.list_branches(
        db,
        principal,
        search=search,
        kind=kind.value if kind else None,
        include_inactive=include_inactive,
        page=page,
        page_size=page_size,
    )
    set_pagination_headers(response, total=total, page=page, page_size=page_size)
    return {
        "items": [BranchOut.model_validate(b).model_dump() for b in items],
        "total": total,
        "page": page,
        "page_size": page_size,
    }


@router.post("", status_code=201)
def create_branch(
    payload: BranchCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_main_manager),
) -> dict:
    branch = branch_service.create_branch(db, payload, principal)
    return BranchOut.model_validate(branch).model_dump()


@router.get("/{branch_id}")
def get_branch(
    branch_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> dict:
    branch = branch_service.get_branch(db, branch_id, principal)
    return BranchOut.model_validate(branch).model_dump()


@router.put("/{branch_id}")
def update_branch(
    branch_id: int,
    payload: BranchUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_main_manager),
) -> dict:
    branch = branch_service.update_branch(db, branch_id, payload, principal)
    return BranchOut.model_validate(branch).model_dump()


@router.delete("/{branch_id}")
def delete_branch(
    branch_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_main_manager),
) -> dict:
    branch = branch_service.delete_branch(db, branch_id, principal)
    return {"status": "ok", "message": "Branch deactivated successfully", "branch_id": branch.id}
