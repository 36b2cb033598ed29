"""
Employee APIs, scoped to the caller's branch for branch managers.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ...core.access import Principal
from ...core.auth import get_current_principal, require_main_manager
from ...core.db import get_db
from ...core.pagination import clamp_page_size, set_pagination_headers
from ...schemas.document import EmployeeDocumentOut
from ...schemas.employee import EmployeeCreate, EmployeeOut, EmployeeUpdate
from ...services import documents as document_service
from ...services import employees as employee_service
from ...services.documents import OwnerKind


router = APIRouter(prefix="/api/v1/employees", tags=["employees"])


@router.get("")
def list_employees(
    response: Response,
    branch_id: Optional[int] = Query(None),
    occupation: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    include_inactive: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> dict:
    page_size = clamp_page_size(page_size)
    items, total = employee_service.list_employees(
        db,
        principal,
        branch_id=branch_id,
        occupation=occupation,
        search=search,
        include_inactive=include_inactive,
        page=page,
        page_size=page_size,
    )
    set_pagination_headers(response, total=total, page=page, page_size=page_size)
    return {
        "items": [EmployeeOut.model_validate(e).model_dump() for e in items],
        "total": total,
        "page": page,
        "page_size": page_size,
    }


@router.post("", status_code=201)
def create_employee(
    payload: EmployeeCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> dict:
    employee = employee_service.create_employee(db, payload, principal)
    return EmployeeOut.model_validate(employee).model_dump()


@router.get("/{employee_id}")
def get_employee(
    employee_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> dict:
    employee = employee_service.get_employee(db, employee_id, principal)
    return EmployeeOut.model_validate(employee).model_dump()


@router.put("/{employee_id}")
def update_employee(
    employee_id: int,
    payload: EmployeeUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> dict:
    employee = employee_service.update_employee(db, employee_id, payload, principal)
    return EmployeeOut.model_validate(employee).model_dump()


@router.delete("/{employee_id}")
def delete_employee(
    employee_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_main_manager),
) -> dict:
    employee = employee_service.delete_employee(db, employee_id, principal)
    return {"status": "ok", "message": "Employee deactivated successfully", "employee_id": employee.id}


@router.get("/{employee_id}/documents")
def list_employee_documents(
    employee_id: int,
    response: Response,
    document_type: Optional[str] = Query(None),
    include_inactive: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> dict:
    employee_service.get_employee(db, employee_id, principal, include_inactive=True)
    page_size = clamp_page_size(page_size)
    items, total = document_service.list_documents(
        db,
        OwnerKind.EMPLOYEE,
        principal,
        owner_id=employee_id,
        document_type=document_type,
        include_inactive=include_inactive,
        page=page,
        page_size=page_size,
    )
    set_pagination_headers(response, total=total, page=page, page_size=page_size)
    return {
        "items": [EmployeeDocumentOut.model_validate(d).model_dump() for d in items],
        "total": total,
        "page": page,
        "page_size": page_size,
    }
