"""
Employee CRUD scoped by branch.

`created_by` and `updated_by` record the owning branch id. An employee's
branch is fixed at creation.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.access import Operation, Principal, Resource, branch_scope, require_access, scope_query
from ..core.errors import Forbidden, IntegrityConflict, NotFound, ValidationFailed, integrity_conflict_from
from ..core.pagination import paginate
from ..models.branch import Branch
from ..models.employee import Employee
from ..schemas.employee import EmployeeCreate, EmployeeUpdate

logger = logging.getLogger("employees")

CROSS_BRANCH_MESSAGE = "Access denied. You can only access employees from your own branch."


def _commit(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise integrity_conflict_from(exc) from exc


def list_employees(
    db: Session,
    principal: Principal,
    *,
    branch_id: Optional[int] = None,
    occupation: Optional[str] = None,
    search: Optional[str] = None,
    include_inactive: bool = False,
    page: int = 1,
    page_size: int = 50,
) -> tuple[list[Employee], int]:
    query = scope_query(db.query(Employee), Employee.branch_id, principal)
    if branch_id is not None:
        query = query.filter(Employee.branch_id == branch_id)
    if not include_inactive:
        query = query.filter(Employee.is_active.is_(True))
    if occupation:
        query = query.filter(Employee.occupation == occupation)
    if search and search.strip():
        term = search.strip()
        query = query.filter(
            or_(
                Employee.first_name.icontains(term, autoescape=True),
                Employee.fourth_name.icontains(term, autoescape=True),
                Employee.employee_id_number.icontains(term, autoescape=True),
                Employee.id_or_residency_number.icontains(term, autoescape=True),
            )
        )
    query = query.order_by(Employee.created_at.desc(), Employee.id.desc())
    return paginate(query, page=page, page_size=page_size)


def get_employee(
    db: Session,
    employee_id: int,
    principal: Principal,
    *,
    operation: Operation = Operation.READ,
    include_inactive: bool = False,
) -> Employee:
    employee = db.get(Employee, employee_id)
    if employee is None or (not employee.is_active and not include_inactive):
        raise NotFound("Employee not found")
    require_access(principal, employee.branch_id, operation, Resource.EMPLOYEE, message=CROSS_BRANCH_MESSAGE)
    return employee


def _resolve_target_branch(principal: Principal, requested: Optional[int]) -> int:
    scope = branch_scope(principal)
    if scope is not None:
        if requested is not None and requested != scope:
            raise Forbidden("You can only create employees for your own branch")
        return scope
    if requested is None:
        raise ValidationFailed("branch_id is required")
    return requested


def create_employee(db: Session, payload: EmployeeCreate, principal: Principal) -> Employee:
    branch_id = _resolve_target_branch(principal, payload.branch_id)
    branch = db.get(Branch, branch_id)
    if branch is None or not branch.is_active:
        raise IntegrityConflict("Invalid reference. Branch does not exist.", kind="missing_reference")
    require_access(principal, branch_id, Operation.CREATE, Resource.EMPLOYEE, message=CROSS_BRANCH_MESSAGE)

    data = payload.model_dump(exclude={"branch_id"})
    employee = Employee(**data, branch_id=branch_id, created_by=branch_id, updated_by=branch_id, is_active=True)
    db.add(employee)
    _commit(db)
    db.refresh(employee)
    logger.info("Employee created id=%s branch=%s", employee.id, branch_id)
    return employee


def update_employee(db: Session, employee_id: int, payload: EmployeeUpdate, principal: Principal) -> Employee:
    employee = get_employee(db, employee_id, principal, operation=Operation.UPDATE)
    changes = payload.model_dump(exclude_unset=True)
    requested_branch = changes.pop("branch_id", None)
    if requested_branch is not None and requested_branch != employee.branch_id:
        raise ValidationFailed("An employee's branch cannot be changed")
    if not changes:
        return employee
    for key, value in changes.items():
        setattr(employee, key, value)
    employee.updated_by = employee.branch_id
    _commit(db)
    db.refresh(employee)
    logger.info("Employee updated id=%s fields=%s", employee.id, ",".join(sorted(changes)))
    return employee


def delete_employee(db: Session, employee_id: int, principal: Principal) -> Employee:
    employee = get_employee(db, employee_id, principal, operation=Operation.DELETE)
    employee.is_active = False
    employee.updated_by = employee.branch_id
    _commit(db)
    db.refresh(employee)
    logger.info("Employee deactivated id=%s", employee.id)
    return employee
