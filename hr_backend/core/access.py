"""
Role and branch scoping rules.

Every read and write in the API funnels through `can_access` (point checks)
or `branch_scope` (list filtering). Both derive from the same role model, so a
record that is hidden from a listing is also refused on direct access.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from .errors import Forbidden, Unauthenticated


class Role(str, enum.Enum):
    MAIN_MANAGER = "main_manager"
    BRANCH_MANAGER = "branch_manager"


class PrincipalSource(str, enum.Enum):
    USER = "user"
    BRANCH = "branch"


class Resource(str, enum.Enum):
    BRANCH = "branch"
    USER = "user"
    EMPLOYEE = "employee"
    DOCUMENT = "document"


class Operation(str, enum.Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    VERIFY = "verify"


class Decision(str, enum.Enum):
    ALLOW = "allow"
    DENY = "deny"


@dataclass(frozen=True)
class Principal:
    id: int
    username: str
    role: Role
    branch_id: Optional[int] = None
    source: PrincipalSource = PrincipalSource.USER
    active: bool = True

    def __post_init__(self) -> None:
        if self.role is Role.BRANCH_MANAGER and self.branch_id is None:
            raise ValueError("branch_manager principal requires a branch_id")
        if self.role is Role.MAIN_MANAGER and self.branch_id is not None:
            raise ValueError("main_manager principal cannot carry a branch_id")

    @property
    def is_main_manager(self) -> bool:
        return self.role is Role.MAIN_MANAGER


_MAIN_ONLY = frozenset({Role.MAIN_MANAGER})
_ANY_MANAGER = frozenset({Role.MAIN_MANAGER, Role.BRANCH_MANAGER})

# Roles permitted per (resource, operation) before branch matching.
ROLE_CEILINGS: dict[tuple[Resource, Operation], frozenset[Role]] = {
    (Resource.BRANCH, Operation.CREATE): _MAIN_ONLY,
    (Resource.BRANCH, Operation.UPDATE): _MAIN_ONLY,
    (Resource.BRANCH, Operation.DELETE): _MAIN_ONLY,
    (Resource.USER, Operation.READ): _MAIN_ONLY,
    (Resource.USER, Operation.CREATE): _MAIN_ONLY,
    (Resource.USER, Operation.UPDATE): _MAIN_ONLY,
    (Resource.USER, Operation.DELETE): _MAIN_ONLY,
    (Resource.EMPLOYEE, Operation.DELETE): _MAIN_ONLY,
    (Resource.DOCUMENT, Operation.VERIFY): _MAIN_ONLY,
}


def allowed_roles(resource: Resource, operation: Operation) -> frozenset[Role]:
    return ROLE_CEILINGS.get((resource, operation), _ANY_MANAGER)


def branch_scope(principal: Optional[Principal]) -> Optional[int]:
    """
    Branch a principal is confined to; None means every branch.

    Raises Unauthenticated for a missing principal so callers cannot fall
    through to an unfiltered query.
    """
    if principal is None:
        raise Unauthenticated("Authentication required")
    if principal.role is Role.MAIN_MANAGER:
        return None
    return principal.branch_id


def can_access(
    principal: Optional[Principal],
    target_branch_id: Optional[int],
    operation: Operation = Operation.READ,
    resource: Resource = Resource.DOCUMENT,
) -> Decision:
    if principal is None or not principal.active:
        return Decision.DENY
    if principal.role not in allowed_roles(resource, operation):
        return Decision.DENY
    if principal.role is Role.MAIN_MANAGER:
        return Decision.ALLOW
    if target_branch_id is None:
        return Decision.DENY
    if principal.branch_id == target_branch_id:
        return Decision.ALLOW
    return Decision.DENY


def require_access(
    principal: Optional[Principal],
    target_branch_id: Optional[int],
    operation: Operation = Operation.READ,
    resource: Resource = Resource.DOCUMENT,
    *,
    message: str = "Access denied",
) -> None:
    if principal is None:
        raise Unauthenticated("Authentication required")
    if can_access(principal, target_branch_id, operation, resource) is Decision.DENY:
        raise Forbidden(message)


def scope_query(query, branch_column, principal: Optional[Principal]):
    """Restrict a query to the rows whose `branch_column` the principal may see."""
    scope = branch_scope(principal)
    if scope is None:
        return query
    return query.filter(branch_column == scope)
