import pytest

from hr_backend.core.access import (
    Decision,
    Operation,
    Principal,
    PrincipalSource,
    Resource,
    Role,
    allowed_roles,
    branch_scope,
    can_access,
    require_access,
)
from hr_backend.core.errors import Forbidden, Unauthenticated


MAIN = Principal(id=1, username="admin", role=Role.MAIN_MANAGER)
BRANCH_7 = Principal(id=11, username="mgr7", role=Role.BRANCH_MANAGER, branch_id=7)
BRANCH_7_LOGIN = Principal(
    id=7,
    username="branch7",
    role=Role.BRANCH_MANAGER,
    branch_id=7,
    source=PrincipalSource.BRANCH,
)


def test_principal_role_branch_invariant():
    with pytest.raises(ValueError):
        Principal(id=1, username="x", role=Role.BRANCH_MANAGER)
    with pytest.raises(ValueError):
        Principal(id=1, username="x", role=Role.MAIN_MANAGER, branch_id=3)


def test_unauthenticated_is_denied():
    assert can_access(None, 7) is Decision.DENY
    with pytest.raises(Unauthenticated):
        require_access(None, 7)
    with pytest.raises(Unauthenticated):
        branch_scope(None)


@pytest.mark.parametrize("target", [1, 3, 7, 9, None])
def test_main_manager_allowed_everywhere(target):
    for operation in Operation:
        for resource in Resource:
            assert can_access(MAIN, target, operation, resource) is Decision.ALLOW


@pytest.mark.parametrize(
    "target,expected",
    [(7, Decision.ALLOW), (3, Decision.DENY), (9, Decision.DENY), (None, Decision.DENY)],
)
def test_branch_manager_document_reads_follow_branch(target, expected):
    assert can_access(BRANCH_7, target, Operation.READ, Resource.DOCUMENT) is expected
    assert can_access(BRANCH_7_LOGIN, target, Operation.READ, Resource.DOCUMENT) is expected


@pytest.mark.parametrize(
    "resource,operation",
    [
        (Resource.BRANCH, Operation.CREATE),
        (Resource.BRANCH, Operation.UPDATE),
        (Resource.BRANCH, Operation.DELETE),
        (Resource.USER, Operation.READ),
        (Resource.USER, Operation.CREATE),
        (Resource.USER, Operation.UPDATE),
        (Resource.USER, Operation.DELETE),
        (Resource.EMPLOYEE, Operation.DELETE),
        (Resource.DOCUMENT, Operation.VERIFY),
    ],
)
def test_main_only_operations_denied_to_branch_manager_even_on_own_branch(resource, operation):
    assert allowed_roles(resource, operation) == frozenset({Role.MAIN_MANAGER})
    assert can_access(BRANCH_7, 7, operation, resource) is Decision.DENY
    with pytest.raises(Forbidden):
        require_access(BRANCH_7, 7, operation, resource)


@pytest.mark.parametrize("operation", [Operation.CREATE, Operation.UPDATE, Operation.DELETE])
def test_branch_manager_may_write_own_documents_only(operation):
    assert can_access(BRANCH_7, 7, operation, Resource.DOCUMENT) is Decision.ALLOW
    assert can_access(BRANCH_7, 3, operation, Resource.DOCUMENT) is Decision.DENY


def test_inactive_principal_denied():
    inactive = Principal(id=12, username="old", role=Role.BRANCH_MANAGER, branch_id=7, active=False)
    assert can_access(inactive, 7) is Decision.DENY


def test_branch_scope_matches_point_access():
    assert branch_scope(MAIN) is None
    assert branch_scope(BRANCH_7) == 7
    assert branch_scope(BRANCH_7_LOGIN) == 7
