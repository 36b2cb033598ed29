import uuid
from datetime import timedelta

from fastapi.testclient import TestClient

from hr_backend.main import create_app
from hr_backend.core.db import SessionLocal
from hr_backend.core.security import create_access_token, hash_password
from hr_backend.models.branch import Branch
from hr_backend.models.user import User


def _client() -> TestClient:
    app = create_app()
    return TestClient(app)


def _suffix() -> str:
    return uuid.uuid4().hex[:8]


def _create_user(*, username: str, password: str, role: str = "main_manager", branch_id=None, is_active=True) -> User:
    with SessionLocal() as db:
        user = User(
            username=username,
            password_hash=hash_password(password),
            role=role,
            branch_id=branch_id,
            full_name=username.title(),
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user


def _create_branch(*, username: str, password: str, is_active=True) -> Branch:
    with SessionLocal() as db:
        branch = Branch(
            name=f"Branch {username}",
            location="Jeddah",
            kind="healthcare_center",
            username=username,
            password_hash=hash_password(password),
            is_active=is_active,
        )
        db.add(branch)
        db.commit()
        db.refresh(branch)
        return branch


def test_user_login_returns_token_and_principal():
    with _client() as client:
        name = f"admin_{_suffix()}"
        user = _create_user(username=name, password="admin-pass")
        resp = client.post("/api/v1/auth/login", json={"username": name.upper(), "password": "admin-pass"})
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["token_type"] == "bearer"
        assert body["user"] == {
            "id": user.id,
            "username": name,
            "role": "main_manager",
            "branch_id": None,
            "source": "user",
        }

        me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
        assert me.status_code == 200
        assert me.json()["id"] == user.id


def test_branch_login_becomes_branch_manager_of_itself():
    with _client() as client:
        name = f"branch_{_suffix()}"
        branch = _create_branch(username=name, password="branch-pass")
        resp = client.post("/api/v1/auth/login", json={"username": name, "password": "branch-pass"})
        assert resp.status_code == 200, resp.text
        user = resp.json()["user"]
        assert user["role"] == "branch_manager"
        assert user["branch_id"] == branch.id
        assert user["id"] == branch.id
        assert user["source"] == "branch"


def test_bad_password_and_unknown_user_are_unauthenticated():
    with _client() as client:
        name = f"mgr_{_suffix()}"
        _create_user(username=name, password="right-pass")
        resp = client.post("/api/v1/auth/login", json={"username": name, "password": "wrong-pass"})
        assert resp.status_code == 401
        assert resp.json()["code"] == "unauthenticated"
        resp = client.post("/api/v1/auth/login", json={"username": f"ghost_{_suffix()}", "password": "x"})
        assert resp.status_code == 401


def test_inactive_accounts_are_forbidden():
    with _client() as client:
        user_name = f"old_{_suffix()}"
        _create_user(username=user_name, password="pass-1234", is_active=False)
        resp = client.post("/api/v1/auth/login", json={"username": user_name, "password": "pass-1234"})
        assert resp.status_code == 403

        branch_name = f"closed_{_suffix()}"
        _create_branch(username=branch_name, password="pass-1234", is_active=False)
        resp = client.post("/api/v1/auth/login", json={"username": branch_name, "password": "pass-1234"})
        assert resp.status_code == 403


def test_missing_login_fields_are_bad_request():
    with _client() as client:
        resp = client.post("/api/v1/auth/login", json={"username": "someone"})
        assert resp.status_code == 400
        assert resp.json()["code"] == "validation_failed"


def test_protected_routes_require_valid_token():
    with _client() as client:
        resp = client.get("/api/v1/employees")
        assert resp.status_code == 401
        assert resp.headers.get("WWW-Authenticate") == "Bearer"

        resp = client.get("/api/v1/employees", headers={"Authorization": "Bearer not-a-token"})
        assert resp.status_code == 401
        assert "Invalid token" in resp.json()["detail"]

        expired = create_access_token(
            {"sub": "admin", "id": 1, "role": "main_manager", "src": "user"},
            expires_in=timedelta(seconds=-1),
        )
        resp = client.get("/api/v1/employees", headers={"Authorization": f"Bearer {expired}"})
        assert resp.status_code == 401
        assert "expired" in resp.json()["detail"]


def test_health_is_public():
    with _client() as client:
        resp = client.get("/api/v1/health")
        assert resp.status_code == 200
        assert resp.json()["database"] == "ok"
