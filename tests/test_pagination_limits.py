import uuid

from fastapi.testclient import TestClient

from hr_backend.main import create_app
from hr_backend.core.db import SessionLocal
from hr_backend.core.security import hash_password
from hr_backend.models.branch import Branch
from hr_backend.models.user import User


def _client() -> TestClient:
    app = create_app()
    return TestClient(app)


def _admin_headers(client: TestClient) -> dict:
    username = f"admin_{uuid.uuid4().hex[:8]}"
    with SessionLocal() as db:
        db.add(
            User(
                username=username,
                password_hash=hash_password("admin-pass"),
                role="main_manager",
                full_name="Admin",
                is_active=True,
            )
        )
        db.commit()
    resp = client.post("/api/v1/auth/login", json={"username": username, "password": "admin-pass"})
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


def _seed_branches(count: int = 12) -> None:
    with SessionLocal() as db:
        for _ in range(count):
            tag = uuid.uuid4().hex[:8]
            db.add(
                Branch(
                    name=f"Paged {tag}",
                    location="Tabuk",
                    kind="school",
                    username=f"paged_{tag}",
                    password_hash=hash_password("branch-pass"),
                    is_active=True,
                )
            )
        db.commit()


def test_page_size_capped(monkeypatch):
    monkeypatch.setenv("API_MAX_PAGE_SIZE", "5")
    with _client() as client:
        headers = _admin_headers(client)
        _seed_branches(12)
        resp = client.get("/api/v1/branches?page_size=100", headers=headers)
        assert resp.status_code == 200
        assert len(resp.json()["items"]) == 5
        assert resp.json()["page_size"] == 5
        assert resp.headers.get("X-Page-Size") == "5"
        assert int(resp.headers["X-Total-Count"]) >= 12


def test_negative_page_rejected():
    with _client() as client:
        headers = _admin_headers(client)
        resp = client.get("/api/v1/branches?page=-1", headers=headers)
        assert resp.status_code == 400
        resp = client.get("/api/v1/branches?page_size=0", headers=headers)
        assert resp.status_code == 400
