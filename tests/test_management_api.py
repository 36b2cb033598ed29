import uuid

from fastapi.testclient import TestClient

from hr_backend.main import create_app
from hr_backend.core.db import SessionLocal
from hr_backend.core.security import hash_password
from hr_backend.models.user import User


def _client() -> TestClient:
    app = create_app()
    return TestClient(app)


def _suffix() -> str:
    return uuid.uuid4().hex[:8]


def _admin_headers(client: TestClient) -> dict:
    username = f"admin_{_suffix()}"
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
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


def _create_branch(client: TestClient, headers: dict) -> dict:
    resp = client.post(
        "/api/v1/branches",
        json={
            "name": f"Clinic {_suffix()}",
            "location": "Medina",
            "kind": "healthcare_center",
            "username": f"clinic_{_suffix()}",
            "password": "clinic-pass",
        },
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def _employee_payload(**overrides) -> dict:
    tag = _suffix()
    payload = {
        "employee_id_number": f"EMP-{tag}",
        "first_name": "Khalid",
        "second_name": "Nasser",
        "third_name": "Yousef",
        "fourth_name": "Harbi",
        "occupation": "Therapist",
        "nationality": "Egyptian",
        "id_or_residency_number": f"RES-{tag}",
        "id_type": "residency",
        "gender": "male",
    }
    payload.update(overrides)
    return payload


def test_branch_crud_and_branch_login():
    with _client() as client:
        admin = _admin_headers(client)
        branch = _create_branch(client, admin)
        assert "password_hash" not in branch

        resp = client.put(f"/api/v1/branches/{branch['id']}", json={"location": "Yanbu"}, headers=admin)
        assert resp.status_code == 200
        assert resp.json()["location"] == "Yanbu"
        assert resp.json()["name"] == branch["name"]

        resp = client.post("/api/v1/auth/login", json={"username": branch["username"], "password": "clinic-pass"})
        assert resp.status_code == 200

        resp = client.delete(f"/api/v1/branches/{branch['id']}", headers=admin)
        assert resp.status_code == 200
        assert client.get(f"/api/v1/branches/{branch['id']}", headers=admin).status_code == 404
        resp = client.get("/api/v1/branches?include_inactive=true&page_size=200", headers=admin)
        assert branch["id"] in {b["id"] for b in resp.json()["items"]}


def test_duplicate_usernames_conflict_across_users_and_branches():
    with _client() as client:
        admin = _admin_headers(client)
        branch = _create_branch(client, admin)
        resp = client.post(
            "/api/v1/users",
            json={
                "username": branch["username"],
                "password": "secret-pass",
                "full_name": "Clash",
                "branch_id": branch["id"],
            },
            headers=admin,
        )
        assert resp.status_code == 409
        assert resp.json()["code"] == "conflict"


def test_only_branch_managers_can_be_created():
    with _client() as client:
        admin = _admin_headers(client)
        branch = _create_branch(client, admin)

        resp = client.post(
            "/api/v1/users",
            json={"username": f"boss_{_suffix()}", "password": "secret-pass", "full_name": "Boss", "role": "main_manager"},
            headers=admin,
        )
        assert resp.status_code == 400

        resp = client.post(
            "/api/v1/users",
            json={"username": f"mgr_{_suffix()}", "password": "secret-pass", "full_name": "Mgr", "branch_id": 987654},
            headers=admin,
        )
        assert resp.status_code == 400

        username = f"mgr_{_suffix()}"
        resp = client.post(
            "/api/v1/users",
            json={"username": username, "password": "secret-pass", "full_name": "Mgr", "branch_id": branch["id"]},
            headers=admin,
        )
        assert resp.status_code == 201, resp.text
        user = resp.json()
        assert user["role"] == "branch_manager"
        assert user["branch_id"] == branch["id"]

        resp = client.post("/api/v1/auth/login", json={"username": username, "password": "secret-pass"})
        assert resp.json()["user"]["branch_id"] == branch["id"]
        assert resp.json()["user"]["source"] == "user"

        resp = client.delete(f"/api/v1/users/{user['id']}", headers=admin)
        assert resp.status_code == 200
        resp = client.post("/api/v1/auth/login", json={"username": username, "password": "secret-pass"})
        assert resp.status_code == 403


def test_employee_rules():
    with _client() as client:
        admin = _admin_headers(client)
        branch = _create_branch(client, admin)
        other = _create_branch(client, admin)

        resp = client.post("/api/v1/employees", json=_employee_payload(), headers=admin)
        assert resp.status_code == 400

        resp = client.post("/api/v1/employees", json=_employee_payload(branch_id=987654), headers=admin)
        assert resp.status_code == 400

        payload = _employee_payload(branch_id=branch["id"])
        resp = client.post("/api/v1/employees", json=payload, headers=admin)
        assert resp.status_code == 201, resp.text
        employee = resp.json()
        assert employee["created_by"] == branch["id"]
        assert employee["updated_by"] == branch["id"]

        resp = client.post("/api/v1/employees", json=dict(payload, id_or_residency_number=f"RES-{_suffix()}"), headers=admin)
        assert resp.status_code == 409

        resp = client.put(f"/api/v1/employees/{employee['id']}", json={"branch_id": other["id"]}, headers=admin)
        assert resp.status_code == 400

        resp = client.put(
            f"/api/v1/employees/{employee['id']}",
            json={"occupation": "Senior Therapist", "phone_number": "0500000000"},
            headers=admin,
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["occupation"] == "Senior Therapist"
        assert body["phone_number"] == "0500000000"
        assert body["first_name"] == "Khalid"
        assert body["branch_id"] == branch["id"]
        assert body["updated_by"] == branch["id"]
