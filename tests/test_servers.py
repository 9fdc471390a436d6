import uuid
from datetime import datetime

import pytest


def parse_time(value):
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def create(client, headers, payload, **overrides):
    resp = client.post("/api/servers", json={**payload, **overrides}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


# --- POST /api/servers ---

def test_create_server(client, auth_headers, server_payload):
    data = create(client, auth_headers, server_payload)
    assert len(data["id"]) == 32
    assert data["hostname"] == "billing01.internal"
    assert data["cpu"] == 4
    assert data["total_cost"] == 129.5
    assert data["remarks"] == "primary node"
    assert data["delete_date"] is None
    assert data["created_at"] == data["updated_at"]
    assert "password" not in data


def test_create_server_optional_fields_may_be_omitted(client, auth_headers, server_payload):
    payload = dict(server_payload)
    del payload["remarks"]
    del payload["delete_date"]
    data = create(client, auth_headers, payload)
    assert data["remarks"] == ""
    assert data["delete_date"] is None


def test_create_server_with_delete_date(client, auth_headers, server_payload):
    data = create(client, auth_headers, server_payload, delete_date="2027-01-31T00:00:00Z")
    assert data["delete_date"].startswith("2027-01-31T00:00:00")


@pytest.mark.parametrize("field", ["project_name", "vm_name", "cpu", "total_cost", "password", "created_by"])
def test_create_server_missing_required_field(client, auth_headers, server_payload, field):
    payload = dict(server_payload)
    del payload[field]
    resp = client.post("/api/servers", json=payload, headers=auth_headers)
    assert resp.status_code == 400
    assert field in resp.json()["error"]
    assert client.get("/api/servers", headers=auth_headers).json()["total"] == 0


def test_create_server_empty_values_rejected(client, auth_headers, server_payload):
    for overrides in ({"hostname": ""}, {"ram": 0}, {"cpu": "four"}):
        resp = client.post("/api/servers", json={**server_payload, **overrides}, headers=auth_headers)
        assert resp.status_code == 400
    assert client.get("/api/servers", headers=auth_headers).json()["total"] == 0


def test_duplicate_hostnames_are_allowed(client, auth_headers, server_payload):
    first = create(client, auth_headers, server_payload)
    second = create(client, auth_headers, server_payload)
    assert first["id"] != second["id"]


def test_create_requires_token(client, server_payload):
    resp = client.post("/api/servers", json=server_payload)
    assert resp.status_code == 401


# --- GET /api/servers ---

def test_list_defaults(client, auth_headers, server_payload):
    for i in range(3):
        create(client, auth_headers, server_payload, vm_name=f"vm-{i}")
    data = client.get("/api/servers", headers=auth_headers).json()
    assert data["page"] == 1
    assert data["limit"] == 10
    assert data["total"] == 3
    assert [s["vm_name"] for s in data["servers"]] == ["vm-2", "vm-1", "vm-0"]


def test_list_honors_page_and_limit(client, auth_headers, server_payload):
    created = [create(client, auth_headers, server_payload, vm_name=f"vm-{i}") for i in range(12)]
    newest_first = [s["id"] for s in reversed(created)]

    resp = client.get("/api/servers", params={"page": 2, "limit": 5}, headers=auth_headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 12
    assert data["page"] == 2
    assert data["limit"] == 5
    assert [s["id"] for s in data["servers"]] == newest_first[5:10]

    last = client.get("/api/servers", params={"page": 3, "limit": 5}, headers=auth_headers).json()
    assert [s["id"] for s in last["servers"]] == newest_first[10:]

    beyond = client.get("/api/servers", params={"page": 4, "limit": 5}, headers=auth_headers).json()
    assert beyond["servers"] == []
    assert beyond["total"] == 12


@pytest.mark.parametrize("params", [{"page": 0}, {"limit": 0}, {"limit": 101}, {"page": "two"}])
def test_list_rejects_bad_pagination(client, auth_headers, params):
    resp = client.get("/api/servers", params=params, headers=auth_headers)
    assert resp.status_code == 400
    assert "error" in resp.json()


def test_list_is_repeatable(client, auth_headers, server_payload):
    for i in range(4):
        create(client, auth_headers, server_payload, vm_name=f"vm-{i}")
    first = client.get("/api/servers", params={"limit": 3}, headers=auth_headers).json()
    second = client.get("/api/servers", params={"limit": 3}, headers=auth_headers).json()
    assert first == second


# --- GET /api/servers/{id} ---

def test_get_server(client, auth_headers, server_payload):
    created = create(client, auth_headers, server_payload)
    resp = client.get(f"/api/servers/{created['id']}", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json() == created
    assert client.get(f"/api/servers/{created['id']}", headers=auth_headers).json() == resp.json()


def test_get_server_accepts_hyphenated_id(client, auth_headers, server_payload):
    created = create(client, auth_headers, server_payload)
    resp = client.get(f"/api/servers/{uuid.UUID(created['id'])}", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["id"] == created["id"]


def test_get_server_malformed_id(client, auth_headers):
    resp = client.get("/api/servers/not-a-valid-id", headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid server ID"}


def test_get_server_unknown_id(client, auth_headers):
    resp = client.get(f"/api/servers/{uuid.uuid4().hex}", headers=auth_headers)
    assert resp.status_code == 404
    assert resp.json() == {"error": "Server not found"}


# --- PUT /api/servers/{id} ---

def test_update_replaces_every_field(client, auth_headers, server_payload):
    created = create(client, auth_headers, server_payload)
    replacement = {
        **server_payload,
        "project_name": "Payments",
        "cpu": 8,
        "ram": 32,
        "total_cost": 250.0,
        "remarks": "",
        "id": uuid.uuid4().hex,  # ignored, the path decides
    }
    resp = client.put(f"/api/servers/{created['id']}", json=replacement, headers=auth_headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["id"] == created["id"]
    assert data["project_name"] == "Payments"
    assert data["cpu"] == 8
    assert data["remarks"] == ""
    assert data["created_at"] == created["created_at"]
    assert parse_time(data["updated_at"]) > parse_time(created["updated_at"])

    stored = client.get(f"/api/servers/{created['id']}", headers=auth_headers).json()
    assert stored == data


def test_update_requires_full_record(client, auth_headers, server_payload):
    created = create(client, auth_headers, server_payload)
    resp = client.put(f"/api/servers/{created['id']}", json={"cpu": 16}, headers=auth_headers)
    assert resp.status_code == 400
    stored = client.get(f"/api/servers/{created['id']}", headers=auth_headers).json()
    assert stored == created


def test_update_unknown_id(client, auth_headers, server_payload):
    resp = client.put(f"/api/servers/{uuid.uuid4().hex}", json=server_payload, headers=auth_headers)
    assert resp.status_code == 404
    assert resp.json() == {"error": "Server not found"}
    assert client.get("/api/servers", headers=auth_headers).json()["total"] == 0


def test_update_malformed_id(client, auth_headers, server_payload):
    resp = client.put("/api/servers/123", json=server_payload, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid server ID"}


# --- DELETE /api/servers/{id} ---

def test_delete_twice(client, auth_headers, server_payload):
    created = create(client, auth_headers, server_payload)
    first = client.delete(f"/api/servers/{created['id']}", headers=auth_headers)
    assert first.status_code == 200
    assert first.json() == {"message": "Server deleted successfully"}

    second = client.delete(f"/api/servers/{created['id']}", headers=auth_headers)
    assert second.status_code == 404
    assert second.json() == {"error": "Server not found"}

    assert client.get(f"/api/servers/{created['id']}", headers=auth_headers).status_code == 404


def test_delete_malformed_id(client, auth_headers):
    resp = client.delete("/api/servers/xyz", headers=auth_headers)
    assert resp.status_code == 400


def test_delete_leaves_other_records(client, auth_headers, server_payload):
    keep = create(client, auth_headers, server_payload, vm_name="keep")
    drop = create(client, auth_headers, server_payload, vm_name="drop")
    client.delete(f"/api/servers/{drop['id']}", headers=auth_headers)
    data = client.get("/api/servers", headers=auth_headers).json()
    assert data["total"] == 1
    assert data["servers"][0]["id"] == keep["id"]
