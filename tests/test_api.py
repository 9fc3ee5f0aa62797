import httpx
import pytest

from valtrack.api.dependencies import get_address_service, get_ocr_client
from valtrack.main import app
from valtrack.services.address_service import AddressService

ACTOR = {"X-Actor-Name": "Front Desk"}


@pytest.fixture
def area(client):
    branch = client.post("/api/branches", json={"name": "Main Library"}).json()
    floor = client.get(f"/api/branches/{branch['id']}/floors").json()[0]
    response = client.post(
        f"/api/floors/{floor['id']}/areas", json={"name": "Reading Room", "capacity": 2},
    )
    assert response.status_code == 201
    return response.json()


def create_patron(client, library_id="LIB-001", firstname="Juan"):
    response = client.post("/api/patrons", json={
        "library_id": library_id,
        "surname": "Dela Cruz",
        "firstname": firstname,
        "dateofbirth": "2000-01-15",
        "email": f"{library_id.lower()}@example.com",
    })
    assert response.status_code == 201
    return response.json()


def test_health(client):
    assert client.get("/api/health").json()["status"] == "ok"


def test_scan_round_trip(client, area):
    create_patron(client)

    first = client.post("/api/scan", json={"scanned_value": "LIB-001", "area_id": area["id"]}, headers=ACTOR)
    assert first.status_code == 200
    assert first.json()["action"] == "in"

    counts = client.get("/api/attendance/counts", params={"area_ids": [area["id"]]}).json()
    assert counts == {str(area["id"]): 1}

    second = client.post("/api/scan", json={"scanned_value": "LIB-001", "area_id": area["id"]}, headers=ACTOR)
    assert second.json()["action"] == "out"

    logs = client.get("/api/audit-logs", params={"module": "QR Scan"}).json()
    assert [log["user_name"] for log in logs] == ["Front Desk", "Front Desk"]


def test_actor_defaults_to_staff(client, area):
    create_patron(client)
    client.post("/api/scan", json={"scanned_value": "LIB-001", "area_id": area["id"]})
    log = client.get("/api/attendance/history").json()[0]
    assert log["user_name"] == "Staff"


def test_errors_map_to_status_codes(client, area):
    assert client.get("/api/patrons/999").status_code == 404
    assert client.get("/api/patrons/999").json() == {"detail": "Patron 999 not found"}

    missing = client.post("/api/scan", json={"scanned_value": "NOPE", "area_id": area["id"]})
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Patron not found"

    duplicate = client.post("/api/branches", json={"name": "Main Library"})
    assert duplicate.status_code == 409


def test_failed_request_rolls_back(client, area):
    for n in range(3):
        create_patron(client, f"LIB-00{n + 1}")
    for n in range(2):
        client.post("/api/scan", json={"scanned_value": f"LIB-00{n + 1}", "area_id": area["id"]})

    full = client.post("/api/scan", json={"scanned_value": "LIB-003", "area_id": area["id"]})
    assert full.status_code == 409
    assert full.json()["detail"] == "Capacity reached for Reading Room. Cannot check in."
    assert client.get(f"/api/areas/{area['id']}/occupancy").json()["current"] == 2


def test_baggage_flow(client, area):
    patron = create_patron(client)
    lockers = client.put(f"/api/areas/{area['id']}/lockers", json={"target_count": 1})
    assert [l["id"] for l in lockers.json()] == [f"LKR-{area['id']}-001"]

    not_inside = client.post("/api/baggage/toggle", json={"area_id": area["id"], "patron_id": patron["id"]})
    assert not_inside.status_code == 400

    client.post("/api/scan", json={"scanned_value": "LIB-001", "area_id": area["id"]})
    assigned = client.post("/api/baggage/toggle", json={"area_id": area["id"], "patron_id": patron["id"]})
    assert assigned.json()["action"] == "in"

    export = client.get(f"/api/areas/{area['id']}/lockers/export")
    assert export.headers["content-type"].startswith("text/csv")
    assert "Juan Dela Cruz" in export.text

    summary = client.get(f"/api/areas/{area['id']}/lockers/summary").json()
    assert summary["occupied"] == 1

    branch_id = client.get("/api/branches").json()[0]["id"]
    dashboard = client.get(f"/api/branches/{branch_id}/dashboard")
    assert dashboard.status_code == 200
    assert dashboard.json()["active_baggage"] == 1


def test_incident_reported_by_actor(client, area):
    branch_id = client.get("/api/branches").json()[0]["id"]
    created = client.post(
        "/api/incidents",
        json={"description": "Lost umbrella", "branch_id": branch_id, "area_id": area["id"]},
        headers=ACTOR,
    )
    assert created.status_code == 201
    assert created.json()["reported_by"] == "Front Desk"
    assert created.json()["description"] == "[Reading Room] Lost umbrella"

    resolved = client.post(f"/api/incidents/{created.json()['id']}/resolve", headers=ACTOR)
    assert resolved.json()["status"] == "resolved"
    assert client.post(f"/api/incidents/{created.json()['id']}/resolve").status_code == 409


def test_login_and_grant_access(client, area):
    admin = client.post("/api/profiles", json={
        "username": "admin", "email": "admin@lib.test", "password": "secret", "role": "admin",
    })
    assert admin.status_code == 201

    login = client.post("/api/auth/login", json={"username": "admin", "password": "secret"})
    assert login.status_code == 200
    assert login.json()["profile"]["role"] == "admin"
    assert client.post("/api/auth/login", json={"username": "admin", "password": "x"}).status_code == 401

    patron = create_patron(client, "LIB-500")
    granted = client.post(f"/api/patrons/{patron['id']}/grant-access", json={
        "role": "staff",
        "assigned_branch_id": client.get("/api/branches").json()[0]["id"],
        "assigned_floor_id": area["floor_id"],
        "assigned_area_id": area["id"],
    })
    assert granted.status_code == 201
    assert client.post("/api/auth/login", json={"username": "LIB-500", "password": "2000-01-15"}).status_code == 200


def test_avatar_upload(client, storage):
    admin = client.post("/api/profiles", json={
        "username": "admin", "email": "admin@lib.test", "password": "secret", "role": "admin",
    }).json()
    response = client.post(
        f"/api/profiles/{admin['id']}/avatar", files={"file": ("me.png", b"\x89PNG", "image/png")},
    )
    assert response.status_code == 200
    assert response.json()["avatar_url"].endswith(".png")


def test_patron_export_is_csv(client):
    create_patron(client)
    response = client.get("/api/patrons/export")
    assert response.headers["content-type"].startswith("text/csv")
    assert response.text.splitlines()[1].startswith("LIB-001,Dela Cruz,Juan")


class FakeOCR:
    def process_ocr(self, image, id_type):
        return {"text": "REPUBLIC OF THE PHILIPPINES\nPASAPORTE\nP1234567A", "is_valid": True, "error": None}


def test_registration_upload(client):
    app.dependency_overrides[get_ocr_client] = lambda: FakeOCR()
    response = client.post(
        "/api/registrations",
        data={"id_type": "Passport"},
        files={"file": ("passport.jpg", b"\xff\xd8img", "image/jpeg")},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["extracted"]["id_number"] == "P1234567A"
    assert body["registration"]["status"] == "draft"

    registration_id = body["registration"]["id"]
    patched = client.patch(f"/api/registrations/{registration_id}", json={"surname": "reyes"})
    assert patched.json()["surname"] == "REYES"


def test_address_lookup(client):
    def handler(request):
        if request.url.path.endswith("/regions/"):
            return httpx.Response(200, json=[{"code": "13", "name": "NCR"}])
        return httpx.Response(500)

    service = AddressService(
        base_url="https://psgc.test", client=httpx.Client(transport=httpx.MockTransport(handler)),
    )
    app.dependency_overrides[get_address_service] = lambda: service

    assert client.get("/api/address/regions").json() == [{"label": "NCR", "value": "13"}]
    failed = client.get("/api/address/cities/137404/barangays")
    assert failed.status_code == 502
    assert failed.json()["detail"] == "Failed to fetch barangays"


def test_scan_with_non_ascii_digit(client, area):
    create_patron(client)
    response = client.post("/api/scan", json={"scanned_value": "²", "area_id": area["id"]})
    assert response.status_code == 404
    assert response.json()["detail"] == "Patron not found"


def test_failed_upload_keeps_no_row(client, s3):
    app.dependency_overrides[get_ocr_client] = lambda: FakeOCR()
    s3.fail_uploads = True

    response = client.post(
        "/api/registrations",
        data={"id_type": "Passport"},
        files={"file": ("passport.jpg", b"\xff\xd8img", "image/jpeg")},
    )
    assert response.status_code == 502
    assert response.json()["detail"] == "Failed to upload file to storage"
    assert client.get("/api/registrations/1").status_code == 404

    admin = client.post("/api/profiles", json={
        "username": "admin", "email": "admin@lib.test", "password": "secret", "role": "admin",
    }).json()
    avatar = client.post(
        f"/api/profiles/{admin['id']}/avatar", files={"file": ("me.png", b"\x89PNG", "image/png")},
    )
    assert avatar.status_code == 502
    assert client.get(f"/api/profiles/{admin['id']}").json()["avatar_url"] is None
    assert s3.objects == {}
