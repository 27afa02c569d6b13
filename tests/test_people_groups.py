from acs_backend.core.db import SessionContext
from acs_backend.models.credential import Credential


def test_department_with_people_cannot_be_deleted(client, admin_headers):
    dept = client.post("/api/department", json={"name": "Security"}, headers=admin_headers).json()["data"]
    person = client.post(
        "/api/people",
        json={"first_name": "Alan", "department_id": dept["id"]},
        headers=admin_headers,
    ).json()["data"]

    blocked = client.delete(f"/api/department/{dept['id']}", headers=admin_headers).json()
    assert blocked["code"] == 400

    client.delete(f"/api/people/{person['id']}", headers=admin_headers)
    ok = client.delete(f"/api/department/{dept['id']}", headers=admin_headers).json()
    assert ok["success"] is True


def test_people_unknown_department(client, admin_headers):
    body = client.post("/api/people", json={"first_name": "X", "department_id": 999}, headers=admin_headers).json()
    assert body["code"] == 400


def test_people_sparse_patch(client, admin_headers):
    person = client.post(
        "/api/people",
        json={"first_name": "Katherine", "last_name": "Johnson", "code": "E-1"},
        headers=admin_headers,
    ).json()["data"]
    body = client.patch(f"/api/people/{person['id']}", json={"code": "E-2", "last_name": None}, headers=admin_headers).json()
    assert body["data"]["code"] == "E-2"
    assert body["data"]["last_name"] == "Johnson"
    assert body["data"]["first_name"] == "Katherine"


def test_deleting_people_removes_credentials(client, admin_headers):
    person = client.post("/api/people", json={"first_name": "Temp"}, headers=admin_headers).json()["data"]
    cred = client.post(
        "/api/credential", json={"people_id": person["id"], "card_no": "1"}, headers=admin_headers
    ).json()["data"]

    body = client.delete(f"/api/people/{person['id']}", headers=admin_headers).json()
    assert body["data"]["removed_credentials"] == [cred["unique_id"]]
    with SessionContext(client.app.state.stores.CredentialSession) as db:
        assert db.get(Credential, cred["unique_id"]) is None


def test_group_reference_checks(client, admin_headers):
    doors = client.get("/api/credential/alldoor", headers=admin_headers).json()["data"]
    door_group = client.post(
        "/api/group/door", json={"name": "front", "door_ids": [doors[0]["id"]]}, headers=admin_headers
    ).json()["data"]
    assert door_group["door_ids"] == [doors[0]["id"]]

    sched = client.post("/api/group/sched", json={"name": "night", "windows": []}, headers=admin_headers).json()["data"]
    access = client.post(
        "/api/group/access",
        json={"name": "front-night", "door_group_id": door_group["id"], "sched_group_id": sched["id"]},
        headers=admin_headers,
    ).json()["data"]

    assert client.delete(f"/api/group/door/{door_group['id']}", headers=admin_headers).json()["code"] == 400
    assert client.delete(f"/api/group/sched/{sched['id']}", headers=admin_headers).json()["code"] == 400

    person = client.post("/api/people", json={"first_name": "Hold"}, headers=admin_headers).json()["data"]
    cred = client.post(
        "/api/credential", json={"people_id": person["id"], "card_no": "2"}, headers=admin_headers
    ).json()["data"]
    assigned = client.put(
        f"/api/credential/accessGroup/{cred['unique_id']}",
        json={"accessGroupId": access["id"]},
        headers=admin_headers,
    ).json()
    assert assigned["data"]["access_group_id"] == access["id"]
    assert client.delete(f"/api/group/access/{access['id']}", headers=admin_headers).json()["code"] == 400


def test_unknown_door_in_group(client, admin_headers):
    body = client.post("/api/group/door", json={"name": "bad", "door_ids": [424242]}, headers=admin_headers).json()
    assert body["code"] == 400


def test_bad_schedule_time_is_rejected(client, admin_headers):
    body = client.post(
        "/api/group/sched",
        json={"name": "bad", "windows": [{"weekday": 0, "start_time": "25:00", "end_time": "26:00"}]},
        headers=admin_headers,
    ).json()
    assert body["code"] == 400
    assert body["success"] is False


def test_private_door_group_stays_private(client, admin_headers):
    doors = client.get("/api/credential/alldoor", headers=admin_headers).json()["data"]
    person = client.post("/api/people", json={"first_name": "Solo"}, headers=admin_headers).json()["data"]
    cred = client.post(
        "/api/credential", json={"people_id": person["id"], "card_no": "3"}, headers=admin_headers
    ).json()["data"]
    sched = client.post("/api/group/sched", json={"name": "any", "windows": []}, headers=admin_headers).json()["data"]
    client.patch(
        f"/api/credential/door/{cred['unique_id']}",
        json={"doorIds": [doors[0]["id"]], "schedGroupId": sched["id"]},
        headers=admin_headers,
    )
    private = client.get(
        "/api/group/access", params={"include_private": True}, headers=admin_headers
    ).json()["data"]
    private_door_group = next(g["door_group_id"] for g in private if g["owner_credential_id"] == cred["unique_id"])

    listed = client.get("/api/group/door", headers=admin_headers).json()["data"]
    assert private_door_group not in {g["id"] for g in listed}

    shared = client.post(
        "/api/group/access",
        json={"name": "borrowed", "door_group_id": private_door_group, "sched_group_id": sched["id"]},
        headers=admin_headers,
    ).json()
    assert shared["code"] == 400


def test_people_import(client, admin_headers, monkeypatch):
    synced = []
    monkeypatch.setattr("acs_backend.api.v1.people.data_sync", lambda settings: synced.append(True))
    dept = client.post("/api/department", json={"name": "Night shift"}, headers=admin_headers).json()["data"]

    body = client.post(
        "/api/people/import",
        json={
            "people": [
                {"first_name": "Ana", "code": "E1", "department_id": dept["id"], "card_no": "1001"},
                {"first_name": "Ben", "code": "E2"},
            ]
        },
        headers=admin_headers,
    ).json()
    assert body["success"] is True
    assert body["data"]["imported"] == 2
    assert len(body["data"]["credential_ids"]) == 1
    assert synced == [True]

    cred = client.get(f"/api/credential/{body['data']['credential_ids'][0]}", headers=admin_headers).json()["data"]
    assert cred["people_id"] == body["data"]["people_ids"][0]
    assert cred["card_no"] == "1001"


def test_people_import_is_all_or_nothing(client, admin_headers):
    body = client.post(
        "/api/people/import",
        json={"people": [{"first_name": "Cy"}, {"first_name": "Di", "department_id": 4242}]},
        headers=admin_headers,
    ).json()
    assert body["code"] == 400
    listed = client.get("/api/people", params={"q": "Cy"}, headers=admin_headers).json()["data"]
    assert listed["total"] == 0
