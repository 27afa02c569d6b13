from datetime import datetime

import pytest

from acs_backend.core.db import SessionContext
from acs_backend.core.errors import NotFound, ValidationError
from acs_backend.models.credential import CredentialAccess
from acs_backend.models.group import AccessGroup
from acs_backend.schemas.credential import CredentialCreate, CredentialUpdate
from acs_backend.schemas.device import InterfaceBoardCreate
from acs_backend.schemas.group import SchedGroupCreate, SchedWindowIn
from acs_backend.schemas.people import PeopleCreate
from acs_backend.services import credentials, groups, people
from acs_backend.services.devices import add_interface_board


@pytest.fixture
def sessions(stores):
    with SessionContext(stores.CredentialSession) as cred_db, SessionContext(
        stores.GroupSession
    ) as group_db, SessionContext(stores.ConfigSession) as config_db:
        yield cred_db, group_db, config_db


@pytest.fixture
def fixture_data(sessions):
    cred_db, group_db, config_db = sessions
    board = add_interface_board(config_db, InterfaceBoardCreate(ib_addr=1, ib_type=1, name="Lobby"))
    door_a, door_b = sorted(d.id for d in board.doors)
    board2 = add_interface_board(config_db, InterfaceBoardCreate(ib_addr=2, ib_type=1, name="Lab"))
    door_c = min(d.id for d in board2.doors)
    person = people.create_people(cred_db, PeopleCreate(first_name="Ada", last_name="Lovelace"))
    sched = groups.create_sched_group(
        group_db,
        SchedGroupCreate(name="always", windows=[SchedWindowIn(weekday=d, start_time="00:00", end_time="23:59") for d in range(7)]),
    )
    return {"doors": (door_a, door_b, door_c), "people_id": person.id, "sched_id": sched.id}


def test_create_and_read_back_with_defaults(sessions, fixture_data):
    cred_db, _, _ = sessions
    cred = credentials.create_credential(
        cred_db, CredentialCreate(people_id=fixture_data["people_id"], card_no="12345", facility_code=7)
    )
    loaded = credentials.get_credential(cred_db, cred.unique_id)
    assert loaded.card_no == "12345"
    assert loaded.facility_code == 7
    assert loaded.status == 1
    assert loaded.biometric is None
    assert loaded.valid_from is None and loaded.valid_to is None


def test_create_for_unknown_person_is_rejected(sessions):
    cred_db, _, _ = sessions
    with pytest.raises(ValidationError):
        credentials.create_credential(cred_db, CredentialCreate(people_id=404, card_no="1"))


def test_sparse_patch_keeps_omitted_and_null_fields(sessions, fixture_data):
    cred_db, _, _ = sessions
    cred = credentials.create_credential(
        cred_db, CredentialCreate(people_id=fixture_data["people_id"], card_no="111", facility_code=3)
    )
    updated = credentials.update_credential(
        cred_db, cred.unique_id, CredentialUpdate.model_validate({"status": 0, "facility_code": None})
    )
    assert updated.status == 0
    assert updated.facility_code == 3
    assert updated.card_no == "111"


def test_update_door_access_replaces_the_set(sessions, fixture_data):
    cred_db, group_db, config_db = sessions
    door_a, door_b, door_c = fixture_data["doors"]
    cred = credentials.create_credential(cred_db, CredentialCreate(people_id=fixture_data["people_id"], card_no="9"))

    credentials.update_door_access(cred_db, group_db, config_db, cred.unique_id, [door_a, door_c], fixture_data["sched_id"])
    credentials.update_door_access(cred_db, group_db, config_db, cred.unique_id, [door_a, door_b], fixture_data["sched_id"])

    doors = credentials.list_doors(cred_db, group_db, config_db, cred.unique_id)
    assert {d.id for d in doors} == {door_a, door_b}
    # The private group is reused, not duplicated.
    assert group_db.query(AccessGroup).filter(AccessGroup.owner_credential_id == cred.unique_id).count() == 1


def test_update_door_access_validates_ids(sessions, fixture_data):
    cred_db, group_db, config_db = sessions
    door_a, _, _ = fixture_data["doors"]
    cred = credentials.create_credential(cred_db, CredentialCreate(people_id=fixture_data["people_id"], card_no="9"))

    with pytest.raises(ValidationError):
        credentials.update_door_access(cred_db, group_db, config_db, cred.unique_id, [door_a, 9999], fixture_data["sched_id"])
    with pytest.raises(ValidationError):
        credentials.update_door_access(cred_db, group_db, config_db, cred.unique_id, [door_a], 9999)
    assert credentials.list_doors(cred_db, group_db, config_db, cred.unique_id) == []


def test_delete_removes_access_rows(sessions, fixture_data):
    cred_db, group_db, config_db = sessions
    door_a, _, _ = fixture_data["doors"]
    cred = credentials.create_credential(cred_db, CredentialCreate(people_id=fixture_data["people_id"], card_no="9"))
    cred_id = cred.unique_id
    credentials.update_door_access(cred_db, group_db, config_db, cred_id, [door_a], fixture_data["sched_id"])

    credentials.delete_credential(cred_db, group_db, cred_id)

    assert cred_db.query(CredentialAccess).filter(CredentialAccess.credential_id == cred_id).count() == 0
    assert group_db.query(AccessGroup).filter(AccessGroup.owner_credential_id == cred_id).count() == 0
    with pytest.raises(NotFound):
        credentials.list_doors(cred_db, group_db, config_db, cred_id)


def test_list_doors_without_access_is_empty(sessions, fixture_data):
    cred_db, group_db, config_db = sessions
    cred = credentials.create_credential(cred_db, CredentialCreate(people_id=fixture_data["people_id"], card_no="1"))
    assert credentials.list_doors(cred_db, group_db, config_db, cred.unique_id) == []
    with pytest.raises(NotFound):
        credentials.list_doors(cred_db, group_db, config_db, 12345)


def test_validity_window_must_be_ordered(sessions, fixture_data):
    cred_db, _, _ = sessions
    with pytest.raises(ValidationError):
        credentials.create_credential(
            cred_db,
            CredentialCreate(
                people_id=fixture_data["people_id"],
                card_no="1",
                valid_from=datetime(2025, 2, 1),
                valid_to=datetime(2025, 1, 1),
            ),
        )


def test_credential_routes(client, admin_headers):
    person = client.post("/api/people", json={"first_name": "Grace"}, headers=admin_headers).json()["data"]
    created = client.post(
        "/api/credential",
        json={"people_id": person["id"], "card_no": "5555"},
        headers=admin_headers,
    ).json()
    assert created["success"] is True
    cred_id = created["data"]["unique_id"]

    doors = client.get("/api/credential/alldoor", headers=admin_headers).json()["data"]
    door_ids = [d["id"] for d in doors]
    assert len(door_ids) == 2  # built-in MT2 board

    sched = client.post(
        "/api/group/sched",
        json={"name": "office", "windows": [{"weekday": 1, "start_time": "09:00", "end_time": "18:00"}]},
        headers=admin_headers,
    ).json()["data"]

    body = client.patch(
        f"/api/credential/door/{cred_id}",
        json={"doorIds": door_ids, "schedGroupId": sched["id"]},
        headers=admin_headers,
    ).json()
    assert body["success"] is True
    assert sorted(d["id"] for d in body["data"]["doors"]) == sorted(door_ids)
    assert body["data"]["sched_group_id"] == sched["id"]

    # Tuesday 10:00 is inside the window.
    decision = client.get(
        f"/api/credential/access/{cred_id}",
        params={"door_id": door_ids[0], "at": "2025-01-07T10:00:00"},
        headers=admin_headers,
    ).json()["data"]
    assert decision["granted"] is True

    resp = client.delete(f"/api/credential/{cred_id}", headers=admin_headers).json()
    assert resp["success"] is True
    missing = client.get(f"/api/credential/door/{cred_id}", headers=admin_headers).json()
    assert missing["code"] == 404
