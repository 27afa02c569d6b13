from conftest import auth, login


def test_builtin_board_is_seeded(client, admin_headers):
    boards = client.get("/api/device/interfaceBoard", headers=admin_headers).json()["data"]
    assert len(boards) == 1
    assert boards[0]["is_builtin"] is True
    assert [d["output_addr"] for d in boards[0]["doors"]] == [1, 2]

    body = client.delete(f"/api/device/interfaceBoard/{boards[0]['id']}", headers=admin_headers).json()
    assert body["code"] == 400


def test_add_and_remove_board_scrubs_door_groups(client, admin_headers):
    board = client.post(
        "/api/device/interfaceBoard", json={"ib_addr": 5, "ib_type": 1, "name": "Gate"}, headers=admin_headers
    ).json()["data"]
    door_ids = [d["id"] for d in board["doors"]]
    assert len(door_ids) == 2

    dup = client.post("/api/device/interfaceBoard", json={"ib_addr": 5, "ib_type": 3}, headers=admin_headers).json()
    assert dup["code"] == 400

    group = client.post("/api/group/door", json={"name": "gate", "door_ids": door_ids}, headers=admin_headers).json()["data"]
    client.delete(f"/api/device/interfaceBoard/{board['id']}", headers=admin_headers)

    group = client.get(f"/api/group/door/{group['id']}", headers=admin_headers).json()["data"]
    assert group["door_ids"] == []


def test_mio_board_has_no_doors(client, admin_headers):
    board = client.post("/api/device/interfaceBoard", json={"ib_addr": 9, "ib_type": 3}, headers=admin_headers).json()
    assert board["data"]["doors"] == []


def test_controller_props_sparse_update(client, admin_headers):
    body = client.post("/api/device/controller", json={"controller_name": "HQ"}, headers=admin_headers).json()
    assert body["data"]["controller_name"] == "HQ"
    body = client.post("/api/device/controller", json={"is_ownsa": 1}, headers=admin_headers).json()
    assert body["data"]["controller_name"] == "HQ"
    assert body["data"]["is_ownsa"] == 1


def test_device_routes_need_maintenance_bit(client, admin_headers):
    client.post(
        "/api/controllerUser",
        json={"username": "installer", "password": "installer-pass", "user_type": 3, "permission2": 1},
        headers=admin_headers,
    )
    installer = auth(login(client, "installer", "installer-pass"))
    assert client.get("/api/device/interfaceBoard", headers=installer).json()["success"] is True
    assert client.post("/api/device/fireCancel", json={"ibaddr": 0}, headers=installer).json()["code"] == 403


def test_rename_interface_board(client, admin_headers, monkeypatch):
    synced = []
    monkeypatch.setattr("acs_backend.api.v1.devices.config_sync", lambda settings: synced.append(True))
    board = client.post(
        "/api/device/interfaceBoard", json={"ib_addr": 7, "ib_type": 1, "name": "Side"}, headers=admin_headers
    ).json()["data"]

    body = client.patch(
        f"/api/device/interfaceBoard/{board['id']}", json={"name": "Loading dock"}, headers=admin_headers
    ).json()
    assert body["data"]["name"] == "Loading dock"
    assert body["data"]["ib_addr"] == 7

    unchanged = client.patch(
        f"/api/device/interfaceBoard/{board['id']}", json={"name": None}, headers=admin_headers
    ).json()
    assert unchanged["data"]["name"] == "Loading dock"

    fetched = client.get(f"/api/device/interfaceBoard/{board['id']}", headers=admin_headers).json()["data"]
    assert fetched["name"] == "Loading dock"
    assert len(fetched["doors"]) == 2
    assert len(synced) == 3
    assert client.get("/api/device/interfaceBoard/9999", headers=admin_headers).json()["code"] == 404
