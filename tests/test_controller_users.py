from acs_backend.core.db import SessionContext
from acs_backend.models.controller_user import ControllerUser
from acs_backend.models.device import ControllerProp

from conftest import ADMIN_PASSWORD, FACTORY_PASSWORD, auth, login


def test_login_failures_are_indistinguishable(client):
    unknown = client.post("/api/controllerUser/login", json={"username": "nobody", "password": "x"}).json()
    wrong = client.post("/api/controllerUser/login", json={"username": "admin", "password": "wrong"}).json()
    assert unknown == wrong
    assert unknown == {"code": 404, "success": False, "message": "invalid username or password"}


def test_login_returns_user_type(client):
    resp = client.post("/api/controllerUser/login", json={"username": "admin", "password": ADMIN_PASSWORD})
    data = resp.json()["data"]
    assert data["user_type"] == 2
    assert data["token"]
    assert isinstance(data["id"], int)


def test_change_password_keeps_session(client, admin_headers):
    resp = client.patch(
        "/api/controllerUser",
        json={"password": "wrong", "new_password": "new-pass-456"},
        headers=admin_headers,
    )
    assert resp.json()["code"] == 400

    resp = client.patch(
        "/api/controllerUser",
        json={"password": ADMIN_PASSWORD, "new_password": "new-pass-456"},
        headers=admin_headers,
    )
    assert resp.json()["success"] is True

    # Current session keeps working; the new password is required for the next login.
    assert client.get("/api/controllerUser/tokenVerify", headers=admin_headers).json()["code"] == 200
    old = client.post("/api/controllerUser/login", json={"username": "admin", "password": ADMIN_PASSWORD}).json()
    assert old["code"] == 404
    assert login(client, "admin", "new-pass-456")


def test_create_user_and_duplicate(client, admin_headers):
    payload = {"username": "guard", "password": "guard-pass", "user_type": 3, "permission4": 1}
    body = client.post("/api/controllerUser", json=payload, headers=admin_headers).json()
    assert body["success"] is True
    assert body["data"]["permission4"] == 1
    assert body["data"]["permission1"] == 0
    assert "password_hash" not in body["data"]

    dup = client.post("/api/controllerUser", json=payload, headers=admin_headers).json()
    assert dup["code"] == 400


def test_sparse_user_update(client, admin_headers):
    created = client.post(
        "/api/controllerUser",
        json={"username": "ops", "password": "ops-pass", "user_type": 3, "permission2": 1, "permission5": 1},
        headers=admin_headers,
    ).json()["data"]

    body = client.patch(
        f"/api/controllerUser/{created['id']}",
        json={"permission2": 0, "permission5": None},
        headers=admin_headers,
    ).json()
    assert body["data"]["permission2"] == 0
    assert body["data"]["permission5"] == 1
    assert body["data"]["user_type"] == 3


def test_ownsa_permission_bits_gate_routes(client, admin_headers):
    client.post(
        "/api/controllerUser",
        json={"username": "viewer", "password": "viewer-pass", "user_type": 3, "permission4": 0},
        headers=admin_headers,
    )
    viewer = auth(login(client, "viewer", "viewer-pass"))
    resp = client.post("/api/department", json={"name": "Ops"}, headers=viewer)
    assert resp.json() == {"code": 403, "success": False, "message": "Permission denied"}

    # Managers are not subject to permission bits.
    resp = client.post("/api/department", json={"name": "Ops"}, headers=admin_headers)
    assert resp.json()["success"] is True


def test_factory_set_requires_factory_account(client, settings, admin_headers, monkeypatch):
    monkeypatch.setattr("acs_backend.services.controller_users.os.sync", lambda: None, raising=False)
    payload = {"bp_type": 99, "is_double_line": True, "is_ownsa": False, "is_bak_ctl": True}

    refused = client.post("/api/device/factorySet", json=payload, headers=admin_headers).json()
    assert refused["code"] == 403

    factory = auth(login(client, "factory", FACTORY_PASSWORD))
    body = client.post("/api/device/factorySet", json=payload, headers=factory).json()
    assert body["success"] is True
    assert body["data"] == {"bp_type": 99, "product_type": 0, "is_double_line": 1, "is_ownsa": 0, "is_bak_ctl": 1}

    public = client.get("/api/device/factorySet").json()
    assert public["data"]["bp_type"] == 99


def test_factory_set_leaves_controller_name(client, monkeypatch):
    monkeypatch.setattr("acs_backend.services.controller_users.os.sync", lambda: None, raising=False)
    app = client.app
    with SessionContext(app.state.stores.ConfigSession) as db:
        prop = db.get(ControllerProp, 1)
        prop.controller_name = "Lobby"
        db.commit()

    factory = auth(login(client, "factory", FACTORY_PASSWORD))
    client.post(
        "/api/device/factorySet",
        json={"is_double_line": False, "is_ownsa": True, "is_bak_ctl": False},
        headers=factory,
    )
    with SessionContext(app.state.stores.ConfigSession) as db:
        prop = db.get(ControllerProp, 1)
        assert prop.controller_name == "Lobby"
        assert prop.is_ownsa == 1


def test_manager_cannot_grant_factory_type(client, admin_headers, monkeypatch):
    monkeypatch.setattr("acs_backend.services.controller_users.os.sync", lambda: None, raising=False)
    me = client.get("/api/controllerUser/tokenVerify", headers=admin_headers).json()["data"]

    promoted = client.patch(f"/api/controllerUser/{me['id']}", json={"user_type": 1}, headers=admin_headers).json()
    assert promoted["code"] == 403
    refused = client.post(
        "/api/device/factorySet",
        json={"bp_type": 5, "is_double_line": False, "is_ownsa": False, "is_bak_ctl": False},
        headers=admin_headers,
    ).json()
    assert refused["code"] == 403

    created = client.post(
        "/api/controllerUser",
        json={"username": "fake-factory", "password": "fake-pass", "user_type": 1},
        headers=admin_headers,
    ).json()
    assert created["code"] == 403
    assert login_failed(client, "fake-factory", "fake-pass")


def test_manager_cannot_revoke_or_remove_factory_account(client, admin_headers):
    users = client.get("/api/controllerUser", headers=admin_headers).json()["data"]
    factory_id = next(u["id"] for u in users if u["username"] == "factory")

    assert client.patch(
        f"/api/controllerUser/{factory_id}", json={"user_type": 2}, headers=admin_headers
    ).json()["code"] == 403
    assert client.delete(f"/api/controllerUser/{factory_id}", headers=admin_headers).json()["code"] == 403
    assert login(client, "factory", FACTORY_PASSWORD)


def test_factory_account_may_grant_factory_type(client):
    factory = auth(login(client, "factory", FACTORY_PASSWORD))
    body = client.post(
        "/api/controllerUser",
        json={"username": "installer", "password": "installer-pass", "user_type": 1},
        headers=factory,
    ).json()
    assert body["success"] is True
    assert body["data"]["user_type"] == 1


def test_deleted_user_keeps_row_and_loses_session(client, admin_headers):
    created = client.post(
        "/api/controllerUser",
        json={"username": "bob", "password": "bob-pass", "user_type": 2},
        headers=admin_headers,
    ).json()["data"]
    bob = auth(login(client, "bob", "bob-pass"))

    assert client.delete(f"/api/controllerUser/{created['id']}", headers=admin_headers).json()["success"] is True

    with SessionContext(client.app.state.stores.ConfigSession) as db:
        row = db.get(ControllerUser, created["id"])
        assert row is not None
        assert row.deleted_at is not None
        assert row.token == ""

    assert client.get("/api/controllerUser/tokenVerify", headers=bob).json()["code"] == 401
    assert login_failed(client, "bob", "bob-pass")
    assert client.get(f"/api/controllerUser/{created['id']}", headers=admin_headers).json()["code"] == 404
    listed = client.get("/api/controllerUser", headers=admin_headers).json()["data"]
    assert "bob" not in {u["username"] for u in listed}


def login_failed(client, username, password) -> bool:
    body = client.post("/api/controllerUser/login", json={"username": username, "password": password}).json()
    return body["success"] is False
