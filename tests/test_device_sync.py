import requests

from acs_backend.services import device_sync

from conftest import auth, login, make_settings


class _Resp:
    status_code = 200
    text = '{"retcode": 0}'

    def json(self):
        return {"retcode": 0}


def test_sync_disabled_makes_no_call(tmp_path, monkeypatch):
    def _post(*_args, **_kwargs):
        raise AssertionError("no request expected")

    monkeypatch.setattr(device_sync.requests, "post", _post)
    assert device_sync.data_sync(make_settings(tmp_path)) is False


def test_sync_posts_type(tmp_path, monkeypatch):
    calls = []

    def _post(url, data=None, timeout=None):
        calls.append((url, data, timeout))
        return _Resp()

    monkeypatch.setattr(device_sync.requests, "post", _post)
    settings = make_settings(tmp_path, DEVICE_SYNC_ENABLED=True)
    assert device_sync.config_sync(settings) is True
    assert calls == [("http://device.test/api/datasync", {"type": "3"}, 2.0)]


def test_sync_failure_is_swallowed(tmp_path, monkeypatch):
    def _post(url, data=None, timeout=None):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(device_sync.requests, "post", _post)
    assert device_sync.data_sync(make_settings(tmp_path, DEVICE_SYNC_ENABLED=True)) is False


def test_credential_change_triggers_data_sync(client, monkeypatch):
    synced = []
    monkeypatch.setattr(
        "acs_backend.api.v1.credentials.data_sync", lambda settings: synced.append(settings.device_backend_url)
    )
    headers = auth(login(client))
    person = client.post("/api/people", json={"first_name": "Sync"}, headers=headers).json()["data"]
    client.post("/api/credential", json={"people_id": person["id"], "card_no": "77"}, headers=headers)
    assert synced == ["http://device.test/"]
