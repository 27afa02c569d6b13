import pytest

from acs_backend.core import config
from acs_backend.core.security import jwt_secret

from conftest import make_settings


def test_prod_refuses_weak_secret(tmp_path, monkeypatch):
    monkeypatch.setenv("ACS_ENV", "prod")
    with pytest.raises(RuntimeError):
        config.validate_runtime_settings(make_settings(tmp_path, ACS_JWT_SECRET="secret"))


def test_dev_falls_back_to_dev_secret(tmp_path, monkeypatch):
    monkeypatch.setenv("ACS_ENV", "dev")
    settings = make_settings(tmp_path, ACS_JWT_SECRET="")
    config.validate_runtime_settings(settings)
    assert jwt_secret(settings) == "dev-jwt-secret-change-me"


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("DEVICE_TIMEOUT_SEC", "4.5")
    monkeypatch.setenv("DEVICE_BACKEND_URL", "http://10.0.0.2:8080/")
    settings = config.get_settings()
    assert settings.device_timeout_sec == 4.5
    assert settings.device_backend_url == "http://10.0.0.2:8080/"
    assert settings.token_ttl_minutes == 1440


def test_unknown_env_defaults_to_dev(monkeypatch):
    monkeypatch.setenv("ACS_ENV", "staging")
    assert config.get_app_env() == "dev"
