"""
Configuration for the access controller management backend.

Settings are loaded from environment variables or a `.env` file next to
the project root. Defaults are suitable for running on a development
machine; on the controller itself the four store paths and the device
backend URL are provided by the deployment environment.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from pathlib import Path
from dotenv import load_dotenv
import logging
import os

ENV_PATH = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(ENV_PATH, override=False)


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    # The four physically separate SQLite stores.
    config_db_path: str = Field(default="./appdata/db/config.db", alias="CONFIG_DB_PATH")
    credential_db_path: str = Field(default="./appdata/db/credential.db", alias="CREDENTIAL_DB_PATH")
    group_db_path: str = Field(default="./appdata/db/othergroup.db", alias="GROUP_DB_PATH")
    event_db_path: str = Field(default="./appdata/db/eventmessage.db", alias="EVENT_DB_PATH")

    jwt_secret: str = Field(default="", alias="ACS_JWT_SECRET")
    token_ttl_minutes: int = Field(default=1440, alias="ACS_TOKEN_TTL_MIN")

    # On-device backend that talks to the interface boards.
    device_backend_url: str = Field(default="http://127.0.0.1:8080/", alias="DEVICE_BACKEND_URL")
    device_timeout_sec: float = Field(default=10.0, alias="DEVICE_TIMEOUT_SEC")
    device_sync_enabled: bool = Field(default=False, alias="DEVICE_SYNC_ENABLED")
    clock_command_timeout_sec: float = Field(default=5.0, alias="CLOCK_COMMAND_TIMEOUT_SEC")

    auto_create_db: bool = Field(default=True, alias="AUTO_CREATE_DB")
    auto_seed: bool = Field(default=True, alias="AUTO_SEED")
    admin_username: str = Field(default="admin", alias="ACS_ADMIN_USERNAME")
    admin_password: str | None = Field(default=None, alias="ACS_ADMIN_PASSWORD")
    factory_username: str = Field(default="factory", alias="ACS_FACTORY_USERNAME")
    factory_password: str | None = Field(default=None, alias="ACS_FACTORY_PASSWORD")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, alias="LOG_FILE")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings()


def get_app_env() -> str:
    raw = os.getenv("ACS_ENV") or os.getenv("APP_ENV") or "dev"
    env = raw.strip().lower()
    if env not in {"dev", "prod"}:
        logging.getLogger("config").warning("Unknown ACS_ENV=%s; defaulting to dev", raw)
        env = "dev"
    return env


def _is_weak_secret(secret: str | None) -> bool:
    if not secret:
        return True
    secret = secret.strip()
    if len(secret) < 20:
        return True
    weak = {"secret", "change-me", "changeme", "password", "admin", "secretkey"}
    return secret.lower() in weak


def validate_runtime_settings(settings: Settings) -> None:
    env = get_app_env()
    logger = logging.getLogger("config")

    if env == "prod":
        if _is_weak_secret(settings.jwt_secret):
            raise RuntimeError("ACS_JWT_SECRET must be set to a strong value in prod.")
        if settings.device_sync_enabled is False:
            logger.warning("DEVICE_SYNC_ENABLED is false in prod; the device backend will not reload data.")
        if settings.auto_seed and settings.admin_password:
            logger.warning("ACS_ADMIN_PASSWORD is set in prod. Remove it once the admin account exists.")
    else:
        if _is_weak_secret(settings.jwt_secret):
            logger.warning("ACS_JWT_SECRET is weak or missing; dev fallback will be used.")

    if settings.token_ttl_minutes < 1:
        raise RuntimeError("ACS_TOKEN_TTL_MIN must be at least 1 minute.")
    if settings.device_timeout_sec <= 0:
        raise RuntimeError("DEVICE_TIMEOUT_SEC must be positive.")
    if not settings.device_backend_url.endswith("/"):
        logger.warning("DEVICE_BACKEND_URL has no trailing slash; one will be appended.")
