"""
Database session management for the controller backend.

The controller keeps its state in four SQLite files that are created,
backed up and reset independently: config, credential, other-group and
event-message. `create_stores` opens one SQLAlchemy engine and session
factory per file and returns them bundled in a `StoreHandles` object.
The handles are created once in `create_app` and kept on `app.state`;
request handlers receive sessions through the `get_*_db` dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import Settings


@dataclass
class StoreHandles:
    config_engine: Engine
    credential_engine: Engine
    group_engine: Engine
    event_engine: Engine
    ConfigSession: sessionmaker
    CredentialSession: sessionmaker
    GroupSession: sessionmaker
    EventSession: sessionmaker

    def dispose(self) -> None:
        for engine in (self.config_engine, self.credential_engine, self.group_engine, self.event_engine):
            engine.dispose()


def _sqlite_url(path: str) -> str:
    if path == ":memory:":
        return "sqlite+pysqlite://"
    return f"sqlite+pysqlite:///{path}"


def _enable_foreign_keys(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _create_sqlite_engine(path: str) -> Engine:
    if path == ":memory:":
        # One shared connection, otherwise every checkout sees an empty database.
        engine = create_engine(
            _sqlite_url(path),
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        Path(path).expanduser().parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(
            _sqlite_url(path),
            echo=False,
            future=True,
            connect_args={"check_same_thread": False, "timeout": 15},
        )
    event.listen(engine, "connect", _enable_foreign_keys)
    return engine


def _session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True, expire_on_commit=False)


def create_stores(settings: Settings) -> StoreHandles:
    config_engine = _create_sqlite_engine(settings.config_db_path)
    credential_engine = _create_sqlite_engine(settings.credential_db_path)
    group_engine = _create_sqlite_engine(settings.group_db_path)
    event_engine = _create_sqlite_engine(settings.event_db_path)
    return StoreHandles(
        config_engine=config_engine,
        credential_engine=credential_engine,
        group_engine=group_engine,
        event_engine=event_engine,
        ConfigSession=_session_factory(config_engine),
        CredentialSession=_session_factory(credential_engine),
        GroupSession=_session_factory(group_engine),
        EventSession=_session_factory(event_engine),
    )


def create_all_tables(stores: StoreHandles) -> None:
    """Create missing tables in each store from its own metadata."""
    from ..models import ConfigBase, CredentialBase, EventBase, GroupBase

    ConfigBase.metadata.create_all(bind=stores.config_engine)
    CredentialBase.metadata.create_all(bind=stores.credential_engine)
    GroupBase.metadata.create_all(bind=stores.group_engine)
    EventBase.metadata.create_all(bind=stores.event_engine)


def get_stores(request: Request) -> StoreHandles:
    stores = getattr(request.app.state, "stores", None)
    if stores is None:
        raise RuntimeError("Store handles are not initialised on the application")
    return stores


def _yield_session(factory: sessionmaker):
    db: Session = factory()
    try:
        yield db
    finally:
        db.close()


def get_config_db(request: Request):
    """Yield a config-store session for FastAPI dependencies."""
    yield from _yield_session(get_stores(request).ConfigSession)


def get_credential_db(request: Request):
    yield from _yield_session(get_stores(request).CredentialSession)


def get_group_db(request: Request):
    yield from _yield_session(get_stores(request).GroupSession)


def get_event_db(request: Request):
    yield from _yield_session(get_stores(request).EventSession)


class SessionContext:
    """Context manager for a store session outside of FastAPI."""

    def __init__(self, factory: sessionmaker) -> None:
        self.factory = factory

    def __enter__(self) -> Session:
        self.db = self.factory()
        return self.db

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.db.close()
