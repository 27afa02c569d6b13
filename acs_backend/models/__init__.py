"""
SQLAlchemy model base classes for the controller backend.

Each of the four stores has its own declarative base so that its tables
are created in, and only in, its own SQLite file. Rows never reference a
table in another store through a foreign key; such references are plain
integer columns resolved by explicit lookups.
"""

from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class ConfigBase(DeclarativeBase):
    """Base for config-store models (users, controller, boards, doors)."""

    pass


class CredentialBase(DeclarativeBase):
    """Base for credential-store models (departments, people, credentials)."""

    pass


class GroupBase(DeclarativeBase):
    """Base for other-group-store models (door/sched/access groups)."""

    pass


class EventBase(DeclarativeBase):
    """Base for event-message-store models."""

    pass


from .controller_user import ControllerUser  # noqa: E402,F401
from .device import ControllerProp, InterfaceBoard, Door  # noqa: E402,F401
from .credential import Department, People, Credential, CredentialAccess  # noqa: E402,F401
from .group import DoorGroup, DoorGroupMember, SchedGroup, SchedWindow, AccessGroup  # noqa: E402,F401
from .event_message import EventMessageData  # noqa: E402,F401

__all__ = [
    "ConfigBase",
    "CredentialBase",
    "GroupBase",
    "EventBase",

    # Config store
    "ControllerUser",
    "ControllerProp",
    "InterfaceBoard",
    "Door",

    # Credential store
    "Department",
    "People",
    "Credential",
    "CredentialAccess",

    # Other-group store
    "DoorGroup",
    "DoorGroupMember",
    "SchedGroup",
    "SchedWindow",
    "AccessGroup",

    # Event-message store
    "EventMessageData",
]
