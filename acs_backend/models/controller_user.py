"""
ORM model for controller users.

These accounts log in to the management API. Each account holds at most
one live session token; the token column is the authority consulted on
every authenticated request. Removed accounts keep their row with
``deleted_at`` set and are invisible to login and lookups.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from . import ConfigBase


USER_TYPE_INTERNAL = 0
USER_TYPE_FACTORY = 1
USER_TYPE_MANAGER = 2
USER_TYPE_OWNSA = 3

USER_TYPES = {USER_TYPE_INTERNAL, USER_TYPE_FACTORY, USER_TYPE_MANAGER, USER_TYPE_OWNSA}


class ControllerUser(ConfigBase):
    __tablename__ = "controller_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    token: Mapped[str] = mapped_column(String, default="")
    user_type: Mapped[int] = mapped_column(Integer, default=USER_TYPE_MANAGER)
    # Feature flags, only consulted for USER_TYPE_OWNSA accounts.
    permission1: Mapped[int] = mapped_column(Integer, default=0)  # system settings
    permission2: Mapped[int] = mapped_column(Integer, default=0)  # device management
    permission3: Mapped[int] = mapped_column(Integer, default=0)  # device maintenance
    permission4: Mapped[int] = mapped_column(Integer, default=0)  # people management
    permission5: Mapped[int] = mapped_column(Integer, default=0)  # statistics
    permission6: Mapped[int] = mapped_column(Integer, default=0)
    permission7: Mapped[int] = mapped_column(Integer, default=0)
    permission8: Mapped[int] = mapped_column(Integer, default=0)
    last_login_time: Mapped[int] = mapped_column(Integer, default=0)  # UNIX seconds
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
