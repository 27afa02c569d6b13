"""
ORM model for access events reported by the device backend.

Rows are append-only and ordered by `message_id`, which clients use as a
cursor when following the log.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from . import EventBase


class EventMessageData(EventBase):
    __tablename__ = "event_messages"

    message_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_type: Mapped[str] = mapped_column(String(64), index=True)  # e.g. DOOR_OPEN, ACCESS_DENIED, FIRE_ALARM
    ib_addr: Mapped[int | None] = mapped_column(Integer, nullable=True)
    door_addr: Mapped[int | None] = mapped_column(Integer, nullable=True)
    credential_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    people_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    card_no: Mapped[str | None] = mapped_column(String(64), nullable=True)
    message: Mapped[str | None] = mapped_column(String, nullable=True)
    occurred_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
