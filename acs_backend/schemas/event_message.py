"""
Pydantic schemas for the access event log.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class EventMessageResponse(BaseModel):
    message_id: int
    event_type: str
    ib_addr: int | None
    door_addr: int | None
    credential_id: int | None
    people_id: int | None
    card_no: str | None
    message: str | None
    occurred_at: datetime

    class Config:
        from_attributes = True
