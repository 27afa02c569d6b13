"""
Read access to the event-message store.

Rows are written by the device backend; this API only reads them.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Query, Session

from ..core.errors import NotFound, ValidationError
from ..models.event_message import EventMessageData


def event_query(
    db: Session,
    *,
    event_type: Optional[str] = None,
    people_id: Optional[int] = None,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
) -> Query:
    if start_time is not None and end_time is not None and end_time < start_time:
        raise ValidationError("endTime must not be earlier than startTime")
    query = db.query(EventMessageData)
    if event_type:
        query = query.filter(EventMessageData.event_type == event_type)
    if people_id is not None:
        query = query.filter(EventMessageData.people_id == people_id)
    if start_time is not None:
        query = query.filter(EventMessageData.occurred_at >= start_time)
    if end_time is not None:
        query = query.filter(EventMessageData.occurred_at <= end_time)
    return query.order_by(EventMessageData.message_id.desc())


def get_event(db: Session, message_id: int) -> EventMessageData:
    row = db.get(EventMessageData, message_id)
    if row is None:
        raise NotFound(f"event {message_id} not found")
    return row


def events_after(db: Session, last_id: int, limit: int = 100) -> list[EventMessageData]:
    return (
        db.query(EventMessageData)
        .filter(EventMessageData.message_id > last_id)
        .order_by(EventMessageData.message_id.asc())
        .limit(limit)
        .all()
    )
