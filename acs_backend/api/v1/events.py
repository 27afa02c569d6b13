"""
Event log endpoints.

``/api/event/ws`` lets the web UI follow the log: the client sends the
last message id it has seen and receives the rows written after it.
``/api/event/sync`` does the same over HTTP after asking the device
backend to flush its buffered events.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from ...core.auth import PERM_STATISTICS, UserContext, require_permission
from ...core.db import SessionContext, get_event_db
from ...core.errors import AuthError
from ...core.pagination import DEFAULT_PAGE_SIZE, paginate
from ...core.responses import envelope
from ...core.security import jwt_secret
from ...schemas.event_message import EventMessageResponse
from ...services import events as event_service
from ...services.device_relay import DeviceRelay
from ...services.sessions import verify_token
from .devices import get_device_relay


router = APIRouter(prefix="/api/event", tags=["event"])
ws_router = APIRouter(prefix="/api/event", tags=["event"])

statistics = require_permission(PERM_STATISTICS)


@router.get("")
def list_events(
    event_type: Optional[str] = Query(None, max_length=64),
    people_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    _: UserContext = Depends(statistics),
    db: Session = Depends(get_event_db),
) -> dict:
    query = event_service.event_query(db, event_type=event_type, people_id=people_id)
    return envelope(paginate(query, page, page_size, schema=EventMessageResponse))


@router.get("/peopletime")
def events_in_range(
    start_time: datetime = Query(..., alias="startTime"),
    end_time: datetime = Query(..., alias="endTime"),
    people_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    _: UserContext = Depends(statistics),
    db: Session = Depends(get_event_db),
) -> dict:
    query = event_service.event_query(db, people_id=people_id, start_time=start_time, end_time=end_time)
    return envelope(paginate(query, page, page_size, schema=EventMessageResponse))


@router.get("/sync")
def sync_events(
    last_id: int = Query(0, alias="lastId", ge=0),
    _: UserContext = Depends(statistics),
    relay: DeviceRelay = Depends(get_device_relay),
    db: Session = Depends(get_event_db),
) -> dict:
    """Have the device backend flush its buffered events, then return the rows after ``lastId``."""
    relay.event_sync()
    rows = event_service.events_after(db, last_id)
    return envelope([EventMessageResponse.model_validate(r) for r in rows])


@router.get("/{message_id}")
def get_event(
    message_id: int,
    _: UserContext = Depends(statistics),
    db: Session = Depends(get_event_db),
) -> dict:
    return envelope(EventMessageResponse.model_validate(event_service.get_event(db, message_id)))


@ws_router.websocket("/ws")
async def follow_events(websocket: WebSocket, token: Optional[str] = Query(None)) -> None:
    logger = logging.getLogger("events-ws")
    stores = websocket.app.state.stores
    settings = websocket.app.state.settings
    raw = token or websocket.cookies.get("X-Authorization") or ""
    try:
        with SessionContext(stores.ConfigSession) as db:
            user_id = verify_token(db, raw, secret=jwt_secret(settings))
    except AuthError as exc:
        logger.info("Event stream refused: %s", exc.reason.value)
        await websocket.close(code=1008)
        return

    await websocket.accept()
    logger.info("Event stream opened user_id=%s", user_id)
    try:
        while True:
            data = (await websocket.receive_text()).strip()
            if data == "ping":
                await websocket.send_json({"type": "pong"})
                continue
            try:
                last_id = int(data) if data else 0
            except ValueError:
                await websocket.send_json(envelope(code=400, success=False, message="expected a message id"))
                continue
            with SessionContext(stores.EventSession) as db:
                rows = event_service.events_after(db, last_id)
                items = [EventMessageResponse.model_validate(r) for r in rows]
            await websocket.send_json(jsonable_encoder(envelope(items)))
    except WebSocketDisconnect:
        logger.info("Event stream closed user_id=%s", user_id)
