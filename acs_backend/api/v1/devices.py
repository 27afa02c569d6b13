"""
Controller settings, interface boards and device commands.

Door, fire-alarm and status requests are relayed to the device backend;
see ``services.device_relay``.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sqlalchemy.orm import Session

from ...core.auth import (
    PERM_DEVICE_MAINTENANCE,
    PERM_DEVICE_MANAGEMENT,
    PERM_SYSTEM_SETTINGS,
    UserContext,
    get_app_settings,
    get_current_user,
    require_permission,
)
from ...core.db import get_config_db, get_group_db
from ...core.responses import envelope
from ...schemas.device import (
    ControllerPropResponse,
    ControllerPropUpdate,
    DoorOpenIn,
    FactorySetIn,
    FactorySetResponse,
    FireCancelIn,
    InterfaceBoardCreate,
    InterfaceBoardResponse,
    InterfaceBoardUpdate,
    TimeSyncIn,
)
from ...services import controller_users as users
from ...services import devices as device_service
from ...services.device_relay import DeviceRelay
from ...services.device_sync import config_sync, data_sync


public_router = APIRouter(prefix="/api/device", tags=["device"])
router = APIRouter(prefix="/api/device", tags=["device"])


def get_device_relay(request: Request) -> DeviceRelay:
    relay = getattr(request.app.state, "device_relay", None)
    if relay is None:
        relay = DeviceRelay.from_settings(get_app_settings(request))
        request.app.state.device_relay = relay
    return relay


@public_router.get("/factorySet")
def get_factory_set(db: Session = Depends(get_config_db)) -> dict:
    return envelope(FactorySetResponse.model_validate(users.get_factory_set(db)))


@router.post("/factorySet")
def factory_set(
    payload: FactorySetIn,
    request: Request,
    background_tasks: BackgroundTasks,
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_config_db),
) -> dict:
    prop = users.factory_set(db, user.user_id, payload)
    background_tasks.add_task(config_sync, get_app_settings(request))
    return envelope(FactorySetResponse.model_validate(prop))


@router.get("/controller")
def get_controller(
    _: UserContext = Depends(require_permission(PERM_SYSTEM_SETTINGS)),
    db: Session = Depends(get_config_db),
) -> dict:
    return envelope(ControllerPropResponse.model_validate(device_service.get_controller_prop(db)))


@router.post("/controller")
def update_controller(
    payload: ControllerPropUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    _: UserContext = Depends(require_permission(PERM_SYSTEM_SETTINGS)),
    db: Session = Depends(get_config_db),
) -> dict:
    prop = device_service.update_controller_prop(db, payload)
    background_tasks.add_task(config_sync, get_app_settings(request))
    return envelope(ControllerPropResponse.model_validate(prop))


@router.get("/interfaceBoard")
def list_interface_boards(
    ib_type: Optional[int] = Query(None),
    _: UserContext = Depends(require_permission(PERM_DEVICE_MANAGEMENT)),
    db: Session = Depends(get_config_db),
) -> dict:
    boards = device_service.list_interface_boards(db, ib_type=ib_type)
    return envelope([InterfaceBoardResponse.model_validate(b) for b in boards])


@router.post("/interfaceBoard")
def add_interface_board(
    payload: InterfaceBoardCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    _: UserContext = Depends(require_permission(PERM_DEVICE_MANAGEMENT)),
    db: Session = Depends(get_config_db),
) -> dict:
    board = device_service.add_interface_board(db, payload)
    background_tasks.add_task(config_sync, get_app_settings(request))
    return envelope(InterfaceBoardResponse.model_validate(board))


@router.get("/interfaceBoard/{board_id}")
def get_interface_board(
    board_id: int,
    _: UserContext = Depends(require_permission(PERM_DEVICE_MANAGEMENT)),
    db: Session = Depends(get_config_db),
) -> dict:
    return envelope(InterfaceBoardResponse.model_validate(device_service.get_interface_board(db, board_id)))


@router.patch("/interfaceBoard/{board_id}")
def update_interface_board(
    board_id: int,
    payload: InterfaceBoardUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    _: UserContext = Depends(require_permission(PERM_DEVICE_MANAGEMENT)),
    db: Session = Depends(get_config_db),
) -> dict:
    board = device_service.update_interface_board(db, board_id, payload)
    background_tasks.add_task(config_sync, get_app_settings(request))
    return envelope(InterfaceBoardResponse.model_validate(board))


@router.delete("/interfaceBoard/{board_id}")
def delete_interface_board(
    board_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
    _: UserContext = Depends(require_permission(PERM_DEVICE_MANAGEMENT)),
    db: Session = Depends(get_config_db),
    group_db: Session = Depends(get_group_db),
) -> dict:
    device_service.delete_interface_board(db, group_db, board_id)
    settings = get_app_settings(request)
    background_tasks.add_task(config_sync, settings)
    background_tasks.add_task(data_sync, settings)
    return envelope(message="deleted")


@router.get("/statusSync")
def status_sync(
    _: UserContext = Depends(require_permission(PERM_DEVICE_MAINTENANCE)),
    relay: DeviceRelay = Depends(get_device_relay),
) -> dict:
    return envelope(relay.status_sync())


@router.post("/doorOpen")
def door_open(
    payload: DoorOpenIn,
    _: UserContext = Depends(require_permission(PERM_DEVICE_MAINTENANCE)),
    relay: DeviceRelay = Depends(get_device_relay),
) -> dict:
    return envelope(relay.open_door(payload.ibaddr, payload.outputaddr, payload.mode))


@router.post("/fireCancel")
def fire_cancel(
    payload: FireCancelIn,
    _: UserContext = Depends(require_permission(PERM_DEVICE_MAINTENANCE)),
    relay: DeviceRelay = Depends(get_device_relay),
) -> dict:
    return envelope(relay.cancel_fire_alarm(payload.ibaddr))


@router.post("/timeSync")
def time_sync(
    payload: TimeSyncIn,
    _: UserContext = Depends(require_permission(PERM_DEVICE_MAINTENANCE)),
    relay: DeviceRelay = Depends(get_device_relay),
) -> dict:
    return envelope(relay.sync_device_time(payload.datetime))
