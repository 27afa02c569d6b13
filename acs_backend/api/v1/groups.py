"""
Door, schedule and access group endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sqlalchemy.orm import Session

from ...core.auth import PERM_PEOPLE_MANAGEMENT, UserContext, get_app_settings, require_permission
from ...core.db import get_config_db, get_credential_db, get_group_db
from ...core.responses import envelope
from ...schemas.group import (
    AccessGroupCreate,
    AccessGroupResponse,
    DoorGroupCreate,
    SchedGroupCreate,
    SchedGroupResponse,
)
from ...services import groups as group_service
from ...services.device_sync import data_sync


router = APIRouter(prefix="/api/group", tags=["group"])

people_manager = require_permission(PERM_PEOPLE_MANAGEMENT)


@router.get("/door")
def list_door_groups(db: Session = Depends(get_group_db)) -> dict:
    return envelope([group_service.door_group_response(db, g) for g in group_service.list_door_groups(db)])


@router.post("/door")
def create_door_group(
    payload: DoorGroupCreate,
    _: UserContext = Depends(people_manager),
    db: Session = Depends(get_group_db),
    config_db: Session = Depends(get_config_db),
) -> dict:
    group = group_service.create_door_group(db, config_db, payload)
    return envelope(group_service.door_group_response(db, group))


@router.get("/door/{group_id}")
def get_door_group(group_id: int, db: Session = Depends(get_group_db)) -> dict:
    return envelope(group_service.door_group_response(db, group_service.get_door_group(db, group_id)))


@router.delete("/door/{group_id}")
def delete_door_group(
    group_id: int,
    _: UserContext = Depends(people_manager),
    db: Session = Depends(get_group_db),
) -> dict:
    group_service.delete_door_group(db, group_id)
    return envelope(message="deleted")


@router.get("/sched")
def list_sched_groups(db: Session = Depends(get_group_db)) -> dict:
    return envelope([SchedGroupResponse.model_validate(g) for g in group_service.list_sched_groups(db)])


@router.post("/sched")
def create_sched_group(
    payload: SchedGroupCreate,
    _: UserContext = Depends(people_manager),
    db: Session = Depends(get_group_db),
) -> dict:
    return envelope(SchedGroupResponse.model_validate(group_service.create_sched_group(db, payload)))


@router.get("/sched/{group_id}")
def get_sched_group(group_id: int, db: Session = Depends(get_group_db)) -> dict:
    return envelope(SchedGroupResponse.model_validate(group_service.get_sched_group(db, group_id)))


@router.delete("/sched/{group_id}")
def delete_sched_group(
    group_id: int,
    _: UserContext = Depends(people_manager),
    db: Session = Depends(get_group_db),
) -> dict:
    group_service.delete_sched_group(db, group_id)
    return envelope(message="deleted")


@router.get("/access")
def list_access_groups(
    include_private: bool = Query(False),
    db: Session = Depends(get_group_db),
) -> dict:
    groups = group_service.list_access_groups(db, include_private=include_private)
    return envelope([AccessGroupResponse.model_validate(g) for g in groups])


@router.post("/access")
def create_access_group(
    payload: AccessGroupCreate,
    _: UserContext = Depends(people_manager),
    db: Session = Depends(get_group_db),
) -> dict:
    return envelope(AccessGroupResponse.model_validate(group_service.create_access_group(db, payload)))


@router.get("/access/{group_id}")
def get_access_group(group_id: int, db: Session = Depends(get_group_db)) -> dict:
    return envelope(AccessGroupResponse.model_validate(group_service.get_access_group(db, group_id)))


@router.delete("/access/{group_id}")
def delete_access_group(
    group_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
    _: UserContext = Depends(people_manager),
    db: Session = Depends(get_group_db),
    cred_db: Session = Depends(get_credential_db),
) -> dict:
    group_service.delete_access_group(db, cred_db, group_id)
    background_tasks.add_task(data_sync, get_app_settings(request))
    return envelope(message="deleted")
