"""
Credential endpoints: CRUD, per-credential door lists and access checks.

Every mutation asks the device backend to reload its data after the
response has been sent.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sqlalchemy.orm import Session

from ...core.auth import PERM_PEOPLE_MANAGEMENT, UserContext, get_app_settings, require_permission
from ...core.db import get_config_db, get_credential_db, get_group_db
from ...core.pagination import DEFAULT_PAGE_SIZE, paginate
from ...core.responses import envelope
from ...schemas.credential import (
    AccessDecisionResponse,
    CredentialAccessGroupIn,
    CredentialCreate,
    CredentialDoorUpdate,
    CredentialResponse,
    CredentialUpdate,
)
from ...schemas.device import DoorResponse
from ...services import credentials as credential_service
from ...services.access_resolver import check_access
from ...services.device_sync import data_sync
from ...services.devices import list_all_doors


router = APIRouter(prefix="/api/credential", tags=["credential"])

people_manager = require_permission(PERM_PEOPLE_MANAGEMENT)


def _schedule_sync(request: Request, background_tasks: BackgroundTasks) -> None:
    background_tasks.add_task(data_sync, get_app_settings(request))


@router.get("/alldoor")
def all_doors(config_db: Session = Depends(get_config_db)) -> dict:
    return envelope([DoorResponse.model_validate(d) for d in list_all_doors(config_db)])


@router.get("/door/{credential_id}")
def credential_doors(
    credential_id: int,
    db: Session = Depends(get_credential_db),
    group_db: Session = Depends(get_group_db),
    config_db: Session = Depends(get_config_db),
) -> dict:
    return envelope(credential_service.door_access(db, group_db, config_db, credential_id))


@router.patch("/door/{credential_id}")
def update_credential_doors(
    credential_id: int,
    payload: CredentialDoorUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    _: UserContext = Depends(people_manager),
    db: Session = Depends(get_credential_db),
    group_db: Session = Depends(get_group_db),
    config_db: Session = Depends(get_config_db),
) -> dict:
    credential_service.update_door_access(
        db, group_db, config_db, credential_id, payload.door_ids, payload.sched_group_id
    )
    _schedule_sync(request, background_tasks)
    return envelope(credential_service.door_access(db, group_db, config_db, credential_id))


@router.put("/accessGroup/{credential_id}")
def assign_access_group(
    credential_id: int,
    payload: CredentialAccessGroupIn,
    request: Request,
    background_tasks: BackgroundTasks,
    _: UserContext = Depends(people_manager),
    db: Session = Depends(get_credential_db),
    group_db: Session = Depends(get_group_db),
) -> dict:
    access = credential_service.assign_access_group(db, group_db, credential_id, payload.access_group_id)
    _schedule_sync(request, background_tasks)
    return envelope({"credential_id": access.credential_id, "access_group_id": access.access_group_id})


@router.get("/access/{credential_id}")
def access_decision(
    credential_id: int,
    door_id: int = Query(...),
    at: Optional[datetime] = Query(None, description="Defaults to now"),
    db: Session = Depends(get_credential_db),
    group_db: Session = Depends(get_group_db),
) -> dict:
    when = at or datetime.now()
    decision = check_access(db, group_db, credential_id, door_id, when)
    return envelope(
        AccessDecisionResponse(
            credential_id=credential_id,
            door_id=door_id,
            at=when,
            granted=decision.granted,
            reason=decision.reason.value if decision.reason else None,
        )
    )


@router.get("")
def list_credentials(
    people_id: Optional[int] = Query(None),
    status: Optional[int] = Query(None, ge=0, le=1),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    db: Session = Depends(get_credential_db),
) -> dict:
    query = credential_service.credential_query(db, people_id=people_id, status=status)
    return envelope(paginate(query, page, page_size, schema=CredentialResponse))


@router.post("")
def create_credential(
    payload: CredentialCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    _: UserContext = Depends(people_manager),
    db: Session = Depends(get_credential_db),
) -> dict:
    cred = credential_service.create_credential(db, payload)
    _schedule_sync(request, background_tasks)
    return envelope(CredentialResponse.model_validate(cred))


@router.get("/{credential_id}")
def get_credential(credential_id: int, db: Session = Depends(get_credential_db)) -> dict:
    return envelope(CredentialResponse.model_validate(credential_service.get_credential(db, credential_id)))


@router.patch("/{credential_id}")
def update_credential(
    credential_id: int,
    payload: CredentialUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    _: UserContext = Depends(people_manager),
    db: Session = Depends(get_credential_db),
) -> dict:
    cred = credential_service.update_credential(db, credential_id, payload)
    _schedule_sync(request, background_tasks)
    return envelope(CredentialResponse.model_validate(cred))


@router.delete("/{credential_id}")
def delete_credential(
    credential_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
    _: UserContext = Depends(people_manager),
    db: Session = Depends(get_credential_db),
    group_db: Session = Depends(get_group_db),
) -> dict:
    credential_service.delete_credential(db, group_db, credential_id)
    _schedule_sync(request, background_tasks)
    return envelope(message="deleted")
