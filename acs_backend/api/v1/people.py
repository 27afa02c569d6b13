"""
Department and people endpoints.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sqlalchemy.orm import Session

from ...core.auth import PERM_PEOPLE_MANAGEMENT, UserContext, get_app_settings, require_permission
from ...core.db import get_credential_db, get_group_db
from ...core.pagination import DEFAULT_PAGE_SIZE, paginate
from ...core.responses import envelope
from ...schemas.people import (
    DepartmentCreate,
    DepartmentResponse,
    PeopleCreate,
    PeopleImportIn,
    PeopleResponse,
    PeopleUpdate,
)
from ...services import people as people_service
from ...services.device_sync import data_sync


department_router = APIRouter(prefix="/api/department", tags=["department"])
router = APIRouter(prefix="/api/people", tags=["people"])


@department_router.get("")
def list_departments(db: Session = Depends(get_credential_db)) -> dict:
    return envelope([DepartmentResponse.model_validate(d) for d in people_service.list_departments(db)])


@department_router.post("")
def create_department(
    payload: DepartmentCreate,
    _: UserContext = Depends(require_permission(PERM_PEOPLE_MANAGEMENT)),
    db: Session = Depends(get_credential_db),
) -> dict:
    return envelope(DepartmentResponse.model_validate(people_service.create_department(db, payload)))


@department_router.get("/{department_id}")
def get_department(department_id: int, db: Session = Depends(get_credential_db)) -> dict:
    return envelope(DepartmentResponse.model_validate(people_service.get_department(db, department_id)))


@department_router.delete("/{department_id}")
def delete_department(
    department_id: int,
    _: UserContext = Depends(require_permission(PERM_PEOPLE_MANAGEMENT)),
    db: Session = Depends(get_credential_db),
) -> dict:
    people_service.delete_department(db, department_id)
    return envelope(message="deleted")


@router.get("")
def list_people(
    department_id: Optional[int] = Query(None),
    q: Optional[str] = Query(None, max_length=64),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    db: Session = Depends(get_credential_db),
) -> dict:
    query = people_service.people_query(db, department_id=department_id, q=q)
    return envelope(paginate(query, page, page_size, schema=PeopleResponse))


@router.post("")
def create_people(
    payload: PeopleCreate,
    _: UserContext = Depends(require_permission(PERM_PEOPLE_MANAGEMENT)),
    db: Session = Depends(get_credential_db),
) -> dict:
    return envelope(PeopleResponse.model_validate(people_service.create_people(db, payload)))


@router.post("/import")
def import_people(
    payload: PeopleImportIn,
    request: Request,
    background_tasks: BackgroundTasks,
    _: UserContext = Depends(require_permission(PERM_PEOPLE_MANAGEMENT)),
    db: Session = Depends(get_credential_db),
) -> dict:
    result = people_service.import_people(db, payload)
    background_tasks.add_task(data_sync, get_app_settings(request))
    return envelope(result)


@router.get("/{people_id}")
def get_people(people_id: int, db: Session = Depends(get_credential_db)) -> dict:
    return envelope(PeopleResponse.model_validate(people_service.get_people(db, people_id)))


@router.patch("/{people_id}")
def update_people(
    people_id: int,
    payload: PeopleUpdate,
    _: UserContext = Depends(require_permission(PERM_PEOPLE_MANAGEMENT)),
    db: Session = Depends(get_credential_db),
) -> dict:
    return envelope(PeopleResponse.model_validate(people_service.update_people(db, people_id, payload)))


@router.delete("/{people_id}")
def delete_people(
    people_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
    _: UserContext = Depends(require_permission(PERM_PEOPLE_MANAGEMENT)),
    db: Session = Depends(get_credential_db),
    group_db: Session = Depends(get_group_db),
) -> dict:
    removed = people_service.delete_people(db, group_db, people_id)
    if removed:
        background_tasks.add_task(data_sync, get_app_settings(request))
    return envelope({"removed_credentials": removed})
