"""
Departments and people (the holders of credentials).
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from ..core.errors import NotFound, ValidationError
from ..core.patch import apply_sparse
from ..models.credential import CREDENTIAL_STATUS_ACTIVE, Credential, Department, People
from ..schemas.people import DepartmentCreate, PeopleCreate, PeopleImportIn, PeopleImportResult, PeopleUpdate
from .credentials import drop_private_groups, purge_credentials


logger = logging.getLogger("people")

PEOPLE_FIELDS = ("first_name", "last_name", "code", "department_id")


def create_department(db: Session, payload: DepartmentCreate) -> Department:
    name = payload.name.strip()
    if not name:
        raise ValidationError("department name is required")
    if db.query(Department).filter(Department.name == name).first():
        raise ValidationError(f"department {name!r} already exists")
    dept = Department(name=name)
    db.add(dept)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationError(f"department {name!r} already exists") from exc
    db.refresh(dept)
    return dept


def list_departments(db: Session) -> list[Department]:
    return db.query(Department).order_by(Department.name.asc()).all()


def get_department(db: Session, department_id: int) -> Department:
    dept = db.get(Department, department_id)
    if dept is None:
        raise NotFound(f"department {department_id} not found")
    return dept


def delete_department(db: Session, department_id: int) -> None:
    dept = get_department(db, department_id)
    members = db.query(People).filter(People.department_id == department_id).count()
    if members:
        raise ValidationError(f"department {department_id} still has {members} people")
    db.delete(dept)
    db.commit()


def _check_department(db: Session, department_id: Optional[int]) -> None:
    if department_id is not None and db.get(Department, department_id) is None:
        raise ValidationError(f"department {department_id} does not exist")


def create_people(db: Session, payload: PeopleCreate) -> People:
    _check_department(db, payload.department_id)
    person = People(
        first_name=payload.first_name.strip(),
        last_name=payload.last_name,
        code=payload.code,
        department_id=payload.department_id,
    )
    db.add(person)
    db.commit()
    db.refresh(person)
    return person


def get_people(db: Session, people_id: int) -> People:
    person = db.get(People, people_id)
    if person is None:
        raise NotFound(f"people {people_id} not found")
    return person


def people_query(db: Session, *, department_id: Optional[int] = None, q: Optional[str] = None) -> Query:
    query = db.query(People)
    if department_id is not None:
        query = query.filter(People.department_id == department_id)
    if q:
        like = f"%{q.strip()}%"
        query = query.filter(
            (People.first_name.ilike(like)) | (People.last_name.ilike(like)) | (People.code.ilike(like))
        )
    return query.order_by(People.id.asc())


def merge_people(person: People, patch: PeopleUpdate) -> list[str]:
    return apply_sparse(person, patch, PEOPLE_FIELDS)


def update_people(db: Session, people_id: int, patch: PeopleUpdate) -> People:
    person = get_people(db, people_id)
    if "department_id" in patch.model_fields_set:
        _check_department(db, patch.department_id)
    if merge_people(person, patch):
        db.add(person)
        db.commit()
        db.refresh(person)
    return person


def delete_people(db: Session, group_db: Session, people_id: int) -> list[int]:
    """Delete a person with all of their credentials. Returns the removed credential ids."""
    person = get_people(db, people_id)
    credential_ids = [row[0] for row in db.query(Credential.unique_id).filter(Credential.people_id == people_id)]
    purge_credentials(db, credential_ids)
    db.delete(person)
    db.commit()
    drop_private_groups(group_db, credential_ids)
    logger.info("People removed id=%s credentials=%s", people_id, credential_ids)
    return credential_ids


def import_people(db: Session, payload: PeopleImportIn) -> PeopleImportResult:
    """Create every listed person, and their card credential if given, in one transaction."""
    for department_id in {item.department_id for item in payload.people}:
        _check_department(db, department_id)

    rows: list[tuple[People, Credential | None]] = []
    for item in payload.people:
        person = People(
            first_name=item.first_name.strip(),
            last_name=item.last_name,
            code=item.code,
            department_id=item.department_id,
        )
        cred = None
        if item.card_no:
            cred = Credential(card_no=item.card_no.strip(), status=CREDENTIAL_STATUS_ACTIVE)
            person.credentials = [cred]
        db.add(person)
        rows.append((person, cred))
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationError("people import could not be saved") from exc

    result = PeopleImportResult(
        imported=len(rows),
        people_ids=[person.id for person, _ in rows],
        credential_ids=[cred.unique_id for _, cred in rows if cred is not None],
    )
    logger.info("People imported count=%s credentials=%s", result.imported, len(result.credential_ids))
    return result
