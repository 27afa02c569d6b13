"""
Credential repository.

A credential reaches doors through exactly one access group, recorded in
its CredentialAccess row. Access groups live in the other-group store
and doors in the config store; those references are plain ids checked
here, since SQLite cannot enforce them across files.

Editing a credential's door list gives it a private access group (marked
by ``owner_credential_id``) whose door set is replaced in one
other-group transaction, so readers see either the old or the new set.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from ..core.errors import NotFound, ValidationError
from ..core.patch import apply_sparse
from ..models.credential import Credential, CredentialAccess, People
from ..models.device import Door
from ..models.group import AccessGroup, DoorGroup, DoorGroupMember, SchedGroup
from ..schemas.credential import CredentialCreate, CredentialDoorsResponse, CredentialUpdate
from ..schemas.device import DoorResponse
from .devices import find_doors


logger = logging.getLogger("credentials")

CREDENTIAL_FIELDS = ("people_id", "card_no", "facility_code", "biometric", "status", "valid_from", "valid_to")


def _check_people(db: Session, people_id: int) -> None:
    if db.get(People, people_id) is None:
        raise ValidationError(f"people {people_id} does not exist")


def _check_validity(valid_from, valid_to) -> None:
    if valid_from is not None and valid_to is not None and valid_to < valid_from:
        raise ValidationError("valid_to must not be earlier than valid_from")


def create_credential(db: Session, payload: CredentialCreate) -> Credential:
    _check_people(db, payload.people_id)
    _check_validity(payload.valid_from, payload.valid_to)
    cred = Credential(
        people_id=payload.people_id,
        card_no=payload.card_no.strip(),
        facility_code=payload.facility_code,
        biometric=payload.biometric,
        status=payload.status,
        valid_from=payload.valid_from,
        valid_to=payload.valid_to,
    )
    db.add(cred)
    db.commit()
    db.refresh(cred)
    logger.info("Credential created id=%s people_id=%s", cred.unique_id, cred.people_id)
    return cred


def get_credential(db: Session, credential_id: int) -> Credential:
    cred = db.get(Credential, credential_id)
    if cred is None:
        raise NotFound(f"credential {credential_id} not found")
    return cred


def credential_query(db: Session, *, people_id: Optional[int] = None, status: Optional[int] = None) -> Query:
    query = db.query(Credential)
    if people_id is not None:
        query = query.filter(Credential.people_id == people_id)
    if status is not None:
        query = query.filter(Credential.status == status)
    return query.order_by(Credential.unique_id.asc())


def merge_credential(cred: Credential, patch: CredentialUpdate) -> list[str]:
    return apply_sparse(cred, patch, CREDENTIAL_FIELDS)


def update_credential(db: Session, credential_id: int, patch: CredentialUpdate) -> Credential:
    cred = get_credential(db, credential_id)
    if patch.people_id is not None:
        _check_people(db, patch.people_id)
    changed = merge_credential(cred, patch)
    if not changed:
        return cred
    _check_validity(cred.valid_from, cred.valid_to)
    db.add(cred)
    db.commit()
    db.refresh(cred)
    logger.info("Credential updated id=%s fields=%s", credential_id, ",".join(changed))
    return cred


def purge_credentials(db: Session, credential_ids: Iterable[int]) -> None:
    """Delete credentials and their access rows; the caller commits."""
    ids = list(credential_ids)
    if not ids:
        return
    db.query(CredentialAccess).filter(CredentialAccess.credential_id.in_(ids)).delete(synchronize_session="fetch")
    db.query(Credential).filter(Credential.unique_id.in_(ids)).delete(synchronize_session="fetch")


def drop_private_groups(group_db: Session, credential_ids: Iterable[int]) -> None:
    ids = list(credential_ids)
    if not ids:
        return
    groups = group_db.query(AccessGroup).filter(AccessGroup.owner_credential_id.in_(ids)).all()
    door_group_ids = [g.door_group_id for g in groups]
    for group in groups:
        group_db.delete(group)
    group_db.flush()
    for door_group_id in door_group_ids:
        still_used = group_db.query(AccessGroup).filter(AccessGroup.door_group_id == door_group_id).count()
        door_group = group_db.get(DoorGroup, door_group_id)
        if door_group is not None and not still_used:
            group_db.delete(door_group)
    group_db.commit()


def delete_credential(db: Session, group_db: Session, credential_id: int) -> None:
    get_credential(db, credential_id)
    purge_credentials(db, [credential_id])
    db.commit()
    drop_private_groups(group_db, [credential_id])
    logger.info("Credential removed id=%s", credential_id)


def _access_group_of(db: Session, group_db: Session, credential_id: int) -> Optional[AccessGroup]:
    access = db.query(CredentialAccess).filter(CredentialAccess.credential_id == credential_id).first()
    if access is None:
        return None
    return group_db.get(AccessGroup, access.access_group_id)


def door_ids_of_group(group_db: Session, door_group_id: int) -> list[int]:
    rows = group_db.query(DoorGroupMember.door_id).filter(DoorGroupMember.door_group_id == door_group_id)
    return sorted(row[0] for row in rows)


def list_doors(db: Session, group_db: Session, config_db: Session, credential_id: int) -> list[Door]:
    get_credential(db, credential_id)
    group = _access_group_of(db, group_db, credential_id)
    if group is None:
        return []
    return find_doors(config_db, door_ids_of_group(group_db, group.door_group_id))


def door_access(db: Session, group_db: Session, config_db: Session, credential_id: int) -> CredentialDoorsResponse:
    doors = list_doors(db, group_db, config_db, credential_id)
    group = _access_group_of(db, group_db, credential_id)
    return CredentialDoorsResponse(
        credential_id=credential_id,
        access_group_id=group.id if group else None,
        sched_group_id=group.sched_group_id if group else None,
        doors=[DoorResponse.model_validate(d).model_dump() for d in doors],
    )


def _upsert_access(db: Session, credential_id: int, access_group_id: int) -> None:
    access = db.query(CredentialAccess).filter(CredentialAccess.credential_id == credential_id).first()
    if access is None:
        db.add(CredentialAccess(credential_id=credential_id, access_group_id=access_group_id))
    else:
        access.access_group_id = access_group_id
        db.add(access)
    db.commit()


def update_door_access(
    db: Session,
    group_db: Session,
    config_db: Session,
    credential_id: int,
    door_ids: list[int],
    sched_group_id: int,
) -> list[Door]:
    """Replace the set of doors ``credential_id`` may open, under ``sched_group_id``."""
    get_credential(db, credential_id)
    wanted = sorted(set(door_ids))
    known = {door.id for door in find_doors(config_db, wanted)}
    missing = [door_id for door_id in wanted if door_id not in known]
    if missing:
        raise ValidationError(f"unknown door ids: {missing}")
    if group_db.get(SchedGroup, sched_group_id) is None:
        raise ValidationError(f"schedule group {sched_group_id} does not exist")

    try:
        group = group_db.query(AccessGroup).filter(AccessGroup.owner_credential_id == credential_id).first()
        if group is None:
            door_group = DoorGroup(name=f"credential {credential_id} doors")
            group_db.add(door_group)
            group_db.flush()
            group = AccessGroup(
                name=f"credential {credential_id}",
                door_group_id=door_group.id,
                sched_group_id=sched_group_id,
                owner_credential_id=credential_id,
            )
            group_db.add(group)
        else:
            group.sched_group_id = sched_group_id
            group_db.query(DoorGroupMember).filter(DoorGroupMember.door_group_id == group.door_group_id).delete(
                synchronize_session="fetch"
            )
        group_db.flush()
        group_db.add_all([DoorGroupMember(door_group_id=group.door_group_id, door_id=d) for d in wanted])
        group_db.commit()
    except IntegrityError as exc:
        group_db.rollback()
        raise ValidationError("door list could not be saved") from exc

    _upsert_access(db, credential_id, group.id)
    logger.info("Credential doors replaced id=%s doors=%s sched_group=%s", credential_id, wanted, sched_group_id)
    return find_doors(config_db, wanted)


def assign_access_group(db: Session, group_db: Session, credential_id: int, access_group_id: int) -> CredentialAccess:
    get_credential(db, credential_id)
    group = group_db.get(AccessGroup, access_group_id)
    if group is None:
        raise ValidationError(f"access group {access_group_id} does not exist")
    if group.owner_credential_id is not None and group.owner_credential_id != credential_id:
        raise ValidationError(f"access group {access_group_id} belongs to another credential")
    _upsert_access(db, credential_id, access_group_id)
    return db.query(CredentialAccess).filter(CredentialAccess.credential_id == credential_id).one()
