"""
Door, schedule and access group configuration (other-group store).
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.errors import NotFound, ValidationError
from ..models.credential import CredentialAccess
from ..models.group import AccessGroup, DoorGroup, DoorGroupMember, SchedGroup, SchedWindow
from ..schemas.group import AccessGroupCreate, DoorGroupCreate, DoorGroupResponse, SchedGroupCreate
from .credentials import door_ids_of_group
from .devices import find_doors


logger = logging.getLogger("groups")


def door_group_response(group_db: Session, group: DoorGroup) -> DoorGroupResponse:
    return DoorGroupResponse(id=group.id, name=group.name, door_ids=door_ids_of_group(group_db, group.id))


def create_door_group(group_db: Session, config_db: Session, payload: DoorGroupCreate) -> DoorGroup:
    wanted = sorted(set(payload.door_ids))
    known = {door.id for door in find_doors(config_db, wanted)}
    missing = [door_id for door_id in wanted if door_id not in known]
    if missing:
        raise ValidationError(f"unknown door ids: {missing}")
    group = DoorGroup(name=payload.name.strip())
    group.members = [DoorGroupMember(door_id=door_id) for door_id in wanted]
    group_db.add(group)
    group_db.commit()
    group_db.refresh(group)
    return group


def _is_private_door_group(group_db: Session, door_group_id: int) -> bool:
    owned = (
        group_db.query(AccessGroup.id)
        .filter(AccessGroup.door_group_id == door_group_id, AccessGroup.owner_credential_id.isnot(None))
        .first()
    )
    return owned is not None


def list_door_groups(group_db: Session) -> list[DoorGroup]:
    """Shared door groups; the ones backing a credential's private access group are left out."""
    private = select(AccessGroup.door_group_id).where(AccessGroup.owner_credential_id.isnot(None))
    return group_db.query(DoorGroup).filter(DoorGroup.id.not_in(private)).order_by(DoorGroup.id.asc()).all()


def get_door_group(group_db: Session, group_id: int) -> DoorGroup:
    group = group_db.get(DoorGroup, group_id)
    if group is None:
        raise NotFound(f"door group {group_id} not found")
    return group


def delete_door_group(group_db: Session, group_id: int) -> None:
    group = get_door_group(group_db, group_id)
    users = group_db.query(AccessGroup).filter(AccessGroup.door_group_id == group_id).count()
    if users:
        raise ValidationError(f"door group {group_id} is used by {users} access groups")
    group_db.delete(group)
    group_db.commit()


def create_sched_group(group_db: Session, payload: SchedGroupCreate) -> SchedGroup:
    group = SchedGroup(name=payload.name.strip())
    group.windows = [
        SchedWindow(weekday=w.weekday, start_time=w.start_time, end_time=w.end_time) for w in payload.windows
    ]
    group_db.add(group)
    group_db.commit()
    group_db.refresh(group)
    return group


def list_sched_groups(group_db: Session) -> list[SchedGroup]:
    return group_db.query(SchedGroup).order_by(SchedGroup.id.asc()).all()


def get_sched_group(group_db: Session, group_id: int) -> SchedGroup:
    group = group_db.get(SchedGroup, group_id)
    if group is None:
        raise NotFound(f"schedule group {group_id} not found")
    return group


def delete_sched_group(group_db: Session, group_id: int) -> None:
    group = get_sched_group(group_db, group_id)
    users = group_db.query(AccessGroup).filter(AccessGroup.sched_group_id == group_id).count()
    if users:
        raise ValidationError(f"schedule group {group_id} is used by {users} access groups")
    group_db.delete(group)
    group_db.commit()


def create_access_group(group_db: Session, payload: AccessGroupCreate) -> AccessGroup:
    if group_db.get(DoorGroup, payload.door_group_id) is None:
        raise ValidationError(f"door group {payload.door_group_id} does not exist")
    if _is_private_door_group(group_db, payload.door_group_id):
        raise ValidationError(f"door group {payload.door_group_id} belongs to a credential")
    if payload.sched_group_id is not None and group_db.get(SchedGroup, payload.sched_group_id) is None:
        raise ValidationError(f"schedule group {payload.sched_group_id} does not exist")
    group = AccessGroup(
        name=payload.name.strip(),
        door_group_id=payload.door_group_id,
        sched_group_id=payload.sched_group_id,
    )
    group_db.add(group)
    group_db.commit()
    group_db.refresh(group)
    return group


def list_access_groups(group_db: Session, *, include_private: bool = False) -> list[AccessGroup]:
    query = group_db.query(AccessGroup)
    if not include_private:
        query = query.filter(AccessGroup.owner_credential_id.is_(None))
    return query.order_by(AccessGroup.id.asc()).all()


def get_access_group(group_db: Session, group_id: int) -> AccessGroup:
    group = group_db.get(AccessGroup, group_id)
    if group is None:
        raise NotFound(f"access group {group_id} not found")
    return group


def delete_access_group(group_db: Session, cred_db: Session, group_id: int) -> None:
    group = get_access_group(group_db, group_id)
    holders = cred_db.query(CredentialAccess).filter(CredentialAccess.access_group_id == group_id).count()
    if holders:
        raise ValidationError(f"access group {group_id} is assigned to {holders} credentials")
    group_db.delete(group)
    group_db.commit()
    logger.info("Access group removed id=%s", group_id)
