"""
Decides whether a credential opens a door at a given moment.

Credential -> CredentialAccess -> AccessGroup -> (DoorGroup members,
SchedGroup windows). Missing or empty links deny.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, time
from typing import Optional

from sqlalchemy.orm import Session

from ..models.credential import CREDENTIAL_STATUS_ACTIVE, Credential, CredentialAccess
from ..models.group import AccessGroup, DoorGroupMember, SchedWindow
from .credentials import get_credential


logger = logging.getLogger("access")


class DenialReason(str, enum.Enum):
    CREDENTIAL_INACTIVE = "CREDENTIAL_INACTIVE"
    DOOR_NOT_IN_GROUP = "DOOR_NOT_IN_GROUP"
    OUTSIDE_SCHEDULE = "OUTSIDE_SCHEDULE"


@dataclass
class AccessDecision:
    granted: bool
    reason: Optional[DenialReason] = None


def _parse_time(value: str) -> Optional[time]:
    try:
        return datetime.strptime(value, "%H:%M").time()
    except ValueError:
        return None


def _is_time_in_range(now_time: time, start_time: time, end_time: time) -> bool:
    if start_time <= end_time:
        return start_time <= now_time < end_time
    return now_time >= start_time or now_time < end_time


def _local_naive(at: datetime) -> datetime:
    # Stored validity bounds and schedules are controller-local wall time.
    if at.tzinfo is not None:
        return at.astimezone().replace(tzinfo=None)
    return at


def _credential_active(cred: Credential, at: datetime) -> bool:
    if cred.status != CREDENTIAL_STATUS_ACTIVE:
        return False
    if cred.valid_from is not None and at < cred.valid_from:
        return False
    if cred.valid_to is not None and at > cred.valid_to:
        return False
    return True


def in_schedule(group_db: Session, sched_group_id: Optional[int], at: datetime) -> bool:
    """
    A window belongs to the weekday it starts on. One whose end is before
    its start runs past midnight, and its tail is matched on the next day.
    """
    if sched_group_id is None:
        return False
    today = at.weekday()
    yesterday = (today - 1) % 7
    windows = (
        group_db.query(SchedWindow)
        .filter(SchedWindow.sched_group_id == sched_group_id, SchedWindow.weekday.in_([today, yesterday]))
        .all()
    )
    now_time = at.time()
    for window in windows:
        start = _parse_time(window.start_time)
        end = _parse_time(window.end_time)
        if start is None or end is None:
            logger.warning("Ignoring malformed schedule window id=%s", window.id)
            continue
        wraps = end < start
        if window.weekday == today:
            if wraps and now_time >= start:
                return True
            if not wraps and _is_time_in_range(now_time, start, end):
                return True
        if window.weekday == yesterday and wraps and now_time < end:
            return True
    return False


def check_access(cred_db: Session, group_db: Session, credential_id: int, door_id: int, at: datetime) -> AccessDecision:
    at = _local_naive(at)
    cred = get_credential(cred_db, credential_id)
    if not _credential_active(cred, at):
        return AccessDecision(False, DenialReason.CREDENTIAL_INACTIVE)

    access = cred_db.query(CredentialAccess).filter(CredentialAccess.credential_id == credential_id).first()
    group = group_db.get(AccessGroup, access.access_group_id) if access is not None else None
    if group is None:
        return AccessDecision(False, DenialReason.DOOR_NOT_IN_GROUP)

    member = (
        group_db.query(DoorGroupMember.id)
        .filter(DoorGroupMember.door_group_id == group.door_group_id, DoorGroupMember.door_id == door_id)
        .first()
    )
    if member is None:
        return AccessDecision(False, DenialReason.DOOR_NOT_IN_GROUP)

    if not in_schedule(group_db, group.sched_group_id, at):
        return AccessDecision(False, DenialReason.OUTSIDE_SCHEDULE)
    return AccessDecision(True)
