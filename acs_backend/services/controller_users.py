"""
Controller user accounts: registration, login/logout, password changes and
the factory-only controller settings.

Account states: logged out (empty token), logged in (token set). A login
from elsewhere overwrites the token, so the earlier session simply stops
verifying; nothing is pushed to its holder.
"""

from __future__ import annotations

import logging
import os
import time
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.errors import InvalidCredentials, NotFound, PermissionDenied, ValidationError
from ..core.patch import apply_sparse
from ..core.security import hash_password, verify_password
from ..models.controller_user import USER_TYPE_FACTORY, USER_TYPES, ControllerUser
from ..models.device import ControllerProp
from ..schemas.controller_user import ControllerUserCreate, ControllerUserUpdate, TokenResponse
from ..schemas.device import ControllerPropUpdate, FactorySetIn
from .devices import get_controller_prop, update_controller_prop
from .sessions import clear_token, issue_token


logger = logging.getLogger("auth")

USER_FIELDS = (
    "user_type",
    "permission1",
    "permission2",
    "permission3",
    "permission4",
    "permission5",
    "permission6",
    "permission7",
    "permission8",
)


def _live_users(db: Session):
    return db.query(ControllerUser).filter(ControllerUser.deleted_at.is_(None))


def _find_by_username(db: Session, username: str) -> ControllerUser | None:
    return _live_users(db).filter(func.lower(ControllerUser.username) == username.strip().lower()).first()


def login(db: Session, username: str, password: str, *, secret: str, ttl_minutes: int) -> TokenResponse:
    user = _find_by_username(db, username)
    # Unknown user and wrong password share one error.
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Login rejected username=%s", username)
        raise InvalidCredentials()
    user.last_login_time = int(time.time())
    token = issue_token(db, user, secret=secret, ttl_minutes=ttl_minutes)
    logger.info("Login user_id=%s", user.id)
    return TokenResponse(id=user.id, user_type=user.user_type, token=token)


def logout(db: Session, user_id: int) -> None:
    clear_token(db, user_id)
    logger.info("Logout user_id=%s", user_id)


def change_password(db: Session, user_id: int, old_password: str, new_password: str) -> None:
    user = get_user(db, user_id)
    if not verify_password(old_password, user.password_hash):
        raise ValidationError("current password is incorrect")
    user.password_hash = hash_password(new_password)
    db.add(user)
    db.commit()
    logger.info("Password changed user_id=%s", user_id)


def _guard_factory_type(caller_type: int, *user_types: int) -> None:
    if caller_type != USER_TYPE_FACTORY and USER_TYPE_FACTORY in user_types:
        logger.warning("Factory account change refused caller_type=%s", caller_type)
        raise PermissionDenied("only factory accounts may grant or revoke the factory type")


def create_user(db: Session, payload: ControllerUserCreate, *, caller_type: int) -> ControllerUser:
    username = payload.username.strip()
    if not username:
        raise ValidationError("username is required")
    if " " in username:
        raise ValidationError("username cannot contain spaces")
    if payload.user_type not in USER_TYPES:
        raise ValidationError(f"unknown user type {payload.user_type}")
    _guard_factory_type(caller_type, payload.user_type)
    if _find_by_username(db, username):
        raise ValidationError("username already exists")
    user = ControllerUser(
        username=username,
        password_hash=hash_password(payload.password),
        token="",
        user_type=payload.user_type,
        permission1=payload.permission1,
        permission2=payload.permission2,
        permission3=payload.permission3,
        permission4=payload.permission4,
        permission5=payload.permission5,
        permission6=payload.permission6,
        permission7=payload.permission7,
        permission8=payload.permission8,
        last_login_time=0,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationError("username already exists") from exc
    db.refresh(user)
    return user


def get_user(db: Session, user_id: int) -> ControllerUser:
    user = db.get(ControllerUser, user_id)
    if user is None or user.deleted_at is not None:
        raise NotFound(f"controller user {user_id} not found")
    return user


def list_users(db: Session) -> list[ControllerUser]:
    return _live_users(db).order_by(ControllerUser.id.asc()).all()


def merge_user(user: ControllerUser, patch: ControllerUserUpdate) -> list[str]:
    return apply_sparse(user, patch, USER_FIELDS)


def update_user(db: Session, user_id: int, patch: ControllerUserUpdate, *, caller_type: int) -> ControllerUser:
    user = get_user(db, user_id)
    if patch.user_type is not None and patch.user_type != user.user_type:
        if patch.user_type not in USER_TYPES:
            raise ValidationError(f"unknown user type {patch.user_type}")
        _guard_factory_type(caller_type, patch.user_type, user.user_type)
    if merge_user(user, patch):
        db.add(user)
        db.commit()
        db.refresh(user)
    return user


def delete_user(db: Session, user_id: int, *, caller_type: int) -> None:
    """Soft-delete an account and end its session."""
    user = get_user(db, user_id)
    _guard_factory_type(caller_type, user.user_type)
    user.deleted_at = datetime.utcnow()
    user.token = ""
    db.add(user)
    db.commit()
    logger.info("Controller user removed id=%s", user_id)


def factory_set(db: Session, caller_id: int, payload: FactorySetIn) -> ControllerProp:
    """Update the factory fields of the controller. Factory accounts only."""
    caller = get_user(db, caller_id)
    if caller.user_type != USER_TYPE_FACTORY:
        logger.warning("Factory set refused user_id=%s user_type=%s", caller_id, caller.user_type)
        raise PermissionDenied()
    patch = ControllerPropUpdate(
        bp_type=payload.bp_type,
        product_type=payload.product_type,
        is_double_line=1 if payload.is_double_line else 0,
        is_ownsa=1 if payload.is_ownsa else 0,
        is_bak_ctl=1 if payload.is_bak_ctl else 0,
    )
    prop = update_controller_prop(db, patch)
    # Flush before replying.
    if hasattr(os, "sync"):
        os.sync()
    logger.info("Factory settings updated by user_id=%s", caller_id)
    return prop


def get_factory_set(db: Session) -> ControllerProp:
    return get_controller_prop(db)
