"""
Controller user endpoints: login/logout, token check, password change and
account administration.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ...core.auth import PERM_SYSTEM_SETTINGS, UserContext, get_app_settings, get_current_user, require_permission
from ...core.db import get_config_db
from ...core.responses import envelope
from ...core.security import jwt_secret
from ...schemas.controller_user import (
    ChangePasswordIn,
    ControllerUserCreate,
    ControllerUserResponse,
    ControllerUserUpdate,
    LoginIn,
)
from ...services import controller_users as users


public_router = APIRouter(prefix="/api/controllerUser", tags=["controller-user"])
router = APIRouter(prefix="/api/controllerUser", tags=["controller-user"])


@public_router.post("/login")
def login(payload: LoginIn, request: Request, db: Session = Depends(get_config_db)) -> dict:
    settings = get_app_settings(request)
    result = users.login(
        db,
        payload.username,
        payload.password,
        secret=jwt_secret(settings),
        ttl_minutes=settings.token_ttl_minutes,
    )
    return envelope(result)


@router.get("/logout")
def logout(user: UserContext = Depends(get_current_user), db: Session = Depends(get_config_db)) -> dict:
    users.logout(db, user.user_id)
    return envelope(message="logged out")


@router.get("/tokenVerify")
def token_verify(user: UserContext = Depends(get_current_user)) -> dict:
    return envelope({"id": user.user_id, "username": user.username, "user_type": user.user_type})


@router.patch("")
def change_password(
    payload: ChangePasswordIn,
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_config_db),
) -> dict:
    users.change_password(db, user.user_id, payload.password, payload.new_password)
    return envelope(message="password changed")


@router.post("")
def create_user(
    payload: ControllerUserCreate,
    caller: UserContext = Depends(require_permission(PERM_SYSTEM_SETTINGS)),
    db: Session = Depends(get_config_db),
) -> dict:
    user = users.create_user(db, payload, caller_type=caller.user_type)
    return envelope(ControllerUserResponse.model_validate(user))


@router.get("")
def list_users(
    _: UserContext = Depends(require_permission(PERM_SYSTEM_SETTINGS)),
    db: Session = Depends(get_config_db),
) -> dict:
    return envelope([ControllerUserResponse.model_validate(u) for u in users.list_users(db)])


@router.get("/{user_id}")
def get_user(
    user_id: int,
    _: UserContext = Depends(require_permission(PERM_SYSTEM_SETTINGS)),
    db: Session = Depends(get_config_db),
) -> dict:
    return envelope(ControllerUserResponse.model_validate(users.get_user(db, user_id)))


@router.patch("/{user_id}")
def update_user(
    user_id: int,
    payload: ControllerUserUpdate,
    caller: UserContext = Depends(require_permission(PERM_SYSTEM_SETTINGS)),
    db: Session = Depends(get_config_db),
) -> dict:
    user = users.update_user(db, user_id, payload, caller_type=caller.user_type)
    return envelope(ControllerUserResponse.model_validate(user))


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    caller: UserContext = Depends(require_permission(PERM_SYSTEM_SETTINGS)),
    db: Session = Depends(get_config_db),
) -> dict:
    users.delete_user(db, user_id, caller_type=caller.user_type)
    return envelope(message="deleted")
