"""
Request authentication and permission checks.

The bearer token is taken from the ``Authorization`` header (raw or
``Bearer <token>``) or, failing that, from the ``X-Authorization`` cookie
set by the web UI. It is verified against the token persisted for the
user on every request, see ``services.sessions``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from fastapi import Cookie, Depends, Header, Request
from sqlalchemy.orm import Session

from .config import Settings, get_settings
from .db import get_config_db
from .errors import AuthError, AuthReason, PermissionDenied
from .security import jwt_secret
from ..models.controller_user import USER_TYPE_OWNSA, ControllerUser
from ..services.sessions import verify_token

PERM_SYSTEM_SETTINGS = 1
PERM_DEVICE_MANAGEMENT = 2
PERM_DEVICE_MAINTENANCE = 3
PERM_PEOPLE_MANAGEMENT = 4
PERM_STATISTICS = 5


@dataclass
class UserContext:
    user_id: int
    username: str
    user_type: int
    permissions: dict[int, int] = field(default_factory=dict)
    token: Optional[str] = None


def get_app_settings(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        return get_settings()
    return settings


def _extract_token(authorization: Optional[str], cookie_token: Optional[str]) -> Optional[str]:
    raw = (authorization or "").strip()
    if raw.lower().startswith("bearer "):
        raw = raw.split(" ", 1)[1].strip()
    if not raw:
        raw = (cookie_token or "").strip()
    return raw or None


def user_context(user: ControllerUser, token: Optional[str] = None) -> UserContext:
    return UserContext(
        user_id=user.id,
        username=user.username,
        user_type=user.user_type,
        permissions={n: int(getattr(user, f"permission{n}") or 0) for n in range(1, 9)},
        token=token,
    )


def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None),
    x_authorization: Optional[str] = Cookie(None, alias="X-Authorization"),
    db: Session = Depends(get_config_db),
) -> UserContext:
    token = _extract_token(authorization, x_authorization)
    if not token:
        raise AuthError(AuthReason.MISSING)
    settings = get_app_settings(request)
    user_id = verify_token(db, token, secret=jwt_secret(settings))
    user = db.get(ControllerUser, user_id)
    if user is None:
        raise AuthError(AuthReason.USER_NOT_FOUND)
    return user_context(user, token)


def has_permission(user: UserContext, permission: int) -> bool:
    if user.user_type != USER_TYPE_OWNSA:
        return True
    return bool(user.permissions.get(permission))


def require_permission(permission: int):
    def _dep(user: UserContext = Depends(get_current_user)) -> UserContext:
        if not has_permission(user, permission):
            raise PermissionDenied()
        return user

    return _dep
