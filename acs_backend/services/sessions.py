"""
Single-session token store.

The signed token alone is not trusted: the token most recently issued for
a user is persisted on the user row and every verification compares the
presented token with it. A new login therefore silently supersedes the
previous session, and logout revokes it immediately. There is no
in-process cache of the persisted value.
"""

from __future__ import annotations

import logging
import secrets

from sqlalchemy.orm import Session

from ..core.errors import AuthError, AuthReason, Internal
from ..core.security import TokenExpired, create_access_token, decode_access_token
from ..models.controller_user import ControllerUser


logger = logging.getLogger("sessions")


def issue_token(db: Session, user: ControllerUser, *, secret: str, ttl_minutes: int) -> str:
    """Create a token for ``user`` and persist it as the only valid one."""
    try:
        token = create_access_token(user_id=user.id, username=user.username, secret=secret, ttl_minutes=ttl_minutes)
    except RuntimeError as exc:
        raise Internal("token signing is not configured") from exc
    user.token = token
    db.add(user)
    db.commit()
    return token


def verify_token(db: Session, token: str, *, secret: str) -> int:
    try:
        claims = decode_access_token(token, secret=secret)
    except TokenExpired as exc:
        raise AuthError(AuthReason.EXPIRED_OR_SUPERSEDED, str(exc)) from exc
    except ValueError as exc:
        raise AuthError(AuthReason.MALFORMED, str(exc)) from exc
    try:
        user_id = int(str(claims.get("id") or ""))
    except ValueError as exc:
        raise AuthError(AuthReason.MALFORMED, "token without user id") from exc

    row = (
        db.query(ControllerUser.token)
        .filter(ControllerUser.id == user_id, ControllerUser.deleted_at.is_(None))
        .first()
    )
    if row is None:
        raise AuthError(AuthReason.USER_NOT_FOUND, f"user {user_id} not found")
    persisted = row[0] or ""
    if not persisted or not secrets.compare_digest(persisted.encode("utf-8"), token.encode("utf-8")):
        raise AuthError(AuthReason.EXPIRED_OR_SUPERSEDED, "token expired or logged in from another device")
    return user_id


def clear_token(db: Session, user_id: int) -> None:
    updated = db.query(ControllerUser).filter(ControllerUser.id == user_id).update(
        {ControllerUser.token: ""}, synchronize_session=False
    )
    db.commit()
    if not updated:
        logger.warning("Logout for unknown user_id=%s", user_id)
