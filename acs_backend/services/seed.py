"""
Bootstrap seed helpers: the initial admin and factory accounts, the
controller settings row and the controller's built-in interface board.
"""

from __future__ import annotations

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..core.config import Settings
from ..core.security import hash_password
from ..models.controller_user import USER_TYPE_FACTORY, USER_TYPE_MANAGER, ControllerUser
from ..models.device import IB_TYPE_MT2, InterfaceBoard
from ..schemas.device import InterfaceBoardCreate
from .devices import add_interface_board, get_controller_prop


BUILTIN_IB_ADDR = 0


def _seed_account(db: Session, username: str, password: str | None, user_type: int, env_name: str) -> None:
    logger = logging.getLogger("seed")
    username = (username or "").strip()
    password = (password or "").strip()
    if not username:
        logger.warning("Skipping account seed: empty %s_USERNAME", env_name)
        return

    existing = db.query(ControllerUser).filter(func.lower(ControllerUser.username) == username.lower()).first()
    if existing:
        if existing.user_type != user_type:
            existing.user_type = user_type
            db.add(existing)
            db.commit()
        return
    if not password:
        logger.warning("Skipping account seed for %s: %s_PASSWORD is empty", username, env_name)
        return

    db.add(
        ControllerUser(
            username=username,
            password_hash=hash_password(password),
            token="",
            user_type=user_type,
            last_login_time=0,
        )
    )
    db.commit()
    logger.info("Seeded controller user %s type=%s", username, user_type)


def seed_controller_users(db: Session, settings: Settings) -> None:
    _seed_account(db, settings.admin_username, settings.admin_password, USER_TYPE_MANAGER, "ACS_ADMIN")
    _seed_account(db, settings.factory_username, settings.factory_password, USER_TYPE_FACTORY, "ACS_FACTORY")


def seed_controller(db: Session) -> None:
    get_controller_prop(db)
    builtin = db.query(InterfaceBoard).filter(InterfaceBoard.is_builtin.is_(True)).first()
    if builtin is None and db.query(InterfaceBoard).filter(InterfaceBoard.ib_addr == BUILTIN_IB_ADDR).first() is None:
        add_interface_board(
            db,
            InterfaceBoardCreate(ib_addr=BUILTIN_IB_ADDR, ib_type=IB_TYPE_MT2, name="Built-in"),
            is_builtin=True,
        )
        logging.getLogger("seed").info("Seeded built-in interface board ib_addr=%s", BUILTIN_IB_ADDR)
