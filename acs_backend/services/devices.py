"""
Controller settings and interface-board topology.

ControllerProp is a singleton row (id 1). Adding an MT2 board creates its
two doors; removing a board removes its doors and scrubs them from every
door group in the other-group store, since that store cannot enforce the
reference itself.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.errors import NotFound, ValidationError
from ..core.patch import apply_sparse
from ..models.device import (
    IB_TYPE_MIO,
    IB_TYPE_MT2,
    MT2_DOOR_OUTPUTS,
    ControllerProp,
    Door,
    InterfaceBoard,
)
from ..models.group import DoorGroupMember
from ..schemas.device import ControllerPropUpdate, InterfaceBoardCreate, InterfaceBoardUpdate


logger = logging.getLogger("devices")

CONTROLLER_PROP_ID = 1
CONTROLLER_PROP_FIELDS = ("controller_name", "bp_type", "product_type", "is_double_line", "is_ownsa", "is_bak_ctl")


def get_controller_prop(db: Session) -> ControllerProp:
    prop = db.get(ControllerProp, CONTROLLER_PROP_ID)
    if prop is None:
        prop = ControllerProp(id=CONTROLLER_PROP_ID)
        db.add(prop)
        db.commit()
        db.refresh(prop)
    return prop


def merge_controller_prop(prop: ControllerProp, patch: ControllerPropUpdate) -> list[str]:
    return apply_sparse(prop, patch, CONTROLLER_PROP_FIELDS)


def update_controller_prop(db: Session, patch: ControllerPropUpdate) -> ControllerProp:
    prop = get_controller_prop(db)
    changed = merge_controller_prop(prop, patch)
    if changed:
        db.add(prop)
        db.commit()
        db.refresh(prop)
        logger.info("Controller props updated fields=%s", ",".join(changed))
    return prop


def list_interface_boards(db: Session, ib_type: int | None = None) -> list[InterfaceBoard]:
    query = db.query(InterfaceBoard)
    if ib_type is not None:
        query = query.filter(InterfaceBoard.ib_type == ib_type)
    return query.order_by(InterfaceBoard.ib_addr.asc()).all()


def get_interface_board(db: Session, board_id: int) -> InterfaceBoard:
    board = db.get(InterfaceBoard, board_id)
    if board is None:
        raise NotFound(f"interface board {board_id} not found")
    return board


def add_interface_board(db: Session, payload: InterfaceBoardCreate, *, is_builtin: bool = False) -> InterfaceBoard:
    if payload.ib_type not in {IB_TYPE_MT2, IB_TYPE_MIO}:
        raise ValidationError(f"unsupported interface board type {payload.ib_type}")
    existing = db.query(InterfaceBoard).filter(InterfaceBoard.ib_addr == payload.ib_addr).first()
    if existing:
        raise ValidationError(f"interface board address {payload.ib_addr} already in use")
    board = InterfaceBoard(
        ib_addr=payload.ib_addr,
        ib_type=payload.ib_type,
        name=payload.name,
        is_builtin=is_builtin,
    )
    if payload.ib_type == IB_TYPE_MT2:
        label = payload.name or f"IB{payload.ib_addr}"
        board.doors = [
            Door(ib_addr=payload.ib_addr, output_addr=output, name=f"{label} door {output}")
            for output in MT2_DOOR_OUTPUTS
        ]
    db.add(board)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationError(f"interface board address {payload.ib_addr} already in use") from exc
    db.refresh(board)
    return board


def update_interface_board(db: Session, board_id: int, patch: InterfaceBoardUpdate) -> InterfaceBoard:
    board = get_interface_board(db, board_id)
    changed = apply_sparse(board, patch, ("name",))
    if changed:
        db.add(board)
        db.commit()
        db.refresh(board)
        logger.info("Interface board updated id=%s fields=%s", board_id, ",".join(changed))
    return board


def delete_interface_board(db: Session, group_db: Session, board_id: int) -> None:
    board = get_interface_board(db, board_id)
    if board.is_builtin:
        raise ValidationError("the built-in interface board cannot be removed")
    door_ids = [door.id for door in board.doors]
    if door_ids:
        group_db.query(DoorGroupMember).filter(DoorGroupMember.door_id.in_(door_ids)).delete(
            synchronize_session="fetch"
        )
        group_db.commit()
    db.delete(board)
    db.commit()
    logger.info("Interface board removed id=%s ib_addr=%s doors=%s", board_id, board.ib_addr, door_ids)


def list_all_doors(db: Session) -> list[Door]:
    return db.query(Door).order_by(Door.ib_addr.asc(), Door.output_addr.asc()).all()


def find_doors(db: Session, door_ids: list[int]) -> list[Door]:
    if not door_ids:
        return []
    return (
        db.query(Door)
        .filter(Door.id.in_(door_ids))
        .order_by(Door.ib_addr.asc(), Door.output_addr.asc())
        .all()
    )
