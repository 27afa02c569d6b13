"""
ORM models for the controller topology in the config store.

ControllerProp is a single row of controller-wide settings. Interface
boards hang off the controller bus at a fixed address; an MT2 board
drives two doors, an MIO board only carries inputs.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from . import ConfigBase


BP_TYPE_DEFAULT = 0
BP_TYPE_BIS = 99

IB_TYPE_MT2 = 1
IB_TYPE_MIO = 3

MT2_DOOR_OUTPUTS = (1, 2)


class ControllerProp(ConfigBase):
    __tablename__ = "controller_props"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    controller_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    bp_type: Mapped[int] = mapped_column(Integer, default=BP_TYPE_DEFAULT)
    product_type: Mapped[int] = mapped_column(Integer, default=0)
    is_double_line: Mapped[int] = mapped_column(Integer, default=0)
    is_ownsa: Mapped[int] = mapped_column(Integer, default=0)
    is_bak_ctl: Mapped[int] = mapped_column(Integer, default=0)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class InterfaceBoard(ConfigBase):
    __tablename__ = "interface_boards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ib_addr: Mapped[int] = mapped_column(Integer, unique=True, index=True)
    ib_type: Mapped[int] = mapped_column(Integer, default=IB_TYPE_MT2)
    name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    is_builtin: Mapped[bool] = mapped_column(Boolean, default=False)

    doors: Mapped[list[Door]] = relationship("Door", back_populates="interface_board", cascade="all, delete-orphan")


class Door(ConfigBase):
    __tablename__ = "doors"
    __table_args__ = (UniqueConstraint("ib_addr", "output_addr", name="uq_door_address"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    interface_board_id: Mapped[int] = mapped_column(Integer, ForeignKey("interface_boards.id"), index=True)
    ib_addr: Mapped[int] = mapped_column(Integer)
    output_addr: Mapped[int] = mapped_column(Integer)
    name: Mapped[str | None] = mapped_column(String(128), nullable=True)

    interface_board: Mapped[InterfaceBoard] = relationship("InterfaceBoard", back_populates="doors")
