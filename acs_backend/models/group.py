"""
ORM models for the other-group store.

A DoorGroup is a named set of door ids (doors live in the config store).
A SchedGroup is a named set of weekly time windows. An AccessGroup pairs
one of each and is what credentials are assigned to.
"""

from __future__ import annotations

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from . import GroupBase


class DoorGroup(GroupBase):
    __tablename__ = "door_groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128))

    members: Mapped[list[DoorGroupMember]] = relationship(
        "DoorGroupMember", back_populates="door_group", cascade="all, delete-orphan"
    )


class DoorGroupMember(GroupBase):
    __tablename__ = "door_group_members"
    __table_args__ = (UniqueConstraint("door_group_id", "door_id", name="uq_door_group_member"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    door_group_id: Mapped[int] = mapped_column(Integer, ForeignKey("door_groups.id"), index=True)
    door_id: Mapped[int] = mapped_column(Integer, index=True)  # config store

    door_group: Mapped[DoorGroup] = relationship("DoorGroup", back_populates="members")


class SchedGroup(GroupBase):
    __tablename__ = "sched_groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128))

    windows: Mapped[list[SchedWindow]] = relationship(
        "SchedWindow", back_populates="sched_group", cascade="all, delete-orphan"
    )


class SchedWindow(GroupBase):
    __tablename__ = "sched_windows"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sched_group_id: Mapped[int] = mapped_column(Integer, ForeignKey("sched_groups.id"), index=True)
    weekday: Mapped[int] = mapped_column(Integer)  # 0 = Monday
    start_time: Mapped[str] = mapped_column(String(5))  # HH:MM, inclusive
    end_time: Mapped[str] = mapped_column(String(5))  # HH:MM, exclusive

    sched_group: Mapped[SchedGroup] = relationship("SchedGroup", back_populates="windows")


class AccessGroup(GroupBase):
    __tablename__ = "access_groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128))
    door_group_id: Mapped[int] = mapped_column(Integer, ForeignKey("door_groups.id"), index=True)
    sched_group_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("sched_groups.id"), nullable=True)
    # Set when the group was created for a single credential's door list.
    owner_credential_id: Mapped[int | None] = mapped_column(Integer, nullable=True, unique=True)
