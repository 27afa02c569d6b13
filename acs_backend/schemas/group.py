"""
Pydantic schemas for door, schedule and access groups.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, Field, field_validator


_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class DoorGroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    door_ids: list[int] = Field(default_factory=list)


class DoorGroupResponse(BaseModel):
    id: int
    name: str
    door_ids: list[int]


class SchedWindowIn(BaseModel):
    weekday: int = Field(..., ge=0, le=6, description="0 Monday .. 6 Sunday")
    start_time: str = Field(..., description="HH:MM, inclusive")
    end_time: str = Field(..., description="HH:MM, exclusive; earlier than start wraps past midnight")

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_hhmm(cls, value: str) -> str:
        value = value.strip()
        if not _HHMM.match(value):
            raise ValueError("time must be HH:MM")
        return value


class SchedWindowResponse(BaseModel):
    weekday: int
    start_time: str
    end_time: str

    class Config:
        from_attributes = True


class SchedGroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    windows: list[SchedWindowIn] = Field(default_factory=list)


class SchedGroupResponse(BaseModel):
    id: int
    name: str
    windows: list[SchedWindowResponse]

    class Config:
        from_attributes = True


class AccessGroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    door_group_id: int
    sched_group_id: int | None = None


class AccessGroupResponse(BaseModel):
    id: int
    name: str
    door_group_id: int
    sched_group_id: int | None
    owner_credential_id: int | None

    class Config:
        from_attributes = True
