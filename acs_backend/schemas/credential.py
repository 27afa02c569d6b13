"""
Pydantic schemas for credentials, their door lists and access decisions.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CredentialCreate(BaseModel):
    """Schema for issuing a credential to a person."""
    people_id: int
    card_no: str = Field(..., min_length=1, max_length=64)
    facility_code: int | None = None
    biometric: str | None = Field(None, description="Opaque biometric template descriptor")
    status: int = Field(1, ge=0, le=1, description="1 active, 0 inactive")
    valid_from: datetime | None = None
    valid_to: datetime | None = None


class CredentialUpdate(BaseModel):
    """Sparse update; omitted or null fields keep their stored value."""
    people_id: int | None = None
    card_no: str | None = Field(None, min_length=1, max_length=64)
    facility_code: int | None = None
    biometric: str | None = None
    status: int | None = Field(None, ge=0, le=1)
    valid_from: datetime | None = None
    valid_to: datetime | None = None


class CredentialResponse(BaseModel):
    unique_id: int
    people_id: int
    card_no: str
    facility_code: int | None
    biometric: str | None
    status: int
    valid_from: datetime | None
    valid_to: datetime | None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CredentialDoorUpdate(BaseModel):
    """Replacement door list for one credential."""
    model_config = ConfigDict(populate_by_name=True)

    door_ids: list[int] = Field(default_factory=list, alias="doorIds")
    sched_group_id: int = Field(..., alias="schedGroupId")


class CredentialAccessGroupIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    access_group_id: int = Field(..., alias="accessGroupId")


class CredentialDoorsResponse(BaseModel):
    credential_id: int
    access_group_id: int | None
    sched_group_id: int | None
    doors: list[dict]


class AccessDecisionResponse(BaseModel):
    credential_id: int
    door_id: int
    at: datetime
    granted: bool
    reason: str | None = None
