"""
Pydantic schemas for departments and people.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class DepartmentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)


class DepartmentResponse(BaseModel):
    id: int
    name: str
    created_at: datetime

    class Config:
        from_attributes = True


class PeopleCreate(BaseModel):
    """Schema for creating a person."""
    first_name: str = Field(..., min_length=1, max_length=64)
    last_name: str | None = Field(None, max_length=64)
    code: str | None = Field(None, max_length=64, description="Employee code")
    department_id: int | None = None


class PeopleUpdate(BaseModel):
    """Sparse update; omitted or null fields keep their stored value."""
    first_name: str | None = Field(None, min_length=1, max_length=64)
    last_name: str | None = Field(None, max_length=64)
    code: str | None = Field(None, max_length=64)
    department_id: int | None = None


class PeopleResponse(BaseModel):
    id: int
    first_name: str
    last_name: str | None
    code: str | None
    department_id: int | None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PeopleImportItem(PeopleCreate):
    """One imported person; ``card_no`` issues an active credential with them."""
    card_no: str | None = Field(None, min_length=1, max_length=64)


class PeopleImportIn(BaseModel):
    people: list[PeopleImportItem] = Field(..., min_length=1, max_length=1000)


class PeopleImportResult(BaseModel):
    imported: int
    people_ids: list[int]
    credential_ids: list[int]
