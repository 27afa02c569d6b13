"""
Pydantic schemas for controller user requests and responses.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class LoginIn(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1, max_length=256)


class TokenResponse(BaseModel):
    id: int
    user_type: int
    token: str


class ChangePasswordIn(BaseModel):
    password: str = Field(..., min_length=1, max_length=256)
    new_password: str = Field(..., min_length=1, max_length=256)


class ControllerUserCreate(BaseModel):
    """Registration payload. Permission flags default to off."""
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1, max_length=256)
    user_type: int = Field(2, ge=0, le=3, description="0 internal, 1 factory, 2 manager, 3 ownsa user")
    permission1: int = 0
    permission2: int = 0
    permission3: int = 0
    permission4: int = 0
    permission5: int = 0
    permission6: int = 0
    permission7: int = 0
    permission8: int = 0


class ControllerUserUpdate(BaseModel):
    """Sparse update; omitted or null fields keep their stored value."""
    user_type: int | None = Field(None, ge=0, le=3)
    permission1: int | None = None
    permission2: int | None = None
    permission3: int | None = None
    permission4: int | None = None
    permission5: int | None = None
    permission6: int | None = None
    permission7: int | None = None
    permission8: int | None = None


class ControllerUserResponse(BaseModel):
    id: int
    username: str
    user_type: int
    permission1: int
    permission2: int
    permission3: int
    permission4: int
    permission5: int
    permission6: int
    permission7: int
    permission8: int
    last_login_time: int

    class Config:
        from_attributes = True
