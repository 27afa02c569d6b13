"""
Pydantic schemas for controller settings, interface boards and device
commands relayed to the device backend.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ControllerPropUpdate(BaseModel):
    controller_name: str | None = Field(None, max_length=128)
    bp_type: int | None = None
    product_type: int | None = None
    is_double_line: int | None = Field(None, ge=0, le=1)
    is_ownsa: int | None = Field(None, ge=0, le=1)
    is_bak_ctl: int | None = Field(None, ge=0, le=1)


class ControllerPropResponse(BaseModel):
    id: int
    controller_name: str | None
    bp_type: int
    product_type: int
    is_double_line: int
    is_ownsa: int
    is_bak_ctl: int

    class Config:
        from_attributes = True


class FactorySetIn(BaseModel):
    bp_type: int | None = None
    product_type: int | None = None
    is_double_line: bool
    is_ownsa: bool
    is_bak_ctl: bool


class FactorySetResponse(BaseModel):
    bp_type: int
    product_type: int
    is_double_line: int
    is_ownsa: int
    is_bak_ctl: int

    class Config:
        from_attributes = True


class DoorResponse(BaseModel):
    id: int
    interface_board_id: int
    ib_addr: int
    output_addr: int
    name: str | None

    class Config:
        from_attributes = True


class InterfaceBoardCreate(BaseModel):
    ib_addr: int = Field(..., ge=0, le=255)
    ib_type: int = Field(1, description="1 MT2 (two doors), 3 MIO (inputs only)")
    name: str | None = Field(None, max_length=128)


class InterfaceBoardUpdate(BaseModel):
    name: str | None = Field(None, max_length=128)


class InterfaceBoardResponse(BaseModel):
    id: int
    ib_addr: int
    ib_type: int
    name: str | None
    is_builtin: bool
    doors: list[DoorResponse] = []

    class Config:
        from_attributes = True


class DoorOpenIn(BaseModel):
    ibaddr: int = Field(..., ge=0)
    outputaddr: int = Field(..., ge=0)
    mode: int = Field(0, ge=0)


class FireCancelIn(BaseModel):
    ibaddr: int = Field(..., ge=0)


class TimeSyncIn(BaseModel):
    datetime: str = Field(..., description="YYYY-MM-DD HH:MM:SS")


class DeviceReply(BaseModel):
    """Reply of the device backend; unknown keys are kept as-is."""
    retcode: int
    message: str | None = None

    class Config:
        extra = "allow"


class DoorOpenResult(DeviceReply):
    pass


class FireCancelResult(DeviceReply):
    pass


class TimeSyncResult(BaseModel):
    datetime: str
    system_clock_ok: bool
    hardware_clock_ok: bool
    errors: list[str] = []
