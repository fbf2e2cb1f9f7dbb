from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, ConfigDict


class VehicleCreate(BaseModel):
    make: str = Field(min_length=1, max_length=60)
    model: str = Field(min_length=1, max_length=80)
    year: int = Field(ge=1950, le=2100)
    license_plate: str = Field(min_length=2, max_length=20)
    vin: Optional[str] = Field(default=None, max_length=30)
    color: Optional[str] = Field(default=None, max_length=30)


class VehicleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    make: str
    model: str
    year: int
    license_plate: str
    vin: Optional[str]
    color: Optional[str]
    status: str


class VehicleStatusUpdate(BaseModel):
    status: Literal["AVAILABLE", "MAINTENANCE"]
