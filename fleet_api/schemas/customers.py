from __future__ import annotations

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional


class CustomerCreate(BaseModel):
    full_name: str = Field(min_length=2, max_length=140)
    phone: str = Field(min_length=8, max_length=20)
    email: Optional[str] = Field(default=None, max_length=160)
    driver_license: Optional[str] = Field(default=None, max_length=40)
    address: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = None


class CustomerUpdate(BaseModel):
    full_name: Optional[str] = Field(default=None, min_length=2, max_length=140)
    phone: Optional[str] = Field(default=None, min_length=8, max_length=20)
    email: Optional[str] = Field(default=None, max_length=160)
    driver_license: Optional[str] = Field(default=None, max_length=40)
    address: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = None


class CustomerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    phone: str
    email: Optional[str]
    driver_license: Optional[str]
    address: Optional[str]
    notes: Optional[str]
