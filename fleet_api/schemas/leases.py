from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict, computed_field, model_validator

from fleet_api.infra.models import LeaseStatus
from fleet_api.services.duration import format_duration
from fleet_api.services.schedule import Installment


class LeaseCreate(BaseModel):
    customer_id: int
    vehicle_id: Optional[int] = None

    start_date: date
    end_date: Optional[date] = None

    rent_amount: Decimal = Field(gt=0)
    total_amount: Optional[Decimal] = Field(default=None, ge=0)

    # None = use the configured default
    daily_late_fee: Optional[Decimal] = Field(default=None, ge=0)

    notes: Optional[str] = None

    @model_validator(mode="after")
    def _check_dates(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date.")
        return self


class LeaseStatusUpdate(BaseModel):
    status: LeaseStatus


class LeaseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    agreement_number: str
    customer_id: int
    vehicle_id: Optional[int]

    start_date: date
    end_date: Optional[date]

    rent_amount: Decimal
    total_amount: Decimal
    daily_late_fee: Optional[Decimal]

    status: str
    notes: Optional[str]
    created_at: datetime

    @computed_field
    @property
    def duration(self) -> str:
        return format_duration(self.start_date, self.end_date)


class ScheduleOut(BaseModel):
    lease_id: int
    agreement_number: str
    installments: list[Installment]
    total: Decimal
