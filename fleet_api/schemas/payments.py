from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict


class PaymentCreate(BaseModel):
    lease_id: int
    amount: Decimal = Field(gt=0)
    payment_date: date
    payment_method: str = Field(default="Cash", min_length=1, max_length=40)
    reference_number: Optional[str] = Field(default=None, max_length=80)
    notes: Optional[str] = Field(default=None, max_length=255)

    include_late_fee: bool = False
    is_partial: bool = False

    # pay into an existing scheduled/partial row instead of creating one
    target_payment_id: Optional[int] = None


class LateFeeQuoteIn(BaseModel):
    lease_id: int
    payment_date: date
    target_payment_id: Optional[int] = None


class LateFeeQuoteOut(BaseModel):
    days_late: int
    amount: Decimal


class PaymentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    lease_id: int
    amount: Decimal
    amount_paid: Decimal
    balance: Decimal
    payment_date: Optional[date]
    payment_method: Optional[str]
    reference_number: Optional[str]
    description: Optional[str]
    status: str
    type: str
    days_overdue: int
    late_fine_amount: Decimal
    original_due_date: date
    created_at: datetime


class PaymentRecorded(BaseModel):
    payment: PaymentOut
    # None when no late fee was requested or due
    late_fee_recorded: Optional[bool] = None


class PaymentStatistics(BaseModel):
    total_paid: Decimal
    total_due: Decimal
    total_late: Decimal
    payment_count: int
    overdue_count: int
