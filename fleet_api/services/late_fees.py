from __future__ import annotations

import calendar
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from fleet_api.config import settings
from fleet_api.infra.models import PaymentStatus, PaymentType
from fleet_api.services.money import ZERO, quantize_money
from fleet_api.services.store import PaymentStore

logger = logging.getLogger(__name__)


class LateFeeQuote(BaseModel):
    model_config = ConfigDict(frozen=True)

    days_late: int
    amount: Decimal


class LateFeeRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    lease_id: int
    amount: Decimal = Field(gt=0)
    days_late: int = Field(ge=1)
    payment_date: date
    payment_method: str
    reference_number: Optional[str] = None
    description: str
    status: PaymentStatus
    original_due_date: date

    def to_row(self) -> dict[str, Any]:
        return {
            "lease_id": self.lease_id,
            "amount": self.amount,
            "amount_paid": self.amount,
            "balance": ZERO,
            "payment_date": self.payment_date,
            "payment_method": self.payment_method,
            "reference_number": self.reference_number,
            "description": self.description,
            "status": self.status,
            "type": PaymentType.LATE_PAYMENT_FEE,
            "late_fine_amount": self.amount,
            "days_overdue": self.days_late,
            "original_due_date": self.original_due_date,
        }


def first_of_month(d: date) -> date:
    return d.replace(day=1)


def calculate_late_fee(
    due_date: Optional[date],
    payment_date: date,
    *,
    daily_late_fee=None,
    max_late_fee=None,
) -> LateFeeQuote:
    """
    Days late and the fee owed for paying on payment_date.

    Without a due date the rent is taken as due on the 1st of the payment
    month. The fee is days_late * daily_late_fee, capped at max_late_fee.
    """
    due = due_date or first_of_month(payment_date)
    daily = quantize_money(daily_late_fee if daily_late_fee is not None else settings.DEFAULT_DAILY_LATE_FEE)
    cap = quantize_money(max_late_fee if max_late_fee is not None else settings.MAX_LATE_FEE)

    if daily < 0:
        raise ValueError("daily_late_fee cannot be negative.")

    days_late = max(0, (payment_date - due).days)
    amount = min(quantize_money(daily * days_late), cap)
    return LateFeeQuote(days_late=days_late, amount=amount)


def build_late_fee_record(
    *,
    lease_id: int,
    amount,
    days_late: int,
    payment_date: date,
    payment_method: str,
    reference_number: Optional[str] = None,
) -> LateFeeRecord:
    if days_late < 1:
        raise ValueError("A late fee needs at least one day late.")

    month = f"{calendar.month_name[payment_date.month]} {payment_date.year}"
    return LateFeeRecord(
        lease_id=lease_id,
        amount=quantize_money(amount),
        days_late=days_late,
        payment_date=payment_date,
        payment_method=payment_method,
        reference_number=reference_number or None,
        description=f"Late payment fee for {month} ({days_late} days late)",
        status=PaymentStatus.COMPLETED,
        original_due_date=first_of_month(payment_date),
    )


def assess_late_fee(
    store: PaymentStore,
    *,
    lease_id: int,
    amount,
    days_late: int,
    payment_date: date,
    payment_method: str,
    reference_number: Optional[str] = None,
) -> bool:
    """
    Record a late fee as an already settled payment row.

    Lateness is decided by the caller. Returns False instead of raising when
    the record is invalid or the store rejects the insert.
    """
    try:
        record = build_late_fee_record(
            lease_id=lease_id,
            amount=amount,
            days_late=days_late,
            payment_date=payment_date,
            payment_method=payment_method,
            reference_number=reference_number,
        )
        store.insert(record.to_row())
    except Exception:
        logger.exception("failed to record late fee for lease_id=%s", lease_id)
        return False

    logger.info(
        "late fee recorded lease_id=%s amount=%s days_late=%s",
        lease_id, record.amount, record.days_late,
    )
    return True
