from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from fleet_api.infra.models import (
    LeaseORM,
    PaymentORM,
    LeaseStatus,
    PaymentStatus,
    PaymentType,
)
from fleet_api.services.late_fees import (
    LateFeeQuote,
    assess_late_fee,
    calculate_late_fee,
    first_of_month,
)
from fleet_api.services.money import ZERO, quantize_money
from fleet_api.services.store import PaymentStore, SqlPaymentStore

logger = logging.getLogger(__name__)

OPEN_STATUSES = (PaymentStatus.PENDING, PaymentStatus.PARTIALLY_PAID)


def _get_lease(db: Session, lease_id: int) -> LeaseORM:
    lease = db.get(LeaseORM, lease_id)
    if not lease:
        raise LookupError("Lease not found.")
    return lease


def quote_late_fee(
    db: Session,
    *,
    lease_id: int,
    payment_date: date,
    target_payment_id: Optional[int] = None,
) -> LateFeeQuote:
    lease = _get_lease(db, lease_id)
    due = None
    if target_payment_id is not None:
        due = _get_open_payment(db, lease, target_payment_id).original_due_date
    return calculate_late_fee(due, payment_date, daily_late_fee=lease.daily_late_fee)


def _get_open_payment(db: Session, lease: LeaseORM, payment_id: int) -> PaymentORM:
    payment = db.get(PaymentORM, payment_id)
    if not payment or payment.lease_id != lease.id:
        raise LookupError("Payment not found for this lease.")
    if payment.status == PaymentStatus.CANCELED:
        raise ValueError("Canceled payment cannot be paid.")
    if payment.status == PaymentStatus.COMPLETED:
        raise ValueError("Payment is already settled.")
    return payment


def record_payment(
    db: Session,
    *,
    lease_id: int,
    amount: Decimal,
    payment_date: date,
    payment_method: str = "Cash",
    reference_number: Optional[str] = None,
    notes: Optional[str] = None,
    include_late_fee: bool = False,
    is_partial: bool = False,
    target_payment_id: Optional[int] = None,
    store: Optional[PaymentStore] = None,
) -> Tuple[PaymentORM, Optional[bool]]:
    """
    Record a rent payment, optionally with its late fee.

    With target_payment_id the amount is added to that open row (scheduled
    or partially paid); otherwise a new rent row is created for the month of
    payment_date. Lateness is measured from the row's due date.

    Returns the payment and whether a late fee was recorded (None when no
    fee was due or none was requested). A failed late fee does not undo
    the payment.
    """
    lease = _get_lease(db, lease_id)
    if lease.status == LeaseStatus.CANCELED:
        raise ValueError("Canceled lease: cannot record payments.")

    amount = quantize_money(amount)
    if amount <= 0:
        raise ValueError("amount must be greater than zero.")

    if target_payment_id is not None:
        payment = _get_open_payment(db, lease, target_payment_id)
        quote = calculate_late_fee(
            payment.original_due_date, payment_date, daily_late_fee=lease.daily_late_fee
        )

        total_paid = quantize_money(payment.amount_paid + amount)
        balance = quantize_money(payment.amount - total_paid)

        payment.amount_paid = total_paid
        payment.balance = max(ZERO, balance)
        payment.status = PaymentStatus.COMPLETED if balance <= 0 else PaymentStatus.PARTIALLY_PAID
        payment.payment_date = payment_date
        payment.payment_method = payment_method
        if reference_number:
            payment.reference_number = reference_number
        if notes:
            payment.description = notes
    else:
        quote = calculate_late_fee(
            first_of_month(payment_date), payment_date, daily_late_fee=lease.daily_late_fee
        )

        rent = quantize_money(lease.rent_amount)
        balance = max(ZERO, quantize_money(rent - amount)) if is_partial else ZERO

        payment = PaymentORM(
            lease_id=lease.id,
            amount=rent,
            amount_paid=amount,
            balance=balance,
            payment_date=payment_date,
            payment_method=payment_method,
            reference_number=reference_number or None,
            description=notes or f"Monthly rent payment for {lease.agreement_number}",
            status=PaymentStatus.PARTIALLY_PAID if balance > 0 else PaymentStatus.COMPLETED,
            type=PaymentType.RENT,
            original_due_date=first_of_month(payment_date),
        )
        db.add(payment)

    payment.days_overdue = quote.days_late
    payment.late_fine_amount = quote.amount
    db.flush()

    logger.info(
        "payment id=%s lease=%s amount=%s status=%s days_overdue=%s",
        payment.id, lease.agreement_number, amount, payment.status.value, quote.days_late,
    )

    late_fee_recorded: Optional[bool] = None
    if include_late_fee and quote.amount > 0:
        late_fee_recorded = assess_late_fee(
            store or SqlPaymentStore(db),
            lease_id=lease.id,
            amount=quote.amount,
            days_late=quote.days_late,
            payment_date=payment_date,
            payment_method=payment_method,
            reference_number=reference_number,
        )
        if not late_fee_recorded:
            logger.warning("payment id=%s recorded but its late fee was not", payment.id)

    return payment, late_fee_recorded


def cancel_payment(db: Session, payment_id: int) -> PaymentORM:
    payment = db.get(PaymentORM, payment_id)
    if not payment:
        raise LookupError("Payment not found.")

    if payment.status == PaymentStatus.CANCELED:
        return payment
    if payment.status != PaymentStatus.PENDING:
        raise ValueError("Only pending payments can be canceled.")

    payment.status = PaymentStatus.CANCELED
    db.flush()
    return payment


def list_payments(
    db: Session,
    *,
    lease_id: Optional[int] = None,
    status: Optional[PaymentStatus] = None,
    payment_type: Optional[PaymentType] = None,
    limit: int = 50,
    offset: int = 0,
) -> list[PaymentORM]:
    stmt = select(PaymentORM).order_by(PaymentORM.original_due_date.asc(), PaymentORM.id.asc())
    if lease_id is not None:
        stmt = stmt.where(PaymentORM.lease_id == lease_id)
    if status is not None:
        stmt = stmt.where(PaymentORM.status == status)
    if payment_type is not None:
        stmt = stmt.where(PaymentORM.type == payment_type)
    stmt = stmt.limit(limit).offset(offset)
    return list(db.execute(stmt).scalars().all())


def payment_statistics(db: Session, lease_id: int, *, today: Optional[date] = None) -> dict:
    _get_lease(db, lease_id)
    today = today or datetime.now().date()

    rows = db.execute(
        select(PaymentORM).where(
            PaymentORM.lease_id == lease_id,
            PaymentORM.status != PaymentStatus.CANCELED,
        )
    ).scalars().all()

    total_paid = ZERO
    total_due = ZERO
    total_late = ZERO
    payment_count = 0
    overdue_count = 0

    for p in rows:
        if p.amount_paid > 0:
            total_paid += p.amount_paid
            payment_count += 1
        if p.type == PaymentType.LATE_PAYMENT_FEE:
            total_late += p.amount
        if p.status in OPEN_STATUSES:
            total_due += p.balance
            if p.original_due_date < today:
                overdue_count += 1

    return {
        "total_paid": quantize_money(total_paid),
        "total_due": quantize_money(total_due),
        "total_late": quantize_money(total_late),
        "payment_count": payment_count,
        "overdue_count": overdue_count,
    }
