from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fleet_api.infra.models import (
    LeaseORM,
    CustomerORM,
    VehicleORM,
    PaymentORM,
    LeaseStatus,
    VehicleStatus,
    PaymentStatus,
    PaymentType,
)
from fleet_api.services.id_gen import generate_public_id
from fleet_api.services.money import ZERO, quantize_money
from fleet_api.services.schedule import Installment, generate_schedule

logger = logging.getLogger(__name__)


def _unique_agreement_number(db: Session) -> str:
    for _ in range(30):
        number = generate_public_id("AGR")
        exists = db.scalar(select(LeaseORM.id).where(LeaseORM.agreement_number == number))
        if not exists:
            return number
    raise RuntimeError("Could not generate a unique agreement number.")


ALLOWED_TRANSITIONS: dict[LeaseStatus, set[LeaseStatus]] = {
    LeaseStatus.DRAFT: {LeaseStatus.ACTIVE, LeaseStatus.CANCELED},
    LeaseStatus.ACTIVE: {LeaseStatus.CLOSED, LeaseStatus.CANCELED},
    LeaseStatus.CLOSED: set(),
    LeaseStatus.CANCELED: set(),
}


def create_lease(
    db: Session,
    *,
    customer_id: int,
    vehicle_id: Optional[int] = None,
    start_date: date,
    end_date: Optional[date] = None,
    rent_amount: Decimal,
    total_amount: Optional[Decimal] = None,
    daily_late_fee: Optional[Decimal] = None,
    notes: Optional[str] = None,
) -> LeaseORM:
    if not db.get(CustomerORM, customer_id):
        raise ValueError("Invalid customer_id.")

    if vehicle_id is not None:
        vehicle = db.get(VehicleORM, vehicle_id)
        if not vehicle:
            raise ValueError("Invalid vehicle_id.")
        if vehicle.status != VehicleStatus.AVAILABLE:
            raise ValueError("Vehicle is not available.")

    rent_amount = quantize_money(rent_amount)
    if rent_amount <= 0:
        raise ValueError("rent_amount must be greater than zero.")

    if total_amount is None:
        total_amount = ZERO
    total_amount = quantize_money(total_amount)
    if total_amount < 0:
        raise ValueError("total_amount cannot be negative.")

    if daily_late_fee is not None:
        daily_late_fee = quantize_money(daily_late_fee)
        if daily_late_fee < 0:
            raise ValueError("daily_late_fee cannot be negative.")

    if end_date is not None and end_date < start_date:
        raise ValueError("end_date cannot be before start_date.")

    lease = LeaseORM(
        agreement_number=_unique_agreement_number(db),
        customer_id=customer_id,
        vehicle_id=vehicle_id,
        start_date=start_date,
        end_date=end_date,
        rent_amount=rent_amount,
        total_amount=total_amount,
        daily_late_fee=daily_late_fee,
        status=LeaseStatus.DRAFT,
        notes=notes,
    )
    db.add(lease)
    db.flush()

    logger.info("lease %s created for customer_id=%s", lease.agreement_number, customer_id)
    return lease


def update_lease_status(db: Session, *, lease_id: int, new_status: LeaseStatus) -> LeaseORM:
    lease = db.get(LeaseORM, lease_id)
    if not lease:
        raise LookupError("Lease not found.")

    current = lease.status
    if current == new_status:
        return lease

    allowed = ALLOWED_TRANSITIONS.get(current, set())
    if new_status not in allowed:
        raise ValueError(f"Invalid transition: {current.value} -> {new_status.value}")

    vehicle = lease.vehicle
    if vehicle is not None:
        if new_status == LeaseStatus.ACTIVE:
            if vehicle.status != VehicleStatus.AVAILABLE:
                raise ValueError("Vehicle is not available.")
            vehicle.status = VehicleStatus.RENTED
        elif new_status in (LeaseStatus.CLOSED, LeaseStatus.CANCELED) and current == LeaseStatus.ACTIVE:
            vehicle.status = VehicleStatus.AVAILABLE

    if new_status == LeaseStatus.CANCELED:
        for p in lease.payments:
            if p.status == PaymentStatus.PENDING:
                p.status = PaymentStatus.CANCELED

    lease.status = new_status
    db.flush()
    return lease


def list_leases(
    db: Session,
    *,
    page: int = 1,
    page_size: int = 20,
    customer_id: Optional[int] = None,
    status: Optional[LeaseStatus] = None,
):
    if page < 1:
        raise ValueError("page must be >= 1")
    if page_size < 1 or page_size > 200:
        raise ValueError("page_size must be between 1 and 200")

    q = db.query(LeaseORM)

    if customer_id is not None:
        q = q.filter(LeaseORM.customer_id == customer_id)
    if status is not None:
        q = q.filter(LeaseORM.status == status)

    total = q.with_entities(func.count(LeaseORM.id)).scalar() or 0

    items = (
        q.order_by(LeaseORM.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )

    return items, total


def lease_schedule(lease: LeaseORM) -> list[Installment]:
    return generate_schedule(
        lease.start_date,
        lease.end_date,
        lease.rent_amount,
        lease.total_amount,
    )


def generate_lease_payments(db: Session, lease_id: int) -> list[PaymentORM]:
    """
    Persist the lease schedule as PENDING rent rows.

    Due dates that already have a rent row are skipped, so running this again
    only fills the gaps.
    """
    lease = db.get(LeaseORM, lease_id)
    if not lease:
        raise LookupError("Lease not found.")
    if lease.status in (LeaseStatus.CLOSED, LeaseStatus.CANCELED):
        raise ValueError("Closed or canceled lease: cannot generate payments.")

    existing = set(
        db.execute(
            select(PaymentORM.original_due_date).where(
                PaymentORM.lease_id == lease.id,
                PaymentORM.type == PaymentType.RENT,
            )
        ).scalars()
    )

    created: list[PaymentORM] = []
    for inst in lease_schedule(lease):
        if inst.due_date in existing:
            continue
        row = PaymentORM(
            lease_id=lease.id,
            amount=inst.amount,
            amount_paid=ZERO,
            balance=inst.amount,
            description=f"Monthly rent {inst.number} for {lease.agreement_number}",
            status=PaymentStatus.PENDING,
            type=PaymentType.RENT,
            days_overdue=0,
            late_fine_amount=ZERO,
            original_due_date=inst.due_date,
        )
        db.add(row)
        created.append(row)

    db.flush()
    logger.info("lease %s: %d scheduled payments created", lease.agreement_number, len(created))
    return created
