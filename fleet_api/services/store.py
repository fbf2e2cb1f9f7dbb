from __future__ import annotations

import logging
from typing import Any, Protocol

from sqlalchemy.orm import Session

from fleet_api.infra.models import PaymentORM, PaymentStatus, PaymentType

logger = logging.getLogger(__name__)


class PaymentStore(Protocol):
    """Anything that can insert one payment row and raise if it could not."""

    def insert(self, row: dict[str, Any]) -> None:
        ...


class SqlPaymentStore:
    """
    Inserts payment rows through the request session.

    Each insert runs in a SAVEPOINT so a failed row is rolled back on its own
    and the caller's pending work (e.g. the rent payment) survives.
    """

    def __init__(self, db: Session):
        self.db = db

    def insert(self, row: dict[str, Any]) -> None:
        payment = PaymentORM(
            lease_id=row["lease_id"],
            amount=row["amount"],
            amount_paid=row.get("amount_paid", 0),
            balance=row.get("balance", 0),
            payment_date=row.get("payment_date"),
            payment_method=row.get("payment_method"),
            reference_number=row.get("reference_number"),
            description=row.get("description"),
            status=PaymentStatus(row.get("status", PaymentStatus.PENDING)),
            type=PaymentType(row.get("type", PaymentType.RENT)),
            days_overdue=row.get("days_overdue", 0),
            late_fine_amount=row.get("late_fine_amount", 0),
            original_due_date=row["original_due_date"],
        )
        with self.db.begin_nested():
            self.db.add(payment)
            self.db.flush()
        logger.debug("inserted %s payment id=%s lease_id=%s", payment.type.value, payment.id, payment.lease_id)
