from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from fleet_api.api.deps import DBSession
from fleet_api.api.auth_deps import get_current_user, require_roles
from fleet_api.infra.models import PaymentStatus, PaymentType, UserRole
from fleet_api.schemas.payments import (
    LateFeeQuoteIn,
    LateFeeQuoteOut,
    PaymentCreate,
    PaymentOut,
    PaymentRecorded,
    PaymentStatistics,
)
from fleet_api.services.payment_service import (
    cancel_payment,
    list_payments,
    payment_statistics,
    quote_late_fee,
    record_payment,
)

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("", response_model=list[PaymentOut])
def list_payments_endpoint(
    db: Session = DBSession,
    lease_id: Optional[int] = Query(default=None),
    status: Optional[str] = Query(default=None, description="PENDING|PARTIALLY_PAID|COMPLETED|CANCELED"),
    type: Optional[str] = Query(default=None, description="RENT|LATE_PAYMENT_FEE"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    try:
        st = PaymentStatus(status.strip().upper()) if status else None
        pt = PaymentType(type.strip().upper()) if type else None
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid status or type.")

    return list_payments(db, lease_id=lease_id, status=st, payment_type=pt, limit=limit, offset=offset)


@router.post("", response_model=PaymentRecorded, status_code=201)
def record_payment_endpoint(payload: PaymentCreate, db: Session = DBSession):
    try:
        payment, late_fee_recorded = record_payment(
            db,
            lease_id=payload.lease_id,
            amount=payload.amount,
            payment_date=payload.payment_date,
            payment_method=payload.payment_method,
            reference_number=payload.reference_number,
            notes=payload.notes,
            include_late_fee=payload.include_late_fee,
            is_partial=payload.is_partial,
            target_payment_id=payload.target_payment_id,
        )
        db.commit()
        db.refresh(payment)
    except LookupError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        db.rollback()
        logger.exception("payment recording failed for lease_id=%s", payload.lease_id)
        raise HTTPException(status_code=500, detail="Error recording payment.")

    return PaymentRecorded(
        payment=PaymentOut.model_validate(payment),
        late_fee_recorded=late_fee_recorded,
    )


@router.post("/late-fee-quote", response_model=LateFeeQuoteOut)
def late_fee_quote_endpoint(payload: LateFeeQuoteIn, db: Session = DBSession):
    try:
        quote = quote_late_fee(
            db,
            lease_id=payload.lease_id,
            payment_date=payload.payment_date,
            target_payment_id=payload.target_payment_id,
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return LateFeeQuoteOut(days_late=quote.days_late, amount=quote.amount)


@router.post("/{payment_id}/cancel", response_model=PaymentOut)
def cancel_payment_endpoint(
    payment_id: int,
    db: Session = DBSession,
    _user=Depends(require_roles(UserRole.ADMIN)),
):
    try:
        payment = cancel_payment(db, payment_id)
        db.commit()
        db.refresh(payment)
    except LookupError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    return PaymentOut.model_validate(payment)


@router.get("/statistics/{lease_id}", response_model=PaymentStatistics)
def payment_statistics_endpoint(lease_id: int, db: Session = DBSession):
    try:
        stats = payment_statistics(db, lease_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return PaymentStatistics(**stats)
