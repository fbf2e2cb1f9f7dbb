from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from fleet_api.api.deps import DBSession
from fleet_api.api.auth_deps import get_current_user, require_roles
from fleet_api.infra.models import LeaseORM, LeaseStatus, UserRole
from fleet_api.schemas.leases import LeaseCreate, LeaseOut, LeaseStatusUpdate, ScheduleOut
from fleet_api.schemas.payments import PaymentOut
from fleet_api.services.lease_service import (
    create_lease,
    generate_lease_payments,
    lease_schedule,
    list_leases,
    update_lease_status,
)
from fleet_api.services.schedule import schedule_total

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(get_current_user)])


def _get_lease_or_404(db: Session, lease_id: int) -> LeaseORM:
    lease = db.get(LeaseORM, lease_id)
    if not lease:
        raise HTTPException(status_code=404, detail="Lease not found.")
    return lease


@router.post("", response_model=LeaseOut, status_code=201)
def create_lease_endpoint(payload: LeaseCreate, db: Session = DBSession):
    try:
        lease = create_lease(
            db,
            customer_id=payload.customer_id,
            vehicle_id=payload.vehicle_id,
            start_date=payload.start_date,
            end_date=payload.end_date,
            rent_amount=payload.rent_amount,
            total_amount=payload.total_amount,
            daily_late_fee=payload.daily_late_fee,
            notes=payload.notes,
        )
        db.commit()
        db.refresh(lease)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        db.rollback()
        logger.exception("lease creation failed")
        raise HTTPException(status_code=500, detail="Error creating lease.")

    return LeaseOut.model_validate(lease)


@router.get("", response_model=dict)
def list_leases_endpoint(
    db: Session = DBSession,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200),
    customer_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None, description="DRAFT|ACTIVE|CLOSED|CANCELED"),
):
    try:
        st = LeaseStatus(status.strip().upper()) if status else None
        items, total = list_leases(
            db,
            page=page,
            page_size=page_size,
            customer_id=customer_id,
            status=st,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "items": [LeaseOut.model_validate(x) for x in items],
        "total": total,
        "page": page,
        "page_size": page_size,
    }


@router.get("/{lease_id}", response_model=LeaseOut)
def get_lease(lease_id: int, db: Session = DBSession):
    return LeaseOut.model_validate(_get_lease_or_404(db, lease_id))


@router.patch("/{lease_id}/status", response_model=LeaseOut)
def update_lease_status_endpoint(
    lease_id: int,
    payload: LeaseStatusUpdate,
    db: Session = DBSession,
    _user=Depends(require_roles(UserRole.ADMIN)),
):
    try:
        lease = update_lease_status(db, lease_id=lease_id, new_status=payload.status)
        db.commit()
        db.refresh(lease)
    except LookupError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    return LeaseOut.model_validate(lease)


@router.get("/{lease_id}/schedule", response_model=ScheduleOut)
def get_lease_schedule(lease_id: int, db: Session = DBSession):
    lease = _get_lease_or_404(db, lease_id)
    try:
        installments = lease_schedule(lease)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ScheduleOut(
        lease_id=lease.id,
        agreement_number=lease.agreement_number,
        installments=installments,
        total=schedule_total(installments),
    )


@router.post("/{lease_id}/payments/generate", response_model=list[PaymentOut], status_code=201)
def generate_payments_endpoint(
    lease_id: int,
    db: Session = DBSession,
    _user=Depends(require_roles(UserRole.ADMIN)),
):
    try:
        created = generate_lease_payments(db, lease_id)
        db.commit()
        for p in created:
            db.refresh(p)
    except LookupError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        db.rollback()
        logger.exception("payment generation failed for lease_id=%s", lease_id)
        raise HTTPException(status_code=500, detail="Error generating payments.")

    return [PaymentOut.model_validate(p) for p in created]
