from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query
from sqlalchemy.orm import Session
from sqlalchemy import select
from typing import Optional

from fleet_api.api.deps import DBSession
from fleet_api.infra.models import CustomerORM
from fleet_api.schemas.customers import CustomerCreate, CustomerUpdate, CustomerOut

from fastapi import Depends
from fleet_api.api.auth_deps import get_current_user

router = APIRouter(dependencies=[Depends(get_current_user)])


def normalize_phone(phone: str) -> str:
    return (
        phone.strip()
        .replace(" ", "")
        .replace("-", "")
        .replace("(", "")
        .replace(")", "")
    )


def normalize_email(email: Optional[str]) -> Optional[str]:
    if not email:
        return None
    return email.strip().lower()


@router.post("", response_model=CustomerOut, status_code=201)
def create_customer(payload: CustomerCreate, db: Session = DBSession):
    customer = CustomerORM(
        full_name=payload.full_name.strip(),
        phone=normalize_phone(payload.phone),
        email=normalize_email(payload.email),
        driver_license=payload.driver_license.strip() if payload.driver_license else None,
        address=payload.address.strip() if payload.address else None,
        notes=payload.notes,
    )
    db.add(customer)
    db.flush()

    return customer


@router.get("", response_model=list[CustomerOut])
def list_customers(
    db: Session = DBSession,
    q: Optional[str] = Query(default=None, description="Search by name, phone or license"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    stmt = select(CustomerORM).order_by(CustomerORM.id.desc())

    if q:
        qn = q.strip()
        q_phone = normalize_phone(qn)

        stmt = stmt.where(
            (CustomerORM.full_name.ilike(f"%{qn}%")) |
            (CustomerORM.phone.ilike(f"%{q_phone}%")) |
            (CustomerORM.driver_license.ilike(f"%{qn}%"))
        )

    stmt = stmt.limit(limit).offset(offset)
    return db.execute(stmt).scalars().all()


@router.get("/{customer_id}", response_model=CustomerOut)
def get_customer(customer_id: int, db: Session = DBSession):
    customer = db.get(CustomerORM, customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found.")
    return customer


@router.put("/{customer_id}", response_model=CustomerOut)
def update_customer(customer_id: int, payload: CustomerUpdate, db: Session = DBSession):
    customer = db.get(CustomerORM, customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found.")

    if payload.full_name is not None:
        customer.full_name = payload.full_name.strip()

    if payload.phone is not None:
        customer.phone = normalize_phone(payload.phone)

    if payload.email is not None:
        customer.email = normalize_email(payload.email)

    if payload.driver_license is not None:
        customer.driver_license = payload.driver_license.strip() or None

    if payload.address is not None:
        customer.address = payload.address.strip() if payload.address else None

    if payload.notes is not None:
        customer.notes = payload.notes

    db.flush()
    return customer
