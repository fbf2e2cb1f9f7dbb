from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from fleet_api.api.deps import DBSession
from fleet_api.api.auth_deps import get_current_user, require_roles
from fleet_api.infra.models import VehicleORM, VehicleStatus, UserRole
from fleet_api.schemas.vehicles import VehicleCreate, VehicleOut, VehicleStatusUpdate

router = APIRouter(dependencies=[Depends(get_current_user)])


def normalize_plate(plate: str) -> str:
    return plate.strip().upper().replace("-", "").replace(" ", "")


def normalize_vin(vin: str) -> str:
    return vin.strip().upper().replace(" ", "")


@router.post("", response_model=VehicleOut, status_code=201)
def create_vehicle(payload: VehicleCreate, db: Session = DBSession):
    plate = normalize_plate(payload.license_plate)
    vin = normalize_vin(payload.vin) if payload.vin else None

    if db.scalar(select(VehicleORM.id).where(VehicleORM.license_plate == plate)):
        raise HTTPException(status_code=409, detail="License plate already registered.")
    if vin and db.scalar(select(VehicleORM.id).where(VehicleORM.vin == vin)):
        raise HTTPException(status_code=409, detail="VIN already registered.")

    vehicle = VehicleORM(
        make=payload.make.strip(),
        model=payload.model.strip(),
        year=payload.year,
        license_plate=plate,
        vin=vin,
        color=payload.color.strip() if payload.color else None,
        status=VehicleStatus.AVAILABLE,
    )
    db.add(vehicle)
    db.flush()
    return vehicle


@router.get("", response_model=list[VehicleOut])
def list_vehicles(
    db: Session = DBSession,
    status: Optional[str] = Query(default=None, description="AVAILABLE|RENTED|MAINTENANCE"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    stmt = select(VehicleORM).order_by(VehicleORM.id.desc())

    if status:
        try:
            st = VehicleStatus(status.strip().upper())
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid status.")
        stmt = stmt.where(VehicleORM.status == st)

    stmt = stmt.limit(limit).offset(offset)
    return db.execute(stmt).scalars().all()


@router.get("/{vehicle_id}", response_model=VehicleOut)
def get_vehicle(vehicle_id: int, db: Session = DBSession):
    vehicle = db.get(VehicleORM, vehicle_id)
    if not vehicle:
        raise HTTPException(status_code=404, detail="Vehicle not found.")
    return vehicle


@router.patch("/{vehicle_id}/status", response_model=VehicleOut)
def update_vehicle_status(
    vehicle_id: int,
    payload: VehicleStatusUpdate,
    db: Session = DBSession,
    _user=Depends(require_roles(UserRole.ADMIN)),
):
    vehicle = db.get(VehicleORM, vehicle_id)
    if not vehicle:
        raise HTTPException(status_code=404, detail="Vehicle not found.")

    # RENTED is owned by the lease lifecycle
    if vehicle.status == VehicleStatus.RENTED:
        raise HTTPException(status_code=400, detail="Vehicle is rented: close or cancel its lease first.")

    vehicle.status = VehicleStatus(payload.status)
    db.flush()
    return vehicle
