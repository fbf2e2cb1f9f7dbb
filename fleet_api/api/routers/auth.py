from __future__ import annotations

from fastapi import APIRouter, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy import select

from fleet_api.api.deps import DBSession
from fleet_api.infra.models import UserORM
from fleet_api.schemas.auth import LoginIn, TokenOut
from fleet_api.services.security import verify_password
from fleet_api.services.jwt_service import create_access_token

router = APIRouter()

@router.post("/login", response_model=TokenOut)
def login(payload: LoginIn, db: Session = DBSession):
    email = payload.email.strip().lower()

    user = db.execute(select(UserORM).where(UserORM.email == email)).scalars().first()
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials.")

    if not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials.")

    token = create_access_token(sub=str(user.id), role=user.role.value)
    return TokenOut(access_token=token)
