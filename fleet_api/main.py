from __future__ import annotations

import logging

from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fleet_api.config import settings
from fleet_api.infra.db import engine, SessionLocal
from fleet_api.infra.models import Base
from fleet_api.init_db import ensure_admin

from fleet_api.api.routers.auth import router as auth_router
from fleet_api.api.routers.customers import router as customers_router
from fleet_api.api.routers.vehicles import router as vehicles_router
from fleet_api.api.routers.leases import router as leases_router
from fleet_api.api.routers.payments import router as payments_router
from fleet_api.api.routers.health import router as health_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("fleet_api")


app = FastAPI(title="Fleet Rental API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)

logger.info("CORS allow_origins=%s", settings.allowed_origins)


@app.on_event("startup")
def _startup() -> None:
    logger.info("creating tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("tables created/checked")

    db = SessionLocal()
    try:
        ensure_admin(db)
    finally:
        db.close()


app.include_router(health_router, tags=["health"])
app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(customers_router, prefix="/customers", tags=["customers"])
app.include_router(vehicles_router, prefix="/vehicles", tags=["vehicles"])
app.include_router(leases_router, prefix="/leases", tags=["leases"])
app.include_router(payments_router, prefix="/payments", tags=["payments"])
