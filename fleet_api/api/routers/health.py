from __future__ import annotations

import logging
import time
from typing import Any

from fastapi import APIRouter, Response
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from fleet_api.infra.db import engine

logger = logging.getLogger(__name__)

router = APIRouter()


def _safe_err(e: Exception) -> str:
    s = str(e) or e.__class__.__name__
    # never echo connection strings
    for k in ("postgres://", "postgresql://", "postgresql+psycopg2://"):
        if k in s:
            s = "db_error"
    return s[:300]


@router.head("/health", include_in_schema=False)
def health_head() -> Response:
    return Response(status_code=200)


@router.get("/health")
def health() -> Any:
    started = time.time()

    db_ok = False
    db_error: str | None = None
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError as e:
        db_error = _safe_err(e)
        logger.warning("health check: database unreachable: %s", db_error)

    elapsed_ms = int((time.time() - started) * 1000)

    payload = {
        "ok": db_ok,
        "db": {"ok": db_ok, "error": db_error},
        "elapsed_ms": elapsed_ms,
    }
    if not db_ok:
        return JSONResponse(payload, status_code=503)
    return payload
