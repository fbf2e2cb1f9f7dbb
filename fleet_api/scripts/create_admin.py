# python -m fleet_api.scripts.create_admin
import logging

from fleet_api.config import settings
from fleet_api.infra.db import SessionLocal
from fleet_api.init_db import ensure_admin, main as create_tables

logging.basicConfig(level=settings.LOG_LEVEL.upper())

create_tables()
db = SessionLocal()
try:
    ensure_admin(db)
finally:
    db.close()
