from fastapi import Depends
from sqlalchemy.orm import Session
from fleet_api.infra.db import get_db

DBSession = Depends(get_db)
