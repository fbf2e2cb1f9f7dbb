import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fleet_api.config import settings
from fleet_api.infra.db import engine
from fleet_api.infra.models import Base, UserORM, UserRole
from fleet_api.services.security import hash_password

logger = logging.getLogger(__name__)


def ensure_admin(db: Session) -> None:
    """
    Create the admin user if missing.
    Configured through ADMIN_EMAIL, ADMIN_PASSWORD and ADMIN_NAME.
    """
    email = settings.ADMIN_EMAIL.strip().lower()
    password = settings.ADMIN_PASSWORD.strip()
    name = settings.ADMIN_NAME.strip()

    if not email or not password:
        logger.warning("admin settings incomplete; skipping admin creation")
        return

    existing = db.query(UserORM).filter(UserORM.email == email).first()
    if existing:
        return

    user = UserORM(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=UserRole.ADMIN,
    )
    db.add(user)
    try:
        db.commit()
        logger.info("admin user %s created", email)
    except IntegrityError:
        # another instance starting up created it first
        db.rollback()
        logger.info("admin user %s already exists", email)


def main():
    Base.metadata.create_all(bind=engine)
    logger.info("tables created")

if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    main()
