import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from fleet_api.api.auth_deps import get_current_user
from fleet_api.infra.db import SessionLocal, engine
from fleet_api.infra.models import Base, CustomerORM, LeaseORM, LeaseStatus, UserORM, UserRole
from fleet_api.main import app


@pytest.fixture(autouse=True)
def _tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def _client_as(role):
    def _fake_user():
        return UserORM(id=1, name="Tester", email="tester@example.com", password_hash="x", role=role)

    app.dependency_overrides[get_current_user] = _fake_user
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def client():
    yield from _client_as(UserRole.ADMIN)


@pytest.fixture
def staff_client():
    yield from _client_as(UserRole.STAFF)


@pytest.fixture
def customer(db):
    c = CustomerORM(full_name="Ahmed Ali", phone="55512345")
    db.add(c)
    db.commit()
    return c


@pytest.fixture
def lease(db, customer):
    lease = LeaseORM(
        agreement_number="AGR-TEST0001",
        customer_id=customer.id,
        start_date=date(2023, 1, 1),
        end_date=date(2023, 12, 31),
        rent_amount=Decimal("1500.00"),
        total_amount=Decimal("18000.00"),
        daily_late_fee=Decimal("120.00"),
        status=LeaseStatus.ACTIVE,
    )
    db.add(lease)
    db.commit()
    return lease
