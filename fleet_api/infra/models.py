from __future__ import annotations

import enum
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List

from sqlalchemy import (
    String, Integer, DateTime, Date, Numeric, ForeignKey, Text,
    Enum as SAEnum, UniqueConstraint, Index, func
)

from sqlalchemy.orm import (
    DeclarativeBase, Mapped, mapped_column, relationship
)


# base
class Base(DeclarativeBase):
    pass

# enums = status
class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    STAFF = "STAFF"

class VehicleStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    RENTED = "RENTED"
    MAINTENANCE = "MAINTENANCE"

class LeaseStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"
    CANCELED = "CANCELED"

class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"

class PaymentType(str, enum.Enum):
    RENT = "RENT"
    LATE_PAYMENT_FEE = "LATE_PAYMENT_FEE"

# models
class UserORM(Base):
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(160), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    role: Mapped[UserRole] = mapped_column(
        SAEnum(UserRole, name="user_role"), nullable=False, default=UserRole.STAFF
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

class CustomerORM(Base):
    __tablename__ = "customers"
    __table_args__ = (
        Index("ix_customers_phone", "phone"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    full_name: Mapped[str] = mapped_column(String(140), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    driver_license: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    leases: Mapped[List["LeaseORM"]] = relationship(back_populates="customer")

class VehicleORM(Base):
    __tablename__ = "vehicles"
    __table_args__ = (
        Index("ix_vehicles_status", "status"),
        Index("ix_vehicles_make_model", "make", "model"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    make: Mapped[str] = mapped_column(String(60), nullable=False)
    model: Mapped[str] = mapped_column(String(80), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    license_plate: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    vin: Mapped[Optional[str]] = mapped_column(String(30), nullable=True, unique=True)
    color: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    status: Mapped[VehicleStatus] = mapped_column(
        SAEnum(VehicleStatus, name="vehicle_status"),
        nullable=False,
        default=VehicleStatus.AVAILABLE,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    leases: Mapped[List["LeaseORM"]] = relationship(back_populates="vehicle")

class LeaseORM(Base):
    __tablename__ = "leases"
    __table_args__ = (
        UniqueConstraint("agreement_number", name="uq_leases_agreement_number"),
        Index("ix_leases_status", "status"),
        Index("ix_leases_customer", "customer_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    agreement_number: Mapped[str] = mapped_column(String(32), nullable=False)

    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id"), nullable=False)
    vehicle_id: Mapped[Optional[int]] = mapped_column(ForeignKey("vehicles.id"), nullable=True)

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # monthly rent and the full contract value
    rent_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)

    # late rule saved per lease so past charges stay auditable
    daily_late_fee: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    status: Mapped[LeaseStatus] = mapped_column(
        SAEnum(LeaseStatus, name="lease_status"),
        nullable=False,
        default=LeaseStatus.DRAFT,
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    customer: Mapped["CustomerORM"] = relationship(back_populates="leases")
    vehicle: Mapped[Optional["VehicleORM"]] = relationship(back_populates="leases")

    payments: Mapped[List["PaymentORM"]] = relationship(
        back_populates="lease",
        cascade="all, delete-orphan",
        order_by="PaymentORM.original_due_date",
    )

class PaymentORM(Base):
    __tablename__ = "unified_payments"
    __table_args__ = (
        Index("ix_payments_lease_due", "lease_id", "original_due_date"),
        Index("ix_payments_status", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    lease_id: Mapped[int] = mapped_column(ForeignKey("leases.id"), nullable=False)

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    amount_paid: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    balance: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)

    payment_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    payment_method: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    reference_number: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    status: Mapped[PaymentStatus] = mapped_column(
        SAEnum(PaymentStatus, name="payment_status"),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    type: Mapped[PaymentType] = mapped_column(
        SAEnum(PaymentType, name="payment_type"),
        nullable=False,
        default=PaymentType.RENT,
    )

    # what was charged for lateness on this payment, not recomputed later
    days_overdue: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    late_fine_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)

    original_due_date: Mapped[date] = mapped_column(Date, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    lease: Mapped["LeaseORM"] = relationship(back_populates="payments")
