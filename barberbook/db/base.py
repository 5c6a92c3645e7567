from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .session import Base


class Role:
    ADMIN = "ADMIN"
    BUSINESS_OWNER = "BUSINESS_OWNER"
    WORKER = "WORKER"
    CLIENT = "CLIENT"

    ALL = (ADMIN, BUSINESS_OWNER, WORKER, CLIENT)
    SELF_REGISTRABLE = (CLIENT, BUSINESS_OWNER)


class BookingStatus:
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    ALL = (PENDING, CONFIRMED, COMPLETED, CANCELLED)


class PaymentStatus:
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

    ALL = (PENDING, COMPLETED, FAILED)


# Explicitly implement Flask-Login interface without inheriting UserMixin
class User(Base):
    """Account for every role: admins, owners, workers and clients."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=Role.CLIENT, index=True
    )
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    # Workers: the employing business. Owners: their own business.
    business_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey(
            "businesses.id",
            ondelete="SET NULL",
            use_alter=True,
            name="fk_users_business_id",
        ),
        nullable=True,
    )
    active_flag: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    business: Mapped[Optional["Business"]] = relationship(
        "Business", foreign_keys=[business_id]
    )
    client_links: Mapped[List["BusinessClient"]] = relationship(
        "BusinessClient", back_populates="client", cascade="all, delete-orphan"
    )

    @property
    def is_active(self) -> bool:
        return bool(self.active_flag)

    @is_active.setter
    def is_active(self, value: bool) -> None:
        self.active_flag = bool(value)

    # Flask-Login required methods
    def get_id(self):
        return str(self.id)

    @property
    def is_authenticated(self):
        return True

    @property
    def is_anonymous(self):
        return False

    def __repr__(self):
        return f"<User {self.id} {self.email} {self.role}>"


class Business(Base):
    __tablename__ = "businesses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    owner_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), unique=True, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    owner: Mapped["User"] = relationship("User", foreign_keys=[owner_id])
    settings: Mapped[Optional["BusinessSettings"]] = relationship(
        "BusinessSettings",
        back_populates="business",
        uselist=False,
        cascade="all, delete-orphan",
    )
    services: Mapped[List["Service"]] = relationship(
        "Service", back_populates="business", cascade="all, delete-orphan"
    )
    bookings: Mapped[List["Booking"]] = relationship(
        "Booking", back_populates="business", cascade="all, delete-orphan"
    )
    client_links: Mapped[List["BusinessClient"]] = relationship(
        "BusinessClient", back_populates="business", cascade="all, delete-orphan"
    )
    bank_accounts: Mapped[List["BankAccount"]] = relationship(
        "BankAccount", back_populates="business", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Business {self.id} {self.name!r}>"


class BusinessSettings(Base):
    __tablename__ = "business_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    business_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("businesses.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    stripe_connect_id: Mapped[Optional[str]] = mapped_column(
        String(100), nullable=True
    )
    payouts_enabled: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    currency: Mapped[str] = mapped_column(String(3), default="usd", nullable=False)
    opening_hours: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    business: Mapped["Business"] = relationship("Business", back_populates="settings")


class Service(Base):
    __tablename__ = "services"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)  # minutes
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    business_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    business: Mapped["Business"] = relationship("Business", back_populates="services")
    bookings: Mapped[List["Booking"]] = relationship(
        "Booking", back_populates="service"
    )

    def __repr__(self):
        return f"<Service {self.id} {self.name!r} {self.duration}min>"


class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    business_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False
    )
    service_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("services.id"), nullable=False
    )
    worker_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )
    client_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )
    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    end_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BookingStatus.CONFIRMED
    )
    is_paid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    business: Mapped["Business"] = relationship("Business", back_populates="bookings")
    service: Mapped["Service"] = relationship("Service", back_populates="bookings")
    worker: Mapped["User"] = relationship("User", foreign_keys=[worker_id])
    client: Mapped["User"] = relationship("User", foreign_keys=[client_id])
    payments: Mapped[List["Payment"]] = relationship(
        "Payment", back_populates="booking"
    )

    def __repr__(self):
        return (
            f"<Booking {self.id} worker={self.worker_id} "
            f"{self.start_time}-{self.end_time} {self.status}>"
        )


class Payment(Base):
    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    platform_fee_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False
    )
    stripe_fee_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    business_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="usd", nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PaymentStatus.PENDING
    )
    stripe_payment_id: Mapped[Optional[str]] = mapped_column(
        String(255), unique=True, nullable=True
    )
    business_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False
    )
    booking_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("bookings.id", ondelete="SET NULL"), nullable=True
    )
    # Signed-in payer; guests are identified by the intent metadata instead.
    client_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    business: Mapped["Business"] = relationship("Business")
    booking: Mapped[Optional["Booking"]] = relationship(
        "Booking", back_populates="payments"
    )
    client: Mapped[Optional["User"]] = relationship("User")

    def __repr__(self):
        return f"<Payment {self.id} {self.amount} {self.status}>"


class BusinessClient(Base):
    __tablename__ = "business_clients"
    __table_args__ = (
        UniqueConstraint("business_id", "client_id", name="uq_business_client"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    business_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False
    )
    client_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    business: Mapped["Business"] = relationship(
        "Business", back_populates="client_links"
    )
    client: Mapped["User"] = relationship("User", back_populates="client_links")


class BankAccount(Base):
    __tablename__ = "bank_accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    business_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False
    )
    account_name: Mapped[str] = mapped_column(String(150), nullable=False)
    account_number: Mapped[str] = mapped_column(String(8), nullable=False)
    sort_code: Mapped[str] = mapped_column(String(8), nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    business: Mapped["Business"] = relationship(
        "Business", back_populates="bank_accounts"
    )
