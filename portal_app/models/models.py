from datetime import datetime
from typing import Optional

from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    LargeBinary,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from core.get_db import Base

from .enums import AccountRole, ApplicationStatus

# form fields sealed on every application, in form order
APPLICATION_SEALED_FIELDS = (
    "full_name",
    "date_of_birth",
    "passport_number",
    "phone_number",
    "email",
    "occupation",
    "employer",
    "employer_number",
    "emergency_contact_name",
    "emergency_contact_number",
    "emergency_contact_address",
    "if_evicted",
    "evicted_reason",
    "if_convicted",
    "convicted_reason",
    "smoke",
    "pets",
    "if_vehicle",
    "vehicle_reg",
    "have_children",
    "children",
    "refused_rent",
    "refused_rent_reason",
    "unstable_income",
    "income_reason",
)

TENANCY_TERM_FIELDS = (
    "room_type",
    "move_in_date",
    "rent_due",
    "monthly_rent",
    "currency",
)


class AccountMixin:
    email_hash: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    encrypted_email: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(128), nullable=False)

    # written together by a single UPDATE, never one at a time
    session_token: Mapped[Optional[str]] = mapped_column(
        String(128), unique=True, index=True, nullable=True
    )
    csrf_token: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    token_expiry: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    @property
    def is_logged_in(self) -> bool:
        return self.session_token is not None


class Landlord(AccountMixin, Base):
    __tablename__ = "landlords"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    def __repr__(self):
        return f"<Landlord id={self.id}>"


class Tenant(AccountMixin, Base):
    __tablename__ = "tenants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    landlord_id: Mapped[int] = mapped_column(
        ForeignKey("landlords.id", ondelete="CASCADE"), index=True
    )
    application_id: Mapped[int] = mapped_column(
        ForeignKey("tenant_applications.id"), unique=True
    )
    passport_hash: Mapped[str] = mapped_column(String(64), index=True)
    encrypted_passport_number: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_room_type: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_move_in_date: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_rent_due: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_monthly_rent: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_currency: Mapped[bytes] = mapped_column(LargeBinary)

    def __repr__(self):
        return f"<Tenant id={self.id} application_id={self.application_id}>"


class TenantApplication(Base):
    __tablename__ = "tenant_applications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    landlord_id: Mapped[int] = mapped_column(
        ForeignKey("landlords.id", ondelete="CASCADE"), index=True
    )
    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(ApplicationStatus, native_enum=False, length=16),
        default=ApplicationStatus.PENDING,
        nullable=False,
    )

    hash_full_name: Mapped[str] = mapped_column(String(64), index=True)
    hash_date_of_birth: Mapped[str] = mapped_column(String(64), index=True)
    hash_passport_number: Mapped[str] = mapped_column(String(64), index=True)
    hash_email: Mapped[str] = mapped_column(String(64), index=True)

    encrypted_full_name: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_date_of_birth: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_passport_number: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_phone_number: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_email: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_occupation: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_employer: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_employer_number: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_emergency_contact_name: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_emergency_contact_number: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_emergency_contact_address: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_if_evicted: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_evicted_reason: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_if_convicted: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_convicted_reason: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_smoke: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_pets: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_if_vehicle: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_vehicle_reg: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_have_children: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_children: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_refused_rent: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_refused_rent_reason: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_unstable_income: Mapped[bytes] = mapped_column(LargeBinary)
    encrypted_income_reason: Mapped[bytes] = mapped_column(LargeBinary)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self):
        return f"<TenantApplication id={self.id} status={self.status.value}>"


class Message(Base):
    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    landlord_id: Mapped[int] = mapped_column(
        ForeignKey("landlords.id", ondelete="CASCADE"), index=True
    )
    tenant_id: Mapped[int] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"), index=True
    )
    sender_role: Mapped[AccountRole] = mapped_column(
        Enum(AccountRole, native_enum=False, length=16), nullable=False
    )
    encrypted_body: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
