from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum

import sqlalchemy as sa
from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sciencehub.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, utcnow
from sciencehub.models.event import Event
from sciencehub.models.user import User


def _values(enum_cls):
    return [m.value for m in enum_cls]


class RegistrationStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    WAITLIST = "waitlist"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    REFUNDED = "refunded"


class RegistrationType(str, Enum):
    USER = "user"
    ADMIN = "admin"
    IMPORT = "import"


class TicketStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"


class Registration(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "sh_registrations"
    __table_args__ = (
        sa.Index("ix_sh_registrations_event_status", "event_id", "registration_status"),
        sa.Index("ix_sh_registrations_created_at", "created_at"),
        sa.CheckConstraint(
            "adult_tickets >= 0 AND child_tickets >= 0",
            name="ck_sh_registrations_ticket_counts",
        ),
    )

    external_registration_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("sh_events.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("sh_users.id", ondelete="SET NULL"), nullable=True
    )

    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    adult_tickets: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    child_tickets: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    currency: Mapped[str] = mapped_column(String(10), nullable=False, default="RSD")

    registration_status: Mapped[RegistrationStatus] = mapped_column(
        sa.Enum(RegistrationStatus, name="sh_registration_status", values_callable=_values),
        nullable=False,
        default=RegistrationStatus.ACTIVE,
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        sa.Enum(PaymentStatus, name="sh_payment_status", values_callable=_values),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    registration_type: Mapped[RegistrationType] = mapped_column(
        sa.Enum(RegistrationType, name="sh_registration_type", values_callable=_values),
        nullable=False,
        default=RegistrationType.USER,
    )

    # Shared with attendees for check-in; never rewritten after insert
    qr_code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)

    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    attended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    attendee_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    special_requirements: Mapped[str | None] = mapped_column(Text, nullable=True)
    registration_source: Mapped[str | None] = mapped_column(String(100), nullable=True)
    utm_source: Mapped[str | None] = mapped_column(String(100), nullable=True)
    utm_medium: Mapped[str | None] = mapped_column(String(100), nullable=True)
    utm_campaign: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)

    tickets: Mapped[list[RegistrationTicket]] = relationship(
        back_populates="registration",
        cascade="all, delete-orphan",
        order_by="RegistrationTicket.created_at",
    )
    event: Mapped[Event] = relationship()
    user: Mapped[User | None] = relationship()

    @property
    def total_tickets(self) -> int:
        return (self.adult_tickets or 0) + (self.child_tickets or 0)


class RegistrationTicket(Base, UUIDPrimaryKeyMixin):
    __tablename__ = "sh_registration_tickets"

    registration_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("sh_registrations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    ticket_type_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    ticket_name: Mapped[str] = mapped_column(String(200), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    currency: Mapped[str] = mapped_column(String(10), nullable=False, default="RSD")
    ticket_status: Mapped[TicketStatus] = mapped_column(
        sa.Enum(TicketStatus, name="sh_ticket_status", values_callable=_values),
        nullable=False,
        default=TicketStatus.ACTIVE,
    )
    qr_codes: Mapped[list[str]] = mapped_column(sa.JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    registration: Mapped[Registration] = relationship(back_populates="tickets")
