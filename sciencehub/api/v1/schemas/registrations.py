from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from sciencehub.models.registration import (
    PaymentStatus,
    RegistrationStatus,
    RegistrationType,
    TicketStatus,
)


class SchemaBase(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="ignore")


class RegistrationFilters(SchemaBase):
    event_id: UUID | None = None
    user_id: UUID | None = None
    registration_status: list[RegistrationStatus] = Field(default_factory=list)
    payment_status: list[PaymentStatus] = Field(default_factory=list)
    registration_type: list[RegistrationType] = Field(default_factory=list)
    date_from: datetime | None = None
    date_to: datetime | None = None
    search: str | None = None

    @field_validator("search", mode="after")
    @classmethod
    def _blank_search_is_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None


class TicketCreate(SchemaBase):
    ticket_type_id: UUID | None = None
    ticket_name: str = Field(min_length=1, max_length=200)
    quantity: int = Field(default=1, ge=1)
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)
    total_price: Decimal | None = Field(default=None, ge=0)
    currency: str = "RSD"
    ticket_status: TicketStatus = TicketStatus.ACTIVE
    qr_codes: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _default_total_price(self):
        if self.total_price is None:
            self.total_price = self.unit_price * self.quantity
        return self


class RegistrationCreate(SchemaBase):
    external_registration_id: str | None = None
    event_id: UUID
    user_id: UUID | None = None
    full_name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=320)
    phone: str | None = None
    adult_tickets: int = Field(default=1, ge=0)
    child_tickets: int = Field(default=0, ge=0)
    total_amount: Decimal = Field(default=Decimal("0"), ge=0)
    currency: str = "RSD"
    registration_status: RegistrationStatus = RegistrationStatus.ACTIVE
    payment_status: PaymentStatus = PaymentStatus.PENDING
    registration_type: RegistrationType = RegistrationType.USER
    notes: str | None = None
    attendee_notes: str | None = None
    special_requirements: str | None = None
    registration_source: str | None = None
    utm_source: str | None = None
    utm_medium: str | None = None
    utm_campaign: str | None = None
    created_by: UUID | None = None


class RegistrationCreateIn(RegistrationCreate):
    tickets: list[TicketCreate] = Field(default_factory=list)


# Columns a patch may change but never clear
NOT_NULL_FIELDS = frozenset(
    {
        "full_name",
        "email",
        "adult_tickets",
        "child_tickets",
        "total_amount",
        "currency",
        "registration_status",
        "payment_status",
        "registration_type",
    }
)


class RegistrationUpdate(SchemaBase):
    external_registration_id: str | None = None
    user_id: UUID | None = None
    full_name: str | None = Field(default=None, min_length=1, max_length=200)
    email: str | None = None
    phone: str | None = None
    adult_tickets: int | None = Field(default=None, ge=0)
    child_tickets: int | None = Field(default=None, ge=0)
    total_amount: Decimal | None = Field(default=None, ge=0)
    currency: str | None = None
    registration_status: RegistrationStatus | None = None
    payment_status: PaymentStatus | None = None
    registration_type: RegistrationType | None = None
    confirmed_at: datetime | None = None
    attended_at: datetime | None = None
    notes: str | None = None
    attendee_notes: str | None = None
    special_requirements: str | None = None

    @model_validator(mode="after")
    def _required_columns_not_null(self):
        nulled = sorted(
            name
            for name in NOT_NULL_FIELDS
            if name in self.model_fields_set and getattr(self, name) is None
        )
        if nulled:
            raise ValueError(f"fields cannot be null: {', '.join(nulled)}")
        return self


class TicketOut(SchemaBase):
    id: UUID
    registration_id: UUID
    ticket_type_id: UUID | None = None
    ticket_name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    currency: str
    ticket_status: TicketStatus
    qr_codes: list[str] = Field(default_factory=list)
    created_at: datetime


class EventSummaryOut(SchemaBase):
    id: UUID
    title: str
    slug: str
    start_at: datetime | None = None
    end_at: datetime | None = None
    cover_image_url: str | None = None
    venue_name: str | None = None


class UserSummaryOut(SchemaBase):
    id: UUID
    name: str | None = None
    email: str | None = None
    avatar_url: str | None = None


class RegistrationOut(SchemaBase):
    id: UUID
    external_registration_id: str | None = None
    event_id: UUID
    user_id: UUID | None = None
    full_name: str
    email: str
    phone: str | None = None
    adult_tickets: int
    child_tickets: int
    total_tickets: int
    total_amount: Decimal
    currency: str
    registration_status: RegistrationStatus
    payment_status: PaymentStatus
    registration_type: RegistrationType
    qr_code: str
    confirmed_at: datetime | None = None
    attended_at: datetime | None = None
    notes: str | None = None
    attendee_notes: str | None = None
    special_requirements: str | None = None
    created_at: datetime
    updated_at: datetime
    tickets: list[TicketOut] = Field(default_factory=list)
    event: EventSummaryOut | None = None
    user: UserSummaryOut | None = None


class RegistrationPageOut(SchemaBase):
    items: list[RegistrationOut]
    total: int = Field(ge=0)
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    pages: int = Field(ge=0)


class ReasonIn(BaseModel):
    reason: str | None = None


class AttendanceIn(BaseModel):
    notes: str | None = None


class BulkStatusIn(BaseModel):
    registration_ids: list[UUID]
    status: RegistrationStatus
    notes: str | None = None


class BulkStatusOut(BaseModel):
    updated: int


class QrCodesIn(BaseModel):
    count: int = Field(ge=1, le=500)


class AvailabilityOut(SchemaBase):
    available: bool
    remaining_spots: int | None = None
    max_attendees: int | None = None
    current_registrations: int


class RegistrationStatsOut(SchemaBase):
    total: int
    active: int
    cancelled: int
    waitlist: int
    confirmed: int
    pending: int
    attended: int
    total_tickets: int
    total_amount: Decimal
    average_tickets_per_registration: float
