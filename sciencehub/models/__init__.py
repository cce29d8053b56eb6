from sciencehub.models.base import Base
from sciencehub.models.event import Event
from sciencehub.models.registration import Registration, RegistrationTicket
from sciencehub.models.schema_migration import SchemaMigration
from sciencehub.models.site_settings import (
    LegacyCoworkingService,
    LegacySiteSettings,
    SiteSettings,
)
from sciencehub.models.user import User

__all__ = [
    "Base",
    "User",
    "Event",
    "Registration",
    "RegistrationTicket",
    "SiteSettings",
    "LegacySiteSettings",
    "LegacyCoworkingService",
    "SchemaMigration",
]
