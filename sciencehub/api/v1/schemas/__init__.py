from sciencehub.api.v1.schemas.coworking import (
    ActiveServicesOut,
    CoworkingServiceIn,
    CoworkingSettingsPatch,
    MigrationResultOut,
    MigrationStatusOut,
    RunReportOut,
    ServiceOrderIn,
    StepResultOut,
    ValidationReportOut,
)
from sciencehub.api.v1.schemas.registrations import (
    AttendanceIn,
    AvailabilityOut,
    BulkStatusIn,
    BulkStatusOut,
    QrCodesIn,
    ReasonIn,
    RegistrationCreate,
    RegistrationCreateIn,
    RegistrationFilters,
    RegistrationOut,
    RegistrationPageOut,
    RegistrationStatsOut,
    RegistrationUpdate,
    TicketCreate,
    TicketOut,
)

__all__ = [
    "ActiveServicesOut",
    "CoworkingServiceIn",
    "CoworkingSettingsPatch",
    "MigrationResultOut",
    "MigrationStatusOut",
    "RunReportOut",
    "ServiceOrderIn",
    "StepResultOut",
    "ValidationReportOut",
    "AttendanceIn",
    "AvailabilityOut",
    "BulkStatusIn",
    "BulkStatusOut",
    "QrCodesIn",
    "ReasonIn",
    "RegistrationCreate",
    "RegistrationCreateIn",
    "RegistrationFilters",
    "RegistrationOut",
    "RegistrationPageOut",
    "RegistrationStatsOut",
    "RegistrationUpdate",
    "TicketCreate",
    "TicketOut",
]
