from enum import Enum


class ErrorCode(str, Enum):
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    EVENT_FULL = "EVENT_FULL"
    REGISTRATION_NOT_FOUND = "REGISTRATION_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    REGISTRATION_NOT_WAITLISTED = "REGISTRATION_NOT_WAITLISTED"
    INSUFFICIENT_CAPACITY = "INSUFFICIENT_CAPACITY"
    TICKET_NOT_FOUND = "TICKET_NOT_FOUND"
    IMMUTABLE_FIELD = "IMMUTABLE_FIELD"
    INVALID_PAGINATION = "INVALID_PAGINATION"
    INVALID_REQUEST = "INVALID_REQUEST"
    QR_CODE_CONFLICT = "QR_CODE_CONFLICT"
    SETTINGS_NOT_FOUND = "SETTINGS_NOT_FOUND"
    SERVICE_NOT_FOUND = "SERVICE_NOT_FOUND"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    MEDIA_NOT_FOUND = "MEDIA_NOT_FOUND"
    INVALID_MEDIA = "INVALID_MEDIA"
    STORAGE_WRITE_FAILED = "STORAGE_WRITE_FAILED"
