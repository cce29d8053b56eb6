from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CoworkingServiceIn(BaseModel):
    id: str | None = None
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    price: float = Field(default=0.0, ge=0)
    currency: str | None = None
    period: str | None = None
    active: bool = True
    image_url: str | None = None
    order: int | None = Field(default=None, ge=0)
    main_service: bool = True


class CoworkingSettingsPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    header: dict[str, Any] | None = None
    services: list[CoworkingServiceIn] | None = None


class ServiceOrderIn(BaseModel):
    service_ids: list[str] = Field(min_length=1)


class ActiveServicesOut(BaseModel):
    mainServices: list[dict[str, Any]]
    additionalServices: list[dict[str, Any]]


class StepResultOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    step: str
    success: bool
    message: str
    issues: list[str] = Field(default_factory=list)


class MigrationResultOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    success: bool
    message: str
    migrated_services: int = 0
    errors: list[str] = Field(default_factory=list)
    steps: list[StepResultOut] = Field(default_factory=list)


class ValidationReportOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    valid: bool
    issues: list[str] = Field(default_factory=list)


class MigrationStatusOut(BaseModel):
    migration_needed: bool
    applied: list[str]
    pending: list[str]


class RunReportOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    success: bool
    applied: list[str]
    skipped: list[str]
    failed: str | None = None
