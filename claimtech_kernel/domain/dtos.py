"""
Input drafts for the workflow facade.

Drafts are plain frozen dataclasses built by the caller (form handler,
script, test).  ``validate()`` applies the absent-means-None policy and
raises RequestValidationError listing every missing field at once.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from claimtech_kernel.domain.validation import missing_fields
from claimtech_kernel.exceptions import RequestValidationError


class RequestType(str, Enum):
    INSURANCE = "insurance"
    PRIVATE = "private"


class AppointmentType(str, Enum):
    IN_PERSON = "in_person"
    DIGITAL = "digital"


@dataclass(frozen=True)
class RequestDraft:
    request_type: RequestType
    owner_name: str | None = None
    owner_phone: str | None = None
    owner_email: str | None = None
    claim_number: str | None = None
    insurer_name: str | None = None
    vehicle_make: str | None = None
    vehicle_model: str | None = None
    vehicle_year: int | None = None
    vehicle_registration: str | None = None
    vehicle_vin: str | None = None
    incident_date: datetime | None = None
    incident_description: str | None = None
    assigned_engineer_id: UUID | None = None

    REQUIRED = ("request_type", "owner_name", "vehicle_make", "vehicle_model")
    REQUIRED_FOR_INSURANCE = ("claim_number",)

    def required_fields(self) -> tuple[str, ...]:
        if RequestType(self.request_type) is RequestType.INSURANCE:
            return self.REQUIRED + self.REQUIRED_FOR_INSURANCE
        return self.REQUIRED

    def validate(self) -> None:
        missing = missing_fields(self, self.required_fields())
        if missing:
            raise RequestValidationError(missing)


@dataclass(frozen=True)
class InspectionDraft:
    assigned_engineer_id: UUID | None = None
    scheduled_date: datetime | None = None
    inspection_location: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class AppointmentDraft:
    engineer_id: UUID
    appointment_date: datetime
    appointment_type: AppointmentType = AppointmentType.IN_PERSON
    location_address: str | None = None
    notes: str | None = None

    REQUIRED = ("engineer_id", "appointment_date", "appointment_type")

    def validate(self) -> None:
        missing = missing_fields(self, self.REQUIRED)
        if missing:
            raise RequestValidationError(missing, reason=f"appointment missing {', '.join(missing)}")
