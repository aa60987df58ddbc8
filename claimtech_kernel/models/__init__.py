"""SQLAlchemy ORM models for the claimtech kernel."""

from claimtech_kernel.models.appointment import Appointment, AppointmentStatus
from claimtech_kernel.models.assessment import Assessment
from claimtech_kernel.models.audit_log import AuditAction, AuditLog
from claimtech_kernel.models.damage import DAMAGE_REQUIRED_FIELDS, AssessmentDamage
from claimtech_kernel.models.engineer import Engineer
from claimtech_kernel.models.estimate import AssessmentEstimate, PreIncidentEstimate
from claimtech_kernel.models.frc import AssessmentFRC, FRCStatus
from claimtech_kernel.models.inspection import Inspection, InspectionStatus
from claimtech_kernel.models.interior_mechanical import AssessmentInteriorMechanical
from claimtech_kernel.models.request import Request, RequestStatus
from claimtech_kernel.models.tyre import AssessmentTyre, TyrePosition
from claimtech_kernel.models.vehicle_identification import AssessmentVehicleIdentification
from claimtech_kernel.models.vehicle_values import AssessmentVehicleValues

__all__ = [
    "Appointment",
    "AppointmentStatus",
    "Assessment",
    "AssessmentDamage",
    "AssessmentEstimate",
    "AssessmentFRC",
    "AssessmentInteriorMechanical",
    "AssessmentTyre",
    "AssessmentVehicleIdentification",
    "AssessmentVehicleValues",
    "AuditAction",
    "AuditLog",
    "DAMAGE_REQUIRED_FIELDS",
    "Engineer",
    "FRCStatus",
    "Inspection",
    "InspectionStatus",
    "PreIncidentEstimate",
    "Request",
    "RequestStatus",
    "TyrePosition",
]
