"""
Policies -- the tunable parts of the workflow, as frozen value objects.

Responsibility:
    Holds everything an operator may change without a code release:
    number prefixes, the retry budget for number allocation, which child
    records each stage creates, and the defaults those records start with.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  ``WorkflowPolicy()`` carries the
    built-in defaults; ``claimtech_config`` builds the same object from
    YAML.  Services receive a policy through their constructor.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from claimtech_kernel.domain.stages import AssessmentStage


class ChildRecordKind(str, Enum):
    """Dependent records an assessment owns."""

    TYRES = "tyres"
    DAMAGE = "damage"
    VEHICLE_VALUES = "vehicle_values"
    ESTIMATE = "estimate"
    PRE_INCIDENT_ESTIMATE = "pre_incident_estimate"
    VEHICLE_IDENTIFICATION = "vehicle_identification"
    INTERIOR_MECHANICAL = "interior_mechanical"
    FRC = "frc"


class NumberedEntity(str, Enum):
    REQUEST = "request"
    INSPECTION = "inspection"
    APPOINTMENT = "appointment"
    ASSESSMENT = "assessment"


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry for uniqueness conflicts on business numbers."""

    max_attempts: int = 3
    base_delay_seconds: float = 0.1
    backoff_factor: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay_seconds < 0:
            raise ValueError("base_delay_seconds cannot be negative")

    def delay_for(self, attempt: int) -> float:
        """Sleep before retry number ``attempt`` (0-based): 0.1, 0.2, 0.4, ..."""
        return self.base_delay_seconds * (self.backoff_factor ** attempt)


DEFAULT_PREFIXES: Mapping[NumberedEntity, str] = MappingProxyType({
    NumberedEntity.REQUEST: "REQ",
    NumberedEntity.INSPECTION: "INS",
    NumberedEntity.APPOINTMENT: "APT",
    NumberedEntity.ASSESSMENT: "ASM",
})


@dataclass(frozen=True)
class NumberingPolicy:
    prefixes: Mapping[NumberedEntity, str] = field(default_factory=lambda: DEFAULT_PREFIXES)
    width: int = 3

    def prefix_for(self, entity: NumberedEntity) -> str:
        return self.prefixes[NumberedEntity(entity)]


@dataclass(frozen=True)
class EstimateDefaults:
    """Starting values for a new estimate / pre-incident estimate."""

    labour_rate: Decimal = Decimal("500.00")
    paint_rate: Decimal = Decimal("2000.00")
    vat_percentage: Decimal = Decimal("15.00")
    oem_markup_percentage: Decimal = Decimal("25.00")
    alt_markup_percentage: Decimal = Decimal("25.00")
    second_hand_markup_percentage: Decimal = Decimal("25.00")
    outwork_markup_percentage: Decimal = Decimal("25.00")
    sundries_percentage: Decimal = Decimal("1.00")
    currency: str = "ZAR"


@dataclass(frozen=True)
class DamageDefaults:
    damage_area: str = "non_structural"
    damage_type: str = "collision"


DEFAULT_STAGE_CHILDREN: Mapping[AssessmentStage, tuple[ChildRecordKind, ...]] = MappingProxyType({
    AssessmentStage.ASSESSMENT_IN_PROGRESS: (
        ChildRecordKind.TYRES,
        ChildRecordKind.DAMAGE,
        ChildRecordKind.VEHICLE_VALUES,
        ChildRecordKind.ESTIMATE,
        ChildRecordKind.PRE_INCIDENT_ESTIMATE,
        ChildRecordKind.VEHICLE_IDENTIFICATION,
        ChildRecordKind.INTERIOR_MECHANICAL,
    ),
    AssessmentStage.FRC_IN_PROGRESS: (ChildRecordKind.FRC,),
})

DEFAULT_TYRE_POSITIONS: tuple[str, ...] = (
    "front_left",
    "front_right",
    "rear_left",
    "rear_right",
)


@dataclass(frozen=True)
class WorkflowPolicy:
    """Complete workflow configuration handed to the services."""

    numbering: NumberingPolicy = field(default_factory=NumberingPolicy)
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    stage_children: Mapping[AssessmentStage, tuple[ChildRecordKind, ...]] = field(
        default_factory=lambda: DEFAULT_STAGE_CHILDREN
    )
    tyre_positions: tuple[str, ...] = DEFAULT_TYRE_POSITIONS
    estimate: EstimateDefaults = field(default_factory=EstimateDefaults)
    damage: DamageDefaults = field(default_factory=DamageDefaults)

    def children_for(self, stage: AssessmentStage) -> tuple[ChildRecordKind, ...]:
        return tuple(self.stage_children.get(AssessmentStage(stage), ()))
