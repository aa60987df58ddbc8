"""
Actor -- who is performing an action, and what they may see.

Admins see every assessment.  Engineers see only assessments whose linked
appointment is assigned to them; the scoping itself lives in the selectors.
"""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class Role(str, Enum):
    ADMIN = "admin"
    ENGINEER = "engineer"


# Actor id recorded for kernel-initiated changes (default child records, scripts).
SYSTEM_ACTOR_ID = UUID("00000000-0000-0000-0000-000000000001")


@dataclass(frozen=True)
class Actor:
    user_id: UUID
    role: Role = Role.ADMIN
    engineer_id: UUID | None = None

    def __post_init__(self) -> None:
        if self.role is Role.ENGINEER and self.engineer_id is None:
            raise ValueError("Engineer actors must carry an engineer_id")

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @classmethod
    def system(cls) -> "Actor":
        return cls(user_id=SYSTEM_ACTOR_ID, role=Role.ADMIN)
