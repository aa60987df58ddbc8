"""
Module: claimtech_kernel.models.engineer
Responsibility: ORM persistence for assessors who carry out inspections and
    appointments.  Engineer ids are the key for engineer-scoped views.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from uuid import UUID

from sqlalchemy import Boolean, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from claimtech_kernel.db.base import TrackedBase, UUIDString


class Engineer(TrackedBase):
    __tablename__ = "engineers"

    __table_args__ = (
        UniqueConstraint("email", name="uq_engineers_email"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    email: Mapped[str] = mapped_column(String(255), nullable=False)

    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    province: Mapped[str | None] = mapped_column(String(50), nullable=True)

    specialization: Mapped[str | None] = mapped_column(String(100), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Login identity, when the engineer has one
    auth_user_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    def __repr__(self) -> str:
        return f"<Engineer {self.email}>"
