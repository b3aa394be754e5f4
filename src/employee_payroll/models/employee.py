"""Employee and branch models."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from employee_payroll.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from employee_payroll.models.time_entry import TimeEntry


class Branch(Base, TimestampMixin):
    """Work location employees check in at."""

    __tablename__ = "branch"

    branch_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False)
    address: Mapped[str | None] = mapped_column(String, nullable=True)
    latitude: Mapped[Decimal] = mapped_column(Numeric(10, 7), nullable=False)
    longitude: Mapped[Decimal] = mapped_column(Numeric(10, 7), nullable=False)

    __table_args__ = (
        CheckConstraint("latitude BETWEEN -90 AND 90", name="branch_latitude_check"),
        CheckConstraint("longitude BETWEEN -180 AND 180", name="branch_longitude_check"),
    )

    employees: Mapped[list[Employee]] = relationship(back_populates="branch")


class Employee(Base, TimestampMixin):
    """Application user; admins and employees share the table."""

    __tablename__ = "employee"

    employee_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    full_name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    employee_code: Mapped[str | None] = mapped_column(String, nullable=True)
    role: Mapped[str] = mapped_column(String, nullable=False, default="employee")
    hourly_rate: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    daily_rate: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    branch_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("branch.branch_id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        UniqueConstraint("employee_code", name="employee_code_unique"),
        CheckConstraint("role IN ('employee', 'admin')", name="employee_role_check"),
        CheckConstraint("hourly_rate IS NULL OR hourly_rate >= 0", name="employee_hourly_rate_check"),
        CheckConstraint("daily_rate IS NULL OR daily_rate >= 0", name="employee_daily_rate_check"),
    )

    # Relationships
    branch: Mapped[Branch | None] = relationship(back_populates="employees")
    time_entries: Mapped[list[TimeEntry]] = relationship(back_populates="employee")
