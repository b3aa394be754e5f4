"""Payroll cycle and per-employee payroll detail models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from employee_payroll.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from employee_payroll.models.employee import Employee


class PayrollCycle(Base, TimestampMixin):
    """Bounded date range over which worked time is aggregated and paid."""

    __tablename__ = "payroll_cycle"

    payroll_cycle_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    pay_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="draft")
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_by_user_id: Mapped[UUID | None] = mapped_column(nullable=True)
    total_employees: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)

    __table_args__ = (
        UniqueConstraint("name", name="payroll_cycle_name_unique"),
        CheckConstraint(
            "status IN ('draft', 'active', 'closed')",
            name="payroll_cycle_status_check",
        ),
        CheckConstraint("start_date < end_date", name="payroll_cycle_dates_check"),
    )

    # Relationships
    details: Mapped[list[PayrollDetail]] = relationship(
        back_populates="payroll_cycle",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class PayrollDetail(Base, TimestampMixin):
    """Calculated pay for one employee in one cycle.

    Written by a calculation run, removed in bulk by a reset, never updated.
    """

    __tablename__ = "payroll_detail"

    payroll_detail_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    payroll_cycle_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_cycle.payroll_cycle_id", ondelete="CASCADE"),
        nullable=False,
    )
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    total_hours: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False, default=Decimal("0"))
    session_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    calculation_method: Mapped[str] = mapped_column(String, nullable=False)
    hourly_rate: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    daily_rate: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    base_pay: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    net_pay: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    __table_args__ = (
        UniqueConstraint("payroll_cycle_id", "employee_id", name="payroll_detail_cycle_employee_unique"),
        CheckConstraint(
            "calculation_method IN ('hourly', 'daily')",
            name="payroll_detail_method_check",
        ),
    )

    # Relationships
    payroll_cycle: Mapped[PayrollCycle] = relationship(back_populates="details")
    employee: Mapped[Employee] = relationship()
