"""Check-in/check-out time entries."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from employee_payroll.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from employee_payroll.models.employee import Branch, Employee


class TimeEntry(Base, TimestampMixin):
    """One work session at a branch. Open while check_out_time is NULL."""

    __tablename__ = "time_entry"

    time_entry_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    branch_id: Mapped[UUID] = mapped_column(
        ForeignKey("branch.branch_id", ondelete="RESTRICT"),
        nullable=False,
    )
    check_in_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    check_out_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # Minutes
    break_duration: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Display value written at check-out; payroll derives hours from timestamps
    total_hours: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    check_in_selfie_url: Mapped[str | None] = mapped_column(String, nullable=True)
    check_out_selfie_url: Mapped[str | None] = mapped_column(String, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("break_duration >= 0", name="time_entry_break_check"),
        CheckConstraint(
            "check_out_time IS NULL OR check_out_time >= check_in_time",
            name="time_entry_checkout_after_checkin",
        ),
        Index("ix_time_entry_employee_check_in", "employee_id", "check_in_time"),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="time_entries")
    branch: Mapped[Branch] = relationship()

    @property
    def is_open(self) -> bool:
        return self.check_out_time is None
