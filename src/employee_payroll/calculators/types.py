"""Type definitions for the payroll calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


class CalculationMethod(str, Enum):
    """Which rate produced the base pay."""

    HOURLY = "hourly"
    DAILY = "daily"


class SkipReason(str, Enum):
    """Why an employee got no detail row."""

    MISSING_RATE = "missing_rate"


@dataclass(frozen=True)
class ResolvedRate:
    """Rates applicable to one employee."""

    hourly_rate: Decimal | None
    daily_rate: Decimal | None

    @property
    def eligible(self) -> bool:
        return self.hourly_rate is not None or self.daily_rate is not None

    @property
    def method(self) -> CalculationMethod | None:
        # Hourly wins when both are set
        if self.hourly_rate is not None:
            return CalculationMethod.HOURLY
        if self.daily_rate is not None:
            return CalculationMethod.DAILY
        return None


@dataclass(frozen=True)
class HoursAggregate:
    """Worked time for one employee within a cycle window."""

    total_hours: Decimal = Decimal("0")
    session_count: int = 0
    first_check_in: datetime | None = None
    last_check_in: datetime | None = None


@dataclass(frozen=True)
class PayResult:
    """Computed pay for one employee."""

    base_pay: Decimal
    net_pay: Decimal
    method: CalculationMethod


@dataclass
class EmployeePayResult:
    """Per-employee line of a calculation summary."""

    employee_id: UUID
    full_name: str
    branch_id: UUID | None
    total_hours: Decimal
    session_count: int
    method: CalculationMethod
    hourly_rate: Decimal | None
    daily_rate: Decimal | None
    base_pay: Decimal
    net_pay: Decimal


@dataclass
class SkippedEmployee:
    """Employee left out of a calculation run."""

    employee_id: UUID
    full_name: str
    reason: SkipReason


@dataclass
class CycleCalculationSummary:
    """Outcome of a calculation request."""

    payroll_cycle_id: UUID
    employees: list[EmployeePayResult] = field(default_factory=list)
    skipped: list[SkippedEmployee] = field(default_factory=list)

    @property
    def employee_count(self) -> int:
        return len(self.employees)

    @property
    def total_base_pay(self) -> Decimal:
        return sum((e.base_pay for e in self.employees), Decimal("0"))

    @property
    def total_net_pay(self) -> Decimal:
        return sum((e.net_pay for e in self.employees), Decimal("0"))

    @property
    def total_hours(self) -> Decimal:
        return sum((e.total_hours for e in self.employees), Decimal("0"))
