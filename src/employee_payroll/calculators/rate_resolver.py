"""Pay rate resolution and eligibility."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from employee_payroll.auth import Role
from employee_payroll.calculators.types import ResolvedRate
from employee_payroll.models import Employee

if TYPE_CHECKING:
    from collections.abc import Sequence


def _as_decimal(value: Decimal | int | float | str | None) -> Decimal | None:
    if value is None:
        return None
    return value if isinstance(value, Decimal) else Decimal(str(value))


def resolve_rate(employee: Employee) -> ResolvedRate:
    """Resolve the rates of an employee record.

    An employee is eligible for calculation when at least one of
    hourly_rate or daily_rate is set.
    """
    return ResolvedRate(
        hourly_rate=_as_decimal(employee.hourly_rate),
        daily_rate=_as_decimal(employee.daily_rate),
    )


class RateResolver:
    """Loads the employees that take part in payroll and resolves their rates.

    Only active users with the employee role participate. Eligibility is
    decided per employee by resolve_rate, so employees without any rate are
    still returned and can be reported as skipped.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def load_participating_employees(self) -> Sequence[Employee]:
        result = await self.session.execute(
            select(Employee)
            .where(
                Employee.role == Role.EMPLOYEE.value,
                Employee.is_active.is_(True),
            )
            .order_by(Employee.full_name, Employee.employee_id)
        )
        return result.scalars().all()
