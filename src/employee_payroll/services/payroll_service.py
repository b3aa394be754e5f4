"""Payroll calculation and reset for a cycle."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from employee_payroll.auth import AuthContext
from employee_payroll.calculators.aggregator import TimeEntryAggregator, cycle_window
from employee_payroll.calculators.pay import compute_pay
from employee_payroll.calculators.rate_resolver import RateResolver, resolve_rate
from employee_payroll.calculators.types import (
    CycleCalculationSummary,
    EmployeePayResult,
    SkippedEmployee,
    SkipReason,
)
from employee_payroll.config import Settings
from employee_payroll.database import acquire_cycle_lock
from employee_payroll.errors import (
    AlreadyCalculatedError,
    ConcurrentModificationError,
    NotFoundError,
)
from employee_payroll.models import PayrollCycle, PayrollDetail
from employee_payroll.services.audit import record_audit
from employee_payroll.services.state_machine import PayrollCycleStateMachine

logger = logging.getLogger(__name__)


async def lock_cycle(session: AsyncSession, payroll_cycle_id: UUID) -> None:
    """Take the per-cycle writer lock for the current transaction.

    Every operation that writes detail rows or changes the cycle status
    holds this lock until commit or rollback.
    """
    if not await acquire_cycle_lock(session, payroll_cycle_id):
        logger.warning("Cycle %s is locked by another transaction", payroll_cycle_id)
        raise ConcurrentModificationError(
            f"Payroll cycle {payroll_cycle_id} is being modified by another request",
            payroll_cycle_id=str(payroll_cycle_id),
        )


class PayrollCalculationService:
    """Runs and clears payroll calculations for a cycle.

    Both operations require an active cycle and hold a transaction-scoped
    lock on the cycle until the caller commits or rolls back. Duplicate
    detail rows are prevented by the (payroll_cycle_id, employee_id) unique
    constraint in addition to the existence check.
    """

    def __init__(self, session: AsyncSession, settings: Settings):
        self.session = session
        self.settings = settings
        self.rate_resolver = RateResolver(session)
        self.aggregator = TimeEntryAggregator(session)

    async def request_calculation(
        self,
        payroll_cycle_id: UUID,
        auth: AuthContext,
    ) -> CycleCalculationSummary:
        """Calculate and persist one detail row per eligible employee.

        Raises:
            NotFoundError: unknown cycle
            InvalidStateError: cycle is not active
            AlreadyCalculatedError: detail rows already exist
            ConcurrentModificationError: another run holds the cycle
        """
        auth.require_admin()
        await lock_cycle(self.session, payroll_cycle_id)
        cycle = await self._get_cycle(payroll_cycle_id)
        PayrollCycleStateMachine.ensure_can_calculate(cycle, "calculate")

        existing = await self.count_details(payroll_cycle_id)
        if existing:
            logger.warning(
                "Calculation rejected for cycle %s: %d detail rows exist",
                payroll_cycle_id,
                existing,
            )
            raise AlreadyCalculatedError(payroll_cycle_id, existing)

        window_start, window_end = cycle_window(
            cycle.start_date, cycle.end_date, self.settings.payroll_timezone
        )
        employees = await self.rate_resolver.load_participating_employees()
        aggregates = await self.aggregator.aggregate_many(
            [e.employee_id for e in employees], window_start, window_end
        )

        summary = CycleCalculationSummary(payroll_cycle_id=payroll_cycle_id)
        for employee in employees:
            rates = resolve_rate(employee)
            if not rates.eligible:
                summary.skipped.append(
                    SkippedEmployee(
                        employee_id=employee.employee_id,
                        full_name=employee.full_name,
                        reason=SkipReason.MISSING_RATE,
                    )
                )
                continue

            hours = aggregates[employee.employee_id]
            pay = compute_pay(hours, rates)
            self.session.add(
                PayrollDetail(
                    payroll_cycle_id=payroll_cycle_id,
                    employee_id=employee.employee_id,
                    total_hours=hours.total_hours,
                    session_count=hours.session_count,
                    calculation_method=pay.method.value,
                    hourly_rate=rates.hourly_rate,
                    daily_rate=rates.daily_rate,
                    base_pay=pay.base_pay,
                    net_pay=pay.net_pay,
                )
            )
            summary.employees.append(
                EmployeePayResult(
                    employee_id=employee.employee_id,
                    full_name=employee.full_name,
                    branch_id=employee.branch_id,
                    total_hours=hours.total_hours,
                    session_count=hours.session_count,
                    method=pay.method,
                    hourly_rate=rates.hourly_rate,
                    daily_rate=rates.daily_rate,
                    base_pay=pay.base_pay,
                    net_pay=pay.net_pay,
                )
            )

        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise ConcurrentModificationError(
                f"Payroll cycle {payroll_cycle_id} was calculated concurrently",
                payroll_cycle_id=str(payroll_cycle_id),
            ) from exc

        record_audit(
            self.session,
            auth,
            entity_type="payroll_cycle",
            entity_id=payroll_cycle_id,
            action="calculate",
            after={
                "employee_count": summary.employee_count,
                "total_base_pay": summary.total_base_pay,
                "skipped": [s.employee_id for s in summary.skipped],
                "period": {"start_date": cycle.start_date, "end_date": cycle.end_date},
            },
        )

        logger.info(
            "Calculated cycle %s: %d employees, total base pay %s, %d skipped",
            payroll_cycle_id,
            summary.employee_count,
            summary.total_base_pay,
            len(summary.skipped),
        )
        return summary

    async def request_reset(self, payroll_cycle_id: UUID, auth: AuthContext) -> int:
        """Delete all detail rows of an active cycle; returns the count deleted."""
        auth.require_admin()
        await lock_cycle(self.session, payroll_cycle_id)
        cycle = await self._get_cycle(payroll_cycle_id)
        PayrollCycleStateMachine.ensure_can_calculate(cycle, "reset")

        result = await self.session.execute(
            delete(PayrollDetail).where(PayrollDetail.payroll_cycle_id == payroll_cycle_id)
        )
        deleted = result.rowcount or 0

        record_audit(
            self.session,
            auth,
            entity_type="payroll_cycle",
            entity_id=payroll_cycle_id,
            action="reset",
            before={"detail_count": deleted},
        )
        logger.info("Reset cycle %s: %d detail rows deleted", payroll_cycle_id, deleted)
        return deleted

    async def count_details(self, payroll_cycle_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(PayrollDetail)
            .where(PayrollDetail.payroll_cycle_id == payroll_cycle_id)
        )
        return result.scalar_one()

    async def _get_cycle(self, payroll_cycle_id: UUID) -> PayrollCycle:
        # Status is read after the lock so a concurrent close is seen
        cycle = await self.session.get(PayrollCycle, payroll_cycle_id, populate_existing=True)
        if cycle is None:
            raise NotFoundError("Payroll cycle", payroll_cycle_id)
        return cycle
