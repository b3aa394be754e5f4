"""Payroll cycle lifecycle and summaries."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from employee_payroll.auth import AuthContext
from employee_payroll.calculators.pay import round_money
from employee_payroll.errors import NotFoundError, ValidationError
from employee_payroll.models import Employee, PayrollCycle, PayrollDetail
from employee_payroll.services.audit import record_audit
from employee_payroll.services.payroll_service import lock_cycle
from employee_payroll.services.state_machine import (
    CycleStatus,
    InvalidTransitionError,
    PayrollCycleStateMachine,
)

logger = logging.getLogger(__name__)

NO_BRANCH = "no_branch"


@dataclass
class BranchTotals:
    branch_id: str
    branch_name: str | None
    employee_count: int = 0
    total_base_pay: Decimal = Decimal("0")
    total_net_pay: Decimal = Decimal("0")
    total_hours: Decimal = Decimal("0")


@dataclass
class ValidationIssue:
    issue_type: str
    employee_id: UUID
    employee_name: str
    net_pay: Decimal | None = None


@dataclass
class CycleSummary:
    """Totals, per-branch breakdown and close readiness of a cycle."""

    cycle: PayrollCycle
    details: list[PayrollDetail]
    total_employees: int
    total_base_pay: Decimal
    total_net_pay: Decimal
    total_hours: Decimal
    total_sessions: int
    average_net_pay: Decimal
    branches: list[BranchTotals] = field(default_factory=list)
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def can_close(self) -> bool:
        return not self.issues and self.cycle.status == CycleStatus.ACTIVE


class PayrollCycleService:
    """Create, list, activate, close and summarise payroll cycles."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_cycle(
        self,
        auth: AuthContext,
        name: str,
        start_date: date,
        end_date: date,
        pay_date: date | None = None,
    ) -> PayrollCycle:
        """Create a cycle in draft status.

        Raises ValidationError for a blank name, start_date not before
        end_date, a duplicate name or a date range overlapping another cycle.
        """
        auth.require_admin()
        name = (name or "").strip()
        if not name:
            raise ValidationError("Cycle name is required")
        if start_date >= end_date:
            raise ValidationError(
                "start_date must be before end_date",
                start_date=start_date.isoformat(),
                end_date=end_date.isoformat(),
            )

        overlapping = await self.session.execute(
            select(PayrollCycle).where(
                PayrollCycle.start_date <= end_date,
                PayrollCycle.end_date >= start_date,
            )
        )
        conflicts = overlapping.scalars().all()
        if conflicts:
            raise ValidationError(
                "Date range overlaps an existing payroll cycle",
                conflicting_cycles=[
                    {
                        "payroll_cycle_id": str(c.payroll_cycle_id),
                        "name": c.name,
                        "start_date": c.start_date.isoformat(),
                        "end_date": c.end_date.isoformat(),
                    }
                    for c in conflicts
                ],
            )

        duplicate = await self.session.scalar(
            select(PayrollCycle.payroll_cycle_id).where(PayrollCycle.name == name)
        )
        if duplicate is not None:
            raise ValidationError(f"A payroll cycle named '{name}' already exists")

        cycle = PayrollCycle(
            name=name,
            start_date=start_date,
            end_date=end_date,
            pay_date=pay_date or end_date,
            status=CycleStatus.DRAFT.value,
        )
        self.session.add(cycle)
        await self.session.flush()

        record_audit(
            self.session,
            auth,
            entity_type="payroll_cycle",
            entity_id=cycle.payroll_cycle_id,
            action="create",
            after={"name": name, "start_date": start_date, "end_date": end_date, "status": cycle.status},
        )
        logger.info("Created payroll cycle %s (%s to %s)", name, start_date, end_date)
        return cycle

    async def list_cycles(self, status: str | None = None) -> list[PayrollCycle]:
        query = select(PayrollCycle)
        if status:
            query = query.where(PayrollCycle.status == status)
        query = query.order_by(PayrollCycle.created_at.desc(), PayrollCycle.start_date.desc())
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_cycle(self, payroll_cycle_id: UUID) -> PayrollCycle:
        cycle = await self.session.get(PayrollCycle, payroll_cycle_id, populate_existing=True)
        if cycle is None:
            raise NotFoundError("Payroll cycle", payroll_cycle_id)
        return cycle

    async def activate_cycle(self, auth: AuthContext, payroll_cycle_id: UUID) -> PayrollCycle:
        """Move a draft cycle to active."""
        auth.require_admin()
        cycle = await self.get_cycle(payroll_cycle_id)
        return await self._transition(cycle, CycleStatus.ACTIVE, auth)

    async def close_cycle(self, auth: AuthContext, payroll_cycle_id: UUID) -> PayrollCycle:
        """Close an active cycle and stamp its totals."""
        auth.require_admin()
        await lock_cycle(self.session, payroll_cycle_id)
        cycle = await self.get_cycle(payroll_cycle_id)
        details = await self._load_details(payroll_cycle_id)

        errors = PayrollCycleStateMachine.validate_cycle_for_transition(
            cycle, CycleStatus.CLOSED, details
        )
        if errors:
            raise InvalidTransitionError(cycle.status, CycleStatus.CLOSED.value, "; ".join(errors))

        cycle.closed_at = datetime.now(timezone.utc)
        cycle.closed_by_user_id = auth.user_id
        cycle.total_employees = len(details)
        cycle.total_amount = round_money(sum((d.net_pay for d in details), Decimal("0")))
        return await self._transition(cycle, CycleStatus.CLOSED, auth)

    async def get_summary(self, payroll_cycle_id: UUID) -> CycleSummary:
        """Aggregate the detail rows of a cycle."""
        cycle = await self.get_cycle(payroll_cycle_id)
        details = await self._load_details(payroll_cycle_id)

        total_base = sum((d.base_pay for d in details), Decimal("0"))
        total_net = sum((d.net_pay for d in details), Decimal("0"))
        average = round_money(total_net / len(details)) if details else Decimal("0.00")

        branches: dict[str, BranchTotals] = {}
        issues: list[ValidationIssue] = []
        for detail in details:
            branch = detail.employee.branch
            key = str(branch.branch_id) if branch else NO_BRANCH
            totals = branches.setdefault(
                key, BranchTotals(branch_id=key, branch_name=branch.name if branch else None)
            )
            totals.employee_count += 1
            totals.total_base_pay += detail.base_pay
            totals.total_net_pay += detail.net_pay
            totals.total_hours += detail.total_hours

            # Only reachable for rows written outside calculation
            if detail.net_pay < 0:
                issues.append(
                    ValidationIssue(
                        issue_type="negative_net_pay",
                        employee_id=detail.employee_id,
                        employee_name=detail.employee.full_name,
                        net_pay=detail.net_pay,
                    )
                )

        return CycleSummary(
            cycle=cycle,
            details=details,
            total_employees=len(details),
            total_base_pay=round_money(total_base),
            total_net_pay=round_money(total_net),
            total_hours=sum((d.total_hours for d in details), Decimal("0")),
            total_sessions=sum(d.session_count for d in details),
            average_net_pay=average,
            branches=list(branches.values()),
            issues=issues,
        )

    async def _transition(
        self,
        cycle: PayrollCycle,
        to_status: CycleStatus,
        auth: AuthContext,
    ) -> PayrollCycle:
        from_status = cycle.status
        PayrollCycleStateMachine.validate_transition(from_status, to_status.value)
        cycle.status = to_status.value
        await self.session.flush()

        record_audit(
            self.session,
            auth,
            entity_type="payroll_cycle",
            entity_id=cycle.payroll_cycle_id,
            action=f"status_change:{from_status}:{to_status.value}",
            before={"status": from_status},
            after={
                "status": cycle.status,
                "total_employees": cycle.total_employees,
                "total_amount": cycle.total_amount,
            },
        )
        logger.info("Payroll cycle %s: %s -> %s", cycle.payroll_cycle_id, from_status, to_status.value)
        return cycle

    async def _load_details(self, payroll_cycle_id: UUID) -> list[PayrollDetail]:
        result = await self.session.execute(
            select(PayrollDetail)
            .join(Employee, PayrollDetail.employee_id == Employee.employee_id)
            .where(PayrollDetail.payroll_cycle_id == payroll_cycle_id)
            .options(selectinload(PayrollDetail.employee).selectinload(Employee.branch))
            .order_by(Employee.full_name, PayrollDetail.employee_id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())
