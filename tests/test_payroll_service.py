"""Tests for payroll calculation and reset."""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select, update

from employee_payroll.auth import AuthContext, Role
from employee_payroll.calculators.types import CalculationMethod, SkipReason
from employee_payroll.errors import (
    AlreadyCalculatedError,
    ConcurrentModificationError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
)
from employee_payroll.models import AuditEvent, PayrollCycle, PayrollDetail
from employee_payroll.services.payroll_service import PayrollCalculationService


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


async def load_details(session, cycle):
    result = await session.execute(
        select(PayrollDetail)
        .where(PayrollDetail.payroll_cycle_id == cycle.payroll_cycle_id)
        .order_by(PayrollDetail.employee_id)
    )
    return list(result.scalars().all())


def snapshot(details):
    return [
        (d.employee_id, d.total_hours, d.session_count, d.calculation_method, d.base_pay, d.net_pay)
        for d in details
    ]


class TestRequestCalculation:
    """Calculation over an active cycle."""

    async def test_hourly_employee_scenario(
        self, session, settings, admin, make_employee, make_cycle, add_entry
    ):
        """Two entries totalling 9.5 hours at 50/hour pay 475.00."""
        cycle = await make_cycle()
        alice = await make_employee("Alice", hourly_rate="50")
        await add_entry(alice, utc(2024, 1, 2, 9), hours=5)
        await add_entry(alice, utc(2024, 1, 3, 9), hours=4.5)

        summary = await PayrollCalculationService(session, settings).request_calculation(
            cycle.payroll_cycle_id, admin
        )

        assert summary.employee_count == 1
        assert summary.total_base_pay == Decimal("475.00")
        assert summary.skipped == []
        result = summary.employees[0]
        assert result.method == CalculationMethod.HOURLY
        assert result.total_hours == Decimal("9.5000")
        assert result.net_pay == Decimal("475.00")

        details = await load_details(session, cycle)
        assert len(details) == 1
        assert details[0].employee_id == alice.employee_id
        assert details[0].base_pay == Decimal("475.00")
        assert details[0].session_count == 2

    async def test_daily_employee_paid_per_session(
        self, session, settings, admin, make_employee, make_cycle, add_entry
    ):
        cycle = await make_cycle()
        bob = await make_employee("Bob", daily_rate="600")
        for day in (2, 3, 4):
            await add_entry(bob, utc(2024, 1, day, 9), hours=2)

        summary = await PayrollCalculationService(session, settings).request_calculation(
            cycle.payroll_cycle_id, admin
        )

        assert summary.employees[0].method == CalculationMethod.DAILY
        assert summary.total_base_pay == Decimal("1800.00")

    async def test_missing_rate_is_skipped_not_fatal(
        self, session, settings, admin, make_employee, make_cycle, add_entry
    ):
        cycle = await make_cycle()
        alice = await make_employee("Alice", hourly_rate="50")
        norate = await make_employee("Norate")
        await add_entry(norate, utc(2024, 1, 2, 9), hours=8)

        summary = await PayrollCalculationService(session, settings).request_calculation(
            cycle.payroll_cycle_id, admin
        )

        assert [e.employee_id for e in summary.employees] == [alice.employee_id]
        assert len(summary.skipped) == 1
        assert summary.skipped[0].employee_id == norate.employee_id
        assert summary.skipped[0].reason == SkipReason.MISSING_RATE

        details = await load_details(session, cycle)
        assert [d.employee_id for d in details] == [alice.employee_id]

    async def test_eligible_employee_without_entries_gets_zero_row(
        self, session, settings, admin, make_employee, make_cycle
    ):
        cycle = await make_cycle()
        await make_employee("Idle", hourly_rate="50")

        summary = await PayrollCalculationService(session, settings).request_calculation(
            cycle.payroll_cycle_id, admin
        )

        assert summary.employee_count == 1
        assert summary.employees[0].base_pay == Decimal("0.00")
        assert summary.employees[0].session_count == 0

    async def test_zero_eligible_employees(self, session, settings, admin, make_cycle):
        cycle = await make_cycle()

        summary = await PayrollCalculationService(session, settings).request_calculation(
            cycle.payroll_cycle_id, admin
        )

        assert summary.employee_count == 0
        assert summary.total_base_pay == Decimal("0")
        assert await load_details(session, cycle) == []

    async def test_draft_cycle_is_invalid_state(self, session, settings, admin, make_cycle):
        cycle = await make_cycle(status="draft")

        with pytest.raises(InvalidStateError) as exc_info:
            await PayrollCalculationService(session, settings).request_calculation(
                cycle.payroll_cycle_id, admin
            )

        assert exc_info.value.current_status == "draft"

    async def test_closed_cycle_is_invalid_state(self, session, settings, admin, make_cycle):
        cycle = await make_cycle(status="closed")

        with pytest.raises(InvalidStateError):
            await PayrollCalculationService(session, settings).request_calculation(
                cycle.payroll_cycle_id, admin
            )

    async def test_unknown_cycle(self, session, settings, admin):
        with pytest.raises(NotFoundError):
            await PayrollCalculationService(session, settings).request_calculation(uuid4(), admin)

    async def test_employee_cannot_calculate(self, session, settings, make_cycle):
        cycle = await make_cycle()
        employee = AuthContext(user_id=uuid4(), role=Role.EMPLOYEE)

        with pytest.raises(PermissionDeniedError):
            await PayrollCalculationService(session, settings).request_calculation(
                cycle.payroll_cycle_id, employee
            )

    async def test_second_calculation_is_already_calculated(
        self, session, settings, admin, make_employee, make_cycle, add_entry
    ):
        """Calling twice without reset leaves the first rows untouched."""
        cycle = await make_cycle()
        alice = await make_employee("Alice", hourly_rate="50")
        await add_entry(alice, utc(2024, 1, 2, 9), hours=8)
        service = PayrollCalculationService(session, settings)

        await service.request_calculation(cycle.payroll_cycle_id, admin)
        before = snapshot(await load_details(session, cycle))

        with pytest.raises(AlreadyCalculatedError) as exc_info:
            await service.request_calculation(cycle.payroll_cycle_id, admin)

        assert exc_info.value.existing_count == 1
        assert snapshot(await load_details(session, cycle)) == before

    async def test_calculation_is_audited(self, session, settings, admin, make_cycle):
        cycle = await make_cycle()

        await PayrollCalculationService(session, settings).request_calculation(
            cycle.payroll_cycle_id, admin
        )
        await session.flush()

        events = (await session.execute(select(AuditEvent))).scalars().all()
        assert [e.action for e in events] == ["calculate"]
        assert events[0].actor_user_id == admin.user_id


class TestConcurrency:
    """Races between calculations of the same cycle."""

    async def test_lock_held_elsewhere(self, session, settings, admin, make_cycle, monkeypatch):
        cycle = await make_cycle()

        async def locked(session, payroll_cycle_id):
            return False

        monkeypatch.setattr("employee_payroll.services.payroll_service.acquire_cycle_lock", locked)

        with pytest.raises(ConcurrentModificationError):
            await PayrollCalculationService(session, settings).request_calculation(
                cycle.payroll_cycle_id, admin
            )

    async def test_status_read_after_lock(self, session, settings, admin, make_cycle, monkeypatch):
        """A close committed while waiting for the lock is seen by the calculation."""
        cycle = await make_cycle()

        async def closed_while_waiting(session, payroll_cycle_id):
            await session.execute(
                update(PayrollCycle)
                .where(PayrollCycle.payroll_cycle_id == payroll_cycle_id)
                .values(status="closed")
                .execution_options(synchronize_session=False)
            )
            return True

        monkeypatch.setattr(
            "employee_payroll.services.payroll_service.acquire_cycle_lock", closed_while_waiting
        )

        with pytest.raises(InvalidStateError) as exc_info:
            await PayrollCalculationService(session, settings).request_calculation(
                cycle.payroll_cycle_id, admin
            )

        assert exc_info.value.current_status == "closed"
        assert await load_details(session, cycle) == []

    async def test_reset_blocked_by_held_lock(self, session, settings, admin, make_cycle, monkeypatch):
        cycle = await make_cycle()

        async def locked(session, payroll_cycle_id):
            return False

        monkeypatch.setattr("employee_payroll.services.payroll_service.acquire_cycle_lock", locked)

        with pytest.raises(ConcurrentModificationError):
            await PayrollCalculationService(session, settings).request_reset(
                cycle.payroll_cycle_id, admin
            )

    async def test_unique_constraint_catches_racing_insert(
        self, session, settings, admin, make_employee, make_cycle, add_entry
    ):
        """A row inserted after the existence check surfaces as a conflict."""
        cycle = await make_cycle()
        alice = await make_employee("Alice", hourly_rate="50")
        await add_entry(alice, utc(2024, 1, 2, 9), hours=8)
        session.add(
            PayrollDetail(
                payroll_cycle_id=cycle.payroll_cycle_id,
                employee_id=alice.employee_id,
                total_hours=Decimal("8"),
                session_count=1,
                calculation_method="hourly",
                hourly_rate=Decimal("50"),
                base_pay=Decimal("400.00"),
                net_pay=Decimal("400.00"),
            )
        )
        await session.flush()

        service = PayrollCalculationService(session, settings)

        async def no_rows_seen(payroll_cycle_id):
            return 0

        service.count_details = no_rows_seen

        with pytest.raises(ConcurrentModificationError):
            await service.request_calculation(cycle.payroll_cycle_id, admin)


class TestRequestReset:
    """Reset of calculated details."""

    async def test_reset_then_recalculate_round_trip(
        self, session, settings, admin, make_employee, make_cycle, add_entry
    ):
        cycle = await make_cycle()
        alice = await make_employee("Alice", hourly_rate="50")
        bob = await make_employee("Bob", daily_rate="600")
        await add_entry(alice, utc(2024, 1, 2, 9), hours=7.25, break_minutes=15)
        await add_entry(bob, utc(2024, 1, 2, 9), hours=9)
        service = PayrollCalculationService(session, settings)

        await service.request_calculation(cycle.payroll_cycle_id, admin)
        original = snapshot(await load_details(session, cycle))

        deleted = await service.request_reset(cycle.payroll_cycle_id, admin)
        assert deleted == 2
        assert await load_details(session, cycle) == []

        await service.request_calculation(cycle.payroll_cycle_id, admin)
        assert snapshot(await load_details(session, cycle)) == original

    async def test_reset_with_no_details_returns_zero(self, session, settings, admin, make_cycle):
        cycle = await make_cycle()

        assert await PayrollCalculationService(session, settings).request_reset(
            cycle.payroll_cycle_id, admin
        ) == 0

    async def test_reset_requires_active(self, session, settings, admin, make_cycle):
        cycle = await make_cycle(status="closed")

        with pytest.raises(InvalidStateError) as exc_info:
            await PayrollCalculationService(session, settings).request_reset(
                cycle.payroll_cycle_id, admin
            )

        assert exc_info.value.current_status == "closed"
