"""Tests for time entry aggregation."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

from employee_payroll.calculators.aggregator import (
    TimeEntryAggregator,
    aggregate_entries,
    cycle_window,
    entry_hours,
)


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def entry(check_in: datetime, hours: float | None, break_minutes: int = 0, total_hours=None):
    return SimpleNamespace(
        check_in_time=check_in,
        check_out_time=check_in + timedelta(hours=hours) if hours is not None else None,
        break_duration=break_minutes,
        total_hours=total_hours,
    )


class TestCycleWindow:
    """Inclusive cycle dates to UTC instants."""

    def test_utc_window(self):
        start, end = cycle_window(date(2024, 1, 1), date(2024, 1, 31))

        assert start == utc(2024, 1, 1)
        assert end == utc(2024, 1, 31, 23, 59, 59, 999999)

    def test_local_timezone_window(self):
        """Bangkok is UTC+7, so the window starts at 17:00 UTC the day before."""
        start, end = cycle_window(date(2024, 1, 1), date(2024, 1, 31), "Asia/Bangkok")

        assert start == utc(2023, 12, 31, 17)
        assert end == utc(2024, 1, 31, 16, 59, 59, 999999)


class TestEntryHours:
    """Hours derived from timestamps."""

    def test_subtracts_break_minutes(self):
        assert entry_hours(entry(utc(2024, 1, 2, 9), 8, break_minutes=30)) == Decimal("7.5")

    def test_floors_at_zero(self):
        assert entry_hours(entry(utc(2024, 1, 2, 9), 0.5, break_minutes=60)) == Decimal("0")

    def test_ignores_stored_total_hours(self):
        assert entry_hours(entry(utc(2024, 1, 2, 9), 4, total_hours=Decimal("99"))) == Decimal("4")

    def test_open_entry_is_zero(self):
        assert entry_hours(entry(utc(2024, 1, 2, 9), None)) == Decimal("0")

    def test_naive_timestamps_are_utc(self):
        naive = SimpleNamespace(
            check_in_time=datetime(2024, 1, 2, 9),
            check_out_time=datetime(2024, 1, 2, 10, 15),
            break_duration=0,
        )
        assert entry_hours(naive) == Decimal("1.25")


class TestAggregateEntries:
    """In-memory aggregation."""

    def test_sums_hours_and_counts_sessions(self):
        result = aggregate_entries([
            entry(utc(2024, 1, 3, 9), 4.5),
            entry(utc(2024, 1, 2, 9), 5),
        ])

        assert result.total_hours == Decimal("9.5000")
        assert result.session_count == 2
        assert result.first_check_in == utc(2024, 1, 2, 9)
        assert result.last_check_in == utc(2024, 1, 3, 9)

    def test_open_entries_are_dropped(self):
        result = aggregate_entries([entry(utc(2024, 1, 2, 9), 8), entry(utc(2024, 1, 3, 9), None)])

        assert result.total_hours == Decimal("8.0000")
        assert result.session_count == 1

    def test_empty(self):
        result = aggregate_entries([])

        assert result.total_hours == Decimal("0")
        assert result.session_count == 0
        assert result.first_check_in is None

    def test_quantizes_to_four_places(self):
        """20 minutes is 0.33333... hours."""
        result = aggregate_entries([entry(utc(2024, 1, 2, 9), 1 / 3)])

        assert result.total_hours == Decimal("0.3333")


class TestTimeEntryAggregator:
    """Selection of entries from the database."""

    async def test_boundary_at_cycle_start_is_included(self, session, make_employee, add_entry):
        employee = await make_employee("Alice", hourly_rate="50")
        start, end = cycle_window(date(2024, 1, 1), date(2024, 1, 31))
        await add_entry(employee, start, hours=2)

        result = await TimeEntryAggregator(session).aggregate(employee.employee_id, start, end)

        assert result.session_count == 1
        assert result.total_hours == Decimal("2.0000")

    async def test_one_second_before_start_is_excluded(self, session, make_employee, add_entry):
        employee = await make_employee("Alice", hourly_rate="50")
        start, end = cycle_window(date(2024, 1, 1), date(2024, 1, 31))
        await add_entry(employee, start - timedelta(seconds=1), hours=2)

        result = await TimeEntryAggregator(session).aggregate(employee.employee_id, start, end)

        assert result.session_count == 0
        assert result.total_hours == Decimal("0")

    async def test_last_day_of_cycle_is_included(self, session, make_employee, add_entry):
        employee = await make_employee("Alice", hourly_rate="50")
        start, end = cycle_window(date(2024, 1, 1), date(2024, 1, 31))
        await add_entry(employee, utc(2024, 1, 31, 22), hours=3)
        await add_entry(employee, utc(2024, 2, 1), hours=3)

        result = await TimeEntryAggregator(session).aggregate(employee.employee_id, start, end)

        assert result.session_count == 1
        assert result.total_hours == Decimal("3.0000")

    async def test_open_entries_never_count(self, session, make_employee, add_entry):
        employee = await make_employee("Alice", hourly_rate="50")
        start, end = cycle_window(date(2024, 1, 1), date(2024, 1, 31))
        await add_entry(employee, utc(2024, 1, 10, 9), hours=None)

        result = await TimeEntryAggregator(session).aggregate(employee.employee_id, start, end)

        assert result.session_count == 0

    async def test_aggregate_many_fills_missing_employees(self, session, make_employee, add_entry):
        alice = await make_employee("Alice", hourly_rate="50")
        bob = await make_employee("Bob", daily_rate="500")
        start, end = cycle_window(date(2024, 1, 1), date(2024, 1, 31))
        await add_entry(alice, utc(2024, 1, 5, 9), hours=8, break_minutes=60)

        result = await TimeEntryAggregator(session).aggregate_many(
            [alice.employee_id, bob.employee_id], start, end
        )

        assert result[alice.employee_id].total_hours == Decimal("7.0000")
        assert result[bob.employee_id].session_count == 0
