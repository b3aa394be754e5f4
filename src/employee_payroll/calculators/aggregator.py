"""Aggregation of completed time entries into worked hours."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from datetime import date, datetime, time, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from employee_payroll.calculators.types import HoursAggregate
from employee_payroll.models import TimeEntry

HOURS_QUANTUM = Decimal("0.0001")
SECONDS_PER_HOUR = Decimal("3600")


def ensure_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def cycle_window(
    start_date: date,
    end_date: date,
    tz_name: str = "UTC",
) -> tuple[datetime, datetime]:
    """Turn inclusive cycle dates into an inclusive instant window in UTC.

    The window runs from the first instant of start_date to the last
    microsecond of end_date in the payroll timezone.
    """
    tz = ZoneInfo(tz_name)
    window_start = datetime.combine(start_date, time.min, tzinfo=tz)
    window_end = datetime.combine(end_date, time.max, tzinfo=tz)
    return ensure_utc(window_start), ensure_utc(window_end)


def entry_hours(entry: TimeEntry) -> Decimal:
    """Worked hours of a completed entry, derived from its timestamps.

    Stored total_hours is ignored. Break minutes are subtracted and the
    result is floored at zero.
    """
    if entry.check_out_time is None:
        return Decimal("0")

    worked = ensure_utc(entry.check_out_time) - ensure_utc(entry.check_in_time)
    worked -= timedelta(minutes=entry.break_duration or 0)
    if worked <= timedelta(0):
        return Decimal("0")

    seconds = Decimal(worked.days * 86400 + worked.seconds) + Decimal(worked.microseconds) / Decimal(1_000_000)
    return seconds / SECONDS_PER_HOUR


def aggregate_entries(entries: Iterable[TimeEntry]) -> HoursAggregate:
    """Sum hours and count sessions over completed entries.

    Open entries are dropped. Entries are walked in check-in order so the
    first/last session markers are deterministic.
    """
    completed = sorted(
        (e for e in entries if e.check_out_time is not None),
        key=lambda e: ensure_utc(e.check_in_time),
    )
    if not completed:
        return HoursAggregate()

    total = sum((entry_hours(e) for e in completed), Decimal("0"))
    return HoursAggregate(
        total_hours=total.quantize(HOURS_QUANTUM, rounding=ROUND_HALF_UP),
        session_count=len(completed),
        first_check_in=ensure_utc(completed[0].check_in_time),
        last_check_in=ensure_utc(completed[-1].check_in_time),
    )


class TimeEntryAggregator:
    """Reads completed time entries for a window and aggregates them.

    Selection: check_out_time IS NOT NULL and
    cycle_start <= check_in_time <= cycle_end.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def aggregate(
        self,
        employee_id: UUID,
        cycle_start: datetime,
        cycle_end: datetime,
    ) -> HoursAggregate:
        """Aggregate the completed entries of one employee."""
        entries = await self._load_entries(cycle_start, cycle_end, [employee_id])
        return aggregate_entries(entries)

    async def aggregate_many(
        self,
        employee_ids: Iterable[UUID],
        cycle_start: datetime,
        cycle_end: datetime,
    ) -> dict[UUID, HoursAggregate]:
        """Aggregate per employee with one query; missing employees get zeros."""
        ids = list(employee_ids)
        by_employee: dict[UUID, list[TimeEntry]] = defaultdict(list)
        if ids:
            for entry in await self._load_entries(cycle_start, cycle_end, ids):
                by_employee[entry.employee_id].append(entry)

        return {employee_id: aggregate_entries(by_employee.get(employee_id, [])) for employee_id in ids}

    async def _load_entries(
        self,
        cycle_start: datetime,
        cycle_end: datetime,
        employee_ids: list[UUID],
    ) -> list[TimeEntry]:
        result = await self.session.execute(
            select(TimeEntry)
            .where(
                TimeEntry.employee_id.in_(employee_ids),
                TimeEntry.check_out_time.is_not(None),
                TimeEntry.check_in_time >= ensure_utc(cycle_start),
                TimeEntry.check_in_time <= ensure_utc(cycle_end),
            )
            .order_by(TimeEntry.check_in_time, TimeEntry.time_entry_id)
        )
        return list(result.scalars().all())
