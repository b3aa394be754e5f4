"""Employee check-in and check-out."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from employee_payroll.auth import AuthContext, Role
from employee_payroll.calculators.aggregator import ensure_utc, entry_hours
from employee_payroll.config import Settings
from employee_payroll.errors import (
    NotFoundError,
    OutOfRangeError,
    PermissionDeniedError,
    ValidationError,
)
from employee_payroll.geo import (
    GeoPoint,
    NearbyBranch,
    branch_point,
    find_nearby_branches,
    haversine_distance,
    validate_coordinates,
)
from employee_payroll.models import Branch, Employee, TimeEntry

logger = logging.getLogger(__name__)

DISPLAY_HOURS_QUANTUM = Decimal("0.01")


def selfie_belongs_to(selfie_url: str, user_id: UUID, action: str) -> bool:
    """True if the selfie URL lives under the caller's own upload folder."""
    return f"/{action}/{user_id}/" in selfie_url


class TimeEntryService:
    """Check-in/check-out for employees, guarded by branch proximity."""

    def __init__(self, session: AsyncSession, settings: Settings):
        self.session = session
        self.settings = settings

    async def check_in(
        self,
        auth: AuthContext,
        branch_id: UUID,
        latitude: float,
        longitude: float,
        selfie_url: str | None = None,
        now: datetime | None = None,
    ) -> TimeEntry:
        """Open a time entry at a branch.

        Raises:
            ValidationError: bad coordinates, foreign selfie URL or an
                entry is already open.
            NotFoundError: unknown branch or caller.
            PermissionDeniedError: caller is not an active employee.
            OutOfRangeError: location is outside the check-in radius.
        """
        await self._load_caller(auth)
        point = self._validate_point(latitude, longitude)
        if selfie_url and not selfie_belongs_to(selfie_url, auth.user_id, "checkin"):
            raise ValidationError("Selfie URL must belong to the current user")

        open_entry = await self.get_status(auth)
        if open_entry is not None:
            logger.warning("Rejected check-in for %s: entry %s still open", auth.user_id, open_entry.time_entry_id)
            raise ValidationError(
                "An open time entry already exists; check out first",
                time_entry_id=str(open_entry.time_entry_id),
                branch_id=str(open_entry.branch_id),
            )

        branch = await self.session.get(Branch, branch_id)
        if branch is None:
            raise NotFoundError("Branch", branch_id)
        self._ensure_in_range(point, branch)

        entry = TimeEntry(
            employee_id=auth.user_id,
            branch_id=branch.branch_id,
            check_in_time=ensure_utc(now or datetime.now(timezone.utc)),
            check_in_selfie_url=selfie_url,
            break_duration=0,
        )
        self.session.add(entry)
        await self.session.flush()

        logger.info("Employee %s checked in at branch %s", auth.user_id, branch.name)
        return entry

    async def check_out(
        self,
        auth: AuthContext,
        latitude: float,
        longitude: float,
        selfie_url: str,
        break_duration: int = 0,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> TimeEntry:
        """Close the caller's open entry and record display hours."""
        await self._load_caller(auth)
        point = self._validate_point(latitude, longitude)
        if not selfie_url or not selfie_url.strip():
            raise ValidationError("Selfie URL is required for check-out")
        if not selfie_belongs_to(selfie_url, auth.user_id, "checkout"):
            raise ValidationError("Selfie URL must belong to the current user")
        if break_duration < 0:
            raise ValidationError("break_duration must not be negative", break_duration=break_duration)

        entry = await self.get_status(auth)
        if entry is None:
            raise ValidationError("No open time entry to check out from")

        branch = await self.session.get(Branch, entry.branch_id)
        if branch is None:
            raise NotFoundError("Branch", entry.branch_id)
        self._ensure_in_range(point, branch)

        check_out_time = ensure_utc(now or datetime.now(timezone.utc))
        if check_out_time < ensure_utc(entry.check_in_time):
            raise ValidationError("Check-out time is before check-in time")

        entry.check_out_time = check_out_time
        entry.check_out_selfie_url = selfie_url
        entry.break_duration = break_duration
        entry.notes = notes
        entry.total_hours = entry_hours(entry).quantize(DISPLAY_HOURS_QUANTUM, rounding=ROUND_HALF_UP)
        await self.session.flush()

        logger.info(
            "Employee %s checked out at branch %s after %s hours",
            auth.user_id,
            branch.name,
            entry.total_hours,
        )
        return entry

    async def get_status(self, auth: AuthContext) -> TimeEntry | None:
        """The caller's open entry, if any."""
        result = await self.session.execute(
            select(TimeEntry)
            .where(
                TimeEntry.employee_id == auth.user_id,
                TimeEntry.check_out_time.is_(None),
            )
            .options(selectinload(TimeEntry.branch))
            .order_by(TimeEntry.check_in_time.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_history(
        self,
        auth: AuthContext,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int = 50,
    ) -> list[TimeEntry]:
        """The caller's entries, newest first, optionally within [start, end]."""
        query = (
            select(TimeEntry)
            .where(TimeEntry.employee_id == auth.user_id)
            .options(selectinload(TimeEntry.branch))
        )
        if start is not None:
            query = query.where(TimeEntry.check_in_time >= ensure_utc(start))
        if end is not None:
            query = query.where(TimeEntry.check_in_time <= ensure_utc(end))
        query = query.order_by(TimeEntry.check_in_time.desc()).limit(limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def nearby_branches(
        self,
        latitude: float,
        longitude: float,
        radius_meters: float | None = None,
    ) -> list[NearbyBranch]:
        point = self._validate_point(latitude, longitude)
        result = await self.session.execute(select(Branch).order_by(Branch.name))
        radius = radius_meters if radius_meters is not None else self.settings.checkin_radius_meters
        return find_nearby_branches(result.scalars().all(), point, radius)

    async def get_entry(self, auth: AuthContext, time_entry_id: UUID) -> TimeEntry:
        """One entry; employees only see their own, admins see any."""
        result = await self.session.execute(
            select(TimeEntry)
            .where(TimeEntry.time_entry_id == time_entry_id)
            .options(selectinload(TimeEntry.branch))
            .execution_options(populate_existing=True)
        )
        entry = result.scalar_one_or_none()
        if entry is None or (not auth.is_admin and entry.employee_id != auth.user_id):
            raise NotFoundError("Time entry", time_entry_id)
        return entry

    async def _load_caller(self, auth: AuthContext) -> Employee:
        """The caller's employee record; must exist, be active and hold the employee role."""
        auth.require_employee()
        employee = await self.session.get(Employee, auth.user_id)
        if employee is None:
            raise NotFoundError("Employee", auth.user_id)
        if employee.role != Role.EMPLOYEE.value or not employee.is_active:
            logger.warning("Rejected time entry for %s: role=%s active=%s", auth.user_id, employee.role, employee.is_active)
            raise PermissionDeniedError(
                "Only active employees can record time",
                role=employee.role,
                is_active=employee.is_active,
            )
        return employee

    def _validate_point(self, latitude: float, longitude: float) -> GeoPoint:
        errors = validate_coordinates(latitude, longitude)
        if errors:
            raise ValidationError("; ".join(errors), latitude=latitude, longitude=longitude)
        return GeoPoint(latitude, longitude)

    def _ensure_in_range(self, point: GeoPoint, branch: Branch) -> None:
        distance = haversine_distance(point, branch_point(branch))
        if distance > self.settings.checkin_radius_meters:
            logger.warning(
                "Location %.0f m from branch %s exceeds %.0f m",
                distance,
                branch.name,
                self.settings.checkin_radius_meters,
            )
            raise OutOfRangeError(distance, self.settings.checkin_radius_meters)
