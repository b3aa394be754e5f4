"""Pytest fixtures for employee payroll tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import date, datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from employee_payroll.auth import AuthContext, Role
from employee_payroll.config import Settings
from employee_payroll.database import Database
from employee_payroll.models import Base, Branch, Employee, PayrollCycle, TimeEntry

# In-memory SQLite shared by every session of one test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Bangkok office used by the check-in tests
BRANCH_LATITUDE = Decimal("13.7563000")
BRANCH_LONGITUDE = Decimal("100.5018000")


@pytest.fixture
def settings() -> Settings:
    """Settings for tests."""
    return Settings(
        database_url=TEST_DATABASE_URL,
        payroll_timezone="UTC",
        checkin_radius_meters=100.0,
    )


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh test database engine per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def database(engine: AsyncEngine) -> Database:
    return Database(engine)


@pytest_asyncio.fixture
async def session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with database.session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def admin() -> AuthContext:
    return AuthContext(user_id=uuid4(), role=Role.ADMIN)


@pytest_asyncio.fixture
async def test_branch(session: AsyncSession) -> Branch:
    """Create a test branch."""
    branch = Branch(
        name="Silom",
        address="1 Silom Rd",
        latitude=BRANCH_LATITUDE,
        longitude=BRANCH_LONGITUDE,
    )
    session.add(branch)
    await session.flush()
    return branch


@pytest.fixture
def make_employee(session: AsyncSession) -> Callable[..., Awaitable[Employee]]:
    """Factory for employees."""

    async def _make(
        full_name: str,
        hourly_rate: str | None = None,
        daily_rate: str | None = None,
        role: str = "employee",
        is_active: bool = True,
        branch: Branch | None = None,
    ) -> Employee:
        employee = Employee(
            full_name=full_name,
            email=f"{full_name.lower().replace(' ', '.')}@example.com",
            employee_code=f"EMP-{uuid4().hex[:6]}",
            role=role,
            hourly_rate=Decimal(hourly_rate) if hourly_rate is not None else None,
            daily_rate=Decimal(daily_rate) if daily_rate is not None else None,
            is_active=is_active,
            branch_id=branch.branch_id if branch else None,
        )
        session.add(employee)
        await session.flush()
        return employee

    return _make


@pytest.fixture
def make_cycle(session: AsyncSession) -> Callable[..., Awaitable[PayrollCycle]]:
    """Factory for payroll cycles, active by default."""

    async def _make(
        start_date: date = date(2024, 1, 1),
        end_date: date = date(2024, 1, 31),
        status: str = "active",
        name: str | None = None,
    ) -> PayrollCycle:
        cycle = PayrollCycle(
            name=name or f"Cycle {start_date.isoformat()}",
            start_date=start_date,
            end_date=end_date,
            pay_date=end_date,
            status=status,
        )
        session.add(cycle)
        await session.flush()
        return cycle

    return _make


@pytest.fixture
def add_entry(session: AsyncSession, test_branch: Branch) -> Callable[..., Awaitable[TimeEntry]]:
    """Factory for time entries; hours=None leaves the entry open."""

    async def _add(
        employee: Employee,
        check_in: datetime,
        hours: float | None = 8,
        break_minutes: int = 0,
    ) -> TimeEntry:
        entry = TimeEntry(
            employee_id=employee.employee_id,
            branch_id=test_branch.branch_id,
            check_in_time=check_in,
            check_out_time=check_in + timedelta(hours=hours) if hours is not None else None,
            break_duration=break_minutes,
        )
        session.add(entry)
        await session.flush()
        return entry

    return _add
