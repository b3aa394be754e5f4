"""Admin management of employee records and pay rates."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from employee_payroll.auth import AuthContext
from employee_payroll.errors import NotFoundError, ValidationError
from employee_payroll.models import Branch, Employee
from employee_payroll.services.audit import record_audit

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("full_name", "email", "branch_id", "hourly_rate", "daily_rate", "is_active")


class EmployeeService:
    """List, read and update employees. Every operation is admin-only."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_employees(
        self,
        auth: AuthContext,
        search: str | None = None,
        branch_id: UUID | None = None,
        role: str | None = None,
        is_active: bool | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Employee], int]:
        """One page of employees ordered by name, plus the total match count.

        ``search`` matches name or email, case-insensitively.
        """
        auth.require_admin()
        query = select(Employee)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.where(or_(Employee.full_name.ilike(pattern), Employee.email.ilike(pattern)))
        if branch_id is not None:
            query = query.where(Employee.branch_id == branch_id)
        if role:
            query = query.where(Employee.role == role)
        if is_active is not None:
            query = query.where(Employee.is_active == is_active)

        total = await self.session.scalar(select(func.count()).select_from(query.subquery())) or 0

        query = (
            query.options(selectinload(Employee.branch))
            .order_by(Employee.full_name, Employee.employee_id)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all()), total

    async def get_employee(self, auth: AuthContext, employee_id: UUID) -> Employee:
        auth.require_admin()
        result = await self.session.execute(
            select(Employee)
            .where(Employee.employee_id == employee_id)
            .options(selectinload(Employee.branch))
            .execution_options(populate_existing=True)
        )
        employee = result.scalar_one_or_none()
        if employee is None:
            raise NotFoundError("Employee", employee_id)
        return employee

    async def update_employee(
        self,
        auth: AuthContext,
        employee_id: UUID,
        changes: dict[str, Any],
    ) -> Employee:
        """Apply a partial update.

        Rates may be cleared with None but never set below zero. A cleared
        rate makes the employee ineligible for the next calculation.

        Raises:
            NotFoundError: unknown employee
            ValidationError: unknown field, blank name, email taken by
                another employee, unknown branch or negative rate
        """
        employee = await self.get_employee(auth, employee_id)
        changes = dict(changes)

        unknown = sorted(set(changes) - set(UPDATABLE_FIELDS))
        if unknown:
            raise ValidationError("Fields cannot be updated", fields=unknown)

        if "full_name" in changes:
            name = (changes["full_name"] or "").strip()
            if not name:
                raise ValidationError("Employee name is required")
            changes["full_name"] = name

        if changes.get("email") is not None:
            email = changes["email"].strip().lower()
            taken = await self.session.scalar(
                select(Employee.employee_id).where(
                    func.lower(Employee.email) == email,
                    Employee.employee_id != employee_id,
                )
            )
            if taken is not None:
                raise ValidationError("Email is already used by another employee", email=email)
            changes["email"] = email

        if changes.get("branch_id") is not None:
            if await self.session.get(Branch, changes["branch_id"]) is None:
                raise ValidationError("Branch does not exist", branch_id=str(changes["branch_id"]))

        for rate_field in ("hourly_rate", "daily_rate"):
            if changes.get(rate_field) is not None:
                rate = Decimal(str(changes[rate_field]))
                if rate < 0:
                    raise ValidationError(f"{rate_field} must not be negative", **{rate_field: str(rate)})
                changes[rate_field] = rate

        if "is_active" in changes and changes["is_active"] is None:
            raise ValidationError("is_active must be true or false")

        before = {name: getattr(employee, name) for name in changes}
        for name, value in changes.items():
            setattr(employee, name, value)
        await self.session.flush()

        record_audit(
            self.session,
            auth,
            entity_type="employee",
            entity_id=employee.employee_id,
            action="update",
            before=before,
            after=changes,
        )
        logger.info("Updated employee %s: %s", employee_id, ", ".join(sorted(changes)))
        # branch relationship must follow a changed branch_id
        if "branch_id" in changes:
            await self.session.refresh(employee, attribute_names=["branch"])
        return employee
