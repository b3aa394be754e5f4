"""Explicit per-request authentication context."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from employee_payroll.errors import PermissionDeniedError


class Role(str, Enum):
    """User roles."""

    EMPLOYEE = "employee"
    ADMIN = "admin"


@dataclass(frozen=True)
class AuthContext:
    """Identity of the caller, passed into every service operation."""

    user_id: UUID
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def require_admin(self) -> None:
        if self.role != Role.ADMIN:
            raise PermissionDeniedError("Admin access required", role=self.role.value)

    def require_employee(self) -> None:
        if self.role != Role.EMPLOYEE:
            raise PermissionDeniedError("Employee access required", role=self.role.value)
