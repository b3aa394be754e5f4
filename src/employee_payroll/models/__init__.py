"""ORM models."""

from employee_payroll.models.audit import AuditEvent
from employee_payroll.models.base import Base, TimestampMixin
from employee_payroll.models.employee import Branch, Employee
from employee_payroll.models.payroll import PayrollCycle, PayrollDetail
from employee_payroll.models.time_entry import TimeEntry

__all__ = [
    "AuditEvent",
    "Base",
    "Branch",
    "Employee",
    "PayrollCycle",
    "PayrollDetail",
    "TimeEntry",
    "TimestampMixin",
]
