"""Payroll services."""

from employee_payroll.services.cycle_service import CycleSummary, PayrollCycleService
from employee_payroll.services.employee_service import EmployeeService
from employee_payroll.services.export_service import PayrollExportService
from employee_payroll.services.payroll_service import PayrollCalculationService
from employee_payroll.services.run_controller import PayrollRunController
from employee_payroll.services.state_machine import (
    CycleStatus,
    InvalidTransitionError,
    PayrollCycleStateMachine,
)
from employee_payroll.services.time_entry_service import TimeEntryService

__all__ = [
    "CycleStatus",
    "CycleSummary",
    "EmployeeService",
    "InvalidTransitionError",
    "PayrollCalculationService",
    "PayrollCycleService",
    "PayrollCycleStateMachine",
    "PayrollExportService",
    "PayrollRunController",
    "TimeEntryService",
]
