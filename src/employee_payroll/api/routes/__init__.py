"""API routes."""

from employee_payroll.api.routes.employees import router as employees_router
from employee_payroll.api.routes.health import router as health_router
from employee_payroll.api.routes.payroll_cycles import router as payroll_cycles_router
from employee_payroll.api.routes.time_entries import branches_router
from employee_payroll.api.routes.time_entries import router as time_entries_router

__all__ = [
    "branches_router",
    "employees_router",
    "health_router",
    "payroll_cycles_router",
    "time_entries_router",
]
