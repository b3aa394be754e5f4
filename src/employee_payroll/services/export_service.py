"""Payroll cycle export to CSV and JSON."""

from __future__ import annotations

import csv
import io
from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from employee_payroll.services.cycle_service import CycleSummary, PayrollCycleService

CSV_COLUMNS = [
    "No",
    "Employee Code",
    "Full Name",
    "Branch",
    "Method",
    "Sessions",
    "Total Hours",
    "Hourly Rate",
    "Daily Rate",
    "Base Pay",
    "Net Pay",
]


class PayrollExportService:
    """Exports calculated payroll details of a cycle.

    Rows are ordered by employee name. CSV output is prefixed with a UTF-8
    BOM so spreadsheet tools pick the right encoding.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.cycle_service = PayrollCycleService(session)

    async def export_csv(self, payroll_cycle_id: UUID, generated_on: date | None = None) -> str:
        """Export a cycle to CSV text."""
        summary = await self.cycle_service.get_summary(payroll_cycle_id)
        cycle = summary.cycle

        output = io.StringIO()
        output.write("\ufeff")
        writer = csv.writer(output)

        # Header block
        writer.writerow(["Payroll Cycle", cycle.name])
        writer.writerow(["Period", cycle.start_date.isoformat(), cycle.end_date.isoformat()])
        writer.writerow(["Status", cycle.status])
        writer.writerow(["Employees", summary.total_employees])
        writer.writerow(["Total Net Pay", str(summary.total_net_pay)])
        writer.writerow(["Generated", (generated_on or date.today()).isoformat()])
        writer.writerow([])

        writer.writerow(CSV_COLUMNS)
        for index, detail in enumerate(summary.details, start=1):
            employee = detail.employee
            writer.writerow([
                index,
                employee.employee_code or "",
                employee.full_name,
                employee.branch.name if employee.branch else "",
                detail.calculation_method,
                detail.session_count,
                str(detail.total_hours),
                str(detail.hourly_rate) if detail.hourly_rate is not None else "",
                str(detail.daily_rate) if detail.daily_rate is not None else "",
                str(detail.base_pay),
                str(detail.net_pay),
            ])

        # Totals block
        writer.writerow([])
        writer.writerow(["Total Employees", summary.total_employees])
        writer.writerow(["Total Base Pay", str(summary.total_base_pay)])
        writer.writerow(["Total Net Pay", str(summary.total_net_pay)])

        return output.getvalue()

    async def export_json(self, payroll_cycle_id: UUID, include_details: bool = True) -> dict[str, Any]:
        """Export a cycle as a JSON-ready dict."""
        summary = await self.cycle_service.get_summary(payroll_cycle_id)
        data: dict[str, Any] = {
            "cycle": _cycle_info(summary),
            "totals": {
                "total_employees": summary.total_employees,
                "total_base_pay": str(summary.total_base_pay),
                "total_net_pay": str(summary.total_net_pay),
                "average_net_pay": str(summary.average_net_pay),
                "total_hours": str(summary.total_hours),
            },
        }
        if include_details:
            data["employees"] = [
                {
                    "order": index,
                    "employee_id": str(detail.employee_id),
                    "employee_code": detail.employee.employee_code,
                    "full_name": detail.employee.full_name,
                    "branch": detail.employee.branch.name if detail.employee.branch else None,
                    "calculation_method": detail.calculation_method,
                    "session_count": detail.session_count,
                    "total_hours": str(detail.total_hours),
                    "base_pay": str(detail.base_pay),
                    "net_pay": str(detail.net_pay),
                }
                for index, detail in enumerate(summary.details, start=1)
            ]
        return data


def _cycle_info(summary: CycleSummary) -> dict[str, Any]:
    cycle = summary.cycle
    return {
        "payroll_cycle_id": str(cycle.payroll_cycle_id),
        "name": cycle.name,
        "start_date": cycle.start_date.isoformat(),
        "end_date": cycle.end_date.isoformat(),
        "status": cycle.status,
        "closed_at": cycle.closed_at.isoformat() if cycle.closed_at else None,
    }
