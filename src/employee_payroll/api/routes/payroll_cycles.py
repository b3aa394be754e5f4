"""Payroll cycle API endpoints."""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Path, Query, Response, status

from employee_payroll.api.dependencies import AppSettings, Auth, DbSession
from employee_payroll.api.schemas import (
    BranchTotalsResponse,
    CalculationResponse,
    CycleSummaryResponse,
    EmployeePayResponse,
    ErrorResponse,
    ExportFormat,
    PayrollCycleCreate,
    PayrollCycleListResponse,
    PayrollCycleResponse,
    ResetResponse,
    SkippedEmployeeResponse,
    ValidationIssueResponse,
)
from employee_payroll.services.cycle_service import PayrollCycleService
from employee_payroll.services.export_service import PayrollExportService
from employee_payroll.services.run_controller import PayrollRunController

router = APIRouter(prefix="/payroll-cycles", tags=["payroll-cycles"])

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


# ============================================================================
# Cycle CRUD
# ============================================================================


@router.post(
    "",
    response_model=PayrollCycleResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def create_payroll_cycle(
    db: DbSession,
    auth: Auth,
    payload: PayrollCycleCreate,
) -> PayrollCycleResponse:
    """Create a new payroll cycle in draft status."""
    cycle = await PayrollCycleService(db).create_cycle(
        auth,
        name=payload.name,
        start_date=payload.start_date,
        end_date=payload.end_date,
        pay_date=payload.pay_date,
    )
    await db.commit()
    await db.refresh(cycle)
    return PayrollCycleResponse.model_validate(cycle)


@router.get("", response_model=PayrollCycleListResponse)
async def list_payroll_cycles(
    db: DbSession,
    auth: Auth,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> PayrollCycleListResponse:
    """List payroll cycles, newest first."""
    auth.require_admin()
    cycles = await PayrollCycleService(db).list_cycles(status=status_filter)
    return PayrollCycleListResponse(
        items=[PayrollCycleResponse.model_validate(c) for c in cycles],
        total=len(cycles),
    )


@router.get(
    "/{payroll_cycle_id}",
    response_model=PayrollCycleResponse,
    responses=ERROR_RESPONSES,
)
async def get_payroll_cycle(
    db: DbSession,
    auth: Auth,
    payroll_cycle_id: Annotated[UUID, Path()],
) -> PayrollCycleResponse:
    auth.require_admin()
    cycle = await PayrollCycleService(db).get_cycle(payroll_cycle_id)
    return PayrollCycleResponse.model_validate(cycle)


# ============================================================================
# Lifecycle
# ============================================================================


@router.post(
    "/{payroll_cycle_id}/activate",
    response_model=PayrollCycleResponse,
    responses=ERROR_RESPONSES,
)
async def activate_payroll_cycle(
    db: DbSession,
    auth: Auth,
    payroll_cycle_id: Annotated[UUID, Path()],
) -> PayrollCycleResponse:
    """Open a draft cycle for calculation."""
    cycle = await PayrollCycleService(db).activate_cycle(auth, payroll_cycle_id)
    await db.commit()
    return PayrollCycleResponse.model_validate(cycle)


@router.post(
    "/{payroll_cycle_id}/calculate",
    response_model=CalculationResponse,
    responses=ERROR_RESPONSES,
)
async def calculate_payroll_cycle(
    db: DbSession,
    settings: AppSettings,
    auth: Auth,
    payroll_cycle_id: Annotated[UUID, Path()],
) -> CalculationResponse:
    """Compute and persist pay for every eligible employee."""
    summary = await PayrollRunController(db, settings).calculate(payroll_cycle_id, auth)
    return CalculationResponse(
        payroll_cycle_id=summary.payroll_cycle_id,
        employee_count=summary.employee_count,
        total_hours=summary.total_hours,
        total_base_pay=summary.total_base_pay,
        total_net_pay=summary.total_net_pay,
        employees=[EmployeePayResponse.model_validate(e) for e in summary.employees],
        skipped=[SkippedEmployeeResponse.model_validate(s) for s in summary.skipped],
    )


@router.delete(
    "/{payroll_cycle_id}/reset",
    response_model=ResetResponse,
    responses=ERROR_RESPONSES,
)
async def reset_payroll_cycle(
    db: DbSession,
    settings: AppSettings,
    auth: Auth,
    payroll_cycle_id: Annotated[UUID, Path()],
) -> ResetResponse:
    """Delete calculated details so the cycle can be recalculated."""
    deleted = await PayrollRunController(db, settings).reset(payroll_cycle_id, auth)
    return ResetResponse(payroll_cycle_id=payroll_cycle_id, deleted_records=deleted)


@router.get(
    "/{payroll_cycle_id}/summary",
    response_model=CycleSummaryResponse,
    responses=ERROR_RESPONSES,
)
async def get_payroll_cycle_summary(
    db: DbSession,
    auth: Auth,
    payroll_cycle_id: Annotated[UUID, Path()],
) -> CycleSummaryResponse:
    auth.require_admin()
    summary = await PayrollCycleService(db).get_summary(payroll_cycle_id)
    return CycleSummaryResponse(
        cycle=PayrollCycleResponse.model_validate(summary.cycle),
        total_employees=summary.total_employees,
        total_base_pay=summary.total_base_pay,
        total_net_pay=summary.total_net_pay,
        average_net_pay=summary.average_net_pay,
        total_hours=summary.total_hours,
        total_sessions=summary.total_sessions,
        branches=[BranchTotalsResponse.model_validate(b) for b in summary.branches],
        issues=[ValidationIssueResponse.model_validate(i) for i in summary.issues],
        can_close=summary.can_close,
    )


@router.post(
    "/{payroll_cycle_id}/close",
    response_model=PayrollCycleResponse,
    responses=ERROR_RESPONSES,
)
async def close_payroll_cycle(
    db: DbSession,
    auth: Auth,
    payroll_cycle_id: Annotated[UUID, Path()],
) -> PayrollCycleResponse:
    """Finalize an active cycle."""
    cycle = await PayrollCycleService(db).close_cycle(auth, payroll_cycle_id)
    await db.commit()
    return PayrollCycleResponse.model_validate(cycle)


@router.get(
    "/{payroll_cycle_id}/export",
    responses={**ERROR_RESPONSES, 200: {"content": {"text/csv": {}, "application/json": {}}}},
)
async def export_payroll_cycle(
    db: DbSession,
    auth: Auth,
    payroll_cycle_id: Annotated[UUID, Path()],
    export_format: Annotated[ExportFormat, Query(alias="format")] = "csv",
) -> Any:
    """Download calculated payroll as CSV or JSON."""
    auth.require_admin()
    service = PayrollExportService(db)
    if export_format == "json":
        return await service.export_json(payroll_cycle_id)

    content = await service.export_csv(payroll_cycle_id)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="payroll_{payroll_cycle_id}.csv"'},
    )
