"""Admin employee management endpoints."""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Path, Query

from employee_payroll.api.dependencies import Auth, DbSession
from employee_payroll.api.schemas import (
    EmployeeListResponse,
    EmployeeResponse,
    EmployeeUpdate,
    ErrorResponse,
)
from employee_payroll.services.employee_service import EmployeeService

router = APIRouter(prefix="/employees", tags=["employees"])

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


@router.get("", response_model=EmployeeListResponse, responses=ERROR_RESPONSES)
async def list_employees(
    db: DbSession,
    auth: Auth,
    search: str | None = None,
    branch_id: UUID | None = None,
    role: str | None = None,
    is_active: bool | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
) -> EmployeeListResponse:
    """List employees by name with optional filters."""
    employees, total = await EmployeeService(db).list_employees(
        auth,
        search=search,
        branch_id=branch_id,
        role=role,
        is_active=is_active,
        page=page,
        page_size=page_size,
    )
    return EmployeeListResponse(
        items=[EmployeeResponse.model_validate(e) for e in employees],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{employee_id}", response_model=EmployeeResponse, responses=ERROR_RESPONSES)
async def get_employee(
    db: DbSession,
    auth: Auth,
    employee_id: Annotated[UUID, Path()],
) -> EmployeeResponse:
    employee = await EmployeeService(db).get_employee(auth, employee_id)
    return EmployeeResponse.model_validate(employee)


@router.patch("/{employee_id}", response_model=EmployeeResponse, responses=ERROR_RESPONSES)
async def update_employee(
    db: DbSession,
    auth: Auth,
    employee_id: Annotated[UUID, Path()],
    payload: EmployeeUpdate,
) -> EmployeeResponse:
    """Change profile fields, pay rates or active status."""
    employee = await EmployeeService(db).update_employee(
        auth, employee_id, payload.model_dump(exclude_unset=True)
    )
    await db.commit()
    return EmployeeResponse.model_validate(employee)
