"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Payroll cycle schemas
# ============================================================================


class PayrollCycleCreate(BaseModel):
    """Schema for creating a new payroll cycle."""

    name: str = Field(min_length=1)
    start_date: date
    end_date: date
    pay_date: date | None = None


class PayrollCycleResponse(BaseModel):
    """Schema for payroll cycle response."""

    model_config = ConfigDict(from_attributes=True)

    payroll_cycle_id: UUID
    name: str
    start_date: date
    end_date: date
    pay_date: date | None = None
    status: str
    closed_at: datetime | None = None
    closed_by_user_id: UUID | None = None
    total_employees: int | None = None
    total_amount: Decimal | None = None
    created_at: datetime | None = None


class PayrollCycleListResponse(BaseModel):
    """Schema for list of payroll cycles."""

    items: list[PayrollCycleResponse]
    total: int


class EmployeePayResponse(BaseModel):
    """One employee's computed pay."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: UUID
    full_name: str
    branch_id: UUID | None = None
    total_hours: Decimal
    session_count: int
    method: str
    hourly_rate: Decimal | None = None
    daily_rate: Decimal | None = None
    base_pay: Decimal
    net_pay: Decimal


class SkippedEmployeeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: UUID
    full_name: str
    reason: str


class CalculationResponse(BaseModel):
    """Result of a payroll calculation."""

    payroll_cycle_id: UUID
    employee_count: int
    total_hours: Decimal
    total_base_pay: Decimal
    total_net_pay: Decimal
    employees: list[EmployeePayResponse]
    skipped: list[SkippedEmployeeResponse]


class ResetResponse(BaseModel):
    payroll_cycle_id: UUID
    deleted_records: int


class BranchTotalsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    branch_id: str
    branch_name: str | None = None
    employee_count: int
    total_base_pay: Decimal
    total_net_pay: Decimal
    total_hours: Decimal


class ValidationIssueResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    issue_type: str
    employee_id: UUID
    employee_name: str
    net_pay: Decimal | None = None


class CycleSummaryResponse(BaseModel):
    """Totals and close readiness of a payroll cycle."""

    cycle: PayrollCycleResponse
    total_employees: int
    total_base_pay: Decimal
    total_net_pay: Decimal
    average_net_pay: Decimal
    total_hours: Decimal
    total_sessions: int
    branches: list[BranchTotalsResponse]
    issues: list[ValidationIssueResponse]
    can_close: bool


# ============================================================================
# Employee schemas
# ============================================================================


class EmployeeResponse(BaseModel):
    """Schema for employee response."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: UUID
    full_name: str
    email: str | None = None
    employee_code: str | None = None
    role: str
    hourly_rate: Decimal | None = None
    daily_rate: Decimal | None = None
    is_active: bool
    branch_id: UUID | None = None
    created_at: datetime | None = None


class EmployeeListResponse(BaseModel):
    items: list[EmployeeResponse]
    total: int
    page: int
    page_size: int


class EmployeeUpdate(BaseModel):
    """Partial update; only fields sent are changed."""

    full_name: str | None = None
    email: str | None = None
    branch_id: UUID | None = None
    hourly_rate: Decimal | None = None
    daily_rate: Decimal | None = None
    is_active: bool | None = None


# ============================================================================
# Time entry schemas
# ============================================================================


class CheckInRequest(BaseModel):
    branch_id: UUID
    latitude: float
    longitude: float
    selfie_url: str | None = None


class CheckOutRequest(BaseModel):
    latitude: float
    longitude: float
    selfie_url: str
    break_duration: int = Field(default=0, ge=0)
    notes: str | None = None


class TimeEntryResponse(BaseModel):
    """Schema for time entry response."""

    model_config = ConfigDict(from_attributes=True)

    time_entry_id: UUID
    employee_id: UUID
    branch_id: UUID
    check_in_time: datetime
    check_out_time: datetime | None = None
    break_duration: int
    total_hours: Decimal | None = None
    check_in_selfie_url: str | None = None
    check_out_selfie_url: str | None = None
    notes: str | None = None


class TimeEntryStatusResponse(BaseModel):
    is_checked_in: bool
    entry: TimeEntryResponse | None = None


class TimeEntryListResponse(BaseModel):
    items: list[TimeEntryResponse]
    total: int


class NearbyBranchResponse(BaseModel):
    branch_id: UUID
    name: str
    address: str | None = None
    latitude: Decimal
    longitude: Decimal
    distance_meters: float


class NearbyBranchListResponse(BaseModel):
    items: list[NearbyBranchResponse]
    radius_meters: float


# ============================================================================
# Error schemas
# ============================================================================


ExportFormat = Literal["csv", "json"]


class ErrorResponse(BaseModel):
    """Error response schema."""

    detail: str
    code: str | None = None

    model_config = ConfigDict(extra="allow")
