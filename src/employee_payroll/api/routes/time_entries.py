"""Time entry and branch lookup endpoints."""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from employee_payroll.api.dependencies import AppSettings, Auth, DbSession
from employee_payroll.api.schemas import (
    CheckInRequest,
    CheckOutRequest,
    ErrorResponse,
    NearbyBranchListResponse,
    NearbyBranchResponse,
    TimeEntryListResponse,
    TimeEntryResponse,
    TimeEntryStatusResponse,
)
from employee_payroll.services.time_entry_service import TimeEntryService

router = APIRouter(prefix="/time-entries", tags=["time-entries"])
branches_router = APIRouter(prefix="/branches", tags=["branches"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


@router.post(
    "/check-in",
    response_model=TimeEntryResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def check_in(
    db: DbSession,
    settings: AppSettings,
    auth: Auth,
    payload: CheckInRequest,
) -> TimeEntryResponse:
    """Start a work session at a nearby branch."""
    entry = await TimeEntryService(db, settings).check_in(
        auth,
        branch_id=payload.branch_id,
        latitude=payload.latitude,
        longitude=payload.longitude,
        selfie_url=payload.selfie_url,
    )
    await db.commit()
    return TimeEntryResponse.model_validate(entry)


@router.post(
    "/check-out",
    response_model=TimeEntryResponse,
    responses=ERROR_RESPONSES,
)
async def check_out(
    db: DbSession,
    settings: AppSettings,
    auth: Auth,
    payload: CheckOutRequest,
) -> TimeEntryResponse:
    """Close the caller's open work session."""
    entry = await TimeEntryService(db, settings).check_out(
        auth,
        latitude=payload.latitude,
        longitude=payload.longitude,
        selfie_url=payload.selfie_url,
        break_duration=payload.break_duration,
        notes=payload.notes,
    )
    await db.commit()
    return TimeEntryResponse.model_validate(entry)


@router.get("/status", response_model=TimeEntryStatusResponse)
async def get_status(
    db: DbSession,
    settings: AppSettings,
    auth: Auth,
) -> TimeEntryStatusResponse:
    entry = await TimeEntryService(db, settings).get_status(auth)
    return TimeEntryStatusResponse(
        is_checked_in=entry is not None,
        entry=TimeEntryResponse.model_validate(entry) if entry else None,
    )


@router.get("/history", response_model=TimeEntryListResponse)
async def list_history(
    db: DbSession,
    settings: AppSettings,
    auth: Auth,
    start: Annotated[datetime | None, Query()] = None,
    end: Annotated[datetime | None, Query()] = None,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> TimeEntryListResponse:
    """The caller's time entries, newest first."""
    entries = await TimeEntryService(db, settings).list_history(auth, start=start, end=end, limit=limit)
    return TimeEntryListResponse(
        items=[TimeEntryResponse.model_validate(e) for e in entries],
        total=len(entries),
    )


@router.get("/{time_entry_id}", response_model=TimeEntryResponse, responses=ERROR_RESPONSES)
async def get_time_entry(
    db: DbSession,
    settings: AppSettings,
    auth: Auth,
    time_entry_id: Annotated[UUID, Path()],
) -> TimeEntryResponse:
    """One time entry; employees can only read their own."""
    entry = await TimeEntryService(db, settings).get_entry(auth, time_entry_id)
    return TimeEntryResponse.model_validate(entry)

@branches_router.get(
    "/nearby",
    response_model=NearbyBranchListResponse,
    responses=ERROR_RESPONSES,
)
async def list_nearby_branches(
    db: DbSession,
    settings: AppSettings,
    auth: Auth,
    latitude: Annotated[float, Query()],
    longitude: Annotated[float, Query()],
    radius: Annotated[float | None, Query(gt=0)] = None,
) -> NearbyBranchListResponse:
    """Branches within check-in range, closest first."""
    radius_meters = radius if radius is not None else settings.checkin_radius_meters
    nearby = await TimeEntryService(db, settings).nearby_branches(latitude, longitude, radius_meters)
    return NearbyBranchListResponse(
        items=[
            NearbyBranchResponse(
                branch_id=n.branch.branch_id,
                name=n.branch.name,
                address=n.branch.address,
                latitude=n.branch.latitude,
                longitude=n.branch.longitude,
                distance_meters=round(n.distance_meters, 1),
            )
            for n in nearby
        ],
        radius_meters=radius_meters,
    )
