"""Error taxonomy shared by services and the HTTP boundary."""

from __future__ import annotations

from typing import Any


class PayrollError(Exception):
    """Base class for errors reported back to the caller."""

    code = "PAYROLL_ERROR"

    def __init__(self, message: str, **details: Any):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(PayrollError):
    """Referenced cycle, employee, branch or entry does not exist."""

    code = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: Any):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"{entity_type} {entity_id} not found",
            entity_type=entity_type,
            entity_id=str(entity_id),
        )


class InvalidStateError(PayrollError):
    """Operation attempted while the payroll cycle is in the wrong status."""

    code = "INVALID_STATE"

    def __init__(self, message: str, current_status: str, **details: Any):
        self.current_status = current_status
        super().__init__(message, current_status=current_status, **details)


class AlreadyCalculatedError(PayrollError):
    """Detail rows already exist for the cycle; a reset is required first."""

    code = "ALREADY_CALCULATED"

    def __init__(self, payroll_cycle_id: Any, existing_count: int):
        self.payroll_cycle_id = payroll_cycle_id
        self.existing_count = existing_count
        super().__init__(
            f"Payroll cycle {payroll_cycle_id} has already been calculated; reset it first",
            payroll_cycle_id=str(payroll_cycle_id),
            existing_count=existing_count,
        )


class ConcurrentModificationError(PayrollError):
    """Another calculation or reset for the same cycle is in flight."""

    code = "CONCURRENT_MODIFICATION"


class PersistenceFailureError(PayrollError):
    """The underlying data store rejected or failed an operation."""

    code = "PERSISTENCE_FAILURE"


class ValidationError(PayrollError):
    """Request data violates a business rule."""

    code = "VALIDATION_ERROR"


class OutOfRangeError(ValidationError):
    """Check-in/out location is too far from the branch."""

    code = "OUT_OF_RANGE"

    def __init__(self, distance_meters: float, max_distance_meters: float):
        self.distance_meters = distance_meters
        self.max_distance_meters = max_distance_meters
        super().__init__(
            f"Location is {round(distance_meters)} m from the branch "
            f"(maximum {round(max_distance_meters)} m)",
            distance=round(distance_meters),
            max_distance=round(max_distance_meters),
        )


class PermissionDeniedError(PayrollError):
    """Caller's role does not allow the operation."""

    code = "PERMISSION_DENIED"
