"""Payroll cycle state machine with transition validation."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from employee_payroll.errors import InvalidStateError

if TYPE_CHECKING:
    from employee_payroll.models import PayrollCycle, PayrollDetail


class CycleStatus(str, Enum):
    """Payroll cycle status values."""

    DRAFT = "draft"
    ACTIVE = "active"
    CLOSED = "closed"


class InvalidTransitionError(InvalidStateError):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg, current_status=from_status, requested_status=to_status)


class PayrollCycleStateMachine:
    """State machine for payroll cycle status transitions.

    Allowed transitions:
    - draft → active
    - active → closed
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        CycleStatus.DRAFT: [CycleStatus.ACTIVE],
        CycleStatus.ACTIVE: [CycleStatus.CLOSED],
        CycleStatus.CLOSED: [],  # Terminal state
    }

    # Statuses where calculation and reset are allowed
    CALCULATION_ALLOWED = {CycleStatus.ACTIVE}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def can_calculate(cls, status: str) -> bool:
        """Check if calculation or reset is allowed in this status."""
        return status in cls.CALCULATION_ALLOWED

    @classmethod
    def ensure_can_calculate(cls, cycle: PayrollCycle, operation: str = "calculate") -> None:
        """Raise InvalidStateError unless the cycle accepts calculation/reset."""
        if not cls.can_calculate(cycle.status):
            raise InvalidStateError(
                f"Cannot {operation} payroll cycle in status '{cycle.status}' "
                f"(must be '{CycleStatus.ACTIVE.value}')",
                current_status=cycle.status,
            )

    @classmethod
    def validate_cycle_for_transition(
        cls,
        cycle: PayrollCycle,
        to_status: str,
        details: list[PayrollDetail] | None = None,
    ) -> list[str]:
        """Validate a cycle for a specific transition, returning any errors.

        Returns list of error messages (empty if valid).
        """
        errors: list[str] = []
        from_status = cycle.status

        if not cls.can_transition(from_status, to_status):
            errors.append(f"Cannot transition from '{from_status}' to '{to_status}'")
            return errors

        if to_status == CycleStatus.CLOSED:
            # Calculation never writes negative pay; this guards rows written outside it
            negative = [d for d in details or [] if d.net_pay < 0]
            if negative:
                errors.append(f"{len(negative)} employee(s) have negative net pay")

        return errors
