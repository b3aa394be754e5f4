"""Tests for payroll cycle state machine."""

from decimal import Decimal
from types import SimpleNamespace

import pytest

from employee_payroll.errors import InvalidStateError
from employee_payroll.services.state_machine import InvalidTransitionError, PayrollCycleStateMachine


class TestPayrollCycleStateMachine:
    """Test state machine transitions."""

    def test_valid_transitions(self):
        """Test that valid transitions are allowed."""
        # draft → active
        assert PayrollCycleStateMachine.can_transition("draft", "active") is True

        # active → closed
        assert PayrollCycleStateMachine.can_transition("active", "closed") is True

    def test_invalid_transitions(self):
        """Test that invalid transitions are blocked."""
        # Can't skip active
        assert PayrollCycleStateMachine.can_transition("draft", "closed") is False

        # Can't go backwards
        assert PayrollCycleStateMachine.can_transition("active", "draft") is False

        # Closed is terminal
        assert PayrollCycleStateMachine.can_transition("closed", "active") is False
        assert PayrollCycleStateMachine.can_transition("closed", "draft") is False

    def test_validate_transition_raises(self):
        """Test that validate_transition raises for invalid transitions."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            PayrollCycleStateMachine.validate_transition("draft", "closed")

        assert exc_info.value.from_status == "draft"
        assert exc_info.value.to_status == "closed"
        assert exc_info.value.current_status == "draft"
        assert isinstance(exc_info.value, InvalidStateError)

    def test_calculation_only_when_active(self):
        assert PayrollCycleStateMachine.can_calculate("active") is True
        assert PayrollCycleStateMachine.can_calculate("draft") is False
        assert PayrollCycleStateMachine.can_calculate("closed") is False

    def test_ensure_can_calculate_reports_status(self):
        cycle = SimpleNamespace(status="draft")

        with pytest.raises(InvalidStateError) as exc_info:
            PayrollCycleStateMachine.ensure_can_calculate(cycle, "reset")

        assert exc_info.value.current_status == "draft"
        assert "reset" in exc_info.value.message


class TestValidateCycleForTransition:
    """Close readiness checks."""

    def test_close_blocked_by_negative_net_pay(self):
        cycle = SimpleNamespace(status="active")
        details = [SimpleNamespace(net_pay=Decimal("100")), SimpleNamespace(net_pay=Decimal("-5"))]

        errors = PayrollCycleStateMachine.validate_cycle_for_transition(cycle, "closed", details)

        assert errors == ["1 employee(s) have negative net pay"]

    def test_close_allowed_with_no_details(self):
        cycle = SimpleNamespace(status="active")

        assert PayrollCycleStateMachine.validate_cycle_for_transition(cycle, "closed") == []

    def test_invalid_transition_reported(self):
        cycle = SimpleNamespace(status="closed")

        errors = PayrollCycleStateMachine.validate_cycle_for_transition(cycle, "active")

        assert len(errors) == 1
        assert "Cannot transition" in errors[0]
