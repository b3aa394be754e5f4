"""Base pay computation."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from employee_payroll.calculators.types import (
    CalculationMethod,
    HoursAggregate,
    PayResult,
    ResolvedRate,
)

MONEY_QUANTUM = Decimal("0.01")


def round_money(amount: Decimal) -> Decimal:
    """Round to 2 decimal places, half-up."""
    return amount.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def compute_pay(aggregate: HoursAggregate, rates: ResolvedRate) -> PayResult:
    """Compute base pay from aggregated hours and resolved rates.

    The method comes from rates.method: hourly pays total_hours * hourly_rate,
    daily pays session_count * daily_rate. Net pay equals base pay; there are
    no deductions.

    Raises:
        ValueError: if the employee has no rate at all
    """
    method = rates.method
    if method == CalculationMethod.HOURLY:
        base_pay = round_money(aggregate.total_hours * rates.hourly_rate)
    elif method == CalculationMethod.DAILY:
        base_pay = round_money(aggregate.session_count * rates.daily_rate)
    else:
        raise ValueError("Cannot compute pay without an hourly or daily rate")

    return PayResult(base_pay=base_pay, net_pay=base_pay, method=method)
