"""Payroll calculation primitives."""

from employee_payroll.calculators.aggregator import (
    TimeEntryAggregator,
    aggregate_entries,
    cycle_window,
    entry_hours,
)
from employee_payroll.calculators.pay import compute_pay, round_money
from employee_payroll.calculators.rate_resolver import RateResolver, resolve_rate

__all__ = [
    "RateResolver",
    "TimeEntryAggregator",
    "aggregate_entries",
    "compute_pay",
    "cycle_window",
    "entry_hours",
    "resolve_rate",
    "round_money",
]
