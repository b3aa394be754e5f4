"""Employee time-entry and payroll cycle service."""

__version__ = "0.1.0"
