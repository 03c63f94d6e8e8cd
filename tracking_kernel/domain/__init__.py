"""Pure domain layer: clock, report DTOs, payroll consistency check."""

from tracking_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from tracking_kernel.domain.dtos import (
    AssignmentRow,
    BonusRow,
    DepartmentPayrollLine,
    EmployeeSummary,
    PayrollReport,
    TrackingReport,
)
from tracking_kernel.domain.payroll_check import (
    DepartmentDivergence,
    DivergenceKind,
    PayrollConsistencyResult,
    PayrollTolerance,
    compare_payroll_totals,
)
from tracking_kernel.domain.periods import add_months, trailing_window_start

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "EmployeeSummary",
    "AssignmentRow",
    "BonusRow",
    "DepartmentPayrollLine",
    "PayrollReport",
    "TrackingReport",
    "DepartmentDivergence",
    "DivergenceKind",
    "PayrollConsistencyResult",
    "PayrollTolerance",
    "compare_payroll_totals",
    "add_months",
    "trailing_window_start",
]
