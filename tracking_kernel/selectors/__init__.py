"""Selectors for the tracking kernel (read side)."""

from tracking_kernel.selectors.assignment_selector import AssignmentSelector
from tracking_kernel.selectors.payroll_selector import PayrollSelector

__all__ = [
    "AssignmentSelector",
    "PayrollSelector",
]
