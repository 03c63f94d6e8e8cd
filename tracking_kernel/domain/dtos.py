"""
Report DTOs (``tracking_kernel.domain.dtos``).

Frozen dataclass value objects returned by selectors and the report service.
Pure data definitions with zero I/O: no ORM instance ever leaves a session.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All monetary fields use ``Decimal`` -- NEVER ``float``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from tracking_config.schema import PayrollGrouping
from tracking_kernel.domain.payroll_check import PayrollConsistencyResult, PayrollKey


@dataclass(frozen=True)
class EmployeeSummary:
    """An employee that qualified for the high-activity report."""

    employee_id: int
    name: str
    salary: Decimal
    performance_rating: Decimal
    department_id: int
    qualifying_project_count: int


@dataclass(frozen=True)
class AssignmentRow:
    """One employee-to-project assignment, flattened."""

    employee_name: str
    project_name: str
    project_deadline: datetime


@dataclass(frozen=True)
class BonusRow:
    """One row returned by the bonus routine."""

    employee_name: str
    bonus_amount: Decimal


@dataclass(frozen=True)
class DepartmentPayrollLine:
    """Salary total of one department, computed from its loaded employees."""

    department_id: int
    department_name: str
    total_salary: Decimal
    employee_count: int


@dataclass(frozen=True)
class PayrollReport:
    """Department payroll totals from both paths and their comparison."""

    grouping: PayrollGrouping
    graph_totals: dict[PayrollKey, Decimal]
    aggregate_totals: dict[PayrollKey, Decimal]
    consistency: PayrollConsistencyResult
    # Names shared by more than one department (name grouping only)
    conflated_names: tuple[str, ...] = ()

    @property
    def is_consistent(self) -> bool:
        return self.consistency.is_consistent

    @property
    def totals(self) -> dict[PayrollKey, Decimal]:
        """The agreed totals; only meaningful when is_consistent."""
        return dict(self.aggregate_totals)


@dataclass(frozen=True)
class TrackingReport:
    """Everything the four analytic operations produce in one run."""

    generated_at: datetime
    activity_cutoff: datetime
    min_project_count: int
    high_activity_employees: tuple[EmployeeSummary, ...]
    assignments: tuple[AssignmentRow, ...]
    bonuses: tuple[BonusRow, ...]
    payroll: PayrollReport
    warnings: tuple[str, ...] = field(default=())
