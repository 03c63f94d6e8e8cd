"""
Module: tracking_kernel.selectors.payroll_selector
Responsibility: The two independent computations of department payroll
    totals.
      * Graph path: load every Department with its Employees and sum salaries
        in Python.
      * Aggregate path: a single GROUP BY statement summing salaries in the
        store.
    The two never share code beyond the session, so agreement between them is
    evidence that both express the same question.
Architecture position: Kernel > Selectors.  May import from models/,
    domain/ and selectors/base.py.

Invariants enforced:
    - The graph path reports every department, 0 for one without employees.
    - The aggregate path inner-joins employees, so a department without
      employees has no aggregate row and the consistency check reports it as
      missing_in_aggregate.  include_empty=True switches to an outer join
      with COALESCE, which reports 0 instead.
    - All totals are Decimal rounded to cents.

Non-goals:
    - Grouping by name conflates departments that share a name.  Both paths
      conflate identically; graph_lines() exposes the per-department detail
      needed to detect it.
"""

from collections import Counter
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from tracking_config.schema import PayrollGrouping
from tracking_kernel.db.types import round_money, to_money
from tracking_kernel.domain.dtos import DepartmentPayrollLine
from tracking_kernel.domain.payroll_check import PayrollKey
from tracking_kernel.models import Department, Employee
from tracking_kernel.selectors.base import BaseSelector


class PayrollSelector(BaseSelector):
    """Selector for department payroll totals."""

    # =========================================================================
    # Graph path
    # =========================================================================

    def graph_lines(self) -> list[DepartmentPayrollLine]:
        """
        One line per Department, summing the salaries of its loaded employees.

        Ordered by department id.
        """
        departments = (
            self.session.execute(
                select(Department)
                .options(selectinload(Department.employees))
                .order_by(Department.id)
            )
            .scalars()
            .all()
        )

        return [
            DepartmentPayrollLine(
                department_id=department.id,
                department_name=department.name,
                total_salary=round_money(
                    sum(
                        (employee.salary for employee in department.employees),
                        Decimal("0"),
                    )
                ),
                employee_count=len(department.employees),
            )
            for department in departments
        ]

    @staticmethod
    def totals_from_lines(
        lines: list[DepartmentPayrollLine],
        grouping: PayrollGrouping = PayrollGrouping.NAME,
    ) -> dict[PayrollKey, Decimal]:
        """Fold per-department lines into a mapping keyed by name or id."""
        totals: dict[PayrollKey, Decimal] = {}
        for line in lines:
            key: PayrollKey = (
                line.department_name
                if grouping == PayrollGrouping.NAME
                else line.department_id
            )
            totals[key] = totals.get(key, Decimal("0.00")) + line.total_salary
        return totals

    @staticmethod
    def conflated_names(lines: list[DepartmentPayrollLine]) -> tuple[str, ...]:
        """Department names carried by more than one department."""
        counts = Counter(line.department_name for line in lines)
        return tuple(sorted(name for name, count in counts.items() if count > 1))

    def department_payroll_graph(
        self,
        grouping: PayrollGrouping = PayrollGrouping.NAME,
    ) -> dict[PayrollKey, Decimal]:
        """Graph path totals keyed by department name (or id)."""
        return self.totals_from_lines(self.graph_lines(), grouping)

    # =========================================================================
    # Aggregate path
    # =========================================================================

    def salary_totals_by_department(
        self,
        grouping: PayrollGrouping = PayrollGrouping.NAME,
        include_empty: bool = False,
    ) -> dict[PayrollKey, Decimal]:
        """
        Aggregate path totals computed by the store in one statement.

        SELECT d.name, SUM(e.salary)
        FROM departments d JOIN employees e ON e.department_id = d.id
        GROUP BY d.name

        With include_empty the join is a LEFT JOIN and the sum is wrapped in
        COALESCE(..., 0).
        """
        key_column = Department.name if grouping == PayrollGrouping.NAME else Department.id
        total = func.sum(Employee.salary)
        if include_empty:
            total = func.coalesce(total, 0)
        query = (
            select(key_column, total.label("total_salary"))
            .select_from(Department)
            .join(
                Employee,
                Employee.department_id == Department.id,
                isouter=include_empty,
            )
            .group_by(key_column)
        )

        return {
            key: round_money(to_money(total_salary))
            for key, total_salary in self.session.execute(query)
        }
