"""
Module: tracking_kernel.selectors.assignment_selector
Responsibility: Read-only queries over employee/project assignments: the
    flattened assignment listing and the high-activity employee query.
Architecture position: Kernel > Selectors.  May import from models/ and
    selectors/base.py.

Invariants enforced:
    - list_assignments() is an INNER join: exactly one row per Assignment;
      employees or projects without assignments contribute nothing.
    - find_high_activity_employees() counts only assignments whose project
      deadline is >= cutoff, and keeps an employee only if that count is
      strictly greater than min_count.
"""

from datetime import datetime

from sqlalchemy import func, select

from tracking_kernel.domain.dtos import AssignmentRow, EmployeeSummary
from tracking_kernel.models import Assignment, Employee, Project
from tracking_kernel.selectors.base import BaseSelector


class AssignmentSelector(BaseSelector):
    """Selector for assignment-based reports."""

    def list_assignments(self) -> list[AssignmentRow]:
        """
        Flatten Employee x Assignment x Project into one row per assignment.

        Returns:
            List of AssignmentRow ordered by employee then project id, so that
            repeated calls are stable.
        """
        query = (
            select(Employee.name, Project.name, Project.deadline)
            .join(Assignment, Assignment.employee_id == Employee.id)
            .join(Project, Project.id == Assignment.project_id)
            .order_by(Employee.id, Project.id)
        )
        return [
            AssignmentRow(
                employee_name=employee_name,
                project_name=project_name,
                project_deadline=deadline,
            )
            for employee_name, project_name, deadline in self.session.execute(query)
        ]

    def count_assignments(self) -> int:
        """Total number of Assignment rows."""
        return self.session.execute(
            select(func.count()).select_from(Assignment)
        ).scalar_one()

    def find_high_activity_employees(
        self,
        cutoff: datetime,
        min_count: int,
    ) -> list[EmployeeSummary]:
        """
        Employees with more than ``min_count`` projects due on/after ``cutoff``.

        Args:
            cutoff: Projects with deadline >= cutoff qualify.
            min_count: Exclusive lower bound on the qualifying project count.

        Returns:
            List of EmployeeSummary; order is not part of the contract.

        Raises:
            ValueError: If min_count is negative.
        """
        if min_count < 0:
            raise ValueError(f"min_count cannot be negative: {min_count}")

        qualifying = func.count(Assignment.project_id).label("qualifying")
        query = (
            select(
                Employee.id,
                Employee.name,
                Employee.salary,
                Employee.performance_rating,
                Employee.department_id,
                qualifying,
            )
            .join(Assignment, Assignment.employee_id == Employee.id)
            .join(Project, Project.id == Assignment.project_id)
            .where(Project.deadline >= cutoff)
            .group_by(
                Employee.id,
                Employee.name,
                Employee.salary,
                Employee.performance_rating,
                Employee.department_id,
            )
            .having(qualifying > min_count)
        )

        return [
            EmployeeSummary(
                employee_id=row.id,
                name=row.name,
                salary=row.salary,
                performance_rating=row.performance_rating,
                department_id=row.department_id,
                qualifying_project_count=row.qualifying,
            )
            for row in self.session.execute(query)
        ]
