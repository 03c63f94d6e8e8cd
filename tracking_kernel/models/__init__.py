"""ORM models for the tracking kernel."""

from tracking_kernel.db.immutability import register_identifier_guards
from tracking_kernel.models.assignment import Assignment
from tracking_kernel.models.department import Department
from tracking_kernel.models.employee import Employee
from tracking_kernel.models.project import Project

register_identifier_guards()

__all__ = [
    "Department",
    "Employee",
    "Project",
    "Assignment",
]
