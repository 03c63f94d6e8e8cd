"""
Module: tracking_kernel.models.assignment
Responsibility: ORM persistence for the Employee <-> Project junction.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Composite primary key (employee_id, project_id): an employee is linked
      to a given project at most once.
    - Both foreign keys must resolve at insert time; the row is removed when
      either side is deleted (ON DELETE CASCADE).

Failure modes:
    - IntegrityError on duplicate pair or dangling foreign key.
"""

from sqlalchemy import ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tracking_kernel.db.base import Base


class Assignment(Base):
    """Links one employee to one project."""

    __tablename__ = "employee_projects"

    __table_args__ = (
        Index("idx_assignment_project", "project_id"),
    )

    employee_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("employees.id", ondelete="CASCADE"),
        primary_key=True,
    )

    project_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("projects.id", ondelete="CASCADE"),
        primary_key=True,
    )

    employee: Mapped["Employee"] = relationship(  # noqa: F821
        back_populates="assignments",
    )

    project: Mapped["Project"] = relationship(  # noqa: F821
        back_populates="assignments",
    )

    def __repr__(self) -> str:
        return f"<Assignment employee={self.employee_id} project={self.project_id}>"
