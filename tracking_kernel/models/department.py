"""
Module: tracking_kernel.models.department
Responsibility: ORM persistence for departments, the owners of employees.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - name is non-empty (ORM validator + CHECK constraint).
    - Removing a department removes its employees (cascade), which in turn
      severs their assignments.

Non-goals:
    - name is NOT unique.  Payroll totals grouped by name conflate
      departments that share one; see PayrollReport.conflated_names.
"""

from sqlalchemy import CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from tracking_kernel.db.base import Base
from tracking_kernel.exceptions import InvalidEntityError


class Department(Base):
    """A department owning zero or more employees."""

    __tablename__ = "departments"

    __table_args__ = (
        CheckConstraint("length(name) > 0", name="ck_department_name_not_empty"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    employees: Mapped[list["Employee"]] = relationship(  # noqa: F821
        back_populates="department",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @validates("name")
    def _validate_name(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise InvalidEntityError("Department", key, value, "must be a non-empty string")
        return value

    def __repr__(self) -> str:
        return f"<Department {self.id}: {self.name}>"
