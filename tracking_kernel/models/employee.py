"""
Module: tracking_kernel.models.employee
Responsibility: ORM persistence for employees.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - department_id is required and must resolve (FK, ON DELETE CASCADE).
    - salary and performance_rating are non-negative Decimals (ORM validator
      + CHECK constraints).  Floats are rejected outright.
    - name is non-empty.
"""

from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from tracking_kernel.db.base import Base
from tracking_kernel.exceptions import InvalidEntityError


class Employee(Base):
    """
    An employee belonging to exactly one department.

    Contract:
        Employees are linked to projects only through Assignment rows
        (many-to-many).  The reporting layer never mutates them.

    Guarantees:
        - salary >= 0, performance_rating >= 0.
        - Deleting the employee deletes its assignments.
    """

    __tablename__ = "employees"

    __table_args__ = (
        CheckConstraint("salary >= 0", name="ck_employee_salary_non_negative"),
        CheckConstraint(
            "performance_rating >= 0", name="ck_employee_rating_non_negative"
        ),
        CheckConstraint("length(name) > 0", name="ck_employee_name_not_empty"),
        Index("idx_employee_department", "department_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    salary: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)

    performance_rating: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False,
        default=Decimal("0"),
    )

    department_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("departments.id", ondelete="CASCADE"),
        nullable=False,
    )

    department: Mapped["Department"] = relationship(  # noqa: F821
        back_populates="employees",
    )

    assignments: Mapped[list["Assignment"]] = relationship(  # noqa: F821
        back_populates="employee",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @validates("name")
    def _validate_name(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise InvalidEntityError("Employee", key, value, "must be a non-empty string")
        return value

    @validates("salary", "performance_rating")
    def _validate_non_negative(self, key: str, value) -> Decimal:
        if isinstance(value, bool) or not isinstance(value, (Decimal, int)):
            raise InvalidEntityError("Employee", key, value, "must be a Decimal")
        value = Decimal(value)
        if value < 0:
            raise InvalidEntityError("Employee", key, value, "must be non-negative")
        return value

    def __repr__(self) -> str:
        return f"<Employee {self.id}: {self.name}>"
