"""
Module: tracking_kernel.models.project
Responsibility: ORM persistence for projects and their deadlines.
Architecture position: Kernel > Models.  May import from db/ only.
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from tracking_kernel.db.base import Base
from tracking_kernel.exceptions import InvalidEntityError


class Project(Base):
    """A project with a deadline; linked to employees through Assignment."""

    __tablename__ = "projects"

    __table_args__ = (
        CheckConstraint("length(name) > 0", name="ck_project_name_not_empty"),
        Index("idx_project_deadline", "deadline"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Stored and loaded as UTC
    deadline: Mapped[datetime] = mapped_column(nullable=False)

    assignments: Mapped[list["Assignment"]] = relationship(  # noqa: F821
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @validates("name")
    def _validate_name(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise InvalidEntityError("Project", key, value, "must be a non-empty string")
        return value

    def __repr__(self) -> str:
        return f"<Project {self.id}: {self.name} due {self.deadline:%Y-%m-%d}>"
