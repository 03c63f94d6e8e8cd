"""
Module: tracking_kernel.services.seed_service
Responsibility: Schema bootstrap and the sample dataset used by the report
    walkthrough and the round-trip tests.
Architecture position: Kernel > Services.  The only writer in the kernel;
    ReportService never calls it.

Invariants enforced:
    - seed_sample_data() is idempotent: it writes nothing if any department
      already exists.
    - Sample deadlines are derived from the injected clock.
"""

from decimal import Decimal

from sqlalchemy import func, select

from tracking_kernel.db.engine import Database
from tracking_kernel.db.errors import translate_db_errors
from tracking_kernel.domain.clock import Clock, SystemClock
from tracking_kernel.domain.periods import add_months
from tracking_kernel.logging_config import get_logger
from tracking_kernel.models import Assignment, Department, Employee, Project

logger = get_logger("services.seed")

SAMPLE_DEPARTMENT = "IT"
SAMPLE_EMPLOYEE = "John Doe"
SAMPLE_SALARY = Decimal("5000")
# (project name, months from now)
SAMPLE_PROJECTS = (
    ("Project A", 3),
    ("Project B", 6),
)


class SeedService:
    """Creates the schema and loads the sample dataset."""

    def __init__(self, database: Database, clock: Clock | None = None):
        self._database = database
        self._clock = clock or SystemClock()

    def ensure_schema(self) -> None:
        """Create missing tables (and the bonus routine on PostgreSQL)."""
        with translate_db_errors("ensure_schema"):
            self._database.create_tables()

    def seed_sample_data(self) -> bool:
        """
        Insert one department, one employee and two assigned projects.

        Returns:
            True if the sample was written, False if the store already held
            department rows and nothing was written.
        """
        with translate_db_errors("seed_sample_data"):
            with self._database.session_scope() as session:
                existing = session.execute(
                    select(func.count()).select_from(Department)
                ).scalar_one()
                if existing:
                    logger.info(
                        "sample_data_skipped",
                        extra={"existing_departments": existing},
                    )
                    return False

                now = self._clock.now()
                department = Department(name=SAMPLE_DEPARTMENT)
                employee = Employee(
                    name=SAMPLE_EMPLOYEE,
                    salary=SAMPLE_SALARY,
                    performance_rating=Decimal("0"),
                    department=department,
                )
                session.add_all([department, employee])

                for project_name, months_ahead in SAMPLE_PROJECTS:
                    project = Project(
                        name=project_name,
                        deadline=add_months(now, months_ahead),
                    )
                    session.add(project)
                    session.add(Assignment(employee=employee, project=project))

        logger.info(
            "sample_data_seeded",
            extra={
                "department": SAMPLE_DEPARTMENT,
                "employee": SAMPLE_EMPLOYEE,
                "project_count": len(SAMPLE_PROJECTS),
            },
        )
        return True
