"""
Report Service (``tracking_kernel.services.report_service``).

Responsibility
--------------
Runs the four fixed analytic operations over the employee/project store:
the high-activity employee query, the flattened assignment listing, the
server-side bonus computation, and department payroll totals computed along
two independent paths and cross-checked.  ``generate_report()`` runs all four
in sequence and bundles the results.

Architecture position
---------------------
**Kernel > Services** -- bridges the ``Database`` context to the read-only
selectors and the pure ``payroll_check`` comparison.  Constructor:
``database`` + ``config`` + ``clock`` + ``routine_invoker_factory``.

Invariants enforced
-------------------
* Read-only -- no operation adds, modifies or deletes rows.
* Each operation uses its own short-lived session and releases it before
  returning.
* All monetary amounts use ``Decimal`` -- NEVER ``float``.
* A store failure is raised as a ``DataAccessError`` subclass; it is never
  reported as an empty result.

Failure modes
-------------
* Store unreachable  -> ``StoreUnavailableError``.
* Statement rejected  -> ``QueryExecutionError``.
* Bonus routine missing / malformed rows  -> ``RoutineNotFoundError`` /
  ``MalformedRoutineResultError``.
* Payroll paths disagree with ``strict_consistency``  ->
  ``PayrollDivergenceError``; otherwise a WARNING and a report flag.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from tracking_config.schema import PayrollGrouping, TrackingConfig
from tracking_kernel.db.engine import Database
from tracking_kernel.db.errors import translate_db_errors
from tracking_kernel.db.types import to_money
from tracking_kernel.domain.clock import Clock, SystemClock
from tracking_kernel.domain.dtos import (
    AssignmentRow,
    BonusRow,
    DepartmentPayrollLine,
    EmployeeSummary,
    PayrollReport,
    TrackingReport,
)
from tracking_kernel.domain.payroll_check import (
    PayrollKey,
    PayrollTolerance,
    compare_payroll_totals,
)
from tracking_kernel.domain.periods import trailing_window_start
from tracking_kernel.exceptions import MalformedRoutineResultError
from tracking_kernel.logging_config import LogContext, get_logger
from tracking_kernel.selectors.assignment_selector import AssignmentSelector
from tracking_kernel.selectors.payroll_selector import PayrollSelector
from tracking_kernel.services.routine_invoker import (
    RoutineInvoker,
    SqlRoutineInvoker,
    validate_routine_name,
)

logger = get_logger("services.report")

RoutineInvokerFactory = Callable[[Session], RoutineInvoker]

# Column names accepted from the bonus routine, compared after lowercasing
# and dropping underscores (employee_name, EmployeeName, ...)
_EMPLOYEE_NAME_COLUMN = "employeename"
_BONUS_AMOUNT_COLUMN = "bonusamount"


def _normalize_column(name: str) -> str:
    return name.replace("_", "").lower()


def parse_bonus_rows(
    routine_name: str,
    rows: list[Mapping[str, Any]],
) -> list[BonusRow]:
    """
    Convert raw routine rows into BonusRow DTOs.

    Raises:
        MalformedRoutineResultError: A row lacks either column, the name is
            not a non-empty string, or the amount is not a decimal number.
    """
    bonuses: list[BonusRow] = []
    for index, row in enumerate(rows):
        columns = {_normalize_column(str(key)): value for key, value in row.items()}

        if _EMPLOYEE_NAME_COLUMN not in columns:
            raise MalformedRoutineResultError(routine_name, index, "missing employee_name")
        if _BONUS_AMOUNT_COLUMN not in columns:
            raise MalformedRoutineResultError(routine_name, index, "missing bonus_amount")

        employee_name = columns[_EMPLOYEE_NAME_COLUMN]
        if not isinstance(employee_name, str) or not employee_name:
            raise MalformedRoutineResultError(
                routine_name, index, f"employee_name must be a non-empty string, got {employee_name!r}"
            )

        raw_amount = columns[_BONUS_AMOUNT_COLUMN]
        try:
            bonus_amount = to_money(raw_amount)
        except TypeError:
            raise MalformedRoutineResultError(
                routine_name, index, f"bonus_amount is not a decimal number: {raw_amount!r}"
            ) from None
        if not bonus_amount.is_finite():
            raise MalformedRoutineResultError(
                routine_name, index, f"bonus_amount is not finite: {raw_amount!r}"
            )

        bonuses.append(BonusRow(employee_name=employee_name, bonus_amount=bonus_amount))
    return bonuses


class ReportService:
    """
    Employee/project analytics service.

    Contract
    --------
    * Every public method returns DTOs from ``tracking_kernel.domain.dtos``.
    * The database context, configuration and clock are injected; nothing is
      looked up from process-wide state.

    Guarantees
    ----------
    * The default activity cutoff is derived from the injected clock, so
      results are reproducible under ``DeterministicClock``.
    * The two payroll paths never share code beyond the session.

    Non-goals
    ---------
    * Does NOT define the bonus formula; that lives in the store.
    * Does NOT write to the store (see ``SeedService``).
    """

    def __init__(
        self,
        database: Database,
        config: TrackingConfig | None = None,
        clock: Clock | None = None,
        routine_invoker_factory: RoutineInvokerFactory | None = None,
    ):
        self._database = database
        self._config = config or TrackingConfig()
        self._clock = clock or SystemClock()
        self._routine_invoker_factory = routine_invoker_factory or SqlRoutineInvoker

        logger.info(
            "report_service_initialized",
            extra={
                "dialect": database.dialect_name,
                "activity_window_months": self._config.reporting.activity_window_months,
                "min_project_count": self._config.reporting.min_project_count,
                "payroll_grouping": self._config.reporting.payroll_grouping.value,
            },
        )

    @property
    def config(self) -> TrackingConfig:
        return self._config

    # =========================================================================
    # High-activity employees
    # =========================================================================

    def default_activity_cutoff(self) -> datetime:
        """Start of the configured trailing window, ending at clock.now()."""
        return trailing_window_start(
            self._clock.now(), self._config.reporting.activity_window_months
        )

    def find_high_activity_employees(
        self,
        cutoff: datetime | None = None,
        min_count: int | None = None,
    ) -> list[EmployeeSummary]:
        """
        Employees with more than ``min_count`` projects due on/after ``cutoff``.

        Args:
            cutoff: Deadline lower bound; defaults to the trailing window start.
            min_count: Exclusive count threshold; defaults to
                ``reporting.min_project_count``.

        Raises:
            ValueError: If min_count is negative (from AssignmentSelector).
        """
        if cutoff is None:
            cutoff = self.default_activity_cutoff()
        if min_count is None:
            min_count = self._config.reporting.min_project_count

        with LogContext.bind(report="high_activity", operation="find_high_activity_employees"):
            with translate_db_errors("find_high_activity_employees"):
                with self._database.session_scope() as session:
                    employees = AssignmentSelector(session).find_high_activity_employees(
                        cutoff, min_count
                    )

            logger.info(
                "high_activity_employees_found",
                extra={
                    "cutoff": cutoff,
                    "min_count": min_count,
                    "employee_count": len(employees),
                },
            )
            return employees

    # =========================================================================
    # Assignment listing
    # =========================================================================

    def list_assignments(self) -> list[AssignmentRow]:
        """One row per employee-to-project assignment (inner join)."""
        with LogContext.bind(report="assignments", operation="list_assignments"):
            with translate_db_errors("list_assignments"):
                with self._database.session_scope() as session:
                    rows = AssignmentSelector(session).list_assignments()

            logger.info("assignments_listed", extra={"row_count": len(rows)})
            return rows

    # =========================================================================
    # Bonuses
    # =========================================================================

    def compute_bonuses(self) -> list[BonusRow]:
        """
        Invoke the configured bonus routine and return its rows.

        An existing routine returning no rows yields an empty list.

        Raises:
            InvalidRoutineNameError: Configured name is not an identifier.
            RoutineNotFoundError: The routine does not exist.
            MalformedRoutineResultError: Rows lack the expected columns.
            StoreUnavailableError: The store is unreachable.
        """
        routine_name = validate_routine_name(self._config.reporting.bonus_routine)

        with LogContext.bind(report="bonuses", operation="compute_bonuses"):
            with translate_db_errors("compute_bonuses"):
                with self._database.session_scope() as session:
                    invoker = self._routine_invoker_factory(session)
                    raw_rows = invoker.invoke(routine_name)

            bonuses = parse_bonus_rows(routine_name, raw_rows)
            logger.info(
                "bonuses_computed",
                extra={
                    "routine": routine_name,
                    "row_count": len(bonuses),
                    "total_bonus": sum((b.bonus_amount for b in bonuses), Decimal("0")),
                },
            )
            return bonuses

    # =========================================================================
    # Department payroll
    # =========================================================================

    def _read_graph_path(self) -> list[DepartmentPayrollLine]:
        with self._database.snapshot_scope() as session:
            return PayrollSelector(session).graph_lines()

    def _read_aggregate_path(
        self, grouping: PayrollGrouping
    ) -> dict[PayrollKey, Decimal]:
        with self._database.snapshot_scope() as session:
            return PayrollSelector(session).salary_totals_by_department(
                grouping, self._config.reporting.aggregate_includes_empty_departments
            )

    def _read_payroll_paths(
        self, grouping: PayrollGrouping
    ) -> tuple[list[DepartmentPayrollLine], dict[PayrollKey, Decimal]]:
        # Parallel paths run in two transactions, each with its own snapshot;
        # a commit between them can make the paths differ.
        if self._config.reporting.parallel_payroll_paths:
            with ThreadPoolExecutor(max_workers=2, thread_name_prefix="payroll") as pool:
                graph_future = pool.submit(self._read_graph_path)
                aggregate_future = pool.submit(self._read_aggregate_path, grouping)
                return graph_future.result(), aggregate_future.result()

        with self._database.snapshot_scope() as session:
            selector = PayrollSelector(session)
            return selector.graph_lines(), selector.salary_totals_by_department(
                grouping, self._config.reporting.aggregate_includes_empty_departments
            )

    def compute_department_payroll_totals(self) -> PayrollReport:
        """
        Department salary totals from the graph and aggregate paths.

        Sequentially both paths read inside one snapshot transaction.  A
        department without employees is missing from the aggregate totals
        unless ``aggregate_includes_empty_departments`` is set.

        The totals are compared with the configured tolerance.  A divergence
        is logged and flagged on the report; with ``strict_consistency`` it
        raises ``PayrollDivergenceError`` instead.
        """
        reporting = self._config.reporting
        grouping = reporting.payroll_grouping

        with LogContext.bind(report="payroll", operation="compute_department_payroll_totals"):
            with translate_db_errors("compute_department_payroll_totals"):
                lines, aggregate_totals = self._read_payroll_paths(grouping)

            graph_totals = PayrollSelector.totals_from_lines(lines, grouping)

            conflated: tuple[str, ...] = ()
            if grouping == PayrollGrouping.NAME:
                conflated = PayrollSelector.conflated_names(lines)
                if conflated:
                    logger.warning(
                        "department_names_conflated",
                        extra={"department_names": list(conflated)},
                    )

            consistency = compare_payroll_totals(
                graph_totals,
                aggregate_totals,
                PayrollTolerance.absolute(reporting.payroll_tolerance),
            )

            logger.info(
                "payroll_totals_computed",
                extra={
                    "grouping": grouping.value,
                    "department_count": len(aggregate_totals),
                    "consistent": consistency.is_consistent,
                },
            )

            if reporting.strict_consistency:
                consistency.raise_for_divergence()

            return PayrollReport(
                grouping=grouping,
                graph_totals=graph_totals,
                aggregate_totals=aggregate_totals,
                consistency=consistency,
                conflated_names=conflated,
            )

    # =========================================================================
    # Full run
    # =========================================================================

    def generate_report(self) -> TrackingReport:
        """
        Run all four operations in sequence and bundle the results.

        Uses the configured defaults for the high-activity query.  Any
        operation failure propagates; there is no partial report.
        """
        generated_at = self._clock.now()
        cutoff = self.default_activity_cutoff()
        min_count = self._config.reporting.min_project_count

        with LogContext.bind(report="tracking_report"):
            logger.info("report_generation_started", extra={"generated_at": generated_at})

            employees = self.find_high_activity_employees(cutoff, min_count)
            assignments = self.list_assignments()
            bonuses = self.compute_bonuses()
            payroll = self.compute_department_payroll_totals()

            warnings: list[str] = []
            if not payroll.is_consistent:
                warnings.append(
                    "Payroll totals diverge for: "
                    + ", ".join(str(d.key) for d in payroll.consistency.divergences)
                )
            if payroll.conflated_names:
                warnings.append(
                    "Department names shared by several departments: "
                    + ", ".join(payroll.conflated_names)
                )

            logger.info(
                "report_generation_completed",
                extra={
                    "high_activity_count": len(employees),
                    "assignment_count": len(assignments),
                    "bonus_count": len(bonuses),
                    "warning_count": len(warnings),
                },
            )

            return TrackingReport(
                generated_at=generated_at,
                activity_cutoff=cutoff,
                min_project_count=min_count,
                high_activity_employees=tuple(employees),
                assignments=tuple(assignments),
                bonuses=tuple(bonuses),
                payroll=payroll,
                warnings=tuple(warnings),
            )
