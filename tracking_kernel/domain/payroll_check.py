"""PayrollCheck -- cross-path consistency of department payroll totals."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from tracking_kernel.exceptions import PayrollDivergenceError
from tracking_kernel.logging_config import get_logger

logger = get_logger("domain.payroll_check")

# Department name (default grouping) or department id
PayrollKey = str | int


class DivergenceKind(str, Enum):
    """Why a department failed the comparison."""

    MISSING_IN_GRAPH = "missing_in_graph"
    MISSING_IN_AGGREGATE = "missing_in_aggregate"
    AMOUNT_MISMATCH = "amount_mismatch"


@dataclass(frozen=True, slots=True)
class PayrollTolerance:
    """Largest absolute difference still counted as agreement."""

    absolute_amount: Decimal = Decimal("0")

    @classmethod
    def zero(cls) -> PayrollTolerance:
        """No tolerance - must be exact (Decimal arithmetic)."""
        return cls()

    @classmethod
    def absolute(cls, amount: Decimal) -> PayrollTolerance:
        if amount < 0:
            raise ValueError(f"Tolerance cannot be negative: {amount}")
        return cls(absolute_amount=amount)

    def is_within_tolerance(self, difference: Decimal) -> bool:
        return abs(difference) <= self.absolute_amount


@dataclass(frozen=True, slots=True)
class DepartmentDivergence:
    """One department on which the two paths disagree."""

    key: PayrollKey
    kind: DivergenceKind
    graph_total: Decimal | None
    aggregate_total: Decimal | None

    @property
    def difference(self) -> Decimal:
        """graph - aggregate, a missing side counting as zero."""
        return (self.graph_total or Decimal("0")) - (self.aggregate_total or Decimal("0"))


@dataclass(frozen=True, slots=True)
class PayrollConsistencyResult:
    """Outcome of comparing the graph path with the aggregate path."""

    divergences: tuple[DepartmentDivergence, ...]
    checked_keys: int
    tolerance: PayrollTolerance

    @property
    def is_consistent(self) -> bool:
        return not self.divergences

    @property
    def total_absolute_difference(self) -> Decimal:
        return sum((abs(d.difference) for d in self.divergences), Decimal("0"))

    def raise_for_divergence(self) -> None:
        """Raise PayrollDivergenceError if any department diverges."""
        if self.divergences:
            raise PayrollDivergenceError(
                departments=[str(d.key) for d in self.divergences],
                total_difference=self.total_absolute_difference,
            )


def _sort_key(key: PayrollKey) -> tuple[str, str]:
    return (type(key).__name__, str(key))


def compare_payroll_totals(
    graph_totals: Mapping[PayrollKey, Decimal],
    aggregate_totals: Mapping[PayrollKey, Decimal],
    tolerance: PayrollTolerance | None = None,
) -> PayrollConsistencyResult:
    """
    Compare per-department totals from the two payroll paths.

    Pure function: no state is kept between calls.  Key sets must match
    exactly; each shared key must agree within ``tolerance`` (exact by
    default).  Divergences are returned in a stable key order and logged;
    they are never raised here.
    """
    tolerance = tolerance or PayrollTolerance.zero()
    divergences: list[DepartmentDivergence] = []

    all_keys = sorted(set(graph_totals) | set(aggregate_totals), key=_sort_key)
    for key in all_keys:
        graph_total = graph_totals.get(key)
        aggregate_total = aggregate_totals.get(key)

        if graph_total is None:
            divergences.append(
                DepartmentDivergence(key, DivergenceKind.MISSING_IN_GRAPH, None, aggregate_total)
            )
        elif aggregate_total is None:
            divergences.append(
                DepartmentDivergence(key, DivergenceKind.MISSING_IN_AGGREGATE, graph_total, None)
            )
        elif not tolerance.is_within_tolerance(graph_total - aggregate_total):
            divergences.append(
                DepartmentDivergence(
                    key, DivergenceKind.AMOUNT_MISMATCH, graph_total, aggregate_total
                )
            )

    result = PayrollConsistencyResult(
        divergences=tuple(divergences),
        checked_keys=len(all_keys),
        tolerance=tolerance,
    )

    if result.is_consistent:
        logger.info(
            "payroll_paths_consistent",
            extra={"departments_checked": result.checked_keys},
        )
    else:
        logger.warning(
            "payroll_divergence_detected",
            extra={
                "departments_checked": result.checked_keys,
                "divergent_departments": [
                    {
                        "key": d.key,
                        "kind": d.kind.value,
                        "graph_total": d.graph_total,
                        "aggregate_total": d.aggregate_total,
                        "difference": d.difference,
                    }
                    for d in result.divergences
                ],
                "total_absolute_difference": result.total_absolute_difference,
            },
        )

    return result
