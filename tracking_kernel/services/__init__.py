"""Kernel services: report generation, routine invocation and seeding."""

from tracking_kernel.services.report_service import ReportService, parse_bonus_rows
from tracking_kernel.services.routine_invoker import (
    RoutineInvoker,
    SqlRoutineInvoker,
    validate_routine_name,
)
from tracking_kernel.services.seed_service import SeedService

__all__ = [
    "ReportService",
    "parse_bonus_rows",
    "RoutineInvoker",
    "SqlRoutineInvoker",
    "validate_routine_name",
    "SeedService",
]
