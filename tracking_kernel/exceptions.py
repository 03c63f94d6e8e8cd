"""
Typed exception hierarchy for the tracking kernel.

Every error carries a class-level ``code`` (machine-readable, stable across
message wording changes) and stores its context as attributes so that the
structured log formatter can emit it without parsing strings.

    TrackingKernelError (base)
    |
    +-- DataAccessError
    |   +-- StoreUnavailableError
    |   +-- QueryExecutionError
    |
    +-- RoutineError
    |   +-- RoutineNotFoundError
    |   +-- MalformedRoutineResultError
    |   +-- InvalidRoutineNameError
    |
    +-- IntegrityViolationError
    |   +-- InvalidEntityError
    |   +-- IdentifierImmutableError
    |
    +-- ConsistencyError
    |   +-- PayrollDivergenceError
    |
    +-- ConfigurationError

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Data access     | STORE_UNAVAILABLE           | Store unreachable / connection dropped
                | QUERY_EXECUTION_FAILED      | Statement rejected by the store
----------------|-----------------------------|-----------------------------------------
Routine         | ROUTINE_NOT_FOUND           | Stored routine absent or unsupported
                | MALFORMED_ROUTINE_RESULT    | Routine rows lack the expected shape
                | INVALID_ROUTINE_NAME        | Name is not a plain SQL identifier
----------------|-----------------------------|-----------------------------------------
Integrity       | INVALID_ENTITY              | Negative salary, empty name, ...
                | IDENTIFIER_IMMUTABLE        | Primary key changed after insert
----------------|-----------------------------|-----------------------------------------
Consistency     | PAYROLL_DIVERGENCE          | Payroll paths disagree (strict mode)
----------------|-----------------------------|-----------------------------------------
Config          | CONFIGURATION_ERROR         | Invalid or unknown configuration key

Handling pattern::

    try:
        bonuses = service.compute_bonuses()
    except RoutineNotFoundError as e:
        log.error("bonus routine missing", extra={"routine": e.routine_name})
    except DataAccessError as e:
        api_response(code=e.code, operation=e.operation)
"""

from decimal import Decimal


class TrackingKernelError(Exception):
    """
    Base exception for all tracking kernel errors.

    All subclasses must have a ``code`` class attribute.
    """

    code: str = "TRACKING_KERNEL_ERROR"


# Data access exceptions


class DataAccessError(TrackingKernelError):
    """Base exception for failures of the underlying data store."""

    code: str = "DATA_ACCESS_ERROR"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} failed: {detail}")


class StoreUnavailableError(DataAccessError):
    """The data store could not be reached or dropped the connection."""

    code: str = "STORE_UNAVAILABLE"


class QueryExecutionError(DataAccessError):
    """The data store rejected a statement (syntax, missing table, ...)."""

    code: str = "QUERY_EXECUTION_FAILED"


# Stored routine exceptions


class RoutineError(TrackingKernelError):
    """Base exception for server-side routine invocation errors."""

    code: str = "ROUTINE_ERROR"


class RoutineNotFoundError(RoutineError):
    """The named routine does not exist in the store."""

    code: str = "ROUTINE_NOT_FOUND"

    def __init__(self, routine_name: str, reason: str):
        self.routine_name = routine_name
        self.reason = reason
        super().__init__(f"Routine '{routine_name}' not found: {reason}")


class MalformedRoutineResultError(RoutineError):
    """The routine returned rows that do not match the expected shape."""

    code: str = "MALFORMED_ROUTINE_RESULT"

    def __init__(self, routine_name: str, row_index: int, reason: str):
        self.routine_name = routine_name
        self.row_index = row_index
        self.reason = reason
        super().__init__(
            f"Routine '{routine_name}' returned a malformed row "
            f"at index {row_index}: {reason}"
        )


class InvalidRoutineNameError(RoutineError):
    """Routine name is not a plain SQL identifier."""

    code: str = "INVALID_ROUTINE_NAME"

    def __init__(self, routine_name: str):
        self.routine_name = routine_name
        super().__init__(f"Invalid routine name: {routine_name!r}")


# Integrity exceptions


class IntegrityViolationError(TrackingKernelError):
    """Base exception for data model invariant violations."""

    code: str = "INTEGRITY_VIOLATION"


class InvalidEntityError(IntegrityViolationError):
    """An entity field holds a value the data model does not allow."""

    code: str = "INVALID_ENTITY"

    def __init__(self, entity: str, field: str, value: object, reason: str):
        self.entity = entity
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {entity}.{field}={value!r}: {reason}")


class IdentifierImmutableError(IntegrityViolationError):
    """A persisted entity's identifier was modified."""

    code: str = "IDENTIFIER_IMMUTABLE"

    def __init__(self, entity: str, old_id: object, new_id: object):
        self.entity = entity
        self.old_id = old_id
        self.new_id = new_id
        super().__init__(
            f"Cannot change {entity} identifier from {old_id} to {new_id}"
        )


# Consistency exceptions


class ConsistencyError(TrackingKernelError):
    """Base exception for cross-path consistency failures."""

    code: str = "CONSISTENCY_ERROR"


class PayrollDivergenceError(ConsistencyError):
    """The graph and aggregate payroll paths produced different totals."""

    code: str = "PAYROLL_DIVERGENCE"

    def __init__(self, departments: list[str], total_difference: Decimal):
        self.departments = departments
        self.total_difference = total_difference
        super().__init__(
            f"Payroll totals diverge for {len(departments)} department(s): "
            f"{', '.join(departments)} (absolute difference {total_difference})"
        )


# Configuration exceptions


class ConfigurationError(TrackingKernelError):
    """Configuration is missing, unknown or invalid."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration '{key}': {reason}")
