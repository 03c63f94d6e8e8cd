"""
Module: tracking_kernel.db.immutability
Responsibility: ORM event listener that keeps identifiers immutable once a row
    has been persisted.
Architecture position: Kernel > DB.  Imports db/base.py and exceptions only.

Invariants enforced:
    - Identifiers are immutable once assigned.  Any flush that would UPDATE a
      primary key column of a persisted row raises IdentifierImmutableError
      before SQL is emitted.

Failure modes:
    - IdentifierImmutableError raised from Session.flush()/commit().
"""

from sqlalchemy import event, inspect

from tracking_kernel.db.base import Base
from tracking_kernel.exceptions import IdentifierImmutableError


def _check_identifier_unchanged(mapper, connection, target) -> None:
    state = inspect(target)
    for column in mapper.primary_key:
        prop = mapper.get_property_by_column(column)
        history = state.attrs[prop.key].history
        if history.deleted and history.deleted[0] is not None:
            raise IdentifierImmutableError(
                entity=type(target).__name__,
                old_id=history.deleted[0],
                new_id=history.added[0] if history.added else None,
            )


_registered = False


def register_identifier_guards() -> None:
    """Install the before_update guard on every mapped class (idempotent)."""
    global _registered
    if _registered:
        return
    event.listen(Base, "before_update", _check_identifier_unchanged, propagate=True)
    _registered = True


def unregister_identifier_guards() -> None:
    """Remove the guard. FOR TESTING ONLY."""
    global _registered
    if not _registered:
        return
    event.remove(Base, "before_update", _check_identifier_unchanged)
    _registered = False
