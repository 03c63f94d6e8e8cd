"""
Module: tracking_kernel.db.base
Responsibility: Declarative base class for all SQLAlchemy ORM models.  Provides
    the type annotation map used for consistent column types.
Architecture position: Kernel > DB.  This is the lowest-level import target
    within the kernel.  ALL model files import from here.  This module MUST NOT
    import from models/, services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - Decimal maps to Numeric(18, 2): salaries never round-trip through float.
    - datetime maps to UTCDateTime: always timezone-aware UTC.
    - Identifiers are integers assigned by the store; each model declares its
      own key because Assignment uses a composite key.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import Numeric
from sqlalchemy.orm import DeclarativeBase

from tracking_kernel.db.types import UTCDateTime


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - Decimal maps to Numeric(18, 2).
        - datetime maps to UTCDateTime.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(18, 2),
        datetime: UTCDateTime(),
    }
