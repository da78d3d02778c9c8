"""
Standard type definitions for database models.

Provides consistent types for monetary, percentage and timestamp fields
across all models.
"""

from datetime import datetime
from decimal import ROUND_DOWN, Decimal
from typing import Any

from sqlalchemy import DECIMAL, DateTime, String
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator, TypeEngine

from stakeledger.utils.datetime_utils import ensure_utc


class ExactDecimal(TypeDecorator):
    """
    Fixed-point decimal stored without loss on every backend.

    PostgreSQL uses NUMERIC(precision, scale). SQLite has no decimal type
    and would round-trip through a binary float, so there the value is
    stored as its plain-notation string and parsed back into a Decimal.
    Values are truncated to ``scale`` places on the way in.
    """

    impl = DECIMAL
    cache_ok = True

    def __init__(self, precision: int, scale: int) -> None:
        super().__init__(precision=precision, scale=scale)
        self.precision = precision
        self.scale = scale
        self.quantum = Decimal(1).scaleb(-scale)

    def load_dialect_impl(self, dialect: Dialect) -> TypeEngine[Any]:
        if dialect.name == "sqlite":
            # sign + digits + decimal point
            return dialect.type_descriptor(String(self.precision + 2))
        return dialect.type_descriptor(DECIMAL(self.precision, self.scale))

    def process_bind_param(
        self, value: Any, dialect: Dialect
    ) -> Decimal | str | None:
        if value is None:
            return None
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        value = value.quantize(self.quantum, rounding=ROUND_DOWN)
        if dialect.name == "sqlite":
            return format(value, "f")
        return value

    def process_result_value(
        self, value: Any, dialect: Dialect
    ) -> Decimal | None:
        if value is None:
            return None
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        return value.quantize(self.quantum)


# Standard money type for amounts, balances, rewards
# Precision: 28 digits total, 8 after decimal point
# Room for rewards and totals far above the largest accepted principal
MoneyType = ExactDecimal(28, 8)

# Standard percentage type for yield and commission rates
# Precision: 5 digits total, 2 after decimal point
# Suitable for: 0.25%, 12.00%, 15.00%
PercentType = ExactDecimal(5, 2)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware UTC timestamp.

    PostgreSQL keeps the offset; SQLite stores naive strings, so values
    are normalized to UTC on the way in and re-tagged as UTC on the way out.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(
        self, value: datetime | None, dialect: Dialect
    ) -> datetime | None:
        if value is None:
            return None
        value = ensure_utc(value)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(
        self, value: Any, dialect: Dialect
    ) -> datetime | None:
        if value is None:
            return None
        return ensure_utc(value)
