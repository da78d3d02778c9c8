"""
Decimal helpers for money arithmetic.
"""

from collections.abc import Iterable
from decimal import ROUND_DOWN, Decimal
from typing import Any

from stakeledger.config.business_constants import MONEY_QUANTUM


def to_money(value: Any) -> Decimal:
    """
    Convert a database or user value to a money Decimal (8 dp, round down).

    Goes through ``str`` so a float never leaks binary noise into the
    ledger.

    Args:
        value: Decimal, int, float, str or None

    Returns:
        Quantized Decimal (None becomes 0)
    """
    if value is None:
        return Decimal("0").quantize(MONEY_QUANTUM)
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_DOWN)


def sum_money(values: Iterable[Any]) -> Decimal:
    """
    Exact sum of money values.

    Totals are added in Python rather than with SQL ``SUM`` because SQLite
    would sum them as floats.

    Args:
        values: Money values (None entries count as 0)

    Returns:
        Quantized total
    """
    return to_money(sum((to_money(v) for v in values), Decimal("0")))
