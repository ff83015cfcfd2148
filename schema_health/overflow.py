"""
Overflow risk for auto-increment columns.

Occupancy is ``current max / type max * 100`` rounded half away from zero to
four decimal places. The division and the rounding are done on exact
rationals, and the threshold comparison uses the rounded Decimal, so values
near the unsigned BIGINT limit are flagged exactly as their displayed
percentage suggests.
"""

import logging
from decimal import Decimal, InvalidOperation
from fractions import Fraction
from typing import Optional, Union

from .databases.base import DialectAdapter
from .errors import ConfigError
from .models import CheckFinding, CheckKind, ColumnDescriptor, ExactNumber
from .type_ranges import range_for

logger = logging.getLogger(__name__)

OCCUPANCY_PLACES = 4

Threshold = Union[int, float, str, Decimal]


def _round_half_away(value: Fraction, places: int) -> Decimal:
    scale = 10 ** places
    scaled = value * scale
    quotient, remainder = divmod(abs(scaled.numerator), scaled.denominator)
    if 2 * remainder >= scaled.denominator:
        quotient += 1
    if scaled < 0:
        quotient = -quotient
    return Decimal(f"{quotient}E-{places}")


def compute_occupancy(current: ExactNumber, maximum: ExactNumber) -> Decimal:
    """Percentage of ``maximum`` used by ``current``, rounded to 4 places."""
    if not maximum:
        raise ValueError("Type maximum must be non-zero")
    ratio = Fraction(current) / Fraction(maximum) * 100
    return _round_half_away(ratio, OCCUPANCY_PLACES)


def to_threshold(value: Threshold) -> Decimal:
    """Convert a threshold to Decimal without binary float noise (70.1 stays 70.1).

    Raises:
        ConfigError: the value is not a finite number.
    """
    try:
        if isinstance(value, Decimal):
            limit = value
        elif isinstance(value, float):
            limit = Decimal(repr(value))
        else:
            limit = Decimal(str(value).strip())
    except InvalidOperation:
        raise ConfigError(f"Threshold must be a number, got {value!r}") from None
    if not limit.is_finite():
        raise ConfigError(f"Threshold must be a finite number, got {value!r}")
    return limit


def assess_overflow_risk(
    column: ColumnDescriptor,
    oracle: DialectAdapter,
    threshold: Threshold,
    size_bytes: Optional[int] = None,
) -> Optional[CheckFinding]:
    """Flag an auto-increment column whose occupancy reached ``threshold``.

    Columns without auto-increment are skipped. An auto-increment column of a
    non-numeric kind makes the range lookup raise UnknownTypeKind.
    """
    if not column.is_auto_increment:
        return None
    logger.debug(f"\t{column.column_name} is autoincrement.")

    limit = to_threshold(threshold)
    type_range = range_for(column.canonical_kind)
    current = oracle.max_value(column.table_name, column.column_name)
    occupancy = compute_occupancy(current, type_range.max)

    if occupancy < limit:
        return None

    return CheckFinding(
        table_name=column.table_name,
        column_name=column.column_name,
        check=CheckKind.OVERFLOW_RISK,
        issue_count=1,
        message=(
            f"{column.qualified_name} is full for {occupancy.normalize():f}% "
            f"(threshold for allowed usage is {limit.normalize():f}%)"
        ),
        column_type=column.type_label,
        current_value=current,
        max_value=type_range.max,
        occupancy_percentage=occupancy,
        size_bytes=size_bytes,
    )
