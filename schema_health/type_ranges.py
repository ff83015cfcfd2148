"""
Value ranges of MySQL numeric column types.

Bounds follow the MySQL 5.7 / 8.0 reference manual:
- https://dev.mysql.com/doc/refman/8.0/en/integer-types.html
- https://dev.mysql.com/doc/refman/8.0/en/fixed-point-types.html

Integer bounds are Python ints and decimal bounds are ``Decimal`` built from
strings, so unsigned BIGINT and DECIMAL(65,30) limits stay exact.
"""

from decimal import Decimal
from typing import Dict, FrozenSet

from .errors import UnknownTypeKind
from .models import CanonicalKind, TypeRange

_DECIMAL_MAX = Decimal("99999999999999999999999999999.99999999999999999999999999999")
_DECIMAL_MIN = Decimal("-99999999999999999999999999999.99999999999999999999999999999")

_RANGES: Dict[CanonicalKind, TypeRange] = {
    CanonicalKind.INTEGER: TypeRange(-2_147_483_648, 2_147_483_647),
    CanonicalKind.UNSIGNED_INTEGER: TypeRange(0, 4_294_967_295),
    CanonicalKind.BIGINT: TypeRange(-9_223_372_036_854_775_808, 9_223_372_036_854_775_807),
    CanonicalKind.UNSIGNED_BIGINT: TypeRange(0, 18_446_744_073_709_551_615),
    CanonicalKind.TINYINT: TypeRange(-128, 127),
    CanonicalKind.UNSIGNED_TINYINT: TypeRange(0, 255),
    CanonicalKind.SMALLINT: TypeRange(-32_768, 32_767),
    CanonicalKind.UNSIGNED_SMALLINT: TypeRange(0, 65_535),
    CanonicalKind.MEDIUMINT: TypeRange(-8_388_608, 8_388_607),
    CanonicalKind.UNSIGNED_MEDIUMINT: TypeRange(0, 16_777_215),
    CanonicalKind.DECIMAL: TypeRange(_DECIMAL_MIN, _DECIMAL_MAX),
    CanonicalKind.UNSIGNED_DECIMAL: TypeRange(Decimal(0), _DECIMAL_MAX),
}

NUMERIC_KINDS: FrozenSet[CanonicalKind] = frozenset(_RANGES)


def range_for(kind: CanonicalKind) -> TypeRange:
    """Return the value range for a numeric canonical kind.

    Raises:
        UnknownTypeKind: ``kind`` is not one of the twelve numeric kinds.
    """
    try:
        return _RANGES[kind]
    except (KeyError, TypeError):
        raise UnknownTypeKind(kind) from None
