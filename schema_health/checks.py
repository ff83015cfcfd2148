"""
Validity checks for data written under a non-strict SQL mode.

Each check is a plain function ``check(column, oracle, context)`` that decides
for itself whether it applies to the column and, if so, issues exactly one
counting query. It returns a CheckFinding, an Advisory, or None.

Checks:
- null:        NULLs stored in NOT NULL columns
- datetime:    zero / epoch dates (value <= 1) in date columns and in integer
               columns that look like unix timestamps
- long_text:   TEXT values longer than the server's max_allowed_packet
- long_string: VARCHAR/CHAR values longer than the declared length
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Tuple, Union

from .databases.base import DialectAdapter, Predicate
from .errors import UnknownCheckKind
from .models import Advisory, CanonicalKind, CheckFinding, CheckKind, ColumnDescriptor

logger = logging.getLogger(__name__)

CheckOutcome = Optional[Union[CheckFinding, Advisory]]


@dataclass(frozen=True)
class ScanContext:
    """Connection-scoped values a check may need."""

    max_packet_size: Optional[int] = None


_DATE_KINDS = (CanonicalKind.DATE, CanonicalKind.DATETIME)
_STRING_KINDS = (CanonicalKind.STRING, CanonicalKind.ASCII_STRING)


def _ok(column: ColumnDescriptor, kind: CheckKind) -> None:
    logger.debug(f"\t{kind}: OK ({column.qualified_name})")


def check_null(column: ColumnDescriptor, oracle: DialectAdapter, context: ScanContext) -> CheckOutcome:
    """Find NULLs stored in a NOT NULL column."""
    if column.nullable:
        return None
    count = oracle.count_where(column.table_name, column.column_name, Predicate.is_null())
    if count == 0:
        _ok(column, CheckKind.NULL)
        return None
    return CheckFinding(
        table_name=column.table_name,
        column_name=column.column_name,
        check=CheckKind.NULL,
        issue_count=count,
        message=f"{column.qualified_name} has {count} NULLs but the column is not nullable.",
    )


def check_datetime(column: ColumnDescriptor, oracle: DialectAdapter, context: ScanContext) -> CheckOutcome:
    """Find zero dates and epoch sentinels (value <= 1)."""
    if column.canonical_kind not in _DATE_KINDS and not column.likely_timestamp:
        return None
    count = oracle.count_where(column.table_name, column.column_name, Predicate.less_or_equal(1))
    if count == 0:
        _ok(column, CheckKind.DATETIME)
        return None
    return CheckFinding(
        table_name=column.table_name,
        column_name=column.column_name,
        check=CheckKind.DATETIME,
        issue_count=count,
        message=f"{column.qualified_name} has {count} invalid datetime values.",
    )


def check_long_text(column: ColumnDescriptor, oracle: DialectAdapter, context: ScanContext) -> CheckOutcome:
    """Find TEXT values that exceed max_allowed_packet."""
    if column.canonical_kind != CanonicalKind.TEXT:
        return None
    max_packet_size = context.max_packet_size
    if max_packet_size is None:
        max_packet_size = oracle.max_allowed_packet_size()
    count = oracle.count_where(
        column.table_name, column.column_name, Predicate.length_greater_than(max_packet_size)
    )
    if count == 0:
        _ok(column, CheckKind.LONG_TEXT)
        return None
    return CheckFinding(
        table_name=column.table_name,
        column_name=column.column_name,
        check=CheckKind.LONG_TEXT,
        issue_count=count,
        message=f"{column.qualified_name} has {count} too long text values.",
    )


def check_long_string(column: ColumnDescriptor, oracle: DialectAdapter, context: ScanContext) -> CheckOutcome:
    """Find strings longer than the column's declared length."""
    if column.canonical_kind not in _STRING_KINDS:
        return None
    max_length = column.max_length
    if not max_length:
        return Advisory(
            table_name=column.table_name,
            column_name=column.column_name,
            check=CheckKind.LONG_STRING,
            message=f"Could not find max length for {column.qualified_name} column.",
        )
    count = oracle.count_where(
        column.table_name, column.column_name, Predicate.length_greater_than(max_length)
    )
    if count == 0:
        _ok(column, CheckKind.LONG_STRING)
        return None
    return CheckFinding(
        table_name=column.table_name,
        column_name=column.column_name,
        check=CheckKind.LONG_STRING,
        issue_count=count,
        message=(
            f"{column.qualified_name} has {count} too long string values "
            f"(longer than {max_length} chars)."
        ),
    )


ValidityCheck = Callable[[ColumnDescriptor, DialectAdapter, ScanContext], CheckOutcome]

# Registry, in the order checks run on each column
_VALIDITY_CHECKS: Dict[CheckKind, ValidityCheck] = {
    CheckKind.NULL: check_null,
    CheckKind.DATETIME: check_datetime,
    CheckKind.LONG_TEXT: check_long_text,
    CheckKind.LONG_STRING: check_long_string,
}


def available_checks() -> Tuple[CheckKind, ...]:
    """Return the validity checks that can be selected, in run order."""
    return tuple(_VALIDITY_CHECKS)


def select_checks(requested: Optional[Iterable[str]] = None) -> Tuple[CheckKind, ...]:
    """Resolve operator-supplied check names.

    An empty selection means every check. Unknown names raise
    UnknownCheckKind instead of being ignored.
    """
    names = {str(n).strip() for n in (requested or []) if str(n).strip()}
    if not names:
        return available_checks()
    valid = {kind.value: kind for kind in _VALIDITY_CHECKS}
    for name in sorted(names):
        if name not in valid:
            raise UnknownCheckKind(name, tuple(valid))
    return tuple(kind for kind in _VALIDITY_CHECKS if kind.value in names)


def get_check(kind: CheckKind) -> ValidityCheck:
    try:
        return _VALIDITY_CHECKS[kind]
    except KeyError:
        raise UnknownCheckKind(str(kind), tuple(k.value for k in _VALIDITY_CHECKS)) from None
