"""Normalize raw column metadata into canonical kinds."""

from typing import Dict, Tuple

from .models import CanonicalKind, ColumnDescriptor, RawColumn

# (raw type name, unsigned) -> canonical kind
_RAW_TO_CANONICAL: Dict[Tuple[str, bool], CanonicalKind] = {
    ("integer", False): CanonicalKind.INTEGER,
    ("integer", True): CanonicalKind.UNSIGNED_INTEGER,
    ("bigint", False): CanonicalKind.BIGINT,
    ("bigint", True): CanonicalKind.UNSIGNED_BIGINT,
    ("tinyint", False): CanonicalKind.TINYINT,
    ("tinyint", True): CanonicalKind.UNSIGNED_TINYINT,
    ("smallint", False): CanonicalKind.SMALLINT,
    ("smallint", True): CanonicalKind.UNSIGNED_SMALLINT,
    ("mediumint", False): CanonicalKind.MEDIUMINT,
    ("mediumint", True): CanonicalKind.UNSIGNED_MEDIUMINT,
    ("decimal", False): CanonicalKind.DECIMAL,
    ("decimal", True): CanonicalKind.UNSIGNED_DECIMAL,
}

# Types whose canonical kind does not depend on the unsigned flag
_UNSIGNED_AGNOSTIC: Dict[str, CanonicalKind] = {
    "date": CanonicalKind.DATE,
    "date_immutable": CanonicalKind.DATE,
    "datetime": CanonicalKind.DATETIME,
    "datetime_immutable": CanonicalKind.DATETIME,
    "datetimetz": CanonicalKind.DATETIME,
    "datetimetz_immutable": CanonicalKind.DATETIME,
    "text": CanonicalKind.TEXT,
    "string": CanonicalKind.STRING,
    "ascii_string": CanonicalKind.ASCII_STRING,
}

# Integer types that are sometimes (mis)used to hold unix timestamps
_TIMESTAMP_CARRIER_TYPES = ("integer", "bigint")


def looks_like_timestamp(raw_type: str, column_name: str) -> bool:
    """Heuristic: an integer column named like a timestamp probably stores one.

    Matches names containing ``timestamp`` or ending with ``_at``. Integer
    columns that happen to be named ``*_at`` are false positives; they get the
    datetime check all the same.
    """
    if raw_type not in _TIMESTAMP_CARRIER_TYPES:
        return False
    return "timestamp" in column_name or column_name.endswith("_at")


def canonical_kind(raw_type: str, unsigned: bool = False) -> CanonicalKind:
    raw_type = (raw_type or "").strip().lower()
    kind = _RAW_TO_CANONICAL.get((raw_type, bool(unsigned)))
    if kind is not None:
        return kind
    return _UNSIGNED_AGNOSTIC.get(raw_type, CanonicalKind.OTHER)


def classify(table_name: str, raw: RawColumn) -> ColumnDescriptor:
    """Build the immutable descriptor the checks work on."""
    raw_type = (raw.type_name or "").strip().lower()
    kind = canonical_kind(raw_type, raw.unsigned)
    max_length = raw.length if kind in (CanonicalKind.STRING, CanonicalKind.ASCII_STRING) else None
    return ColumnDescriptor(
        table_name=table_name,
        column_name=raw.name,
        canonical_kind=kind,
        nullable=bool(raw.nullable),
        max_length=max_length,
        is_auto_increment=bool(raw.autoincrement),
        raw_type=raw_type,
        likely_timestamp=looks_like_timestamp(raw_type, raw.name),
    )
