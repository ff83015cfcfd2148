"""Value types shared by the classifier, checks, scanner and report."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple, Union

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

ExactNumber = Union[int, Decimal]


class CanonicalKind(str, Enum):
    """Engine-agnostic classification of a column's storage type."""

    INTEGER = "integer"
    UNSIGNED_INTEGER = "unsignedInteger"
    BIGINT = "bigint"
    UNSIGNED_BIGINT = "unsignedBigint"
    TINYINT = "tinyint"
    UNSIGNED_TINYINT = "unsignedTinyint"
    SMALLINT = "smallint"
    UNSIGNED_SMALLINT = "unsignedSmallint"
    MEDIUMINT = "mediumint"
    UNSIGNED_MEDIUMINT = "unsignedMediumint"
    DECIMAL = "decimal"
    UNSIGNED_DECIMAL = "unsignedDecimal"
    DATE = "date"
    DATETIME = "datetime"
    TEXT = "text"
    STRING = "string"
    ASCII_STRING = "asciiString"
    OTHER = "other"

    def __str__(self) -> str:
        return self.value


class CheckKind(str, Enum):
    NULL = "null"
    DATETIME = "datetime"
    LONG_TEXT = "long_text"
    LONG_STRING = "long_string"
    OVERFLOW_RISK = "overflow_risk"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class RawColumn:
    """Column metadata as reported by the schema enumerator."""

    name: str
    type_name: str              # doctrine-style name: integer, string, text, datetime ...
    nullable: bool = True
    unsigned: bool = False
    length: Optional[int] = None
    autoincrement: bool = False


@dataclass(frozen=True)
class ColumnDescriptor:
    table_name: str
    column_name: str
    canonical_kind: CanonicalKind
    nullable: bool
    max_length: Optional[int] = None
    is_auto_increment: bool = False
    raw_type: str = ""
    likely_timestamp: bool = False

    @property
    def qualified_name(self) -> str:
        return f"{self.table_name}.{self.column_name}"

    @property
    def type_label(self) -> str:
        """Type as the operator knows it, e.g. ``unsigned integer``."""
        if self.canonical_kind.value.startswith("unsigned"):
            return f"unsigned {self.raw_type}"
        return self.raw_type or self.canonical_kind.value


@dataclass(frozen=True)
class TypeRange:
    min: ExactNumber
    max: ExactNumber


@dataclass(frozen=True)
class CheckFinding:
    """One check's verdict on one column.

    Validity findings carry the number of offending rows in ``issue_count``.
    Overflow-risk findings always carry ``issue_count == 1`` plus the
    occupancy details.
    """

    table_name: str
    column_name: str
    check: CheckKind
    issue_count: int
    message: str = ""
    column_type: Optional[str] = None
    current_value: Optional[ExactNumber] = None
    max_value: Optional[ExactNumber] = None
    occupancy_percentage: Optional[Decimal] = None
    size_bytes: Optional[int] = None

    @property
    def qualified_name(self) -> str:
        return f"{self.table_name}.{self.column_name}"


@dataclass(frozen=True)
class Advisory:
    """Non-fatal diagnostic that never counts toward the exit status."""

    table_name: str
    column_name: str
    check: CheckKind
    message: str


@dataclass(frozen=True)
class QueryFailure:
    """A query error recorded instead of raised (continue-on-error mode)."""

    table_name: Optional[str]
    column_name: Optional[str]
    check: Optional[str]
    message: str


@dataclass(frozen=True)
class InspectionResult:
    total_issue_count: int = 0
    risky_column_count: int = 0
    findings: Tuple[CheckFinding, ...] = field(default_factory=tuple)
    advisories: Tuple[Advisory, ...] = field(default_factory=tuple)
    failures: Tuple[QueryFailure, ...] = field(default_factory=tuple)
    tables_scanned: int = 0
    columns_scanned: int = 0

    @property
    def degraded(self) -> bool:
        return bool(self.failures)

    @property
    def has_findings(self) -> bool:
        return self.total_issue_count > 0 or self.risky_column_count > 0

    @property
    def exit_status(self) -> int:
        if self.has_findings or self.degraded:
            return EXIT_FAILURE
        return EXIT_SUCCESS
