"""
Dialect adapter base class for schema health scans.

An adapter is both the schema enumerator (tables, columns) and the query
oracle (counting and aggregate queries) for one database. Every query an
adapter issues is read-only.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.engine import Engine

from ..models import ExactNumber, RawColumn

IS_NULL = "is_null"
LESS_OR_EQUAL = "less_or_equal"
LENGTH_GREATER_THAN = "length_greater_than"


@dataclass(frozen=True)
class Predicate:
    """Row predicate used by the counting queries."""

    kind: str
    operand: Optional[int] = None

    @classmethod
    def is_null(cls) -> "Predicate":
        return cls(IS_NULL)

    @classmethod
    def less_or_equal(cls, value: int) -> "Predicate":
        return cls(LESS_OR_EQUAL, value)

    @classmethod
    def length_greater_than(cls, length: int) -> "Predicate":
        return cls(LENGTH_GREATER_THAN, length)


class DialectAdapter(ABC):
    """Abstract base for database dialect adapters."""

    def __init__(self, engine: Engine, schema: str, query_timeout_ms: Optional[int] = None):
        self.engine = engine
        self.schema = schema
        self.query_timeout_ms = query_timeout_ms

    @property
    def database_name(self) -> str:
        return self.schema

    @abstractmethod
    def quote_identifier(self, name: str) -> str:
        """Quote a single identifier (table, column, schema)."""
        pass

    def quote_table(self, table: str) -> str:
        """Quote schema.table for use in FROM clauses."""
        if self.schema:
            return f"{self.quote_identifier(self.schema)}.{self.quote_identifier(table)}"
        return self.quote_identifier(table)

    def quote_column(self, col: str) -> str:
        """Quote a column name."""
        return self.quote_identifier(col)

    def predicate_sql(self, column: str, predicate: Predicate) -> Tuple[str, Dict[str, Any]]:
        """Render a predicate to a WHERE fragment plus bound parameters."""
        quoted = self.quote_column(column)
        if predicate.kind == IS_NULL:
            return f"{quoted} IS NULL", {}
        if predicate.kind == LESS_OR_EQUAL:
            return f"{quoted} <= :operand", {"operand": predicate.operand}
        if predicate.kind == LENGTH_GREATER_THAN:
            return f"LENGTH({quoted}) > :operand", {"operand": predicate.operand}
        raise ValueError(f"Unknown predicate kind: {predicate.kind}")

    # -- schema enumerator ---------------------------------------------------

    @abstractmethod
    def list_tables(self) -> List[str]:
        """Return the table names of the inspected schema, in scan order."""
        pass

    @abstractmethod
    def list_columns(self, table: str) -> List[RawColumn]:
        """Return normalized raw column metadata for a table."""
        pass

    # -- query oracle --------------------------------------------------------

    @abstractmethod
    def count_where(self, table: str, column: str, predicate: Predicate) -> int:
        """Count rows of ``table`` where ``predicate`` holds for ``column``."""
        pass

    @abstractmethod
    def max_value(self, table: str, column: str) -> ExactNumber:
        """Return MAX(column), or 0 for an empty table."""
        pass

    @abstractmethod
    def table_size_bytes(self, table: str) -> Optional[int]:
        """Return data + index size of a table, or None if unavailable."""
        pass

    @abstractmethod
    def max_allowed_packet_size(self) -> int:
        """Return the server's max allowed packet size in bytes."""
        pass
