"""MySQL / MariaDB dialect adapter."""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError

from ..errors import QueryFailed
from ..models import ExactNumber, RawColumn
from .base import DialectAdapter, Predicate

logger = logging.getLogger(__name__)

# Reflected SQLAlchemy type name -> doctrine-style raw type name
_TYPE_NAMES: Dict[str, str] = {
    "TINYINT": "tinyint",
    "SMALLINT": "smallint",
    "MEDIUMINT": "mediumint",
    "INTEGER": "integer",
    "INT": "integer",
    "BIGINT": "bigint",
    "BIG_INTEGER": "bigint",
    "SMALL_INTEGER": "smallint",
    "DECIMAL": "decimal",
    "NUMERIC": "decimal",
    "DATE": "date",
    "DATETIME": "datetime",
    "TIMESTAMP": "datetime",
    "TEXT": "text",
    "TINYTEXT": "text",
    "MEDIUMTEXT": "text",
    "LONGTEXT": "text",
    "VARCHAR": "string",
    "NVARCHAR": "string",
    "CHAR": "string",
    "NCHAR": "string",
    "STRING": "string",
    "FLOAT": "float",
    "DOUBLE": "float",
    "REAL": "float",
    "BOOLEAN": "boolean",
    "TIME": "time",
    "JSON": "json",
    "BLOB": "blob",
}


def _first_line(error: Exception) -> str:
    lines = str(error).strip().splitlines()
    return lines[0] if lines else type(error).__name__


def raw_type_name(sa_type: Any) -> str:
    """Map a reflected SQLAlchemy type to a doctrine-style type name."""
    visit_name = str(getattr(sa_type, "__visit_name__", "") or type(sa_type).__name__).upper()
    name = _TYPE_NAMES.get(visit_name, visit_name.lower())
    if name == "string" and str(getattr(sa_type, "charset", "") or "").lower() == "ascii":
        return "ascii_string"
    return name


def raw_column_from_reflection(col: Dict[str, Any]) -> RawColumn:
    """Convert one ``Inspector.get_columns`` entry into a RawColumn."""
    sa_type = col["type"]
    length = getattr(sa_type, "length", None)
    return RawColumn(
        name=col["name"],
        type_name=raw_type_name(sa_type),
        nullable=bool(col.get("nullable", True)),
        unsigned=bool(getattr(sa_type, "unsigned", False)),
        length=length if isinstance(length, int) else None,
        autoincrement=col.get("autoincrement") is True,
    )


class MysqlAdapter(DialectAdapter):
    """MySQL dialect adapter."""

    def quote_identifier(self, name: str) -> str:
        return "`" + str(name).replace("`", "``") + "`"

    def _select(self, body: str) -> str:
        if self.query_timeout_ms:
            return f"SELECT /*+ MAX_EXECUTION_TIME({int(self.query_timeout_ms)}) */ {body}"
        return f"SELECT {body}"

    def _scalar(self, query: str, params: Optional[Dict[str, Any]] = None, **context) -> Any:
        try:
            with self.engine.connect() as conn:
                return conn.execute(text(query), params or {}).scalar()
        except SQLAlchemyError as e:
            raise QueryFailed(_first_line(e), **context) from e

    def list_tables(self) -> List[str]:
        try:
            return list(inspect(self.engine).get_table_names(schema=self.schema or None))
        except SQLAlchemyError as e:
            raise QueryFailed(f"Could not list tables: {e}") from e

    def list_columns(self, table: str) -> List[RawColumn]:
        try:
            columns = inspect(self.engine).get_columns(table, schema=self.schema or None)
        except SQLAlchemyError as e:
            raise QueryFailed(f"Could not list columns: {e}", table=table) from e
        return [raw_column_from_reflection(c) for c in columns]

    def count_where(self, table: str, column: str, predicate: Predicate) -> int:
        where, params = self.predicate_sql(column, predicate)
        query = self._select(f"COUNT(*) AS `count` FROM {self.quote_table(table)} WHERE {where}")
        count = self._scalar(query, params, table=table, column=column)
        return int(count or 0)

    def max_value(self, table: str, column: str) -> ExactNumber:
        query = self._select(f"MAX({self.quote_column(column)}) FROM {self.quote_table(table)}")
        value = self._scalar(query, table=table, column=column)
        if value is None:
            return 0
        if isinstance(value, (int, Decimal)):
            return value
        return Decimal(str(value))

    def table_size_bytes(self, table: str) -> Optional[int]:
        query = text("""
            SELECT data_length + index_length
            FROM information_schema.TABLES
            WHERE table_schema = :schema AND table_name = :table
        """)
        try:
            with self.engine.connect() as conn:
                size = conn.execute(query, {"schema": self.schema, "table": table}).scalar()
        except SQLAlchemyError as e:
            logger.warning(f"Could not fetch size of table '{table}': {e}")
            return None
        return int(size) if size is not None else None

    def max_allowed_packet_size(self) -> int:
        size = self._scalar("SELECT @@max_allowed_packet")
        if size is None:
            raise QueryFailed("Server did not report max_allowed_packet")
        return int(size)


class MariadbAdapter(MysqlAdapter):
    """MariaDB ignores the MAX_EXECUTION_TIME hint; it takes a statement-scoped
    ``max_statement_time`` in seconds instead."""

    def _select(self, body: str) -> str:
        if self.query_timeout_ms:
            seconds = Decimal(int(self.query_timeout_ms)).scaleb(-3).normalize()
            return f"SET STATEMENT max_statement_time={seconds:f} FOR SELECT {body}"
        return f"SELECT {body}"
