"""Database dialect adapters for schema health scans."""

from typing import Optional

from sqlalchemy.engine import Engine

from ..errors import UnsupportedEngine
from .base import DialectAdapter, Predicate
from .mysql import MariadbAdapter, MysqlAdapter

_ADAPTERS = {
    "mysql": MysqlAdapter,
    "mariadb": MariadbAdapter,
}


def supported_dialects() -> tuple:
    """Return tuple of supported dialect names."""
    return tuple(_ADAPTERS.keys())


def ensure_supported(dialect_name: str) -> None:
    """Fail fast unless the dialect is MySQL-compatible."""
    if dialect_name not in _ADAPTERS:
        raise UnsupportedEngine(dialect_name, supported_dialects())


def get_adapter_for_engine(
    engine: Engine,
    schema: Optional[str] = None,
    query_timeout_ms: Optional[int] = None,
) -> DialectAdapter:
    """Get the dialect adapter for the given engine.

    Args:
        engine: SQLAlchemy engine of the inspected database.
        schema: Database (schema) to scan; defaults to the URL's database.
        query_timeout_ms: Optional per-query deadline.

    Raises:
        UnsupportedEngine: the engine is not MySQL-compatible.
    """
    dialect_name = engine.dialect.name
    ensure_supported(dialect_name)
    adapter_cls = _ADAPTERS[dialect_name]
    return adapter_cls(engine, schema or engine.url.database or "", query_timeout_ms=query_timeout_ms)


__all__ = [
    "DialectAdapter",
    "MariadbAdapter",
    "MysqlAdapter",
    "Predicate",
    "ensure_supported",
    "get_adapter_for_engine",
    "supported_dialects",
]
