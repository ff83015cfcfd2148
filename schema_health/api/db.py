"""Engine holder and adapter factory for the API process."""

from __future__ import annotations

from sqlalchemy.engine import Engine

from ..config import Settings
from ..databases import DialectAdapter, get_adapter_for_engine

_engine: Engine | None = None
_settings: Settings | None = None


def set_engine(engine: Engine, settings: Settings | None = None) -> None:
    """Set the global engine (called from app lifespan)."""
    global _engine, _settings
    _engine = engine
    _settings = settings


def get_engine() -> Engine:
    """Return the global engine. Raises RuntimeError if not set."""
    if _engine is None:
        raise RuntimeError("Database engine not initialized")
    return _engine


def get_settings() -> Settings:
    return _settings or Settings.from_env()


def get_adapter() -> DialectAdapter:
    """Adapter for the configured database; raises UnsupportedEngine for non-MySQL engines."""
    settings = get_settings()
    return get_adapter_for_engine(
        get_engine(),
        settings.schema,
        query_timeout_ms=settings.query_timeout_ms,
    )
