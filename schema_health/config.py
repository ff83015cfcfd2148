"""
Configuration: environment variables loaded from Azure Key Vault or .env.

- KEYVAULT_NAME: vault name; when set, secrets are read from Key Vault
- AZURE_USER_NAME: optional; ``{SECRET}-{USER}`` secrets win over ``{SECRET}``
- Existing os.environ values are never overwritten (CLI overrides win)
"""

import logging
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError

from .errors import ConfigError

logger = logging.getLogger(__name__)

# Env vars that may be stored in Key Vault
ENV_VARS = (
    "DATABASE_URL",
    "DATABASE_SCHEMA",
    "SCHEMA",
    "API_AUTH_TOKEN",
)

DEFAULT_THRESHOLD = 70.0
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _env_to_secret_name(env_key: str) -> str:
    """Convert env var name to Key Vault secret name (underscores -> hyphens)."""
    return env_key.replace("_", "-")


def _load_from_dotenv() -> None:
    for base in (Path.cwd(), Path(__file__).resolve().parent.parent):
        env_path = base / ".env"
        if env_path.exists():
            load_dotenv(env_path, override=False)
            return


def _load_from_keyvault(vault_name: str, user_name: str) -> None:
    from azure.identity import DefaultAzureCredential
    from azure.keyvault.secrets import SecretClient

    client = SecretClient(
        vault_url=f"https://{vault_name}.vault.azure.net/",
        credential=DefaultAzureCredential(),
    )
    for var in ENV_VARS:
        if var in os.environ:
            continue
        base_name = _env_to_secret_name(var)
        secret_names = [f"{base_name}-{user_name}", base_name] if user_name else [base_name]
        for name in secret_names:
            try:
                secret = client.get_secret(name)
            except Exception as e:
                logger.debug(f"Key Vault secret '{name}' not available: {e}")
                continue
            if secret and secret.value:
                os.environ[var] = secret.value
                break


def load_env() -> None:
    """Load env vars from Azure Key Vault (when configured) and .env."""
    _load_from_dotenv()
    vault_name = os.environ.get("KEYVAULT_NAME", "").strip()
    if vault_name:
        _load_from_keyvault(vault_name, os.environ.get("AZURE_USER_NAME", "").strip().upper())


def _parse_bool(name: str, value: Optional[str]) -> bool:
    lowered = (value or "").strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def _parse_float(name: str, value: Optional[str], default: float) -> float:
    if value is None or not value.strip():
        return default
    try:
        parsed = float(value)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {value!r}") from None
    if not math.isfinite(parsed):
        raise ConfigError(f"{name} must be a finite number, got {value!r}")
    return parsed


def _parse_positive_int(name: str, value: Optional[str]) -> Optional[int]:
    if value is None or not value.strip():
        return None
    try:
        parsed = int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None
    if parsed <= 0:
        raise ConfigError(f"{name} must be positive, got {parsed}")
    return parsed


@dataclass
class Settings:
    database_url: Optional[str] = None
    schema: Optional[str] = None
    threshold: float = DEFAULT_THRESHOLD
    continue_on_error: bool = False
    query_timeout_ms: Optional[int] = None
    api_auth_token: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        env = os.environ
        return cls(
            database_url=env.get("DATABASE_URL") or None,
            schema=(env.get("DATABASE_SCHEMA") or env.get("SCHEMA") or "").strip() or None,
            threshold=_parse_float(
                "SCHEMA_HEALTH_THRESHOLD", env.get("SCHEMA_HEALTH_THRESHOLD"), DEFAULT_THRESHOLD
            ),
            continue_on_error=_parse_bool(
                "SCHEMA_HEALTH_CONTINUE_ON_ERROR", env.get("SCHEMA_HEALTH_CONTINUE_ON_ERROR")
            ),
            query_timeout_ms=_parse_positive_int(
                "SCHEMA_HEALTH_QUERY_TIMEOUT_MS", env.get("SCHEMA_HEALTH_QUERY_TIMEOUT_MS")
            ),
            api_auth_token=env.get("API_AUTH_TOKEN") or None,
        )

    def require_database_url(self) -> str:
        if not self.database_url:
            raise ConfigError("DATABASE_URL is not set (Key Vault, .env or --database-url)")
        return self.database_url


def database_name(database_url: str) -> Optional[str]:
    """Database part of a URL, e.g. ``shop`` for ``mysql+pymysql://u:p@h/shop``."""
    try:
        return make_url(database_url).database
    except ArgumentError:
        raise ConfigError(f"Invalid database URL: {redact_url(database_url)}") from None


def redact_url(database_url: str) -> str:
    """Strip credentials before a URL is logged or reported."""
    return database_url.split("@")[-1] if "@" in database_url else database_url


def get_engine(database_url: str) -> Engine:
    """Create a SQLAlchemy engine with sensible defaults."""
    try:
        return create_engine(
            database_url,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,
            connect_args={"connect_timeout": 10},
            echo=False,
        )
    except ArgumentError:
        raise ConfigError(f"Invalid database URL: {redact_url(database_url)}") from None
