"""Find invalid values and overflow-prone auto-increment columns in MySQL databases."""

from .checks import available_checks, select_checks
from .classifier import classify
from .errors import (
    ConfigError,
    QueryFailed,
    SchemaHealthError,
    UnknownCheckKind,
    UnknownSizeUnit,
    UnknownTypeKind,
    UnsupportedEngine,
)
from .models import EXIT_FAILURE, EXIT_SUCCESS, CanonicalKind, CheckKind, InspectionResult
from .report import format_bytes
from .scanner import run_overflow_scan, run_validity_scan
from .type_ranges import range_for

__version__ = "0.1.0"

__all__ = [
    "CanonicalKind",
    "CheckKind",
    "ConfigError",
    "EXIT_FAILURE",
    "EXIT_SUCCESS",
    "InspectionResult",
    "QueryFailed",
    "SchemaHealthError",
    "UnknownCheckKind",
    "UnknownSizeUnit",
    "UnknownTypeKind",
    "UnsupportedEngine",
    "available_checks",
    "classify",
    "format_bytes",
    "range_for",
    "run_overflow_scan",
    "run_validity_scan",
    "select_checks",
]
