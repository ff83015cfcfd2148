"""Aggregate check outcomes and render them for operators."""

import json
import logging
from collections import Counter
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Sequence, Union

from rich.table import Table
from rich.text import Text

from .errors import QueryFailed, UnknownSizeUnit
from .models import (
    EXIT_SUCCESS,
    Advisory,
    CheckFinding,
    CheckKind,
    ExactNumber,
    InspectionResult,
    QueryFailure,
)
from .overflow import to_threshold

logger = logging.getLogger(__name__)

_SIZE_SUFFIXES = (" bytes", " KB", " MB", " GB", " TB")

OVERFLOW_HEADERS = ("Table", "Column", "Type", "Size", "Cur. Val", "Max. Val", "Occupancy (%)")
_NUMERIC_HEADERS = ("Size", "Cur. Val", "Max. Val", "Occupancy (%)")


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

class ResultAggregator:
    """Collects outcomes of one scan; nothing is shared between scans.

    Row issue totals (validity checks) and risky column totals (overflow
    check) are kept apart since they count different things.
    """

    def __init__(self) -> None:
        self._findings: List[CheckFinding] = []
        self._advisories: List[Advisory] = []
        self._failures: List[QueryFailure] = []
        self._total_issue_count = 0
        self._risky_column_count = 0
        self._tables = 0
        self._columns = 0
        self._finalized: Optional[InspectionResult] = None

    def table_scanned(self) -> None:
        self._tables += 1

    def column_scanned(self, count: int = 1) -> None:
        self._columns += count

    def add(self, outcome: Optional[Union[CheckFinding, Advisory]]) -> None:
        if self._finalized is not None:
            raise RuntimeError("Result already finalized")
        if outcome is None:
            return
        if isinstance(outcome, Advisory):
            logger.info(f"Advisory: {outcome.message}")
            self._advisories.append(outcome)
            return
        logger.info(f"Finding: {outcome.message}")
        self._findings.append(outcome)
        if outcome.check == CheckKind.OVERFLOW_RISK:
            self._risky_column_count += 1
        else:
            self._total_issue_count += outcome.issue_count

    def record_failure(self, error: QueryFailed) -> None:
        logger.error(f"Query failed, continuing: {error}")
        self._failures.append(
            QueryFailure(
                table_name=error.table,
                column_name=error.column,
                check=error.check,
                message=error.reason,
            )
        )

    def finalize(self) -> InspectionResult:
        if self._finalized is None:
            validity = [f for f in self._findings if f.check != CheckKind.OVERFLOW_RISK]
            risky = [f for f in self._findings if f.check == CheckKind.OVERFLOW_RISK]
            # sorted() is stable, equal occupancies keep scan order
            risky = sorted(risky, key=lambda f: f.occupancy_percentage, reverse=True)
            self._finalized = InspectionResult(
                total_issue_count=self._total_issue_count,
                risky_column_count=self._risky_column_count,
                findings=tuple(validity + risky),
                advisories=tuple(self._advisories),
                failures=tuple(self._failures),
                tables_scanned=self._tables,
                columns_scanned=self._columns,
            )
        return self._finalized


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def _trim_number(value: Decimal) -> str:
    text = f"{value:f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_bytes(size: int, precision: int = 2) -> str:
    """Human readable size in binary units: ``1536 -> "1.5 KB"``, ``0 -> "0"``.

    Halves round away from zero, so 1152 bytes is ``1.13 KB``.
    """
    if size == 0:
        return "0"
    if size < 0:
        raise ValueError(f"Size must not be negative: {size}")
    index = 0
    while size >= 1024 ** (index + 1):
        index += 1
    if index >= len(_SIZE_SUFFIXES):
        raise UnknownSizeUnit(size)
    scaled = Decimal(size) / (1024 ** index)
    rounded = scaled.quantize(Decimal(1).scaleb(-precision), rounding=ROUND_HALF_UP)
    return _trim_number(rounded) + _SIZE_SUFFIXES[index]


def format_size(size: Optional[int], precision: int = 2) -> str:
    if size is None:
        return "unknown"
    return format_bytes(size, precision)


def format_number(value: Optional[ExactNumber]) -> str:
    """Thousands-separated number; decimals keep their fractional digits."""
    if value is None:
        return ""
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return f"{int(value):,}"
        return f"{value:,f}"
    return f"{value:,}"


def format_percentage(value: Optional[Decimal]) -> str:
    if value is None:
        return ""
    return f"{value.normalize():f}"


# ---------------------------------------------------------------------------
# Console rendering
# ---------------------------------------------------------------------------

def render_validity_report(result: InspectionResult) -> List[str]:
    lines = [f.message for f in result.findings if f.check != CheckKind.OVERFLOW_RISK]
    lines.extend(f"WARNING: {a.message}" for a in result.advisories)
    lines.extend(_failure_lines(result))
    if result.total_issue_count:
        lines.append(f"Found {result.total_issue_count} Database values with issues.")
    elif not result.degraded:
        lines.append("No issues found.")
    return lines


def overflow_rows(result: InspectionResult) -> List[List[str]]:
    rows = []
    for f in result.findings:
        if f.check != CheckKind.OVERFLOW_RISK:
            continue
        rows.append([
            f.table_name,
            f.column_name,
            f.column_type or "",
            format_size(f.size_bytes),
            format_number(f.current_value),
            format_number(f.max_value),
            format_percentage(f.occupancy_percentage),
        ])
    return rows


def overflow_table(result: InspectionResult) -> Table:
    """Risky columns as a rich table, highest occupancy first."""
    table = Table()
    for header in OVERFLOW_HEADERS:
        justify = "right" if header in _NUMERIC_HEADERS else "left"
        table.add_column(header, justify=justify, no_wrap=True)
    for row in overflow_rows(result):
        # Text() keeps identifiers like ``a[b]`` away from rich markup
        table.add_row(*(Text(cell) for cell in row))
    return table


def render_overflow_report(result: InspectionResult, threshold: Any) -> List[str]:
    """Summary lines of the overflow scan; the rows come from ``overflow_table``."""
    lines = _failure_lines(result)
    if not result.risky_column_count:
        if not result.degraded:
            lines.append("No issues found.")
        return lines
    lines.append(
        f"{result.risky_column_count} auto-incremental column(s) found where "
        f"{format_percentage(to_threshold(threshold))}% of the total possible values have already been used."
    )
    return lines


def _failure_lines(result: InspectionResult) -> List[str]:
    lines = []
    for failure in result.failures:
        location = ".".join(p for p in (failure.table_name, failure.column_name) if p)
        lines.append(f"SKIPPED {location or '(database)'} [{failure.check or '-'}]: {failure.message}")
    return lines


# ---------------------------------------------------------------------------
# JSON report
# ---------------------------------------------------------------------------

def finding_to_dict(finding: CheckFinding) -> Dict[str, Any]:
    entry: Dict[str, Any] = {
        "table": finding.table_name,
        "column": finding.column_name,
        "check": finding.check.value,
        "issue_count": finding.issue_count,
        "detail": finding.message,
    }
    if finding.check == CheckKind.OVERFLOW_RISK:
        entry.update({
            "type": finding.column_type,
            "current_value": str(finding.current_value),
            "max_value": str(finding.max_value),
            "occupancy_percentage": float(finding.occupancy_percentage),
            "size_bytes": finding.size_bytes,
            "size": format_size(finding.size_bytes),
        })
    return entry


def build_report(
    result: InspectionResult,
    scan: str,
    database: Optional[str] = None,
    threshold: Any = None,
    checks: Optional[Sequence[Any]] = None,
) -> Dict[str, Any]:
    """Build the JSON-serialisable report of one scan."""
    check_counts = Counter(f.check.value for f in result.findings)
    metadata: Dict[str, Any] = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "database": database,
        "scan": scan,
        "tables_scanned": result.tables_scanned,
        "columns_scanned": result.columns_scanned,
    }
    if threshold is not None:
        metadata["threshold"] = float(threshold)
    if checks is not None:
        metadata["checks"] = [str(c) for c in checks]

    return {
        "metadata": metadata,
        "summary": {
            "total_issue_count": result.total_issue_count,
            "risky_column_count": result.risky_column_count,
            "by_check": dict(check_counts),
            "advisories": len(result.advisories),
            "failures": len(result.failures),
            "exit_status": result.exit_status,
            "ok": result.exit_status == EXIT_SUCCESS,
        },
        "findings": [finding_to_dict(f) for f in result.findings],
        "advisories": [
            {"table": a.table_name, "column": a.column_name, "check": a.check.value, "detail": a.message}
            for a in result.advisories
        ],
        "failures": [
            {"table": q.table_name, "column": q.column_name, "check": q.check, "detail": q.message}
            for q in result.failures
        ],
    }


def write_json_report(report: Dict[str, Any], output_path: str) -> None:
    logger.info(f"Saving report to {output_path}")
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(report, f, indent=2, default=str)
