"""
Schema health scans.

Both scans walk tables, then columns, then checks, one query at a time, and
only read from the database. A failing query aborts the scan unless
``continue_on_error`` is set, in which case the failure is recorded on the
result and the scan exits non-zero. A table whose columns cannot be listed is
recorded as one table-level failure and skipped; failing to list the tables
themselves always aborts.
"""

import logging
from typing import Iterable, List, Optional, Tuple

from .checks import ScanContext, get_check, select_checks
from .classifier import classify
from .databases.base import DialectAdapter
from .errors import QueryFailed
from .models import CheckKind, ColumnDescriptor, InspectionResult
from .overflow import Threshold, assess_overflow_risk, to_threshold
from .report import ResultAggregator

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 70


def _columns(adapter: DialectAdapter, table: str) -> List[ColumnDescriptor]:
    return [classify(table, raw) for raw in adapter.list_columns(table)]


def run_validity_scan(
    adapter: DialectAdapter,
    selected_checks: Optional[Iterable[str]] = None,
    continue_on_error: bool = False,
) -> Tuple[InspectionResult, int]:
    """Find invalid values created in non-strict SQL mode.

    Args:
        adapter: Dialect adapter of the inspected database.
        selected_checks: Check names to run; empty or None runs all of them.
        continue_on_error: Record failing queries instead of aborting.

    Returns:
        (result, exit_status) where exit_status is 0 only if no invalid
        value was found.
    """
    checks = select_checks(selected_checks)
    aggregator = ResultAggregator()
    logger.info(f"Running checks: {', '.join(str(c) for c in checks)}")

    context = ScanContext()
    if CheckKind.LONG_TEXT in checks:
        try:
            context = ScanContext(max_packet_size=adapter.max_allowed_packet_size())
            logger.info(f"max_allowed_packet: {context.max_packet_size}")
        except QueryFailed as e:
            error = e.with_context(check=CheckKind.LONG_TEXT.value)
            if not continue_on_error:
                raise error from e
            aggregator.record_failure(error)
            checks = tuple(c for c in checks if c != CheckKind.LONG_TEXT)

    for table in adapter.list_tables():
        aggregator.table_scanned()
        try:
            columns = _columns(adapter, table)
        except QueryFailed as e:
            error = e.with_context(table)
            if not continue_on_error:
                raise error from e
            aggregator.record_failure(error)
            continue
        for column in columns:
            aggregator.column_scanned()
            logger.debug(f"{column.qualified_name}:\t{column.raw_type}")
            for kind in checks:
                check = get_check(kind)
                try:
                    aggregator.add(check(column, adapter, context))
                except QueryFailed as e:
                    error = e.with_context(column.table_name, column.column_name, kind.value)
                    if not continue_on_error:
                        raise error from e
                    aggregator.record_failure(error)

    result = aggregator.finalize()
    if result.total_issue_count:
        logger.info(f"Found {result.total_issue_count} Database values with issues.")
    return result, result.exit_status


def run_overflow_scan(
    adapter: DialectAdapter,
    threshold: Threshold = DEFAULT_THRESHOLD,
    continue_on_error: bool = False,
) -> Tuple[InspectionResult, int]:
    """Find auto-increment columns whose values are close to the type maximum.

    Args:
        adapter: Dialect adapter of the inspected database.
        threshold: Occupancy percentage at which a column is reported.
        continue_on_error: Record failing queries instead of aborting.

    Returns:
        (result, exit_status) where exit_status is 0 only if no column
        reached the threshold. Findings are ordered by occupancy, highest
        first.
    """
    limit = to_threshold(threshold)
    aggregator = ResultAggregator()

    for table in adapter.list_tables():
        aggregator.table_scanned()
        logger.info(f"Table {adapter.database_name}.{table}: checking...")
        try:
            columns = _columns(adapter, table)
        except QueryFailed as e:
            error = e.with_context(table, check=CheckKind.OVERFLOW_RISK.value)
            if not continue_on_error:
                raise error from e
            aggregator.record_failure(error)
            continue
        candidates = [c for c in columns if c.is_auto_increment]
        aggregator.column_scanned(len(columns))
        if not candidates:
            logger.debug(f"Table {adapter.database_name}.{table}: OK")
            continue

        size_bytes = adapter.table_size_bytes(table)
        for column in candidates:
            try:
                aggregator.add(assess_overflow_risk(column, adapter, limit, size_bytes))
            except QueryFailed as e:
                error = e.with_context(column.table_name, column.column_name, CheckKind.OVERFLOW_RISK.value)
                if not continue_on_error:
                    raise error from e
                aggregator.record_failure(error)
        logger.debug(f"Table {adapter.database_name}.{table}: OK")

    result = aggregator.finalize()
    if result.risky_column_count:
        logger.info(
            f"{result.risky_column_count} auto-incremental column(s) found where "
            f"{limit.normalize():f}% of the total possible values have already been used."
        )
    return result, result.exit_status
