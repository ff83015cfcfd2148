"""API routes: run the invalid-values and risky-columns scans."""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query

from .. import scanner
from ..errors import ConfigError, QueryFailed, SchemaHealthError, UnknownCheckKind, UnsupportedEngine
from ..report import build_report
from . import db
from .auth import require_bearer_token

router = APIRouter(prefix="/api/scans", tags=["scans"])


def _error_detail(error: Exception) -> Dict[str, Any]:
    detail: Dict[str, Any] = {"detail": str(error), "error": type(error).__name__}
    if isinstance(error, QueryFailed):
        detail.update({"table": error.table, "column": error.column, "check": error.check})
    return detail


def _raise_for(error: SchemaHealthError) -> None:
    if isinstance(error, (ConfigError, UnknownCheckKind, UnsupportedEngine)):
        raise HTTPException(status_code=400, detail=_error_detail(error)) from error
    if isinstance(error, QueryFailed):
        raise HTTPException(status_code=502, detail=_error_detail(error)) from error
    raise HTTPException(status_code=500, detail=_error_detail(error)) from error


@router.get("/invalid-values")
def find_invalid_values(
    _: None = Depends(require_bearer_token),
    check: List[str] = Query(default=[], description="Checks to run: null, datetime, long_text, long_string; all when omitted."),
    continue_on_error: bool | None = Query(None, description="Record failing queries instead of aborting."),
):
    """Find invalid data created in non-strict SQL mode."""
    settings = db.get_settings()
    if continue_on_error is None:
        continue_on_error = settings.continue_on_error
    try:
        adapter = db.get_adapter()
        result, status = scanner.run_validity_scan(adapter, check, continue_on_error=continue_on_error)
        report = build_report(result, "find-invalid-values", database=adapter.database_name, checks=check or None)
    except SchemaHealthError as e:
        _raise_for(e)
    report["exit_status"] = status
    return report


@router.get("/risky-columns")
def find_risky_columns(
    _: None = Depends(require_bearer_token),
    threshold: float | None = Query(None, ge=0, description="Occupancy percentage at which a column is reported."),
    continue_on_error: bool | None = Query(None, description="Record failing queries instead of aborting."),
):
    """Find auto-incremental columns whose values are close to max possible values."""
    settings = db.get_settings()
    if threshold is None:
        threshold = settings.threshold
    if continue_on_error is None:
        continue_on_error = settings.continue_on_error
    try:
        adapter = db.get_adapter()
        result, status = scanner.run_overflow_scan(adapter, threshold, continue_on_error=continue_on_error)
        report = build_report(result, "find-risky-columns", database=adapter.database_name, threshold=threshold)
    except SchemaHealthError as e:
        _raise_for(e)
    report["exit_status"] = status
    return report
