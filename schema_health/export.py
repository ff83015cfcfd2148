"""Styled Excel export of a scan report."""

import logging
from typing import Any, Dict, List

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill

logger = logging.getLogger(__name__)


def _cell_value(value):
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, dict):
        return "; ".join(f"{k}={_cell_value(v)}" for k, v in value.items())
    if isinstance(value, (list, tuple, set)):
        return ", ".join(str(_cell_value(v)) for v in value)
    return value


def _style_sheet(ws):
    header_fill = PatternFill(start_color="1F4E78", end_color="1F4E78", fill_type="solid")
    header_font = Font(color="FFFFFF", bold=True)

    for cell in ws[1]:
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = Alignment(horizontal="left", vertical="center")

    ws.freeze_panes = "A2"
    ws.auto_filter.ref = ws.dimensions

    for col in ws.columns:
        col_letter = col[0].column_letter
        max_len = max(len(str(cell.value)) if cell.value is not None else 0 for cell in col)
        ws.column_dimensions[col_letter].width = min(max(12, max_len + 2), 80)


def _write_sheet(ws, rows: List[Dict[str, Any]]):
    headers = list(rows[0].keys()) if rows else ["note"]
    ws.append(headers)
    if rows:
        for row in rows:
            ws.append([_cell_value(row.get(h, "")) for h in headers])
    else:
        ws.append(["No rows"])
    _style_sheet(ws)


def _summary_rows(report: Dict[str, Any]) -> List[Dict[str, Any]]:
    rows = [{"key": k, "value": v} for k, v in report.get("metadata", {}).items()]
    rows.extend({"key": k, "value": v} for k, v in report.get("summary", {}).items())
    return rows


def write_excel_report(report: Dict[str, Any], output_path: str) -> int:
    """Write Summary, Findings, Advisories and Failures sheets.

    Returns the number of data rows written.
    """
    sheets = {
        "Summary": _summary_rows(report),
        "Findings": report.get("findings", []),
        "Advisories": report.get("advisories", []),
        "Failures": report.get("failures", []),
    }
    wb = Workbook()
    first = True
    for sheet_name, rows in sheets.items():
        if first:
            ws = wb.active
            ws.title = sheet_name
            first = False
        else:
            ws = wb.create_sheet(title=sheet_name)
        _write_sheet(ws, rows)
    wb.save(output_path)

    row_count = sum(len(v) for v in sheets.values())
    logger.info(f"Wrote {row_count} rows across {len(sheets)} sheets to {output_path}")
    return row_count
