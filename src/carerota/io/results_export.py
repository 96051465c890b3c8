"""
Results Export
==============
Writes a ``SolveResult`` to JSON, CSV or a styled Excel workbook.
"""
import io
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from carerota.models.schedule import SolveResult
from carerota.models.shift import Shift
from carerota.utils.logging_setup import get_logger

logger = get_logger("carerota.io.results_export")

RESULTS_DIR = Path("results")

HEADER_FILL = PatternFill(start_color="DDEEFF", end_color="DDEEFF", fill_type="solid")
UNDERSTAFFED_FILL = PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid")
THIN = Side(border_style="thin", color="CCCCCC")
BORDER_THIN = Border(top=THIN, bottom=THIN, left=THIN, right=THIN)


def assignments_frame(result: SolveResult, shifts: Optional[List[Shift]] = None) -> pd.DataFrame:
    """Placements as rows, joined with shift details when ``shifts`` is given."""
    df = result.to_dataframe()
    if shifts and not df.empty:
        details = pd.DataFrame([
            {
                "shift_id": s.id,
                "date": s.date.isoformat(),
                "start_time": s.start_time,
                "end_time": s.end_time,
                "shift_type": s.shift_type.value,
                "home_id": s.home_id,
            }
            for s in shifts
        ])
        df = df.merge(details, on="shift_id", how="left")
    return df


def result_payload(result: SolveResult, run_name: Optional[str] = None,
                   config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    payload = result.to_dict()
    payload["meta"] = {
        "timestamp": datetime.now().isoformat(),
        "run_name": run_name,
    }
    payload["summary"] = result.summary()
    if config is not None:
        payload["config"] = config
    return payload


def export_json(result: SolveResult, path: Optional[Union[str, Path]] = None,
                run_name: Optional[str] = None, config: Optional[Dict[str, Any]] = None) -> Path:
    """
    Export a solve result to JSON for analysis.

    Args:
        result: Solve result
        path: Output path (``results/<run_name>.json`` if None)
        run_name: Optional name for the run
        config: Solver configuration dict to embed

    Returns:
        Path to the exported JSON file
    """
    if path is None:
        RESULTS_DIR.mkdir(exist_ok=True)
        run_name = run_name or f"run_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
        path = RESULTS_DIR / f"{run_name}.json"
    path = Path(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(result_payload(result, run_name, config), f, indent=2, ensure_ascii=False)
    logger.info(f"Results exported to {path}")
    return path


def export_csv(result: SolveResult, path: Union[str, Path], shifts: Optional[List[Shift]] = None) -> Path:
    path = Path(path)
    assignments_frame(result, shifts).to_csv(path, index=False)
    logger.info(f"Assignments exported to {path}")
    return path


def _write_frame(ws, df: pd.DataFrame):
    for col, name in enumerate(df.columns, start=1):
        cell = ws.cell(row=1, column=col, value=str(name))
        cell.font = Font(bold=True)
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center")
        cell.border = BORDER_THIN
    for r, row in enumerate(df.itertuples(index=False), start=2):
        for c, value in enumerate(row, start=1):
            cell = ws.cell(row=r, column=c, value=value)
            cell.border = BORDER_THIN
    for col, name in enumerate(df.columns, start=1):
        width = max([len(str(name))] + [len(str(v)) for v in df.iloc[:, col - 1]]) if len(df) else len(str(name))
        ws.column_dimensions[get_column_letter(col)].width = min(width + 2, 50)


def export_to_excel(result: SolveResult, shifts: Optional[List[Shift]] = None) -> bytes:
    """
    Build a workbook with Assignments, Coverage and Violations sheets.

    Understaffed rows of the Coverage sheet are highlighted.

    Returns:
        The workbook as bytes
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "Assignments"
    _write_frame(ws, assignments_frame(result, shifts))

    coverage = result.coverage_frame()
    ws_cov = wb.create_sheet("Coverage")
    _write_frame(ws_cov, coverage)
    for r, missing in enumerate(coverage["missing"].tolist(), start=2):
        if missing > 0:
            for c in range(1, len(coverage.columns) + 1):
                ws_cov.cell(row=r, column=c).fill = UNDERSTAFFED_FILL

    rows = [v.to_dict() for v in result.violated_constraints + result.warnings]
    violations = pd.DataFrame(rows, columns=["constraint", "message", "shift_id", "staff_id", "severity", "penalty"])
    _write_frame(wb.create_sheet("Violations"), violations)

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def export_xlsx(result: SolveResult, path: Union[str, Path], shifts: Optional[List[Shift]] = None) -> Path:
    path = Path(path)
    path.write_bytes(export_to_excel(result, shifts))
    logger.info(f"Workbook exported to {path}")
    return path


def export_result(result: SolveResult, path: Union[str, Path], shifts: Optional[List[Shift]] = None,
                  config: Optional[Dict[str, Any]] = None) -> Path:
    """Dispatch on the file suffix: .json, .csv or .xlsx."""
    suffix = Path(path).suffix.lower()
    if suffix == ".json":
        return export_json(result, path, config=config)
    if suffix == ".csv":
        return export_csv(result, path, shifts)
    if suffix == ".xlsx":
        return export_xlsx(result, path, shifts)
    raise ValueError(f"Unsupported export format: {suffix or path}")
