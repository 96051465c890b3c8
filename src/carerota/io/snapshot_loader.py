"""Load solve snapshots from JSON files or CSV tables."""
import json
from pathlib import Path
from typing import Dict, Optional, Union

import pandas as pd

from carerota.models.validated import Snapshot
from carerota.utils.logging_setup import get_logger

logger = get_logger("carerota.io.snapshot_loader")

# Table name -> CSV file name inside a snapshot directory
CSV_TABLES = {
    "staff": "staff.csv",
    "shifts": "shifts.csv",
    "availability": "availability.csv",
    "time_off": "time_off.csv",
}

LIST_SEPARATOR = ";"


def _split_list(value) -> list:
    """Split a ``a;b;c`` cell into a list; empty cells give []."""
    text = str(value).strip()
    if not text:
        return []
    return [v.strip() for v in text.split(LIST_SEPARATOR) if v.strip()]


def _safe_bool(value, default: bool = True) -> bool:
    """Safely convert value to bool."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if not text:
            return default
        return text in ("1", "true", "yes", "y")
    return default


def _records(df: pd.DataFrame) -> list:
    return df.fillna("").to_dict(orient="records")


def load_snapshot_json(path: Union[str, Path]) -> Snapshot:
    """Read and validate a JSON snapshot file."""
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    snapshot = Snapshot.model_validate(raw)
    logger.info(
        f"Loaded snapshot {path}: {len(snapshot.staff)} staff, {len(snapshot.shifts)} shifts, "
        f"{len(snapshot.availability)} availability, {len(snapshot.time_off)} time off"
    )
    return snapshot


def snapshot_from_frames(frames: Dict[str, pd.DataFrame], config: Optional[dict] = None) -> Snapshot:
    """
    Build a snapshot from per-table DataFrames.

    List cells (skills, preferred_shift_types, home_ids, assigned_staff)
    are ``;``-separated. Empty optional cells are treated as absent.

    Args:
        frames: Mapping of table name (see ``CSV_TABLES``) to DataFrame
        config: Optional solver configuration overrides

    Returns:
        Validated Snapshot
    """
    staff = []
    for row in _records(frames.get("staff", pd.DataFrame())):
        staff.append({
            "id": str(row.get("id", "")).strip(),
            "type": str(row.get("type", "")).strip() or "fulltime",
            "name": str(row.get("name", "")).strip(),
            "skills": _split_list(row.get("skills", "")),
            "preferred_shift_types": _split_list(row.get("preferred_shift_types", "")),
            "home_ids": _split_list(row.get("home_ids", "")),
        })

    shifts = []
    for row in _records(frames.get("shifts", pd.DataFrame())):
        count = row.get("required_staff_count", "")
        shifts.append({
            "id": str(row.get("id", "")).strip(),
            "home_id": str(row.get("home_id", "")).strip(),
            "service_id": str(row.get("service_id", "")).strip(),
            "date": str(row.get("date", "")).strip(),
            "start_time": str(row.get("start_time", "")).strip(),
            "end_time": str(row.get("end_time", "")).strip(),
            "shift_type": str(row.get("shift_type", "")).strip(),
            "required_staff_count": int(count) if str(count).strip() else 1,
            "assigned_staff": _split_list(row.get("assigned_staff", "")),
            "is_active": _safe_bool(row.get("is_active", "")),
        })

    availability = []
    for row in _records(frames.get("availability", pd.DataFrame())):
        availability.append({
            "user_id": str(row.get("user_id", "")).strip(),
            "date": str(row.get("date", "")).strip(),
            "is_available": _safe_bool(row.get("is_available", "")),
            "preferred_shift_type": str(row.get("preferred_shift_type", "")).strip() or None,
            "start_time": str(row.get("start_time", "")).strip() or None,
            "end_time": str(row.get("end_time", "")).strip() or None,
        })

    time_off = []
    for row in _records(frames.get("time_off", pd.DataFrame())):
        time_off.append({
            "id": str(row.get("id", "")).strip(),
            "user_id": str(row.get("user_id", "")).strip(),
            "start_date": str(row.get("start_date", "")).strip(),
            "end_date": str(row.get("end_date", "")).strip(),
            "status": str(row.get("status", "")).strip().lower() or "approved",
        })

    return Snapshot.model_validate({
        "staff": staff,
        "shifts": shifts,
        "availability": availability,
        "time_off": time_off,
        "config": config or {},
    })


def load_snapshot_csv(directory: Union[str, Path], config: Optional[dict] = None) -> Snapshot:
    """Load ``staff.csv``, ``shifts.csv`` and the optional tables from a directory."""
    directory = Path(directory)
    frames = {}
    for table, filename in CSV_TABLES.items():
        path = directory / filename
        if path.exists():
            # Keep ids and times as text
            frames[table] = pd.read_csv(path, dtype=str, keep_default_na=False)
        elif table in ("staff", "shifts"):
            raise ValueError(f"Snapshot directory {directory} must contain {filename}")
    snapshot = snapshot_from_frames(frames, config)
    logger.info(f"Loaded CSV snapshot {directory}: {len(snapshot.staff)} staff, {len(snapshot.shifts)} shifts")
    return snapshot


def load_snapshot(source: Union[str, Path]) -> Snapshot:
    """Load a JSON file or a directory of CSV tables."""
    source = Path(source)
    if source.is_dir():
        return load_snapshot_csv(source)
    return load_snapshot_json(source)
