# carerota/io - Snapshot loading and result export
from .results_export import export_csv, export_json, export_result, export_to_excel, export_xlsx
from .snapshot_loader import load_snapshot, load_snapshot_csv, load_snapshot_json, snapshot_from_frames

__all__ = [
    "load_snapshot",
    "load_snapshot_json",
    "load_snapshot_csv",
    "snapshot_from_frames",
    "export_result",
    "export_json",
    "export_csv",
    "export_xlsx",
    "export_to_excel",
]
