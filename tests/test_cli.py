"""Tests for the command line interface."""
import json

import pytest

from carerota.cli import EXIT_CONFLICT, EXIT_ERROR, EXIT_OK, main
from factories import EXAMPLE_SNAPSHOT


@pytest.fixture
def snapshot_file(tmp_path):
    raw = json.loads(json.dumps(EXAMPLE_SNAPSHOT))
    raw["shifts"].append({
        "id": "S3", "home_id": "h2", "date": "2025-09-02", "start_time": "10:00",
        "end_time": "18:00", "shift_type": "day", "assigned_staff": ["A"],
    })
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(raw), encoding="utf-8")
    return path


class TestSolveCommand:

    def test_prints_summary(self, snapshot_file, capsys):
        assert main(["solve", str(snapshot_file)]) == EXIT_OK
        out = capsys.readouterr().out
        assert "Summary:" in out
        assert " - assigned: 2" in out
        assert "S2: -" in out
        assert "Shift understaffed: 0/1" in out

    def test_json_output(self, snapshot_file, capsys):
        assert main(["solve", str(snapshot_file), "--json"]) == EXIT_OK
        data = json.loads(capsys.readouterr().out)
        assert data["assignments"][0]["entries"][0]["staff_id"] == "B"
        assert data["total_penalty"] == 0

    def test_export(self, snapshot_file, tmp_path, capsys):
        out_path = tmp_path / "result.csv"
        assert main(["solve", str(snapshot_file), "--export", str(out_path)]) == EXIT_OK
        assert out_path.exists()

    def test_max_iterations_override(self, snapshot_file, capsys):
        assert main(["solve", str(snapshot_file), "--json", "--max-iterations", "0"]) == EXIT_OK
        assert json.loads(capsys.readouterr().out)["iterations"] == 0

    def test_missing_file(self, tmp_path, capsys):
        assert main(["solve", str(tmp_path / "nope.json")]) == EXIT_ERROR
        assert "error" in capsys.readouterr().err


class TestCheckCommands:

    def test_assignment_conflict(self, snapshot_file, capsys):
        code = main(["check-assignment", str(snapshot_file), "--user", "A",
                     "--date", "2025-09-02", "--start", "12:00", "--end", "20:00"])
        assert code == EXIT_CONFLICT
        assert "[time_overlap]" in capsys.readouterr().out

    def test_assignment_clean_json(self, snapshot_file, capsys):
        code = main(["check-assignment", str(snapshot_file), "--user", "A",
                     "--date", "2025-09-05", "--start", "08:00", "--end", "16:00", "--json"])
        assert code == EXIT_OK
        assert json.loads(capsys.readouterr().out) == {"has_conflict": False, "conflicts": []}

    def test_assignment_unknown_user(self, snapshot_file, capsys):
        code = main(["check-assignment", str(snapshot_file), "--user", "Z",
                     "--date", "2025-09-02", "--start", "12:00", "--end", "20:00"])
        assert code == EXIT_ERROR
        assert "404 not_found" in capsys.readouterr().err

    def test_swap_home_access(self, snapshot_file, tmp_path, capsys):
        raw = json.loads(snapshot_file.read_text(encoding="utf-8"))
        raw["shifts"][0]["assigned_staff"] = ["B"]
        path = tmp_path / "assigned.json"
        path.write_text(json.dumps(raw), encoding="utf-8")

        code = main(["check-swap", str(path), "--requester-shift", "S1", "--target-shift", "S3",
                     "--requester", "B", "--target-user", "A"])
        assert code == EXIT_CONFLICT
        assert "Requester does not have access to home h2" in capsys.readouterr().out
