"""Tests for CLI module."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from timetabler.cli import app
from timetabler.data.generator import generate_small_school, save_generated_school
from timetabler.data.models import load_timetable_from_json
from timetabler.output.schema import load_generation_output


runner = CliRunner()


@pytest.fixture
def input_file(tmp_path) -> Path:
    """Small generated school saved as editor JSON."""
    filepath = tmp_path / "input.json"
    save_generated_school(generate_small_school(seed=3), filepath)
    return filepath


@pytest.fixture
def minimal_input_data() -> dict:
    """Create minimal input data as a dictionary."""
    return {
        "settings": {
            "days": ["Mon", "Tue"],
            "periods": [
                {"id": "p1", "label": "P1", "start": "09:00", "end": "10:00"},
                {"id": "p2", "label": "P2", "start": "10:00", "end": "11:00"},
            ],
            "dayStartTime": "09:00",
            "dayEndTime": "11:00",
            "periodCount": 2,
        },
        "entities": {
            "teachers": [{"id": "t1", "name": "Mr Smith"}],
            "classes": [{"id": "c1", "name": "Year 10A"}],
            "subjects": [{"id": "mat", "name": "Maths"}],
        },
        "requirements": [
            {"id": "r1", "classId": "c1", "subjectId": "mat", "periodsPerCycle": 2},
        ],
        "ui": {"theme": "dark"},
    }


@pytest.fixture
def minimal_file(minimal_input_data, tmp_path) -> Path:
    filepath = tmp_path / "minimal.json"
    with open(filepath, "w") as f:
        json.dump(minimal_input_data, f)
    return filepath


@pytest.fixture
def candidates_file(input_file, tmp_path) -> Path:
    filepath = tmp_path / "candidates.json"
    result = runner.invoke(app, [
        "generate", str(input_file), "-o", str(filepath), "--keep", "2", "--attempts", "5", "--seed", "1",
    ])
    assert result.exit_code == 0, result.output
    return filepath


class TestPeriodsCommand:
    """Tests for the periods command."""

    def test_layout(self):
        result = runner.invoke(app, [
            "periods", "--start", "08:30", "--end", "15:00", "--count", "7", "--break", "12:00-12:30=Lunch",
        ])
        assert result.exit_code == 0
        assert "Lunch" in result.output
        assert "P7" in result.output
        assert "12:30" in result.output

    def test_not_enough_minutes(self):
        result = runner.invoke(app, ["periods", "--start", "08:00", "--end", "08:40", "--count", "3"])
        assert result.exit_code == 1
        assert "Not enough instructional minutes" in result.output

    def test_malformed_break(self):
        result = runner.invoke(app, ["periods", "--break", "lunchtime"])
        assert result.exit_code == 1
        assert "Invalid break" in result.output

    def test_overlapping_breaks(self):
        result = runner.invoke(app, [
            "periods", "-b", "12:00-12:30=Lunch", "-b", "12:15-12:45=Clubs",
        ])
        assert result.exit_code == 1
        assert "Break overlap" in result.output


class TestValidateCommand:
    """Tests for the validate command."""

    def test_valid_file(self, input_file):
        result = runner.invoke(app, ["validate", str(input_file)])
        assert result.exit_code == 0
        assert "Schema validation passed" in result.output
        assert "No load issues" in result.output
        assert "Validation complete" in result.output

    def test_verbose(self, input_file):
        result = runner.invoke(app, ["validate", str(input_file), "--verbose"])
        assert result.exit_code == 0
        assert "Requirements per class" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["validate", str(tmp_path / "nope.json")])
        assert result.exit_code == 1
        assert "File not found" in result.output

    def test_invalid_json(self, tmp_path):
        filepath = tmp_path / "bad.json"
        filepath.write_text("{ invalid json }")
        result = runner.invoke(app, ["validate", str(filepath)])
        assert result.exit_code == 1
        assert "Invalid JSON" in result.output

    def test_schema_failure(self, minimal_input_data, tmp_path):
        minimal_input_data["requirements"][0]["classId"] = "missing"
        filepath = tmp_path / "bad.json"
        filepath.write_text(json.dumps(minimal_input_data))
        result = runner.invoke(app, ["validate", str(filepath)])
        assert result.exit_code == 1
        assert "Schema validation failed" in result.output

    def test_bad_day_layout(self, minimal_input_data, tmp_path):
        minimal_input_data["settings"]["periods"] = []
        minimal_input_data["settings"]["dayStartTime"] = "08:00"
        minimal_input_data["settings"]["dayEndTime"] = "08:40"
        minimal_input_data["settings"]["periodCount"] = 3
        filepath = tmp_path / "layout.json"
        filepath.write_text(json.dumps(minimal_input_data))
        result = runner.invoke(app, ["validate", str(filepath)])
        assert result.exit_code == 1
        assert "Invalid day layout" in result.output

    def test_overloaded_class_warns(self, minimal_input_data, tmp_path):
        minimal_input_data["requirements"][0]["periodsPerCycle"] = 5
        filepath = tmp_path / "overloaded.json"
        filepath.write_text(json.dumps(minimal_input_data))
        result = runner.invoke(app, ["validate", str(filepath)])
        assert result.exit_code == 0
        assert "Warnings found" in result.output

    def test_blocked_teacher_warns(self, minimal_input_data, tmp_path):
        minimal_input_data["teacherBlocked"] = {"t1": ["Mon|p1", "Mon|p2", "Tue|p1", "Tue|p2"]}
        filepath = tmp_path / "blocked.json"
        filepath.write_text(json.dumps(minimal_input_data))
        result = runner.invoke(app, ["validate", str(filepath)])
        assert result.exit_code == 0
        assert "Warnings found" in result.output


class TestGenerateCommand:
    """Tests for the generate command."""

    def test_writes_candidates(self, input_file, tmp_path):
        output = tmp_path / "out" / "candidates.json"
        result = runner.invoke(app, [
            "generate", str(input_file), "-o", str(output), "--keep", "3", "--attempts", "10", "--seed", "7",
        ])
        assert result.exit_code == 0, result.output
        assert "candidates generated" in result.output

        saved = load_generation_output(output)
        assert 1 <= len(saved.candidates) <= 3
        assert saved.keep == 3
        assert saved.attempts == 10

    def test_apply_best(self, minimal_file, tmp_path):
        applied = tmp_path / "applied.json"
        result = runner.invoke(app, [
            "generate", str(minimal_file), "--attempts", "3", "--seed", "1", "--apply-best", str(applied),
        ])
        assert result.exit_code == 0, result.output

        data = load_timetable_from_json(applied)
        assert sum(1 for v in data.slots.values() if v is not None) == 2

    def test_locked_slot(self, minimal_input_data, tmp_path):
        minimal_input_data["slots"] = {"Mon|p1|c1": {"subjectId": "mat", "teacherId": "t1"}}
        filepath = tmp_path / "locked.json"
        filepath.write_text(json.dumps(minimal_input_data))
        output = tmp_path / "candidates.json"

        result = runner.invoke(app, [
            "generate", str(filepath), "-o", str(output), "--attempts", "5", "--seed", "1", "--lock", "Mon|p1|c1",
        ])
        assert result.exit_code == 0, result.output
        for candidate in load_generation_output(output).candidates:
            assert candidate.slots["Mon|p1|c1"].teacher_id == "t1"

    def test_malformed_lock(self, input_file):
        result = runner.invoke(app, ["generate", str(input_file), "--attempts", "2", "--lock", "Mon-p1"])
        assert result.exit_code == 1
        assert "Invalid request" in result.output

    def test_bad_day_layout(self, minimal_input_data, tmp_path):
        minimal_input_data["settings"].update(periods=[], dayStartTime="08:00", dayEndTime="08:40", periodCount=3)
        filepath = tmp_path / "layout.json"
        filepath.write_text(json.dumps(minimal_input_data))

        result = runner.invoke(app, ["generate", str(filepath), "--attempts", "2"])
        assert result.exit_code == 1
        assert "Not enough instructional minutes" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["generate", str(tmp_path / "nope.json")])
        assert result.exit_code != 0


class TestViewCommand:
    """Tests for the view command."""

    def test_view_all_classes(self, input_file, candidates_file):
        result = runner.invoke(app, ["view", str(input_file), str(candidates_file)])
        assert result.exit_code == 0, result.output
        assert "Year 7A" in result.output
        assert "Year 7B" in result.output

    def test_view_one_class(self, input_file, candidates_file):
        result = runner.invoke(app, ["view", str(input_file), str(candidates_file), "--class", "7b"])
        assert result.exit_code == 0
        assert "Year 7B" in result.output
        assert "Year 7A" not in result.output

    def test_unknown_class(self, input_file, candidates_file):
        result = runner.invoke(app, ["view", str(input_file), str(candidates_file), "--class", "12z"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_bad_day_layout(self, minimal_input_data, tmp_path):
        minimal_input_data["settings"].update(periods=[], dayStartTime="08:00", dayEndTime="08:40", periodCount=3)
        filepath = tmp_path / "layout.json"
        filepath.write_text(json.dumps(minimal_input_data))
        candidates = tmp_path / "candidates.json"
        candidates.write_text(json.dumps({
            "status": "ok",
            "message": "1 candidates generated",
            "candidates": [{"id": "cand_0_abcde", "score": 10000, "unplaced": 0, "slots": {}}],
        }))

        result = runner.invoke(app, ["view", str(filepath), str(candidates)])
        assert result.exit_code == 1
        assert "Invalid day layout" in result.output
        assert "Not enough instructional minutes" in result.output

    def test_candidate_out_of_range(self, input_file, candidates_file):
        result = runner.invoke(app, ["view", str(input_file), str(candidates_file), "--candidate", "9"])
        assert result.exit_code == 1
        assert "Candidate 9 not found" in result.output


class TestSampleCommand:
    """Tests for the sample command."""

    def test_writes_file(self, tmp_path):
        output = tmp_path / "sample.json"
        result = runner.invoke(app, ["sample", "-o", str(output), "--seed", "1", "--classes", "3", "--teachers", "8"])
        assert result.exit_code == 0
        assert output.exists()

        data = load_timetable_from_json(output)
        assert len(data.entities.classes) == 3
        assert len(data.entities.teachers) == 8

    def test_prints_json(self):
        result = runner.invoke(app, ["sample", "--seed", "1", "--classes", "1"])
        assert result.exit_code == 0
        assert "schemaVersion" in result.output


class TestHelp:
    """Tests for help output."""

    def test_main_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("periods", "validate", "generate", "view", "sample"):
            assert command in result.output
