"""Tests for the CLI interface."""
import json
import subprocess
import sys
from pathlib import Path

CLI = [sys.executable, "-m", "framing_builder"]
ROOT = Path(__file__).parent.parent


def run_cli(*args: str, stdin: str | None = None) -> dict:
    """Run CLI command and return parsed JSON output."""
    result = subprocess.run(
        [*CLI, *args],
        capture_output=True, text=True, cwd=str(ROOT), input=stdin,
    )
    assert result.returncode == 0, f"CLI failed: {result.stderr}\n{result.stdout}"
    return json.loads(result.stdout)


def run_cli_expect_fail(*args: str) -> dict:
    """Run CLI command expecting failure, return parsed JSON output."""
    result = subprocess.run(
        [*CLI, *args],
        capture_output=True, text=True, cwd=str(ROOT),
    )
    assert result.returncode != 0
    return json.loads(result.stdout)


class TestVersion:
    def test_version(self):
        data = run_cli("version")
        assert data == {"ok": True, "version": "0.1.0"}


class TestGrid:
    def test_square_grid(self):
        data = run_cli(
            "grid", "0,0", "10,0", "10,10", "0,10",
            "--max-span-x", "5", "--max-span-y", "5",
        )
        assert data["ok"] is True
        assert data["xs"] == [0, 5, 10]
        assert len(data["columns"]) == 9
        assert len(data["beams"]) == 12
        assert data["validation"]["errors"] == 0

    def test_config_file(self, tmp_path):
        cfg = tmp_path / "layout.json"
        cfg.write_text(json.dumps({"max_span_x": 4, "max_span_y": 4}))
        data = run_cli("grid", "0,0", "8,0", "8,8", "0,8", "--config", str(cfg))
        assert len(data["columns"]) == 9

    def test_too_few_vertices(self):
        data = run_cli_expect_fail("grid", "0,0", "10,0")
        assert data["ok"] is False

    def test_bad_vertex(self):
        data = run_cli_expect_fail("grid", "0,0", "10", "10,10")
        assert "x,y" in data["error"]

    def test_render(self, tmp_path):
        out = tmp_path / "grid.png"
        data = run_cli("grid", "0,0", "10,0", "10,10", "0,10", "--render", str(out))
        assert data["rendered"] == str(out)
        assert out.exists()


class TestApply:
    def test_draw_beam(self):
        actions = [{"action": "draw-beam", "start": [0, 0], "end": [20, 0]}]
        data = run_cli("apply", json.dumps(actions))
        assert data["ok"] is True
        kinds = sorted(c["kind"] for c in data["columns"])
        assert kinds == ["auto", "auto", "auto", "user", "user"]
        assert len(data["segments"]) == 4
        assert data["validation"]["errors"] == 0

    def test_single_action_object(self):
        data = run_cli("apply", json.dumps({"action": "insert-column", "at": [1, 1]}))
        assert data["actions_applied"] == 1

    def test_move_script(self):
        actions = [
            {"action": "draw-rectangle", "corner": [0, 0], "opposite": [6, 4], "fill": False},
            {"action": "move", "at": [[6, 0], [6, 4]], "delta": [2, 0]},
        ]
        data = run_cli("apply", json.dumps(actions))
        xs = sorted(c["x"] for c in data["columns"] if c["kind"] == "user")
        assert xs == [0, 0, 8, 8]

    def test_link_support_by_endpoints(self):
        actions = [
            {"action": "draw-beam", "start": [0, 0], "end": [10, 0]},
            {"action": "draw-beam", "start": [4, 5], "end": [4, 1]},
            {"action": "link-support", "dependent": [[4, 5], [4, 1]], "support": [[0, 0], [10, 0]]},
        ]
        data = run_cli("apply", json.dumps(actions))
        assert len(data["beams"]) == 3
        assert any(c["kind"] == "anchor" and c["hidden"] for c in data["columns"])

    def test_stdin(self):
        actions = json.dumps([{"action": "draw-beam", "start": "0,0", "end": "5,0"}])
        data = run_cli("apply", "--stdin", stdin=actions)
        assert len(data["beams"]) == 1

    def test_file_and_no_validate(self, tmp_path):
        script = tmp_path / "actions.json"
        script.write_text(json.dumps([{"action": "insert-column", "at": [0, 0]}]))
        data = run_cli("apply", "--file", str(script), "--no-validate")
        assert "validation" not in data

    def test_unknown_action_stops(self):
        actions = [
            {"action": "insert-column", "at": [0, 0]},
            {"action": "explode"},
        ]
        data = run_cli_expect_fail("apply", json.dumps(actions))
        assert data["applied"] == 1
        assert "Unknown action" in data["error"]

    def test_missing_file(self, tmp_path):
        data = run_cli_expect_fail("apply", "--file", str(tmp_path / "missing.json"))
        assert data["ok"] is False
        assert "Cannot read actions file" in data["error"]

    def test_missing_config(self, tmp_path):
        data = run_cli_expect_fail(
            "apply", json.dumps([]), "--config", str(tmp_path / "nope.json")
        )
        assert "Invalid config" in data["error"]

    def test_invalid_json(self):
        data = run_cli_expect_fail("apply", "{not json")
        assert "Invalid JSON" in data["error"]

    def test_no_actions(self):
        data = run_cli_expect_fail("apply")
        assert data["ok"] is False
