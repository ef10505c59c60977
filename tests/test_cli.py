from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from gitstate_mcp import cli
from gitstate_mcp.cli import main
from gitstate_mcp.engine import GitStateEngine


def _run_cli_json(args: list[str], capsys) -> dict:
    exit_code = main(args + ["--json"])
    assert exit_code in (0, 1)
    output = capsys.readouterr().out
    return {"exit_code": exit_code, "payload": json.loads(output)}


@pytest.fixture()
def fake_engine(fake_runner, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(cli, "engine", GitStateEngine(runner=fake_runner))
    return fake_runner


def test_cli_is_repo_outside_repository(fake_engine, tmp_path: Path, capsys) -> None:
    result = _run_cli_json(["is-repo", "--directory", str(tmp_path)], capsys)

    assert result["exit_code"] == 0
    assert result["payload"]["status"] == "success"
    assert result["payload"]["is_repo"] is False


def test_cli_status_outputs_aggregated_entries(fake_engine, tmp_path: Path, capsys) -> None:
    fake_engine.outputs["status"] = "UU merge.txt\n M lib/x.py"

    result = _run_cli_json(["status", "-d", str(tmp_path)], capsys)

    entries = result["payload"]["entries"]
    root = tmp_path.resolve()
    assert entries[str(root / "merge.txt")] == "conflict"
    assert entries[str(root / "lib")] == "modified"


def test_cli_log_clamps_max_count(fake_engine, tmp_path: Path, capsys) -> None:
    fake_engine.outputs["log"] = ""

    result = _run_cli_json(["log", "-d", str(tmp_path), "-n", "5000"], capsys)

    assert result["payload"]["count"] == 0
    assert fake_engine.calls[-1][1][-1] == "--max-count=1000"


def test_cli_show_outside_directory_is_error(fake_engine, tmp_path: Path, capsys) -> None:
    result = _run_cli_json(["show", "../outside.txt", "-d", str(tmp_path)], capsys)

    assert result["exit_code"] == 1
    assert result["payload"]["status"] == "error"
    assert result["payload"]["error_code"] == "PATH_OUTSIDE_REPOSITORY"


def test_cli_blank_directory_is_invalid_input(fake_engine, capsys) -> None:
    result = _run_cli_json(["branches", "-d", " "], capsys)

    assert result["exit_code"] == 1
    assert result["payload"]["error_code"] == "INVALID_INPUT"


def test_cli_yaml_format(fake_engine, tmp_path: Path, capsys) -> None:
    fake_engine.outputs["branch"] = "* main\n  topic"

    exit_code = main(["branches", "-d", str(tmp_path), "--format", "yaml"])

    payload = yaml.safe_load(capsys.readouterr().out)
    assert exit_code == 0
    assert payload["current_branch"] == "main"
    assert [branch["name"] for branch in payload["branches"]] == ["main", "topic"]


def test_cli_text_graph_against_real_repository(git_repo: Path, capsys) -> None:
    exit_code = main(["log", "--graph", "-d", str(git_repo)])

    output = capsys.readouterr().out
    assert exit_code == 0
    assert output.startswith("[SUCCESS] Built graph for 4 commits")
    assert "Merge feature" in output
    assert "*" in output
