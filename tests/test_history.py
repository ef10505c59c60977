from __future__ import annotations

from fractions import Fraction
from pathlib import Path

import pytest

from gitstate_mcp.constants import LOG_FIELD_SEPARATOR
from gitstate_mcp.history import HistoryFetcher, clamp_max_count, parse_log_output


def _record(*fields: str) -> str:
    return LOG_FIELD_SEPARATOR.join(fields)


@pytest.mark.parametrize(
    ("requested", "expected"),
    [
        (50, 50),
        (5000, 1000),
        (0, 1),
        (-3, 1),
        (7.9, 7),
        ("12", 12),
        (float("inf"), 1000),
        (float("nan"), 50),
        ("lots", 50),
        (10**400, 1000),
        (-(10**400), 1),
        (Fraction(10**400, 3), 1000),
        (Fraction(-(10**400), 3), 1),
        (None, 50),
    ],
)
def test_clamp_max_count(requested, expected: int) -> None:
    assert clamp_max_count(requested) == expected


def test_parse_log_output_splits_fields_refs_and_parents() -> None:
    raw = "\n".join(
        [
            _record(
                "c3" * 20,
                "c3c3c3c",
                "Merge feature",
                "Ada",
                "2 hours ago",
                "HEAD -> main, origin/main, tag: v1.0",
                "c1" * 20 + " " + "c2" * 20,
            ),
            _record("c1" * 20, "c1c1c1c", "Initial commit", "Ada", "3 days ago", "", ""),
        ]
    )

    commits = parse_log_output(raw)

    assert [commit.subject for commit in commits] == ["Merge feature", "Initial commit"]
    assert commits[0].refs == ["HEAD -> main", "origin/main", "tag: v1.0"]
    assert commits[0].parents == ["c1" * 20, "c2" * 20]
    assert commits[0].is_merge
    assert commits[1].refs == []
    assert commits[1].parents == []
    assert commits[1].is_root


def test_parse_log_output_tolerates_short_records() -> None:
    commits = parse_log_output("abc123" + LOG_FIELD_SEPARATOR + "abc\n\n")

    assert len(commits) == 1
    assert commits[0].hash == "abc123"
    assert commits[0].short_hash == "abc"
    assert commits[0].subject == ""
    assert commits[0].refs == []
    assert commits[0].parents == []


def test_get_commits_clamps_before_invoking_git(fake_runner, tmp_path: Path) -> None:
    fake_runner.outputs["log"] = _record("h", "h", "s", "a", "now", "", "")
    fetcher = HistoryFetcher(fake_runner)

    commits = fetcher.get_commits(tmp_path, max_count=5000)

    assert len(commits) == 1
    _, args = fake_runner.calls[0]
    assert args[:2] == ["log", "--all"]
    assert args[2].startswith("--format=%H" + LOG_FIELD_SEPARATOR)
    assert args[3] == "--max-count=1000"


def test_get_commits_failure_and_empty_output_yield_empty_list(fake_runner, tmp_path: Path) -> None:
    fetcher = HistoryFetcher(fake_runner)
    assert fetcher.get_commits(tmp_path) == []

    fake_runner.outputs["log"] = ""
    assert fetcher.get_commits(tmp_path) == []


def test_is_repo_reflects_command_success(fake_runner, tmp_path: Path) -> None:
    fetcher = HistoryFetcher(fake_runner)
    assert fetcher.is_repo(tmp_path) is False

    fake_runner.outputs["rev-parse"] = "true"
    assert fetcher.is_repo(tmp_path) is True
    assert fake_runner.calls[-1][1] == ["rev-parse", "--is-inside-work-tree"]


def test_directory_without_git_is_not_a_repo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    plain = tmp_path / "plain"
    plain.mkdir()
    # Keep git from discovering a repository above tmp_path.
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    fetcher = HistoryFetcher()

    assert fetcher.is_repo(plain) is False
    assert fetcher.get_commits(plain) == []


def test_get_commits_from_real_repository(git_repo: Path) -> None:
    fetcher = HistoryFetcher()

    assert fetcher.is_repo(git_repo) is True
    commits = fetcher.get_commits(git_repo)

    by_subject = {commit.subject: commit for commit in commits}
    assert set(by_subject) == {"Merge feature", "Add notes", "Add app", "Initial commit"}
    assert len(by_subject["Merge feature"].parents) == 2
    assert any("main" in ref for ref in by_subject["Merge feature"].refs)
    assert by_subject["Initial commit"].is_root
    assert len(fetcher.get_commits(git_repo, max_count=2)) == 2


def test_parse_log_output_keeps_subjects_with_unicode_line_breaks() -> None:
    raw = "\n".join(
        [
            _record(
                "b2" * 20, "b2b2b2b", "fix\u2028pasted note\x0cpage", "Ada", "now", "", "a1" * 20
            ),
            _record("a1" * 20, "a1a1a1a", "root", "Ada", "1 day ago", "", ""),
        ]
    )

    commits = parse_log_output(raw)

    assert len(commits) == 2
    assert commits[0].subject == "fix\u2028pasted note\x0cpage"
    assert commits[0].parents == ["a1" * 20]
    assert commits[1].is_root


def test_get_commits_with_unicode_line_break_subject(git_repo: Path, run_git) -> None:
    (git_repo / "fix.txt").write_text("fix\n", encoding="utf-8")
    run_git(git_repo, "add", "fix.txt")
    run_git(git_repo, "commit", "-q", "-m", "fix\u2028pasted note")

    commits = HistoryFetcher().get_commits(git_repo)

    by_subject = {commit.subject: commit for commit in commits}
    assert len(commits) == 5
    assert set(by_subject) == {
        "fix\u2028pasted note",
        "Merge feature",
        "Add notes",
        "Add app",
        "Initial commit",
    }
    assert by_subject["fix\u2028pasted note"].parents == [by_subject["Merge feature"].hash]
    assert all(len(commit.hash) == 40 for commit in commits)
