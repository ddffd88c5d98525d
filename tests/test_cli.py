"""Tests for the docforge CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

pytest.importorskip("tree_sitter_typescript")

from docforge import cli
from tests._fixtures.repo_builder import RepoBuilder

GOOD_DOC = (
    "# Authentication\n\nThe authentication feature signs users in and keeps their "
    "sessions alive.\n"
)


class FakeResponse:
    def __init__(self, payload):
        self._payload = payload

    def read(self):
        return json.dumps(self._payload).encode("utf-8")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


def _write_repo(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "src/auth/login.ts": """
                export function login(user: string): boolean {
                  return user.length > 0;
                }
            """,
            "README.md": "# Demo\n",
        }
    )


def test_outline_prints_symbol_json(repo_builder: RepoBuilder, capsys) -> None:
    _write_repo(repo_builder)

    cli.main(["outline", str(repo_builder.path())])

    output = json.loads(capsys.readouterr().out)
    assert output == [
        {
            "path": "src/auth/login.ts",
            "entries": [
                {"type": "exported_function", "name": "login", "startLine": 1, "endLine": 3}
            ],
        }
    ]


def test_classify_prints_feature_groups(repo_builder: RepoBuilder, capsys) -> None:
    _write_repo(repo_builder)

    cli.main(["classify", str(repo_builder.path())])

    assert json.loads(capsys.readouterr().out) == {"Authentication": ["src/auth/login.ts"]}


def test_generate_writes_documentation(repo_builder: RepoBuilder, monkeypatch, capsys) -> None:
    _write_repo(repo_builder)
    calls = []

    def fake_urlopen(request, timeout=None):
        calls.append(json.loads(request.data.decode("utf-8")))
        return FakeResponse({"choices": [{"message": {"content": GOOD_DOC}}]})

    monkeypatch.setattr("docforge.llm.runner.urlopen", fake_urlopen)
    out_dir = repo_builder.path() / "site"

    cli.main(["generate", str(repo_builder.path()), "--out", str(out_dir), "--no-cache"])

    assert len(calls) == 1
    assert (out_dir / "authentication" / "authentication.md").exists()
    assert (out_dir / "sidebar.json").exists()
    assert "Documentation written to" in capsys.readouterr().out
    assert not (repo_builder.path() / ".docforge").exists()


def test_generate_persists_cache_by_default(repo_builder: RepoBuilder, monkeypatch) -> None:
    _write_repo(repo_builder)
    monkeypatch.setattr(
        "docforge.llm.runner.urlopen",
        lambda request, timeout=None: FakeResponse(
            {"choices": [{"message": {"content": GOOD_DOC}}]}
        ),
    )

    cli.main(["generate", str(repo_builder.path())])

    assert (repo_builder.path() / ".docforge" / "generation_cache.json").exists()
    assert (repo_builder.path() / "docs" / "overview.md").exists()


def test_generate_reports_failed_job(repo_builder: RepoBuilder, capsys) -> None:
    repo_builder.write({"README.md": "# Nothing to document\n"})

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["generate", str(repo_builder.path()), "--no-cache"])

    assert excinfo.value.code == 1
    assert "docforge generate failed" in capsys.readouterr().err


def test_missing_repository_exits_with_error(tmp_path: Path, capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["outline", str(tmp_path / "missing")])

    assert excinfo.value.code == 1
    assert "not found" in capsys.readouterr().err


def test_invalid_config_exits_with_error(repo_builder: RepoBuilder, capsys) -> None:
    repo_builder.write({".docforge.yml": "generation:\n  mode: chapter\n"})

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["classify", str(repo_builder.path())])

    assert excinfo.value.code == 1
    assert "Invalid configuration" in capsys.readouterr().err


def test_log_file_option_writes_log(repo_builder: RepoBuilder, tmp_path: Path) -> None:
    _write_repo(repo_builder)
    log_file = tmp_path / "docforge.log"
    try:
        cli.main(["--log-file", str(log_file), "classify", str(repo_builder.path())])
    finally:
        cli.configure_logging()

    assert log_file.exists()
