"""Tests for the rowmap CLI (generate / describe)."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from rowmap.cli.app import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _quiet_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ROWMAP_LOG_LEVEL", "ERROR")
    for name in ("TAG", "QUALIFY_COLUMNS", "FORMATTER"):
        monkeypatch.delenv(f"ROWMAP_{name}", raising=False)


class TestVersion:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert result.output.startswith("rowmap ")

    def test_no_args_shows_help(self) -> None:
        result = runner.invoke(app, [])
        assert "generate" in result.output
        assert "describe" in result.output


class TestLogLevel:
    def test_bad_log_level(self) -> None:
        result = runner.invoke(app, ["--log-level", "bogus", "describe", "sample_records:Person"])
        assert result.exit_code == 1
        assert "CONFIG" in result.output
        assert "Traceback" not in result.output

    def test_log_level_option(self) -> None:
        result = runner.invoke(app, ["--log-level", "debug", "describe", "sample_records:Person"])
        assert result.exit_code == 0, result.output


class TestDescribe:
    def test_table_output(self) -> None:
        result = runner.invoke(app, ["describe", "sample_records:Person"])
        assert result.exit_code == 0, result.output
        assert "created_at" in result.output
        assert "person" in result.output

    def test_json_output(self) -> None:
        result = runner.invoke(app, ["describe", "sample_records:Account", "--table", "account", "--json"])
        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["table"] == "account"
        assert payload["primary_keys"] == ["account_id"]
        assert payload["auto_increment_column"] == "account_id"
        attributes = [f["attribute"] for f in payload["fields"]]
        assert "audit.created_at" in attributes
        assert "owner.owner_name" in attributes

    def test_custom_tag(self) -> None:
        result = runner.invoke(app, ["describe", "sample_records:Person", "--tag", "nope", "--json"])
        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["auto_increment_column"] == ""
        assert payload["primary_keys"] == ["id"]

    def test_malformed_target(self) -> None:
        result = runner.invoke(app, ["describe", "sample_records.Person"])
        assert result.exit_code == 2

    def test_unknown_module(self) -> None:
        result = runner.invoke(app, ["describe", "no_such_module_xyz:Person"])
        assert result.exit_code == 2

    def test_unknown_attribute(self) -> None:
        result = runner.invoke(app, ["describe", "sample_records:Nobody"])
        assert result.exit_code == 2

    def test_not_a_dataclass(self) -> None:
        result = runner.invoke(app, ["describe", "rowmap.core.rows:Row"])
        assert result.exit_code == 1
        assert "SHAPE" in result.output


class TestGenerate:
    def test_writes_module(self, tmp_path: Path) -> None:
        out = tmp_path / "person_gen.py"
        result = runner.invoke(
            app,
            ["generate", "sample_records:Person", "--table", "person", "--out", str(out)],
        )
        assert result.exit_code == 0, result.output
        assert f"wrote {out}" in result.output
        source = out.read_text(encoding="utf-8")
        assert "class PersonRecord(Person):" in source
        assert "from sample_records import Person" in source

    def test_options(self, tmp_path: Path) -> None:
        out = tmp_path / "nested" / "people.py"
        result = runner.invoke(
            app,
            [
                "generate",
                "sample_records:Person",
                "-t",
                "people",
                "-o",
                str(out),
                "--class-name",
                "People",
                "--module",
                "app.models",
                "--qualify",
            ],
        )
        assert result.exit_code == 0, result.output
        source = out.read_text(encoding="utf-8")
        assert "class People(Person):" in source
        assert "from app.models import Person" in source
        assert "'people.id'," in source

    def test_qualify_from_environment(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ROWMAP_QUALIFY_COLUMNS", "true")
        out = tmp_path / "person_gen.py"
        result = runner.invoke(app, ["generate", "sample_records:Person", "-t", "person", "-o", str(out)])
        assert result.exit_code == 0, result.output
        assert "'person.id'," in out.read_text(encoding="utf-8")

    def test_reserved_field_name(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["generate", "sample_records:Shadowing", "-o", str(tmp_path / "x.py")])
        assert result.exit_code == 1
        assert not (tmp_path / "x.py").exists()

    def test_unknown_formatter(self, tmp_path: Path) -> None:
        result = runner.invoke(
            app,
            ["generate", "sample_records:Person", "-o", str(tmp_path / "x.py"), "--formatter", "black"],
        )
        assert result.exit_code == 1
        assert "CONFIG" in result.output
