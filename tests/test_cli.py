"""Tests for the command line interface."""

import json

import pytest
import yaml
from click.testing import CliRunner

from filo import __version__
from filo.cli import cli
from filo.engine import FiloEngine


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep the default config and ruleset locations inside tmp_path."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def workspace(tmp_path):
    source = tmp_path / "src"
    source.mkdir()
    for name in ["a.txt", "b.txt", "c.jpg"]:
        (source / name).write_text(name)

    rules_file = tmp_path / "rules.yaml"
    rules_file.write_text(yaml.safe_dump({
        "version": 1,
        "rulesets": [
            {
                "id": "text",
                "name": "Text",
                "source_dir": str(source),
                "destination_dir": str(tmp_path / "dst"),
                "action": "move",
                "filters": {"extensions": [".txt"]},
            },
            {
                "id": "off",
                "name": "Off",
                "enabled": False,
                "source_dir": str(source),
                "destination_dir": str(tmp_path / "pics"),
                "filters": {"extensions": [".jpg"]},
            },
        ],
    }))
    return source, tmp_path / "dst", rules_file


class TestGroup:
    """Test group-level options."""

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_bad_config(self, runner, tmp_path):
        config = tmp_path / "config.json"
        config.write_text("{broken")

        result = runner.invoke(cli, ["--config", str(config), "rules"])

        assert result.exit_code == 1
        assert "Cannot read configuration" in result.output

    def test_config_rules_file_used(self, runner, tmp_path, workspace):
        _, _, rules_file = workspace
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"rules_file": str(rules_file)}))

        result = runner.invoke(cli, ["--config", str(config), "rules"])

        assert result.exit_code == 0
        assert "Text" in result.output


class TestRun:
    """Test the run command."""

    def test_run_all_and_undo_report(self, runner, tmp_path, workspace):
        source, destination, rules_file = workspace
        report = tmp_path / "report.json"

        result = runner.invoke(cli, ["run", "--all", "--rules-file", str(rules_file),
                                     "--report", str(report)])

        assert result.exit_code == 0, result.output
        assert "Completed" in result.output
        assert (destination / "a.txt").exists()
        assert (source / "c.jpg").exists()
        data = json.loads(report.read_text())
        assert [r["rule_id"] for r in data["results"]] == ["text"]
        assert len(data["results"][0]["succeeded"]) == 2

        result = runner.invoke(cli, ["undo", "--report", str(report)])

        assert result.exit_code == 0, result.output
        assert (source / "a.txt").exists()
        assert (source / "b.txt").exists()
        assert not (destination / "a.txt").exists()

    def test_run_by_id(self, runner, workspace):
        source, destination, rules_file = workspace

        result = runner.invoke(cli, ["run", "text", "--rules-file", str(rules_file)])

        assert result.exit_code == 0, result.output
        assert (destination / "b.txt").exists()

    def test_run_needs_selection(self, runner, workspace):
        _, _, rules_file = workspace

        result = runner.invoke(cli, ["run", "--rules-file", str(rules_file)])

        assert result.exit_code == 1
        assert "--all" in result.output

    def test_run_unknown_id(self, runner, workspace):
        _, _, rules_file = workspace

        result = runner.invoke(cli, ["run", "missing", "--rules-file", str(rules_file)])

        assert result.exit_code == 1
        assert "Ruleset not found" in result.output

    def test_failed_rule_exit_code(self, runner, tmp_path):
        rules_file = tmp_path / "rules.yaml"
        rules_file.write_text(yaml.safe_dump({"rulesets": [{
            "id": "x",
            "name": "Broken",
            "source_dir": str(tmp_path / "nowhere"),
            "destination_dir": str(tmp_path / "out"),
            "filters": {"extensions": [".txt"]},
        }]}))

        result = runner.invoke(cli, ["run", "--all", "--rules-file", str(rules_file)])

        assert result.exit_code == 1
        assert "Failed" in result.output

    def test_report_dir_from_config(self, runner, tmp_path, workspace):
        _, _, rules_file = workspace
        reports = tmp_path / "reports"
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"rules_file": str(rules_file), "report_dir": str(reports)}))

        result = runner.invoke(cli, ["--config", str(config), "run", "--all"])

        assert result.exit_code == 0, result.output
        assert len(list(reports.glob("filo-report-*.json"))) == 1

    def test_engine_crash_propagates(self, runner, workspace, monkeypatch):
        _, _, rules_file = workspace

        def explode(self, rules, on_progress=None, cancel_event=None):
            raise RuntimeError("boom")

        monkeypatch.setattr(FiloEngine, "execute_all", explode)

        result = runner.invoke(cli, ["run", "--all", "--rules-file", str(rules_file)])

        assert result.exit_code != 0
        assert isinstance(result.exception, RuntimeError)
        assert "Results" not in result.output


class TestUndo:
    """Test the undo command."""

    def test_single_file(self, runner, tmp_path):
        moved = tmp_path / "moved.txt"
        moved.write_text("x")

        result = runner.invoke(cli, ["undo", str(tmp_path / "orig.txt"), str(moved)])

        assert result.exit_code == 0, result.output
        assert "restored" in result.output
        assert (tmp_path / "orig.txt").exists()

    def test_single_file_missing(self, runner, tmp_path):
        result = runner.invoke(cli, ["undo", str(tmp_path / "orig.txt"), str(tmp_path / "gone.txt")])

        assert result.exit_code == 1
        assert "1 of 1 files could not be restored" in result.output

    def test_needs_arguments(self, runner):
        result = runner.invoke(cli, ["undo"])
        assert result.exit_code == 1

    def test_bad_report(self, runner, tmp_path):
        report = tmp_path / "report.json"
        report.write_text("{}")

        result = runner.invoke(cli, ["undo", "--report", str(report)])

        assert result.exit_code == 1
        assert "Cannot read report" in result.output


class TestListFiles:
    """Test the list-files command."""

    def test_lists(self, runner, workspace):
        source, _, _ = workspace

        result = runner.invoke(cli, ["list-files", str(source)])

        assert result.exit_code == 0
        assert result.output.split() == ["a.txt", "b.txt", "c.jpg"]

    def test_missing(self, runner, tmp_path):
        result = runner.invoke(cli, ["list-files", str(tmp_path / "missing")])

        assert result.exit_code == 1
        assert "does not exist" in result.output


class TestPattern:
    """Test the test-pattern command."""

    def test_filenames(self, runner):
        result = runner.invoke(cli, ["test-pattern", r"^(?P<id>\d+)_", "12_a.txt", "b.txt"])

        assert result.exit_code == 0, result.output
        assert "id=12" in result.output
        assert "1 of 2 filenames matched" in result.output

    def test_source_directory(self, runner, workspace):
        source, _, _ = workspace

        result = runner.invoke(cli, ["test-pattern", r"\.txt$", "--source", str(source)])

        assert result.exit_code == 0, result.output
        assert "2 of 3 filenames matched" in result.output

    def test_destination(self, runner):
        result = runner.invoke(cli, ["test-pattern", r"^(?P<id>\d+)_", "7_a", "--destination", "/o/{id}"])

        assert result.exit_code == 0, result.output
        assert "/o/7" in result.output

    def test_invalid_regex(self, runner):
        result = runner.invoke(cli, ["test-pattern", "(", "a"])

        assert result.exit_code == 1
        assert "invalid regex" in result.output


class TestRulesAndValidate:
    """Test ruleset inspection commands."""

    def test_rules(self, runner, workspace):
        _, _, rules_file = workspace

        result = runner.invoke(cli, ["rules", "--rules-file", str(rules_file)])

        assert result.exit_code == 0
        assert "Text" in result.output
        assert "Off" in result.output

    def test_rules_empty(self, runner, tmp_path):
        result = runner.invoke(cli, ["rules", "--rules-file", str(tmp_path / "none.yaml")])

        assert result.exit_code == 0
        assert "No rulesets" in result.output

    def test_validate_ok(self, runner, workspace):
        _, _, rules_file = workspace

        result = runner.invoke(cli, ["validate", "--rules-file", str(rules_file)])

        assert result.exit_code == 0
        assert "2 rulesets are valid" in result.output

    def test_validate_invalid(self, runner, tmp_path):
        rules_file = tmp_path / "rules.yaml"
        rules_file.write_text(yaml.safe_dump({"rulesets": [
            {"id": "x", "name": "NoFilters", "source_dir": "/a", "destination_dir": "/b"},
        ]}))

        result = runner.invoke(cli, ["validate", "--rules-file", str(rules_file)])

        assert result.exit_code == 1
        assert "1 invalid rulesets" in result.output

    def test_validate_unparseable(self, runner, tmp_path):
        rules_file = tmp_path / "rules.yaml"
        rules_file.write_text("rulesets: [oops")

        result = runner.invoke(cli, ["validate", "--rules-file", str(rules_file)])

        assert result.exit_code == 1
        assert "YAML error" in result.output
