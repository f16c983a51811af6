"""
Tests for the fixplan command-line interface.
"""

import json
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog
from typer.testing import CliRunner

from fixplan import __version__
from fixplan.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Undo the handler `plan` installs on the captured stderr stream."""
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.WARNING)


@pytest.fixture
def fixtures_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "fixtures"
    directory.mkdir()
    (directory / "accounts.yml").write_text("acme:\n  name: Acme\ninitech:\n  name: Initech\n")
    (directory / "cards.yml").write_text("card1:\n  title: Logo\n  account: acme\n")
    return directory


def plan_json(output: str) -> dict:
    return json.loads(output)


class TestVersion:
    """Tests for --version."""

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestIdentifyCommand:
    """Tests for `fixplan identify`."""

    def test_integer(self) -> None:
        result = runner.invoke(app, ["identify", "37s"])
        assert result.exit_code == 0
        assert result.stdout.strip() == "6750827"

    def test_uuid(self) -> None:
        result = runner.invoke(app, ["identify", "37s", "--uuid"])
        assert result.exit_code == 0
        assert result.stdout.strip() == "8e3c2561-4b81-5d33-b477-6039452aafc0"


class TestPlanCommand:
    """Tests for `fixplan plan`."""

    def test_seed_json(self, fixtures_dir: Path) -> None:
        result = runner.invoke(app, ["plan", str(fixtures_dir), "--seed", "cards:card1", "--format", "json"])
        assert result.exit_code == 0
        data = plan_json(result.stdout)
        assert data["order"] == ["accounts:acme", "cards:card1"]
        assert data["defer_foreign_keys"] is True

    def test_output_file(self, fixtures_dir: Path, tmp_path: Path) -> None:
        output = tmp_path / "plan.json"
        result = runner.invoke(
            app, ["plan", str(fixtures_dir), "-s", "cards:card1", "--output", str(output)]
        )
        assert result.exit_code == 0
        data = json.loads(output.read_text())
        assert data["fixtures"][1]["fields"][1] == {
            "kind": "sibling",
            "column": "account",
            "target": "accounts:acme",
        }

    def test_exclude_table(self, fixtures_dir: Path) -> None:
        result = runner.invoke(
            app,
            ["plan", str(fixtures_dir), "-s", "cards:card1", "-x", "accounts", "-f", "json"],
        )
        assert result.exit_code == 0
        data = plan_json(result.stdout)
        assert data["order"] == ["cards:card1"]
        assert data["fixtures"][0]["fields"][1]["column"] == "account_id"
        assert data["fixtures"][0]["fields"][1]["identifier"] == 96778814

    def test_all(self, fixtures_dir: Path) -> None:
        result = runner.invoke(app, ["plan", str(fixtures_dir), "--all", "-f", "json"])
        assert result.exit_code == 0
        assert len(plan_json(result.stdout)["fixtures"]) == 3

    def test_source_file(self, fixtures_dir: Path, tmp_path: Path) -> None:
        source = tmp_path / "card_test.rb"
        source.write_text('test "title" do\n  assert_equal "Logo", cards(:card1).title\nend\n')
        result = runner.invoke(
            app, ["plan", str(fixtures_dir), "--source", str(source), "--reverse", "none", "-f", "json"]
        )
        assert result.exit_code == 0
        assert plan_json(result.stdout)["order"] == ["accounts:acme", "cards:card1"]

    def test_source_merges_seeds(self, fixtures_dir: Path, tmp_path: Path) -> None:
        source = tmp_path / "card_test.rb"
        source.write_text("cards(:card1).title\n")
        result = runner.invoke(
            app,
            [
                "plan",
                str(fixtures_dir),
                "--source",
                str(source),
                "-s",
                "accounts:initech",
                "--reverse",
                "none",
                "-f",
                "json",
            ],
        )
        assert result.exit_code == 0
        assert set(plan_json(result.stdout)["order"]) == {
            "accounts:acme",
            "accounts:initech",
            "cards:card1",
        }

    def test_skipped_file_warning_keeps_json_clean(self, fixtures_dir: Path) -> None:
        (fixtures_dir / "broken.yml").write_text("x: [\n")
        result = runner.invoke(app, ["plan", str(fixtures_dir), "--all", "-f", "json"])
        assert result.exit_code == 0
        assert len(json.loads(result.stdout)["fixtures"]) == 3
        assert "broken.yml" in result.stderr

    def test_helper_current_attributes(self, fixtures_dir: Path, tmp_path: Path) -> None:
        helper = tmp_path / "test_helper.rb"
        helper.write_text('setup do\n  Current.account = accounts(:acme)\nend\n')
        result = runner.invoke(
            app,
            ["plan", str(fixtures_dir), "-s", "cards:card1", "--helper", str(helper), "-f", "json"],
        )
        assert result.exit_code == 0
        assert plan_json(result.stdout)["current_attributes"] == [
            {"attribute": "account", "label": "accounts:acme"}
        ]

    def test_console_output(self, fixtures_dir: Path) -> None:
        result = runner.invoke(app, ["plan", str(fixtures_dir), "-s", "cards:card1"])
        assert result.exit_code == 0
        assert "Fixture Plan" in result.stdout
        assert "cards:card1" in result.stdout

    def test_empty_plan_console(self, fixtures_dir: Path) -> None:
        result = runner.invoke(app, ["plan", str(fixtures_dir), "-s", "cards:missing"])
        assert result.exit_code == 0
        assert "no setup needed" in result.stdout

    def test_config_file(self, fixtures_dir: Path, tmp_path: Path) -> None:
        config = tmp_path / "fixplan.yml"
        config.write_text("fixtures_dir: fixtures\nexclude_tables: [accounts]\n")
        result = runner.invoke(app, ["plan", "-c", str(config), "-s", "cards:card1", "-f", "json"])
        assert result.exit_code == 0
        assert plan_json(result.stdout)["order"] == ["cards:card1"]

    def test_missing_directory(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["plan", str(tmp_path / "nope"), "--all"])
        assert result.exit_code == 1
        assert "not found" in result.stdout

    def test_no_seeds(self, fixtures_dir: Path) -> None:
        result = runner.invoke(app, ["plan", str(fixtures_dir)])
        assert result.exit_code == 1
        assert "--seed" in result.stdout

    def test_malformed_seed(self, fixtures_dir: Path) -> None:
        result = runner.invoke(app, ["plan", str(fixtures_dir), "-s", "card1"])
        assert result.exit_code == 1

    def test_invalid_associations(self, fixtures_dir: Path, tmp_path: Path) -> None:
        models = tmp_path / "models.json"
        models.write_text("{broken")
        result = runner.invoke(app, ["plan", str(fixtures_dir), "--all", "-a", str(models)])
        assert result.exit_code == 1

    def test_invalid_config(self, fixtures_dir: Path, tmp_path: Path) -> None:
        config = tmp_path / "fixplan.yml"
        config.write_text("reverse_closure: sometimes\n")
        result = runner.invoke(app, ["plan", str(fixtures_dir), "--all", "-c", str(config)])
        assert result.exit_code == 1


class TestReplacementsCommand:
    """Tests for `fixplan replacements`."""

    def test_replacements(self, fixtures_dir: Path) -> None:
        result = runner.invoke(app, ["replacements", str(fixtures_dir)])
        assert result.exit_code == 0
        assert json.loads(result.stdout) == {
            "accounts:acme": "accounts_acme",
            "accounts:initech": "accounts_initech",
            "cards:card1": "cards_card1",
        }

    def test_skipped_file_warning_keeps_json_clean(self, fixtures_dir: Path) -> None:
        (fixtures_dir / "broken.yml").write_text("x: [\n")
        result = runner.invoke(app, ["replacements", str(fixtures_dir)])
        assert result.exit_code == 0
        assert "cards:card1" in json.loads(result.stdout)
        assert "broken.yml" in result.stderr

    def test_missing_directory(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["replacements", str(tmp_path / "nope")])
        assert result.exit_code == 1


class TestInitCommand:
    """Tests for `fixplan init`."""

    def test_writes_sample(self, tmp_path: Path) -> None:
        output = tmp_path / "fixplan.yml"
        result = runner.invoke(app, ["init", "--output", str(output)])
        assert result.exit_code == 0
        assert "reverse_closure" in output.read_text()

    def test_refuses_overwrite(self, tmp_path: Path) -> None:
        output = tmp_path / "fixplan.yml"
        output.write_text("keep: me\n")
        result = runner.invoke(app, ["init", "--output", str(output)])
        assert result.exit_code == 1
        assert output.read_text() == "keep: me\n"

    def test_force(self, tmp_path: Path) -> None:
        output = tmp_path / "fixplan.yml"
        output.write_text("keep: me\n")
        result = runner.invoke(app, ["init", "--output", str(output), "--force"])
        assert result.exit_code == 0
        assert "reverse_closure" in output.read_text()
