"""
Tests for fixplan.planning.associations module.
"""

import json
from pathlib import Path

import pytest

from fixplan.errors import ConfigError
from fixplan.inflections import table_name_for_model
from fixplan.planning.associations import (
    AssociationEntry,
    AssociationIndex,
    AssociationKind,
)


class TestTableNames:
    """Tests for model -> table naming."""

    @pytest.mark.parametrize(
        ("model", "table"),
        [
            ("Account", "accounts"),
            ("BoardColumn", "board_columns"),
            ("Card::NotNow", "card_not_nows"),
            ("Admin::Reports::DailyStat", "admin_reports_daily_stats"),
            ("Person", "people"),
        ],
    )
    def test_table_name_for_model(self, model: str, table: str) -> None:
        assert table_name_for_model(model) == table


class TestAssociationIndexFromMetadata:
    """Tests for building the index from model metadata."""

    @pytest.fixture
    def metadata(self) -> dict[str, object]:
        return {
            "Card": {
                "associations": [
                    {"name": "account", "type": "belongs_to"},
                    {"name": "creator", "type": "belongs_to", "targetHint": "User"},
                    {"name": "not_now", "type": "has_one", "targetHint": "Card::NotNow"},
                    {"name": "comments", "type": "has_many"},
                ]
            },
            "Card::NotNow": {"associations": [{"name": "card"}]},
            "Account": {"associations": [{"name": "profile", "type": "has_one"}]},
            "Tag": {"associations": [{"name": "cards", "type": "has_and_belongs_to_many"}]},
            "Empty": {},
        }

    def test_belongs_to_by_convention(self, metadata: dict[str, object]) -> None:
        index = AssociationIndex.from_metadata(metadata)
        assert index.get("cards", "account") == AssociationEntry(
            target_table="accounts", kind=AssociationKind.BELONGS_TO
        )

    def test_target_hint(self, metadata: dict[str, object]) -> None:
        index = AssociationIndex.from_metadata(metadata)
        entry = index.get("cards", "creator")
        assert entry is not None
        assert entry.target_table == "users"

    def test_namespaced_hint(self, metadata: dict[str, object]) -> None:
        index = AssociationIndex.from_metadata(metadata)
        entry = index.get("cards", "not_now")
        assert entry is not None
        assert entry.target_table == "card_not_nows"
        assert entry.kind == AssociationKind.HAS_ONE

    def test_namespaced_owner(self, metadata: dict[str, object]) -> None:
        index = AssociationIndex.from_metadata(metadata)
        entry = index.get("card_not_nows", "card")
        assert entry is not None
        assert entry.target_table == "cards"

    def test_type_defaults_to_belongs_to(self, metadata: dict[str, object]) -> None:
        index = AssociationIndex.from_metadata(metadata)
        entry = index.get("card_not_nows", "card")
        assert entry is not None
        assert entry.kind == AssociationKind.BELONGS_TO

    def test_unknown_kinds_skipped(self, metadata: dict[str, object]) -> None:
        index = AssociationIndex.from_metadata(metadata)
        assert index.get("tags", "cards") is None
        assert "tags" not in index.tables

    def test_missing_entries(self, metadata: dict[str, object]) -> None:
        index = AssociationIndex.from_metadata(metadata)
        assert index.get("cards", "title") is None
        assert index.get("users", "account") is None
        assert index.associations_for("users") == {}

    def test_has_one_entries(self, metadata: dict[str, object]) -> None:
        index = AssociationIndex.from_metadata(metadata)
        entries = [(owner, name) for owner, name, _ in index.has_one_entries()]
        assert entries == [("cards", "not_now"), ("accounts", "profile")]

    def test_declares_has_one(self, metadata: dict[str, object]) -> None:
        index = AssociationIndex.from_metadata(metadata)
        assert index.declares_has_one("accounts", "profiles")
        assert not index.declares_has_one("cards", "comments")
        assert not index.declares_has_one("users", "profiles")

    def test_len(self, metadata: dict[str, object]) -> None:
        index = AssociationIndex.from_metadata(metadata)
        assert len(index) == 6

    def test_malformed_entries_ignored(self) -> None:
        index = AssociationIndex.from_metadata(
            {
                "Card": {"associations": [{"type": "belongs_to"}, "account", None]},
                "Board": "not a mapping",
                "User": {"associations": "account"},
            }
        )
        assert len(index) == 0


class TestAssociationIndexFromFile:
    """Tests for loading association metadata files."""

    def test_json_file(self, tmp_path: Path) -> None:
        path = tmp_path / "models.json"
        path.write_text(json.dumps({"Card": {"associations": [{"name": "account"}]}}))
        index = AssociationIndex.from_file(path)
        assert index.get("cards", "account") is not None

    def test_yaml_file_with_models_key(self, tmp_path: Path) -> None:
        path = tmp_path / "models.yml"
        path.write_text(
            "models:\n  Account:\n    associations:\n      - name: profile\n        type: has_one\n"
        )
        index = AssociationIndex.from_file(path)
        entry = index.get("accounts", "profile")
        assert entry is not None
        assert entry.kind == AssociationKind.HAS_ONE

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError):
            AssociationIndex.from_file(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "models.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError):
            AssociationIndex.from_file(path)

    def test_non_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "models.yml"
        path.write_text("- Card\n")
        with pytest.raises(ConfigError):
            AssociationIndex.from_file(path)

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "models.yml"
        path.write_text("")
        assert len(AssociationIndex.from_file(path)) == 0
