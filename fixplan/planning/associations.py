"""
Association index built from model metadata.

The Ruby-to-JavaScript model filters report, per model class, the
associations it declares. This module turns that metadata into
table -> association name -> AssociationEntry, the form the reference
resolver needs. The index is advisory: columns without an entry fall back
to naming conventions.
"""

import json
from collections.abc import Iterator, Mapping
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from fixplan.errors import ConfigError
from fixplan.inflections import pluralize, table_name_for_model
from fixplan.logging import get_logger

logger = get_logger(__name__)


class AssociationKind(str, Enum):
    """Association macros that affect fixture resolution."""

    BELONGS_TO = "belongs_to"
    HAS_MANY = "has_many"
    HAS_ONE = "has_one"


class AssociationEntry(BaseModel):
    """Target table and kind of one declared association."""

    model_config = {"frozen": True, "extra": "forbid"}

    target_table: str = Field(..., min_length=1)
    kind: AssociationKind = AssociationKind.BELONGS_TO


class AssociationIndex:
    """Read-only table -> association -> AssociationEntry lookup.

    Example:
        >>> index = AssociationIndex.from_metadata({
        ...     "Card": {"associations": [{"name": "account", "type": "belongs_to"}]},
        ... })
        >>> index.get("cards", "account").target_table
        'accounts'
    """

    def __init__(self, entries: Mapping[str, Mapping[str, AssociationEntry]] | None = None) -> None:
        self._entries: dict[str, dict[str, AssociationEntry]] = {
            table: dict(assocs) for table, assocs in (entries or {}).items() if assocs
        }

    @classmethod
    def from_metadata(cls, models: Mapping[str, Any]) -> "AssociationIndex":
        """Build an index from ``{ModelName: {"associations": [...]}}`` metadata.

        Each association is ``{"name": ..., "type": ..., "targetHint": ...}``.
        The target table comes from ``targetHint`` (a model class name) when
        present, otherwise from pluralizing the association name. Models and
        hints may be namespaced (``Card::NotNow`` -> ``card_not_nows``).
        """
        entries: dict[str, dict[str, AssociationEntry]] = {}

        for model_name, model_meta in models.items():
            if not isinstance(model_meta, Mapping):
                continue
            associations = model_meta.get("associations")
            if not isinstance(associations, list):
                continue

            table_assocs: dict[str, AssociationEntry] = {}
            for assoc in associations:
                if not isinstance(assoc, Mapping) or not assoc.get("name"):
                    continue
                name = str(assoc["name"])
                kind_value = assoc.get("type") or AssociationKind.BELONGS_TO.value
                try:
                    kind = AssociationKind(kind_value)
                except ValueError:
                    logger.debug(
                        "association_kind_ignored", model=model_name, association=name, kind=kind_value
                    )
                    continue

                hint = assoc.get("targetHint") or assoc.get("model")
                target_table = table_name_for_model(str(hint)) if hint else pluralize(name)
                table_assocs[name] = AssociationEntry(target_table=target_table, kind=kind)

            if table_assocs:
                entries.setdefault(table_name_for_model(str(model_name)), {}).update(table_assocs)

        return cls(entries)

    @classmethod
    def from_file(cls, path: str | Path) -> "AssociationIndex":
        """Load model metadata from a JSON or YAML file.

        The file may hold the models mapping directly or under a ``models`` key.

        Raises:
            ConfigError: If the file is missing or malformed.
        """
        path = Path(path)
        if not path.exists():
            raise ConfigError(path, "association metadata file not found")

        try:
            text = path.read_text(encoding="utf-8")
            data = json.loads(text) if path.suffix == ".json" else yaml.safe_load(text)
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigError(path, str(e)) from e

        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigError(path, "expected a mapping of model metadata")
        models = data.get("models", data)
        if not isinstance(models, Mapping):
            raise ConfigError(path, "'models' must be a mapping")
        return cls.from_metadata(models)

    def get(self, owner_table: str, association: str) -> AssociationEntry | None:
        return self._entries.get(owner_table, {}).get(association)

    def associations_for(self, owner_table: str) -> dict[str, AssociationEntry]:
        return dict(self._entries.get(owner_table, {}))

    def has_one_entries(self) -> Iterator[tuple[str, str, AssociationEntry]]:
        """Yield ``(owner_table, association, entry)`` for every has_one association."""
        for owner_table, assocs in self._entries.items():
            for name, entry in assocs.items():
                if entry.kind == AssociationKind.HAS_ONE:
                    yield owner_table, name, entry

    def declares_has_one(self, owner_table: str, target_table: str) -> bool:
        """Check whether ``owner_table`` has a has_one association onto ``target_table``."""
        return any(
            entry.kind == AssociationKind.HAS_ONE and entry.target_table == target_table
            for entry in self._entries.get(owner_table, {}).values()
        )

    @property
    def tables(self) -> list[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return sum(len(assocs) for assocs in self._entries.values())

    def __repr__(self) -> str:
        return f"AssociationIndex({len(self._entries)} tables, {len(self)} associations)"
