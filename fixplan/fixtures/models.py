"""
Pydantic models for fixtures and fixture plans.

Represents fixture labels and records as loaded from YAML, the references
resolved between them, and the plan handed to the code generator: an
insertion order, resolved attribute lists, and has-one back-assignments.
"""

from collections.abc import Iterator, Mapping
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, field_validator

from fixplan.inflections import model_name_for_table


class FixtureLabel(BaseModel):
    """A (table, name) pair uniquely identifying a fixture.

    Example:
        >>> label = FixtureLabel(table="accounts", name="37s")
        >>> label.key
        'accounts_37s'
        >>> label.ref
        'accounts:37s'
    """

    model_config = {"frozen": True, "extra": "forbid"}

    table: str = Field(..., min_length=1, description="Table the fixture belongs to")
    name: str = Field(..., min_length=1, description="Fixture name within its table")

    @property
    def key(self) -> str:
        """Flat identifier used for generated variables."""
        return f"{self.table}_{self.name}"

    @property
    def ref(self) -> str:
        """Symbolic ``table:name`` form used in replacement maps."""
        return f"{self.table}:{self.name}"

    @classmethod
    def parse(cls, ref: str) -> "FixtureLabel":
        """Parse a ``table:name`` string."""
        table, sep, name = ref.partition(":")
        if not sep:
            raise ValueError(f"Fixture reference must look like 'table:name', got '{ref}'")
        return cls(table=table.strip(), name=name.strip())

    def __str__(self) -> str:
        return self.ref


class FixtureRecord(BaseModel):
    """A named fixture with its column values in source order."""

    model_config = {"frozen": True, "extra": "forbid"}

    table: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    fields: dict[str, Any] = Field(default_factory=dict)

    @field_validator("fields", mode="before")
    @classmethod
    def stringify_columns(cls, v: Any) -> Any:
        """YAML may produce non-string keys (``1: x``); columns are always strings."""
        if isinstance(v, Mapping):
            return {str(column): value for column, value in v.items()}
        return v

    @property
    def label(self) -> FixtureLabel:
        return FixtureLabel(table=self.table, name=self.name)


class FixtureStore:
    """Read-only collection of fixture tables.

    Maps table -> (fixture name -> FixtureRecord), preserving file and
    record order.

    Example:
        >>> store = FixtureStore.from_dict({"accounts": {"acme": {"name": "Acme"}}})
        >>> store.has_fixture("accounts", "acme")
        True
    """

    def __init__(self, tables: Mapping[str, Mapping[str, FixtureRecord]] | None = None) -> None:
        self._tables: dict[str, dict[str, FixtureRecord]] = {
            table: dict(records) for table, records in (tables or {}).items()
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping[str, Mapping[str, Any] | None]]) -> "FixtureStore":
        """Build a store from plain ``{table: {name: {column: value}}}`` data."""
        tables: dict[str, dict[str, FixtureRecord]] = {}
        for table, fixtures in data.items():
            tables[table] = {
                str(name): FixtureRecord(table=table, name=str(name), fields=dict(fields or {}))
                for name, fields in fixtures.items()
            }
        return cls(tables)

    def has_table(self, table: str) -> bool:
        return table in self._tables

    def has_fixture(self, table: str, name: str) -> bool:
        return name in self._tables.get(table, {})

    def get(self, label: FixtureLabel) -> FixtureRecord | None:
        return self._tables.get(label.table, {}).get(label.name)

    def table(self, table: str) -> dict[str, FixtureRecord]:
        """Records of one table (a copy); empty for unknown tables."""
        return dict(self._tables.get(table, {}))

    @property
    def tables(self) -> list[str]:
        return list(self._tables)

    def records(self) -> Iterator[FixtureRecord]:
        """Iterate every record, table by table, in source order."""
        for records in self._tables.values():
            yield from records.values()

    def labels(self) -> list[FixtureLabel]:
        return [record.label for record in self.records()]

    def replacements(self) -> dict[str, str]:
        """Universal ``"table:name" -> "table_name"`` map over the whole store."""
        return {record.label.ref: record.label.key for record in self.records()}

    def __len__(self) -> int:
        return sum(len(records) for records in self._tables.values())

    def __contains__(self, label: object) -> bool:
        return isinstance(label, FixtureLabel) and self.has_fixture(label.table, label.name)

    def __repr__(self) -> str:
        return f"FixtureStore({len(self._tables)} tables, {len(self)} fixtures)"


class ResolvedReference(BaseModel):
    """A field value that names another fixture."""

    model_config = {"frozen": True, "extra": "forbid"}

    target_table: str
    target_name: str
    is_uuid_form: bool = Field(
        default=False,
        description="Value used the '<name>_uuid' convention for UUID foreign keys",
    )

    @property
    def label(self) -> FixtureLabel:
        return FixtureLabel(table=self.target_table, name=self.target_name)


# =============================================================================
# Resolved fields
# =============================================================================


class LiteralField(BaseModel):
    """A column value passed through unchanged."""

    model_config = {"frozen": True, "extra": "forbid"}

    kind: Literal["literal"] = "literal"
    column: str
    value: Any = None


class SiblingReference(BaseModel):
    """An association pointing at another fixture created by the same plan."""

    model_config = {"frozen": True, "extra": "forbid"}

    kind: Literal["sibling"] = "sibling"
    column: str
    target: FixtureLabel


class ForeignKeyLiteral(BaseModel):
    """A foreign-key column set to the synthesized id of an unplanned fixture."""

    model_config = {"frozen": True, "extra": "forbid"}

    kind: Literal["foreign_key"] = "foreign_key"
    column: str = Field(..., description="Foreign-key column, '<association>_id'")
    target: FixtureLabel
    identifier: str | int


ResolvedField = Annotated[
    LiteralField | SiblingReference | ForeignKeyLiteral,
    Field(discriminator="kind"),
]


class BackReferenceAssignment(BaseModel):
    """A has-one pointer set on the parent once both fixtures exist."""

    model_config = {"frozen": True, "extra": "forbid"}

    parent: FixtureLabel
    association: str
    child: FixtureLabel


class CurrentAttribute(BaseModel):
    """A global ``Current.<attribute> = <fixture>`` assignment from the test helper."""

    model_config = {"frozen": True, "extra": "forbid"}

    attribute: str
    label: FixtureLabel


class PlannedFixture(BaseModel):
    """One fixture creation step."""

    model_config = {"frozen": True, "extra": "forbid"}

    label: FixtureLabel
    model_name: str
    fields: list[ResolvedField] = Field(default_factory=list)


class FixturePlan(BaseModel):
    """Ordered fixture materialization plan consumed by the code generator.

    Fixtures are listed in insertion order. The whole batch should be
    wrapped in deferred foreign-key enforcement when ``defer_foreign_keys``
    is set, since even a sorted order can violate constraints on
    self-referential or cyclic schemas. Back references are applied after
    every fixture has been created.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    fixtures: list[PlannedFixture] = Field(default_factory=list)
    back_references: list[BackReferenceAssignment] = Field(default_factory=list)
    current_attributes: list[CurrentAttribute] = Field(default_factory=list)
    defer_foreign_keys: bool = False

    @property
    def order(self) -> list[FixtureLabel]:
        return [fixture.label for fixture in self.fixtures]

    @property
    def resolved_fields(self) -> dict[FixtureLabel, list[ResolvedField]]:
        return {fixture.label: list(fixture.fields) for fixture in self.fixtures}

    @property
    def is_empty(self) -> bool:
        """An empty plan means no setup is needed."""
        return not self.fixtures

    @property
    def tables(self) -> list[str]:
        """Tables in insertion order."""
        seen: dict[str, None] = {}
        for fixture in self.fixtures:
            seen.setdefault(fixture.label.table, None)
        return list(seen)

    @property
    def replacements(self) -> dict[str, str]:
        """``"table:name" -> "table_name"`` for every planned fixture."""
        return {fixture.label.ref: fixture.label.key for fixture in self.fixtures}

    @property
    def fixture_models(self) -> list[str]:
        """Model classes the generated code must import."""
        return [model_name_for_table(table) for table in self.tables]

    def fields_for(self, label: FixtureLabel) -> list[ResolvedField]:
        for fixture in self.fixtures:
            if fixture.label == label:
                return list(fixture.fields)
        raise KeyError(label.ref)

    def to_dict(self) -> dict[str, Any]:
        """Convert the plan to a JSON-serializable dictionary."""
        return {
            "order": [label.ref for label in self.order],
            "defer_foreign_keys": self.defer_foreign_keys,
            "fixtures": [
                {
                    "label": fixture.label.ref,
                    "variable": fixture.label.key,
                    "model": fixture.model_name,
                    "fields": [_field_to_dict(f) for f in fixture.fields],
                }
                for fixture in self.fixtures
            ],
            "back_references": [
                {
                    "parent": ref.parent.ref,
                    "association": ref.association,
                    "child": ref.child.ref,
                }
                for ref in self.back_references
            ],
            "current_attributes": [
                {"attribute": attr.attribute, "label": attr.label.ref}
                for attr in self.current_attributes
            ],
            "replacements": self.replacements,
            "fixture_models": self.fixture_models,
        }


def _field_to_dict(resolved: LiteralField | SiblingReference | ForeignKeyLiteral) -> dict[str, Any]:
    if isinstance(resolved, SiblingReference):
        return {"kind": resolved.kind, "column": resolved.column, "target": resolved.target.ref}
    if isinstance(resolved, ForeignKeyLiteral):
        return {
            "kind": resolved.kind,
            "column": resolved.column,
            "target": resolved.target.ref,
            "identifier": resolved.identifier,
        }
    return {"kind": resolved.kind, "column": resolved.column, "value": resolved.value}
