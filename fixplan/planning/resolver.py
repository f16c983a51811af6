"""
Reference resolution for fixture field values.

Fixture files are untyped: whether ``account: acme`` names another fixture
depends on the associations declared on the model and on Rails naming
conventions. Resolution is an ordered chain of checks:

1. Polymorphic form ``"<ref> (<TypeName>)"``: the type names the table.
2. Association index entry for the column, else the pluralized column name
   when such a table exists (never for ``id`` or ``*_id`` columns).
3. A fixture literally named by the value.
4. A ``<name>_uuid`` value naming an existing fixture (UUID foreign key).

Anything else is a literal.
"""

import re
from collections.abc import Iterator
from typing import Any

from fixplan.fixtures.models import FixtureRecord, FixtureStore, ResolvedReference
from fixplan.inflections import pluralize, table_name_for_type
from fixplan.planning.associations import AssociationIndex

POLYMORPHIC_PATTERN = re.compile(r"^(\S+)\s+\((\w+)\)$")
UUID_SUFFIX = "_uuid"


class ReferenceResolver:
    """Decide whether a field value denotes another fixture.

    Stateless apart from the store and index it reads, so one resolver can
    be shared by the collector, sequencer and emitter of a planning run.

    Example:
        >>> resolver = ReferenceResolver(store, index)
        >>> resolver.resolve("acme", "account", "cards")
        ResolvedReference(target_table='accounts', target_name='acme', is_uuid_form=False)
    """

    def __init__(self, store: FixtureStore, index: AssociationIndex | None = None) -> None:
        self.store = store
        self.index = index or AssociationIndex()

    def resolve(self, value: Any, column: str, owner_table: str) -> ResolvedReference | None:
        """Resolve one field value.

        Args:
            value: The raw field value. Only strings can be references.
            column: Column name the value is stored under.
            owner_table: Table of the fixture holding the value.

        Returns:
            The referenced fixture, or None if the value is a literal.
        """
        if not isinstance(value, str):
            return None

        polymorphic = POLYMORPHIC_PATTERN.match(value)
        if polymorphic:
            ref, type_name = polymorphic.groups()
            resolved = self.match_fixture(ref, table_name_for_type(type_name))
            if resolved is not None:
                return resolved

        target_table = self.target_table(column, owner_table)
        if target_table is None:
            return None
        return self.match_fixture(value, target_table)

    def target_table(self, column: str, owner_table: str) -> str | None:
        """Candidate table a column may point into, or None."""
        entry = self.index.get(owner_table, column)
        if entry is not None:
            return entry.target_table

        if column == "id" or column.endswith("_id"):
            return None
        convention_table = pluralize(column)
        if self.store.has_table(convention_table):
            return convention_table
        return None

    def match_fixture(self, value: str, table: str) -> ResolvedReference | None:
        """Match a value against fixture names of one table."""
        if self.store.has_fixture(table, value):
            return ResolvedReference(target_table=table, target_name=value)

        if value.endswith(UUID_SUFFIX):
            stripped = value[: -len(UUID_SUFFIX)]
            if stripped and self.store.has_fixture(table, stripped):
                return ResolvedReference(target_table=table, target_name=stripped, is_uuid_form=True)
        return None

    def references(self, record: FixtureRecord) -> Iterator[tuple[str, ResolvedReference]]:
        """Yield ``(column, reference)`` for every resolvable field of a record."""
        for column, value in record.fields.items():
            resolved = self.resolve(value, column, record.table)
            if resolved is not None:
                yield column, resolved
