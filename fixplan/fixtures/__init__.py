"""
fixplan Fixture Store.

Fixture models, YAML loading and deterministic fixture identities.
"""

from fixplan.fixtures.identity import MAX_ID, identify, identify_integer, identify_uuid
from fixplan.fixtures.loader import FixtureLoader, LoadResult, load_fixtures
from fixplan.fixtures.models import (
    BackReferenceAssignment,
    CurrentAttribute,
    FixtureLabel,
    FixturePlan,
    FixtureRecord,
    FixtureStore,
    ForeignKeyLiteral,
    LiteralField,
    PlannedFixture,
    ResolvedField,
    ResolvedReference,
    SiblingReference,
)

__all__ = [
    # Identity
    "MAX_ID",
    "identify",
    "identify_integer",
    "identify_uuid",
    # Loading
    "FixtureLoader",
    "LoadResult",
    "load_fixtures",
    # Models
    "BackReferenceAssignment",
    "CurrentAttribute",
    "FixtureLabel",
    "FixturePlan",
    "FixtureRecord",
    "FixtureStore",
    "ForeignKeyLiteral",
    "LiteralField",
    "PlannedFixture",
    "ResolvedField",
    "ResolvedReference",
    "SiblingReference",
]
