"""
Seed extraction from Ruby test sources.

Tests reach fixtures through per-table accessors (``cards(:logo)``,
``accounts("37s")``). Scanning a test file for those calls gives the seed
set for its fixture plan. The test helper may also pin global ``Current``
attributes to fixtures.
"""

import re

from fixplan.fixtures.models import CurrentAttribute, FixtureLabel, FixtureStore

# cards(:logo), accounts(:"37s"), accounts("37s"), users :david
_FIXTURE_ACCESSOR = re.compile(
    r"""\b([a-z_][a-z0-9_]*)(?:\(\s*(?::["']?(\w+)["']?|["'](\w+)["'])|\s+:(\w+))"""
)

# Current.account = accounts("37s")
_CURRENT_ASSIGNMENT = re.compile(
    r"""Current\.(\w+)\s*=\s*([a-z_][a-z0-9_]*)\(\s*(?::["']?(\w+)["']?|["'](\w+)["'])\s*\)"""
)


def scan_fixture_references(source: str, store: FixtureStore) -> list[FixtureLabel]:
    """Find fixture accessor calls in Ruby source.

    Only calls naming an existing fixture are kept, de-duplicated in order of
    first occurrence.

    Example:
        >>> scan_fixture_references('card = cards(:logo)', store)
        [FixtureLabel(table='cards', name='logo')]
    """
    found: dict[FixtureLabel, None] = {}
    for match in _FIXTURE_ACCESSOR.finditer(source):
        table = match.group(1)
        name = match.group(2) or match.group(3) or match.group(4)
        if name and store.has_fixture(table, name):
            found.setdefault(FixtureLabel(table=table, name=name), None)
    return list(found)


def parse_current_attributes(source: str) -> list[CurrentAttribute]:
    """Find ``Current.<attr> = <table>("<name>")`` assignments in a test helper."""
    attributes: list[CurrentAttribute] = []
    for match in _CURRENT_ASSIGNMENT.finditer(source):
        attribute, table = match.group(1), match.group(2)
        name = match.group(3) or match.group(4)
        attributes.append(CurrentAttribute(attribute=attribute, label=FixtureLabel(table=table, name=name)))
    return attributes
