"""
Dependency collection for fixture plans.

Starting from a seed set, builds the universe of fixtures a plan must
create:

1. Forward closure: every fixture referenced by a universe member.
2. Reverse closure: fixtures elsewhere in the store that point back at a
   universe member (configurable, see ``ReverseClosure``), iterated to a
   fixed point. Each admitted fixture brings its own forward references.
3. Has-one back-assignments for parent/child pairs that both made it in.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

from fixplan.config import PlannerConfig, ReverseClosure
from fixplan.fixtures.models import (
    BackReferenceAssignment,
    FixtureLabel,
    FixtureRecord,
    FixtureStore,
)
from fixplan.inflections import foreign_key_column
from fixplan.logging import get_logger
from fixplan.planning.resolver import ReferenceResolver

logger = get_logger(__name__)


@dataclass
class Collection:
    """The fixtures a plan must materialize, in admission order."""

    universe: list[FixtureLabel] = field(default_factory=list)
    back_references: list[BackReferenceAssignment] = field(default_factory=list)
    reverse_passes: int = 0

    def __post_init__(self) -> None:
        self._members = frozenset(self.universe)

    def __contains__(self, label: object) -> bool:
        return label in self._members

    def __len__(self) -> int:
        return len(self.universe)

    @property
    def is_empty(self) -> bool:
        return not self.universe

    @property
    def tables(self) -> list[str]:
        """Tables in first-admission order."""
        return list(dict.fromkeys(label.table for label in self.universe))

    def labels_for(self, table: str) -> list[FixtureLabel]:
        return [label for label in self.universe if label.table == table]


class DependencyCollector:
    """
    Collect the closure of fixtures reachable from a seed set.

    Usage:
        collector = DependencyCollector(resolver)
        collection = collector.collect([FixtureLabel(table="cards", name="logo")])

        # Or every fixture in the store, as "load all fixtures" test setups do
        collection = collector.collect_all()
    """

    def __init__(self, resolver: ReferenceResolver, config: PlannerConfig | None = None):
        self.resolver = resolver
        self.config = config or PlannerConfig()

    @property
    def store(self) -> FixtureStore:
        return self.resolver.store

    def collect(self, seeds: Iterable[FixtureLabel]) -> Collection:
        """Collect the universe for an explicit seed set.

        Seeds that name no fixture in the store, or an excluded table, are
        ignored.
        """
        universe: dict[FixtureLabel, None] = {}
        for seed in seeds:
            if self._admissible(seed):
                universe.setdefault(seed, None)
            else:
                logger.debug("seed_ignored", fixture=seed.ref)

        self._forward_closure(list(universe), universe)
        passes = self._reverse_closure(universe)
        back_references = self._has_one_back_references(universe)

        return Collection(
            universe=list(universe),
            back_references=back_references,
            reverse_passes=passes,
        )

    def collect_all(self) -> Collection:
        """Collect every fixture in the store."""
        return self.collect(self.store.labels())

    def _admissible(self, label: FixtureLabel) -> bool:
        return label in self.store and label.table not in self.config.exclude_tables

    def _forward_closure(
        self, pending: list[FixtureLabel], universe: dict[FixtureLabel, None]
    ) -> None:
        """Add everything reachable from ``pending`` through forward references."""
        work = list(pending)
        while work:
            record = self.store.get(work.pop())
            if record is None:
                continue
            for _, reference in self.resolver.references(record):
                target = reference.label
                if target not in universe and self._admissible(target):
                    universe[target] = None
                    work.append(target)

    def _reverse_closure(self, universe: dict[FixtureLabel, None]) -> int:
        """Admit back-referencing fixtures until a full pass finds nothing new.

        Each pass scans the whole store against a snapshot of the universe
        taken at the start of the pass.

        Returns:
            Number of passes run.
        """
        mode = self.config.reverse_closure
        if mode == ReverseClosure.NONE:
            return 0

        passes = 0
        while True:
            cap = self.config.max_reverse_passes
            if cap is not None and passes >= cap:
                logger.warning("reverse_closure_capped", passes=passes, universe=len(universe))
                break

            passes += 1
            snapshot = frozenset(universe)
            admitted = [
                record.label
                for record in self.store.records()
                if record.label not in snapshot
                and self._admissible(record.label)
                and self._points_into(record, snapshot, mode)
            ]
            if not admitted:
                break

            for label in admitted:
                universe.setdefault(label, None)
            self._forward_closure(admitted, universe)
            logger.debug("reverse_closure_pass", number=passes, admitted=len(admitted))

        return passes

    def _points_into(
        self,
        record: FixtureRecord,
        members: frozenset[FixtureLabel],
        mode: ReverseClosure,
    ) -> bool:
        for _, reference in self.resolver.references(record):
            if reference.label not in members:
                continue
            if mode == ReverseClosure.ANY_FOREIGN_KEY:
                return True
            if self.resolver.index.declares_has_one(reference.target_table, record.table):
                return True
        return False

    def _has_one_back_references(
        self, universe: dict[FixtureLabel, None]
    ) -> list[BackReferenceAssignment]:
        """Pair has_one owners with the child fixtures pointing at them."""
        tables = {label.table for label in universe}
        assignments: list[BackReferenceAssignment] = []

        for owner_table, association, entry in self.resolver.index.has_one_entries():
            reverse_table = entry.target_table
            if owner_table not in tables or reverse_table not in tables:
                continue

            fk_column = foreign_key_column(owner_table)
            for child in self.store.table(reverse_table).values():
                fk_value = child.fields.get(fk_column)
                if not isinstance(fk_value, str):
                    continue
                reference = self.resolver.match_fixture(fk_value, owner_table)
                if reference is None:
                    continue
                if reference.label in universe and child.label in universe:
                    assignments.append(
                        BackReferenceAssignment(
                            parent=reference.label,
                            association=association,
                            child=child.label,
                        )
                    )

        return assignments
