"""
Fixture Planner - Unified API for building fixture plans.

Orchestrates the planning flow:
1. ReferenceResolver (store + association index)
2. DependencyCollector (forward, reverse and has-one closure)
3. TableSequencer (Kahn's algorithm with cycle fallback)
4. PlanEmitter (resolved fields and back-assignments)

Each run is a pure function of the store, the index and the seed set.
"""

from collections.abc import Iterable
from pathlib import Path

from fixplan.config import PlannerConfig
from fixplan.fixtures.loader import FixtureLoader
from fixplan.fixtures.models import CurrentAttribute, FixtureLabel, FixturePlan, FixtureStore
from fixplan.logging import get_logger
from fixplan.planning.associations import AssociationIndex
from fixplan.planning.collector import Collection, DependencyCollector
from fixplan.planning.emitter import PlanEmitter
from fixplan.planning.resolver import ReferenceResolver
from fixplan.planning.seeds import scan_fixture_references
from fixplan.planning.sequencer import TableSequencer

logger = get_logger(__name__)


class FixturePlanner:
    """
    Build fixture plans from a loaded store and association index.

    Usage:
        planner = FixturePlanner(store, index)
        plan = planner.plan_for_labels([FixtureLabel(table="cards", name="logo")])

        # Seeds scraped from a test file, falling back to every fixture
        plan = planner.plan_for_source(test_source, load_all=True)

        # Shared module materializing the whole store
        plan = planner.plan_all()
    """

    def __init__(
        self,
        store: FixtureStore,
        index: AssociationIndex | None = None,
        config: PlannerConfig | None = None,
        current_attributes: Iterable[CurrentAttribute] = (),
    ):
        """Initialize the planner."""
        self.store = store
        self.index = index or AssociationIndex()
        self.config = config or PlannerConfig()
        self.current_attributes = list(current_attributes)
        self.warnings: list[str] = []

        self._resolver = ReferenceResolver(self.store, self.index)
        self._collector = DependencyCollector(self._resolver, self.config)
        self._sequencer = TableSequencer(self._resolver)
        self._emitter = PlanEmitter(self._resolver)

    @classmethod
    def from_paths(
        cls,
        fixtures_dir: str | Path,
        associations_path: str | Path | None = None,
        config: PlannerConfig | None = None,
        loader: FixtureLoader | None = None,
    ) -> "FixturePlanner":
        """
        Load fixtures and association metadata from disk.

        Unparsable fixture files are skipped; their messages end up in
        ``planner.warnings``.

        Raises:
            ConfigError: If the association metadata file is invalid.
        """
        result = (loader or FixtureLoader()).load_directory(fixtures_dir)
        index = AssociationIndex.from_file(associations_path) if associations_path else None
        planner = cls(result.store, index, config)
        planner.warnings.extend(result.warnings)
        return planner

    @property
    def resolver(self) -> ReferenceResolver:
        return self._resolver

    def collect(self, seeds: Iterable[FixtureLabel]) -> Collection:
        return self._collector.collect(seeds)

    def plan_for_labels(self, seeds: Iterable[FixtureLabel]) -> FixturePlan:
        """Plan the fixtures reachable from an explicit seed set."""
        return self._plan(self._collector.collect(seeds))

    def plan_for_source(
        self,
        source: str,
        load_all: bool = False,
        seeds: Iterable[FixtureLabel] = (),
    ) -> FixturePlan:
        """
        Plan the fixtures a Ruby test file refers to.

        Args:
            source: Ruby test source
            load_all: Plan every fixture when neither the source nor
                ``seeds`` name one, as system tests do
            seeds: Extra seed labels merged after the scanned ones

        Returns:
            FixturePlan (empty when nothing needs to be set up)
        """
        merged = list(dict.fromkeys([*scan_fixture_references(source, self.store), *seeds]))
        if not merged and load_all:
            return self.plan_all()
        return self.plan_for_labels(merged)

    def plan_all(self) -> FixturePlan:
        """Plan every fixture in the store."""
        return self._plan(self._collector.collect_all())

    def _plan(self, collection: Collection) -> FixturePlan:
        sequence = self._sequencer.sequence(collection.universe)
        plan = self._emitter.emit(collection, sequence, self.current_attributes)
        logger.debug(
            "fixture_plan_built",
            fixtures=len(plan.fixtures),
            tables=len(sequence.order),
            cyclic_tables=len(sequence.residual),
            back_references=len(plan.back_references),
        )
        return plan


# Convenience functions
def build_plan(
    store: FixtureStore,
    index: AssociationIndex | None = None,
    seeds: Iterable[FixtureLabel] | None = None,
    config: PlannerConfig | None = None,
) -> FixturePlan:
    """
    Build a fixture plan.

    Args:
        store: Loaded fixtures
        index: Association index (conventions only when omitted)
        seeds: Seed labels; every fixture when None
        config: Planner configuration

    Returns:
        FixturePlan
    """
    planner = FixturePlanner(store, index, config)
    if seeds is None:
        return planner.plan_all()
    return planner.plan_for_labels(seeds)
