"""
Table ordering for fixture insertion.

Tables are ordered with Kahn's algorithm over table-level dependencies
(A depends on B when a planned A fixture references a planned B fixture).
Tables caught in a true cycle cannot be ordered; they are appended in
first-seen order and the plan relies on deferred foreign-key enforcement.
"""

import heapq
from dataclasses import dataclass, field

from fixplan.fixtures.models import FixtureLabel
from fixplan.logging import get_logger
from fixplan.planning.resolver import ReferenceResolver

logger = get_logger(__name__)


@dataclass
class SequenceResult:
    """Table insertion order plus the tables that could not be ordered.

    ``rows`` holds each table's fixtures in insertion order; rows a table
    references within itself come before the rows pointing at them.
    """

    order: list[str] = field(default_factory=list)
    residual: list[str] = field(default_factory=list)
    dependencies: dict[str, set[str]] = field(default_factory=dict)
    rows: dict[str, list[FixtureLabel]] = field(default_factory=dict)

    @property
    def has_cycles(self) -> bool:
        return len(self.residual) > 0


class TableSequencer:
    """Order the tables of a fixture universe so dependencies come first."""

    def __init__(self, resolver: ReferenceResolver):
        self.resolver = resolver

    def dependencies(self, universe: list[FixtureLabel]) -> dict[str, set[str]]:
        """Build table -> tables it depends on, restricted to universe tables.

        Self-references are left out here; ``order_rows`` handles them.
        """
        tables = list(dict.fromkeys(label.table for label in universe))
        table_set = set(tables)
        deps: dict[str, set[str]] = {table: set() for table in tables}

        for label in universe:
            record = self.resolver.store.get(label)
            if record is None:
                continue
            for column, value in record.fields.items():
                # Explicit integer foreign keys carry no fixture dependency
                if column.endswith("_id") and isinstance(value, int):
                    continue
                reference = self.resolver.resolve(value, column, record.table)
                if reference is None:
                    continue
                target = reference.target_table
                if target in table_set and target != record.table:
                    deps[record.table].add(target)

        return deps

    def sequence(self, universe: list[FixtureLabel]) -> SequenceResult:
        """Topologically sort the universe's tables.

        Args:
            universe: Planned fixtures in admission order; table order ties
                are broken by first appearance here.

        Returns:
            SequenceResult with every universe table exactly once.
        """
        deps = self.dependencies(universe)
        tables = list(deps)

        # in_degree[A] = number of tables A still waits for
        in_degree = {table: len(deps[table]) for table in tables}
        queue = [table for table in tables if in_degree[table] == 0]
        order: list[str] = []

        while queue:
            table = queue.pop(0)
            order.append(table)
            for other in tables:
                if table in deps[other]:
                    in_degree[other] -= 1
                    if in_degree[other] == 0:
                        queue.append(other)

        placed = set(order)
        residual = [table for table in tables if table not in placed]
        if residual:
            logger.debug("cyclic_tables_appended", tables=residual)
            order.extend(residual)

        rows = {
            table: self.order_rows([label for label in universe if label.table == table])
            for table in order
        }
        return SequenceResult(order=order, residual=residual, dependencies=deps, rows=rows)

    def order_rows(self, labels: list[FixtureLabel]) -> list[FixtureLabel]:
        """Stable topological order of one table's fixtures.

        Rows referenced by other rows of the same table come first; otherwise
        admission order is kept. Rows caught in a self-reference cycle keep
        their admission order after the rest.
        """
        position = {label: i for i, label in enumerate(labels)}
        waits_on: dict[FixtureLabel, set[FixtureLabel]] = {label: set() for label in labels}
        for label in labels:
            record = self.resolver.store.get(label)
            if record is None:
                continue
            for _, reference in self.resolver.references(record):
                target = reference.label
                if target in position and target != label:
                    waits_on[label].add(target)

        if not any(waits_on.values()):
            return list(labels)

        ready = [position[label] for label in labels if not waits_on[label]]
        heapq.heapify(ready)
        ordered: list[FixtureLabel] = []
        while ready:
            label = labels[heapq.heappop(ready)]
            ordered.append(label)
            for other in labels:
                if label in waits_on[other]:
                    waits_on[other].discard(label)
                    if not waits_on[other]:
                        heapq.heappush(ready, position[other])

        placed = set(ordered)
        ordered.extend(label for label in labels if label not in placed)
        return ordered
