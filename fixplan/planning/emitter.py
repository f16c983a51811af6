"""
Plan emission: resolved attribute lists in insertion order.

References to fixtures inside the plan become sibling references; references
to fixtures left out of the plan become foreign-key literals carrying the
id Rails would have assigned to the target.
"""

from collections.abc import Iterable

from fixplan.fixtures.identity import identify
from fixplan.fixtures.models import (
    CurrentAttribute,
    FixturePlan,
    ForeignKeyLiteral,
    LiteralField,
    PlannedFixture,
    ResolvedField,
    SiblingReference,
)
from fixplan.inflections import model_name_for_table
from fixplan.planning.collector import Collection
from fixplan.planning.resolver import ReferenceResolver
from fixplan.planning.sequencer import SequenceResult


class PlanEmitter:
    """Turn a collected, sequenced universe into a FixturePlan."""

    def __init__(self, resolver: ReferenceResolver):
        self.resolver = resolver

    def emit(
        self,
        collection: Collection,
        sequence: SequenceResult,
        current_attributes: Iterable[CurrentAttribute] = (),
    ) -> FixturePlan:
        planned: list[PlannedFixture] = []

        for table in sequence.order:
            for label in sequence.rows.get(table) or collection.labels_for(table):
                record = self.resolver.store.get(label)
                if record is None:
                    continue

                fields: list[ResolvedField] = []
                for column, value in record.fields.items():
                    reference = self.resolver.resolve(value, column, table)
                    if reference is None:
                        fields.append(LiteralField(column=column, value=value))
                    elif reference.label in collection:
                        fields.append(SiblingReference(column=column, target=reference.label))
                    else:
                        fields.append(
                            ForeignKeyLiteral(
                                column=f"{column}_id",
                                target=reference.label,
                                identifier=identify(
                                    reference.target_name, uuid_form=reference.is_uuid_form
                                ),
                            )
                        )

                planned.append(
                    PlannedFixture(
                        label=label,
                        model_name=model_name_for_table(table),
                        fields=fields,
                    )
                )

        return FixturePlan(
            fixtures=planned,
            back_references=list(collection.back_references),
            current_attributes=[attr for attr in current_attributes if attr.label in collection],
            defer_foreign_keys=bool(planned),
        )
