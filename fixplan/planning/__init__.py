"""
fixplan Planning Engine.

Dependency resolution and ordering for fixture plans.

Components:
- associations: Association index built from model metadata
- resolver: Field value -> fixture reference resolution
- collector: Forward, reverse and has-one closure from a seed set
- sequencer: Table ordering with a deterministic cycle fallback
- emitter: Resolved attribute lists and back-assignments
- pipeline: Unified API orchestrating all components
"""

from fixplan.planning.associations import AssociationEntry, AssociationIndex, AssociationKind
from fixplan.planning.collector import Collection, DependencyCollector
from fixplan.planning.emitter import PlanEmitter
from fixplan.planning.pipeline import FixturePlanner, build_plan
from fixplan.planning.resolver import ReferenceResolver
from fixplan.planning.seeds import parse_current_attributes, scan_fixture_references
from fixplan.planning.sequencer import SequenceResult, TableSequencer

__all__ = [
    # Associations
    "AssociationEntry",
    "AssociationIndex",
    "AssociationKind",
    # Resolution
    "ReferenceResolver",
    # Collection and ordering
    "Collection",
    "DependencyCollector",
    "SequenceResult",
    "TableSequencer",
    # Emission
    "PlanEmitter",
    # Pipeline
    "FixturePlanner",
    "build_plan",
    # Seeds
    "parse_current_attributes",
    "scan_fixture_references",
]
