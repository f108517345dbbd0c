"""
Compliance layer.

Turns per-body match verdicts into regulatory flags and label reports, and
manages the reference snapshots the checks run against.
"""

from ingredient_compliance.compliance.exceptions import (
    ComplianceError,
    MissingReferenceBodyError,
    SnapshotStaleError,
    SnapshotUnavailableError,
)
from ingredient_compliance.compliance.records import (
    ComplianceSummary,
    IngredientComplianceRecord,
    LabelComplianceReport,
)
from ingredient_compliance.compliance.aggregator import ComplianceAggregator
from ingredient_compliance.compliance.snapshot import (
    ReferenceSnapshot,
    SnapshotStore,
    SnapshotSupplier,
    StaticSnapshotSupplier,
)
from ingredient_compliance.compliance.engine import ComplianceEngine, DEFAULT_REQUIRED_BODIES

__all__ = [
    "ComplianceError",
    "MissingReferenceBodyError",
    "SnapshotStaleError",
    "SnapshotUnavailableError",
    "ComplianceSummary",
    "IngredientComplianceRecord",
    "LabelComplianceReport",
    "ComplianceAggregator",
    "ReferenceSnapshot",
    "SnapshotStore",
    "SnapshotSupplier",
    "StaticSnapshotSupplier",
    "ComplianceEngine",
    "DEFAULT_REQUIRED_BODIES",
]
