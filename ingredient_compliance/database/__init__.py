"""
Database package for the ingredient compliance engine.

This package provides:
- SQLAlchemy ORM models for the reference tables
- Connection and session management
- A snapshot supplier that loads the reference tables for the engine

Quick start:
    from ingredient_compliance.database import DatabaseManager, SqlSnapshotSupplier
    from ingredient_compliance.compliance import ComplianceEngine

    db = DatabaseManager("data/ingredient_reference.db", read_only=True)

    engine = ComplianceEngine(supplier=SqlSnapshotSupplier(db))
    engine.refresh()
"""

from .connection import (
    DatabaseManager,
    create_test_db,
)
from .models import (
    Base,
    GrasIngredient,
    GrasStatus,
    MajorAllergen,
    NdiIngredient,
    OldDietaryIngredient,
)
from .snapshot_loader import (
    SqlSnapshotSupplier,
    allergen_entry,
    gras_entry,
    ndi_entry,
    old_dietary_entry,
)


__all__ = [
    # Connection
    "DatabaseManager",
    "create_test_db",
    # Models
    "Base",
    "GrasIngredient",
    "GrasStatus",
    "MajorAllergen",
    "NdiIngredient",
    "OldDietaryIngredient",
    # Snapshot loading
    "SqlSnapshotSupplier",
    "allergen_entry",
    "gras_entry",
    "ndi_entry",
    "old_dietary_entry",
]
