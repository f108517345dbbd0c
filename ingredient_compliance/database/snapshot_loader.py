"""
Reference snapshot loading from the database.

Reads the four reference tables and maps each row to the matching engine's
entry types. Rows are read in primary-key order, which becomes the index
supply order and therefore the tie-break order for fuzzy candidates.
"""

import logging
from typing import Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ingredient_compliance.compliance.snapshot import ReferenceSnapshot, SnapshotSupplier
from ingredient_compliance.matching.types import AllergenEntry, ReferenceBody, ReferenceEntry
from ingredient_compliance.normalization import normalize_ingredient_name

from .connection import DatabaseManager
from .models import GrasIngredient, MajorAllergen, NdiIngredient, OldDietaryIngredient

logger = logging.getLogger(__name__)


def gras_entry(row: GrasIngredient) -> ReferenceEntry:
    synonyms = set(row.synonyms or [])
    if row.common_name:
        synonyms.add(row.common_name)
    return ReferenceEntry(
        canonical_name=row.ingredient_name,
        synonyms=frozenset(synonyms),
        source_metadata=row.gras_notice_number or row.source_reference,
        is_active=row.is_active,
        category=row.category,
    )


def old_dietary_entry(row: OldDietaryIngredient) -> ReferenceEntry:
    return ReferenceEntry(
        canonical_name=row.ingredient_name,
        synonyms=frozenset(row.synonyms or []),
        source_metadata=row.source,
        is_active=row.is_active,
    )


def ndi_entry(row: NdiIngredient) -> ReferenceEntry:
    return ReferenceEntry(
        canonical_name=row.ingredient_name,
        source_metadata=f"#{row.notification_number}",
        is_active=row.is_active,
    )


def allergen_entry(row: MajorAllergen) -> AllergenEntry:
    return AllergenEntry(
        canonical_name=row.allergen_name,
        synonyms=frozenset(row.scientific_names or []),
        source_metadata=row.regulation_citation,
        is_active=row.is_active,
        category=row.allergen_category,
        derivatives=tuple(row.derivatives or ()),
    )


class SqlSnapshotSupplier(SnapshotSupplier):
    """
    Snapshot supplier backed by the reference tables.

    Every load opens its own read session, so one supplier can be shared by an
    engine that refreshes from a background thread.
    """

    def __init__(self,
                 db: DatabaseManager,
                 version: Optional[str] = None,
                 name_key: Optional[Callable[[str], str]] = normalize_ingredient_name):
        """
        Initialize the supplier.

        Args:
            db: DatabaseManager providing sessions
            version: Version label stamped on every snapshot
            name_key: Normalizer for additional index keys
        """
        self.db = db
        self.version = version
        self.name_key = name_key

    def load(self) -> ReferenceSnapshot:
        """
        Read every reference table into a new snapshot.

        Returns:
            ReferenceSnapshot
        """
        with self.db.read_scope() as session:
            gras = self._load_rows(session, GrasIngredient, gras_entry)
            old = self._load_rows(session, OldDietaryIngredient, old_dietary_entry)
            ndi = self._load_rows(session, NdiIngredient, ndi_entry)
            allergens = self._load_rows(session, MajorAllergen, allergen_entry)

        logger.info(
            f"Loaded reference data: {len(gras)} GRAS, {len(old)} old dietary, "
            f"{len(ndi)} NDI, {len(allergens)} allergens"
        )
        return ReferenceSnapshot.from_entries(
            {
                ReferenceBody.GRAS: gras,
                ReferenceBody.NDI: ndi,
                ReferenceBody.OLD_DIETARY_INGREDIENTS: old,
            },
            allergens,
            name_key=self.name_key,
            version=self.version,
        )

    @staticmethod
    def _load_rows(session: Session, model, to_entry) -> List:
        rows = session.execute(select(model).order_by(model.id)).scalars().all()
        return [to_entry(row) for row in rows]
