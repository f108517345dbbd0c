"""
Tests for the reference data models and the SQL snapshot supplier.
"""

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError

from ingredient_compliance.compliance import ComplianceEngine
from ingredient_compliance.database import (
    DatabaseManager,
    GrasIngredient,
    GrasStatus,
    MajorAllergen,
    NdiIngredient,
    OldDietaryIngredient,
    SqlSnapshotSupplier,
    allergen_entry,
    gras_entry,
    ndi_entry,
)
from ingredient_compliance.matching import MatchType, ReferenceBody
from tests.fixtures.test_data import GRAS_ROWS


# ============================================================================
# MODEL TESTS
# ============================================================================

class TestModels:
    """Tests for ORM defaults and constraints."""

    def test_defaults(self, test_db):
        with test_db.session_scope() as session:
            session.add(GrasIngredient(ingredient_name="Inulin"))

        with test_db.session_scope() as session:
            row = session.execute(select(GrasIngredient)).scalar_one()
            assert row.is_active is True
            assert row.gras_status is GrasStatus.AFFIRMED
            assert row.created_at is not None

    def test_json_list_round_trip(self, test_db):
        with test_db.session_scope() as session:
            session.add(OldDietaryIngredient(ingredient_name="Melatonin", synonyms=["N-Acetyl-5-methoxytryptamine"]))

        with test_db.session_scope() as session:
            row = session.execute(select(OldDietaryIngredient)).scalar_one()
            assert row.synonyms == ["N-Acetyl-5-methoxytryptamine"]

    def test_ndi_notification_number_unique(self, test_db):
        with pytest.raises(IntegrityError):
            with test_db.session_scope() as session:
                session.add(NdiIngredient(notification_number=1, ingredient_name="A"))
                session.add(NdiIngredient(notification_number=1, ingredient_name="B"))

    def test_session_scope_rolls_back(self, test_db):
        with pytest.raises(RuntimeError):
            with test_db.session_scope() as session:
                session.add(MajorAllergen(allergen_name="Milk", allergen_category="milk", derivatives=["milk"]))
                session.flush()
                raise RuntimeError("abort")

        with test_db.session_scope() as session:
            assert session.execute(select(MajorAllergen)).first() is None


# ============================================================================
# ROW MAPPING
# ============================================================================

class TestRowMapping:
    """Rows map onto the matching engine's entry types."""

    def test_gras_entry_prefers_notice_number(self):
        row = GrasIngredient(ingredient_name="Inulin", gras_notice_number="GRN 000118",
                             source_reference="21 CFR 184", synonyms=["Chicory Fiber"],
                             common_name="Oligofructose", is_active=True)
        entry = gras_entry(row)
        assert entry.source_metadata == "GRN 000118"
        assert entry.synonyms == frozenset({"Chicory Fiber", "Oligofructose"})

    def test_gras_entry_falls_back_to_reference(self):
        row = GrasIngredient(ingredient_name="Salt", source_reference="21 CFR 182.1", is_active=True)
        assert gras_entry(row).source_metadata == "21 CFR 182.1"

    def test_ndi_entry_source(self):
        row = NdiIngredient(notification_number=1087, ingredient_name="Astaxanthin", is_active=True)
        assert ndi_entry(row).source_metadata == "#1087"

    def test_allergen_entry(self):
        row = MajorAllergen(allergen_name="Milk", allergen_category="milk",
                            derivatives=["whey", "casein"], is_active=True)
        entry = allergen_entry(row)
        assert entry.allergen_category == "milk"
        assert entry.derivatives == ("whey", "casein")


# ============================================================================
# SNAPSHOT SUPPLIER
# ============================================================================

class TestSqlSnapshotSupplier:
    """Tests for loading snapshots from the reference tables."""

    def test_load(self, preloaded_reference_db):
        snapshot = SqlSnapshotSupplier(preloaded_reference_db, version="db-1").load()

        assert snapshot.version == "db-1"
        assert len(snapshot.index_for(ReferenceBody.GRAS)) == 2
        assert snapshot.index_for(ReferenceBody.GRAS).inactive_count == 1
        assert len(snapshot.index_for(ReferenceBody.OLD_DIETARY_INGREDIENTS)) == 2
        assert len(snapshot.index_for(ReferenceBody.NDI)) == 1
        assert [a.allergen_category for a in snapshot.allergens] == ["milk", "shellfish"]

    def test_primary_key_order(self, preloaded_reference_db):
        snapshot = SqlSnapshotSupplier(preloaded_reference_db).load()
        names = [e.canonical_name for e in snapshot.index_for("gras")]
        assert names == ["Ascorbic Acid", "Whey Protein Concentrate"]

    def test_common_name_is_synonym(self, preloaded_reference_db):
        snapshot = SqlSnapshotSupplier(preloaded_reference_db).load()
        entry = snapshot.index_for("gras").by_synonym("l-ascorbic acid")
        assert entry.canonical_name == "Ascorbic Acid"

    def test_empty_database(self, test_db):
        snapshot = SqlSnapshotSupplier(test_db).load()
        assert all(len(index) == 0 for index in snapshot.bodies.values())
        assert set(snapshot.bodies) == {"gras", "ndi", "old_dietary_ingredients"}

    def test_engine_over_database(self, preloaded_reference_db):
        engine = ComplianceEngine(supplier=SqlSnapshotSupplier(preloaded_reference_db))
        engine.refresh()

        report = engine.check_label(["Whey Protein Concentrate", "5-HTP", "Astaxanthin"])
        whey, htp, astaxanthin = report.records

        assert whey.is_gras is True
        assert whey.allergen_flags == frozenset({"milk"})
        assert htp.verdict_for("old_dietary_ingredients").match_type is MatchType.EXACT
        assert htp.requires_ndi is False
        assert astaxanthin.has_ndi is True
        assert astaxanthin.requires_ndi is True


# ============================================================================
# READ-ONLY ACCESS
# ============================================================================

class TestReadOnlyAccess:
    """Snapshot loading never writes to the reference database."""

    @pytest.fixture
    def reference_file(self, tmp_path):
        path = str(tmp_path / "reference.db")
        writer = DatabaseManager(path)
        writer.create_all_tables()
        with writer.session_scope() as session:
            session.add_all(GrasIngredient(**row) for row in GRAS_ROWS)
        writer.close()
        return path

    def test_read_scope_discards_changes(self, test_db):
        with test_db.read_scope() as session:
            session.add(GrasIngredient(ingredient_name="Inulin"))
            session.flush()

        with test_db.read_scope() as session:
            assert session.execute(select(GrasIngredient)).first() is None

    def test_supplier_over_read_only_file(self, reference_file):
        db = DatabaseManager(reference_file, read_only=True)
        try:
            snapshot = SqlSnapshotSupplier(db).load()
            assert len(snapshot.index_for(ReferenceBody.GRAS)) == 2
        finally:
            db.close()

    def test_read_only_rejects_writes(self, reference_file):
        db = DatabaseManager(reference_file, read_only=True)
        try:
            with pytest.raises(OperationalError):
                with db.session_scope() as session:
                    session.add(GrasIngredient(ingredient_name="Inulin"))
        finally:
            db.close()

    def test_read_only_cannot_create_tables(self, reference_file):
        db = DatabaseManager(reference_file, read_only=True)
        try:
            with pytest.raises(RuntimeError):
                db.create_all_tables()
        finally:
            db.close()

    def test_read_only_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            DatabaseManager(str(tmp_path / "absent.db"), read_only=True)
