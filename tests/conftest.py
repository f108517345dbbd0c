"""
Pytest configuration and shared fixtures for ingredient compliance tests.

Provides:
- Reference indexes and snapshots built from the sample reference bodies
- Normalizer, matchers, detector and aggregator instances
- A compliance engine loaded with the sample snapshot
- In-memory test database preloaded with reference rows
"""

import pytest
from typing import Generator

from ingredient_compliance.compliance import (
    ComplianceAggregator,
    ComplianceEngine,
    ReferenceSnapshot,
    StaticSnapshotSupplier,
)
from ingredient_compliance.database import (
    DatabaseManager,
    GrasIngredient,
    MajorAllergen,
    NdiIngredient,
    OldDietaryIngredient,
    create_test_db,
)
from ingredient_compliance.matching import (
    AllergenDetector,
    ExactMatcher,
    FuzzyMatcher,
    MatcherConfig,
    ReferenceBody,
    ReferenceIndex,
    ReferenceMatcher,
)
from ingredient_compliance.normalization import IngredientNormalizer, normalize_ingredient_name

from tests.fixtures.test_data import (
    ALLERGEN_ENTRIES,
    ALLERGEN_ROWS,
    GRAS_ENTRIES,
    GRAS_ROWS,
    NDI_ENTRIES,
    NDI_ROWS,
    OLD_DIETARY_ENTRIES,
    OLD_DIETARY_ROWS,
)


# ============================================================================
# COMPONENT FIXTURES
# ============================================================================

@pytest.fixture
def normalizer() -> IngredientNormalizer:
    return IngredientNormalizer()


@pytest.fixture
def matcher_config() -> MatcherConfig:
    return MatcherConfig()


@pytest.fixture
def exact_matcher() -> ExactMatcher:
    return ExactMatcher()


@pytest.fixture
def fuzzy_matcher(matcher_config) -> FuzzyMatcher:
    return FuzzyMatcher(matcher_config)


@pytest.fixture
def reference_matcher(matcher_config) -> ReferenceMatcher:
    return ReferenceMatcher(matcher_config)


@pytest.fixture
def allergen_detector() -> AllergenDetector:
    return AllergenDetector()


@pytest.fixture
def aggregator() -> ComplianceAggregator:
    return ComplianceAggregator()


# ============================================================================
# REFERENCE DATA FIXTURES
# ============================================================================

@pytest.fixture
def gras_index() -> ReferenceIndex:
    """GRAS body indexed with normalized keys."""
    return ReferenceIndex(GRAS_ENTRIES, name_key=normalize_ingredient_name)


@pytest.fixture
def ndi_index() -> ReferenceIndex:
    return ReferenceIndex(NDI_ENTRIES, name_key=normalize_ingredient_name)


@pytest.fixture
def old_dietary_index() -> ReferenceIndex:
    return ReferenceIndex(OLD_DIETARY_ENTRIES, name_key=normalize_ingredient_name)


@pytest.fixture
def sample_bodies() -> dict:
    """Entry lists per reference body."""
    return {
        ReferenceBody.GRAS: GRAS_ENTRIES,
        ReferenceBody.NDI: NDI_ENTRIES,
        ReferenceBody.OLD_DIETARY_INGREDIENTS: OLD_DIETARY_ENTRIES,
    }


@pytest.fixture
def reference_snapshot(sample_bodies) -> ReferenceSnapshot:
    return ReferenceSnapshot.from_entries(sample_bodies, ALLERGEN_ENTRIES, version="test-1")


@pytest.fixture
def snapshot_supplier(sample_bodies) -> StaticSnapshotSupplier:
    return StaticSnapshotSupplier(sample_bodies, ALLERGEN_ENTRIES, version="test-1")


@pytest.fixture
def compliance_engine(snapshot_supplier) -> ComplianceEngine:
    """Engine with the sample snapshot already loaded."""
    engine = ComplianceEngine(supplier=snapshot_supplier)
    engine.refresh()
    return engine


# ============================================================================
# DATABASE FIXTURES
# ============================================================================

@pytest.fixture(scope="function")
def test_db() -> Generator[DatabaseManager, None, None]:
    """Fresh in-memory database with all tables for each test."""
    db = create_test_db()
    yield db
    db.close()


@pytest.fixture(scope="function")
def preloaded_reference_db(test_db: DatabaseManager) -> DatabaseManager:
    """
    Database preloaded with sample reference rows.

    Includes one inactive GRAS row and one inactive allergen row.
    """
    with test_db.session_scope() as session:
        session.add_all(GrasIngredient(**row) for row in GRAS_ROWS)
        session.add_all(OldDietaryIngredient(**row) for row in OLD_DIETARY_ROWS)
        session.add_all(NdiIngredient(**row) for row in NDI_ROWS)
        session.add_all(MajorAllergen(**row) for row in ALLERGEN_ROWS)
    return test_db
