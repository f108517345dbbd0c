"""
Invariant Test Suite: Stability Gates for the Ingredient Compliance Engine

These tests encode the engine's behavioral invariants as executable
assertions over the sample reference corpora, plus the reference
scenarios every release must reproduce.

Invariant categories:
  1. Normalization idempotence
  2. Self-match of canonical names and synonyms
  3. Stoplist suppression of fuzzy matching
  4. Case commutativity of allergen detection
  5. requires_ndi tracks the grandfather list
  6. Reference scenarios

Run:  pytest tests/test_invariants.py -v
"""

import pytest

from ingredient_compliance.compliance import ComplianceEngine, ReferenceSnapshot, SnapshotStore
from ingredient_compliance.matching import (
    AllergenEntry,
    MatchType,
    ReferenceBody,
    ReferenceEntry,
    ReferenceIndex,
)
from ingredient_compliance.matching.types import DEFAULT_GENERIC_TERMS
from ingredient_compliance.normalization import normalize_ingredient_name
from tests.fixtures.test_data import (
    ALLERGEN_ENTRIES,
    GRAS_ENTRIES,
    IDEMPOTENCE_SAMPLES,
    NDI_ENTRIES,
    OLD_DIETARY_ENTRIES,
    SAMPLE_LABEL,
)

BODIES = {
    "gras": GRAS_ENTRIES,
    "ndi": NDI_ENTRIES,
    "old_dietary_ingredients": OLD_DIETARY_ENTRIES,
}


def _active(entries):
    return [e for e in entries if e.is_active]


# ============================================================================
# 1. NORMALIZATION IDEMPOTENCE
# ============================================================================

class TestNormalizationIdempotence:

    @pytest.mark.parametrize("raw", IDEMPOTENCE_SAMPLES + SAMPLE_LABEL)
    def test_idempotent(self, raw):
        once = normalize_ingredient_name(raw)
        assert normalize_ingredient_name(once) == once

    @pytest.mark.parametrize("body", sorted(BODIES))
    def test_idempotent_on_reference_names(self, body):
        for entry in BODIES[body]:
            for name in (entry.canonical_name, *entry.synonyms):
                once = normalize_ingredient_name(name)
                assert normalize_ingredient_name(once) == once, name


# ============================================================================
# 2. SELF-MATCH
# ============================================================================

class TestSelfMatch:

    @pytest.mark.parametrize("body", sorted(BODIES))
    def test_canonical_names_match_exactly(self, body, reference_matcher):
        index = ReferenceIndex(BODIES[body], name_key=normalize_ingredient_name)
        for entry in _active(BODIES[body]):
            verdict = reference_matcher.match(normalize_ingredient_name(entry.canonical_name), index)
            assert verdict.match_type is MatchType.EXACT, entry.canonical_name
            assert verdict.matched_entry is entry

    @pytest.mark.parametrize("body", sorted(BODIES))
    def test_synonyms_match_as_synonym(self, body, reference_matcher):
        index = ReferenceIndex(BODIES[body], name_key=normalize_ingredient_name)
        for entry in _active(BODIES[body]):
            for synonym in entry.synonyms:
                verdict = reference_matcher.match(normalize_ingredient_name(synonym), index)
                if synonym.casefold() == entry.canonical_name.casefold():
                    expected = MatchType.EXACT
                else:
                    expected = MatchType.SYNONYM
                assert verdict.match_type is expected, synonym
                assert verdict.matched_entry is entry

    def test_corpus_has_synonym_equal_to_canonical(self):
        """Keeps the EXACT branch of the synonym invariant exercised."""
        assert any(
            s.casefold() == e.canonical_name.casefold()
            for e in GRAS_ENTRIES for s in e.synonyms
        )

    def test_inactive_entries_never_match(self, reference_matcher):
        for entries in BODIES.values():
            index = ReferenceIndex(entries, name_key=normalize_ingredient_name)
            for entry in entries:
                if entry.is_active:
                    continue
                verdict = reference_matcher.match(normalize_ingredient_name(entry.canonical_name), index)
                assert verdict.matched_entry is not entry


# ============================================================================
# 3. STOPLIST SUPPRESSION
# ============================================================================

class TestStoplistSuppression:

    @pytest.fixture
    def permissive_index(self):
        """Every stoplisted or short token is contained in some entry name."""
        names = [f"generic {term} marker" for term in DEFAULT_GENERIC_TERMS]
        names += ["tea oil b12 mix", "zinc oxide"]
        return ReferenceIndex([ReferenceEntry(n) for n in names])

    @pytest.mark.parametrize("name", [
        "root extract",
        "berry powder blend",
        "leaf",
        "tea oil",
        "b12",
        "oil leaf fruit",
        "zn",
    ])
    def test_fuzzy_never_fires(self, reference_matcher, permissive_index, name):
        verdict = reference_matcher.match(name, permissive_index)
        assert verdict.match_type is not MatchType.FUZZY
        assert reference_matcher.fuzzy_matcher.search_terms(name) == []


# ============================================================================
# 4. CASE COMMUTATIVITY
# ============================================================================

@pytest.mark.parametrize("name", SAMPLE_LABEL + [
    "peanut butter",
    "soy lecithin",
    "royal jelly",
    "Straße",
    "ﬁsh oil",
])
def test_allergen_detection_commutes_with_case(allergen_detector, name):
    assert allergen_detector.detect(name, ALLERGEN_ENTRIES) == \
        allergen_detector.detect(name.upper(), ALLERGEN_ENTRIES)


# ============================================================================
# 5. REQUIRES_NDI TRACKS THE GRANDFATHER LIST
# ============================================================================

@pytest.mark.parametrize("raw", SAMPLE_LABEL + [
    "Melatonin",
    "Green Tea Extract",
    "Camellia Sinensis",
    "Ephedra",
    "Calcium (Carbonate)",
    "Kratom",
])
def test_requires_ndi_iff_not_grandfathered(compliance_engine, raw):
    record = compliance_engine.check_label([raw]).records[0]
    assert record.requires_ndi is (not record.verdict_for("old_dietary_ingredients").matched)


# ============================================================================
# 6. REFERENCE SCENARIOS
# ============================================================================

class TestReferenceScenarios:

    def test_parenthetical_removed(self):
        assert normalize_ingredient_name("Calcium (Carbonate)") == "calcium"

    def test_trailing_clause_removed(self):
        assert normalize_ingredient_name("Salt, Iodized") == "salt"

    def test_grandfathered_only(self):
        snapshot = ReferenceSnapshot.from_entries({
            ReferenceBody.GRAS: [ReferenceEntry("Ascorbic Acid")],
            ReferenceBody.NDI: [ReferenceEntry("Astaxanthin")],
            ReferenceBody.OLD_DIETARY_INGREDIENTS: [ReferenceEntry("5-HTP")],
        })
        engine = ComplianceEngine(store=SnapshotStore(snapshot=snapshot))
        record = engine.check_label(["5-HTP"]).records[0]

        assert record.requires_ndi is False
        assert record.is_gras is False
        assert record.has_ndi is False

    def test_unknown_ingredient(self, compliance_engine):
        record = compliance_engine.check_label(["Siberian Ginseng Extract"]).records[0]

        assert compliance_engine.matcher.fuzzy_matcher.search_terms(record.normalized_name) == \
            ["siberian", "ginseng"]
        assert all(v.match_type is MatchType.NONE for v in record.verdicts.values())
        assert record.requires_ndi is True

    def test_shellfish_derivative(self, allergen_detector):
        allergens = [AllergenEntry("Shellfish", category="shellfish", derivatives=("shellfish",))]
        flags = allergen_detector.detect(normalize_ingredient_name("contains shellfish extract"), allergens)
        assert flags == {"shellfish"}

    def test_shortest_fuzzy_candidate(self, reference_matcher):
        index = ReferenceIndex([
            ReferenceEntry("american ginseng root"),
            ReferenceEntry("panax ginseng"),
        ])
        verdict = reference_matcher.match("ginseng", index)
        assert verdict.match_type is MatchType.FUZZY
        assert verdict.matched_name == "panax ginseng"
