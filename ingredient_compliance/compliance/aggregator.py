"""
Compliance aggregation.

Combines the per-body verdicts for one ingredient into a compliance record,
and the records of one label into a report. Every flag is a pure function of
the verdicts:

- is_gras:      GRAS verdict matched (any match type)
- has_ndi:      NDI verdict matched
- requires_ndi: old dietary ingredients verdict NOT matched, regardless of
                the GRAS and NDI outcome
"""

import logging
from collections import Counter
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from ingredient_compliance.compliance.records import (
    ComplianceSummary,
    IngredientComplianceRecord,
    LabelComplianceReport,
)
from ingredient_compliance.matching.match_result import MatchVerdict
from ingredient_compliance.matching.types import ReferenceBody, body_id

logger = logging.getLogger(__name__)


def _is_matched(verdicts: Mapping[str, MatchVerdict], body: ReferenceBody) -> bool:
    """A body missing from the verdict map counts as not matched."""
    verdict = verdicts.get(body.value)
    return verdict is not None and verdict.matched


class ComplianceAggregator:
    """
    Derives regulatory flags from verdicts and assembles label reports.

    Performs no I/O and cannot fail for well-formed input.
    """

    def aggregate(self,
                  raw_name: str,
                  verdicts: Mapping[str, MatchVerdict],
                  allergen_flags: Iterable[str] = (),
                  normalized_name: Optional[str] = None) -> IngredientComplianceRecord:
        """
        Build the compliance record for one ingredient.

        Args:
            raw_name: Ingredient name as printed on the label
            verdicts: Verdicts keyed by reference body id
            allergen_flags: Allergen categories from the detector
            normalized_name: Normalizer output (recorded verbatim)

        Returns:
            IngredientComplianceRecord
        """
        frozen_verdicts = MappingProxyType({body_id(k): v for k, v in verdicts.items()})
        flags = frozenset(allergen_flags)

        is_gras = _is_matched(frozen_verdicts, ReferenceBody.GRAS)
        has_ndi = _is_matched(frozen_verdicts, ReferenceBody.NDI)
        requires_ndi = not _is_matched(frozen_verdicts, ReferenceBody.OLD_DIETARY_INGREDIENTS)

        return IngredientComplianceRecord(
            raw_name=raw_name,
            normalized_name=normalized_name if normalized_name is not None else '',
            verdicts=frozen_verdicts,
            is_gras=is_gras,
            has_ndi=has_ndi,
            requires_ndi=requires_ndi,
            allergen_flags=flags,
            notes=self._compliance_notes(raw_name, frozen_verdicts, is_gras, has_ndi,
                                         requires_ndi, flags),
        )

    def build_report(self, records: Iterable[IngredientComplianceRecord],
                     snapshot_version: Optional[str] = None) -> LabelComplianceReport:
        """
        Assemble a label report, keeping record order.

        Args:
            records: Ingredient records in label order
            snapshot_version: Version label of the reference snapshot used

        Returns:
            LabelComplianceReport with summary counts
        """
        records = tuple(records)
        allergen_counts = Counter(c for r in records for c in r.allergen_flags)
        gras = sum(1 for r in records if r.is_gras)

        summary = ComplianceSummary(
            total_ingredients=len(records),
            gras=gras,
            non_gras=len(records) - gras,
            with_ndi=sum(1 for r in records if r.has_ndi),
            requires_ndi=sum(1 for r in records if r.requires_ndi),
            with_allergens=sum(1 for r in records if r.allergen_flags),
            allergen_counts=MappingProxyType(dict(sorted(allergen_counts.items()))),
        )
        logger.debug(
            f"Label report: {summary.total_ingredients} ingredients, "
            f"{summary.non_gras} non-GRAS, {summary.requires_ndi} requiring NDI"
        )
        return LabelComplianceReport(
            records=records,
            summary=summary,
            snapshot_version=snapshot_version,
        )

    def _compliance_notes(self, raw_name, verdicts, is_gras, has_ndi, requires_ndi, flags):
        notes = []

        if ReferenceBody.GRAS.value in verdicts and not is_gras:
            notes.append(
                f'Ingredient "{raw_name}" is NOT in the FDA GRAS database and may require '
                f'special approval or be prohibited for use in food products.'
            )

        if has_ndi:
            entry = verdicts[ReferenceBody.NDI.value].matched_entry
            reference = entry.source_metadata or entry.canonical_name
            notes.append(f'NDI notification {reference} on file with FDA.')
        elif not requires_ndi:
            notes.append(
                'Dietary ingredient marketed before October 15, 1994. '
                'No NDI notification required (grandfathered under DSHEA).'
            )

        if requires_ndi:
            notes.append(
                'Ingredient not recognized as a pre-1994 dietary ingredient. If it was NOT '
                'marketed before October 15, 1994, an NDI notification is required 75 days '
                'before marketing per DSHEA.'
            )

        if flags:
            notes.append(f"Contains major food allergen(s): {', '.join(sorted(flags))}.")

        return tuple(notes)
