"""
Label compliance engine.

Entry point that ties the pipeline together for one label:

    raw name -> normalizer -> matcher (per reference body)
                           -> allergen detector
             -> aggregator -> LabelComplianceReport

One reference snapshot is taken per label and used for every ingredient.
A missing or empty required reference body rejects the whole check.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Sequence

from loguru import logger

from ingredient_compliance.compliance.aggregator import ComplianceAggregator
from ingredient_compliance.compliance.exceptions import (
    MissingReferenceBodyError,
    SnapshotUnavailableError,
)
from ingredient_compliance.compliance.records import (
    IngredientComplianceRecord,
    LabelComplianceReport,
)
from ingredient_compliance.compliance.snapshot import (
    ReferenceSnapshot,
    SnapshotStore,
    SnapshotSupplier,
)
from ingredient_compliance.matching.allergen_detector import AllergenDetector
from ingredient_compliance.matching.reference_matcher import ReferenceMatcher
from ingredient_compliance.matching.types import ReferenceBody, body_id
from ingredient_compliance.normalization import IngredientNormalizer

DEFAULT_REQUIRED_BODIES = tuple(body.value for body in ReferenceBody)


class ComplianceEngine:
    """
    Checks label ingredient lists against the current reference snapshot.

    Example:
        >>> engine = ComplianceEngine(supplier=StaticSnapshotSupplier(bodies, allergens))
        >>> engine.refresh()
        >>> report = engine.check_label(["Whey Protein Isolate", "Ascorbic Acid"])
        >>> report.non_gras_ingredients
    """

    def __init__(self,
                 store: Optional[SnapshotStore] = None,
                 supplier: Optional[SnapshotSupplier] = None,
                 normalizer: Optional[IngredientNormalizer] = None,
                 matcher: Optional[ReferenceMatcher] = None,
                 detector: Optional[AllergenDetector] = None,
                 aggregator: Optional[ComplianceAggregator] = None,
                 required_bodies: Iterable[str] = DEFAULT_REQUIRED_BODIES,
                 allow_empty_bodies: bool = False,
                 max_workers: int = 1):
        """
        Initialize the engine.

        Args:
            store: Snapshot holder (creates an empty store if None)
            supplier: Source used by refresh()
            normalizer: IngredientNormalizer instance (creates new if None)
            matcher: ReferenceMatcher instance (creates new if None)
            detector: AllergenDetector instance (creates new if None)
            aggregator: ComplianceAggregator instance (creates new if None)
            required_bodies: Reference bodies that must be present to check a label
            allow_empty_bodies: Accept a required body with no active entries
            max_workers: Threads used per label (1 checks sequentially)
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")

        self.store = store or SnapshotStore()
        self.supplier = supplier
        self.normalizer = normalizer or IngredientNormalizer()
        self.matcher = matcher or ReferenceMatcher()
        self.detector = detector or AllergenDetector()
        self.aggregator = aggregator or ComplianceAggregator()
        self.required_bodies = tuple(body_id(b) for b in required_bodies)
        self.allow_empty_bodies = allow_empty_bodies
        self.max_workers = max_workers

    @classmethod
    def from_config(cls, config, supplier: Optional[SnapshotSupplier] = None,
                    store: Optional[SnapshotStore] = None) -> 'ComplianceEngine':
        """
        Build an engine from a ConfigManager.

        Args:
            config: ConfigManager instance
            supplier: Source used by refresh()
            store: Snapshot holder (created with the configured max age if None)
        """
        settings = config.snapshot_settings()
        return cls(
            store=store or SnapshotStore(max_age_seconds=settings['max_age_seconds']),
            supplier=supplier,
            matcher=ReferenceMatcher(config.matcher_config()),
            detector=AllergenDetector(config.allergen_false_positives()),
            required_bodies=settings['required_bodies'],
            allow_empty_bodies=settings['allow_empty_bodies'],
            max_workers=int(config.get_section('engine').get('max_workers', 1)),
        )

    # ── Snapshot lifecycle ───────────────────────────────────────────────

    def refresh(self) -> ReferenceSnapshot:
        """
        Load a new snapshot from the supplier and swap it in.

        The previous snapshot stays in place if loading fails.

        Returns:
            The snapshot now in use

        Raises:
            SnapshotUnavailableError: No supplier configured or the supplier failed
        """
        if self.supplier is None:
            raise SnapshotUnavailableError("No snapshot supplier configured")

        logger.info(f"Refreshing reference snapshot from {type(self.supplier).__name__}")
        try:
            snapshot = self.supplier.load()
        except Exception as e:
            logger.error(f"Reference snapshot load failed: {e}")
            if self.store.peek() is not None:
                logger.warning("Keeping previously loaded reference snapshot")
            raise SnapshotUnavailableError(f"Snapshot supplier failed: {e}") from e

        if not isinstance(snapshot, ReferenceSnapshot):
            logger.error(f"Supplier returned {type(snapshot).__name__}, not a ReferenceSnapshot")
            raise SnapshotUnavailableError(
                f"Snapshot supplier returned {type(snapshot).__name__} instead of a ReferenceSnapshot"
            )

        self.store.swap(snapshot)
        return snapshot

    def validate_snapshot(self, snapshot: ReferenceSnapshot) -> None:
        """
        Check that every required reference body can be used.

        Raises:
            MissingReferenceBodyError: A required body is absent, or empty
                while empty bodies are not allowed
        """
        for body in self.required_bodies:
            index = snapshot.index_for(body)
            if index is None:
                raise MissingReferenceBodyError(body, "missing")
            if len(index) == 0 and not self.allow_empty_bodies:
                raise MissingReferenceBodyError(body, "empty")

    # ── Checks ───────────────────────────────────────────────────────────

    def check_label(self, raw_names: Sequence[str]) -> LabelComplianceReport:
        """
        Check every ingredient of one label.

        Args:
            raw_names: Ingredient names in label order

        Returns:
            LabelComplianceReport with records in input order

        Raises:
            SnapshotUnavailableError: No usable snapshot, or a required body
                is missing (MissingReferenceBodyError) or stale (SnapshotStaleError)
        """
        if isinstance(raw_names, str):
            raise TypeError("check_label expects a sequence of ingredient names, not a string")
        names = list(raw_names)

        snapshot = self.store.current()
        self.validate_snapshot(snapshot)

        if self.max_workers > 1 and len(names) > 1:
            workers = min(self.max_workers, len(names))
            logger.debug(f"Checking {len(names)} ingredients using {workers} workers")
            with ThreadPoolExecutor(max_workers=workers) as executor:
                # map() yields in submission order
                records = list(executor.map(lambda name: self._check(name, snapshot), names))
        else:
            records = [self._check(name, snapshot) for name in names]

        report = self.aggregator.build_report(records, snapshot_version=snapshot.version)
        logger.info(
            f"Label check complete: {report.summary.total_ingredients} ingredients, "
            f"{report.summary.non_gras} non-GRAS, {report.summary.with_allergens} with allergens"
        )
        return report

    def check_ingredient(self, raw_name: str,
                         snapshot: Optional[ReferenceSnapshot] = None) -> IngredientComplianceRecord:
        """
        Check a single ingredient.

        Args:
            raw_name: Ingredient name as printed on the label
            snapshot: Snapshot to use (current store snapshot if None)

        Returns:
            IngredientComplianceRecord
        """
        if snapshot is None:
            snapshot = self.store.current()
        self.validate_snapshot(snapshot)
        return self._check(raw_name, snapshot)

    def check_labels(self, labels: Iterable[Sequence[str]]) -> List[LabelComplianceReport]:
        """Check several labels, each against the snapshot current when it starts."""
        return [self.check_label(names) for names in labels]

    def _check(self, raw_name: str, snapshot: ReferenceSnapshot) -> IngredientComplianceRecord:
        normalized = self.normalizer.normalize(raw_name)
        verdicts = {
            body: self.matcher.match(normalized, index, body)
            for body, index in snapshot.bodies.items()
        }
        flags = self.detector.detect(normalized, snapshot.allergens)
        return self.aggregator.aggregate(raw_name, verdicts, flags, normalized)
