"""
Reference snapshots and their lifecycle.

A snapshot bundles one ReferenceIndex per reference body with the allergen
entries, all built from a single load. Label checks hold one snapshot for
their whole duration; refreshing swaps in a new snapshot without touching
the one in use.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Optional, Tuple

from loguru import logger

from ingredient_compliance.compliance.exceptions import (
    SnapshotStaleError,
    SnapshotUnavailableError,
)
from ingredient_compliance.matching.reference_index import ReferenceIndex
from ingredient_compliance.matching.types import AllergenEntry, ReferenceEntry, body_id
from ingredient_compliance.normalization import normalize_ingredient_name


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ReferenceSnapshot:
    """
    Immutable set of reference indexes loaded together.

    Attributes:
        bodies: ReferenceIndex per reference body id
        allergens: Active allergen entries in supply order
        loaded_at: When the snapshot was built (UTC)
        version: Optional label identifying the data release
    """
    bodies: Mapping[str, ReferenceIndex]
    allergens: Tuple[AllergenEntry, ...] = ()
    loaded_at: datetime = field(default_factory=_utcnow)
    version: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(
            self, 'bodies', MappingProxyType({body_id(k): v for k, v in self.bodies.items()})
        )
        object.__setattr__(self, 'allergens', tuple(self.allergens))

    @classmethod
    def from_entries(cls,
                     bodies: Mapping[str, Iterable[ReferenceEntry]],
                     allergens: Iterable[AllergenEntry] = (),
                     name_key: Optional[Callable[[str], str]] = normalize_ingredient_name,
                     version: Optional[str] = None,
                     loaded_at: Optional[datetime] = None) -> 'ReferenceSnapshot':
        """
        Build indexes for every body from raw entry lists.

        Args:
            bodies: Entries per reference body id, in supply order
            allergens: Allergen entries; inactive ones are dropped
            name_key: Normalizer applied to reference names for additional keys
            version: Data release label
            loaded_at: Load timestamp (now if None)

        Returns:
            ReferenceSnapshot
        """
        indexes = {
            body_id(body): ReferenceIndex(entries, name_key=name_key)
            for body, entries in bodies.items()
        }
        active_allergens = tuple(a for a in allergens if a.is_active)
        return cls(
            bodies=indexes,
            allergens=active_allergens,
            loaded_at=loaded_at or _utcnow(),
            version=version,
        )

    def index_for(self, body) -> Optional[ReferenceIndex]:
        """Index of a reference body, None if the snapshot does not carry it."""
        return self.bodies.get(body_id(body))

    def age_seconds(self, now: Optional[datetime] = None) -> float:
        """Seconds elapsed since the snapshot was loaded."""
        return ((now or _utcnow()) - self.loaded_at).total_seconds()

    def describe(self) -> str:
        sizes = ', '.join(f"{name}={len(index)}" for name, index in self.bodies.items())
        return f"version={self.version or 'unversioned'} [{sizes}, allergens={len(self.allergens)}]"


class SnapshotSupplier(ABC):
    """Source of reference snapshots, pulled on refresh."""

    @abstractmethod
    def load(self) -> ReferenceSnapshot:
        """
        Load a complete snapshot of every reference body.

        Raises:
            Any exception on failure; the engine reports it as
            SnapshotUnavailableError.
        """


class StaticSnapshotSupplier(SnapshotSupplier):
    """Supplier over in-memory entry lists, for fixtures and embedded data."""

    def __init__(self,
                 bodies: Mapping[str, Iterable[ReferenceEntry]],
                 allergens: Iterable[AllergenEntry] = (),
                 version: Optional[str] = None):
        self.bodies = {body_id(k): tuple(v) for k, v in bodies.items()}
        self.allergens = tuple(allergens)
        self.version = version

    def load(self) -> ReferenceSnapshot:
        return ReferenceSnapshot.from_entries(self.bodies, self.allergens, version=self.version)


class SnapshotStore:
    """
    Holder of the current reference snapshot.

    Swapping replaces the reference under a lock; readers receive the
    snapshot object itself, which is immutable, so a check that already
    holds one is unaffected by later swaps.
    """

    def __init__(self, max_age_seconds: Optional[float] = None,
                 snapshot: Optional[ReferenceSnapshot] = None):
        """
        Initialize the store.

        Args:
            max_age_seconds: Snapshots older than this are refused (None disables)
            snapshot: Optional initial snapshot
        """
        if max_age_seconds is not None and max_age_seconds <= 0:
            raise ValueError(f"max_age_seconds must be positive, got {max_age_seconds}")
        self.max_age_seconds = max_age_seconds
        self._lock = threading.Lock()
        self._snapshot = snapshot

    def swap(self, snapshot: ReferenceSnapshot) -> Optional[ReferenceSnapshot]:
        """
        Install a new snapshot.

        Returns:
            The snapshot it replaced, or None
        """
        if not isinstance(snapshot, ReferenceSnapshot):
            raise TypeError(f"Expected ReferenceSnapshot, got {type(snapshot).__name__}")
        with self._lock:
            previous, self._snapshot = self._snapshot, snapshot
        logger.info(f"Reference snapshot swapped in: {snapshot.describe()}")
        return previous

    def current(self, now: Optional[datetime] = None) -> ReferenceSnapshot:
        """
        The snapshot to use for a check.

        Raises:
            SnapshotUnavailableError: No snapshot loaded
            SnapshotStaleError: Snapshot older than max_age_seconds
        """
        with self._lock:
            snapshot = self._snapshot
        if snapshot is None:
            raise SnapshotUnavailableError("No reference snapshot loaded")

        if self.max_age_seconds is not None:
            age = snapshot.age_seconds(now)
            if age > self.max_age_seconds:
                logger.warning(
                    f"Reference snapshot is {age:.0f}s old (limit {self.max_age_seconds}s)"
                )
                raise SnapshotStaleError(
                    f"Reference snapshot loaded at {snapshot.loaded_at.isoformat()} "
                    f"exceeds maximum age of {self.max_age_seconds}s"
                )
        return snapshot

    def peek(self) -> Optional[ReferenceSnapshot]:
        """Current snapshot without availability or staleness checks."""
        with self._lock:
            return self._snapshot

    def clear(self) -> None:
        with self._lock:
            self._snapshot = None
        logger.info("Reference snapshot cleared")
