"""
In-memory reference index.

Read-only view over one reference body, keyed for exact canonical-name,
synonym and substring lookup. Replaces per-query database round trips with
lookups whose result order is fixed by the order entries were supplied in.
"""

import logging
from types import MappingProxyType
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from ingredient_compliance.matching.types import ReferenceEntry

logger = logging.getLogger(__name__)


def _fold(text: str) -> str:
    """Case-insensitive comparison key."""
    return ' '.join(text.casefold().split())


class ReferenceIndex:
    """
    Immutable lookup structure over the active entries of a reference body.

    Inactive entries are dropped at construction and can never be returned.
    When two entries claim the same exact or synonym key, the entry supplied
    first wins. Candidate sequences are returned in supply order.
    """

    def __init__(self, entries: Iterable[ReferenceEntry],
                 name_key: Optional[Callable[[str], str]] = None):
        """
        Build the index.

        Args:
            entries: Reference entries in supply order
            name_key: Optional normalizer; canonical names and synonyms are
                additionally keyed by its output in separate tables
        """
        active: List[ReferenceEntry] = []
        inactive = 0
        for entry in entries:
            if entry.is_active:
                active.append(entry)
            else:
                inactive += 1

        # Normalized keys live in their own tables; callers consult every
        # literal table before any normalized one.
        exact: Dict[str, ReferenceEntry] = {}
        synonyms: Dict[str, ReferenceEntry] = {}
        normalized_exact: Dict[str, ReferenceEntry] = {}
        normalized_synonyms: Dict[str, ReferenceEntry] = {}
        for entry in active:
            exact.setdefault(_fold(entry.canonical_name), entry)
            for synonym in sorted(entry.synonyms):
                synonyms.setdefault(_fold(synonym), entry)
            if name_key is not None:
                self._register(normalized_exact, name_key(entry.canonical_name), entry)
                for synonym in sorted(entry.synonyms):
                    self._register(normalized_synonyms, name_key(synonym), entry)

        self._entries: Tuple[ReferenceEntry, ...] = tuple(active)
        self._folded_names: Tuple[str, ...] = tuple(_fold(e.canonical_name) for e in active)
        self._exact = MappingProxyType(exact)
        self._synonyms = MappingProxyType(synonyms)
        self._normalized_exact = MappingProxyType(normalized_exact)
        self._normalized_synonyms = MappingProxyType(normalized_synonyms)
        self._inactive_count = inactive

        logger.debug(
            f"Built reference index: {len(active)} active entries, "
            f"{inactive} inactive, {len(synonyms)} synonym keys, "
            f"{len(normalized_exact) + len(normalized_synonyms)} normalized keys"
        )

    @staticmethod
    def _register(table: Dict[str, ReferenceEntry], key: str, entry: ReferenceEntry) -> None:
        """Add a normalized key unless it is empty or already claimed."""
        if key:
            table.setdefault(_fold(key), entry)

    # ── Core lookups ─────────────────────────────────────────────────────

    def by_exact_name(self, normalized: str) -> Optional[ReferenceEntry]:
        """
        Case-insensitive equality against canonical names.

        Args:
            normalized: Normalized ingredient name

        Returns:
            Matching active entry, or None
        """
        if not normalized:
            return None
        return self._exact.get(_fold(normalized))

    def by_synonym(self, normalized: str) -> Optional[ReferenceEntry]:
        """
        Case-insensitive equality against any synonym of an active entry.

        Args:
            normalized: Normalized ingredient name

        Returns:
            Matching active entry, or None
        """
        if not normalized:
            return None
        return self._synonyms.get(_fold(normalized))

    def by_normalized_name(self, normalized: str) -> Optional[ReferenceEntry]:
        """
        Equality against the normalized form of canonical names.

        Empty unless the index was built with ``name_key``. Consult
        :meth:`by_exact_name` and :meth:`by_synonym` first; a literal key
        always takes precedence over a normalized one.
        """
        if not normalized:
            return None
        return self._normalized_exact.get(_fold(normalized))

    def by_normalized_synonym(self, normalized: str) -> Optional[ReferenceEntry]:
        """Equality against the normalized form of synonyms."""
        if not normalized:
            return None
        return self._normalized_synonyms.get(_fold(normalized))

    def by_name_contains(self, term: str) -> Tuple[ReferenceEntry, ...]:
        """
        All active entries whose canonical name contains ``term``.

        Comparison is case-insensitive. Entries come back in supply order.

        Args:
            term: Search token

        Returns:
            Tuple of matching entries (empty if none)
        """
        needle = _fold(term) if term else ''
        if not needle:
            return ()
        return tuple(
            entry for entry, name in zip(self._entries, self._folded_names)
            if needle in name
        )

    # ── Browsing helpers ─────────────────────────────────────────────────

    def search(self, query: str, limit: int = 50) -> List[ReferenceEntry]:
        """
        Search canonical names and synonyms for a substring.

        Args:
            query: Case-insensitive substring
            limit: Maximum number of entries returned

        Returns:
            Matching entries sorted by canonical name
        """
        needle = _fold(query) if query else ''
        if not needle or limit <= 0:
            return []

        hits = [
            entry for entry, name in zip(self._entries, self._folded_names)
            if needle in name or any(needle in _fold(s) for s in entry.synonyms)
        ]
        hits.sort(key=lambda e: _fold(e.canonical_name))
        return hits[:limit]

    def by_category(self, category: str) -> Tuple[ReferenceEntry, ...]:
        """All active entries with the given category, in supply order."""
        wanted = _fold(category) if category else ''
        return tuple(
            entry for entry in self._entries
            if entry.category is not None and _fold(entry.category) == wanted
        )

    @property
    def entries(self) -> Tuple[ReferenceEntry, ...]:
        """Active entries in supply order."""
        return self._entries

    @property
    def inactive_count(self) -> int:
        """Number of inactive entries dropped at construction."""
        return self._inactive_count

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ReferenceEntry]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"<ReferenceIndex(active={len(self._entries)}, inactive={self._inactive_count})>"
