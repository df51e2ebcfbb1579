"""Resolve item names against existing inventory records."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..db import normalize_name
from .review import MatchCandidate, MatchType

if TYPE_CHECKING:
    from ..db import InventoryDB

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchResult:
    match_type: MatchType
    matched_record_id: int | None
    candidate_records: tuple[MatchCandidate, ...]

    @property
    def best(self) -> MatchCandidate | None:
        if self.matched_record_id is None:
            return None
        for candidate in self.candidate_records:
            if candidate.id == self.matched_record_id:
                return candidate
        return None


def _to_candidate(record: dict) -> MatchCandidate:
    return MatchCandidate(
        id=record["id"],
        name=record["name"],
        current_quantity=record["quantity"],
        unit=record.get("unit"),
        category=record.get("category"),
    )


def unit_conflict(candidate: MatchCandidate | None, unit: str) -> str | None:
    """A note when the matched record counts in a different unit."""
    if candidate is None or not unit.strip():
        return None
    if candidate.unit is None:
        return "Inventory has no unit set"
    if candidate.unit.casefold() != unit.strip().casefold():
        return f"Inventory uses {candidate.unit}"
    return None


class MatchResolver:
    """Looks up the best existing record for a name plus a ranked list of alternatives."""

    def __init__(self, store: InventoryDB, max_candidates: int = 5) -> None:
        self._store = store
        self._max_candidates = max_candidates

    def match(self, name: str) -> MatchCandidate | None:
        """The single best record for ``name``, or None.

        Store errors are logged and treated as no match.
        """
        if not normalize_name(name):
            return None
        try:
            record = self._store.find_by_name(name)
        except Exception:
            logger.warning("Failed to look up %r", name, exc_info=True)
            return None
        return _to_candidate(record) if record else None

    def resolve(self, name: str) -> MatchResult:
        """Decide the match type for ``name``.

        A match pre-selects ``UPDATE_EXISTING`` with that record first in
        the candidate list; otherwise ``CREATE_NEW``. Keyword hits are added
        to the candidate list for manual override but never decide the
        match type.
        """
        best = self.match(name)

        ranked: list[MatchCandidate] = [best] if best else []
        seen = {c.id for c in ranked}
        try:
            hits = self._store.search_by_keyword(name, limit=self._max_candidates)
        except Exception:
            logger.warning("Keyword search failed for %r", name, exc_info=True)
            hits = []
        for record in hits:
            if len(ranked) >= self._max_candidates:
                break
            if record["id"] not in seen:
                ranked.append(_to_candidate(record))
                seen.add(record["id"])

        if best is not None:
            return MatchResult(MatchType.UPDATE_EXISTING, best.id, tuple(ranked))
        return MatchResult(MatchType.CREATE_NEW, None, tuple(ranked))
