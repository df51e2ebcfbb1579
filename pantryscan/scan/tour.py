"""Cross-area bookkeeping for a multi-area scan tour."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


class DedupTracker:
    """Append-only registry of (item name, area label) pairs seen this tour."""

    def __init__(self) -> None:
        self._entries: list[tuple[str, str]] = []

    def register(self, name: str, area_label: str) -> None:
        self._entries.append((name, area_label))

    def lookup(self, name: str) -> str | None:
        """Area label of the first prior entry with this name (case-insensitive)."""
        wanted = name.strip().casefold()
        for seen_name, area_label in self._entries:
            if seen_name.strip().casefold() == wanted:
                return area_label
        return None

    def names(self) -> list[str]:
        return [name for name, _ in self._entries]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


@dataclass(frozen=True)
class TourSummaryData:
    per_area: dict[str, int]
    total_items: int
    category_breakdown: dict[str, int]


@dataclass
class _AreaResult:
    name: str
    count: int


class TourAggregator:
    """Per-area committed counts and merged category tallies."""

    def __init__(self) -> None:
        self._areas: dict[str, _AreaResult] = {}
        self._categories: dict[str, int] = {}

    def record_area_result(
        self,
        area_id: str,
        committed_count: int,
        category_tally: dict[str, int],
        area_name: str | None = None,
    ) -> None:
        """Record an area's result; a re-committed area replaces its count."""
        self._areas[area_id] = _AreaResult(area_name or area_id, committed_count)
        for category, count in category_tally.items():
            self._categories[category] = self._categories.get(category, 0) + count

    def add_categories(self, category_tally: dict[str, int]) -> None:
        for category, count in category_tally.items():
            self._categories[category] = self._categories.get(category, 0) + count

    @property
    def completed_areas(self) -> dict[str, int]:
        return {area_id: r.count for area_id, r in self._areas.items()}

    def summarize(self) -> TourSummaryData:
        per_area = {r.name: r.count for r in self._areas.values()}
        return TourSummaryData(
            per_area=per_area,
            total_items=sum(per_area.values()),
            category_breakdown=dict(self._categories),
        )

    def clear(self) -> None:
        self._areas.clear()
        self._categories.clear()


@dataclass
class TourContext:
    """Tour state that outlives a single area but not a full reset."""

    dedup: DedupTracker = field(default_factory=DedupTracker)
    aggregator: TourAggregator = field(default_factory=TourAggregator)

    def record_commit(
        self,
        area_id: str | None,
        area_name: str,
        committed_names: list[str],
        category_tally: dict[str, int],
    ) -> None:
        """Register committed names for dedup and record the area's count.

        ``area_id`` is None for a quick scan: names are still registered but
        no per-area count is kept.
        """
        for name in committed_names:
            self.dedup.register(name, area_name)
        if area_id is not None:
            self.aggregator.record_area_result(
                area_id, len(committed_names), category_tally, area_name=area_name
            )
        else:
            self.aggregator.add_categories(category_tally)
        logger.info("Recorded %d items for %s", len(committed_names), area_name)

    def reset(self) -> None:
        self.dedup.clear()
        self.aggregator.clear()
