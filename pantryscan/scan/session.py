"""Scan session: drives one capture flow from photo to committed inventory."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING

from ..areas import KitchenArea, find_area
from ..config import AppConfig, ScanConfig
from ..defaults import DefaultsTable
from ..vision import Candidate, Confidence, ScanKind, VisionBackend, VisionError
from . import stages
from .attributes import coerce_quantity, format_quantity, parse_quantity, resolve_attributes
from .commit import CommitEngine, CommitResult
from .matching import MatchResolver, unit_conflict
from .review import MatchType, ReviewItem, ReviewModel
from .tour import TourContext, TourSummaryData

if TYPE_CHECKING:
    from ..db import InventoryDB, ShoppingListDB

logger = logging.getLogger(__name__)

QUICK_SCAN_LABEL = "Quick Scan"
RECEIPT_AREA_HINT = "receipt"


@dataclass(frozen=True)
class SessionSnapshot:
    stage: stages.Stage
    items: tuple[ReviewItem, ...]
    area_name: str | None


class ScanSession:
    """Owns the stage, the review model and the tour context of one flow.

    All I/O (vision requests, store writes) happens here; stage changes go
    through :func:`stages.reduce`. Commands that do not apply to the current
    stage are ignored.
    """

    def __init__(
        self,
        backend: VisionBackend,
        store: InventoryDB,
        *,
        shopping: ShoppingListDB | None = None,
        defaults: DefaultsTable | None = None,
        config: ScanConfig | None = None,
        kind: ScanKind = ScanKind.KITCHEN,
        min_confidence: Confidence | str = Confidence.LOW,
        tour: TourContext | None = None,
        today: date | None = None,
        on_change: Callable[[SessionSnapshot], None] | None = None,
    ) -> None:
        self._backend = backend
        self._store = store
        self._shopping = shopping
        self._defaults = defaults or DefaultsTable.instance()
        self._config = config or ScanConfig()
        self._kind = kind
        self._min_confidence = Confidence(min_confidence)
        self._tour = tour or TourContext()
        self._today = today
        self._on_change = on_change
        self._resolver = MatchResolver(store)

        self._stage: stages.Stage = stages.initial_stage(self._has_area_selection)
        self._review = ReviewModel()
        self._area: KitchenArea | None = None
        self._location_id: int | None = None
        self._has_photo = False
        self._summary: TourSummaryData | None = None
        # Bumped whenever in-flight vision or commit results must be dropped.
        self._generation = 0
        self._rematch_tasks: dict[int, asyncio.Task] = {}

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        *,
        backend: VisionBackend | None = None,
        kind: ScanKind = ScanKind.KITCHEN,
        **kwargs,
    ) -> ScanSession:
        """Build a session with stores and a vision backend from configuration."""
        from ..db import InventoryDB, ShoppingListDB
        from ..vision import create_backend

        db_path = Path(config.database.path)
        return cls(
            backend or create_backend(config),
            InventoryDB(db_path),
            shopping=ShoppingListDB(db_path),
            config=config.scan,
            kind=kind,
            min_confidence=config.vision.min_confidence,
            **kwargs,
        )

    def close(self) -> None:
        """Cancel pending re-matches and close the stores."""
        self._clear_working_state()
        self._store.close()
        if self._shopping is not None:
            self._shopping.close()

    # ── State ────────────────────────────────────────────────────────

    @property
    def stage(self) -> stages.Stage:
        return self._stage

    @property
    def items(self) -> list[ReviewItem]:
        return self._review.items

    @property
    def area(self) -> KitchenArea | None:
        return self._area

    @property
    def kind(self) -> ScanKind:
        return self._kind

    @property
    def tour(self) -> TourContext:
        return self._tour

    @property
    def summary(self) -> TourSummaryData | None:
        return self._summary

    @property
    def is_tour_mode(self) -> bool:
        return self._area is not None

    @property
    def is_dirty(self) -> bool:
        """True if the current area holds a photo or unsaved review items."""
        return self._has_photo or bool(self._review)

    @property
    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            self._stage,
            tuple(self._review.items),
            self._area.name if self._area else None,
        )

    @property
    def _has_area_selection(self) -> bool:
        return self._kind is ScanKind.KITCHEN

    def _dispatch(self, event: stages.Event) -> stages.Stage:
        self._stage = stages.reduce(self._stage, event)
        self._notify()
        return self._stage

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self.snapshot)

    def _clear_working_state(self) -> None:
        for task in self._rematch_tasks.values():
            task.cancel()
        self._rematch_tasks.clear()
        self._review = ReviewModel()
        self._has_photo = False

    # ── Area selection ───────────────────────────────────────────────

    def select_area(self, area_id: str) -> bool:
        area = find_area(area_id)
        if area is None:
            logger.warning("Unknown kitchen area: %s", area_id)
            return False
        if not isinstance(self._dispatch(stages.SelectArea(area.name)), stages.Idle):
            return False
        self._enter_area(area)
        return True

    def quick_scan(self) -> bool:
        if not isinstance(self._dispatch(stages.QuickScan()), stages.Idle):
            return False
        self._enter_area(None)
        return True

    def _enter_area(self, area: KitchenArea | None) -> None:
        self._clear_working_state()
        self._area = area
        self._location_id = None
        if area is None:
            return
        try:
            self._location_id = self._store.find_location(area.location_name)
        except sqlite3.Error:
            logger.warning("Failed to resolve location %s", area.location_name, exc_info=True)

    # ── Capture ──────────────────────────────────────────────────────

    async def capture_image(self, image: bytes | str | Path) -> stages.Stage:
        """Send a photo to the vision backend and build the review list.

        A new photo replaces the current area's working state. Vision and
        image failures become :class:`stages.Error`; zero usable candidates
        become :class:`stages.EmptyResult`.
        """
        if not isinstance(self._dispatch(stages.CaptureImage()), stages.Processing):
            return self._stage

        self._clear_working_state()
        self._has_photo = True
        self._generation += 1
        generation = self._generation

        try:
            categories = self._store.list_categories()
        except sqlite3.Error:
            logger.warning("Failed to load categories", exc_info=True)
            categories = []

        try:
            candidates = await self._backend.parse_image(
                image,
                self._area_hint(),
                categories,
                self._tour.dedup.names() if self._kind is ScanKind.KITCHEN else [],
                scan_hints=self._area.scan_hints if self._area else "",
                min_expected=(
                    self._area.min_expected if self._area
                    else self._config.quick_scan_min_items
                ),
                kind=self._kind,
            )
        except VisionError as e:
            logger.warning("Vision request failed: %s", e)
            if generation == self._generation:
                self._dispatch(stages.VisionFailed(str(e)))
            return self._stage
        except Exception:
            if generation == self._generation:
                self._dispatch(stages.Back(confirmed=True))
            raise

        if generation != self._generation:
            logger.debug("Dropping vision result from a superseded capture")
            return self._stage

        kept = [c for c in candidates if c.confidence.rank >= self._min_confidence.rank]
        if len(kept) < len(candidates):
            logger.info(
                "Dropped %d candidates below %s confidence",
                len(candidates) - len(kept), self._min_confidence.value,
            )
        for candidate in kept:
            self._review.append(self._build_item(candidate, categories))
        return self._dispatch(stages.VisionSucceeded(len(kept)))

    def _area_hint(self) -> str:
        if self._kind is ScanKind.RECEIPT:
            return RECEIPT_AREA_HINT
        if self._area is not None:
            return self._area.ai_label
        return self._config.default_area_label

    def _build_item(
        self,
        candidate: Candidate,
        categories: list[str],
        confidence: Confidence | None = None,
    ) -> ReviewItem:
        quantity = coerce_quantity(candidate.quantity)
        match = self._resolver.resolve(candidate.name)
        best = match.best
        attrs = resolve_attributes(
            candidate, best, self._defaults.lookup, categories, today=self._today
        )

        dup_warning = None
        if self._kind is ScanKind.KITCHEN:
            seen_in = self._tour.dedup.lookup(candidate.name)
            if seen_in is not None:
                dup_warning = f"Also found in {seen_in}"

        return ReviewItem(
            name=candidate.name,
            quantity=format_quantity(quantity),
            unit=attrs.unit,
            category=attrs.category,
            confidence=confidence or candidate.confidence,
            match_type=match.match_type,
            matched_record_id=match.matched_record_id,
            candidate_records=match.candidate_records,
            expiry_date=attrs.expiry_date,
            is_estimated_expiry=attrs.is_estimated_expiry,
            dup_warning=dup_warning,
            unit_conflict=unit_conflict(best, attrs.unit),
            storage_location=self._storage_location(attrs.storage_location, attrs.category),
            price=str(candidate.price) if candidate.price is not None else "",
        )

    def _storage_location(self, item_location: str | None, category: str) -> str | None:
        if self._area is not None:
            return self._area.location_name
        if item_location:
            return item_location
        by_category = self._defaults.category_defaults(category) if category else None
        return by_category.location if by_category else None

    # ── Review edits ─────────────────────────────────────────────────

    def _in_review(self) -> bool:
        return isinstance(self._stage, stages.Review)

    def _edit(self, index: int, **changes) -> ReviewItem | None:
        if not self._in_review():
            return None
        updated = self._review.update_at(index, **changes)
        if updated is not None:
            self._notify()
        return updated

    def update_name(self, index: int, name: str) -> None:
        """Rename an item; the match is re-resolved once edits go quiet."""
        if not self._in_review():
            return
        key = self._review.key_at(index)
        if key is None:
            return
        self._review.replace_item(key, name=name)
        self._notify()
        self._schedule_rematch(key, name)

    def update_quantity(self, index: int, quantity: str) -> None:
        self._edit(index, quantity=quantity)

    def update_unit(self, index: int, unit: str) -> None:
        self._edit(index, unit=unit, unit_conflict=None)

    def update_category(self, index: int, category: str) -> None:
        self._edit(index, category=category)

    def update_expiry(self, index: int, expiry: date | None) -> None:
        self._edit(index, expiry_date=expiry, is_estimated_expiry=False)

    def update_price(self, index: int, price: str) -> None:
        self._edit(index, price=price)

    def update_barcode(self, index: int, barcode: str) -> None:
        self._edit(index, barcode=barcode)

    def mark_reviewed(self, index: int) -> None:
        self._edit(index, is_reviewed=True)

    def mark_all_reviewed(self) -> None:
        if not self._in_review() or not self._review:
            return
        self._review.update_all(is_reviewed=True)
        self._notify()

    def change_match_type(
        self, index: int, match_type: MatchType, record_id: int | None = None
    ) -> None:
        if not self._in_review():
            return
        item = self._review.change_match_type(index, match_type, record_id)
        if item is None:
            return
        selected = None
        if item.match_type is MatchType.UPDATE_EXISTING:
            selected = next(
                (c for c in item.candidate_records if c.id == item.matched_record_id), None
            )
        self._review.update_at(index, unit_conflict=unit_conflict(selected, item.unit))
        self._notify()

    def remove_item(self, index: int) -> None:
        """Delete an item; removing the last one leaves review for guidance."""
        if not self._in_review():
            return
        key = self._review.key_at(index)
        if key is None:
            return
        task = self._rematch_tasks.pop(key, None)
        if task is not None:
            task.cancel()
        self._review.remove_at(index)
        if not self._review:
            self._dispatch(stages.ItemsCleared())
        else:
            self._notify()

    def add_manual_item(self, name: str, quantity: str = "1") -> ReviewItem | None:
        if not self._in_review() or not name.strip():
            return None
        try:
            categories = self._store.list_categories()
        except sqlite3.Error:
            logger.warning("Failed to load categories", exc_info=True)
            categories = []
        candidate = Candidate(name=name.strip(), quantity=parse_quantity(quantity))
        item = self._build_item(candidate, categories, confidence=Confidence.HIGH)
        self._review.append(item)
        self._notify()
        return item

    # ── Debounced re-match ───────────────────────────────────────────

    def _schedule_rematch(self, key: int, name: str) -> None:
        previous = self._rematch_tasks.pop(key, None)
        if previous is not None:
            previous.cancel()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._apply_rematch(key, name)
            return
        self._rematch_tasks[key] = loop.create_task(self._rematch_later(key, name))

    async def _rematch_later(self, key: int, name: str) -> None:
        await asyncio.sleep(self._config.rematch_delay)
        task = self._rematch_tasks.get(key)
        if task is asyncio.current_task():
            del self._rematch_tasks[key]
        self._apply_rematch(key, name)

    def _apply_rematch(self, key: int, name: str) -> None:
        if not name.strip() or not self._in_review():
            return
        item = self._review.get(key)
        # A later edit or removal supersedes this result.
        if item is None or item.name != name:
            return

        match = self._resolver.resolve(name)
        if match.match_type is MatchType.UPDATE_EXISTING:
            match_type = (
                MatchType.SKIP if item.match_type is MatchType.SKIP
                else MatchType.UPDATE_EXISTING
            )
            self._review.replace_item(
                key,
                match_type=match_type,
                matched_record_id=(
                    match.matched_record_id
                    if match_type is MatchType.UPDATE_EXISTING else None
                ),
                candidate_records=match.candidate_records,
                unit_conflict=unit_conflict(match.best, item.unit),
            )
        else:
            self._review.replace_item(
                key,
                match_type=(
                    MatchType.CREATE_NEW
                    if item.match_type is MatchType.UPDATE_EXISTING
                    else item.match_type
                ),
                matched_record_id=None,
                candidate_records=match.candidate_records,
                unit_conflict=None,
            )
        self._notify()

    async def settle(self) -> None:
        """Wait for pending re-matches to finish."""
        tasks = list(self._rematch_tasks.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ── Commit ───────────────────────────────────────────────────────

    async def confirm_commit(self) -> CommitResult | None:
        """Write the active review items and record the area's outcome.

        Returns None when there is nothing to commit or the session is not
        reviewing.
        """
        if not self._in_review():
            return None
        await self.settle()
        items = self._review.active_items()
        if not isinstance(self._dispatch(stages.ConfirmCommit(len(items))), stages.Saving):
            return None

        generation = self._generation

        def on_progress(current: int, total: int) -> None:
            if generation == self._generation:
                self._dispatch(stages.CommitProgress(current, total))

        engine = CommitEngine(
            self._store,
            self._config.receipt_note if self._kind is ScanKind.RECEIPT
            else self._config.purchase_note,
            shopping=self._shopping,
            defaults=self._defaults,
            location_id=self._location_id,
            today=self._today,
        )
        result = await engine.commit(
            items,
            on_progress=on_progress,
            should_stop=lambda: generation != self._generation,
        )
        if generation != self._generation:
            return result

        if self._kind is ScanKind.KITCHEN:
            self._record_outcome(result)
        self._review = ReviewModel()
        self._has_photo = False
        self._dispatch(
            stages.CommitFinished(
                result.succeeded_count, self._area.name if self._area else None
            )
        )
        return result

    def _record_outcome(self, result: CommitResult) -> None:
        area_id = self._area.id if self._area else None
        area_name = self._area.name if self._area else QUICK_SCAN_LABEL
        self._tour.record_commit(
            area_id,
            area_name,
            [item.name for item in result.committed],
            result.category_tally(),
        )
        if area_id is not None:
            return
        try:
            items = self._store.get_setting_int("last_scan_item_count")
            areas = self._store.get_setting_int("last_scan_area_count")
            self._store.set_setting_int(
                "last_scan_item_count", items + result.succeeded_count
            )
            self._store.set_setting_int("last_scan_area_count", areas + 1)
        except sqlite3.Error:
            logger.warning("Failed to save scan summary", exc_info=True)

    # ── Navigation ───────────────────────────────────────────────────

    def continue_to_next_area(self, area_id: str | None = None) -> bool:
        """Leave a finished area for area selection, or straight into ``area_id``."""
        area = None
        if area_id is not None:
            area = find_area(area_id)
            if area is None:
                logger.warning("Unknown kitchen area: %s", area_id)
                return False
        stage = self._dispatch(stages.ContinueTour(area.name if area else None))
        if isinstance(stage, stages.Idle):
            self._enter_area(area)
            return True
        if isinstance(stage, stages.AreaSelection):
            self._area = None
            self._location_id = None
            return True
        return False

    def finish_tour(self) -> TourSummaryData | None:
        """Show the tour summary and save the scan totals."""
        if not isinstance(self._dispatch(stages.FinishTour()), stages.TourSummary):
            return None
        summary = self._tour.aggregator.summarize()
        self._summary = summary
        try:
            self._store.set_setting_int("last_scan_item_count", summary.total_items)
            self._store.set_setting_int("last_scan_area_count", len(summary.per_area))
        except sqlite3.Error:
            logger.warning("Failed to save scan summary", exc_info=True)
        logger.info(
            "Tour finished: %d items across %d areas",
            summary.total_items, len(summary.per_area),
        )
        return summary

    def requires_back_confirmation(self) -> bool:
        return stages.requires_confirmation(self._stage, self.is_dirty)

    def back(self, confirmed: bool = False) -> bool:
        """Navigate back.

        Returns False without changing anything when the move would discard
        work and ``confirmed`` is not set.
        """
        previous = self._stage
        if self.requires_back_confirmation() and not confirmed:
            return False
        stage = self._dispatch(
            stages.Back(
                confirmed=True,
                dirty=self.is_dirty,
                has_area_selection=self._has_area_selection,
            )
        )
        if stage == previous:
            return False
        if isinstance(previous, stages.Processing):
            self._generation += 1
        if isinstance(stage, (stages.Idle, stages.AreaSelection)):
            self._clear_working_state()
        if isinstance(stage, stages.AreaSelection):
            self._area = None
            self._location_id = None
        return True

    def return_to_area_selection(self, confirmed: bool = False) -> bool:
        """Abandon the current area and go back to picking one.

        Completed areas, dedup entries and tallies are kept.
        """
        if not self._has_area_selection:
            return False
        previous = self._stage
        stage = self._dispatch(stages.ReturnToAreaSelection(confirmed, self.is_dirty))
        if stage == previous:
            return False
        if isinstance(previous, stages.Processing):
            self._generation += 1
        self._clear_working_state()
        self._area = None
        self._location_id = None
        return True

    def retry(self) -> None:
        self._dispatch(stages.Retry())

    def exit(self) -> None:
        self._dispatch(stages.Exit())

    def reset(self) -> None:
        """Drop all working and tour state and start over.

        A commit in progress finishes its current item and then stops.
        """
        self._generation += 1
        self._clear_working_state()
        self._tour.reset()
        self._area = None
        self._location_id = None
        self._summary = None
        self._dispatch(stages.Reset(self._has_area_selection))
