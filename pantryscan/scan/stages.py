"""Scan workflow stages, events and the transition reducer.

``reduce(stage, event)`` is pure: it never performs I/O and returns the
stage unchanged for events that do not apply, so callers can feed it any
event without first checking the current stage.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

logger = logging.getLogger(__name__)

NO_ITEMS_MESSAGE = (
    "No items found in this photo. Try again with better lighting, "
    "or move closer so labels are readable."
)
ALL_REMOVED_MESSAGE = "All items were removed. Take another photo to scan again."


# ── Stages ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class AreaSelection:
    pass


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Processing:
    pass


@dataclass(frozen=True)
class Review:
    pass


@dataclass(frozen=True)
class Saving:
    current: int
    total: int


@dataclass(frozen=True)
class AreaSuccess:
    count: int
    area_name: str | None = None


@dataclass(frozen=True)
class TourSummary:
    pass


@dataclass(frozen=True)
class EmptyResult:
    message: str = NO_ITEMS_MESSAGE


@dataclass(frozen=True)
class Error:
    message: str


@dataclass(frozen=True)
class Exited:
    pass


Stage = Union[
    AreaSelection,
    Idle,
    Processing,
    Review,
    Saving,
    AreaSuccess,
    TourSummary,
    EmptyResult,
    Error,
    Exited,
]


# ── Events ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SelectArea:
    area_name: str


@dataclass(frozen=True)
class QuickScan:
    pass


@dataclass(frozen=True)
class CaptureImage:
    pass


@dataclass(frozen=True)
class VisionSucceeded:
    count: int


@dataclass(frozen=True)
class VisionFailed:
    message: str


@dataclass(frozen=True)
class ItemsCleared:
    pass


@dataclass(frozen=True)
class ConfirmCommit:
    total: int


@dataclass(frozen=True)
class CommitProgress:
    current: int
    total: int


@dataclass(frozen=True)
class CommitFinished:
    count: int
    area_name: str | None = None


@dataclass(frozen=True)
class ContinueTour:
    """Leave a finished area; with an area name go straight to its Idle."""

    area_name: str | None = None


@dataclass(frozen=True)
class FinishTour:
    pass


@dataclass(frozen=True)
class Back:
    """Back navigation.

    ``dirty`` says whether Idle still holds a captured photo or leftover
    working state; ``has_area_selection`` is False for flows that start at
    Idle (receipt scans), where backing out of Idle exits.
    """

    confirmed: bool = False
    dirty: bool = False
    has_area_selection: bool = True


@dataclass(frozen=True)
class ReturnToAreaSelection:
    """Abandon the current area and pick another; tour history is kept."""

    confirmed: bool = False
    dirty: bool = False


@dataclass(frozen=True)
class Retry:
    pass


@dataclass(frozen=True)
class Reset:
    has_area_selection: bool = True


@dataclass(frozen=True)
class Exit:
    pass


Event = Union[
    SelectArea,
    QuickScan,
    CaptureImage,
    VisionSucceeded,
    VisionFailed,
    ItemsCleared,
    ConfirmCommit,
    CommitProgress,
    CommitFinished,
    ContinueTour,
    FinishTour,
    Back,
    ReturnToAreaSelection,
    Retry,
    Reset,
    Exit,
]


def initial_stage(has_area_selection: bool = True) -> Stage:
    return AreaSelection() if has_area_selection else Idle()


def requires_confirmation(stage: Stage, dirty: bool = False) -> bool:
    """True if backing out of ``stage`` would discard uncommitted work."""
    if isinstance(stage, Review):
        return True
    if isinstance(stage, Idle):
        return dirty
    return False


def _back(stage: Stage, event: Back) -> Stage:
    exit_target: Stage = AreaSelection() if event.has_area_selection else Exited()

    match stage:
        case AreaSelection():
            return Exited()
        case Review():
            if not event.confirmed:
                return stage
            return Idle()
        case Idle():
            if event.dirty and not event.confirmed:
                return stage
            return exit_target
        case Processing() | Error() | EmptyResult():
            return Idle()
        case AreaSuccess():
            return exit_target
        case TourSummary():
            return Exited()
    return stage


def reduce(stage: Stage, event: Event) -> Stage:
    """Return the stage that follows ``stage`` on ``event``."""
    new = _transition(stage, event)
    if new != stage:
        logger.debug("%s --%s--> %s", stage, type(event).__name__, new)
    return new


def _transition(stage: Stage, event: Event) -> Stage:
    # Only a reset leaves Saving early; the commit loop stops after its current item.
    if isinstance(stage, Saving) and not isinstance(
        event, (CommitProgress, CommitFinished, Reset)
    ):
        return stage

    match event:
        case Reset(has_area_selection=has_selection):
            return initial_stage(has_selection)
        case Exit():
            return Exited()
        case Back():
            return _back(stage, event)
        case ReturnToAreaSelection(confirmed=confirmed, dirty=dirty):
            if isinstance(stage, (AreaSelection, TourSummary, Exited)):
                return stage
            if requires_confirmation(stage, dirty) and not confirmed:
                return stage
            return AreaSelection()

    match stage, event:
        case AreaSelection(), SelectArea():
            return Idle()
        case AreaSelection(), QuickScan():
            return Idle()
        case AreaSelection(), FinishTour():
            return TourSummary()

        case (Idle() | Review() | EmptyResult() | Error()), CaptureImage():
            return Processing()

        case Processing(), VisionSucceeded(count=count):
            return Review() if count > 0 else EmptyResult(NO_ITEMS_MESSAGE)
        case Processing(), VisionFailed(message=message):
            return Error(message)

        case Review(), ItemsCleared():
            return EmptyResult(ALL_REMOVED_MESSAGE)
        case Review(), ConfirmCommit(total=total):
            return Saving(0, total) if total > 0 else stage

        case Saving(), CommitProgress(current=current, total=total):
            return Saving(current, total)
        case Saving(), CommitFinished(count=count, area_name=name):
            return AreaSuccess(count, name)

        case AreaSuccess(), ContinueTour(area_name=None):
            return AreaSelection()
        case AreaSuccess(), ContinueTour():
            return Idle()
        case AreaSuccess(), FinishTour():
            return TourSummary()

        case (Error() | EmptyResult()), Retry():
            return Idle()

    return stage
