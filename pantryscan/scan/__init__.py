"""Scan-to-inventory reconciliation: resolve, review and commit scanned items."""

from .attributes import ResolvedAttributes, resolve_attributes
from .commit import CommitEngine, CommitError, CommitResult
from .matching import MatchResolver, MatchResult
from .review import MatchCandidate, MatchType, ReviewItem, ReviewModel
from .session import ScanSession, SessionSnapshot
from .tour import DedupTracker, TourAggregator, TourContext, TourSummaryData

__all__ = [
    "CommitEngine",
    "CommitError",
    "CommitResult",
    "DedupTracker",
    "MatchCandidate",
    "MatchResolver",
    "MatchResult",
    "MatchType",
    "ResolvedAttributes",
    "ReviewItem",
    "ReviewModel",
    "ScanSession",
    "SessionSnapshot",
    "TourAggregator",
    "TourContext",
    "TourSummaryData",
    "resolve_attributes",
]
