"""Scan receipts and kitchen storage areas into a pantry inventory."""

from .areas import KITCHEN_AREAS, KitchenArea, find_area
from .config import (
    AppConfig,
    DatabaseConfig,
    ScanConfig,
    VisionConfig,
    load_config,
)
from .defaults import DefaultsTable, ItemDefaults
from .scan import (
    CommitEngine,
    CommitResult,
    MatchType,
    ReviewItem,
    ScanSession,
    TourContext,
)
from .vision import (
    Candidate,
    Confidence,
    ScanKind,
    VisionBackend,
    VisionError,
    create_backend,
)

__all__ = [
    "KITCHEN_AREAS",
    "KitchenArea",
    "find_area",
    "AppConfig",
    "DatabaseConfig",
    "ScanConfig",
    "VisionConfig",
    "load_config",
    "DefaultsTable",
    "ItemDefaults",
    "Candidate",
    "Confidence",
    "ScanKind",
    "VisionBackend",
    "VisionError",
    "create_backend",
    "ScanSession",
    "ReviewItem",
    "MatchType",
    "CommitEngine",
    "CommitResult",
    "TourContext",
]
