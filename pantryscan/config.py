"""TOML configuration loader for pantryscan."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


@dataclass
class DatabaseConfig:
    path: str = "~/.config/pantryscan/inventory.db"


@dataclass
class ClaudeVisionConfig:
    api_key: str = ""
    model: str = "claude-sonnet-4-5-20250929"


@dataclass
class GeminiVisionConfig:
    api_key: str = ""
    model: str = "gemini-2.0-flash"


@dataclass
class VisionConfig:
    backend: str = "claude"
    max_retries: int = 3
    min_confidence: str = "low"
    claude: ClaudeVisionConfig = field(default_factory=ClaudeVisionConfig)
    gemini: GeminiVisionConfig = field(default_factory=GeminiVisionConfig)


@dataclass
class ScanConfig:
    rematch_delay: float = 0.3
    purchase_note: str = "From kitchen scan"
    receipt_note: str = "From receipt scan"
    default_area_label: str = "refrigerator"
    quick_scan_min_items: int = 12


@dataclass
class AppConfig:
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    vision: VisionConfig = field(default_factory=VisionConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    API keys can be overridden via environment variables.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    dbs = raw.get("database", {})
    vis = raw.get("vision", {})
    scn = raw.get("scan", {})

    claude_cfg = vis.get("claude", {})
    gemini_cfg = vis.get("gemini", {})

    # Resolve API keys: config file → environment variable
    claude_api_key = claude_cfg.get("api_key", "") or os.environ.get(
        "ANTHROPIC_API_KEY", ""
    )
    gemini_api_key = gemini_cfg.get("api_key", "") or os.environ.get(
        "GEMINI_API_KEY", ""
    )

    defaults = ScanConfig()

    return AppConfig(
        database=DatabaseConfig(
            path=dbs.get("path", DatabaseConfig.path),
        ),
        vision=VisionConfig(
            backend=vis.get("backend", "claude"),
            max_retries=vis.get("max_retries", 3),
            min_confidence=vis.get("min_confidence", "low"),
            claude=ClaudeVisionConfig(
                api_key=claude_api_key,
                model=claude_cfg.get("model", ClaudeVisionConfig.model),
            ),
            gemini=GeminiVisionConfig(
                api_key=gemini_api_key,
                model=gemini_cfg.get("model", GeminiVisionConfig.model),
            ),
        ),
        scan=ScanConfig(
            rematch_delay=scn.get("rematch_delay", defaults.rematch_delay),
            purchase_note=scn.get("purchase_note", defaults.purchase_note),
            receipt_note=scn.get("receipt_note", defaults.receipt_note),
            default_area_label=scn.get(
                "default_area_label", defaults.default_area_label
            ),
            quick_scan_min_items=scn.get(
                "quick_scan_min_items", defaults.quick_scan_min_items
            ),
        ),
    )
