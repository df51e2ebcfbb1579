"""Vision backend base class, data types, and factory."""

from __future__ import annotations

import asyncio
import enum
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..config import AppConfig
    from .images import EncodedImage

logger = logging.getLogger(__name__)


class VisionError(Exception):
    """The vision model could not produce any item candidates."""


class ImageEncodingError(VisionError):
    """The captured image could not be read or encoded."""


class Confidence(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return {"low": 0, "medium": 1, "high": 2}[self.value]


class ScanKind(str, enum.Enum):
    KITCHEN = "kitchen"
    RECEIPT = "receipt"


@dataclass(frozen=True)
class Candidate:
    """One raw item extracted by the vision model from a photo."""

    name: str
    quantity: Decimal = Decimal(1)
    unit: str | None = None
    category: str | None = None
    confidence: Confidence = Confidence.MEDIUM
    estimated_shelf_life_days: int | None = None
    price: Decimal | None = None  # receipt line total


class VisionBackend(ABC):
    """Abstract base for extracting item candidates from a photo.

    Subclasses implement a single provider round-trip in ``_complete``;
    prompt building, response parsing and retries live here.
    """

    def __init__(self, max_retries: int = 3, retry_delay: float = 1.0) -> None:
        self._max_retries = max(1, max_retries)
        self._retry_delay = retry_delay

    @abstractmethod
    def _check_ready(self) -> None:
        """Raise ValueError if the backend is not configured."""

    @abstractmethod
    async def _complete(self, prompt: str, image: EncodedImage) -> str:
        """Send the prompt and image to the provider and return its text."""

    async def parse_image(
        self,
        image: bytes | str,
        area_hint: str,
        category_names: list[str],
        previously_seen: list[str],
        *,
        scan_hints: str = "",
        min_expected: int = 12,
        kind: ScanKind = ScanKind.KITCHEN,
    ) -> list[Candidate]:
        """Extract item candidates from a photo.

        Raises:
            ImageEncodingError: If the image is empty or unreadable.
            VisionError: If no attempt produced a parseable item list.
            ValueError: If the backend has no API key.
        """
        from .images import encode_image
        from .parsing import parse_candidates
        from .prompts import build_prompt

        self._check_ready()
        encoded = encode_image(image)
        prompt = build_prompt(
            kind=kind,
            area_hint=area_hint,
            category_names=category_names,
            previously_seen=previously_seen,
            scan_hints=scan_hints,
            min_expected=min_expected,
        )

        last_text = ""
        for attempt in range(1, self._max_retries + 1):
            if attempt > 1:
                await asyncio.sleep(self._retry_delay * (1 << (attempt - 2)))
            try:
                last_text = await self._complete(prompt, encoded)
            except Exception as e:
                logger.warning("Vision attempt %d failed: %s", attempt, e)
                if attempt >= self._max_retries:
                    raise VisionError(f"Failed to identify items: {e}") from e
                continue

            if "[" not in last_text or "]" not in last_text:
                logger.warning("Attempt %d: no JSON array found, retrying", attempt)
                continue

            candidates = parse_candidates(last_text)
            if candidates:
                logger.debug("Parsed %d candidates on attempt %d", len(candidates), attempt)
                return candidates
            logger.warning("Attempt %d: parsed 0 items, retrying", attempt)

        logger.warning("All %d attempts failed. Last: %.200s", self._max_retries, last_text)
        raise VisionError(
            f"Failed to identify items after {self._max_retries} attempts.\n\n"
            "Tips: Make sure items are clearly visible, the photo is well-lit, "
            "and not too blurry."
        )


def create_backend(config: AppConfig) -> VisionBackend:
    """Create a vision backend based on configuration."""
    backend_name = config.vision.backend

    match backend_name:
        case "claude":
            from .claude import ClaudeVisionBackend

            return ClaudeVisionBackend(
                api_key=config.vision.claude.api_key,
                model=config.vision.claude.model,
                max_retries=config.vision.max_retries,
            )
        case "gemini":
            from .gemini import GeminiVisionBackend

            return GeminiVisionBackend(
                api_key=config.vision.gemini.api_key,
                model=config.vision.gemini.model,
                max_retries=config.vision.max_retries,
            )
        case _:
            raise ValueError(
                f"Unknown vision backend: {backend_name!r} "
                f"(choose claude or gemini)"
            )
