"""Parse the JSON item list returned by a vision model."""

from __future__ import annotations

import json
import logging
from decimal import Decimal, InvalidOperation

from . import Candidate, Confidence

logger = logging.getLogger(__name__)

_SHELF_LIFE_KEYS = ("estimatedExpiryDays", "estimated_expiry_days", "estimated_shelf_life_days")


def _extract_json_array(text: str) -> str | None:
    start = text.find("[")
    end = text.rfind("]")
    if start == -1 or end <= start:
        return None
    return text[start : end + 1]


def _to_decimal(value) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


def _to_confidence(value) -> Confidence:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if value >= 0.8:
            return Confidence.HIGH
        if value >= 0.5:
            return Confidence.MEDIUM
        return Confidence.LOW
    if isinstance(value, str):
        try:
            return Confidence(value.strip().lower())
        except ValueError:
            pass
    return Confidence.MEDIUM


def _optional_str(value) -> str | None:
    if value is None:
        return None
    return str(value).strip() or None


def _category(value) -> str | None:
    # Kept verbatim; category matching is exact apart from case.
    if value is None or not str(value).strip():
        return None
    return str(value)


def _to_candidate(item: dict) -> Candidate | None:
    name = str(item.get("name") or "").strip()
    if not name:
        return None

    quantity = _to_decimal(item.get("quantity"))
    if quantity is None:
        quantity = Decimal(1)
    elif quantity < 0:
        quantity = Decimal(0)

    shelf_life = None
    for key in _SHELF_LIFE_KEYS:
        raw = item.get(key)
        if raw is not None:
            days = _to_decimal(raw)
            if days is not None and days >= 0:
                shelf_life = int(days)
            break

    price = _to_decimal(item.get("price"))
    if price is not None and price < 0:
        price = None

    return Candidate(
        name=name,
        quantity=quantity,
        unit=_optional_str(item.get("unit")),
        category=_category(item.get("category")),
        confidence=_to_confidence(item.get("confidence")),
        estimated_shelf_life_days=shelf_life,
        price=price,
    )


def parse_candidates(text: str) -> list[Candidate]:
    """Parse the JSON array from a model response.

    Markdown fences and surrounding prose are ignored. Entries without a
    name are dropped. Returns an empty list if nothing parses.
    """
    cleaned = text.replace("```json", "").replace("```", "").strip()
    array = _extract_json_array(cleaned) or cleaned

    try:
        items = json.loads(array)
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse vision response: %s", e)
        return []

    if isinstance(items, dict):
        items = [items]
    if not isinstance(items, list):
        return []

    candidates: list[Candidate] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        candidate = _to_candidate(item)
        if candidate is not None:
            candidates.append(candidate)
    return candidates
