"""Prompt templates for kitchen and receipt scans."""

from __future__ import annotations

import re

from . import ScanKind

SYSTEM_PROMPT = (
    "You are a precise grocery inventory assistant. "
    "You only report items you can actually see. "
    "You always answer with a JSON array and nothing else."
)

_ITEM_FORMAT = """\
Return a JSON array (no other text) in this format:
[
  {"name": "item name", "quantity": 1, "unit": "pcs", "category": "Category",
   "confidence": "high|medium|low", "estimatedExpiryDays": 7}
]
Use "high" confidence when the item is clearly visible or its label is
readable, "medium" when it is partly hidden, "low" when you are guessing.
estimatedExpiryDays is the typical remaining shelf life in days; omit it if
you cannot estimate it.
"""

_KITCHEN_QUICK = """\
This photo shows the inside of a {AREA}.
List every distinct food or household item you can see. Count separate
units of the same item as one entry with a quantity.

""" + _ITEM_FORMAT

_KITCHEN_AREA = """\
This photo shows a {AREA}.
{AREA_SCAN_INSTRUCTIONS}
A typical {AREA} holds at least {MIN_ITEMS} distinct items; look carefully
before concluding there are fewer, but never invent items.

""" + _ITEM_FORMAT

_RECEIPT = """\
This photo shows a shopping receipt.
List every purchased product line. Expand abbreviated product names into
plain grocery names (e.g. "ORG WHL MLK" -> "Organic Whole Milk"). Skip
totals, taxes, discounts, bags, and payment lines.

Return a JSON array (no other text) in this format:
[
  {"name": "item name", "quantity": 1, "unit": "pcs", "price": 2.49,
   "category": "Category", "confidence": "high|medium|low",
   "estimatedExpiryDays": 7}
]
price is the line total as printed. Use "low" confidence when the line is
hard to read.
"""

_UNSAFE_CHARS = re.compile(r'["\\\x00-\x1f]')


def sanitize_name(name: str) -> str:
    """Strip quotes, backslashes and control characters; cap at 100 chars."""
    return _UNSAFE_CHARS.sub("", name)[:100].strip()


def build_prompt(
    *,
    kind: ScanKind,
    area_hint: str,
    category_names: list[str],
    previously_seen: list[str],
    scan_hints: str = "",
    min_expected: int = 12,
) -> str:
    """Assemble the user prompt for a scan."""
    if kind is ScanKind.RECEIPT:
        prompt = _RECEIPT
    elif scan_hints:
        prompt = (
            _KITCHEN_AREA.replace("{AREA_SCAN_INSTRUCTIONS}", scan_hints)
            .replace("{MIN_ITEMS}", str(min_expected))
            .replace("{AREA}", area_hint)
        )
    else:
        prompt = _KITCHEN_QUICK.replace("{AREA}", area_hint)

    if category_names:
        cat_list = ", ".join(f'"{sanitize_name(c)}"' for c in category_names)
        prompt += (
            f"\n\nCATEGORIES: [{cat_list}]\n"
            'For each item, pick the BEST matching category from the list above '
            'and set "category" to that exact string. If no category fits well, '
            "omit the field or set it to null."
        )

    seen = [s for s in (sanitize_name(n) for n in previously_seen) if s]
    if seen and kind is ScanKind.KITCHEN:
        prev_list = ", ".join(f'"{s}"' for s in seen)
        prompt += (
            f"\n\nPREVIOUSLY FOUND IN OTHER AREAS (for dedup only): [{prev_list}]\n"
            "These were found in other kitchen areas. Do NOT include them unless "
            "you have CLEAR visual evidence in THIS photo. This list is ONLY for "
            "deduplication; never use it as a hint of what to look for."
        )

    return prompt
