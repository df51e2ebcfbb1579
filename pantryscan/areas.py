"""Kitchen storage areas visited during a scan tour."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class KitchenArea:
    id: str
    name: str
    description: str
    location_name: str  # storage_locations.name
    ai_label: str  # short area name passed to the vision prompt
    scan_hints: str
    min_expected: int


KITCHEN_AREAS: list[KitchenArea] = [
    KitchenArea(
        "fridge_shelves", "Fridge (Shelves)", "Main shelves & drawers",
        "Refrigerator", "refrigerator",
        scan_hints=(
            "Scan shelf by shelf, top to bottom, left to right, front to back. "
            "For EACH shelf: what's in front? What's behind? What's inside "
            "bags/containers? Check crisper drawers for produce. Commonly "
            "missed: fresh herbs, fruits in drawers, small items behind "
            "bottles (garlic, ginger), different cabbage types."
        ),
        min_expected=10,
    ),
    KitchenArea(
        "fridge_door", "Fridge Door", "Condiments, drinks, sauces",
        "Refrigerator", "refrigerator door",
        scan_hints=(
            "Check each door shelf top to bottom. Focus on condiments, sauces, "
            "drinks, small bottles, jars, and tubes. Read labels where visible. "
            "Commonly missed: small sauce packets, butter/cheese in door "
            "compartments, partially hidden bottles."
        ),
        min_expected=4,
    ),
    KitchenArea(
        "freezer", "Freezer", "Frozen items & ice cream",
        "Freezer", "freezer",
        scan_hints=(
            "Items may be in bags, boxes, or wrapped in foil. Look through "
            "frost. Identify by packaging shape, color, and any visible text. "
            "Commonly missed: ice cream tubs at the back, frozen vegetables "
            "in bags, items wedged between others."
        ),
        min_expected=6,
    ),
    KitchenArea(
        "pantry", "Pantry / Cabinet", "Dry goods & canned items",
        "Pantry", "pantry",
        scan_hints=(
            "Scan shelf by shelf, left to right. Look for cans, boxes, bags, "
            "jars, packets, and bottles. Read labels where possible. Commonly "
            "missed: items pushed to the back, small spice packets, tea/coffee "
            "boxes, cooking oils."
        ),
        min_expected=8,
    ),
    KitchenArea(
        "counter", "Counter / Fruit Bowl", "Fresh items on counter",
        "Counter", "kitchen counter",
        scan_hints=(
            "Scan left to right across the counter surface. Look for fruit "
            "bowls, bread, loose produce, bottles, jars. Counters may have "
            "only a few items. Count each fruit type separately."
        ),
        min_expected=3,
    ),
    KitchenArea(
        "spice_rack", "Spice Rack", "Spices & seasonings",
        "Spice Rack", "spice rack",
        scan_hints=(
            "Read spice jar labels carefully. Small jars, bottles, sachets, "
            "and grinders. Items may be tightly packed. Commonly missed: "
            "small sachets, items in the back row, unlabeled containers."
        ),
        min_expected=5,
    ),
]


def find_area(area_id: str) -> KitchenArea | None:
    """Return the area with the given id, or None."""
    for area in KITCHEN_AREAS:
        if area.id == area_id:
            return area
    return None
