"""CLI entry point for pantryscan."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import date

from dotenv import load_dotenv

from .areas import KITCHEN_AREAS, find_area
from .config import load_config
from .scan import ReviewItem, ScanSession
from .scan import stages
from .vision import ScanKind


def main(argv: list[str] | None = None) -> None:
    load_dotenv()

    parser = argparse.ArgumentParser(
        prog="pantryscan",
        description="Scan receipts and kitchen areas into your pantry inventory",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to the configuration file (TOML)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command")

    # areas
    sub.add_parser("areas", help="List kitchen areas")

    # scan
    scan_parser = sub.add_parser("scan", help="Scan one photo")
    scan_parser.add_argument("image", type=str, help="Image file to scan")
    scan_parser.add_argument(
        "--area", type=str, default=None, help="Kitchen area id (default: quick scan)"
    )
    scan_parser.add_argument(
        "--receipt", action="store_true", help="Scan a grocery receipt"
    )
    scan_parser.add_argument(
        "--yes", "-y", action="store_true", help="Save the items without asking"
    )
    scan_parser.add_argument("--json", action="store_true", help="Print JSON output")

    # tour
    tour_parser = sub.add_parser("tour", help="Scan several kitchen areas in turn")
    tour_parser.add_argument(
        "shots", nargs="+", metavar="AREA_ID=IMAGE", help="Area id and image pairs"
    )
    tour_parser.add_argument(
        "--yes", "-y", action="store_true", help="Save each area's items"
    )

    # inventory
    sub.add_parser("inventory", help="List inventory items")

    # add
    add_parser = sub.add_parser("add", help="Add an item to the inventory by hand")
    add_parser.add_argument("name", type=str)
    add_parser.add_argument("--qty", type=float, default=1.0)

    # shop-add
    shop_parser = sub.add_parser("shop-add", help="Add an item to the shopping list")
    shop_parser.add_argument("name", type=str)
    shop_parser.add_argument("--qty", type=float, default=1.0)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config)

    match args.command:
        case "areas":
            _cmd_areas()
        case "scan":
            asyncio.run(_cmd_scan(config, args))
        case "tour":
            asyncio.run(_cmd_tour(config, args))
        case "inventory":
            _cmd_inventory(config)
        case "add":
            _cmd_add(config, args)
        case "shop-add":
            _cmd_shop_add(config, args)


def _cmd_areas() -> None:
    print(f"Kitchen areas: {len(KITCHEN_AREAS)}")
    for area in KITCHEN_AREAS:
        print(f"  {area.id:<15} {area.name:<22} {area.description}")


def _print_items(items: list[ReviewItem]) -> None:
    for i, item in enumerate(items, 1):
        unit = f" {item.unit}" if item.unit else ""
        action = item.match_type.value.replace("_", " ")
        line = f"  {i:>2}. {item.name:<24} {item.quantity}{unit:<6} [{item.category or '-'}] {action}"
        if item.expiry_date:
            line += f"  exp {item.expiry_date.isoformat()}"
        if item.price:
            line += f"  {item.price}"
        print(line)
        for note in (item.dup_warning, item.unit_conflict):
            if note:
                print(f"      ! {note}")


def _item_to_dict(item: ReviewItem) -> dict:
    return {
        "name": item.name,
        "quantity": item.quantity,
        "unit": item.unit,
        "category": item.category,
        "confidence": item.confidence.value,
        "match_type": item.match_type.value,
        "matched_record_id": item.matched_record_id,
        "expiry_date": item.expiry_date.isoformat() if item.expiry_date else None,
        "is_estimated_expiry": item.is_estimated_expiry,
        "dup_warning": item.dup_warning,
        "price": item.price or None,
    }


async def _cmd_scan(config, args) -> None:
    kind = ScanKind.RECEIPT if args.receipt else ScanKind.KITCHEN
    session = ScanSession.from_config(config, kind=kind)
    try:
        await _run_scan(session, kind, args)
    finally:
        session.close()


async def _run_scan(session: ScanSession, kind: ScanKind, args) -> None:
    if kind is ScanKind.KITCHEN:
        if args.area:
            if not session.select_area(args.area):
                print(f"Unknown area: {args.area}", file=sys.stderr)
                sys.exit(1)
        else:
            session.quick_scan()

    print("Identifying items...")
    try:
        stage = await session.capture_image(args.image)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)

    if isinstance(stage, (stages.Error, stages.EmptyResult)):
        print(stage.message, file=sys.stderr)
        sys.exit(1)

    if args.json:
        print(json.dumps([_item_to_dict(i) for i in session.items], indent=2))
    else:
        print(f"\nFound {len(session.items)} items:")
        _print_items(session.items)

    if not args.yes:
        if not args.json:
            print("\nNothing saved. Run again with --yes to add these items.")
        return

    result = await session.confirm_commit()
    if result is None:
        print("Nothing to save.")
        return
    print(f"\nSaved {result.succeeded_count} items.")
    for item, error in result.failures:
        print(f"  Failed: {item.name} ({error})", file=sys.stderr)


async def _cmd_tour(config, args) -> None:
    shots: list[tuple[str, str]] = []
    for shot in args.shots:
        area_id, sep, image = shot.partition("=")
        if not sep or not image or find_area(area_id) is None:
            print(f"Invalid AREA_ID=IMAGE pair: {shot}", file=sys.stderr)
            sys.exit(1)
        shots.append((area_id, image))

    session = ScanSession.from_config(config)
    try:
        await _run_tour(session, shots, args)
    finally:
        session.close()


async def _run_tour(session: ScanSession, shots: list[tuple[str, str]], args) -> None:
    for area_id, image in shots:
        if isinstance(session.stage, stages.AreaSuccess):
            session.continue_to_next_area()
        session.select_area(area_id)
        area_name = session.area.name if session.area else area_id
        print(f"\n── {area_name} ──")

        try:
            stage = await session.capture_image(image)
        except ValueError as e:
            print(str(e), file=sys.stderr)
            sys.exit(1)
        if not isinstance(stage, stages.Review):
            print(getattr(stage, "message", "Scan failed"), file=sys.stderr)
            # Error -> Idle -> AreaSelection
            session.back(confirmed=True)
            session.back(confirmed=True)
            continue

        _print_items(session.items)
        if not args.yes:
            # Review -> Idle -> AreaSelection, discarding this area's items
            session.back(confirmed=True)
            session.back(confirmed=True)
            continue

        result = await session.confirm_commit()
        if result is not None:
            print(f"Saved {result.succeeded_count} items.")

    if not args.yes:
        print("\nNothing saved. Run again with --yes to add these items.")
        return

    summary = session.finish_tour()
    if summary is None:
        return
    print(f"\nTour complete: {summary.total_items} items")
    for name, count in summary.per_area.items():
        print(f"  {name:<22} {count}")
    if summary.category_breakdown:
        print("\nBy category:")
        for category, count in sorted(
            summary.category_breakdown.items(), key=lambda kv: kv[1], reverse=True
        ):
            print(f"  {category:<22} {count}")


def _cmd_inventory(config) -> None:
    from .db import InventoryDB

    db = InventoryDB(config.database.path)
    try:
        items = db.get_active_items()
    finally:
        db.close()

    if not items:
        print("Inventory is empty.")
        return
    print(f"Inventory ({len(items)} items):")
    for item in items:
        unit = f" {item['unit']}" if item["unit"] else ""
        expiry = f"  exp {item['expiry_date']}" if item["expiry_date"] else ""
        print(
            f"  {item['name']:<24} {item['quantity']:g}{unit:<6} "
            f"[{item['category'] or '-'}] {item['location'] or ''}{expiry}"
        )


def _cmd_add(config, args) -> None:
    from .db import InventoryDB
    from .defaults import DefaultsTable

    table = DefaultsTable.instance()
    defaults = table.lookup(args.name)
    db = InventoryDB(config.database.path)
    try:
        fields = {"purchase_date": date.today()}
        if defaults is not None:
            by_category = table.category_defaults(defaults.category)
            location = defaults.location or (by_category.location if by_category else None)
            fields["category_id"] = db.find_category(defaults.category)
            fields["unit_id"] = db.find_unit(defaults.unit) if defaults.unit else None
            fields["location_id"] = db.find_location(location) if location else None
        _, created = db.add_or_increment(args.name, args.qty, **fields)
    finally:
        db.close()
    verb = "Added" if created else "Updated"
    print(f"{verb} {args.name} in the inventory.")


def _cmd_shop_add(config, args) -> None:
    from .db import ShoppingListDB

    db = ShoppingListDB(config.database.path)
    try:
        _, created = db.add_or_increment(args.name, args.qty)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()
    verb = "Added" if created else "Updated"
    print(f"{verb} {args.name} on the shopping list.")
