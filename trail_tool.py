from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from app import build_core
from contracts import AccountContext, LocationWithDirection, Spot, Trail
from discovery.service import trail_completion_percentage
from geo import GeoLocation, boundary_from_radius, bounding_box, compare_coordinates, distance_to_boundary


def load_json(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def load_fixture(path: Path) -> Tuple[Trail, List[Spot]]:
    payload = load_json(path)
    trail = Trail.from_dict(payload["trail"])
    spots = [Spot.from_dict({"trail_id": trail.id, **entry}) for entry in payload.get("spots", [])]
    if not trail.spot_ids:
        trail.spot_ids = [spot.id for spot in spots]
    return trail, spots


def command_summary(trail: Trail, spots: List[Spot]) -> None:
    print("== Trail Summary ==")
    print(f"Trail: {trail.name or trail.id} ({trail.id})")
    print(
        f"Mode: {trail.options.discovery_mode.value} | Preview: {trail.options.preview_mode.value}"
        f" | Snap range: {trail.options.snap_radius or trail.options.scanner_radius or 'default'}"
    )
    if trail.region:
        print(f"Region: {trail.region.center.lat}, {trail.region.center.lon} (radius {trail.region.radius_km} km)")
    box = bounding_box(spot.location for spot in spots)
    if box:
        print(
            f"Extent: SW {box.south_west.lat:.5f}, {box.south_west.lon:.5f}"
            f" / NE {box.north_east.lat:.5f}, {box.north_east.lon:.5f}"
        )
    print()
    spots_by_id = {spot.id: spot for spot in spots}
    previous: Optional[Spot] = None
    for index, spot_id in enumerate(trail.spot_ids, start=1):
        spot = spots_by_id.get(spot_id)
        if not spot:
            print(f"{index}. {spot_id} (missing spot record)")
            continue
        leg = ""
        if previous:
            step = compare_coordinates(previous.location, spot.location)
            leg = f", {round(step.distance)}m {step.direction.direction_short} of {previous.name or previous.id}"
        print(
            f"{index}. {spot.name or spot.id} ({spot.location.lat}, {spot.location.lon},"
            f" radius {spot.options.discovery_radius}m, {spot.options.visibility.value}{leg})"
        )
        previous = spot


async def _walk(trail: Trail, spots: List[Spot], steps: List[Dict[str, Any]], account_id: str) -> None:
    core = build_core({"TRAIL_STORE_TYPE": "memory", "CONTENT_FILTER_ENABLED": False})
    await core.stores["trails"].upsert(trail)
    for spot in spots:
        await core.stores["spots"].upsert(spot)

    context = AccountContext(account_id=account_id)
    names = {spot.id: spot.name or spot.id for spot in spots}
    region = boundary_from_radius(trail.region.center, trail.region.radius_km * 1000) if trail.region else None
    for index, step in enumerate(steps, start=1):
        position = LocationWithDirection(
            location=GeoLocation(lat=float(step["lat"]), lon=float(step["lon"])),
            direction=step.get("direction"),
        )
        record = (await core.discovery.process_location(context, position, trail.id)).unwrap()
        found = ", ".join(names.get(item.spot_id, item.spot_id) for item in record.discoveries) or "-"
        snap = f"{record.snap.distance}m @ {record.snap.intensity:.2f}" if record.snap else "none"
        discoveries = (await core.discovery.get_discoveries(context)).unwrap()
        progress = trail_completion_percentage(account_id, trail, discoveries)
        line = f"step {index}: discovered {found} | snap {snap} | progress {progress}%"
        if region:
            _, outside = distance_to_boundary(position.location, region)
            if outside:
                line += f" | {round(outside)}m outside region"
        print(line)


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Inspect a trail fixture or replay a walk against it.")
    parser.add_argument("command", choices=["summary", "walk"], help="Command to run")
    parser.add_argument("--trail", required=True, type=Path, help="Path to trail fixture JSON")
    parser.add_argument("--walk", type=Path, help="Path to a JSON list of {lat, lon[, direction]} steps")
    parser.add_argument("--account", default="trail-tool", help="Account id used for the walk")
    args = parser.parse_args(argv)

    trail, spots = load_fixture(args.trail)

    if args.command == "summary":
        command_summary(trail, spots)
    elif args.command == "walk":
        if not args.walk:
            parser.error("walk command requires --walk")
        steps = load_json(args.walk)
        asyncio.run(_walk(trail, spots, steps, args.account))
    else:
        parser.error(f"Unknown command: {args.command}")


if __name__ == "__main__":
    main()
