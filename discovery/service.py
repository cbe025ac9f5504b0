"""Pure discovery rules.

Nothing here touches a store or awaits anything: callers load trails, spots
and discoveries, pass them in, and persist whatever comes back.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Set

from contracts import (
    Clue,
    ClueSource,
    CompletionStatus,
    ContentVisibility,
    Discovery,
    DiscoveryContent,
    DiscoveryLocationRecord,
    DiscoveryMode,
    DiscoveryReaction,
    DiscoverySnap,
    DiscoverySpot,
    DiscoveryStats,
    DiscoveryTrail,
    LocationWithDirection,
    PreviewMode,
    ReactionSummary,
    Spot,
    SpotVisibility,
    Trail,
    TrailStats,
    utcnow,
)
from geo import GeoBoundary, GeoLocation, boundary_from_radius, distance, find_nearest, in_bounds

from .ids import create_content_id, create_discovery_id, create_reaction_id

DEFAULT_SNAP_RANGE_M = 1000
DEFAULT_MAP_RADIUS_M = 5000
MIN_RATING = 1
MAX_RATING = 5


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# -- lookups ----------------------------------------------------------------


def account_discoveries(account_id: str, discoveries: Iterable[Discovery]) -> List[Discovery]:
    return [item for item in discoveries if item.account_id == account_id]


def discovered_spot_ids(account_id: str, discoveries: Iterable[Discovery]) -> Set[str]:
    """Spot ids the account has discovered on any trail."""
    return {item.spot_id for item in discoveries if item.account_id == account_id}


def get_discoveries(
    account_id: str,
    discoveries: Iterable[Discovery],
    trail_id: Optional[str] = None,
) -> List[Discovery]:
    found = account_discoveries(account_id, discoveries)
    if trail_id:
        found = [item for item in found if item.trail_id == trail_id]
    return sorted(found, key=lambda item: item.discovered_at)


def get_discovered_spot_ids(
    account_id: str,
    discoveries: Iterable[Discovery],
    trail_id: Optional[str] = None,
) -> List[str]:
    ordered: List[str] = []
    for item in get_discoveries(account_id, discoveries, trail_id):
        if item.spot_id not in ordered:
            ordered.append(item.spot_id)
    return ordered


def get_discovered_spots(
    account_id: str,
    discoveries: Iterable[Discovery],
    spots: Iterable[Spot],
) -> List[DiscoverySpot]:
    """Spots joined with the account's earliest discovery of each, oldest first.

    Discoveries pointing at spots that are not in ``spots`` are skipped.
    """
    spots_by_id = {spot.id: spot for spot in spots}
    earliest: Dict[str, Discovery] = {}
    for item in get_discoveries(account_id, discoveries):
        if item.spot_id in spots_by_id and item.spot_id not in earliest:
            earliest[item.spot_id] = item
    joined = [DiscoverySpot.from_spot(spots_by_id[spot_id], item) for spot_id, item in earliest.items()]
    return sorted(joined, key=lambda spot: spot.discovered_at)


def next_sequence_spot_id(trail: Trail, found: Set[str]) -> Optional[str]:
    for spot_id in trail.spot_ids:
        if spot_id not in found:
            return spot_id
    return None


# -- discovery resolution ---------------------------------------------------


def resolve_targets(
    account_id: str,
    trail: Trail,
    discoveries: Iterable[Discovery],
    spots: Sequence[Spot],
) -> List[Spot]:
    """Spots eligible for discovery under the trail's discovery mode."""
    mode = trail.options.discovery_mode
    if mode == DiscoveryMode.FREE:
        return list(spots)
    if mode == DiscoveryMode.SEQUENCE:
        found = discovered_spot_ids(account_id, discoveries)
        spots_by_id = {spot.id: spot for spot in spots}
        return [spots_by_id[spot_id] for spot_id in trail.spot_ids if spot_id in spots_by_id and spot_id not in found]
    raise ValueError(f"Unhandled discovery mode: {mode!r}")


def create_discovery(
    account_id: str,
    spot_id: str,
    trail_id: Optional[str],
    scan_event_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Discovery:
    timestamp = now or utcnow()
    return Discovery(
        id=create_discovery_id(account_id, spot_id, trail_id),
        account_id=account_id,
        spot_id=spot_id,
        trail_id=trail_id,
        discovered_at=timestamp,
        scan_event_id=scan_event_id,
        created_at=timestamp,
        updated_at=timestamp,
    )


def resolve_new_discoveries(
    account_id: str,
    position: GeoLocation,
    spots: Sequence[Spot],
    discoveries: Iterable[Discovery],
    trail: Trail,
) -> List[Discovery]:
    """Undiscovered target spots whose discovery radius contains ``position`` (inclusive)."""
    found = discovered_spot_ids(account_id, discoveries)
    now = utcnow()
    created: List[Discovery] = []
    for spot in resolve_targets(account_id, trail, discoveries, spots):
        if spot.id in found:
            continue
        if distance(position, spot.location) <= spot.options.discovery_radius:
            created.append(create_discovery(account_id, spot.id, trail.id, now=now))
            found.add(spot.id)
    return created


def resolve_scan_event(scan_event, trail: Trail, discoveries: Iterable[Discovery]) -> Optional[List[Discovery]]:
    """Turn a scan into discoveries.

    ``None`` when the scan failed or carried no clues. In sequence mode only
    the next expected spot can be discovered, and only when it was scanned.
    """
    if not scan_event.successful or not scan_event.clues:
        return None

    found = discovered_spot_ids(scan_event.account_id, discoveries)
    scanned: List[str] = []
    for clue in scan_event.clues:
        if clue.spot_id in trail.spot_ids and clue.spot_id not in scanned:
            scanned.append(clue.spot_id)

    mode = trail.options.discovery_mode
    if mode == DiscoveryMode.FREE:
        targets = [spot_id for spot_id in scanned if spot_id not in found]
    elif mode == DiscoveryMode.SEQUENCE:
        expected = next_sequence_spot_id(trail, found)
        targets = [expected] if expected and expected in scanned else []
    else:
        raise ValueError(f"Unhandled discovery mode: {mode!r}")

    now = utcnow()
    return [
        create_discovery(scan_event.account_id, spot_id, trail.id, scan_event_id=scan_event.id, now=now)
        for spot_id in targets
    ]


# -- progress ---------------------------------------------------------------


def trail_completion_percentage(account_id: str, trail: Trail, discoveries: Iterable[Discovery]) -> int:
    if not trail.spot_ids:
        return 0
    found = discovered_spot_ids(account_id, discoveries)
    count = sum(1 for spot_id in set(trail.spot_ids) if spot_id in found)
    return round_half_up(count / len(set(trail.spot_ids)) * 100)


def is_trail_completed(account_id: str, trail: Trail, discoveries: Iterable[Discovery]) -> bool:
    if not trail.spot_ids:
        return False
    found = discovered_spot_ids(account_id, discoveries)
    return all(spot_id in found for spot_id in trail.spot_ids)


# -- clues ------------------------------------------------------------------


def create_clue(spot: Spot, trail_id: Optional[str], source: ClueSource, now: Optional[datetime] = None) -> Clue:
    timestamp = now or utcnow()
    return Clue(
        id=f"{spot.id}-{int(timestamp.timestamp() * 1000)}",
        spot_id=spot.id,
        trail_id=trail_id,
        location=spot.location,
        source=source,
        discovery_radius=spot.options.discovery_radius,
    )


def resolve_clues(
    account_id: str,
    trail: Trail,
    discoveries: Iterable[Discovery],
    spots: Sequence[Spot],
) -> List[Clue]:
    """Preview clues for the trail's undiscovered spots; none unless preview mode is on."""
    mode = trail.options.preview_mode
    if mode == PreviewMode.HIDDEN:
        return []
    if mode != PreviewMode.PREVIEW:
        raise ValueError(f"Unhandled preview mode: {mode!r}")

    found = discovered_spot_ids(account_id, discoveries)
    spots_by_id = {spot.id: spot for spot in spots}
    now = utcnow()
    clues: List[Clue] = []
    for spot_id in trail.spot_ids:
        spot = spots_by_id.get(spot_id)
        if spot is None or spot_id in found or spot.options.visibility != SpotVisibility.PREVIEW:
            continue
        clues.append(create_clue(spot, trail.id, ClueSource.PREVIEW, now=now))
    return clues


# -- snap -------------------------------------------------------------------


def snap_intensity(measured: float, max_range: float) -> float:
    if measured <= 0:
        return 1.0
    if measured >= max_range:
        return 0.0
    return max(0.0, min(1.0, 1 - measured / max_range))


def resolve_snap(
    position: GeoLocation,
    spots: Iterable[Spot],
    explored_spot_ids: Iterable[str],
    max_range_m: Optional[float] = None,
    default_range_m: float = DEFAULT_SNAP_RANGE_M,
) -> Optional[DiscoverySnap]:
    """Proximity feedback toward the nearest unexplored spot.

    ``None`` means nothing is left to discover. ``DiscoverySnap(0, 0)`` means
    there are unexplored spots but none within ``max_range_m``.
    """
    explored = set(explored_spot_ids)
    index, nearest = find_nearest(position, [spot.location for spot in spots if spot.id not in explored])
    if index < 0:
        return None
    if max_range_m and nearest > max_range_m:
        return DiscoverySnap(distance=0, intensity=0.0)
    return DiscoverySnap(
        distance=round_half_up(nearest),
        intensity=snap_intensity(nearest, max_range_m or default_range_m),
    )


def process_location_update(
    account_id: str,
    location_with_direction: LocationWithDirection,
    discoveries: Sequence[Discovery],
    spots: Sequence[Spot],
    trail: Trail,
    default_snap_range_m: float = DEFAULT_SNAP_RANGE_M,
) -> DiscoveryLocationRecord:
    position = location_with_direction.location
    new_discoveries = resolve_new_discoveries(account_id, position, spots, discoveries, trail)
    explored = discovered_spot_ids(account_id, discoveries) | {item.spot_id for item in new_discoveries}
    snap = resolve_snap(
        position,
        spots,
        explored,
        max_range_m=trail.options.snap_radius or trail.options.scanner_radius,
        default_range_m=default_snap_range_m,
    )
    return DiscoveryLocationRecord(
        location_with_direction=location_with_direction,
        created_at=utcnow(),
        discoveries=new_discoveries,
        snap=snap,
    )


# -- trail view -------------------------------------------------------------


def map_boundary(
    trail: Trail,
    user_location: GeoLocation,
    default_radius_m: float = DEFAULT_MAP_RADIUS_M,
) -> GeoBoundary:
    if trail.region:
        return boundary_from_radius(trail.region.center, trail.region.radius_km * 1000)
    return boundary_from_radius(user_location, default_radius_m)


def build_discovery_trail(
    account_id: str,
    trail: Trail,
    discoveries: Iterable[Discovery],
    spots: Sequence[Spot],
    user_location: Optional[GeoLocation] = None,
    default_radius_m: float = DEFAULT_MAP_RADIUS_M,
) -> DiscoveryTrail:
    trail_spot_ids = set(trail.spot_ids)
    own = [item for item in get_discoveries(account_id, discoveries) if item.spot_id in trail_spot_ids]
    trail_spots = [spot for spot in spots if spot.id in trail_spot_ids]
    clues = resolve_clues(account_id, trail, own, trail_spots)
    if user_location is not None:
        boundary = map_boundary(trail, user_location, default_radius_m)
        clues = [clue for clue in clues if in_bounds(clue.location, boundary)]
    return DiscoveryTrail(
        trail=trail,
        spots=get_discovered_spots(account_id, own, trail_spots),
        preview_clues=clues,
        discoveries=own,
        created_at=utcnow(),
    )


# -- statistics -------------------------------------------------------------


def discovery_stats(
    discovery: Discovery,
    all_for_spot: Iterable[Discovery],
    user_discoveries: Iterable[Discovery],
    trail_spot_ids: Sequence[str],
    spots: Iterable[Spot],
) -> DiscoveryStats:
    """Rank of this discovery among everyone who found the spot, and the walk since the previous one."""
    earlier_accounts = {
        item.account_id
        for item in all_for_spot
        if item.account_id != discovery.account_id and item.discovered_at < discovery.discovered_at
    }
    discoverers = {item.account_id for item in all_for_spot} | {discovery.account_id}

    trail_set = set(trail_spot_ids)
    own = [item for item in user_discoveries if item.account_id == discovery.account_id]
    position_spots = {
        item.spot_id for item in own if item.spot_id in trail_set and item.discovered_at <= discovery.discovered_at
    }
    if discovery.spot_id in trail_set:
        position_spots.add(discovery.spot_id)

    previous = max(
        (item for item in own if item.id != discovery.id and item.discovered_at < discovery.discovered_at),
        key=lambda item: item.discovered_at,
        default=None,
    )
    time_since = None
    distance_since = None
    if previous is not None:
        time_since = (discovery.discovered_at - previous.discovered_at).total_seconds()
        locations = {spot.id: spot.location for spot in spots}
        if previous.spot_id in locations and discovery.spot_id in locations:
            distance_since = round_half_up(distance(locations[previous.spot_id], locations[discovery.spot_id]))

    return DiscoveryStats(
        discovery_id=discovery.id,
        rank=len(earlier_accounts) + 1,
        total_discoverers=len(discoverers),
        trail_position=len(position_spots),
        trail_total=len(trail_spot_ids),
        time_since_last_discovery=time_since,
        distance_from_last_discovery=distance_since,
    )


def trail_stats(
    account_id: str,
    trail_id: str,
    discoveries: Iterable[Discovery],
    trail_spot_ids: Sequence[str],
) -> TrailStats:
    """Progress of ``account_id`` on a trail plus its rank among every account on it.

    Rank orders accounts by discovered spot count, then by who reached that
    count first. Accounts that have not started are unranked (0).
    """
    trail_set = set(trail_spot_ids)
    first_seen: Dict[str, Dict[str, datetime]] = {}
    own_count = 0
    for item in discoveries:
        if item.spot_id not in trail_set:
            continue
        if item.account_id == account_id:
            own_count += 1
        per_spot = first_seen.setdefault(item.account_id, {})
        if item.spot_id not in per_spot or item.discovered_at < per_spot[item.spot_id]:
            per_spot[item.spot_id] = item.discovered_at

    mine = sorted(first_seen.get(account_id, {}).values())
    discovered = len(mine)
    total = len(trail_set)

    if discovered == 0:
        status = CompletionStatus.NOT_STARTED
    elif discovered >= total:
        status = CompletionStatus.COMPLETED
    else:
        status = CompletionStatus.IN_PROGRESS

    leaderboard = sorted(first_seen, key=lambda account: (-len(first_seen[account]), max(first_seen[account].values())))
    rank = leaderboard.index(account_id) + 1 if account_id in first_seen else 0

    average = None
    if discovered > 1:
        average = (mine[-1] - mine[0]).total_seconds() / (discovered - 1)

    return TrailStats(
        trail_id=trail_id,
        total_spots=total,
        discovered_spots=discovered,
        discoveries_count=own_count,
        progress_percentage=round_half_up(discovered / total * 100) if total else 0,
        completion_status=status,
        rank=rank,
        total_discoverers=len(first_seen),
        first_discovered_at=mine[0] if mine else None,
        last_discovered_at=mine[-1] if mine else None,
        average_time_between_discoveries=average,
    )


# -- content and reactions --------------------------------------------------


def create_discovery_content(
    discovery: Discovery,
    comment: Optional[str] = None,
    image_url: Optional[str] = None,
    visibility: ContentVisibility = ContentVisibility.PRIVATE,
) -> DiscoveryContent:
    now = utcnow()
    return DiscoveryContent(
        id=create_content_id(discovery.id),
        discovery_id=discovery.id,
        account_id=discovery.account_id,
        comment=comment,
        image_url=image_url,
        visibility=visibility,
        created_at=now,
        updated_at=now,
    )


def update_discovery_content(
    existing: DiscoveryContent,
    comment: Optional[str] = None,
    image_url: Optional[str] = None,
    visibility: Optional[ContentVisibility] = None,
) -> DiscoveryContent:
    """Apply the given fields; ``None`` keeps the stored value."""
    return DiscoveryContent(
        id=existing.id,
        discovery_id=existing.discovery_id,
        account_id=existing.account_id,
        comment=existing.comment if comment is None else comment,
        image_url=existing.image_url if image_url is None else image_url,
        visibility=existing.visibility if visibility is None else visibility,
        created_at=existing.created_at,
        updated_at=utcnow(),
    )


def clamp_rating(rating: float) -> int:
    return max(MIN_RATING, min(MAX_RATING, round_half_up(rating)))


def create_reaction(discovery_id: str, account_id: str, rating: float) -> DiscoveryReaction:
    return DiscoveryReaction(
        id=create_reaction_id(discovery_id, account_id),
        discovery_id=discovery_id,
        account_id=account_id,
        rating=clamp_rating(rating),
        created_at=utcnow(),
    )


def reaction_summary(reactions: Sequence[DiscoveryReaction], account_id: Optional[str] = None) -> ReactionSummary:
    if not reactions:
        return ReactionSummary(average=0.0, count=0, user_rating=None)
    average = sum(item.rating for item in reactions) / len(reactions)
    user_rating = next((item.rating for item in reactions if item.account_id == account_id), None)
    return ReactionSummary(
        average=round_half_up(average * 10) / 10,
        count=len(reactions),
        user_rating=user_rating,
    )
