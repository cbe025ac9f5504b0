"""Builders shared by the discovery tests."""

from typing import Iterable, List, Optional

from contracts import (
    AccountContext,
    Client,
    DiscoveryMode,
    PreviewMode,
    Role,
    Spot,
    SpotOptions,
    SpotVisibility,
    Trail,
    TrailOptions,
)
from geo import GeoLocation, GeoRegion

ORIGIN = GeoLocation(lat=51.5, lon=7.5)


def make_spot(
    spot_id: str,
    location: GeoLocation = ORIGIN,
    *,
    trail_id: str = "trail-1",
    radius: float = 50.0,
    created_by: Optional[str] = "creator-1",
    visibility: SpotVisibility = SpotVisibility.PREVIEW,
) -> Spot:
    return Spot(
        id=spot_id,
        trail_id=trail_id,
        name=f"Spot {spot_id}",
        description=f"Secret description of {spot_id}",
        location=location,
        options=SpotOptions(discovery_radius=radius, visibility=visibility),
        created_by=created_by,
        image_url=f"https://img.example/{spot_id}.jpg",
        blurred_image_url=f"https://img.example/{spot_id}-blur.jpg",
    )


def make_trail(
    spot_ids: Iterable[str],
    *,
    trail_id: str = "trail-1",
    mode: DiscoveryMode = DiscoveryMode.FREE,
    preview: PreviewMode = PreviewMode.PREVIEW,
    snap_radius: Optional[float] = None,
    scanner_radius: Optional[float] = None,
    region: Optional[GeoRegion] = None,
) -> Trail:
    return Trail(
        id=trail_id,
        name=f"Trail {trail_id}",
        spot_ids=list(spot_ids),
        options=TrailOptions(
            discovery_mode=mode,
            preview_mode=preview,
            snap_radius=snap_radius,
            scanner_radius=scanner_radius,
        ),
        region=region,
        created_by="creator-1",
    )


def make_context(
    account_id: str = "walker-1",
    role: Role = Role.USER,
    client: Client = Client.APP,
) -> AccountContext:
    return AccountContext(account_id=account_id, role=role, client=client)


async def seed(core, trail: Trail, spots: List[Spot]) -> None:
    await core.stores["trails"].upsert(trail)
    for spot in spots:
        await core.stores["spots"].upsert(spot)
