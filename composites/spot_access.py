"""Spot reads gated by discovery state.

The spot domain never looks at discoveries itself; this composite asks the
discovery application which spots an account has found and only then hands
out full records.
"""

from __future__ import annotations

from typing import List, Optional

from contracts import (
    AccessibleSpot,
    AccountContext,
    DiscoveryServiceError,
    Result,
    SpotSource,
    guarded,
    success_result,
)
from spots.service import determine_spot_source, has_privileged_access, to_preview, with_source


class SpotAccessComposite:
    def __init__(self, discovery_application, spot_application, trail_application):
        self._discovery = discovery_application
        self._spots = spot_application
        self._trails = trail_application

    @guarded("GET_SPOTS_ERROR")
    async def get_accessible_spots(
        self,
        context: AccountContext,
        trail_id: Optional[str] = None,
        *,
        include_created: bool = False,
        include_previews: bool = False,
    ) -> Result[List[AccessibleSpot]]:
        """Full records for discovered spots.

        ``include_created`` adds the account's own spots. ``include_previews``
        adds previews for the remaining spots of ``trail_id``.
        """
        if context.is_admin_on_creator_client:
            spots = (await self._spots.get_spots(trail_id)).unwrap()
            return success_result([with_source(spot, SpotSource.CREATED) for spot in spots])

        discovered_ids = (await self._discovery.get_discovered_spot_ids(context, trail_id)).unwrap()
        accessible: List[AccessibleSpot] = []
        if discovered_ids:
            spots = (await self._spots.get_spots_by_ids(discovered_ids)).unwrap()
            accessible.extend(with_source(spot, SpotSource.DISCOVERY) for spot in spots)

        if include_created:
            seen = {spot.id for spot in accessible}
            created = (await self._spots.get_spots(trail_id, created_by=context.account_id)).unwrap()
            accessible.extend(with_source(spot, SpotSource.CREATED) for spot in created if spot.id not in seen)

        if include_previews and trail_id:
            seen = {spot.id for spot in accessible}
            trail_spot_ids = (await self._trails.get_trail_spot_ids(trail_id)).unwrap()
            remaining = [spot_id for spot_id in trail_spot_ids if spot_id not in seen]
            if remaining:
                accessible.extend((await self._spots.get_spot_previews_by_ids(remaining)).unwrap())

        return success_result(accessible)

    @guarded("GET_SPOT_ERROR")
    async def get_accessible_spot(
        self,
        context: AccountContext,
        spot_id: str,
        *,
        require_discovery: bool = False,
    ) -> Result[AccessibleSpot]:
        """One spot in full, or its preview (``DISCOVERY_REQUIRED`` when ``require_discovery``)."""
        spot = (await self._spots.get_spot(spot_id)).unwrap()
        if spot is None:
            raise DiscoveryServiceError.from_code("SPOT_NOT_FOUND", spot_id=spot_id)

        if has_privileged_access(context, spot):
            return success_result(with_source(spot, SpotSource.CREATED))

        discovered_ids = (await self._discovery.get_discovered_spot_ids(context)).unwrap()
        source = determine_spot_source(context, spot, discovered_ids)

        if source != SpotSource.PREVIEW:
            return success_result(with_source(spot, source))
        if require_discovery:
            raise DiscoveryServiceError.from_code("DISCOVERY_REQUIRED", spot_id=spot_id)
        return success_result(to_preview(spot))
