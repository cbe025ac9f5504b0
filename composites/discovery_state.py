"""One-call reads of an account's discovery state, and trail activation."""

from __future__ import annotations

import asyncio
from typing import List

from contracts import (
    AccountContext,
    DiscoveryProfileUpdate,
    DiscoveryServiceError,
    DiscoveryState,
    Result,
    Spot,
    SpotSource,
    guarded,
    success_result,
)
from extensions import get_logger
from spots.service import is_public, merge_spots, with_source


class DiscoveryStateComposite:
    """Bundles profile, discoveries and visible spots.

    ``spots`` holds the account's own spots (source ``created``), then on
    activation the trail's public spots by other accounts (source ``public``),
    then discovered spots. A spot id appears once; the earlier group wins.
    """

    def __init__(self, discovery_application, spot_application, trail_application):
        self._discovery = discovery_application
        self._spots = spot_application
        self._trails = trail_application

    async def _created_spots(self, context: AccountContext) -> List[Spot]:
        created = (await self._spots.get_spots(created_by=context.account_id)).unwrap()
        return [with_source(spot, SpotSource.CREATED) for spot in created]

    @guarded("DISCOVERY_STATE_ERROR")
    async def get_discovery_state(self, context: AccountContext) -> Result[DiscoveryState]:
        profile, discoveries, spots, created = await asyncio.gather(
            self._discovery.get_discovery_profile(context),
            self._discovery.get_discoveries(context),
            self._discovery.get_discovered_spots(context),
            self._created_spots(context),
        )
        state = DiscoveryState(
            profile=profile.unwrap(),
            discoveries=discoveries.unwrap(),
            spots=merge_spots(created, spots.unwrap()),
        )

        trail_id = state.profile.last_active_trail_id
        if trail_id:
            active = await self._discovery.get_discovery_trail(context, trail_id)
            if active.code == "TRAIL_NOT_FOUND":
                get_logger().warning("Active trail %s for %s no longer exists", trail_id, context.account_id)
            else:
                state.active_trail = active.unwrap()
        return success_result(state)

    @guarded("UPDATE_TRAIL_ERROR")
    async def activate_trail(self, context: AccountContext, trail_id: str) -> Result[DiscoveryState]:
        """Point the profile at ``trail_id`` and return that trail's state in the same call."""
        trail = (await self._trails.get_trail(trail_id)).unwrap()
        if trail is None:
            raise DiscoveryServiceError.from_code("TRAIL_NOT_FOUND", trail_id=trail_id)

        profile = (
            await self._discovery.update_discovery_profile(context, DiscoveryProfileUpdate(last_active_trail_id=trail_id))
        ).unwrap()
        active, discoveries, spots, created, trail_spots = await asyncio.gather(
            self._discovery.get_discovery_trail(context, trail_id),
            self._discovery.get_discoveries(context, trail_id),
            self._discovery.get_discovered_spots(context, trail_id),
            self._created_spots(context),
            self._spots.get_spots_by_ids(trail.spot_ids),
        )
        public = [
            with_source(spot, SpotSource.PUBLIC)
            for spot in trail_spots.unwrap()
            if is_public(spot) and spot.created_by != context.account_id
        ]
        return success_result(
            DiscoveryState(
                profile=profile,
                discoveries=discoveries.unwrap(),
                spots=merge_spots(created, public, spots.unwrap()),
                active_trail=active.unwrap(),
            )
        )
