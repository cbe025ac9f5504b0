"""Account-facing discovery operations over injected stores and read-only collaborators."""

from __future__ import annotations

import asyncio
import math
from typing import Iterable, List, Optional, Sequence

from contracts import (
    AccountContext,
    Clue,
    ContentVisibility,
    Discovery,
    DiscoveryContent,
    DiscoveryLocationRecord,
    DiscoveryProfile,
    DiscoveryProfileUpdate,
    DiscoveryReaction,
    DiscoveryServiceError,
    DiscoverySpot,
    DiscoveryStats,
    DiscoveryTrail,
    LocationWithDirection,
    ReactionSummary,
    Result,
    ScanEvent,
    Spot,
    Trail,
    TrailStats,
    guarded,
    isoformat_or_none,
    success_result,
    utcnow,
)
from extensions import get_logger
from geo import GeoLocation

from . import service
from .ids import create_content_id


class DiscoveryApplication:
    """Loads discovery state through the stores, runs the domain rules and persists the outcome.

    Discoveries are written with ``upsert`` on their deterministic id, so two
    overlapping location updates for the same spot leave exactly one record.
    """

    def __init__(
        self,
        discovery_store,
        profile_store,
        content_store,
        reaction_store,
        trail_application,
        spot_application,
        *,
        content_filter=None,
        default_trail_id: Optional[str] = None,
        default_map_radius_m: float = service.DEFAULT_MAP_RADIUS_M,
        default_snap_range_m: float = service.DEFAULT_SNAP_RANGE_M,
    ):
        self._discoveries = discovery_store
        self._profiles = profile_store
        self._contents = content_store
        self._reactions = reaction_store
        self._trails = trail_application
        self._spots = spot_application
        self._content_filter = content_filter
        self.default_trail_id = default_trail_id
        self.default_map_radius_m = default_map_radius_m
        self.default_snap_range_m = default_snap_range_m

    # -- loading helpers ----------------------------------------------------

    async def _load_trail(self, trail_id: Optional[str]) -> Trail:
        trail = (await self._trails.get_trail(trail_id)).unwrap() if trail_id else None
        if trail is None:
            raise DiscoveryServiceError.from_code("TRAIL_NOT_FOUND", trail_id=trail_id)
        return trail

    async def _load_spots(self, spot_ids: Iterable[str]) -> List[Spot]:
        ids = list(dict.fromkeys(spot_ids))
        if not ids:
            return []
        return (await self._spots.get_spots_by_ids(ids)).unwrap()

    async def _account_discoveries(self, account_id: str) -> List[Discovery]:
        return (await self._discoveries.list({"account_id": account_id})).unwrap()

    async def _owned_discovery(self, context: AccountContext, discovery_id: str) -> Discovery:
        discovery = (await self._discoveries.get(discovery_id)).unwrap()
        if discovery is None or discovery.account_id != context.account_id:
            raise DiscoveryServiceError.from_code("DISCOVERY_NOT_FOUND", discovery_id=discovery_id)
        return discovery

    async def _existing_discovery(self, discovery_id: str) -> Discovery:
        discovery = (await self._discoveries.get(discovery_id)).unwrap()
        if discovery is None:
            raise DiscoveryServiceError.from_code("DISCOVERY_NOT_FOUND", discovery_id=discovery_id)
        return discovery

    async def _persist_discoveries(self, context: AccountContext, discoveries: Sequence[Discovery]) -> None:
        for discovery in discoveries:
            (await self._discoveries.upsert(discovery)).unwrap()
            get_logger().info(
                "Account %s discovered spot %s on trail %s",
                context.account_id,
                discovery.spot_id,
                discovery.trail_id,
            )

    # -- discovery ----------------------------------------------------------

    @guarded("PROCESS_LOCATION_ERROR")
    async def process_location(
        self,
        context: AccountContext,
        location_with_direction: LocationWithDirection,
        trail_id: str,
    ) -> Result[DiscoveryLocationRecord]:
        trail = await self._load_trail(trail_id)
        discoveries, spots = await asyncio.gather(
            self._account_discoveries(context.account_id),
            self._load_spots(trail.spot_ids),
        )
        record = service.process_location_update(
            context.account_id,
            location_with_direction,
            discoveries,
            spots,
            trail,
            default_snap_range_m=self.default_snap_range_m,
        )
        await self._persist_discoveries(context, record.discoveries)
        return success_result(record)

    @guarded("PROCESS_SCAN_EVENT_ERROR")
    async def process_scan_event(self, context: AccountContext, scan_event: ScanEvent) -> Result[List[Discovery]]:
        if scan_event.account_id != context.account_id:
            raise DiscoveryServiceError.from_code("NOT_AUTHORIZED", scan_event_id=scan_event.id)
        trail = await self._load_trail(scan_event.trail_id)
        discoveries = await self._account_discoveries(context.account_id)
        resolved = service.resolve_scan_event(scan_event, trail, discoveries) or []
        await self._persist_discoveries(context, resolved)
        return success_result(resolved)

    @guarded("GET_DISCOVERIES_ERROR")
    async def get_discoveries(self, context: AccountContext, trail_id: Optional[str] = None) -> Result[List[Discovery]]:
        discoveries = await self._account_discoveries(context.account_id)
        return success_result(service.get_discoveries(context.account_id, discoveries, trail_id))

    @guarded("GET_DISCOVERY_ERROR")
    async def get_discovery(self, context: AccountContext, discovery_id: str) -> Result[Discovery]:
        return success_result(await self._owned_discovery(context, discovery_id))

    @guarded("GET_SPOT_IDS_ERROR")
    async def get_discovered_spot_ids(self, context: AccountContext, trail_id: Optional[str] = None) -> Result[List[str]]:
        discoveries = await self._account_discoveries(context.account_id)
        return success_result(service.get_discovered_spot_ids(context.account_id, discoveries, trail_id))

    @guarded("GET_SPOTS_ERROR")
    async def get_discovered_spots(
        self,
        context: AccountContext,
        trail_id: Optional[str] = None,
    ) -> Result[List[DiscoverySpot]]:
        discoveries = service.get_discoveries(
            context.account_id,
            await self._account_discoveries(context.account_id),
            trail_id,
        )
        spots = await self._load_spots(item.spot_id for item in discoveries)
        return success_result(service.get_discovered_spots(context.account_id, discoveries, spots))

    @guarded("GET_CLUES_ERROR")
    async def get_discovered_preview_clues(self, context: AccountContext, trail_id: str) -> Result[List[Clue]]:
        trail = await self._load_trail(trail_id)
        discoveries, spots = await asyncio.gather(
            self._account_discoveries(context.account_id),
            self._load_spots(trail.spot_ids),
        )
        return success_result(service.resolve_clues(context.account_id, trail, discoveries, spots))

    @guarded("DISCOVERY_TRAIL_ERROR")
    async def get_discovery_trail(
        self,
        context: AccountContext,
        trail_id: str,
        user_location: Optional[GeoLocation] = None,
    ) -> Result[DiscoveryTrail]:
        trail = await self._load_trail(trail_id)
        discoveries, spots = await asyncio.gather(
            self._account_discoveries(context.account_id),
            self._load_spots(trail.spot_ids),
        )
        return success_result(
            service.build_discovery_trail(
                context.account_id,
                trail,
                discoveries,
                spots,
                user_location=user_location,
                default_radius_m=self.default_map_radius_m,
            )
        )

    # -- profile ------------------------------------------------------------

    async def _ensure_profile(self, account_id: str) -> DiscoveryProfile:
        profile = (await self._profiles.get(account_id)).unwrap()
        if profile is not None:
            return profile
        now = utcnow()
        created = await self._profiles.create(
            DiscoveryProfile(
                id=account_id,
                account_id=account_id,
                last_active_trail_id=self.default_trail_id,
                created_at=now,
                updated_at=now,
            )
        )
        if created.code == "ALREADY_EXISTS":
            # another request created it first
            return (await self._profiles.get(account_id)).unwrap()
        return created.unwrap()

    @guarded("GET_PROFILE_ERROR")
    async def get_discovery_profile(self, context: AccountContext) -> Result[DiscoveryProfile]:
        return success_result(await self._ensure_profile(context.account_id))

    @guarded("UPDATE_TRAIL_ERROR")
    async def update_discovery_profile(
        self,
        context: AccountContext,
        patch: DiscoveryProfileUpdate,
    ) -> Result[DiscoveryProfile]:
        profile = await self._ensure_profile(context.account_id)
        updated = await self._profiles.update(
            profile.id,
            {
                "last_active_trail_id": patch.last_active_trail_id,
                "updated_at": isoformat_or_none(utcnow()),
            },
        )
        return success_result(updated.unwrap())

    # -- statistics ---------------------------------------------------------

    @guarded("GET_DISCOVERY_STATS_ERROR")
    async def get_discovery_stats(self, context: AccountContext, discovery_id: str) -> Result[DiscoveryStats]:
        discovery = await self._owned_discovery(context, discovery_id)
        all_for_spot_result, user_discoveries = await asyncio.gather(
            self._discoveries.list({"spot_id": discovery.spot_id}),
            self._account_discoveries(context.account_id),
        )
        trail_spot_ids: List[str] = []
        if discovery.trail_id:
            trail = (await self._trails.get_trail(discovery.trail_id)).unwrap()
            trail_spot_ids = list(trail.spot_ids) if trail else []
        spots = await self._load_spots(item.spot_id for item in user_discoveries)
        return success_result(
            service.discovery_stats(
                discovery,
                all_for_spot_result.unwrap(),
                user_discoveries,
                trail_spot_ids,
                spots,
            )
        )

    @guarded("GET_TRAIL_STATS_ERROR")
    async def get_discovery_trail_stats(self, context: AccountContext, trail_id: str) -> Result[TrailStats]:
        trail = await self._load_trail(trail_id)
        if not trail.spot_ids:
            raise DiscoveryServiceError.from_code("TRAIL_HAS_NO_SPOTS", trail_id=trail_id)
        discoveries = (await self._discoveries.list({"spot_id": list(trail.spot_ids)})).unwrap()
        return success_result(service.trail_stats(context.account_id, trail.id, discoveries, trail.spot_ids))

    # -- content ------------------------------------------------------------

    @guarded("GET_CONTENT_ERROR")
    async def get_discovery_content(self, context: AccountContext, discovery_id: str) -> Result[DiscoveryContent]:
        await self._existing_discovery(discovery_id)
        content = (await self._contents.get(create_content_id(discovery_id))).unwrap()
        if content is None:
            raise DiscoveryServiceError.from_code("CONTENT_NOT_FOUND", discovery_id=discovery_id)
        if content.account_id != context.account_id and content.visibility != ContentVisibility.PUBLIC:
            raise DiscoveryServiceError.from_code("NOT_AUTHORIZED", discovery_id=discovery_id)
        return success_result(content)

    @guarded("SAVE_CONTENT_ERROR")
    async def upsert_discovery_content(
        self,
        context: AccountContext,
        discovery_id: str,
        *,
        comment: Optional[str] = None,
        image_url: Optional[str] = None,
        visibility: Optional[ContentVisibility] = None,
    ) -> Result[DiscoveryContent]:
        discovery = await self._existing_discovery(discovery_id)
        if discovery.account_id != context.account_id:
            raise DiscoveryServiceError.from_code("NOT_AUTHORIZED", discovery_id=discovery_id)
        if image_url and image_url.strip().lower().startswith("data:"):
            raise DiscoveryServiceError.from_code("IMAGE_UPLOAD_NOT_SUPPORTED", discovery_id=discovery_id)
        if comment is not None:
            comment = comment.strip()
            decision = self._content_filter.scan(comment) if self._content_filter else None
            if decision:
                get_logger().info(
                    "Rejected comment on discovery %s (%s)", discovery_id, decision.rule_id
                )
                raise DiscoveryServiceError.from_code(
                    "CONTENT_REJECTED",
                    discovery_id=discovery_id,
                    category=decision.category,
                    reason=decision.label,
                )

        existing = (await self._contents.get(create_content_id(discovery_id))).unwrap()
        if existing is None:
            content = service.create_discovery_content(
                discovery,
                comment=comment,
                image_url=image_url,
                visibility=visibility or ContentVisibility.PRIVATE,
            )
        else:
            content = service.update_discovery_content(
                existing,
                comment=comment,
                image_url=image_url,
                visibility=visibility,
            )
        return success_result((await self._contents.upsert(content)).unwrap())

    @guarded("DELETE_CONTENT_ERROR")
    async def delete_discovery_content(self, context: AccountContext, discovery_id: str) -> Result[bool]:
        content = (await self._contents.get(create_content_id(discovery_id))).unwrap()
        if content is None:
            raise DiscoveryServiceError.from_code("CONTENT_NOT_FOUND", discovery_id=discovery_id)
        if content.account_id != context.account_id:
            raise DiscoveryServiceError.from_code("NOT_AUTHORIZED", discovery_id=discovery_id)
        return await self._contents.delete(content.id)

    # -- reactions ----------------------------------------------------------

    @guarded("REACTION_ERROR")
    async def react_to_discovery(
        self,
        context: AccountContext,
        discovery_id: str,
        rating: float,
    ) -> Result[DiscoveryReaction]:
        if isinstance(rating, bool) or not isinstance(rating, (int, float)) or not math.isfinite(rating):
            raise DiscoveryServiceError.from_code("INVALID_RATING", rating=repr(rating))
        await self._existing_discovery(discovery_id)
        reaction = service.create_reaction(discovery_id, context.account_id, rating)
        return success_result((await self._reactions.upsert(reaction)).unwrap())

    @guarded("GET_REACTIONS_ERROR")
    async def get_reaction_summary(self, context: AccountContext, discovery_id: str) -> Result[ReactionSummary]:
        await self._existing_discovery(discovery_id)
        reactions = (await self._reactions.list({"discovery_id": discovery_id})).unwrap()
        return success_result(service.reaction_summary(reactions, context.account_id))
