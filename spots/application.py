"""Read-only spot queries used by the discovery application and composites."""

from __future__ import annotations

import asyncio
from typing import List, Optional, Sequence

from contracts import Result, Spot, SpotPreview, success_result

from .service import to_preview


class SpotApplication:
    def __init__(self, spot_store):
        self._store = spot_store

    async def get_spot(self, spot_id: str) -> Result[Optional[Spot]]:
        return await self._store.get(spot_id)

    async def get_spots(
        self,
        trail_id: Optional[str] = None,
        *,
        created_by: Optional[str] = None,
    ) -> Result[List[Spot]]:
        filters = {}
        if trail_id:
            filters["trail_id"] = trail_id
        if created_by:
            filters["created_by"] = created_by
        return await self._store.list(filters or None)

    async def get_spots_by_ids(self, spot_ids: Sequence[str]) -> Result[List[Spot]]:
        """Spots in the requested order; unknown ids are skipped."""
        ids = list(dict.fromkeys(spot_ids))
        results = await asyncio.gather(*(self._store.get(spot_id) for spot_id in ids))
        spots: List[Spot] = []
        for result in results:
            if not result.success:
                return result
            if result.data is not None:
                spots.append(result.data)
        return success_result(spots)

    async def get_spot_previews_by_ids(self, spot_ids: Sequence[str]) -> Result[List[SpotPreview]]:
        spots = await self.get_spots_by_ids(spot_ids)
        if not spots.success:
            return spots
        return success_result([to_preview(spot) for spot in spots.data])
