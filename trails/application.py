"""Read-only trail queries."""

from __future__ import annotations

from typing import List, Optional

from contracts import Result, Trail, error_result, success_result


class TrailApplication:
    def __init__(self, trail_store):
        self._store = trail_store

    async def get_trail(self, trail_id: str) -> Result[Optional[Trail]]:
        return await self._store.get(trail_id)

    async def get_trail_spot_ids(self, trail_id: str) -> Result[List[str]]:
        result = await self._store.get(trail_id)
        if not result.success:
            return result
        if result.data is None:
            return error_result("TRAIL_NOT_FOUND", trail_id=trail_id)
        return success_result(list(result.data.spot_ids))

    async def list_trails(self) -> Result[List[Trail]]:
        return await self._store.list()
