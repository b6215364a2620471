"""PostgREST (Supabase-style) implementation of RoomStore using httpx."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from syncwatch.config import RestStoreConfig
from syncwatch.errors import RoomCodeConflictError, RoomNotFoundError, StoreUnavailableError
from syncwatch.models.room import Room
from syncwatch.store.base import RoomStore

if TYPE_CHECKING:
    import httpx


class RestRoomStore(RoomStore):
    """Room store talking to a PostgREST table endpoint.

    Rows are filtered with PostgREST operators (``?code=eq.ABC234``) and
    writes ask for the row back with ``Prefer: return=representation``.
    Works against a Supabase project when ``api_key`` is the anon key.
    """

    def __init__(
        self,
        config: RestStoreConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        try:
            import httpx as _httpx
        except ImportError as exc:
            raise ImportError(
                "httpx is required for RestRoomStore. "
                "Install it with: pip install syncwatch[rest]"
            ) from exc
        self._config = config
        self._httpx = _httpx
        self._owns_client = client is None
        self._client: httpx.AsyncClient = client or _httpx.AsyncClient(
            timeout=config.timeout,
        )
        base = config.base_url.rstrip("/")
        self._url = f"{base}{config.schema_path}/{config.table}"

    async def create_room(self, room: Room) -> Room:
        resp = await self._request(
            "POST",
            json=room.to_record(),
            headers={"Prefer": "return=representation"},
            allow={409},
        )
        if resp.status_code == 409:
            raise RoomCodeConflictError(room.code)
        rows = resp.json()
        if isinstance(rows, list) and rows:
            return Room.from_record(rows[0])
        return room

    async def get_room(self, room_id: str) -> Room | None:
        return await self._fetch_one({"id": f"eq.{room_id}"})

    async def get_room_by_code(self, code: str) -> Room | None:
        return await self._fetch_one({"code": f"eq.{code.upper()}"})

    async def update_playback(
        self,
        room_id: str,
        playback_time: float,
        is_playing: bool,
        last_sync_at: datetime,
    ) -> None:
        await self._patch(
            room_id,
            {
                "playback_time": max(0.0, playback_time),
                "is_playing": is_playing,
                "last_sync_at": last_sync_at.isoformat(),
            },
        )

    async def update_subtitle(self, room_id: str, subtitle_url: str | None) -> None:
        await self._patch(room_id, {"subtitle_url": subtitle_url})

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _fetch_one(self, filters: dict[str, str]) -> Room | None:
        resp = await self._request("GET", params={"select": "*", **filters, "limit": "1"})
        rows = resp.json()
        if not rows:
            return None
        return Room.from_record(rows[0])

    async def _patch(self, room_id: str, body: dict[str, Any]) -> None:
        resp = await self._request(
            "PATCH",
            params={"id": f"eq.{room_id}"},
            json=body,
            headers={"Prefer": "return=representation"},
        )
        if not resp.json():
            raise RoomNotFoundError(room_id)

    async def _request(
        self,
        method: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
        allow: set[int] | None = None,
    ) -> httpx.Response:
        try:
            resp = await self._client.request(
                method,
                self._url,
                params=params,
                json=json,
                headers={**self._build_headers(), **(headers or {})},
            )
            if allow and resp.status_code in allow:
                return resp
            resp.raise_for_status()
        except self._httpx.HTTPStatusError as exc:
            raise StoreUnavailableError(
                f"Room store returned HTTP {exc.response.status_code}"
            ) from exc
        except self._httpx.HTTPError as exc:
            raise StoreUnavailableError(f"Room store unreachable: {exc}") from exc
        return resp

    def _build_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {
            "Accept": "application/json",
            **self._config.headers,
        }
        if self._config.api_key is not None:
            key = self._config.api_key.get_secret_value()
            headers["apikey"] = key
            headers["Authorization"] = f"Bearer {key}"
        return headers
