# deepzoom_ingest/adapters/persistence/strapi_metadata_store.py
import httpx
import structlog
from typing import Any, Dict, Optional

from deepzoom_ingest.core.domain.exceptions import DuplicateError, NetworkError
from deepzoom_ingest.core.domain.models import (
    DescriptorLocation,
    PyramidLevel,
    TileInfo,
    TileRecord,
)

logger = structlog.get_logger()

TILES = "/api/tiles"
TILE_INFOS = "/api/tile-infos"
PYRAMID_LEVELS = "/api/pyramid-levels"

# Strapi 5 creates drafts unless told otherwise.
PUBLISHED = {"status": "published"}

def _is_unique_violation(response: httpx.Response) -> bool:
    try:
        body = response.json()
    except ValueError:
        return False
    error = (body or {}).get("error") or {}
    if error.get("name") != "ValidationError":
        return False
    messages = [error.get("message") or ""]
    for detail in (error.get("details") or {}).get("errors") or []:
        messages.append(detail.get("message") or "")
    return any("must be unique" in message for message in messages)

class StrapiMetadataStore:
    """
    Adapter for the CMS REST API (Strapi content types `tile`, `tile-info`
    and `pyramid-level`).

    The `tileID` attribute is declared unique in the CMS, so a concurrent or
    repeated create comes back as a ValidationError which is mapped to
    DuplicateError.
    """

    def __init__(
        self,
        base_url: str,
        api_token: Optional[str] = None,
        timeout_seconds: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        headers = {"Authorization": f"Bearer {api_token}"} if api_token else {}
        self.client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout_seconds),
            headers=headers,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            return await self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise NetworkError(path, str(e) or type(e).__name__)

    @staticmethod
    def _ensure_success(response: httpx.Response, path: str) -> Dict[str, Any]:
        if not response.is_success:
            raise NetworkError(path, f"HTTP {response.status_code}: {response.text[:200]}", status_code=response.status_code)
        return response.json() if response.content else {}

    # --- Interface Implementation ---

    async def find_tile_by_id(self, tile_id: str) -> Optional[TileRecord]:
        response = await self._request(
            "GET",
            TILES,
            params={"filters[tileID][$eq]": tile_id, "pagination[limit]": 1},
        )
        body = self._ensure_success(response, TILES)
        entries = body.get("data") or []
        if not entries:
            return None
        entry = entries[0]
        return TileRecord(tile_id=entry["tileID"], tile_url=entry.get("tile_url") or "")

    async def create_tile_record(self, tile_id: str, tile_url: str) -> TileRecord:
        response = await self._request(
            "POST",
            TILES,
            params=PUBLISHED,
            json={"data": {"tileID": tile_id, "tile_url": tile_url}},
        )
        if response.status_code == 400 and _is_unique_violation(response):
            raise DuplicateError(tile_id)
        self._ensure_success(response, TILES)
        return TileRecord(tile_id=tile_id, tile_url=tile_url)

    async def update_progress(self, job_id: str, processed: int) -> None:
        path = f"{TILE_INFOS}/{job_id}"
        response = await self._request("PUT", path, json={"data": {"scrapedTiles": processed}})
        self._ensure_success(response, path)

    async def create_tile_info(
        self,
        image_id: str,
        source_url: str,
        location: DescriptorLocation,
        tile_info: TileInfo,
    ) -> str:
        response = await self._request(
            "POST",
            TILE_INFOS,
            params=PUBLISHED,
            json={
                "data": {
                    "totalTiles": tile_info.num_tiles,
                    "scrapedTiles": 0,
                    "width": tile_info.width,
                    "height": tile_info.height,
                    "tileSize": tile_info.tile_size,
                    "maxZoomLevel": tile_info.max_zoom_level,
                    "originUrl": source_url,
                    "gapDataToken": location.token,
                    "gapDataPath": location.path,
                    "fullPyramidDepth": tile_info.full_pyramid_depth,
                }
            },
        )
        body = self._ensure_success(response, TILE_INFOS)
        job_id = body["data"]["documentId"]
        logger.info("tile_info_created", job_id=job_id, image_id=image_id)
        return job_id

    async def create_pyramid_level(self, job_id: str, level_index: int, level: PyramidLevel) -> None:
        response = await self._request(
            "POST",
            PYRAMID_LEVELS,
            params=PUBLISHED,
            json={
                "data": {
                    "numTilesX": level.num_tiles_x,
                    "numTilesY": level.num_tiles_y,
                    "inverseScale": level.inverse_scale,
                    "emptyPelsX": level.empty_pels_x,
                    "emptyPelsY": level.empty_pels_y,
                    "width": level.width,
                    "height": level.height,
                    "tile_info": job_id,
                }
            },
        )
        self._ensure_success(response, PYRAMID_LEVELS)
        logger.debug("pyramid_level_created", job_id=job_id, level_index=level_index)
