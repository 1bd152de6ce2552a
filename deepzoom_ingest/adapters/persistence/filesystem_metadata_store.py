# deepzoom_ingest/adapters/persistence/filesystem_metadata_store.py
import asyncio
import json
import uuid
import aiofiles
import structlog
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from deepzoom_ingest.core.domain.exceptions import DomainError, DuplicateError
from deepzoom_ingest.core.domain.models import (
    DescriptorLocation,
    PyramidLevel,
    TileInfo,
    TileRecord,
)

logger = structlog.get_logger()

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()

class FileSystemMetadataStore:
    """
    Metadata store kept in a single JSON document.

    Layout:
        {
          "tiles":      {tile_id: {"tile_id", "tile_url", "created_at"}},
          "tile_infos": {job_id:  {..., "scraped_tiles", "pyramid_levels": [...]}}
        }

    Writes are serialized by an asyncio lock so concurrent tile tasks of one
    batch cannot lose each other's records.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()

    async def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {"tiles": {}, "tile_infos": {}}
        try:
            async with aiofiles.open(self.path, mode="r", encoding="utf-8") as f:
                content = await f.read()
        except OSError as e:
            logger.error("metadata_read_failed", path=str(self.path), error=str(e))
            raise DomainError(f"Could not read metadata file {self.path}: {e}")
        try:
            data = json.loads(content) if content else {}
        except ValueError as e:
            logger.error("metadata_corrupt", path=str(self.path), error=str(e))
            raise DomainError(f"Metadata file {self.path} is not valid JSON: {e}")
        data.setdefault("tiles", {})
        data.setdefault("tile_infos", {})
        return data

    async def _save(self, data: Dict[str, Any]) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            async with aiofiles.open(tmp_path, mode="w", encoding="utf-8") as f:
                await f.write(json.dumps(data, indent=2, ensure_ascii=False))
            tmp_path.replace(self.path)
        except OSError as e:
            logger.error("metadata_write_failed", path=str(self.path), error=str(e))
            raise DomainError(f"Could not save metadata file {self.path}: {e}")

    # --- Interface Implementation ---

    async def find_tile_by_id(self, tile_id: str) -> Optional[TileRecord]:
        data = await self._load()
        raw = data["tiles"].get(tile_id)
        if not raw:
            return None
        return TileRecord(tile_id=raw["tile_id"], tile_url=raw["tile_url"])

    async def create_tile_record(self, tile_id: str, tile_url: str) -> TileRecord:
        async with self._lock:
            data = await self._load()
            if tile_id in data["tiles"]:
                raise DuplicateError(tile_id)
            data["tiles"][tile_id] = {"tile_id": tile_id, "tile_url": tile_url, "created_at": _now()}
            await self._save(data)
        return TileRecord(tile_id=tile_id, tile_url=tile_url)

    async def update_progress(self, job_id: str, processed: int) -> None:
        async with self._lock:
            data = await self._load()
            info = data["tile_infos"].get(job_id)
            if info is None:
                raise DomainError(f"Unknown tile info job '{job_id}'.")
            info["scraped_tiles"] = processed
            info["updated_at"] = _now()
            await self._save(data)

    async def create_tile_info(
        self,
        image_id: str,
        source_url: str,
        location: DescriptorLocation,
        tile_info: TileInfo,
    ) -> str:
        job_id = uuid.uuid4().hex
        async with self._lock:
            data = await self._load()
            data["tile_infos"][job_id] = {
                "image_id": image_id,
                "origin_url": source_url,
                "token": location.token,
                "path": location.path,
                "total_tiles": tile_info.num_tiles,
                "scraped_tiles": 0,
                "width": tile_info.width,
                "height": tile_info.height,
                "tile_size": tile_info.tile_size,
                "max_zoom_level": tile_info.max_zoom_level,
                "full_pyramid_depth": tile_info.full_pyramid_depth,
                "pyramid_levels": [],
                "created_at": _now(),
            }
            await self._save(data)
        logger.info("tile_info_saved", job_id=job_id, image_id=image_id)
        return job_id

    async def create_pyramid_level(self, job_id: str, level_index: int, level: PyramidLevel) -> None:
        async with self._lock:
            data = await self._load()
            info = data["tile_infos"].get(job_id)
            if info is None:
                raise DomainError(f"Unknown tile info job '{job_id}'.")
            info["pyramid_levels"].append({"level_index": level_index, **level.model_dump()})
            await self._save(data)
