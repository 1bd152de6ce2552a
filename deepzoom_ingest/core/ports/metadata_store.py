# deepzoom_ingest/core/ports/metadata_store.py
from typing import Optional, Protocol

from deepzoom_ingest.core.domain.models import (
    DescriptorLocation,
    PyramidLevel,
    TileInfo,
    TileRecord,
)

class IMetadataStore(Protocol):
    """
    Port for the document store (the CMS) that tracks tiles and job progress.
    """

    async def find_tile_by_id(self, tile_id: str) -> Optional[TileRecord]:
        """Returns the tile record if one exists, None otherwise."""
        ...

    async def create_tile_record(self, tile_id: str, tile_url: str) -> TileRecord:
        """
        Persists a tile record.

        Raises:
            DuplicateError: a record with this tile_id already exists.
        """
        ...

    async def update_progress(self, job_id: str, processed: int) -> None:
        """Stores the number of tiles processed so far for a job."""
        ...

    async def create_tile_info(
        self,
        image_id: str,
        source_url: str,
        location: DescriptorLocation,
        tile_info: TileInfo,
    ) -> str:
        """
        Persists the pyramid summary for an artwork and returns the job id
        that progress updates refer to.
        """
        ...

    async def create_pyramid_level(self, job_id: str, level_index: int, level: PyramidLevel) -> None:
        """Persists one pyramid level under a job."""
        ...
