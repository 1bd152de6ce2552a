# deepzoom_ingest/core/use_cases/ingest_artwork.py
import structlog
from typing import Optional

from deepzoom_ingest.core.domain.context import JobContext
from deepzoom_ingest.core.domain.models import JobSummary
from deepzoom_ingest.core.domain.pyramid import build_tile_urls
from deepzoom_ingest.core.domain.signing import UrlSigner
from deepzoom_ingest.core.ports.metadata_store import IMetadataStore
from deepzoom_ingest.core.use_cases.resolve_tile_info import ResolveTileInfo
from deepzoom_ingest.core.use_cases.upload_tiles import UploadTiles
from deepzoom_ingest.shared.observability import get_tracer

logger = structlog.get_logger()
tracer = get_tracer(__name__)

class IngestArtwork:
    """
    Use Case (Saga): Mirrors every tile of one artwork.

    Steps:
    1. Resolve the pyramid geometry (fatal on failure).
    2. Persist the tile-info summary and its pyramid levels; the returned id
       becomes the job id that progress is reported against.
    3. Sign a download URL for every (x, y, level).
    4. Hand the URL map to the batch uploader.
    """

    def __init__(
        self,
        resolver: ResolveTileInfo,
        uploader: UploadTiles,
        metadata_store: IMetadataStore,
        signer: UrlSigner,
    ):
        self.resolver = resolver
        self.uploader = uploader
        self.metadata_store = metadata_store
        self.signer = signer

    async def execute(
        self,
        source_url: str,
        image_id: str,
        batch_size: Optional[int] = None,
        context: Optional[JobContext] = None,
    ) -> JobSummary:
        with tracer.start_as_current_span("use_case.ingest_artwork") as span:
            span.set_attribute("app.image_id", image_id)
            span.set_attribute("app.source_url", source_url)
            logger.info("ingest_started", image_id=image_id, source_url=source_url)

            # 1. Geometry
            resolved = await self.resolver.execute(source_url)
            tile_info = resolved.tile_info

            # 2. Job bookkeeping
            job_id = await self.metadata_store.create_tile_info(
                image_id, source_url, resolved.location, tile_info
            )
            for level_index, level in enumerate(tile_info.pyramid_levels):
                await self.metadata_store.create_pyramid_level(job_id, level_index, level)

            # 3. Signed URLs
            tile_urls = build_tile_urls(resolved.location, tile_info, self.signer)
            logger.info("tile_urls_generated", image_id=image_id, job_id=job_id, count=len(tile_urls))

            # 4. Upload
            if context is None:
                context = JobContext(image_id=image_id, job_id=job_id)
            elif context.job_id is None:
                context.job_id = job_id
                context.logger = context.logger.bind(job_id=job_id)

            summary = await self.uploader.execute(
                tile_urls,
                image_id,
                job_id=job_id,
                batch_size=batch_size,
                context=context,
            )
            logger.info("ingest_finished", image_id=image_id, job_id=job_id, **summary.model_dump(exclude={"job_id"}))
            return summary
