# deepzoom_ingest/core/use_cases/resolve_tile_info.py
import structlog
from pydantic import BaseModel

from deepzoom_ingest.core.domain.exceptions import DomainError
from deepzoom_ingest.core.domain.models import DescriptorLocation, TileInfo
from deepzoom_ingest.core.domain.pyramid import find_descriptor_location, parse_descriptor
from deepzoom_ingest.core.ports.tile_source import ITileSource
from deepzoom_ingest.shared.observability import get_tracer

logger = structlog.get_logger()
tracer = get_tracer(__name__)

class ResolvedArtwork(BaseModel):
    location: DescriptorLocation
    tile_info: TileInfo

class ResolveTileInfo:
    """
    Use Case: Turns an artwork page URL into pyramid geometry.

    Steps:
    1. Fetch the artwork page and locate the embedded tile service URL/token.
    2. Fetch `{image_url}=g` and parse the pyramid descriptor.

    Any failure here is fatal to the ingestion job: without geometry there is
    nothing to download.
    """

    def __init__(self, source: ITileSource):
        self.source = source

    async def execute(self, base_asset_url: str) -> ResolvedArtwork:
        with tracer.start_as_current_span("use_case.resolve_tile_info") as span:
            span.set_attribute("app.source_url", base_asset_url)
            logger.info("resolve_started", source_url=base_asset_url)

            try:
                location = await self.find_descriptor_location(base_asset_url)
                tile_info = await self.fetch_tile_info(location)
            except DomainError as e:
                logger.error("resolve_failed", source_url=base_asset_url, error_kind=type(e).__name__, error=e.message)
                raise
            except Exception as e:
                logger.error("resolve_failed", source_url=base_asset_url, error=str(e), exc_info=True)
                raise DomainError(f"Unexpected resolution failure: {str(e)}")

            span.set_attribute("app.num_tiles", tile_info.num_tiles)
            span.set_attribute("app.max_zoom_level", tile_info.max_zoom_level)
            logger.info(
                "resolve_success",
                source_url=base_asset_url,
                width=tile_info.width,
                height=tile_info.height,
                levels=len(tile_info.pyramid_levels),
                num_tiles=tile_info.num_tiles,
            )
            return ResolvedArtwork(location=location, tile_info=tile_info)

    async def find_descriptor_location(self, base_asset_url: str) -> DescriptorLocation:
        page = await self.source.fetch_text(base_asset_url)
        location = find_descriptor_location(page, base_asset_url)
        logger.debug("descriptor_located", image_url=location.image_url, path=location.path)
        return location

    async def fetch_tile_info(self, location: DescriptorLocation) -> TileInfo:
        document = await self.source.fetch_text(location.descriptor_url)
        return parse_descriptor(document, origin=location.descriptor_url)
