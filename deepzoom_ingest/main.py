# deepzoom_ingest/main.py
"""
Library entry point for the host job scheduler.

    from deepzoom_ingest.main import ingest_artwork
    summary = await ingest_artwork("https://artsandculture.example/asset/xyz", "img-42")
"""
from typing import Optional

import structlog

from deepzoom_ingest.core.domain.context import JobContext
from deepzoom_ingest.core.domain.models import JobSummary
from deepzoom_ingest.shared.config import settings
from deepzoom_ingest.shared.container import Container, container as default_container
from deepzoom_ingest.shared.logging_config import configure_logging
from deepzoom_ingest.shared.observability import setup_telemetry

logger = structlog.get_logger()

async def ingest_artwork(
    source_url: str,
    image_id: str,
    batch_size: Optional[int] = None,
    context: Optional[JobContext] = None,
    container: Optional[Container] = None,
) -> JobSummary:
    """
    Mirrors every tile of one artwork and returns the job summary.

    Resolution failures (page, descriptor) propagate as DomainError subclasses;
    per-tile failures are only counted in the summary.
    """
    configure_logging()
    setup_telemetry(settings.OTEL_SERVICE_NAME)

    container = container or default_container
    logger.info("job_starting", app=settings.APP_NAME, env=settings.APP_ENV.value, image_id=image_id)

    try:
        use_case = container.ingest_artwork()
        return await use_case.execute(source_url, image_id, batch_size=batch_size, context=context)
    finally:
        await release_clients(container)

async def release_clients(container: Container) -> None:
    """
    Closes the pooled HTTP clients of a job and drops the singletons holding
    them, so the next job on the same container builds fresh ones.
    """
    await container.tile_source().aclose()
    metadata_store = container.metadata_store()
    if hasattr(metadata_store, "aclose"):
        await metadata_store.aclose()
    container.reset_singletons()
