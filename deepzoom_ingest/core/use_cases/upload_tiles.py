# deepzoom_ingest/core/use_cases/upload_tiles.py
import asyncio
import math
from typing import List, Mapping, Optional, Tuple

from deepzoom_ingest.core.domain.context import JobContext
from deepzoom_ingest.core.domain.decryption import TileDecryptor
from deepzoom_ingest.core.domain.exceptions import DomainError, DuplicateError
from deepzoom_ingest.core.domain.models import JobSummary, TileResult, TileState
from deepzoom_ingest.core.domain.pyramid import tile_id_for
from deepzoom_ingest.core.ports.blob_store import IBlobStore
from deepzoom_ingest.core.ports.metadata_store import IMetadataStore
from deepzoom_ingest.core.ports.retry_policy import IRetryPolicy
from deepzoom_ingest.core.ports.tile_source import ITileSource
from deepzoom_ingest.shared.observability import get_tracer
from deepzoom_ingest.shared.resilience import NoRetry

tracer = get_tracer(__name__)

DEFAULT_BATCH_SIZE = 10

class UploadTiles:
    """
    Use Case: Mirrors a set of tiles into the blob store and the CMS.

    Per tile: skip if already recorded -> download -> decrypt -> upload ->
    record. Tiles are processed in fixed-size batches; a batch runs
    concurrently and is fully joined before the next one starts. A failing
    tile is logged and counted, it never stops its batch or the job.

    Re-running over the same tile set is safe: recorded tiles are skipped and
    the blob store refuses to re-upload existing objects.
    """

    def __init__(
        self,
        source: ITileSource,
        blob_store: IBlobStore,
        metadata_store: IMetadataStore,
        decryptor: TileDecryptor,
        retry_policy: Optional[IRetryPolicy] = None,
        tile_extension: str = ".jpg",
        content_type: str = "image/jpeg",
        default_batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        self.source = source
        self.blob_store = blob_store
        self.metadata_store = metadata_store
        self.decryptor = decryptor
        self.retry_policy = retry_policy or NoRetry()
        self.tile_extension = tile_extension
        self.content_type = content_type
        self.default_batch_size = default_batch_size

    async def execute(
        self,
        tile_urls_by_key: Mapping[str, str],
        image_id: str,
        job_id: Optional[str] = None,
        batch_size: Optional[int] = None,
        context: Optional[JobContext] = None,
    ) -> JobSummary:
        """
        Args:
            tile_urls_by_key: signed download URL per tile key
                (`{token}/{x}/{y}/{level}`).
            image_id: prefix of every tile id.
            job_id: when set, progress is persisted after each batch.
            batch_size: tiles in flight at once.
            context: reuse an existing job context (e.g. to cancel from outside).

        Returns:
            JobSummary with processed/failed/skipped counts.
        """
        if batch_size is None:
            batch_size = self.default_batch_size
        if batch_size < 1:
            raise DomainError(f"Invalid batch size {batch_size}.")

        context = context or JobContext(image_id=image_id, job_id=job_id)
        log = context.logger
        entries: List[Tuple[str, str]] = list(tile_urls_by_key.items())
        context.progress.total_tiles = len(entries)
        total_batches = math.ceil(len(entries) / batch_size)
        stopped_early = False

        with tracer.start_as_current_span("use_case.upload_tiles") as span:
            span.set_attribute("app.image_id", image_id)
            span.set_attribute("app.total_tiles", len(entries))
            span.set_attribute("app.batch_size", batch_size)

            log.info("upload_started", total_tiles=len(entries), batch_size=batch_size, total_batches=total_batches)

            for batch_number, start in enumerate(range(0, len(entries), batch_size), start=1):
                # Cancellation only takes effect between batches
                if context.cancelled:
                    stopped_early = True
                    log.warning("upload_cancelled", next_batch=batch_number, total_batches=total_batches)
                    break

                batch = entries[start:start + batch_size]
                results = await asyncio.gather(
                    *(self._process_tile(key, url, context) for key, url in batch)
                )

                context.progress.record_batch(results)
                await self._persist_progress(context)

                log.info(
                    "batch_complete",
                    batch=batch_number,
                    total_batches=total_batches,
                    processed=context.progress.processed_tiles,
                    failed=context.progress.failed_tiles,
                    skipped=context.progress.skipped_tiles,
                )

            summary = context.summary(cancelled=stopped_early)
            span.set_attribute("app.processed", summary.processed)
            span.set_attribute("app.failed", summary.failed)
            log.info(
                "upload_completed",
                processed=summary.processed,
                failed=summary.failed,
                skipped=summary.skipped,
                cancelled=summary.cancelled,
            )
            return summary

    async def _process_tile(self, key: str, url: str, context: JobContext) -> TileResult:
        """Runs one tile through the state machine. Never raises."""
        tile_id = tile_id_for(context.image_id, key)
        log = context.logger.bind(key=key, tile_id=tile_id)
        stage = TileState.PENDING

        try:
            if await self.metadata_store.find_tile_by_id(tile_id) is not None:
                log.debug("tile_already_recorded")
                return TileResult(key=key, tile_id=tile_id, state=TileState.SKIPPED)

            stage = TileState.DOWNLOADING
            payload = await self.retry_policy.call(self.source.fetch_bytes, url)

            stage = TileState.DECRYPTING
            image = self.decryptor.decrypt(payload)

            stage = TileState.UPLOADING
            public_url = await self.retry_policy.call(
                self.blob_store.put, f"{tile_id}{self.tile_extension}", image, self.content_type
            )

            try:
                await self.metadata_store.create_tile_record(tile_id, public_url)
            except DuplicateError:
                # Another run recorded it first
                log.info("tile_record_exists", tile_url=public_url)
                return TileResult(key=key, tile_id=tile_id, state=TileState.SKIPPED, tile_url=public_url)

            log.info("tile_recorded", tile_url=public_url, size=len(image))
            return TileResult(key=key, tile_id=tile_id, state=TileState.RECORDED, tile_url=public_url)

        except Exception as e:
            log.error(
                "tile_failed",
                stage=stage.value,
                error_kind=type(e).__name__,
                error=str(e),
                exc_info=not isinstance(e, DomainError),
            )
            return TileResult(
                key=key,
                tile_id=tile_id,
                state=TileState.FAILED,
                failed_stage=stage,
                error_kind=type(e).__name__,
                error=str(e),
            )

    async def _persist_progress(self, context: JobContext) -> None:
        if not context.job_id:
            return
        try:
            await self.metadata_store.update_progress(context.job_id, context.progress.processed_tiles)
        except Exception as e:
            context.logger.warning("progress_update_failed", error_kind=type(e).__name__, error=str(e))
