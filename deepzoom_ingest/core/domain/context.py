# deepzoom_ingest/core/domain/context.py
import asyncio
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

import structlog
from pydantic import BaseModel

from deepzoom_ingest.core.domain.models import JobSummary, TileResult, TileState

class JobProgress(BaseModel):
    """
    Counters for one upload job.

    Only the orchestrator mutates these, after each batch has been joined,
    so in-flight tile tasks never race on them.
    """
    processed_tiles: int = 0
    failed_tiles: int = 0
    skipped_tiles: int = 0
    total_tiles: int = 0

    def record_batch(self, results: Iterable[TileResult]) -> None:
        for result in results:
            if result.state == TileState.RECORDED:
                self.processed_tiles += 1
            elif result.state == TileState.SKIPPED:
                self.skipped_tiles += 1
            else:
                self.failed_tiles += 1

    @property
    def settled_tiles(self) -> int:
        return self.processed_tiles + self.failed_tiles + self.skipped_tiles

@dataclass
class JobContext:
    """
    Per-job state handed through every pipeline stage: identity, counters,
    a bound logger, and the cancellation signal checked between batches.
    """
    image_id: str
    job_id: Optional[str] = None
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    progress: JobProgress = field(default_factory=JobProgress)
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)
    logger: Any = None

    def __post_init__(self) -> None:
        if self.logger is None:
            self.logger = structlog.get_logger().bind(
                image_id=self.image_id, job_id=self.job_id, run_id=self.run_id
            )

    def cancel(self) -> None:
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def summary(self, cancelled: bool = False) -> JobSummary:
        return JobSummary(
            job_id=self.job_id,
            processed=self.progress.processed_tiles,
            failed=self.progress.failed_tiles,
            skipped=self.progress.skipped_tiles,
            total=self.progress.total_tiles,
            cancelled=cancelled,
        )
