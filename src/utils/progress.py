"""Progress tracking utilities for batch runs."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from src.models.batch import TaskStatus
from src.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ProgressTracker:
    """Track how many items of a batch run have settled.

    Not thread-safe; the orchestrator records outcomes on the calling thread.
    """

    total: int
    processed: int = 0
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    start_time: float = field(default_factory=time.monotonic)

    def record(self, status: TaskStatus) -> None:
        """Record one settled item."""
        self.processed += 1
        if status == TaskStatus.SUCCESS:
            self.successful += 1
        elif status == TaskStatus.FAILURE:
            self.failed += 1
        else:
            self.skipped += 1

    @property
    def elapsed_seconds(self) -> float:
        """Time elapsed since start."""
        return time.monotonic() - self.start_time

    @property
    def progress_percentage(self) -> float:
        """Percentage of total items processed."""
        if self.total == 0:
            return 100.0
        return (self.processed / self.total) * 100.0

    def log_progress(self, every_n: int = 10) -> None:
        """Log progress every N items and on the last one."""
        if self.processed % every_n == 0 or self.processed == self.total:
            logger.info(
                "batch_progress",
                processed=self.processed,
                total=self.total,
                successful=self.successful,
                failed=self.failed,
                skipped=self.skipped,
                percentage=f"{self.progress_percentage:.1f}%",
                elapsed=f"{self.elapsed_seconds:.1f}s",
            )
