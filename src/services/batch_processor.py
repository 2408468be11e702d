"""Bounded-concurrency batch orchestrator with per-item failure isolation."""

from __future__ import annotations

import asyncio
import functools
import time
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from src.core.result_aggregation import aggregate_outcomes
from src.core.skip_policy import should_skip
from src.models.batch import BatchItem, BatchOptions, TaskStatus, coerce_processor_result
from src.models.batch_result import TaskOutcome
from src.models.errors import AdmissionError
from src.services.concurrency_limiter import ConcurrencyLimiter
from src.utils.logger import get_logger
from src.utils.progress import ProgressTracker

if TYPE_CHECKING:
    import threading
    from concurrent.futures import Future

    from src.core.skip_policy import SkipPolicy
    from src.models.batch_result import BatchSummary
    from src.services.protocols import ProcessorProtocol

logger = get_logger(__name__)

CANCELLED_MESSAGE = "Cancelled before processing started"


def _elapsed_ms(started: float) -> float:
    return (time.monotonic() - started) * 1000


def _error_message(exc: BaseException) -> str:
    message = getattr(exc, "message", None) or str(exc)
    return message or type(exc).__name__


def _admit_options(options: BatchOptions | Mapping[str, Any] | None) -> BatchOptions:
    """Validate run options before anything is scheduled."""
    if options is None:
        return BatchOptions()
    if isinstance(options, BatchOptions):
        # model_construct() bypasses validators
        if options.max_concurrency < 1:
            msg = "max_concurrency must be at least 1"
            raise AdmissionError(msg)
        return options
    if not isinstance(options, Mapping):
        msg = f"options must be BatchOptions or a mapping, got {type(options).__name__}"
        raise AdmissionError(msg)
    try:
        return BatchOptions.model_validate(dict(options))
    except ValidationError as exc:
        msg = f"invalid batch options: {exc.errors()[0]['msg']}"
        raise AdmissionError(msg) from exc


def _admit_items(items: Sequence[BatchItem | Mapping[str, Any]]) -> list[BatchItem]:
    """Validate the item list. Item IDs must be unique within a run."""
    if isinstance(items, str | bytes) or not isinstance(items, Sequence):
        msg = f"items must be a list, got {type(items).__name__}"
        raise AdmissionError(msg)

    admitted: list[BatchItem] = []
    seen: set[str] = set()
    for index, raw in enumerate(items):
        try:
            item = raw if isinstance(raw, BatchItem) else BatchItem.model_validate(raw)
        except ValidationError as exc:
            msg = f"invalid item at index {index}: {exc.errors()[0]['msg']}"
            raise AdmissionError(msg) from exc
        if item.id in seen:
            msg = f"duplicate item id {item.id!r}"
            raise AdmissionError(msg)
        seen.add(item.id)
        admitted.append(item)
    return admitted


class BatchOrchestrator:
    """Run a processor over a batch of items with bounded concurrency.

    Inactive items are skipped by policy, the rest go through a per-run
    ``ConcurrencyLimiter``. Every item ends with exactly one ``TaskOutcome``;
    processor errors are recorded, never raised. Only admission problems
    (bad options or items) raise, and they do so before any item is started.
    """

    def __init__(
        self,
        processor: ProcessorProtocol,
        skip_policy: SkipPolicy = should_skip,
        progress_every: int = 10,
    ) -> None:
        if progress_every < 1:
            msg = "progress_every must be at least 1"
            raise ValueError(msg)
        self.processor = processor
        self.skip_policy = skip_policy
        self.progress_every = progress_every

    def run(
        self,
        items: Sequence[BatchItem | Mapping[str, Any]],
        options: BatchOptions | Mapping[str, Any] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> BatchSummary:
        """Process all items and return the aggregated summary.

        Args:
            items: Items to process, as ``BatchItem`` or plain mappings.
            options: Run options; defaults apply when omitted.
            cancel_event: When set, items not yet handed to the processor
                fail with a cancellation message. Running calls continue.

        Raises:
            AdmissionError: If options or items are invalid.
        """
        run_options = _admit_options(options)
        batch_items = _admit_items(items)

        started = time.monotonic()
        if not batch_items:
            logger.info("batch_run_empty")
            return aggregate_outcomes([], processing_time_ms=0.0)

        tracker = ProgressTracker(total=len(batch_items))
        outcomes: list[TaskOutcome] = []
        pending: list[BatchItem] = []

        for item in batch_items:
            if self.skip_policy(item, run_options):
                logger.debug("batch_item_skipped", item_id=item.id)
                outcomes.append(TaskOutcome(item_id=item.id, status=TaskStatus.SKIPPED))
                tracker.record(TaskStatus.SKIPPED)
            else:
                pending.append(item)

        logger.info(
            "batch_run_started",
            total=len(batch_items),
            pending=len(pending),
            skipped=len(outcomes),
            max_concurrency=run_options.max_concurrency,
            force_refresh=run_options.force_refresh,
        )

        if pending:
            outcomes.extend(self._run_pending(pending, run_options, cancel_event, tracker))

        summary = aggregate_outcomes(outcomes, processing_time_ms=_elapsed_ms(started))
        logger.info(
            "batch_run_completed",
            total=summary.total_items,
            successful=summary.successful_items,
            failed=summary.failed_items,
            skipped=summary.skipped_items,
            results=summary.total_result_count,
            duration_ms=summary.processing_time_ms,
        )
        return summary

    def _run_pending(
        self,
        pending: list[BatchItem],
        options: BatchOptions,
        cancel_event: threading.Event | None,
        tracker: ProgressTracker,
    ) -> list[TaskOutcome]:
        """Submit every pending item at once, then collect as they settle."""
        outcomes: list[TaskOutcome] = []
        call_executor = None
        if options.item_timeout_seconds is not None:
            call_executor = ThreadPoolExecutor(
                max_workers=len(pending),
                thread_name_prefix="batch-call",
            )

        limiter = ConcurrencyLimiter(options.max_concurrency)
        try:
            futures: dict[Future[TaskOutcome], BatchItem] = {
                limiter.acquire(
                    functools.partial(
                        self._process_item, item, options, cancel_event, call_executor
                    )
                ): item
                for item in pending
            }

            for future in as_completed(futures):
                item = futures[future]
                try:
                    outcome = future.result()
                except (Exception, asyncio.CancelledError) as exc:
                    logger.error("batch_item_rejected", item_id=item.id, error=str(exc))
                    outcome = TaskOutcome(
                        item_id=item.id,
                        status=TaskStatus.FAILURE,
                        error_message=_error_message(exc),
                    )
                outcomes.append(outcome)
                tracker.record(outcome.status)
                tracker.log_progress(every_n=self.progress_every)
        finally:
            limiter.shutdown(wait=True)
            if call_executor is not None:
                # Timed-out calls are abandoned, not awaited
                call_executor.shutdown(wait=False, cancel_futures=True)

        return outcomes

    def _process_item(
        self,
        item: BatchItem,
        options: BatchOptions,
        cancel_event: threading.Event | None,
        call_executor: ThreadPoolExecutor | None,
    ) -> TaskOutcome:
        """Call the processor for one item while holding a permit."""
        started = time.monotonic()

        if cancel_event is not None and cancel_event.is_set():
            return self._failure(item, CANCELLED_MESSAGE, started)

        try:
            if call_executor is None:
                raw = self.processor.process(item)
            else:
                call = call_executor.submit(self.processor.process, item)
                try:
                    raw = call.result(timeout=options.item_timeout_seconds)
                except TimeoutError:
                    if not call.done():
                        call.cancel()
                        message = f"Timed out after {options.item_timeout_seconds:g}s"
                        return self._failure(item, message, started)
                    # Finished just after the wait expired
                    raw = call.result()
            result = coerce_processor_result(raw)
        except (Exception, asyncio.CancelledError) as exc:
            return self._failure(item, _error_message(exc), started)

        if not result.success:
            return self._failure(item, result.error_message, started)

        logger.debug("batch_item_succeeded", item_id=item.id, produced=result.produced_count)
        return TaskOutcome(
            item_id=item.id,
            status=TaskStatus.SUCCESS,
            result_count=result.produced_count,
            duration_ms=_elapsed_ms(started),
        )

    def _failure(self, item: BatchItem, message: str, started: float) -> TaskOutcome:
        logger.error("batch_item_failed", item_id=item.id, error=message[:200])
        return TaskOutcome(
            item_id=item.id,
            status=TaskStatus.FAILURE,
            error_message=message,
            duration_ms=_elapsed_ms(started),
        )


def run_batch(
    items: Sequence[BatchItem | Mapping[str, Any]],
    options: BatchOptions | Mapping[str, Any] | None,
    processor: ProcessorProtocol,
    skip_policy: SkipPolicy = should_skip,
    cancel_event: threading.Event | None = None,
) -> BatchSummary:
    """Run one batch and return its summary.

    Library entry point for HTTP handlers and CLI commands. A new limiter is
    created per call, so unrelated batches never share permits.
    """
    orchestrator = BatchOrchestrator(processor, skip_policy=skip_policy)
    return orchestrator.run(items, options, cancel_event=cancel_event)
