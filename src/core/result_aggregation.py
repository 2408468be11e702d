"""Batch result aggregation functions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from src.models.batch import TaskStatus
from src.models.batch_result import BatchError, BatchSummary
from src.models.errors import AggregationError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from src.models.batch_result import TaskOutcome


def aggregate_outcomes(
    outcomes: Iterable[TaskOutcome],
    processing_time_ms: float,
) -> BatchSummary:
    """Fold per-item outcomes into a single summary in one pass.

    Counts do not depend on outcome order. ``processing_time_ms`` is the
    run's wall-clock time, not a sum of item durations.

    Raises:
        AggregationError: If an outcome has an unknown status or an item
            appears more than once.
    """
    seen: set[str] = set()
    successful = 0
    failed = 0
    skipped = 0
    total_result_count = 0
    errors: list[BatchError] = []

    for outcome in outcomes:
        if outcome.item_id in seen:
            msg = f"duplicate outcome for item {outcome.item_id!r}"
            raise AggregationError(msg)
        seen.add(outcome.item_id)

        if outcome.status == TaskStatus.SUCCESS:
            successful += 1
            total_result_count += outcome.result_count
        elif outcome.status == TaskStatus.FAILURE:
            failed += 1
            errors.append(
                BatchError(
                    item_id=outcome.item_id,
                    message=outcome.error_message or "Unknown error",
                )
            )
        elif outcome.status == TaskStatus.SKIPPED:
            skipped += 1
        else:
            msg = f"unknown outcome status {outcome.status!r}"
            raise AggregationError(msg)

    return BatchSummary(
        total_items=len(seen),
        successful_items=successful,
        failed_items=failed,
        skipped_items=skipped,
        total_result_count=total_result_count,
        errors=tuple(errors),
        processing_time_ms=round(processing_time_ms, 2),
        overall_success=failed == 0,
    )


def format_batch_summary(summary: BatchSummary) -> str:
    """Format a batch summary as a human-readable string."""
    status = "SUCCESS" if summary.overall_success else "PARTIAL FAILURE"
    lines = [
        f"[{status}] Processed: {summary.total_items}",
        f"  Successful: {summary.successful_items}",
        f"  Failed: {summary.failed_items}",
        f"  Skipped: {summary.skipped_items}",
        f"  Results: {summary.total_result_count}",
        f"  Duration: {summary.processing_time_ms / 1000:.2f}s",
    ]

    errors = summary.errors
    if errors:
        lines.append(f"  Errors ({len(errors)}):")
        for error in errors[:10]:
            lines.append(f"    - {error.item_id}: {error.message}")
        if len(errors) > 10:
            lines.append(f"    ... and {len(errors) - 10} more")

    return "\n".join(lines)
