"""Result models for batch runs: per-item outcomes and the run summary."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.models.batch import TaskStatus


class TaskOutcome(BaseModel):
    """Final record for one item. Created exactly once per item."""

    model_config = ConfigDict(frozen=True)

    item_id: str
    status: TaskStatus
    result_count: int = Field(default=0, ge=0)
    error_message: str | None = None
    duration_ms: float = Field(default=0.0, ge=0)

    @model_validator(mode="after")
    def validate_status_fields(self) -> TaskOutcome:
        """Failures carry a message; skips carry no results."""
        if self.status == TaskStatus.FAILURE and not self.error_message:
            msg = "failure outcomes require an error_message"
            raise ValueError(msg)
        if self.status == TaskStatus.SKIPPED and self.result_count != 0:
            msg = "skipped outcomes must have result_count 0"
            raise ValueError(msg)
        return self


class BatchError(BaseModel):
    """One failed item in a batch summary."""

    model_config = ConfigDict(frozen=True)

    item_id: str
    message: str


class BatchSummary(BaseModel):
    """Statistics from a batch run."""

    model_config = ConfigDict(frozen=True)

    total_items: int = 0
    successful_items: int = 0
    failed_items: int = 0
    skipped_items: int = 0
    total_result_count: int = 0
    errors: tuple[BatchError, ...] = ()
    processing_time_ms: float = 0.0
    overall_success: bool = True

    @model_validator(mode="after")
    def validate_counts(self) -> BatchSummary:
        """Status counts must add up and overall_success must follow failures."""
        counted = self.successful_items + self.failed_items + self.skipped_items
        if counted != self.total_items:
            msg = (
                f"status counts ({counted}) do not add up to total_items "
                f"({self.total_items})"
            )
            raise ValueError(msg)
        if self.overall_success != (self.failed_items == 0):
            msg = "overall_success must be True exactly when failed_items is 0"
            raise ValueError(msg)
        return self
