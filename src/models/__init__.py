"""Pydantic data models for the batch runner."""

from src.models.batch import (
    BatchItem,
    BatchOptions,
    ProcessorFailure,
    ProcessorResult,
    ProcessorSuccess,
    TaskStatus,
)
from src.models.batch_result import BatchError, BatchSummary, TaskOutcome
from src.models.config import Config
from src.models.errors import (
    AdmissionError,
    AggregationError,
    BatchRunError,
    ItemProcessingError,
)

__all__ = [
    "AdmissionError",
    "AggregationError",
    "BatchError",
    "BatchItem",
    "BatchOptions",
    "BatchRunError",
    "BatchSummary",
    "Config",
    "ItemProcessingError",
    "ProcessorFailure",
    "ProcessorResult",
    "ProcessorSuccess",
    "TaskOutcome",
    "TaskStatus",
]
