"""Exception hierarchy for batch runs."""

from __future__ import annotations


class BatchRunError(Exception):
    """Base class for batch run errors."""


class AdmissionError(BatchRunError):
    """Raised when options or the item list are rejected before scheduling.

    This is the only error that crosses the run boundary.
    """


class ItemProcessingError(BatchRunError):
    """Raised by processors for a typed per-item failure.

    The orchestrator always captures it into the run summary.
    """

    def __init__(self, item_id: str, message: str) -> None:
        super().__init__(message)
        self.item_id = item_id
        self.message = message


class AggregationError(BatchRunError):
    """Raised when outcome counting breaks its invariants. Indicates a bug."""
