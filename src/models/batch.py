"""Input models for a batch run: items, options and processor results."""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_MAX_CONCURRENCY = 3


class TaskStatus(StrEnum):
    """Final status of a single item in a batch run."""

    SUCCESS = "success"
    FAILURE = "failure"
    SKIPPED = "skipped"


class BatchItem(BaseModel):
    """Caller-owned descriptor of one unit of work. Payload is opaque."""

    model_config = ConfigDict(frozen=True)

    id: str
    is_active: bool = True
    payload: Any = None

    @field_validator("id")
    @classmethod
    def validate_id(cls, value: str) -> str:
        """Item ID must be non-empty."""
        if not value.strip():
            msg = "id must not be empty"
            raise ValueError(msg)
        return value


class BatchOptions(BaseModel):
    """Per-run options, validated at admission."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    force_refresh: bool = False
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    item_timeout_seconds: float | None = None

    @field_validator("max_concurrency")
    @classmethod
    def validate_max_concurrency(cls, value: int) -> int:
        """At least one permit is required to make progress."""
        if value < 1:
            msg = "max_concurrency must be at least 1"
            raise ValueError(msg)
        return value

    @field_validator("item_timeout_seconds")
    @classmethod
    def validate_item_timeout(cls, value: float | None) -> float | None:
        """Timeout must be positive when set."""
        if value is not None and value <= 0:
            msg = "item_timeout_seconds must be positive"
            raise ValueError(msg)
        return value


class ProcessorSuccess(BaseModel):
    """Processor call that completed and produced results."""

    model_config = ConfigDict(frozen=True)

    status: Literal["success"] = "success"
    produced_count: int = Field(default=0, ge=0)

    @property
    def success(self) -> bool:
        return True


class ProcessorFailure(BaseModel):
    """Processor call that completed but reported a failure."""

    model_config = ConfigDict(frozen=True)

    status: Literal["failure"] = "failure"
    error_message: str
    produced_count: int = Field(default=0, ge=0)

    @property
    def success(self) -> bool:
        return False

    @field_validator("error_message")
    @classmethod
    def validate_error_message(cls, value: str) -> str:
        if not value.strip():
            msg = "error_message must not be empty"
            raise ValueError(msg)
        return value


ProcessorResult = Annotated[
    ProcessorSuccess | ProcessorFailure,
    Field(discriminator="status"),
]


def processor_success(produced_count: int = 0) -> ProcessorSuccess:
    """Build a successful processor result."""
    return ProcessorSuccess(produced_count=produced_count)


def processor_failure(error_message: str) -> ProcessorFailure:
    """Build a failed processor result."""
    return ProcessorFailure(error_message=error_message)


def coerce_processor_result(raw: Any) -> ProcessorSuccess | ProcessorFailure:
    """Normalize a loosely-typed processor result into the tagged variant.

    Accepts the variants themselves, or mappings shaped like
    ``{"success": bool, "producedCount"/"produced_count": int,
    "errorMessage"/"error_message"/"error": str}``.

    Raises:
        TypeError: If the value cannot be interpreted as a processor result.
    """
    if isinstance(raw, ProcessorSuccess | ProcessorFailure):
        return raw
    if not isinstance(raw, dict):
        msg = f"expected ProcessorResult, got {type(raw).__name__}"
        raise TypeError(msg)

    if "status" in raw:
        status = raw["status"]
        success = status == "success"
    elif "success" in raw:
        success = bool(raw["success"])
    else:
        msg = "processor result has neither 'status' nor 'success'"
        raise TypeError(msg)

    count = raw.get("produced_count", raw.get("producedCount", 0)) or 0
    if success:
        return ProcessorSuccess(produced_count=int(count))

    message = (
        raw.get("error_message")
        or raw.get("errorMessage")
        or raw.get("error")
        or "Processor reported failure"
    )
    return ProcessorFailure(error_message=str(message), produced_count=int(count))
