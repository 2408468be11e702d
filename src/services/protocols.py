"""Service protocols defining interfaces for dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from src.models.batch import BatchItem


class ProcessorProtocol(Protocol):
    """Protocol for the remote operation run once per batch item.

    Implementations may block, raise, or return a ``ProcessorFailure``; the
    orchestrator turns all three into a per-item outcome. Returning a plain
    ``{"success": ..., "producedCount": ...}`` dict is also accepted.
    """

    def process(self, item: BatchItem) -> Any: ...


class HttpSessionProtocol(Protocol):
    """Subset of ``requests.Session`` used by HTTP processors."""

    def get(self, url: str, **kwargs: Any) -> Any: ...
