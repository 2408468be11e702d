"""Skip policy for batch items. Pure functions, no I/O."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from src.models.batch import BatchItem, BatchOptions

    SkipPolicy = Callable[[BatchItem, BatchOptions], bool]


def should_skip(item: BatchItem, options: BatchOptions) -> bool:
    """Inactive items are skipped unless the run forces a refresh."""
    return not item.is_active and not options.force_refresh
