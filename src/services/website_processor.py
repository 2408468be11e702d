"""HTTP processor that crawls one website source per batch item."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

import requests

from src.core.content_chunks import extract_knowledge_chunks, extract_page_title
from src.models.batch import ProcessorFailure, ProcessorSuccess, processor_failure
from src.utils.logger import get_logger
from src.utils.validators import extract_domain, is_valid_url

if TYPE_CHECKING:
    from src.models.batch import BatchItem
    from src.services.protocols import HttpSessionProtocol

logger = get_logger(__name__)

DEFAULT_USER_AGENT = "batch-runner/0.1 (+website-source-crawler)"


class WebsiteSourceProcessor:
    """Fetch a website source and count the knowledge chunks on the page.

    Items carry a mapping payload with a ``url`` key. HTTP and network
    errors come back as ``ProcessorFailure``; anything unexpected raises and
    is recorded by the orchestrator.
    """

    def __init__(
        self,
        session: HttpSessionProtocol | None = None,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        min_chunk_length: int = 20,
    ) -> None:
        if session is None:
            session = requests.Session()
            session.headers.update({"User-Agent": user_agent})
        self.session = session
        self.timeout = timeout
        self.min_chunk_length = min_chunk_length

    def process(self, item: BatchItem) -> ProcessorSuccess | ProcessorFailure:
        """Crawl the item's URL.

        Returns:
            ``ProcessorSuccess`` with the number of chunks found, or
            ``ProcessorFailure`` for a missing URL, network error or
            non-2xx response.
        """
        url = item.payload.get("url") if isinstance(item.payload, Mapping) else None
        if not url or not is_valid_url(url):
            return processor_failure(f"Invalid or missing url: {url!r}")

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("source_fetch_failed", item_id=item.id, url=url, error=str(exc))
            return processor_failure(f"Request failed: {exc}")

        if not 200 <= response.status_code < 300:
            logger.warning(
                "source_fetch_bad_status",
                item_id=item.id,
                url=url,
                status_code=response.status_code,
            )
            return processor_failure(f"HTTP {response.status_code} from {url}")

        html = response.text or ""
        chunks = extract_knowledge_chunks(html, min_length=self.min_chunk_length)
        logger.info(
            "source_crawled",
            item_id=item.id,
            domain=extract_domain(url),
            title=extract_page_title(html) if html else None,
            chunks=len(chunks),
        )
        return ProcessorSuccess(produced_count=len(chunks))
