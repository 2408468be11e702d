"""Unit tests for the pure core modules: skip policy, aggregation, chunking.

No I/O, no mocking required.
"""

from __future__ import annotations

import random

import pytest

from src.core.content_chunks import extract_knowledge_chunks, extract_page_title
from src.core.result_aggregation import (
    aggregate_outcomes,
    format_batch_summary,
)
from src.core.skip_policy import should_skip
from src.models.batch import BatchItem, BatchOptions, TaskStatus
from src.models.batch_result import BatchError, TaskOutcome
from src.models.errors import AggregationError

# ──────────────────────────────────────────────────────────────────────
# Module 1: core/skip_policy.py
# ──────────────────────────────────────────────────────────────────────


class TestShouldSkip:
    """Tests for should_skip."""

    @pytest.mark.parametrize(
        ("is_active", "force_refresh", "expected"),
        [
            (True, False, False),
            (True, True, False),
            (False, False, True),
            (False, True, False),
        ],
    )
    def test_truth_table(self, is_active: bool, force_refresh: bool, expected: bool) -> None:
        item = BatchItem(id="source-1", is_active=is_active)
        options = BatchOptions(force_refresh=force_refresh)
        assert should_skip(item, options) is expected

    def test_ignores_payload(self) -> None:
        item = BatchItem(id="source-1", is_active=False, payload={"url": None})
        assert should_skip(item, BatchOptions()) is True


# ──────────────────────────────────────────────────────────────────────
# Module 2: core/result_aggregation.py
# ──────────────────────────────────────────────────────────────────────


def _success(item_id: str, count: int = 1) -> TaskOutcome:
    return TaskOutcome(item_id=item_id, status=TaskStatus.SUCCESS, result_count=count)


def _failure(item_id: str, message: str = "boom") -> TaskOutcome:
    return TaskOutcome(item_id=item_id, status=TaskStatus.FAILURE, error_message=message)


def _skipped(item_id: str) -> TaskOutcome:
    return TaskOutcome(item_id=item_id, status=TaskStatus.SKIPPED)


class TestAggregateOutcomes:
    """Tests for aggregate_outcomes."""

    def test_empty(self) -> None:
        summary = aggregate_outcomes([], processing_time_ms=0.0)
        assert summary.total_items == 0
        assert summary.overall_success is True
        assert summary.errors == ()

    def test_mixed_outcomes(self) -> None:
        outcomes = [
            _success("a", 3),
            _failure("b", "HTTP 500"),
            _skipped("c"),
            _success("d", 4),
        ]
        summary = aggregate_outcomes(outcomes, processing_time_ms=321.456)

        assert summary.total_items == 4
        assert summary.successful_items == 2
        assert summary.failed_items == 1
        assert summary.skipped_items == 1
        assert summary.total_result_count == 7
        assert summary.errors == (BatchError(item_id="b", message="HTTP 500"),)
        assert summary.processing_time_ms == 321.46
        assert summary.overall_success is False

    def test_failure_result_count_not_added(self) -> None:
        outcome = TaskOutcome(
            item_id="a", status=TaskStatus.FAILURE, result_count=5, error_message="partial"
        )
        summary = aggregate_outcomes([outcome], processing_time_ms=1.0)
        assert summary.total_result_count == 0

    def test_processing_time_is_passed_through_not_summed(self) -> None:
        outcomes = [
            TaskOutcome(item_id="a", status=TaskStatus.SUCCESS, duration_ms=100.0),
            TaskOutcome(item_id="b", status=TaskStatus.SUCCESS, duration_ms=100.0),
        ]
        summary = aggregate_outcomes(outcomes, processing_time_ms=105.0)
        assert summary.processing_time_ms == 105.0

    def test_order_independent_counts(self) -> None:
        outcomes = [_success(f"s{i}", i) for i in range(5)]
        outcomes += [_failure(f"f{i}") for i in range(3)]
        outcomes += [_skipped(f"k{i}") for i in range(2)]
        expected = aggregate_outcomes(outcomes, processing_time_ms=10.0)

        shuffled = list(outcomes)
        random.Random(7).shuffle(shuffled)
        summary = aggregate_outcomes(shuffled, processing_time_ms=10.0)

        assert summary.successful_items == expected.successful_items
        assert summary.failed_items == expected.failed_items
        assert summary.skipped_items == expected.skipped_items
        assert summary.total_result_count == expected.total_result_count
        assert {e.item_id for e in summary.errors} == {e.item_id for e in expected.errors}

    def test_duplicate_item_is_a_defect(self) -> None:
        with pytest.raises(AggregationError, match="duplicate outcome"):
            aggregate_outcomes([_success("a"), _failure("a")], processing_time_ms=1.0)


class TestFormatBatchSummary:
    """Tests for format_batch_summary."""

    def test_success_summary(self) -> None:
        summary = aggregate_outcomes([_success("a", 3), _skipped("b")], processing_time_ms=1500.0)
        text = format_batch_summary(summary)
        assert text.startswith("[SUCCESS] Processed: 2")
        assert "Successful: 1" in text
        assert "Skipped: 1" in text
        assert "Results: 3" in text
        assert "Duration: 1.50s" in text
        assert "Errors" not in text

    def test_truncates_errors(self) -> None:
        outcomes = [_failure(f"source-{i}", f"HTTP {500 + i}") for i in range(12)]
        text = format_batch_summary(aggregate_outcomes(outcomes, processing_time_ms=1.0))
        assert text.startswith("[PARTIAL FAILURE]")
        assert "Errors (12):" in text
        assert "source-0: HTTP 500" in text
        assert "source-11" not in text
        assert "... and 2 more" in text


# ──────────────────────────────────────────────────────────────────────
# Module 3: core/content_chunks.py
# ──────────────────────────────────────────────────────────────────────


class TestExtractKnowledgeChunks:
    """Tests for extract_knowledge_chunks."""

    def test_sample_page(self, sample_page_html: str) -> None:
        chunks = extract_knowledge_chunks(sample_page_html)
        assert chunks == [
            "Welcome to the Acme Help Center",
            "Acme builds widgets for teams of every size and shape.",
            "Shipping and delivery policies",
            "Orders ship within two business days of payment.",
            "Returns are accepted for thirty days after delivery.",
            "Nested paragraph inside a list item is counted once.",
        ]

    def test_drops_navigation_footer_and_scripts(self, sample_page_html: str) -> None:
        joined = " ".join(extract_knowledge_chunks(sample_page_html))
        assert "navigation" not in joined
        assert "Copyright" not in joined
        assert "analytics" not in joined

    def test_min_length(self) -> None:
        html = "<p>tiny</p><p>just long enough</p>"
        assert extract_knowledge_chunks(html, min_length=5) == ["just long enough"]
        assert extract_knowledge_chunks(html, min_length=1) == ["tiny", "just long enough"]

    def test_normalizes_whitespace(self) -> None:
        html = "<p>Lots   of\n\n   whitespace in this paragraph</p>"
        assert extract_knowledge_chunks(html) == ["Lots of whitespace in this paragraph"]

    @pytest.mark.parametrize("html", ["", "   ", "<html></html>"])
    def test_empty_pages(self, html: str) -> None:
        assert extract_knowledge_chunks(html) == []


class TestExtractPageTitle:
    """Tests for extract_page_title."""

    def test_title_tag(self, sample_page_html: str) -> None:
        assert extract_page_title(sample_page_html) == "Acme Corp - Help Center"

    def test_falls_back_to_h1(self) -> None:
        assert extract_page_title("<body><h1>Docs Home</h1></body>") == "Docs Home"

    def test_none(self) -> None:
        assert extract_page_title("<p>no headings</p>") is None
