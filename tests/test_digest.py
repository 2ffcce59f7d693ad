"""Tests for ingestion dedup and digest building."""

from datetime import date
from unittest.mock import AsyncMock

import pytest

from wiki_autoupdate.core import (
    CollaboratorUnavailableError,
    DigestBuilder,
    FeedItem,
    ItemClassification,
    MalformedResponseError,
    deduplicate,
    normalize_title,
)


def make_item(title: str, categories: tuple = ()) -> FeedItem:
    return FeedItem(
        source_id="feed",
        source_name="Feed",
        title=title,
        url="https://example.com/item",
        published_at="2026-10-18T00:00:00+00:00",
        categories=categories,
    )


def test_normalize_title() -> None:
    """Test fingerprint ignores case and punctuation."""
    assert normalize_title("AI Safety!!") == normalize_title("ai safety")
    assert normalize_title("AI Safety!!") == "aisafety"
    assert len(normalize_title("x" * 100)) == 60


def test_deduplicate_keeps_order_and_drops_duplicates() -> None:
    items = [
        make_item("New Model Released"),
        make_item("Funding Round Closed"),
        make_item("new model released!"),
        make_item("Policy Update"),
    ]
    kept, skipped_as_seen = deduplicate(items)

    assert [i.title for i in kept] == ["New Model Released", "Funding Round Closed", "Policy Update"]
    assert skipped_as_seen == 0


def test_deduplicate_drops_short_fingerprints() -> None:
    kept, _ = deduplicate([make_item("AI!"), make_item("News"), make_item("Model News")])
    assert [i.title for i in kept] == ["Model News"]


def test_deduplicate_counts_previously_seen() -> None:
    """Test items seen in earlier runs are dropped and counted."""
    items = [make_item("Old Story Here"), make_item("Old story here"), make_item("Fresh Story")]
    kept, skipped_as_seen = deduplicate(items, previously_seen={"oldstoryhere"})

    assert [i.title for i in kept] == ["Fresh Story"]
    assert skipped_as_seen == 2


@pytest.mark.asyncio
async def test_build_filters_and_sorts() -> None:
    """Test digest keeps items above the floor, highest score first."""
    items = [make_item("First Story"), make_item("Second Story"), make_item("Third Story")]
    scorer = AsyncMock()
    scorer.classify_batch.return_value = [
        ItemClassification(index=1, relevance_score=40, entities=("openai",)),
        ItemClassification(index=2, relevance_score=10),
        ItemClassification(index=3, relevance_score=90, topics=("policy",)),
    ]

    builder = DigestBuilder(scorer, min_relevance=20)
    digest = await builder.build(items, ["feed"], [], entity_ids=["openai"], digest_date=date(2026, 10, 19))

    assert digest.date == "2026-10-19"
    assert [i.title for i in digest.items] == ["Third Story", "First Story"]
    assert digest.items[1].entities == ("openai",)
    assert digest.items_fetched == 3
    scorer.classify_batch.assert_awaited_once()


@pytest.mark.asyncio
async def test_build_skips_flagged_and_out_of_range() -> None:
    items = [make_item("First Story"), make_item("Second Story")]
    scorer = AsyncMock()
    scorer.classify_batch.return_value = [
        ItemClassification(index=1, relevance_score=80, skip=True),
        ItemClassification(index=2, relevance_score=70),
        ItemClassification(index=5, relevance_score=99),
    ]

    digest = await DigestBuilder(scorer).build(items, ["feed"], [])

    assert [i.title for i in digest.items] == ["Second Story"]


@pytest.mark.asyncio
async def test_malformed_batch_falls_back_to_defaults() -> None:
    """Test a malformed batch is kept with default scores."""
    items = [make_item("First Story", categories=("ai",)), make_item("Second Story")]
    scorer = AsyncMock()
    scorer.classify_batch.side_effect = MalformedResponseError("not json")

    digest = await DigestBuilder(scorer).build(items, ["feed"], [])

    assert digest.item_count == 2
    assert all(i.relevance_score == 50 for i in digest.items)
    assert digest.items[0].topics == ("ai",)
    assert digest.items[0].entities == ()


@pytest.mark.asyncio
async def test_batches_and_entity_sample_size() -> None:
    items = [make_item(f"Story number {i}") for i in range(5)]
    scorer = AsyncMock()
    scorer.classify_batch.return_value = []

    builder = DigestBuilder(scorer, batch_size=2, entity_sample_size=3)
    await builder.build(items, ["feed"], [], entity_ids=["a", "b", "c", "d"])

    assert scorer.classify_batch.await_count == 3
    batch, entity_sample = scorer.classify_batch.call_args_list[0].args
    assert len(batch) == 2
    assert entity_sample == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_unavailable_scorer_propagates() -> None:
    scorer = AsyncMock()
    scorer.classify_batch.side_effect = CollaboratorUnavailableError("no key")

    with pytest.raises(CollaboratorUnavailableError):
        await DigestBuilder(scorer).build([make_item("First Story")], ["feed"], [])


@pytest.mark.asyncio
async def test_empty_input_skips_scorer() -> None:
    scorer = AsyncMock()
    digest = await DigestBuilder(scorer).build([], [], ["broken-feed"])

    assert digest.item_count == 0
    assert digest.failed_sources == ["broken-feed"]
    scorer.classify_batch.assert_not_called()
