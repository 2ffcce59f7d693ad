"""News digest building: dedup, relevance scoring, filtering."""

from datetime import date
from typing import Optional

from wiki_autoupdate.core.entities import DigestItem, FeedItem, NewsDigest
from wiki_autoupdate.core.interfaces import MalformedResponseError, RelevanceScorer
from wiki_autoupdate.core.state_store import normalize_title

MIN_FINGERPRINT_LENGTH = 5
FALLBACK_RELEVANCE_SCORE = 50


def deduplicate(
    items: list[FeedItem], previously_seen: Optional[set[str]] = None
) -> tuple[list[FeedItem], int]:
    """Drop near-duplicate items within the batch and against prior runs.

    Returns:
        Tuple of (kept_items, skipped_as_seen) where skipped_as_seen counts
        items dropped because a prior run already saw them.
    """
    previously_seen = previously_seen or set()
    seen = set(previously_seen)
    kept: list[FeedItem] = []
    skipped_as_seen = 0

    for item in items:
        key = normalize_title(item.title)
        if len(key) < MIN_FINGERPRINT_LENGTH:
            continue
        if key in seen:
            if key in previously_seen:
                skipped_as_seen += 1
            continue
        seen.add(key)
        kept.append(item)

    return kept, skipped_as_seen


def fallback_classification(item: FeedItem) -> DigestItem:
    """Default verdict used when a scorer batch could not be parsed."""
    return DigestItem(
        item=item,
        relevance_score=FALLBACK_RELEVANCE_SCORE,
        topics=item.categories,
        entities=(),
    )


class DigestBuilder:
    """Builds the news digest for one run."""

    def __init__(
        self,
        scorer: RelevanceScorer,
        min_relevance: int = 20,
        batch_size: int = 30,
        entity_sample_size: int = 150,
        verbose: bool = False,
    ) -> None:
        self.scorer = scorer
        self.min_relevance = min_relevance
        self.batch_size = batch_size
        self.entity_sample_size = entity_sample_size
        self.verbose = verbose

    async def build(
        self,
        feed_items: list[FeedItem],
        fetched_sources: list[str],
        failed_sources: list[str],
        entity_ids: Optional[list[str]] = None,
        previously_seen: Optional[set[str]] = None,
        digest_date: Optional[date] = None,
    ) -> NewsDigest:
        """Deduplicate, classify, filter by relevance and sort descending."""
        digest_date = digest_date or date.today()
        unique, skipped_as_seen = deduplicate(feed_items, previously_seen)

        if self.verbose:
            seen_note = f" ({skipped_as_seen} seen in prior runs)" if skipped_as_seen else ""
            print(f"  └─ {len(feed_items)} → {len(unique)} after dedup{seen_note}")

        digest = NewsDigest(
            date=digest_date.isoformat(),
            fetched_sources=list(fetched_sources),
            failed_sources=list(failed_sources),
            items_fetched=len(feed_items),
            skipped_as_seen=skipped_as_seen,
        )
        if not unique:
            return digest

        classified = await self.classify_items(unique, entity_ids or [])
        relevant = [item for item in classified if item.relevance_score >= self.min_relevance]
        relevant.sort(key=lambda item: item.relevance_score, reverse=True)

        if self.verbose:
            print(
                f"  └─ {len(classified)} classified → {len(relevant)} above relevance "
                f"threshold ({self.min_relevance})"
            )

        digest.items = relevant
        return digest

    async def classify_items(self, items: list[FeedItem], entity_ids: list[str]) -> list[DigestItem]:
        """Score items batch by batch.

        A batch whose response cannot be parsed is kept whole with default
        scores; any other scorer error propagates.
        """
        entity_sample = entity_ids[: self.entity_sample_size]
        total_batches = (len(items) + self.batch_size - 1) // self.batch_size
        results: list[DigestItem] = []

        for start in range(0, len(items), self.batch_size):
            batch = items[start : start + self.batch_size]
            if self.verbose:
                batch_number = start // self.batch_size + 1
                print(f"  [{batch_number}/{total_batches}] Classifying {len(batch)} items...")

            try:
                classifications = await self.scorer.classify_batch(batch, entity_sample)
            except MalformedResponseError as e:
                print(f"  ⚠️  Classification parsing failed ({e}), keeping batch with default scores")
                results.extend(fallback_classification(item) for item in batch)
                continue

            for classification in classifications:
                if classification.skip:
                    continue
                position = classification.index - 1
                if position < 0 or position >= len(batch):
                    continue
                results.append(
                    DigestItem(
                        item=batch[position],
                        relevance_score=classification.relevance_score,
                        topics=classification.topics,
                        entities=classification.entities,
                    )
                )

        return results
