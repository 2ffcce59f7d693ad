"""Routing of digest items onto wiki pages and plan assembly."""

from datetime import date
from typing import Optional

from wiki_autoupdate.core.budget import apply_budget_and_page_limits, estimate_cost, outranks
from wiki_autoupdate.core.entities import (
    DigestItem,
    NewPageSuggestion,
    NewsDigest,
    NewsReference,
    PageIndexEntry,
    PageTier,
    PageUpdate,
    RoutingResult,
    SkippedReason,
    UpdatePlan,
)
from wiki_autoupdate.core.interfaces import MalformedResponseError, RoutingOracle

HIGH_RELEVANCE_SCORE = 70


def entity_match(
    items: list[DigestItem], pages: list[PageIndexEntry]
) -> tuple[dict[str, list[DigestItem]], list[DigestItem]]:
    """Route items that name a known page id straight to that page.

    One item may land in several page buckets.

    Returns:
        Tuple of (matched page_id -> items, unmatched_items)
    """
    known_ids = {page.id for page in pages}
    matched: dict[str, list[DigestItem]] = {}
    unmatched: list[DigestItem] = []

    for item in items:
        was_matched = False
        for entity_id in item.entities:
            if entity_id in known_ids:
                matched.setdefault(entity_id, []).append(item)
                was_matched = True
        if not was_matched:
            unmatched.append(item)

    return matched, unmatched


def _resolve(indices: tuple[int, ...], candidates: list[DigestItem]) -> list[DigestItem]:
    """Map 1-based router indices onto candidates, ignoring out-of-range ones."""
    return [candidates[i - 1] for i in indices if 1 <= i <= len(candidates)]


def merge_routed_updates(
    matched: dict[str, list[DigestItem]],
    routing: RoutingResult,
    candidates: list[DigestItem],
    pages: list[PageIndexEntry],
) -> dict[str, PageUpdate]:
    """Combine entity-matched buckets with router decisions, one entry per page."""
    page_by_id = {page.id: page for page in pages}
    update_map: dict[str, PageUpdate] = {}

    for page_id, items in matched.items():
        page = page_by_id.get(page_id)
        if page is None:
            continue
        has_high_relevance = any(i.relevance_score >= HIGH_RELEVANCE_SCORE for i in items)
        update_map[page_id] = PageUpdate(
            page_id=page_id,
            page_title=page.title,
            reason=f"{len(items)} news item(s) mention this entity directly",
            suggested_tier=PageTier.STANDARD if has_high_relevance else PageTier.POLISH,
            relevant_news=[NewsReference.from_digest_item(i) for i in items],
            directions="Review and incorporate recent developments: " + "; ".join(i.title for i in items),
        )

    for routed in routing.page_updates:
        news = [NewsReference.from_digest_item(i) for i in _resolve(routed.relevant_items, candidates)]
        existing = update_map.get(routed.page_id)

        if existing is not None:
            # Entries in update_map are owned by this function
            existing.relevant_news.extend(news)
            if outranks(routed.suggested_tier, existing.suggested_tier):
                existing.suggested_tier = routed.suggested_tier
            existing.directions += "\n" + routed.directions
        else:
            page = page_by_id.get(routed.page_id)
            update_map[routed.page_id] = PageUpdate(
                page_id=routed.page_id,
                page_title=page.title if page else routed.page_id,
                reason=routed.reason,
                suggested_tier=routed.suggested_tier,
                relevant_news=news,
                directions=routed.directions,
            )

    return update_map


def build_new_page_suggestions(
    routing: RoutingResult, candidates: list[DigestItem]
) -> list[NewPageSuggestion]:
    return [
        NewPageSuggestion(
            suggested_title=new_page.suggested_title,
            suggested_id=new_page.suggested_id,
            reason=new_page.reason,
            suggested_tier=new_page.suggested_tier,
            relevant_news=[
                NewsReference(title=i.title, url=i.url)
                for i in _resolve(new_page.relevant_items, candidates)
            ],
        )
        for new_page in routing.new_pages
    ]


def sort_by_importance(updates: list[PageUpdate], pages: list[PageIndexEntry]) -> list[PageUpdate]:
    importance = {page.id: page.reader_importance for page in pages}
    return sorted(updates, key=lambda u: importance.get(u.page_id, 0), reverse=True)


def deduplicate_page_updates(updates: list[PageUpdate]) -> list[PageUpdate]:
    """Collapse updates that target the same page.

    The first occurrence of each page id is copied (with its own news list)
    and later duplicates are folded into the copy: news appended, tier raised
    only when strictly higher, directions appended unless already present.
    First-occurrence order is preserved and inputs are never modified.
    """
    merged: dict[str, PageUpdate] = {}

    for update in updates:
        existing = merged.get(update.page_id)
        if existing is None:
            merged[update.page_id] = update.copy()
            continue

        existing.relevant_news.extend(update.relevant_news)
        if outranks(update.suggested_tier, existing.suggested_tier):
            existing.suggested_tier = update.suggested_tier
        if update.directions and update.directions not in existing.directions:
            existing.directions += "\n" + update.directions

    return list(merged.values())


def inject_watchlist_updates(
    updates: list[PageUpdate], watchlist_updates: list[PageUpdate]
) -> list[PageUpdate]:
    """Fold scheduled watchlist updates into the news-driven list.

    A page already planned from news gets the watchlist directions in front
    of its own and the deeper of the two tiers. Other watchlist pages go to
    the front of the list so the budget pass admits them first.
    """
    result = list(updates)
    position = {update.page_id: i for i, update in enumerate(result)}
    front: list[PageUpdate] = []

    for scheduled in watchlist_updates:
        index = position.get(scheduled.page_id)
        if index is None:
            front.append(scheduled)
            continue

        existing = result[index]
        tier = existing.suggested_tier
        if outranks(scheduled.suggested_tier, tier):
            tier = scheduled.suggested_tier
        result[index] = existing.copy(
            directions=f"{scheduled.directions}\n\nAlso from news routing: {existing.directions}",
            suggested_tier=tier,
        )

    return front + result


class PageRouter:
    """Turns a news digest into a budget-constrained update plan."""

    def __init__(
        self,
        oracle: RoutingOracle,
        max_pages: int = 10,
        max_budget: float = 50.0,
        router_min_relevance: int = 40,
        router_page_limit: int = 200,
        verbose: bool = False,
    ) -> None:
        self.oracle = oracle
        self.max_pages = max_pages
        self.max_budget = max_budget
        self.router_min_relevance = router_min_relevance
        self.router_page_limit = router_page_limit
        self.verbose = verbose

    async def route(
        self,
        digest: NewsDigest,
        pages: list[PageIndexEntry],
        watchlist_updates: Optional[list[PageUpdate]] = None,
        plan_date: Optional[date] = None,
        max_pages: Optional[int] = None,
        max_budget: Optional[float] = None,
    ) -> UpdatePlan:
        """Build the update plan for a digest.

        Stages: entity match, oracle routing of the remaining high-relevance
        items, merge, importance sort, plan dedup, watchlist injection and
        finally the budget/page limits. ``max_pages`` and ``max_budget``
        override the router defaults for this call.
        """
        plan_date = plan_date or date.today()

        matched, unmatched = entity_match(digest.items, pages)
        if self.verbose:
            print(f"  └─ Entity match: {len(matched)} pages matched, {len(unmatched)} items unmatched")

        candidates = [item for item in unmatched if item.relevance_score >= self.router_min_relevance]
        routing = await self._route_candidates(candidates, pages)

        update_map = merge_routed_updates(matched, routing, candidates, pages)
        ordered = sort_by_importance(list(update_map.values()), pages)
        deduplicated = deduplicate_page_updates(ordered)

        if watchlist_updates:
            deduplicated = inject_watchlist_updates(deduplicated, watchlist_updates)

        final_updates, skipped_reasons = apply_budget_and_page_limits(
            deduplicated,
            self.max_pages if max_pages is None else max_pages,
            self.max_budget if max_budget is None else max_budget,
        )

        for skip in routing.skipped:
            if 1 <= skip.index <= len(candidates):
                skipped_reasons.append(SkippedReason(item=candidates[skip.index - 1].title, reason=skip.reason))

        plan = UpdatePlan(
            date=plan_date.isoformat(),
            page_updates=final_updates,
            new_page_suggestions=build_new_page_suggestions(routing, candidates),
            skipped_reasons=skipped_reasons,
            estimated_cost=estimate_cost(final_updates),
        )

        if self.verbose:
            print(
                f"  └─ Plan: {len(plan.page_updates)} page updates, "
                f"{len(plan.new_page_suggestions)} new page suggestions"
            )
        return plan

    async def _route_candidates(
        self, candidates: list[DigestItem], pages: list[PageIndexEntry]
    ) -> RoutingResult:
        """Ask the oracle; an unusable answer means no routed updates."""
        if not candidates:
            return RoutingResult.empty()

        top_pages = sorted(pages, key=lambda p: p.reader_importance, reverse=True)[: self.router_page_limit]
        if self.verbose:
            print(f"  └─ Routing {len(candidates)} items against {len(top_pages)} pages...")

        try:
            return await self.oracle.route_items(candidates, top_pages)
        except MalformedResponseError as e:
            print(f"  ⚠️  Routing response could not be parsed ({e}), ignoring it")
        except Exception as e:
            print(f"  ⚠️  Routing failed: {e}")
        return RoutingResult.empty()
