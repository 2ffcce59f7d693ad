"""Tier costs and budget-constrained admission of page updates."""

from typing import Union

from wiki_autoupdate.core.entities import NewPageTier, PageTier, PageUpdate, SkippedReason

EXCEEDED_PAGE_LIMIT = "Exceeded page limit"
EXCEEDED_BUDGET = "Exceeded budget"

DEFAULT_TIER_COST = 6.5

PAGE_TIER_COSTS: dict[str, float] = {
    PageTier.POLISH.value: 2.5,
    PageTier.STANDARD.value: 6.5,
    PageTier.DEEP.value: 12.5,
}

# Reported with new page suggestions; never budget-gated.
NEW_PAGE_TIER_COSTS: dict[str, float] = {
    NewPageTier.BUDGET.value: 3.0,
    NewPageTier.STANDARD.value: 6.5,
    NewPageTier.PREMIUM.value: 10.0,
}

TIER_RANK: dict[str, int] = {
    PageTier.POLISH.value: 1,
    PageTier.STANDARD.value: 2,
    PageTier.DEEP.value: 3,
}


def _tier_key(tier: Union[PageTier, NewPageTier, str]) -> str:
    return tier.value if isinstance(tier, (PageTier, NewPageTier)) else str(tier)


def tier_cost(tier: Union[PageTier, str]) -> float:
    """Dollar cost of a page update tier (unknown tiers cost a standard update)."""
    return PAGE_TIER_COSTS.get(_tier_key(tier), DEFAULT_TIER_COST)


def new_page_cost(tier: Union[NewPageTier, str]) -> float:
    return NEW_PAGE_TIER_COSTS.get(_tier_key(tier), DEFAULT_TIER_COST)


def outranks(candidate: Union[PageTier, str], current: Union[PageTier, str]) -> bool:
    """True if ``candidate`` is a strictly deeper tier than ``current``."""
    return TIER_RANK.get(_tier_key(candidate), 0) > TIER_RANK.get(_tier_key(current), 0)


def estimate_cost(updates: list[PageUpdate]) -> float:
    return sum(tier_cost(update.suggested_tier) for update in updates)


def apply_budget_and_page_limits(
    updates: list[PageUpdate],
    max_pages: int,
    max_budget: float,
) -> tuple[list[PageUpdate], list[SkippedReason]]:
    """Admit updates in order under a page cap and a dollar budget.

    ``updates`` must already be deduplicated and in priority order. An update
    that does not fit the remaining budget is downgraded once to polish when
    polish still fits; otherwise it is skipped. Input objects are never
    modified: a downgraded update is a copy.

    Returns:
        Tuple of (final_updates, skipped_reasons)
    """
    final_updates: list[PageUpdate] = []
    skipped_reasons: list[SkippedReason] = []
    budget_remaining = max_budget
    polish_cost = PAGE_TIER_COSTS[PageTier.POLISH.value]

    for update in updates:
        if len(final_updates) >= max_pages:
            skipped_reasons.append(SkippedReason(item=update.page_title, reason=EXCEEDED_PAGE_LIMIT))
            continue

        cost = tier_cost(update.suggested_tier)
        if cost <= budget_remaining:
            budget_remaining -= cost
            final_updates.append(update)
            continue

        if update.suggested_tier != PageTier.POLISH and polish_cost <= budget_remaining:
            budget_remaining -= polish_cost
            final_updates.append(update.copy(suggested_tier=PageTier.POLISH))
        else:
            skipped_reasons.append(SkippedReason(item=update.page_title, reason=EXCEEDED_BUDGET))

    return final_updates, skipped_reasons
