"""Run report assembly."""

from datetime import datetime, timezone
from typing import Optional

from wiki_autoupdate.core.budget import tier_cost
from wiki_autoupdate.core.entities import (
    FetchResult,
    NewsDigest,
    RunReport,
    RunResult,
    RunStatus,
    UpdatePlan,
)


def realized_spend(results: list[RunResult]) -> float:
    """Dollars spent on page executions that actually succeeded."""
    return sum(tier_cost(r.tier) for r in results if r.status == RunStatus.SUCCESS)


def build_run_report(
    started_at: datetime,
    trigger: str,
    budget_limit: float,
    fetch_result: FetchResult,
    digest: Optional[NewsDigest] = None,
    plan: Optional[UpdatePlan] = None,
    results: Optional[list[RunResult]] = None,
    completed_at: Optional[datetime] = None,
) -> RunReport:
    """Aggregate ingestion, plan and execution statistics.

    ``digest`` and ``plan`` are optional so that runs which stop early
    (nothing relevant, dry run) still produce a complete report.
    """
    results = results or []
    completed_at = completed_at or datetime.now(timezone.utc)

    return RunReport(
        date=started_at.date().isoformat(),
        started_at=started_at.isoformat(),
        completed_at=completed_at.isoformat(),
        trigger=trigger,
        budget_limit=budget_limit,
        budget_spent=realized_spend(results),
        sources_checked=len(fetch_result.fetched_sources),
        sources_failed=len(fetch_result.failed_sources),
        items_fetched=len(fetch_result.items),
        items_relevant=digest.item_count if digest else 0,
        pages_planned=len(plan.page_updates) if plan else 0,
        new_pages_suggested=len(plan.new_page_suggestions) if plan else 0,
        results=list(results),
    )
