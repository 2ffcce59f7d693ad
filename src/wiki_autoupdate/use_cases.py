"""Business logic use cases."""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from wiki_autoupdate.adapters.pages import CommandValidator
from wiki_autoupdate.adapters.reports import MarkdownPlanGenerator, YamlReportStore
from wiki_autoupdate.core import (
    DigestBuilder,
    FetchResult,
    ItemSource,
    NewsDigest,
    PageExecutor,
    PageIndex,
    PageRouter,
    PageUpdate,
    RunReport,
    RunResult,
    RunStatus,
    SourceConfig,
    SourceFailure,
    StateStore,
    UpdatePlan,
    Watchlist,
    build_run_report,
    normalize_title,
    tier_cost,
)
from wiki_autoupdate.core.digest import MIN_FINGERPRINT_LENGTH


@dataclass
class RunOptions:
    """Already-parsed options of one pipeline run."""

    budget: float = 50.0
    max_pages: int = 10
    dry_run: bool = False
    verbose: bool = False
    trigger: str = "manual"
    source_ids: Optional[list[str]] = None


def _banner(title: str) -> None:
    print("\n" + "=" * 70)
    print(title)
    print("=" * 70)


class FeedCollector:
    """Fetches all enabled sources concurrently, isolating failures per source."""

    def __init__(
        self,
        source_configs: list[SourceConfig],
        state_store: StateStore,
        source_factory: Callable[[SourceConfig], ItemSource],
        verbose: bool = False,
    ) -> None:
        self.source_configs = source_configs
        self.state_store = state_store
        self.source_factory = source_factory
        self.verbose = verbose

    def select(self, source_ids: Optional[list[str]] = None) -> list[SourceConfig]:
        configs = [c for c in self.source_configs if c.enabled]
        if source_ids:
            configs = [c for c in configs if c.id in source_ids]
        return configs

    async def _fetch_one(self, config: SourceConfig, since: Optional[str]) -> list:
        source = self.source_factory(config)
        return await source.fetch_items(since)

    async def fetch_all(
        self, source_ids: Optional[list[str]] = None, now: Optional[datetime] = None
    ) -> FetchResult:
        """Fetch every selected source and persist fetch times of the successful ones."""
        configs = self.select(source_ids)
        last_times = self.state_store.load_fetch_times()
        fetched_at = (now or datetime.now(timezone.utc)).isoformat()

        outcomes = await asyncio.gather(
            *(self._fetch_one(config, last_times.get(config.id)) for config in configs),
            return_exceptions=True,
        )

        result = FetchResult()
        for config, outcome in zip(configs, outcomes):
            if isinstance(outcome, BaseException):
                result.failed_sources.append(SourceFailure(id=config.id, error=str(outcome)[:200]))
                if self.verbose:
                    print(f"  └─ ❌ {config.name}: {str(outcome)[:100]}")
                continue

            result.items.extend(outcome)
            result.fetched_sources.append(config.id)
            last_times[config.id] = fetched_at
            if self.verbose:
                print(f"  └─ {config.name}: {len(outcome)} new items")

        self.state_store.save_fetch_times(last_times)
        return result


class AutoUpdatePipeline:
    """End-to-end run: fetch, digest, route, execute, report."""

    def __init__(
        self,
        collector: FeedCollector,
        digest_builder: DigestBuilder,
        page_router: PageRouter,
        page_index: PageIndex,
        state_store: StateStore,
        executor: PageExecutor,
        report_store: YamlReportStore,
        watchlist: Optional[Watchlist] = None,
        plan_generator: Optional[MarkdownPlanGenerator] = None,
        validator: Optional[CommandValidator] = None,
    ) -> None:
        self.collector = collector
        self.digest_builder = digest_builder
        self.page_router = page_router
        self.page_index = page_index
        self.state_store = state_store
        self.executor = executor
        self.report_store = report_store
        self.watchlist = watchlist
        self.plan_generator = plan_generator
        self.validator = validator

    async def run(self, options: RunOptions) -> tuple[RunReport, Path]:
        """Run the pipeline once.

        Returns:
            Tuple of (run report, path of the saved report)
        """
        started_at = datetime.now(timezone.utc)
        run_date = started_at.date()

        _banner("📥 STAGE 1: FETCHING NEWS SOURCES")
        fetch_result = await self.collector.fetch_all(options.source_ids, now=started_at)
        print(f"✓ Fetched: {len(fetch_result.fetched_sources)} sources, {len(fetch_result.items)} items")
        if fetch_result.failed_sources:
            print(f"⚠️  Failed: {', '.join(f.id for f in fetch_result.failed_sources)}")

        _banner("🔍 STAGE 2: BUILDING NEWS DIGEST")
        pages = self.page_index.load_pages()
        previously_seen = self.state_store.load_seen_items()
        digest = await self.digest_builder.build(
            fetch_result.items,
            fetch_result.fetched_sources,
            [f.id for f in fetch_result.failed_sources],
            entity_ids=[page.id for page in pages],
            previously_seen=previously_seen,
            digest_date=run_date,
        )
        print(f"✓ Digest: {digest.item_count} relevant items")
        self._record_seen(digest, run_date.isoformat())

        watchlist_updates = self.watchlist.get_due_updates(run_date) if self.watchlist else []
        if watchlist_updates:
            print(f"✓ Watchlist: {len(watchlist_updates)} page(s) due for scheduled update")

        if digest.item_count == 0 and not watchlist_updates:
            print("\nNo relevant news found. Nothing to update.")
            return self._finish(started_at, options, fetch_result, digest)

        if options.verbose:
            for item in digest.items[:5]:
                print(f"  [{item.relevance_score}] {item.title}")

        _banner("🧭 STAGE 3: ROUTING TO WIKI PAGES")
        plan = await self.page_router.route(
            digest,
            pages,
            watchlist_updates=watchlist_updates,
            plan_date=run_date,
            max_pages=options.max_pages,
            max_budget=options.budget,
        )
        self._print_plan(plan)
        self.report_store.save_run_details(started_at.isoformat(), digest, plan)
        if self.plan_generator:
            self.report_store.save_plan_markdown(started_at.isoformat(), self.plan_generator.generate(plan))

        if options.dry_run:
            print("\n── Dry run — stopping before execution ──")
            return self._finish(started_at, options, fetch_result, digest, plan)

        _banner("🛠️  STAGE 4: EXECUTING UPDATES")
        results = await self.execute_plan(plan, options.budget)

        if self.watchlist and watchlist_updates:
            scheduled_ids = {u.page_id for u in watchlist_updates}
            updated = [r.page_id for r in results if r.status == RunStatus.SUCCESS and r.page_id in scheduled_ids]
            if updated:
                self.watchlist.mark_updated(updated, run_date)
                if options.verbose:
                    print(f"  Watchlist last_run updated: {', '.join(updated)}")

        if self.validator and any(r.status == RunStatus.SUCCESS for r in results):
            _banner("🧪 STAGE 5: VALIDATION")
            await self.validate()

        return self._finish(started_at, options, fetch_result, digest, plan, results)

    async def execute_plan(self, plan: UpdatePlan, budget: float) -> list[RunResult]:
        """Execute planned updates one by one; a failure never stops the run."""
        results: list[RunResult] = []
        spent = 0.0
        total = len(plan.page_updates)

        for i, update in enumerate(plan.page_updates, 1):
            cost = tier_cost(update.suggested_tier)
            if spent + cost > budget:
                print(f"  [{i}/{total}] {update.page_title} — SKIPPED (budget exceeded)")
                results.append(RunResult(page_id=update.page_id, status=RunStatus.SKIPPED, tier=update.suggested_tier))
                continue

            print(f"  [{i}/{total}] {update.page_title} ({update.suggested_tier.value})")
            result = await self._execute_one(update)
            results.append(result)

            if result.status == RunStatus.SUCCESS:
                spent += cost
                print(f"  ✓ Done ({(result.duration_ms or 0) / 1000:.0f}s)")
            else:
                print(f"  ✗ FAILED: {(result.error or '')[:100]}")

        return results

    async def validate(self) -> bool:
        """Run the validation command; a failed validation never stops the run."""
        try:
            passed = await self.validator.validate()
        except Exception as e:
            print(f"⚠️  Validation could not run: {e}")
            return False

        if passed:
            print("✓ Validation passed")
        else:
            print("⚠️  Validation had issues (check output above)")
            if self.validator.last_error:
                print(f"  └─ {self.validator.last_error[:200]}")
        return passed

    async def _execute_one(self, update: PageUpdate) -> RunResult:
        try:
            return await self.executor.execute(update)
        except Exception as e:
            return RunResult(
                page_id=update.page_id,
                status=RunStatus.FAILED,
                tier=update.suggested_tier,
                error=str(e)[:300],
            )

    def _record_seen(self, digest: NewsDigest, first_seen: str) -> None:
        """Remember digest items so later runs skip them."""
        new_entries = {}
        for item in digest.items:
            key = normalize_title(item.title)
            if len(key) >= MIN_FINGERPRINT_LENGTH:
                new_entries[key] = first_seen
        if new_entries:
            self.state_store.save_seen_items(new_entries)

    def _print_plan(self, plan: UpdatePlan) -> None:
        print(f"✓ Plan: {len(plan.page_updates)} page updates, {len(plan.new_page_suggestions)} new page suggestions")
        print(f"✓ Estimated cost: ~${plan.estimated_cost:.0f}")

        if plan.page_updates:
            print("\nPlanned updates:")
            for update in plan.page_updates:
                print(f"  {update.suggested_tier.value:<9} {update.page_title} — {update.reason[:80]}")

        if plan.new_page_suggestions:
            print("\nNew page suggestions:")
            for suggestion in plan.new_page_suggestions:
                print(f"  {suggestion.suggested_title} — {suggestion.reason[:80]}")

    def _finish(
        self,
        started_at: datetime,
        options: RunOptions,
        fetch_result: FetchResult,
        digest: NewsDigest,
        plan: Optional[UpdatePlan] = None,
        results: Optional[list[RunResult]] = None,
    ) -> tuple[RunReport, Path]:
        report = build_run_report(
            started_at=started_at,
            trigger=options.trigger,
            budget_limit=options.budget,
            fetch_result=fetch_result,
            digest=digest,
            plan=plan,
            results=results,
        )
        report_path = self.report_store.save_run_report(report)

        _banner("✅ AUTO-UPDATE COMPLETE")
        print(f"  • Pages updated: {report.pages_updated}")
        print(f"  • Pages failed: {report.pages_failed}")
        print(f"  • Pages skipped: {report.pages_skipped}")
        print(f"  • Budget: ${report.budget_spent:.0f} / ${report.budget_limit:g}")
        print(f"  • Report: {report_path}")
        return report, report_path
