"""CLI entry point for wiki auto-update."""

import asyncio
from pathlib import Path
from typing import Optional

import typer

from wiki_autoupdate.adapters.llm import ClaudeClient
from wiki_autoupdate.adapters.pages import CommandPageExecutor, CommandValidator, FrontmatterPageIndex
from wiki_autoupdate.adapters.reports import MarkdownPlanGenerator, YamlReportStore
from wiki_autoupdate.adapters.sources import build_source, load_source_configs
from wiki_autoupdate.adapters.watchlist import YamlWatchlist
from wiki_autoupdate.config import Settings, get_settings
from wiki_autoupdate.core import DigestBuilder, PageRouter, StateStore
from wiki_autoupdate.use_cases import AutoUpdatePipeline, FeedCollector, RunOptions


def parse_source_ids(sources: Optional[str]) -> Optional[list[str]]:
    """Split a comma-separated source filter; empty means all sources."""
    if not sources:
        return None
    ids = [s.strip() for s in sources.split(",") if s.strip()]
    return ids or None


def main(
    budget: Optional[float] = typer.Option(None, "--budget", help="Maximum spend for this run in dollars"),
    count: Optional[int] = typer.Option(None, "--count", help="Maximum number of pages to update"),
    sources: Optional[str] = typer.Option(None, "--sources", help="Comma-separated source ids to fetch"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Plan only, do not execute page updates"),
    trigger: str = typer.Option("manual", "--trigger", help="What started this run (manual, scheduled)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed progress"),
    config: Path = typer.Option(Path("config.yaml"), "--config", help="Path to config.yaml"),
) -> None:
    """Fetch news, route it to wiki pages and run the page updates."""
    settings = get_settings(config)
    options = RunOptions(
        budget=settings.max_budget if budget is None else budget,
        max_pages=settings.max_pages if count is None else count,
        dry_run=dry_run,
        verbose=verbose,
        trigger=trigger,
        source_ids=parse_source_ids(sources),
    )
    asyncio.run(async_run(settings, options))


def app() -> None:
    """CLI entry point."""
    typer.run(main)


def build_pipeline(settings: Settings, options: RunOptions) -> AutoUpdatePipeline:
    """Wire the adapters into a pipeline."""
    state_store = StateStore(settings.state_file, settings.routing.seen_items_max_age_days)
    llm_client = ClaudeClient(settings)

    collector = FeedCollector(
        source_configs=load_source_configs(settings.paths.sources_file),
        state_store=state_store,
        source_factory=build_source,
        verbose=options.verbose,
    )
    digest_builder = DigestBuilder(
        scorer=llm_client,
        min_relevance=settings.min_relevance,
        batch_size=settings.routing.classify_batch_size,
        entity_sample_size=settings.routing.entity_sample_size,
        verbose=options.verbose,
    )
    page_router = PageRouter(
        oracle=llm_client,
        max_pages=options.max_pages,
        max_budget=options.budget,
        router_min_relevance=settings.routing.router_min_relevance,
        router_page_limit=settings.routing.router_page_limit,
        verbose=options.verbose,
    )
    executor = CommandPageExecutor(
        command=settings.execution.command,
        working_dir=settings.execution.working_dir,
        timeout_seconds=settings.execution.timeout_seconds,
        verbose=options.verbose,
    )
    watchlist = YamlWatchlist(settings.paths.watchlist_file) if settings.paths.watchlist_file.exists() else None
    validator = None
    if settings.execution.validation_command:
        validator = CommandValidator(
            command=settings.execution.validation_command,
            working_dir=settings.execution.working_dir,
            timeout_seconds=settings.execution.validation_timeout_seconds,
            verbose=options.verbose,
        )

    return AutoUpdatePipeline(
        collector=collector,
        digest_builder=digest_builder,
        page_router=page_router,
        page_index=FrontmatterPageIndex(settings.paths.content_dir),
        state_store=state_store,
        executor=executor,
        report_store=YamlReportStore(settings.runs_dir),
        watchlist=watchlist,
        plan_generator=MarkdownPlanGenerator(),
        validator=validator,
    )


async def async_run(settings: Settings, options: RunOptions) -> None:
    """Async implementation of run command."""
    print("\n" + "=" * 70)
    print("📰 WIKI AUTO-UPDATE")
    print("=" * 70)

    print("\n🔑 Credentials:")
    if settings.anthropic_api_key:
        print("  ✓ ANTHROPIC_API_KEY - used for classification and routing")
    else:
        print("  ✗ ANTHROPIC_API_KEY - not found (classification will fail)")

    print("\n⚙️  Settings:")
    print(f"  • Budget: ${options.budget:g}")
    print(f"  • Max pages: {options.max_pages}")
    print(f"  • Sources: {', '.join(options.source_ids) if options.source_ids else 'all enabled'}")
    print(f"  • Trigger: {options.trigger}")
    if options.dry_run:
        print("  • 🔍 Dry run: no pages will be changed")

    pipeline = build_pipeline(settings, options)
    await pipeline.run(options)
    print()


if __name__ == "__main__":
    app()
