"""Tests for run report assembly and persistence."""

from datetime import datetime, timezone
from pathlib import Path
from tempfile import TemporaryDirectory

import yaml

from wiki_autoupdate.adapters.reports import MarkdownPlanGenerator, YamlReportStore
from wiki_autoupdate.core import (
    FeedItem,
    FetchResult,
    NewPageSuggestion,
    NewPageTier,
    NewsDigest,
    NewsReference,
    PageTier,
    PageUpdate,
    RunResult,
    RunStatus,
    SkippedReason,
    SourceFailure,
    UpdatePlan,
    build_run_report,
    realized_spend,
)

STARTED_AT = datetime(2026, 10, 19, 6, 0, 0, 123000, tzinfo=timezone.utc)
COMPLETED_AT = datetime(2026, 10, 19, 6, 30, 0, tzinfo=timezone.utc)


def make_plan() -> UpdatePlan:
    return UpdatePlan(
        date="2026-10-19",
        page_updates=[
            PageUpdate(
                page_id="openai",
                page_title="OpenAI",
                reason="1 news item(s) mention this entity directly",
                suggested_tier=PageTier.STANDARD,
                relevant_news=[NewsReference(title="OpenAI ships model", url="https://example.com/m")],
                directions="Scheduled refresh\n\nAlso from news routing: Add model",
            ),
        ],
        new_page_suggestions=[
            NewPageSuggestion(
                suggested_title="Chip Export Controls",
                suggested_id="chip-export-controls",
                reason="not covered",
                suggested_tier=NewPageTier.BUDGET,
            ),
        ],
        skipped_reasons=[SkippedReason(item="Compute", reason="Exceeded budget")],
        estimated_cost=6.5,
    )


def test_realized_spend_counts_successes_only() -> None:
    """Test only successful executions are spent."""
    results = [
        RunResult(page_id="a", status=RunStatus.SUCCESS, tier=PageTier.STANDARD),
        RunResult(page_id="b", status=RunStatus.FAILED, tier=PageTier.DEEP, error="boom"),
        RunResult(page_id="c", status=RunStatus.SUCCESS, tier=PageTier.POLISH),
        RunResult(page_id="d", status=RunStatus.SKIPPED, tier=PageTier.DEEP),
    ]
    assert realized_spend(results) == 9.0


def test_build_run_report_document() -> None:
    """Test report document shape and counts."""
    item = FeedItem(
        source_id="feed",
        source_name="Feed",
        title="Some story",
        url="https://example.com/s",
        published_at="2026-10-18T00:00:00+00:00",
    )
    fetch_result = FetchResult(
        items=[item, item],
        fetched_sources=["feed", "other"],
        failed_sources=[SourceFailure(id="broken", error="timeout")],
    )
    digest = NewsDigest(date="2026-10-19")
    results = [
        RunResult(page_id="openai", status=RunStatus.SUCCESS, tier=PageTier.STANDARD, duration_ms=5000),
        RunResult(page_id="compute", status=RunStatus.FAILED, tier=PageTier.POLISH, error="exit 1"),
    ]

    report = build_run_report(
        started_at=STARTED_AT,
        trigger="scheduled",
        budget_limit=50.0,
        fetch_result=fetch_result,
        digest=digest,
        plan=make_plan(),
        results=results,
        completed_at=COMPLETED_AT,
    )
    data = report.to_dict()

    assert data["date"] == "2026-10-19"
    assert data["trigger"] == "scheduled"
    assert data["budget"] == {"limit": 50.0, "spent": 6.5}
    assert data["digest"] == {"sourcesChecked": 2, "sourcesFailed": 1, "itemsFetched": 2, "itemsRelevant": 0}
    assert data["plan"] == {"pagesPlanned": 1, "newPagesSuggested": 1}
    assert data["execution"]["pagesUpdated"] == 1
    assert data["execution"]["pagesFailed"] == 1
    assert data["execution"]["pagesSkipped"] == 0
    assert data["execution"]["results"][1]["error"] == "exit 1"


def test_report_without_plan() -> None:
    report = build_run_report(
        started_at=STARTED_AT,
        trigger="manual",
        budget_limit=30.0,
        fetch_result=FetchResult(),
    )

    assert report.pages_planned == 0
    assert report.budget_spent == 0
    assert report.results == []


def test_report_store_writes_files() -> None:
    """Test report and details land in the runs directory."""
    with TemporaryDirectory() as tmpdir:
        store = YamlReportStore(Path(tmpdir) / "runs")
        report = build_run_report(
            started_at=STARTED_AT,
            trigger="manual",
            budget_limit=30.0,
            fetch_result=FetchResult(),
        )

        report_path = store.save_run_report(report)
        details_path = store.save_run_details(report.started_at, NewsDigest(date="2026-10-19"), make_plan())
        plan_path = store.save_plan_markdown(report.started_at, "# plan")

        assert report_path.name == "2026-10-19T06-00-00.yaml"
        assert details_path.name == "2026-10-19T06-00-00-details.yaml"
        assert plan_path.read_text(encoding="utf-8") == "# plan"

        with open(report_path, "r", encoding="utf-8") as f:
            assert yaml.safe_load(f)["startedAt"] == report.started_at
        with open(details_path, "r", encoding="utf-8") as f:
            details = yaml.safe_load(f)
        assert details["plan"]["pageUpdates"][0]["pageId"] == "openai"
        assert details["digest"]["itemCount"] == 0


def test_markdown_plan() -> None:
    """Test markdown rendering of a plan."""
    markdown = MarkdownPlanGenerator().generate(make_plan())

    assert "# Auto-update plan for 2026-10-19" in markdown
    assert "### OpenAI (`openai`, standard)" in markdown
    assert "> Scheduled refresh" in markdown
    assert "- [OpenAI ships model](https://example.com/m)" in markdown
    assert "**Chip Export Controls** (`chip-export-controls`, budget, ~$3)" in markdown
    assert "- Compute: Exceeded budget" in markdown


def test_markdown_empty_plan() -> None:
    markdown = MarkdownPlanGenerator().generate(UpdatePlan(date="2026-10-19"))
    assert "No page updates planned." in markdown
