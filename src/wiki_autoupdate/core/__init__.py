"""Core domain layer."""

from wiki_autoupdate.core.budget import (
    EXCEEDED_BUDGET,
    EXCEEDED_PAGE_LIMIT,
    apply_budget_and_page_limits,
    estimate_cost,
    tier_cost,
)
from wiki_autoupdate.core.digest import DigestBuilder, deduplicate
from wiki_autoupdate.core.entities import (
    AutoUpdateState,
    DigestItem,
    FeedItem,
    FetchResult,
    ItemClassification,
    NewPageSuggestion,
    NewPageTier,
    NewsDigest,
    NewsReference,
    PageIndexEntry,
    PageTier,
    PageUpdate,
    Reliability,
    RoutedNewPage,
    RoutedPageUpdate,
    RoutedSkip,
    RoutingResult,
    RunReport,
    RunResult,
    RunStatus,
    SkippedReason,
    SourceConfig,
    SourceFailure,
    UpdatePlan,
)
from wiki_autoupdate.core.interfaces import (
    CollaboratorUnavailableError,
    ItemSource,
    MalformedResponseError,
    PageExecutor,
    PageIndex,
    RelevanceScorer,
    RoutingOracle,
    Watchlist,
)
from wiki_autoupdate.core.report import build_run_report, realized_spend
from wiki_autoupdate.core.routing import (
    PageRouter,
    deduplicate_page_updates,
    entity_match,
    inject_watchlist_updates,
    merge_routed_updates,
)
from wiki_autoupdate.core.state_store import StateStore, normalize_title

__all__ = [
    "AutoUpdateState",
    "CollaboratorUnavailableError",
    "DigestBuilder",
    "DigestItem",
    "EXCEEDED_BUDGET",
    "EXCEEDED_PAGE_LIMIT",
    "FeedItem",
    "FetchResult",
    "ItemClassification",
    "ItemSource",
    "MalformedResponseError",
    "NewPageSuggestion",
    "NewPageTier",
    "NewsDigest",
    "NewsReference",
    "PageExecutor",
    "PageIndex",
    "PageIndexEntry",
    "PageRouter",
    "PageTier",
    "PageUpdate",
    "RelevanceScorer",
    "Reliability",
    "RoutedNewPage",
    "RoutedPageUpdate",
    "RoutedSkip",
    "RoutingOracle",
    "RoutingResult",
    "RunReport",
    "RunResult",
    "RunStatus",
    "SkippedReason",
    "SourceConfig",
    "SourceFailure",
    "StateStore",
    "UpdatePlan",
    "Watchlist",
    "apply_budget_and_page_limits",
    "build_run_report",
    "deduplicate",
    "deduplicate_page_updates",
    "entity_match",
    "estimate_cost",
    "inject_watchlist_updates",
    "merge_routed_updates",
    "normalize_title",
    "realized_spend",
    "tier_cost",
]
