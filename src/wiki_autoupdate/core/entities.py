"""Core domain entities."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional


class Reliability(str, Enum):
    """Editorial reliability of a news source."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class PageTier(str, Enum):
    """Depth of work requested for an existing page."""

    POLISH = "polish"
    STANDARD = "standard"
    DEEP = "deep"

    @classmethod
    def coerce(cls, value: Any) -> "PageTier":
        """Map an oracle-provided tier string onto a member, defaulting to standard."""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.STANDARD


class NewPageTier(str, Enum):
    """Depth of work requested for a page that does not exist yet."""

    BUDGET = "budget"
    STANDARD = "standard"
    PREMIUM = "premium"

    @classmethod
    def coerce(cls, value: Any) -> "NewPageTier":
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.STANDARD


class RunStatus(str, Enum):
    """Outcome of executing a single page update."""

    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class FeedItem:
    """A single news item as fetched from a source."""

    source_id: str
    source_name: str
    title: str
    url: str
    published_at: str
    summary: str = ""
    categories: tuple[str, ...] = ()
    reliability: Reliability = Reliability.MEDIUM

    def __post_init__(self) -> None:
        if not self.source_id:
            raise ValueError("Source id cannot be empty")
        if len(self.summary) > 500:
            raise ValueError("Summary cannot exceed 500 characters")
        # Accept any iterable of categories but store an immutable tuple
        object.__setattr__(self, "categories", tuple(self.categories))


@dataclass(frozen=True)
class DigestItem:
    """Feed item enriched with relevance scoring."""

    item: FeedItem
    relevance_score: int
    topics: tuple[str, ...] = ()
    entities: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not 0 <= self.relevance_score <= 100:
            raise ValueError("Relevance score must be between 0 and 100")
        object.__setattr__(self, "topics", tuple(self.topics))
        object.__setattr__(self, "entities", tuple(self.entities))

    @property
    def title(self) -> str:
        return self.item.title

    @property
    def url(self) -> str:
        return self.item.url

    @property
    def summary(self) -> str:
        return self.item.summary

    @property
    def source_id(self) -> str:
        return self.item.source_id

    @property
    def published_at(self) -> str:
        return self.item.published_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "sourceId": self.source_id,
            "publishedAt": self.published_at,
            "summary": self.summary,
            "relevanceScore": self.relevance_score,
            "topics": list(self.topics),
            "entities": list(self.entities),
        }


@dataclass(frozen=True)
class PageIndexEntry:
    """Read-only snapshot of an existing wiki page."""

    id: str
    title: str
    entity_type: str = "unknown"
    reader_importance: float = 50
    update_frequency: int = 90
    last_edited: str = ""
    categories: tuple[str, ...] = ()


@dataclass(frozen=True)
class NewsReference:
    """News item attached to a planned update."""

    title: str
    url: str
    summary: str = ""

    @classmethod
    def from_digest_item(cls, item: DigestItem, summary_limit: int = 200) -> "NewsReference":
        return cls(title=item.title, url=item.url, summary=item.summary[:summary_limit])

    def to_dict(self) -> dict[str, str]:
        data = {"title": self.title, "url": self.url}
        if self.summary:
            data["summary"] = self.summary
        return data


@dataclass
class PageUpdate:
    """Planned update of an existing page."""

    page_id: str
    page_title: str
    reason: str
    suggested_tier: PageTier
    relevant_news: list[NewsReference] = field(default_factory=list)
    directions: str = ""

    def copy(self, **changes: Any) -> "PageUpdate":
        """Return a shallow copy that owns its own ``relevant_news`` list."""
        changes.setdefault("relevant_news", list(self.relevant_news))
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "pageId": self.page_id,
            "pageTitle": self.page_title,
            "reason": self.reason,
            "suggestedTier": self.suggested_tier.value,
            "relevantNews": [news.to_dict() for news in self.relevant_news],
            "directions": self.directions,
        }


@dataclass
class NewPageSuggestion:
    """Suggested page for a topic the wiki does not cover yet."""

    suggested_title: str
    suggested_id: str
    reason: str
    suggested_tier: NewPageTier
    relevant_news: list[NewsReference] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "suggestedTitle": self.suggested_title,
            "suggestedId": self.suggested_id,
            "reason": self.reason,
            "relevantNews": [news.to_dict() for news in self.relevant_news],
            "suggestedTier": self.suggested_tier.value,
        }


@dataclass(frozen=True)
class SkippedReason:
    """Why a page or news item did not make it into the plan."""

    item: str
    reason: str

    def to_dict(self) -> dict[str, str]:
        return {"item": self.item, "reason": self.reason}


@dataclass
class UpdatePlan:
    """Finalized plan for one run."""

    date: str
    page_updates: list[PageUpdate] = field(default_factory=list)
    new_page_suggestions: list[NewPageSuggestion] = field(default_factory=list)
    skipped_reasons: list[SkippedReason] = field(default_factory=list)
    estimated_cost: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "pageUpdates": [u.to_dict() for u in self.page_updates],
            "newPageSuggestions": [s.to_dict() for s in self.new_page_suggestions],
            "skippedReasons": [s.to_dict() for s in self.skipped_reasons],
            "estimatedCost": self.estimated_cost,
        }


@dataclass
class NewsDigest:
    """Scored, filtered and deduplicated items of one run."""

    date: str
    items: list[DigestItem] = field(default_factory=list)
    fetched_sources: list[str] = field(default_factory=list)
    failed_sources: list[str] = field(default_factory=list)
    items_fetched: int = 0
    skipped_as_seen: int = 0

    @property
    def item_count(self) -> int:
        return len(self.items)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "itemCount": self.item_count,
            "items": [item.to_dict() for item in self.items],
            "fetchedSources": list(self.fetched_sources),
            "failedSources": list(self.failed_sources),
        }


@dataclass
class AutoUpdateState:
    """State persisted across runs."""

    last_fetch_times: dict[str, str] = field(default_factory=dict)
    seen_items: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "AutoUpdateState":
        if not isinstance(data, dict):
            return cls()
        fetch_times = data.get("lastFetchTimes") or {}
        seen_items = data.get("seenItems") or {}
        if not isinstance(fetch_times, dict) or not isinstance(seen_items, dict):
            return cls()
        return cls(
            last_fetch_times={str(k): str(v) for k, v in fetch_times.items()},
            seen_items={str(k): str(v) for k, v in seen_items.items()},
        )

    def to_dict(self) -> dict[str, dict[str, str]]:
        return {
            "lastFetchTimes": dict(self.last_fetch_times),
            "seenItems": dict(self.seen_items),
        }


@dataclass(frozen=True)
class SourceConfig:
    """Configured news source."""

    id: str
    name: str
    type: str
    url: Optional[str] = None
    query: Optional[str] = None
    categories: tuple[str, ...] = ()
    reliability: Reliability = Reliability.MEDIUM
    enabled: bool = True

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Source id cannot be empty")
        object.__setattr__(self, "categories", tuple(self.categories))


@dataclass(frozen=True)
class SourceFailure:
    """A source that could not be fetched in this run."""

    id: str
    error: str


@dataclass
class FetchResult:
    """Items collected from all sources of one run."""

    items: list[FeedItem] = field(default_factory=list)
    fetched_sources: list[str] = field(default_factory=list)
    failed_sources: list[SourceFailure] = field(default_factory=list)


@dataclass(frozen=True)
class ItemClassification:
    """Relevance scorer verdict for one item of a batch."""

    index: int
    relevance_score: int
    topics: tuple[str, ...] = ()
    entities: tuple[str, ...] = ()
    skip: bool = False


@dataclass(frozen=True)
class RoutedPageUpdate:
    """Router decision to update an existing page."""

    page_id: str
    relevant_items: tuple[int, ...]
    reason: str
    suggested_tier: PageTier
    directions: str = ""


@dataclass(frozen=True)
class RoutedNewPage:
    """Router decision to propose a new page."""

    suggested_title: str
    suggested_id: str
    reason: str
    relevant_items: tuple[int, ...]
    suggested_tier: NewPageTier


@dataclass(frozen=True)
class RoutedSkip:
    """Router decision to ignore a candidate item."""

    index: int
    reason: str


@dataclass
class RoutingResult:
    """Full router response."""

    page_updates: list[RoutedPageUpdate] = field(default_factory=list)
    new_pages: list[RoutedNewPage] = field(default_factory=list)
    skipped: list[RoutedSkip] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "RoutingResult":
        return cls()


@dataclass
class RunResult:
    """Outcome of executing one planned page update."""

    page_id: str
    status: RunStatus
    tier: PageTier
    error: Optional[str] = None
    duration_ms: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "pageId": self.page_id,
            "status": self.status.value,
            "tier": self.tier.value,
        }
        if self.error is not None:
            data["error"] = self.error
        if self.duration_ms is not None:
            data["durationMs"] = self.duration_ms
        return data


@dataclass
class RunReport:
    """Summary of one pipeline run."""

    date: str
    started_at: str
    completed_at: str
    trigger: str
    budget_limit: float
    budget_spent: float
    sources_checked: int
    sources_failed: int
    items_fetched: int
    items_relevant: int
    pages_planned: int
    new_pages_suggested: int
    results: list[RunResult] = field(default_factory=list)

    @property
    def pages_updated(self) -> int:
        return sum(1 for r in self.results if r.status == RunStatus.SUCCESS)

    @property
    def pages_failed(self) -> int:
        return sum(1 for r in self.results if r.status == RunStatus.FAILED)

    @property
    def pages_skipped(self) -> int:
        return sum(1 for r in self.results if r.status == RunStatus.SKIPPED)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "startedAt": self.started_at,
            "completedAt": self.completed_at,
            "trigger": self.trigger,
            "budget": {"limit": self.budget_limit, "spent": self.budget_spent},
            "digest": {
                "sourcesChecked": self.sources_checked,
                "sourcesFailed": self.sources_failed,
                "itemsFetched": self.items_fetched,
                "itemsRelevant": self.items_relevant,
            },
            "plan": {
                "pagesPlanned": self.pages_planned,
                "newPagesSuggested": self.new_pages_suggested,
            },
            "execution": {
                "pagesUpdated": self.pages_updated,
                "pagesFailed": self.pages_failed,
                "pagesSkipped": self.pages_skipped,
                "results": [r.to_dict() for r in self.results],
            },
        }
