"""Core interfaces for adapters."""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from wiki_autoupdate.core.entities import (
    DigestItem,
    FeedItem,
    ItemClassification,
    PageIndexEntry,
    PageUpdate,
    RoutingResult,
    RunResult,
)


class MalformedResponseError(ValueError):
    """Collaborator answered, but the answer could not be parsed."""


class CollaboratorUnavailableError(RuntimeError):
    """Collaborator cannot be reached or is not configured."""


class ItemSource(ABC):
    """Interface for fetching items from a news source."""

    id: str
    name: str

    @abstractmethod
    async def fetch_items(self, since: Optional[str]) -> list[FeedItem]:
        """Fetch items published after ``since`` (ISO timestamp, None for everything)."""
        pass


class RelevanceScorer(ABC):
    """Scores news items for relevance to the wiki."""

    @abstractmethod
    async def classify_batch(
        self, batch: list[FeedItem], entity_sample: list[str]
    ) -> list[ItemClassification]:
        """Classify one batch of items.

        Raises:
            MalformedResponseError: if the response could not be parsed
        """
        pass


class RoutingOracle(ABC):
    """Decides which pages should absorb which news items."""

    @abstractmethod
    async def route_items(
        self, candidates: list[DigestItem], pages: list[PageIndexEntry]
    ) -> RoutingResult:
        """Route candidates (1-based indices in the result) onto pages.

        Raises:
            MalformedResponseError: if the response could not be parsed
        """
        pass


class PageIndex(ABC):
    """Provides the snapshot of existing pages."""

    @abstractmethod
    def load_pages(self) -> list[PageIndexEntry]:
        pass


class PageExecutor(ABC):
    """Performs a planned page update."""

    @abstractmethod
    async def execute(self, update: PageUpdate) -> RunResult:
        """Execute the update; failures are reported in the result, not raised."""
        pass


class Watchlist(ABC):
    """Pages that are updated on a fixed schedule."""

    @abstractmethod
    def get_due_updates(self, run_date: date) -> list[PageUpdate]:
        pass

    @abstractmethod
    def mark_updated(self, page_ids: list[str], run_date: date) -> None:
        pass
