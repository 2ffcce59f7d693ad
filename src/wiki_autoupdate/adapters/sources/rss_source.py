"""RSS / Atom feed source."""

from datetime import date, datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional
from xml.etree import ElementTree as ET

import httpx
from bs4 import BeautifulSoup

from wiki_autoupdate.core import FeedItem, ItemSource, SourceConfig

ATOM_NS = "{http://www.w3.org/2005/Atom}"
DC_NS = "{http://purl.org/dc/elements/1.1/}"
CONTENT_NS = "{http://purl.org/rss/1.0/modules/content/}"

SUMMARY_LIMIT = 500


def strip_html(html: str) -> str:
    """Convert an HTML fragment to collapsed plain text."""
    if not html:
        return ""
    text = BeautifulSoup(html, "html.parser").get_text(separator=" ")
    return " ".join(text.split())


def parse_date(value: str) -> Optional[datetime]:
    """Parse RFC 822 (RSS) or ISO 8601 (Atom) dates; None if unparseable."""
    if not value:
        return None
    value = value.strip()
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        parsed = None
    if parsed is None:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _text(element: Optional[ET.Element]) -> str:
    return element.text.strip() if element is not None and element.text else ""


class RSSFeedSource(ItemSource):
    """Fetch items from a single RSS 2.0 or Atom feed."""

    emoji = "📰"

    def __init__(self, config: SourceConfig, timeout: float = 30.0) -> None:
        if not config.url:
            raise ValueError(f"Source {config.id} has no URL")
        self.config = config
        self.id = config.id
        self.name = config.name
        self.timeout = timeout

    async def fetch_items(self, since: Optional[str]) -> list[FeedItem]:
        """Fetch the feed and keep entries newer than ``since``."""
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            response = await client.get(
                self.config.url,
                headers={"User-Agent": "wiki-autoupdate/1.0"},
            )
            response.raise_for_status()

        since_date = parse_date(since) if since else None
        items: list[FeedItem] = []

        for entry in self._parse_feed(response.text):
            if not entry["title"]:
                continue

            published = parse_date(entry["published"])
            if since_date and published and published <= since_date:
                continue

            items.append(FeedItem(
                source_id=self.config.id,
                source_name=self.config.name,
                title=strip_html(entry["title"]),
                url=entry["link"],
                published_at=entry["published"] or date.today().isoformat(),
                summary=strip_html(entry["description"])[:SUMMARY_LIMIT],
                categories=self.config.categories,
                reliability=self.config.reliability,
            ))

        return items

    def _parse_feed(self, xml_content: str) -> list[dict]:
        """Parse RSS <item> elements, falling back to Atom <entry> elements."""
        entries: list[dict] = []

        try:
            root = ET.fromstring(xml_content)
        except ET.ParseError as e:
            print(f"  └─ {self.config.id}: XML parse error - {e}")
            return entries

        for item in root.iter("item"):
            entries.append({
                "title": _text(item.find("title")),
                "link": _text(item.find("link")),
                "published": _text(item.find("pubDate")) or _text(item.find(f"{DC_NS}date")),
                "description": _text(item.find("description")) or _text(item.find(f"{CONTENT_NS}encoded")),
            })

        if entries:
            return entries

        for entry in root.iter(f"{ATOM_NS}entry"):
            link_elem = entry.find(f"{ATOM_NS}link")
            link = link_elem.get("href", "") if link_elem is not None else ""
            entries.append({
                "title": _text(entry.find(f"{ATOM_NS}title")),
                "link": link or _text(link_elem),
                "published": _text(entry.find(f"{ATOM_NS}published")) or _text(entry.find(f"{ATOM_NS}updated")),
                "description": _text(entry.find(f"{ATOM_NS}summary")) or _text(entry.find(f"{ATOM_NS}content")),
            })

        return entries
