"""Source adapters for fetching items."""

from wiki_autoupdate.adapters.sources.loader import build_source, load_source_configs
from wiki_autoupdate.adapters.sources.rss_source import RSSFeedSource

__all__ = ["RSSFeedSource", "build_source", "load_source_configs"]
