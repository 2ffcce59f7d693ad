"""Loading of the configured news sources."""

from pathlib import Path

import yaml

from wiki_autoupdate.adapters.sources.rss_source import RSSFeedSource
from wiki_autoupdate.core import ItemSource, Reliability, SourceConfig

FEED_TYPES = ("rss", "atom")


def load_source_configs(sources_path: Path) -> list[SourceConfig]:
    """Read ``sources:`` entries from the sources YAML file."""
    if not sources_path.exists():
        return []

    with open(sources_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    configs = []
    for entry in data.get("sources") or []:
        configs.append(SourceConfig(
            id=str(entry["id"]),
            name=str(entry.get("name", entry["id"])),
            type=str(entry.get("type", "rss")),
            url=entry.get("url"),
            query=entry.get("query"),
            categories=tuple(entry.get("categories") or []),
            reliability=Reliability(entry.get("reliability", "medium")),
            enabled=bool(entry.get("enabled", True)),
        ))
    return configs


def build_source(config: SourceConfig) -> ItemSource:
    """Create the source adapter for a config entry.

    Raises:
        ValueError: for source types without an adapter
    """
    if config.type in FEED_TYPES:
        return RSSFeedSource(config)
    raise ValueError(f"Unsupported source type: {config.type}")
