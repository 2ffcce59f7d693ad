"""Watchlist adapters."""

from wiki_autoupdate.adapters.watchlist.yaml_watchlist import YamlWatchlist

__all__ = ["YamlWatchlist"]
