"""Watchlist of pages on a recurring update schedule, stored as YAML.

File format::

    pages:
      - id: frontier-labs
        title: Frontier Labs
        frequency_days: 30
        tier: standard
        directions: Refresh funding and headcount figures.
        last_run: 2026-01-15
"""

from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

import yaml

from wiki_autoupdate.core import PageTier, PageUpdate, Watchlist

DEFAULT_FREQUENCY_DAYS = 30


def _as_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


class YamlWatchlist(Watchlist):
    """Watchlist backed by a YAML file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def _load(self) -> dict:
        if not self.path.exists():
            return {"pages": []}
        with open(self.path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if not isinstance(data, dict):
            data = {}
        if not isinstance(data.get("pages"), list):
            data["pages"] = []
        return data

    def is_due(self, entry: dict, run_date: date) -> bool:
        last_run = _as_date(entry.get("last_run"))
        if last_run is None:
            return True
        frequency = int(entry.get("frequency_days", DEFAULT_FREQUENCY_DAYS))
        return (run_date - last_run).days >= frequency

    def get_due_updates(self, run_date: date) -> list[PageUpdate]:
        """Return one update per page whose schedule is due on ``run_date``."""
        updates = []
        for entry in self._load()["pages"]:
            if not isinstance(entry, dict) or not entry.get("id") or not self.is_due(entry, run_date):
                continue
            frequency = int(entry.get("frequency_days", DEFAULT_FREQUENCY_DAYS))
            updates.append(PageUpdate(
                page_id=str(entry["id"]),
                page_title=str(entry.get("title", entry["id"])),
                reason=f"Scheduled watchlist update (every {frequency} days)",
                suggested_tier=PageTier.coerce(entry.get("tier", PageTier.STANDARD.value)),
                directions=str(entry.get("directions", "")),
            ))
        return updates

    def mark_updated(self, page_ids: list[str], run_date: date) -> None:
        """Record ``run_date`` as the last run of the given pages."""
        if not page_ids:
            return
        data = self._load()
        wanted = set(page_ids)
        matched = [e for e in data["pages"] if isinstance(e, dict) and e.get("id") in wanted]
        if not matched:
            return
        for entry in matched:
            entry["last_run"] = run_date.isoformat()

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, allow_unicode=True, default_flow_style=False, sort_keys=False)
