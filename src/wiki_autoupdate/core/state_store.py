"""Persistent state shared between auto-update runs."""

import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import yaml

from wiki_autoupdate.core.entities import AutoUpdateState

SEEN_ITEMS_MAX_AGE_DAYS = 90

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_title(title: str) -> str:
    """Fingerprint a title: lowercase alphanumerics only, at most 60 chars."""
    return _NON_ALNUM.sub("", title.lower())[:60]


class StateStore:
    """Fetch times and seen-item fingerprints stored as a single YAML document.

    The document is always read and written as a whole.
    """

    def __init__(self, state_path: Path, seen_items_max_age_days: int = SEEN_ITEMS_MAX_AGE_DAYS) -> None:
        self.state_path = state_path
        self.seen_items_max_age_days = seen_items_max_age_days
        self.last_pruned_count = 0

    def load_state(self) -> AutoUpdateState:
        """Load state; a missing or unreadable file yields empty state."""
        if not self.state_path.exists():
            return AutoUpdateState()

        try:
            with open(self.state_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            print(f"⚠️  Warning: Could not read state file {self.state_path}: {e}")
            return AutoUpdateState()

        return AutoUpdateState.from_dict(data)

    def save_state(self, state: AutoUpdateState) -> None:
        self.state_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.state_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(state.to_dict(), f, allow_unicode=True, default_flow_style=False, sort_keys=False)

    def load_seen_items(self, now: Optional[datetime] = None) -> set[str]:
        """Load seen fingerprints, pruning entries older than the retention window.

        Pruned entries are persisted immediately and counted in
        ``last_pruned_count``.
        """
        state = self.load_state()
        now = now or datetime.now(timezone.utc)
        cutoff = (now - timedelta(days=self.seen_items_max_age_days)).isoformat()

        # ISO-8601 strings order correctly as plain strings
        kept = {key: first_seen for key, first_seen in state.seen_items.items() if first_seen >= cutoff}
        self.last_pruned_count = len(state.seen_items) - len(kept)

        if self.last_pruned_count > 0:
            state.seen_items = kept
            self.save_state(state)
            print(f"  └─ Pruned {self.last_pruned_count} seen item(s) older than {self.seen_items_max_age_days} days")

        return set(kept)

    def save_seen_items(self, new_entries: dict[str, str]) -> None:
        """Merge new fingerprints into the persisted map (new entries win)."""
        state = self.load_state()
        state.seen_items = {**state.seen_items, **new_entries}
        self.save_state(state)

    def load_fetch_times(self) -> dict[str, str]:
        return self.load_state().last_fetch_times

    def save_fetch_times(self, times: dict[str, str]) -> None:
        state = self.load_state()
        state.last_fetch_times = dict(times)
        self.save_state(state)
