"""Tests for the YAML watchlist."""

from datetime import date
from pathlib import Path
from tempfile import TemporaryDirectory

import yaml

from wiki_autoupdate.adapters.watchlist import YamlWatchlist
from wiki_autoupdate.core import PageTier

WATCHLIST = """pages:
  - id: frontier-labs
    title: Frontier Labs
    frequency_days: 30
    tier: deep
    directions: Refresh funding and headcount figures.
    last_run: 2026-09-01
  - id: compute-prices
    title: Compute Prices
    frequency_days: 7
    last_run: 2026-10-15
  - id: new-entry
    title: New Entry
"""


def test_get_due_updates() -> None:
    """Test only pages whose schedule has elapsed are due."""
    with TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "watchlist.yaml"
        path.write_text(WATCHLIST, encoding="utf-8")

        updates = YamlWatchlist(path).get_due_updates(date(2026, 10, 19))

    assert [u.page_id for u in updates] == ["frontier-labs", "new-entry"]
    first = updates[0]
    assert first.page_title == "Frontier Labs"
    assert first.suggested_tier == PageTier.DEEP
    assert first.directions == "Refresh funding and headcount figures."
    assert first.reason == "Scheduled watchlist update (every 30 days)"
    assert updates[1].suggested_tier == PageTier.STANDARD


def test_due_on_exact_frequency() -> None:
    with TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "watchlist.yaml"
        path.write_text(WATCHLIST, encoding="utf-8")

        updates = YamlWatchlist(path).get_due_updates(date(2026, 10, 22))

    assert "compute-prices" in [u.page_id for u in updates]


def test_mark_updated() -> None:
    """Test last_run is written for updated pages only."""
    with TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "watchlist.yaml"
        path.write_text(WATCHLIST, encoding="utf-8")
        watchlist = YamlWatchlist(path)

        watchlist.mark_updated(["frontier-labs"], date(2026, 10, 19))

        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        assert data["pages"][0]["last_run"] == "2026-10-19"
        assert "last_run" not in data["pages"][2]
        assert [u.page_id for u in watchlist.get_due_updates(date(2026, 10, 19))] == ["new-entry"]


def test_missing_watchlist() -> None:
    with TemporaryDirectory() as tmpdir:
        watchlist = YamlWatchlist(Path(tmpdir) / "missing.yaml")
        assert watchlist.get_due_updates(date(2026, 10, 19)) == []


def test_non_mapping_watchlist_is_empty() -> None:
    """Test a watchlist document that is a list or scalar has no due pages."""
    with TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "watchlist.yaml"
        for document in ("- frontier-labs\n- compute-prices\n", "just a string\n"):
            path.write_text(document, encoding="utf-8")
            watchlist = YamlWatchlist(path)

            assert watchlist.get_due_updates(date(2026, 10, 19)) == []
            watchlist.mark_updated(["frontier-labs"], date(2026, 10, 19))
            assert path.read_text(encoding="utf-8") == document


def test_non_mapping_entries_are_skipped() -> None:
    with TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "watchlist.yaml"
        path.write_text("pages:\n  - loose-string\n  - id: compute-prices\n    title: Compute Prices\n", encoding="utf-8")
        watchlist = YamlWatchlist(path)

        assert [u.page_id for u in watchlist.get_due_updates(date(2026, 10, 19))] == ["compute-prices"]
        watchlist.mark_updated(["compute-prices"], date(2026, 10, 19))

        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        assert data["pages"][0] == "loose-string"
        assert data["pages"][1]["last_run"] == "2026-10-19"
