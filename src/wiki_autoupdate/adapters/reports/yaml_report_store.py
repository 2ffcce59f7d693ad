"""Run report persistence."""

from pathlib import Path

import yaml

from wiki_autoupdate.core import NewsDigest, RunReport, UpdatePlan


def _run_stem(started_at: str) -> str:
    # 2026-10-19T06:00:00.123+00:00 -> 2026-10-19T06-00-00
    return started_at.replace(":", "-").replace(".", "-")[:19]


class YamlReportStore:
    """Write run reports and run details into the runs directory."""

    def __init__(self, runs_dir: Path) -> None:
        self.runs_dir = runs_dir

    def _write(self, path: Path, data: dict) -> None:
        self.runs_dir.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, allow_unicode=True, default_flow_style=False, sort_keys=False, width=120)

    def save_run_report(self, report: RunReport) -> Path:
        """Save the report; the file name keeps time so same-day runs don't collide."""
        path = self.runs_dir / f"{_run_stem(report.started_at)}.yaml"
        self._write(path, report.to_dict())
        return path

    def save_run_details(self, started_at: str, digest: NewsDigest, plan: UpdatePlan) -> Path:
        """Save the digest and plan of a run next to its report."""
        path = self.runs_dir / f"{_run_stem(started_at)}-details.yaml"
        self._write(path, {"digest": digest.to_dict(), "plan": plan.to_dict()})
        return path

    def save_plan_markdown(self, started_at: str, markdown: str) -> Path:
        path = self.runs_dir / f"{_run_stem(started_at)}-plan.md"
        self.runs_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(markdown, encoding="utf-8")
        return path
