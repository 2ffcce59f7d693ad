"""Run report adapters."""

from wiki_autoupdate.adapters.reports.markdown_generator import MarkdownPlanGenerator
from wiki_autoupdate.adapters.reports.yaml_report_store import YamlReportStore

__all__ = ["MarkdownPlanGenerator", "YamlReportStore"]
