"""Markdown rendering of an update plan."""

from wiki_autoupdate.core import UpdatePlan
from wiki_autoupdate.core.budget import new_page_cost


class MarkdownPlanGenerator:
    """Generate a human-readable markdown summary of a plan."""

    def generate(self, plan: UpdatePlan) -> str:
        """Generate markdown plan summary."""
        lines = [
            f"# Auto-update plan for {plan.date}",
            "",
            f"Estimated cost: ${plan.estimated_cost:.2f}",
            "",
        ]

        if not plan.page_updates and not plan.new_page_suggestions:
            lines.append("No page updates planned.")
            return "\n".join(lines)

        if plan.page_updates:
            lines.extend([
                f"## Page updates ({len(plan.page_updates)})",
                "",
            ])
            for update in plan.page_updates:
                lines.extend([
                    f"### {update.page_title} (`{update.page_id}`, {update.suggested_tier.value})",
                    "",
                    update.reason,
                    "",
                ])
                if update.directions:
                    lines.extend([f"> {line}" if line else ">" for line in update.directions.split("\n")])
                    lines.append("")
                for news in update.relevant_news:
                    lines.append(f"- [{news.title}]({news.url})")
                if update.relevant_news:
                    lines.append("")

        if plan.new_page_suggestions:
            lines.extend([
                f"## New page suggestions ({len(plan.new_page_suggestions)})",
                "",
            ])
            for suggestion in plan.new_page_suggestions:
                lines.append(
                    f"- **{suggestion.suggested_title}** (`{suggestion.suggested_id}`, "
                    f"{suggestion.suggested_tier.value}, ~${new_page_cost(suggestion.suggested_tier):g}) - {suggestion.reason}"
                )
            lines.append("")

        if plan.skipped_reasons:
            lines.extend([
                f"## Skipped ({len(plan.skipped_reasons)})",
                "",
            ])
            for skipped in plan.skipped_reasons:
                lines.append(f"- {skipped.item}: {skipped.reason}")
            lines.append("")

        return "\n".join(lines)
