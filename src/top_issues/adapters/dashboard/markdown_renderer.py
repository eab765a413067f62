"""Markdown dashboard renderer."""

from datetime import datetime
from typing import Optional

from top_issues.core import DashboardRenderer, ScoredItem

DASHBOARD_HEADER = """<!--
This dashboard was generated by top-issues.
-->

A simple dashboard that lists the top issues/bugs/features and pull requests."""

FALLBACK_TITLE = "Top issues"
FALLBACK_MESSAGE = "> Could not find any top issues :zzz:."


def build_footer(now: Optional[datetime] = None) -> str:
    """Build the default dashboard footer with a last-update timestamp."""
    now = now or datetime.now()
    return f"> Created by top-issues (last update: {now.strftime('%d/%m/%Y, %H:%M:%S')})."


class MarkdownDashboardRenderer(DashboardRenderer):
    """Render ranked sections as a GitHub-flavoured markdown dashboard."""

    def render(
        self,
        sections: dict[str, list[ScoredItem]],
        header: str,
        footer: str,
        show_score: bool,
    ) -> str:
        """Render the dashboard body.

        Sections are emitted in the given order, empty ones are skipped. The
        items are expected to be ranked already.

        Args:
            sections: Section title mapped to ranked items
            header: Text placed verbatim at the top
            footer: Text appended after a blank line (skipped when empty)
            show_score: Append the score after each item

        Returns:
            Markdown document
        """
        parts = [header]

        rendered = [
            self._format_section(title, items, show_score)
            for title, items in sections.items()
            if items
        ]
        if rendered:
            parts.extend(rendered)
        else:
            parts.append(f"## {FALLBACK_TITLE}\n\n{FALLBACK_MESSAGE}")

        if footer:
            parts.append(footer)

        return "\n\n".join(parts)

    def _format_section(
        self, title: str, items: list[ScoredItem], show_score: bool
    ) -> str:
        lines = [
            self._format_entry(rank, item, show_score)
            for rank, item in enumerate(items, 1)
        ]
        return f"## {title}\n\n" + "\n".join(lines)

    def _format_entry(self, rank: int, item: ScoredItem, show_score: bool) -> str:
        if show_score:
            return f"{rank}. #{item.id} :+1:`{item.score}`"
        return f"{rank}. #{item.id}"
