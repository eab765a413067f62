"""Dashboard rendering adapters."""

from top_issues.adapters.dashboard.markdown_renderer import (
    DASHBOARD_HEADER,
    MarkdownDashboardRenderer,
    build_footer,
)

__all__ = ["DASHBOARD_HEADER", "MarkdownDashboardRenderer", "build_footer"]
