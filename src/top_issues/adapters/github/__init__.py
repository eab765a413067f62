"""GitHub tracker adapter."""

from top_issues.adapters.github.client import GitHubClient

__all__ = ["GitHubClient"]
