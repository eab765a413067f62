"""Rank open issues and pull requests by reactions, label the top ones and publish a dashboard."""

__version__ = "0.1.0"
