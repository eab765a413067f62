"""Core domain layer."""

from top_issues.core.entities import Category, Item, ItemKind, LabelOperation, ScoredItem
from top_issues.core.interfaces import DashboardRenderer, IssueTracker
from top_issues.core.ranking import (
    find_dashboard_issue,
    items_to_label,
    items_to_unlabel,
    items_with_label,
    rank,
    reaction_score,
)
from top_issues.core.results import (
    CategoryResult,
    OperationResult,
    ResultStatus,
    RunReport,
    TrackerError,
)

__all__ = [
    "Item",
    "ItemKind",
    "ScoredItem",
    "Category",
    "LabelOperation",
    "IssueTracker",
    "DashboardRenderer",
    "rank",
    "reaction_score",
    "items_with_label",
    "items_to_label",
    "items_to_unlabel",
    "find_dashboard_issue",
    "ResultStatus",
    "OperationResult",
    "CategoryResult",
    "RunReport",
    "TrackerError",
]
