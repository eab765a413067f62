"""Typed outcomes of tracker operations and whole runs."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from top_issues.core.entities import Category, Item, ScoredItem


class ResultStatus(str, Enum):
    """Outcome of an operation or a run."""

    SUCCESS = "success"
    RECOVERABLE_ERROR = "recoverable_error"
    FATAL_ERROR = "fatal_error"


class TrackerError(Exception):
    """Failure reported by the issue tracker (transport, auth, API)."""

    def __init__(
        self,
        operation: str,
        message: str,
        item_id: Optional[int] = None,
        label: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        self.operation = operation
        self.message = message
        self.item_id = item_id
        self.label = label
        self.status_code = status_code
        super().__init__(self._describe())

    def _describe(self) -> str:
        context = [self.operation]
        if self.item_id is not None:
            context.append(f"item #{self.item_id}")
        if self.label is not None:
            context.append(f"label '{self.label}'")
        return f"{' / '.join(context)}: {self.message}"


@dataclass
class OperationResult:
    """Outcome of a single external call."""

    operation: str
    status: ResultStatus = ResultStatus.SUCCESS
    item_id: Optional[int] = None
    label: Optional[str] = None
    error: Optional[str] = None
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return self.status == ResultStatus.SUCCESS


@dataclass
class CategoryResult:
    """Ranking and reconciliation outcome for one category."""

    category: Category
    selected: list[ScoredItem] = field(default_factory=list)
    to_label: list[Item] = field(default_factory=list)
    to_unlabel: list[Item] = field(default_factory=list)
    operations: list[OperationResult] = field(default_factory=list)


@dataclass
class RunReport:
    """Summary of a complete run."""

    status: ResultStatus = ResultStatus.SUCCESS
    categories: list[CategoryResult] = field(default_factory=list)
    dashboard_body: Optional[str] = None
    dashboard_operations: list[OperationResult] = field(default_factory=list)
    error: Optional[str] = None
    nothing_to_do: bool = False
    dry_run: bool = False

    @property
    def operations(self) -> list[OperationResult]:
        """All operations in execution order."""
        result: list[OperationResult] = []
        for category_result in self.categories:
            result.extend(category_result.operations)
        result.extend(self.dashboard_operations)
        return result

    @property
    def failures(self) -> list[OperationResult]:
        return [operation for operation in self.operations if not operation.ok]
