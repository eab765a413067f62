"""Core domain entities."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ItemKind(str, Enum):
    """Kind of ranked item."""

    ISSUE = "issue"
    PULL_REQUEST = "pull_request"


class LabelOperation(str, Enum):
    """Label mutation applied to an item."""

    ADD = "add"
    REMOVE = "remove"


@dataclass
class Item:
    """Open issue or pull request as fetched from the tracker."""

    id: int
    title: str
    positive_reactions: int = 0
    negative_reactions: int = 0
    labels: list[str] = field(default_factory=list)
    kind: ItemKind = ItemKind.ISSUE

    def __post_init__(self) -> None:
        if self.id < 0:
            raise ValueError("Item id cannot be negative")
        if self.positive_reactions < 0 or self.negative_reactions < 0:
            raise ValueError("Reaction counts cannot be negative")

    def has_label(self, label: str) -> bool:
        """Check whether the item carries the given label."""
        return label in self.labels


@dataclass
class ScoredItem(Item):
    """Item with the popularity score computed for the current run."""

    score: int = 0


@dataclass
class Category:
    """Ranking and labeling configuration for one dashboard section."""

    name: str
    section_title: str
    top_label: str
    top_label_color: str = ""
    top_label_description: str = ""
    kind: ItemKind = ItemKind.ISSUE
    source_label: Optional[str] = None
    size: int = 5
    enabled: bool = True

    def select_source(self, items: list[Item]) -> list[Item]:
        """Return the items this category ranks."""
        if not self.source_label:
            return list(items)
        return [item for item in items if item.has_label(self.source_label)]
