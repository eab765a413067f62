"""Core interfaces for adapters."""

from abc import ABC, abstractmethod
from typing import Optional

from top_issues.core.entities import Item, ItemKind, LabelOperation, ScoredItem


class IssueTracker(ABC):
    """Interface for reading and mutating issues on the hosting platform."""

    @abstractmethod
    async def fetch_open_items(self, kind: ItemKind) -> list[Item]:
        """Fetch every open item of the given kind, newest first."""
        pass

    @abstractmethod
    async def mutate_label(self, item_id: int, label: str, op: LabelOperation) -> None:
        """Add or remove a label on an item."""
        pass

    @abstractmethod
    async def ensure_label(self, label: str, color: str, description: str) -> None:
        """Create the label or bring its colour and description up to date."""
        pass

    @abstractmethod
    async def publish_dashboard(
        self, title: str, body: str, label: str, existing_id: Optional[int] = None
    ) -> None:
        """Update the existing dashboard issue or create a new one."""
        pass


class DashboardRenderer(ABC):
    """Interface for rendering the dashboard document."""

    @abstractmethod
    def render(
        self,
        sections: dict[str, list[ScoredItem]],
        header: str,
        footer: str,
        show_score: bool,
    ) -> str:
        """Render ranked sections into a dashboard body."""
        pass
