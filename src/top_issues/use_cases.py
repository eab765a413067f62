"""Business logic use cases."""

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from top_issues.core import (
    Category,
    CategoryResult,
    DashboardRenderer,
    IssueTracker,
    Item,
    ItemKind,
    LabelOperation,
    OperationResult,
    ResultStatus,
    RunReport,
    TrackerError,
    find_dashboard_issue,
    items_to_label,
    items_to_unlabel,
    items_with_label,
    rank,
)

logger = logging.getLogger(__name__)


@dataclass
class RunOptions:
    """Run-wide switches passed to the service."""

    label: bool = False
    dashboard: bool = True
    dry_run: bool = False
    subtract_negative: bool = True
    exclude_ids: list[int] = field(default_factory=list)
    dashboard_title: str = "Top Issues Dashboard"
    dashboard_label: str = ":star: top issues dashboard"
    dashboard_label_description: str = "Top issues dashboard."
    dashboard_label_colour: str = "#006B75"
    dashboard_header: str = ""
    footer_factory: Optional[Callable[[], str]] = None
    show_score: bool = True


class TopIssuesService:
    """Rank open items, reconcile top labels and publish the dashboard."""

    def __init__(
        self,
        tracker: IssueTracker,
        renderer: DashboardRenderer,
        categories: list[Category],
        options: RunOptions,
    ) -> None:
        self.tracker = tracker
        self.renderer = renderer
        self.categories = categories
        self.options = options

    def has_work(self) -> bool:
        """Whether any category and any output mode is enabled."""
        any_category = any(category.enabled for category in self.categories)
        any_output = self.options.label or self.options.dashboard
        return any_category and any_output

    async def run(self) -> RunReport:
        """Execute one full run.

        A snapshot failure aborts the run with a fatal status. Failed label or
        issue mutations are reported and processing continues.
        """
        report = RunReport(dry_run=self.options.dry_run)

        if not self.has_work():
            logger.info("Nothing to do 💤 (no enabled categories or outputs)")
            report.nothing_to_do = True
            return report

        try:
            snapshot = await self.fetch_snapshot()
        except TrackerError as e:
            logger.error("Could not retrieve open items: %s", e)
            report.status = ResultStatus.FATAL_ERROR
            report.error = str(e)
            return report

        # Located on the pre-mutation snapshot, by label first, then by title.
        dashboard_issue = find_dashboard_issue(
            snapshot[ItemKind.ISSUE], self.options.dashboard_label, self.options.dashboard_title
        )
        exclude_ids = list(self.options.exclude_ids)
        if dashboard_issue is not None:
            exclude_ids.append(dashboard_issue.id)

        for category in self.categories:
            report.categories.append(
                await self.process_category(category, snapshot, exclude_ids)
            )

        if self.options.dashboard:
            await self.publish_dashboard(report, dashboard_issue)

        if report.failures:
            report.status = ResultStatus.RECOVERABLE_ERROR
            logger.warning("Run finished with %d failed operation(s)", len(report.failures))

        return report

    async def fetch_snapshot(self) -> dict[ItemKind, list[Item]]:
        """Fetch every open item needed for this run, all pages."""
        kinds = {ItemKind.ISSUE}
        kinds.update(category.kind for category in self.categories if category.enabled)

        snapshot: dict[ItemKind, list[Item]] = {kind: [] for kind in ItemKind}
        for kind in ItemKind:
            if kind in kinds:
                snapshot[kind] = await self.tracker.fetch_open_items(kind)
        return snapshot

    async def process_category(
        self,
        category: Category,
        snapshot: dict[ItemKind, list[Item]],
        exclude_ids: Optional[list[int]] = None,
    ) -> CategoryResult:
        """Rank one category and reconcile its top label."""
        if exclude_ids is None:
            exclude_ids = self.options.exclude_ids
        result = CategoryResult(category=category)
        if not category.enabled:
            return result

        pool = snapshot[category.kind]
        result.selected = rank(
            category.select_source(pool),
            category.size,
            self.options.subtract_negative,
            exclude_label=self.options.dashboard_label,
            exclude_ids=exclude_ids,
        )
        currently_labeled = items_with_label(pool, category.top_label)
        result.to_label = items_to_label(result.selected, category.top_label)
        result.to_unlabel = items_to_unlabel(currently_labeled, result.selected)

        logger.info(
            "%s: %d selected, %d to label, %d to unlabel",
            category.section_title,
            len(result.selected),
            len(result.to_label),
            len(result.to_unlabel),
        )

        if not self.options.label:
            return result

        ensured = await self._attempt(
            "ensure label",
            lambda: self.tracker.ensure_label(
                category.top_label,
                category.top_label_color,
                category.top_label_description,
            ),
            label=category.top_label,
        )
        result.operations.append(ensured)
        if not ensured.ok:
            logger.error(
                "Skipping label changes for '%s': label could not be initialised",
                category.top_label,
            )
            return result

        for item in result.to_label:
            result.operations.append(
                await self._mutate(item.id, category.top_label, LabelOperation.ADD)
            )
        for item in result.to_unlabel:
            result.operations.append(
                await self._mutate(item.id, category.top_label, LabelOperation.REMOVE)
            )

        return result

    async def publish_dashboard(
        self, report: RunReport, existing: Optional[Item] = None
    ) -> None:
        """Render the dashboard and create or update its issue."""
        sections = {
            category_result.category.section_title: category_result.selected
            for category_result in report.categories
        }
        report.dashboard_body = self.renderer.render(
            sections,
            self.options.dashboard_header,
            self.options.footer_factory() if self.options.footer_factory else "",
            self.options.show_score,
        )

        label = self.options.dashboard_label
        ensured = await self._attempt(
            "ensure label",
            lambda: self.tracker.ensure_label(
                label,
                self.options.dashboard_label_colour,
                self.options.dashboard_label_description,
            ),
            label=label,
        )
        report.dashboard_operations.append(ensured)

        existing_id = existing.id if existing else None
        operation = "update dashboard" if existing else "create dashboard"
        report.dashboard_operations.append(
            await self._attempt(
                operation,
                lambda: self.tracker.publish_dashboard(
                    self.options.dashboard_title,
                    report.dashboard_body,
                    label,
                    existing_id,
                ),
                item_id=existing_id,
            )
        )

    async def _mutate(self, item_id: int, label: str, op: LabelOperation) -> OperationResult:
        return await self._attempt(
            f"{op.value} label",
            lambda: self.tracker.mutate_label(item_id, label, op),
            item_id=item_id,
            label=label,
        )

    async def _attempt(
        self,
        operation: str,
        call: Callable[[], Awaitable[None]],
        item_id: Optional[int] = None,
        label: Optional[str] = None,
    ) -> OperationResult:
        """Run a mutating call, or only log it in dry-run mode."""
        target = self._describe_target(item_id, label)

        if self.options.dry_run:
            logger.info("[dry-run] would %s%s", operation, target)
            return OperationResult(
                operation=operation, item_id=item_id, label=label, dry_run=True
            )

        try:
            await call()
        except TrackerError as e:
            logger.error("Could not %s%s: %s", operation, target, e)
            return OperationResult(
                operation=operation,
                status=ResultStatus.RECOVERABLE_ERROR,
                item_id=item_id,
                label=label,
                error=str(e),
            )

        logger.debug("Done: %s%s", operation, target)
        return OperationResult(operation=operation, item_id=item_id, label=label)

    @staticmethod
    def _describe_target(item_id: Optional[int], label: Optional[str]) -> str:
        parts = []
        if label is not None:
            parts.append(f"'{label}'")
        if item_id is not None:
            parts.append(f"#{item_id}")
        return (" " + " on ".join(parts)) if parts else ""
