"""CLI entry point for top-issues."""

import asyncio
from pathlib import Path
from typing import Optional

import typer

from top_issues.adapters.dashboard import DASHBOARD_HEADER, MarkdownDashboardRenderer, build_footer
from top_issues.adapters.github import GitHubClient
from top_issues.config import ConfigError, Settings, build_categories, get_settings
from top_issues.core import ResultStatus, RunReport
from top_issues.logger import setup_logger
from top_issues.use_cases import RunOptions, TopIssuesService


def main(
    config: Path = typer.Option(Path("config.yaml"), "--config", help="Path to the YAML config"),
    repository: Optional[str] = typer.Option(None, "--repository", help="Repository as owner/name"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Compute everything but change nothing"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override the configured log level"),
) -> None:
    """Label the most upvoted issues and pull requests and publish a dashboard."""
    try:
        settings = get_settings(config)
        if repository:
            settings.repository = repository
        if dry_run:
            settings.general.dry_run = True
        settings.validate()
    except ConfigError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=2)

    setup_logger(level=log_level or settings.logging.level, log_file=settings.logging.file)

    report = asyncio.run(async_run(settings))
    if report.status != ResultStatus.SUCCESS:
        raise typer.Exit(code=1)


def app() -> None:
    """CLI entry point."""
    typer.run(main)


def build_service(settings: Settings) -> TopIssuesService:
    """Wire the tracker, renderer and categories from settings."""
    tracker = GitHubClient(
        token=settings.github_token,
        repository=settings.repository,
        api_url=settings.github.api_url,
        timeout=settings.github.timeout,
        max_retries=settings.github.max_retries,
        initial_retry_delay=settings.github.initial_retry_delay,
    )

    options = RunOptions(
        label=settings.general.label,
        dashboard=settings.general.dashboard,
        dry_run=settings.general.dry_run,
        subtract_negative=settings.general.subtract_negative,
        exclude_ids=settings.general.filter,
        dashboard_title=settings.dashboard.title,
        dashboard_label=settings.dashboard.label,
        dashboard_label_description=settings.dashboard.label_description,
        dashboard_label_colour=settings.dashboard.label_colour,
        dashboard_header=DASHBOARD_HEADER,
        footer_factory=None if settings.dashboard.hide_footer else build_footer,
        show_score=settings.dashboard.show_total_reactions,
    )

    return TopIssuesService(
        tracker=tracker,
        renderer=MarkdownDashboardRenderer(),
        categories=build_categories(settings),
        options=options,
    )


async def async_run(settings: Settings) -> RunReport:
    """Async implementation of run command."""
    print("\n" + "=" * 70)
    print(f"⭐  TOP ISSUES - {settings.repository}")
    print("=" * 70)

    print("\n⚙️  Settings:")
    print(f"  • Top list size: {settings.top_list_size}")
    print(f"  • Subtract negative reactions: {settings.general.subtract_negative}")
    print(f"  • Label top items: {settings.general.label}")
    print(f"  • Dashboard: {settings.general.dashboard}")
    if settings.general.filter:
        print(f"  • Excluded: {', '.join(f'#{i}' for i in settings.general.filter)}")
    if settings.dry_run:
        print("  • 🔍 Dry run: no labels or issues will be changed")

    service = build_service(settings)
    report = await service.run()

    print_summary(report)
    return report


def print_summary(report: RunReport) -> None:
    """Print a per-category summary of the run."""
    print("\n" + "=" * 70)

    if report.nothing_to_do:
        print("💤 NOTHING TO DO")
        print("=" * 70)
        return

    if report.status == ResultStatus.FATAL_ERROR:
        print(f"❌ RUN FAILED: {report.error}")
        print("=" * 70)
        return

    for category_result in report.categories:
        if not category_result.category.enabled:
            continue
        selected = ", ".join(f"#{item.id}" for item in category_result.selected) or "-"
        print(f"  {category_result.category.section_title}: {selected}")
        if category_result.to_label or category_result.to_unlabel:
            print(
                f"    └─ +{len(category_result.to_label)} / "
                f"-{len(category_result.to_unlabel)} label changes"
            )

    failures = report.failures
    if failures:
        print(f"\n⚠️  {len(failures)} operation(s) failed:")
        for failure in failures:
            print(f"  • {failure.operation}: {failure.error}")
    else:
        print("\n✅ DONE" + (" (dry run)" if report.dry_run else ""))
    print("=" * 70)


if __name__ == "__main__":
    app()
