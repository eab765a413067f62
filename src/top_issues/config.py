"""Configuration management."""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from top_issues.core import Category, ItemKind


class ConfigError(Exception):
    """Invalid or incomplete configuration."""


@dataclass
class GeneralConfig:
    """General ranking settings."""
    top_list_size: int = 5
    subtract_negative: bool = True
    label: bool = False
    dashboard: bool = True
    dry_run: bool = False
    filter: list[int] = field(default_factory=list)


@dataclass
class DashboardConfig:
    """Dashboard issue settings."""
    title: str = "Top Issues Dashboard"
    label: str = ":star: top issues dashboard"
    label_description: str = "Top issues dashboard."
    label_colour: str = "#006B75"
    show_total_reactions: bool = True
    hide_footer: bool = False


@dataclass
class CategoryConfig:
    """Settings of one built-in category."""
    enabled: bool = True
    source_label: Optional[str] = None
    top_label: str = ""
    top_label_description: str = ""
    top_label_colour: str = ""
    size: Optional[int] = None


@dataclass
class CustomCategoryConfig:
    """Settings of a user-defined category."""
    label: str
    top_label: str
    kind: ItemKind = ItemKind.ISSUE
    top_label_description: str = ""
    top_label_colour: str = "#A23599"
    size: Optional[int] = None
    enabled: bool = True


@dataclass
class GitHubConfig:
    """GitHub API settings."""
    api_url: str = "https://api.github.com"
    timeout: float = 30.0
    max_retries: int = 3
    initial_retry_delay: float = 2.0


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "INFO"
    file: Optional[str] = None


def _default_issues() -> CategoryConfig:
    return CategoryConfig(
        enabled=True,
        top_label=":star: top issue",
        top_label_description="Top issue.",
        top_label_colour="#027E9D",
    )


def _default_bugs() -> CategoryConfig:
    return CategoryConfig(
        enabled=False,
        source_label="bug",
        top_label=":star: top bug",
        top_label_description="Top bug.",
        top_label_colour="#B60205",
    )


def _default_features() -> CategoryConfig:
    return CategoryConfig(
        enabled=False,
        source_label="enhancement",
        top_label=":star: top feature",
        top_label_description="Top feature request.",
        top_label_colour="#0E8A16",
    )


def _default_pull_requests() -> CategoryConfig:
    return CategoryConfig(
        enabled=False,
        top_label=":star: top pull request",
        top_label_description="Top pull request.",
        top_label_colour="#41A285",
    )


@dataclass
class Settings:
    """Application settings."""

    # Credentials (from environment only)
    github_token: Optional[str] = None
    repository: Optional[str] = None

    # Config sections
    general: GeneralConfig = field(default_factory=GeneralConfig)
    dashboard: DashboardConfig = field(default_factory=DashboardConfig)
    issues: CategoryConfig = field(default_factory=_default_issues)
    bugs: CategoryConfig = field(default_factory=_default_bugs)
    features: CategoryConfig = field(default_factory=_default_features)
    pull_requests: CategoryConfig = field(default_factory=_default_pull_requests)
    custom: list[CustomCategoryConfig] = field(default_factory=list)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def top_list_size(self) -> int:
        return self.general.top_list_size

    @property
    def dry_run(self) -> bool:
        return self.general.dry_run

    def validate(self) -> None:
        """Check that credentials and repository are present."""
        if not self.github_token:
            raise ConfigError("GitHub token is missing (set GITHUB_TOKEN)")
        if not self.repository or not re.fullmatch(r"[^/\s]+/[^/\s]+", self.repository):
            raise ConfigError(
                f"Repository must be given as 'owner/name', got: {self.repository!r}"
            )


_CATEGORY_SECTIONS = ("issues", "bugs", "features", "pull_requests")


def parse_bool(value: Any) -> bool:
    """Parse a boolean from YAML or environment values."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off", ""):
        return False
    raise ConfigError(f"Invalid boolean value: {value!r}")


def parse_id_list(value: Any) -> list[int]:
    """Parse a list of issue numbers.

    Accepts a list, or a string separated by commas, newlines or square
    brackets (e.g. ``"[1, 2]\\n3"``). Blank entries are ignored.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        entries = [str(entry).strip() for entry in value]
    else:
        entries = [entry.strip() for entry in re.split(r"[\[\]\n,]+", str(value))]

    ids = []
    for entry in entries:
        if not entry:
            continue
        try:
            ids.append(int(entry.lstrip("#")))
        except ValueError as e:
            raise ConfigError(f"Invalid issue number in filter: {entry!r}") from e
    return ids


def parse_kind(value: Any) -> ItemKind:
    """Parse a custom category kind (``issues`` or ``pull_requests``)."""
    text = str(value).strip().lower().replace("-", "_")
    if text in ("issue", "issues"):
        return ItemKind.ISSUE
    if text in ("pull_request", "pull_requests", "pr", "prs"):
        return ItemKind.PULL_REQUEST
    raise ConfigError(f"Unknown category kind: {value!r}")


def load_config(config_path: Path = Path("config.yaml")) -> dict:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _apply_section(target: Any, values: dict) -> None:
    for key, value in values.items():
        if not hasattr(target, key):
            raise ConfigError(f"Unknown setting '{key}' in {type(target).__name__}")
        setattr(target, key, value)


def _custom_category(values: dict) -> CustomCategoryConfig:
    if not values.get("label") or not values.get("top_label"):
        raise ConfigError("Custom categories need 'label' and 'top_label'")
    values = dict(values)
    if "kind" in values:
        values["kind"] = parse_kind(values["kind"])
    try:
        return CustomCategoryConfig(**values)
    except TypeError as e:
        raise ConfigError(f"Invalid custom category: {e}") from e


def _check_unique_custom(custom: list[CustomCategoryConfig]) -> None:
    seen: set[tuple[str, ItemKind]] = set()
    for entry in custom:
        if (entry.label, entry.kind) in seen:
            raise ConfigError(
                f"Duplicate custom category '{entry.label}' ({entry.kind.value})"
            )
        seen.add((entry.label, entry.kind))


def get_settings(
    config_path: Path = Path("config.yaml"),
    environ: Optional[dict[str, str]] = None,
) -> Settings:
    """Get application settings from YAML config and environment."""
    env = os.environ if environ is None else environ

    # Load YAML config
    config = load_config(config_path)

    settings = Settings(
        github_token=env.get("GITHUB_TOKEN") or None,
        repository=config.get("repository") or None,
    )

    # Apply YAML config
    if "general" in config:
        _apply_section(settings.general, config["general"] or {})

    if "dashboard" in config:
        _apply_section(settings.dashboard, config["dashboard"] or {})

    for name in _CATEGORY_SECTIONS:
        if name in config:
            _apply_section(getattr(settings, name), config[name] or {})

    if "custom" in config:
        settings.custom = [_custom_category(entry) for entry in config["custom"] or []]
        _check_unique_custom(settings.custom)

    if "github" in config:
        _apply_section(settings.github, config["github"] or {})

    if "logging" in config:
        _apply_section(settings.logging, config["logging"] or {})

    # Environment overrides
    if env.get("GITHUB_REPOSITORY"):
        settings.repository = env["GITHUB_REPOSITORY"]
    if env.get("TOP_ISSUES_DRY_RUN"):
        settings.general.dry_run = parse_bool(env["TOP_ISSUES_DRY_RUN"])
    if env.get("TOP_ISSUES_FILTER"):
        settings.general.filter = env["TOP_ISSUES_FILTER"]

    settings.general.filter = parse_id_list(settings.general.filter)

    return settings


def build_categories(settings: Settings) -> list[Category]:
    """Build the ordered category list: built-ins first, then custom ones."""
    default_size = settings.general.top_list_size
    builtins = [
        ("issues", "Top issues", ItemKind.ISSUE, settings.issues),
        ("bugs", "Top bugs", ItemKind.ISSUE, settings.bugs),
        ("features", "Top feature requests", ItemKind.ISSUE, settings.features),
        ("pull_requests", "Top PRs", ItemKind.PULL_REQUEST, settings.pull_requests),
    ]

    categories = [
        Category(
            name=name,
            section_title=title,
            kind=kind,
            source_label=section.source_label or None,
            top_label=section.top_label,
            top_label_color=section.top_label_colour,
            top_label_description=section.top_label_description,
            size=section.size if section.size is not None else default_size,
            enabled=section.enabled,
        )
        for name, title, kind, section in builtins
    ]

    _check_unique_custom(settings.custom)
    for custom in settings.custom:
        noun = "pull requests" if custom.kind == ItemKind.PULL_REQUEST else "issues"
        categories.append(
            Category(
                name=f"custom:{custom.label}",
                section_title=f"Top '{custom.label}' {noun}",
                kind=custom.kind,
                source_label=custom.label,
                top_label=custom.top_label,
                top_label_color=custom.top_label_colour,
                top_label_description=custom.top_label_description,
                size=custom.size if custom.size is not None else default_size,
                enabled=custom.enabled,
            )
        )

    return categories
