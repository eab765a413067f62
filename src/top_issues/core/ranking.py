"""Popularity ranking and top-label reconciliation."""

from typing import Iterable, Optional

from top_issues.core.entities import Item, ScoredItem


def reaction_score(item: Item, subtract_negative: bool) -> int:
    """Compute the popularity score of an item."""
    if subtract_negative:
        return item.positive_reactions - item.negative_reactions
    return item.positive_reactions


def score_items(items: Iterable[Item], subtract_negative: bool) -> list[ScoredItem]:
    """Attach the current score to every item, keeping input order."""
    return [
        ScoredItem(
            id=item.id,
            title=item.title,
            positive_reactions=item.positive_reactions,
            negative_reactions=item.negative_reactions,
            labels=list(item.labels),
            kind=item.kind,
            score=reaction_score(item, subtract_negative),
        )
        for item in items
    ]


def items_with_label(items: Iterable[Item], label: str) -> list[Item]:
    """Return the items that carry ``label``."""
    return [item for item in items if item.has_label(label)]


def _is_eligible(item: ScoredItem, subtract_negative: bool) -> bool:
    if subtract_negative:
        return item.score > 0
    return item.positive_reactions > 0


def rank(
    items: Iterable[Item],
    size: int,
    subtract_negative: bool,
    exclude_label: str = "",
    exclude_ids: Optional[Iterable[int]] = None,
) -> list[ScoredItem]:
    """Select the top ``size`` items by reaction score.

    Items carrying ``exclude_label`` (the dashboard issue) and items whose id
    is in ``exclude_ids`` never rank. Only items with a positive score are
    eligible. Equal scores keep their input order, which is fetch order
    (newest first).

    Args:
        items: Candidate items in fetch order
        size: Maximum number of items to return
        subtract_negative: Subtract thumbs-down from thumbs-up reactions
        exclude_label: Label marking items that must not rank
        exclude_ids: Ids filtered out by configuration

    Returns:
        Ranked items, highest score first
    """
    if size <= 0:
        return []

    excluded = set(exclude_ids or [])
    scored = score_items(items, subtract_negative)
    candidates = [
        item
        for item in scored
        if not (exclude_label and item.has_label(exclude_label))
        and item.id not in excluded
        and _is_eligible(item, subtract_negative)
    ]

    # sorted() is stable, reverse=True included
    candidates = sorted(candidates, key=lambda item: item.score, reverse=True)

    return candidates[:size]


def items_to_unlabel(
    previously_labeled: Iterable[Item], newly_selected: Iterable[Item]
) -> list[Item]:
    """Return previously labeled items that are no longer selected.

    Items are compared by id only, since two fetches of the same issue may
    differ in labels or reaction counts.
    """
    selected_ids = {item.id for item in newly_selected}
    return [item for item in previously_labeled if item.id not in selected_ids]


def items_to_label(selected: Iterable[Item], label: str) -> list[Item]:
    """Return selected items that do not carry ``label`` yet."""
    return [item for item in selected if not item.has_label(label)]


def find_dashboard_issue(
    items: Iterable[Item], label: str, title: str
) -> Optional[Item]:
    """Locate the dashboard issue by label first, by title second."""
    items = list(items)

    labeled = items_with_label(items, label) if label else []
    if labeled:
        return labeled[0]

    for item in items:
        if item.title == title:
            return item

    return None
