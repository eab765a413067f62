"""Shared fixtures."""

import pytest

from top_issues.core import Item


@pytest.fixture
def dummy_issues() -> list[Item]:
    """Five issues in fetch order with (positive, negative) reactions."""
    return [
        Item(id=1, title="Title 1", positive_reactions=2, negative_reactions=0, labels=["a-label"]),
        Item(id=2, title="Title 2", positive_reactions=3, negative_reactions=5, labels=["another-label"]),
        Item(id=3, title="Title 3", positive_reactions=5, negative_reactions=1, labels=["another-label"]),
        Item(id=4, title="Title 4", positive_reactions=0, negative_reactions=0, labels=["another-label2"]),
        Item(id=5, title="Title 5", positive_reactions=1, negative_reactions=0, labels=["another-label3"]),
    ]
