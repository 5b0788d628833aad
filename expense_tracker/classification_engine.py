"""
Expense Auto-Classification Engine

Provides keyword pattern matching for automatic expense categorization.
Groups are tried in a fixed order and the first match wins.
"""

import re
from typing import Iterable, Optional

from expense_tracker.aggregation import find_category_by_name
from expense_tracker.models import Category

UNCATEGORIZED_ID = "uncategorized"
FALLBACK_CATEGORY_NAME = "Other"

KEYWORD_GROUPS: tuple[tuple[str, re.Pattern], ...] = (
    (
        "Food",
        re.compile(r"food|grocery|restaurant|cafe|coffee|pizza|burger|lunch|dinner|breakfast|meal|snack"),
    ),
    (
        "Transportation",
        re.compile(r"gas|fuel|bus|train|uber|lyft|taxi|car|vehicle|transport|travel|flight|airline"),
    ),
    (
        "Housing",
        re.compile(
            r"rent|mortgage|apartment|house|housing|maintenance|repair|furniture"
            r"|utilities|electricity|water|internet"
        ),
    ),
    (
        "Entertainment",
        re.compile(r"movie|theatre|game|concert|music|netflix|spotify|hulu|disney|entertainment|party"),
    ),
    (
        "Education",
        re.compile(
            r"tuition|school|college|university|course|book|textbook|education"
            r"|class|seminar|workshop|training"
        ),
    ),
    (
        "Health",
        re.compile(r"doctor|hospital|clinic|medicine|pharmacy|health|medical|dental|vision|insurance|therapy"),
    ),
    (
        "Shopping",
        re.compile(r"shopping|clothes|clothing|shoes|accessory|electronics|gadget|amazon|walmart|target|store"),
    ),
    (
        "Utilities",
        re.compile(r"utility|bill|phone|cellphone|mobile|subscription"),
    ),
)


def match_keyword_group(description: str) -> Optional[str]:
    """
    Find the keyword group a description belongs to.

    Args:
        description: Free-text expense description

    Returns:
        Name of the first matching group, or None if no group matches
    """
    if not description:
        return None
    lowered = description.lower()
    for group_name, pattern in KEYWORD_GROUPS:
        if pattern.search(lowered):
            return group_name
    return None


def classify_category(description: str, categories: Iterable[Category]) -> str:
    """
    Pick a category id for an expense description.

    The matched group resolves to the configured category with the same name
    (case-insensitive). When that category is missing, or nothing matched,
    the "Other" category is used, and failing that UNCATEGORIZED_ID.

    Args:
        description: Free-text expense description
        categories: Configured categories

    Returns:
        A category id
    """
    category_list = list(categories)
    group_name = match_keyword_group(description)
    if group_name is not None:
        category = find_category_by_name(category_list, group_name)
        if category is not None:
            return category.id

    fallback = find_category_by_name(category_list, FALLBACK_CATEGORY_NAME)
    if fallback is not None:
        return fallback.id
    return UNCATEGORIZED_ID
