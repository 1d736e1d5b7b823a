"""Keyword-based category suggestions for detected transactions.

Public API:
    - :func:`suggest_category`
    - :func:`suggest_categories`
    - :func:`confirm_category`

A category matches when one of its keywords occurs, case-insensitively, as a
substring of the description. Categories are tried in the order given and the
first match wins. Blank keywords never match.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .insights import UNCATEGORIZED
from .logging_setup import get_logger
from .models import CandidateTransaction, Category

_logger = get_logger("expense_insights.categorize")

MAX_CATEGORY_LENGTH = 100


def suggest_category(description: str | None, categories: Iterable[Category]) -> str | None:
    """Return the name of the first category with a keyword in ``description``."""

    haystack = (description or "").lower()
    for cat in categories:
        for kw in cat.keywords:
            needle = str(kw).strip().lower()
            if needle and needle in haystack:
                return cat.name
    return None


def suggest_categories(
    candidates: Iterable[CandidateTransaction], categories: Sequence[Category]
) -> list[str | None]:
    """Suggest a category for each candidate, in input order."""

    out = [suggest_category(c.description, categories) for c in candidates]
    _logger.debug(
        "categorize:suggest candidates=%d matched=%d",
        len(out),
        sum(1 for s in out if s is not None),
    )
    return out


def confirm_category(value: str | None) -> str:
    """Normalize a user-confirmed category: trimmed, capped, ``"Other"`` when blank."""

    return (value or "").strip()[:MAX_CATEGORY_LENGTH] or UNCATEGORIZED


__all__ = ["MAX_CATEGORY_LENGTH", "confirm_category", "suggest_categories", "suggest_category"]
