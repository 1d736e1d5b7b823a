"""Monthly spending aggregation over confirmed transactions.

Builds the :class:`~expense_insights.models.InsightPayload` a summary or
advice collaborator consumes: only aggregated amounts and category names,
never descriptions or extracted text. Uses confirmed categories only;
uncategorized spend is reported under ``"Other"``.
"""

from __future__ import annotations

import calendar
import re
from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from .config import DEFAULT_CURRENCY
from .logging_setup import get_logger
from .models import Budget, BudgetStatus, InsightPayload, LedgerTransaction

_logger = get_logger("expense_insights.insights")

UNCATEGORIZED = "Other"

_MONTH_RE = re.compile(r"^(\d{4})-(\d{1,2})$")


def _parse_month(month: str) -> tuple[int, int]:
    m = _MONTH_RE.fullmatch(month.strip()) if isinstance(month, str) else None
    if m is None:
        raise ValueError("Invalid month format; use YYYY-MM")
    year, mon = int(m.group(1)), int(m.group(2))
    if year < 1 or not 1 <= mon <= 12:
        raise ValueError("Invalid month format; use YYYY-MM")
    return year, mon


def month_range(month: str) -> tuple[date, date]:
    """First and last calendar day of ``"YYYY-MM"``."""

    year, mon = _parse_month(month)
    last_day = calendar.monthrange(year, mon)[1]
    return date(year, mon, 1), date(year, mon, last_day)


def previous_month(month: str) -> str:
    """``"YYYY-MM"`` of the month before ``month``."""

    year, mon = _parse_month(month)
    if mon == 1:
        return f"{year - 1:04d}-12"
    return f"{year:04d}-{mon - 1:02d}"


def _in_month(transactions: Iterable[LedgerTransaction], month: str) -> list[LedgerTransaction]:
    start, end = month_range(month)
    lo, hi = start.isoformat(), end.isoformat()
    # ISO strings order lexicographically; compare on the date part only.
    return [t for t in transactions if lo <= t.date[:10] <= hi]


def spent_by_category(
    transactions: Iterable[LedgerTransaction], *, month: str
) -> dict[str, Decimal]:
    """Sum of amounts per confirmed category within ``month``."""

    totals: dict[str, Decimal] = {}
    for t in _in_month(transactions, month):
        cat = t.category or UNCATEGORIZED
        totals[cat] = totals.get(cat, Decimal("0")) + t.amount
    return totals


def aggregate_insight_data(
    transactions: Iterable[LedgerTransaction],
    *,
    month: str,
    currency: str = DEFAULT_CURRENCY,
    budgets: Iterable[Budget] = (),
) -> InsightPayload:
    """Aggregate ``transactions`` for ``month`` and compare with the month before.

    Parameters
    ----------
    transactions:
        The user's confirmed transactions (any date range; filtering happens
        here).
    month:
        Target month as ``"YYYY-MM"``. Raises ``ValueError`` when malformed.
    currency:
        Reporting currency label. Amounts are summed as stored; no conversion.
    budgets:
        Budgets of any month; only those for ``month`` contribute to
        ``budget_status``.
    """

    rows = list(transactions)
    year, mon = _parse_month(month)
    month_key = f"{year:04d}-{mon:02d}"

    breakdown = spent_by_category(rows, month=month_key)
    total = sum(breakdown.values(), Decimal("0"))
    prev_total = sum(
        (t.amount for t in _in_month(rows, previous_month(month_key))), Decimal("0")
    )

    status: dict[str, BudgetStatus] = {}
    for b in budgets:
        if b.year != year or b.month != mon:
            continue
        status[b.category_name] = BudgetStatus(
            budget=b.amount, spent=breakdown.get(b.category_name, Decimal("0"))
        )

    _logger.debug(
        "insights:aggregate month=%s rows=%d categories=%d budgets=%d",
        month_key,
        len(rows),
        len(breakdown),
        len(status),
    )

    return InsightPayload(
        month=month_key,
        total_spending=total,
        currency=currency,
        category_breakdown=breakdown,
        previous_month_total=prev_total,
        budget_status=status or None,
    )


__all__ = [
    "UNCATEGORIZED",
    "aggregate_insight_data",
    "month_range",
    "previous_month",
    "spent_by_category",
]
