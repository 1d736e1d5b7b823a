"""CSV export of confirmed transactions.

Output columns (exact order): ``Date, Description, Category, Amount,
Currency, Source file``. Quoting follows RFC 4180 via the stdlib :mod:`csv`
module: cells are quoted only when they contain a comma, a quote, or a line
break, with embedded quotes doubled.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from io import StringIO

from .categorize import confirm_category
from .config import DEFAULT_CURRENCY
from .models import LedgerTransaction

EXPORT_HEADER = ("Date", "Description", "Category", "Amount", "Currency", "Source file")


def _fmt_amount(d: Decimal) -> str:
    return f"{d.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP):.2f}"


def select_for_export(
    transactions: Iterable[LedgerTransaction],
    *,
    date_from: str | None = None,
    date_to: str | None = None,
    category: str | None = None,
) -> list[LedgerTransaction]:
    """Filter by inclusive ISO date bounds and exact category; newest first."""

    rows = [
        t
        for t in transactions
        if (not date_from or t.date[:10] >= date_from)
        and (not date_to or t.date[:10] <= date_to)
        and (not category or t.category == category)
    ]
    # Stable: same-day rows keep their input order.
    return sorted(rows, key=lambda t: t.date[:10], reverse=True)


def render_transactions_csv(
    transactions: Iterable[LedgerTransaction],
    *,
    date_from: str | None = None,
    date_to: str | None = None,
    category: str | None = None,
) -> str:
    """Render the filtered transactions as CSV text (``\\n`` line endings)."""

    with StringIO() as buf:
        writer = csv.writer(buf, lineterminator="\n")
        writer.writerow(EXPORT_HEADER)
        for t in select_for_export(
            transactions, date_from=date_from, date_to=date_to, category=category
        ):
            writer.writerow(
                [
                    t.date[:10],
                    t.description or "",
                    confirm_category(t.category),
                    _fmt_amount(t.amount),
                    t.currency or DEFAULT_CURRENCY,
                    t.source_file or "",
                ]
            )
        return buf.getvalue()


def export_filename(today: date | None = None) -> str:
    return f"transactions-{(today or date.today()).isoformat()}.csv"


__all__ = ["EXPORT_HEADER", "export_filename", "render_transactions_csv", "select_for_export"]
