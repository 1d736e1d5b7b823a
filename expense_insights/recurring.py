"""Recurring expense detection (rule-based, in-memory only).

A set of transactions is flagged as a recurring suggestion when all of the
following hold for a group sharing the same normalized description:

- at least ``MIN_OCCURRENCES`` members;
- every amount within ``AMOUNT_TOLERANCE`` (relative) of the group median;
- the mean gap between consecutive dates falls in the weekly or monthly range.

Only the mean gap is checked; individual gaps may vary. Nothing here persists
anything: confirming a suggestion is the caller's job, and
:func:`build_recurring_pattern` only prepares the value to store.

Inputs may be :class:`~expense_insights.models.TransactionForDetection`
instances or mapping records with ``id``/``date``/``amount``/``description``
keys. Inputs are never mutated.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from .logging_setup import get_logger
from .models import (
    DetectionRecord,
    Interval,
    RecurringGroup,
    RecurringPattern,
    SuggestedTransaction,
    TransactionForDetection,
)

_logger = get_logger("expense_insights.recurring")

AMOUNT_TOLERANCE = Decimal("0.05")
WEEKLY_DAYS = (5, 9)
MONTHLY_DAYS = (27, 34)
MIN_OCCURRENCES = 3

_ALLOWED_INTERVALS: set[str] = {"weekly", "monthly"}


# ---------------------------------------------------------------------------
# Field access and normalization
# ---------------------------------------------------------------------------


def _get(tx: Any, name: str) -> Any:
    if isinstance(tx, Mapping):
        return tx.get(name)
    return getattr(tx, name, None)


def normalize_description(description: str | None) -> str:
    """Grouping key: trimmed, lowercased, whitespace runs collapsed.

    ``None`` becomes ``""``; empty keys are never grouped.
    """

    if description is None:
        return ""
    return " ".join(str(description).lower().split())


def _to_day(value: Any) -> int | None:
    """Return the proleptic ordinal of an ISO date (string or date object)."""

    if isinstance(value, datetime):
        return value.date().toordinal()
    if isinstance(value, date):
        return value.toordinal()
    if not isinstance(value, str):
        return None
    try:
        # Accept "YYYY-MM-DD" and datetime strings ("YYYY-MM-DDTHH:MM:SS").
        return date.fromisoformat(value.strip()[:10]).toordinal()
    except ValueError:
        return None


def _to_decimal(value: Any) -> Decimal | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation:
        return None
    # NaN/Infinity cannot be ordered or compared against a median.
    return amount if amount.is_finite() else None


def _median(values: Sequence[Decimal]) -> Decimal:
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 1:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) / 2


def _within_tolerance(amount: Decimal, reference: Decimal) -> bool:
    if reference <= 0:
        return amount == reference
    return abs(amount - reference) / reference <= AMOUNT_TOLERANCE


def _classify_interval(mean_gap: float) -> Interval | None:
    if WEEKLY_DAYS[0] <= mean_gap <= WEEKLY_DAYS[1]:
        return "weekly"
    if MONTHLY_DAYS[0] <= mean_gap <= MONTHLY_DAYS[1]:
        return "monthly"
    return None


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------


def _group_by_description(
    transactions: Iterable[DetectionRecord],
) -> dict[str, list[tuple[int, Decimal, DetectionRecord]]]:
    by_key: dict[str, list[tuple[int, Decimal, DetectionRecord]]] = {}
    for tx in transactions:
        key = normalize_description(_get(tx, "description"))
        if not key:
            continue
        day = _to_day(_get(tx, "date"))
        amount = _to_decimal(_get(tx, "amount"))
        if day is None or amount is None:
            _logger.debug(
                "recurring:skip id=%r date=%r amount=%r",
                _get(tx, "id"),
                _get(tx, "date"),
                _get(tx, "amount"),
            )
            continue
        by_key.setdefault(key, []).append((day, amount, tx))
    return by_key


def _evaluate_group(
    key: str, entries: list[tuple[int, Decimal, DetectionRecord]]
) -> RecurringGroup | None:
    if len(entries) < MIN_OCCURRENCES:
        return None

    ordered = sorted(entries, key=lambda e: (e[0], str(_get(e[2], "id"))))

    median = _median([amount for _day, amount, _tx in ordered])
    if not all(_within_tolerance(amount, median) for _day, amount, _tx in ordered):
        _logger.debug("recurring:reject key=%r reason=amount median=%s", key, median)
        return None

    days = [day for day, _amount, _tx in ordered]
    gaps = [b - a for a, b in zip(days, days[1:])]
    mean_gap = sum(gaps) / len(gaps)
    interval = _classify_interval(mean_gap)
    if interval is None:
        _logger.debug("recurring:reject key=%r reason=interval mean_gap=%.2f", key, mean_gap)
        return None

    return RecurringGroup(
        key=key,
        interval=interval,
        median_amount=median,
        mean_gap_days=mean_gap,
        members=tuple(tx for _day, _amount, tx in ordered),
        member_ids=tuple(_get(tx, "id") for _day, _amount, tx in ordered),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def find_recurring_groups(transactions: Iterable[DetectionRecord]) -> list[RecurringGroup]:
    """Return every qualifying recurring group, ordered by normalized key."""

    by_key = _group_by_description(transactions)
    groups: list[RecurringGroup] = []
    for key in sorted(by_key):
        group = _evaluate_group(key, by_key[key])
        if group is not None:
            groups.append(group)
    _logger.debug("recurring:done keys=%d groups=%d", len(by_key), len(groups))
    return groups


def detect_recurring_transaction_ids(transactions: Iterable[DetectionRecord]) -> set[str]:
    """Return ids of transactions belonging to at least one recurring group."""

    ids: set[str] = set()
    for group in find_recurring_groups(transactions):
        ids.update(group.member_ids)
    return ids


def attach_recurring_suggestions(
    transactions: Sequence[DetectionRecord],
) -> list[SuggestedTransaction | dict[str, Any]]:
    """Return copies of ``transactions`` with a ``recurring_suggestion`` flag.

    Mapping inputs produce new ``dict`` objects carrying every original key
    plus the flag. Other inputs produce
    :class:`~expense_insights.models.SuggestedTransaction` values. The input
    sequence and its elements are left untouched and order is preserved.
    """

    recurring_ids = detect_recurring_transaction_ids(transactions)
    out: list[SuggestedTransaction | dict[str, Any]] = []
    for tx in transactions:
        flag = _get(tx, "id") in recurring_ids
        if isinstance(tx, Mapping):
            out.append({**tx, "recurring_suggestion": flag})
        else:
            out.append(
                SuggestedTransaction(
                    id=_get(tx, "id"),
                    date=_get(tx, "date"),
                    amount=_get(tx, "amount"),
                    description=_get(tx, "description"),
                    recurring_suggestion=flag,
                )
            )
    return out


def build_recurring_pattern(
    transaction: DetectionRecord | TransactionForDetection,
    *,
    interval_type: str = "monthly",
) -> RecurringPattern:
    """Prepare the pattern a user confirmation of ``transaction`` would store.

    The description is normalized the same way as for grouping (an empty key
    is stored as ``None``); an unparseable amount becomes ``0``.
    """

    if interval_type not in _ALLOWED_INTERVALS:
        raise ValueError(
            f"Unsupported interval_type: {interval_type!r}. "
            f"Allowed: {sorted(_ALLOWED_INTERVALS)}"
        )
    key = normalize_description(_get(transaction, "description"))
    amount = _to_decimal(_get(transaction, "amount"))
    return RecurringPattern(
        normalized_description=key or None,
        amount_center=amount if amount is not None else Decimal("0"),
        interval_type=interval_type,
    )


def pattern_from_group(group: RecurringGroup) -> RecurringPattern:
    """Pattern for a detected group: its key, median amount, and interval."""

    return RecurringPattern(
        normalized_description=group.key,
        amount_center=group.median_amount,
        interval_type=group.interval,
    )


__all__ = [
    "AMOUNT_TOLERANCE",
    "MIN_OCCURRENCES",
    "MONTHLY_DAYS",
    "WEEKLY_DAYS",
    "attach_recurring_suggestions",
    "build_recurring_pattern",
    "detect_recurring_transaction_ids",
    "find_recurring_groups",
    "normalize_description",
    "pattern_from_group",
]
