"""Heuristic transaction detection from extracted document text.

Scans OCR/PDF/DOCX text for currency-prefixed amounts and date-like tokens and
emits :class:`~expense_insights.models.CandidateTransaction` rows for the user
to review. Everything here is a pure function of its input: no I/O, no global
state, and no exceptions for malformed text.

Heuristics
----------
- Amounts must follow a currency marker (``RM``, ``MYR``, ``USD`` or ``$``) so
  that account numbers, reference IDs, and phone numbers are not read as
  money. Integer parts longer than 12 digits and values above
  ``99,999,999.99`` are rejected.
- Digits, currency markers and month names are matched as ASCII only, so
  look-alike letters and non-ASCII digits never count.
- The first valid date found anywhere in the text is applied to every
  candidate. Dates are not associated with individual lines.
- When nothing is detected, a single zero-amount placeholder is returned so
  the review step always has an editable row.
"""

from __future__ import annotations

import re
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from .config import DEFAULT_CURRENCY
from .logging_setup import get_logger
from .models import CandidateTransaction

_logger = get_logger("expense_insights.detection")

PLACEHOLDER_DESCRIPTION = "Transaction"
MAX_DESCRIPTION_LENGTH = 500
MAX_AMOUNT_DIGITS = 12
MAX_AMOUNT_VALUE = Decimal("99999999.99")

_CENTS = Decimal("0.01")

# Currency marker, optional whitespace, then the number (group 1).
_AMOUNT_RE = re.compile(
    r"(?:RM|MYR|USD|\$)\s*(-?\d+(?:,\d{3})*(?:\.\d{2})?)",
    re.IGNORECASE | re.ASCII,
)

# Alternatives in priority order: D/M/Y, Y-M-D, "D Mon Y".
_DATE_RE = re.compile(
    r"(\d{1,2})[/-](\d{1,2})[/-](\d{2,4})"
    r"|(\d{4})[/-](\d{1,2})[/-](\d{1,2})"
    r"|(\d{1,2})\s+(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\s+(\d{2,4})",
    re.IGNORECASE | re.ASCII,
)

_MONTHS: dict[str, int] = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

_USD_MARKER_RE = re.compile(r"USD|\$", re.IGNORECASE | re.ASCII)
_MYR_MARKER_RE = re.compile(r"RM|MYR", re.IGNORECASE | re.ASCII)

_WS_RE = re.compile(r"\s+")
_LINE_SPLIT_RE = re.compile(r"\r?\n")


# ---------------------------------------------------------------------------
# Token helpers
# ---------------------------------------------------------------------------


def _expand_year(y: int) -> int:
    return y + 2000 if y < 100 else y


def _date_from_match(m: re.Match[str]) -> date | None:
    if m.group(1) is not None:
        d, mo, y = int(m.group(1)), int(m.group(2)), _expand_year(int(m.group(3)))
    elif m.group(4) is not None:
        y, mo, d = int(m.group(4)), int(m.group(5)), int(m.group(6))
    else:
        d = int(m.group(7))
        mo = _MONTHS[m.group(8)[:3].lower()]
        y = _expand_year(int(m.group(9)))
    try:
        return date(y, mo, d)
    except ValueError:
        # Day 32, month 13, Feb 30, ...
        return None


def find_dates(text: str) -> list[date]:
    """Return every valid calendar date found in ``text``, in text order."""

    found: list[date] = []
    for m in _DATE_RE.finditer(text):
        parsed = _date_from_match(m)
        if parsed is not None:
            found.append(parsed)
    return found


def parse_amount(raw: str) -> Decimal | None:
    """Parse a matched amount token into a non-negative 2-decimal ``Decimal``.

    Thousands separators are stripped and the sign is discarded. Returns
    ``None`` when the token looks like an identifier rather than money (more
    than ``MAX_AMOUNT_DIGITS`` integer digits) or exceeds ``MAX_AMOUNT_VALUE``.
    """

    cleaned = raw.replace(",", "").strip()
    if not cleaned.isascii():
        return None
    integer_part = cleaned.lstrip("-").split(".", 1)[0]
    if len(integer_part) > MAX_AMOUNT_DIGITS:
        return None
    try:
        value = abs(Decimal(cleaned)).quantize(_CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return None
    if value > MAX_AMOUNT_VALUE:
        return None
    return value


def infer_currency(line: str, default: str = DEFAULT_CURRENCY) -> str:
    """Infer a currency from any marker on ``line`` (not just the amount token)."""

    if _USD_MARKER_RE.search(line):
        return "USD"
    if _MYR_MARKER_RE.search(line):
        return "MYR"
    return default


def _describe(line: str) -> str:
    stripped = _WS_RE.sub(" ", _AMOUNT_RE.sub("", line)).strip()
    return stripped[:MAX_DESCRIPTION_LENGTH] or PLACEHOLDER_DESCRIPTION


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def detect_transactions(
    text: str | None,
    *,
    default_currency: str = DEFAULT_CURRENCY,
    today: date | None = None,
) -> list[CandidateTransaction]:
    """Detect candidate transactions in extracted document text.

    Parameters
    ----------
    text:
        Raw extracted text. ``None``, empty and whitespace-only input yield an
        empty list.
    default_currency:
        Currency used when a line carries no recognizable marker and for the
        placeholder candidate.
    today:
        Date used when the text contains no valid date and for the
        placeholder candidate. Defaults to :meth:`datetime.date.today`.

    Returns
    -------
    list[CandidateTransaction]
        One entry per accepted amount, in line order and left-to-right within
        a line. Never empty for non-blank input.
    """

    if not isinstance(text, str):
        return []
    trimmed = text.strip()
    if not trimmed:
        return []

    today_iso = (today or date.today()).isoformat()
    dates = find_dates(trimmed)
    default_date = dates[0].isoformat() if dates else today_iso

    candidates: list[CandidateTransaction] = []
    lines = [ln.strip() for ln in _LINE_SPLIT_RE.split(trimmed)]
    for line in filter(None, lines):
        for m in _AMOUNT_RE.finditer(line):
            amount = parse_amount(m.group(1))
            if amount is None:
                _logger.debug("detect:skip-amount token=%r", m.group(0))
                continue
            candidates.append(
                CandidateTransaction(
                    date=default_date,
                    amount=amount,
                    currency=infer_currency(line, default_currency),
                    description=_describe(line),
                )
            )

    if not candidates:
        _logger.debug("detect:fallback lines=%d dates=%d", len(lines), len(dates))
        return [
            CandidateTransaction(
                date=today_iso,
                amount=Decimal("0.00"),
                currency=default_currency,
                description=PLACEHOLDER_DESCRIPTION,
            )
        ]

    _logger.debug(
        "detect:done candidates=%d lines=%d date=%s", len(candidates), len(lines), default_date
    )
    return candidates


__all__ = [
    "MAX_AMOUNT_DIGITS",
    "MAX_AMOUNT_VALUE",
    "PLACEHOLDER_DESCRIPTION",
    "detect_transactions",
    "find_dates",
    "infer_currency",
    "parse_amount",
]
