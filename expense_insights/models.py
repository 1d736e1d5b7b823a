"""Data models and type aliases for ``expense_insights``.

Value objects are frozen, slotted dataclasses: they carry no identity beyond
their fields and are never mutated after construction. File-boundary DTOs
(rows read from user-provided CSV/JSON) are pydantic models so that
validation errors point at the offending field.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator

# ---------------------------------------------------------------------------
# Detector output
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CandidateTransaction:
    """An unconfirmed transaction guess produced from extracted document text.

    Attributes
    ----------
    date:
        ISO ``YYYY-MM-DD``; always a valid calendar date.
    amount:
        Non-negative, quantized to two decimals, at most ``99999999.99``.
    currency:
        Currency code inferred from the source line or the configured default.
    description:
        Source line with amount tokens removed; ``"Transaction"`` when empty.
    """

    date: str
    amount: Decimal
    currency: str
    description: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "amount": float(self.amount),
            "currency": self.currency,
            "description": self.description,
        }


# ---------------------------------------------------------------------------
# Recognizer input/output
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TransactionForDetection:
    """View of a persisted transaction used for recurring-pattern detection."""

    id: str
    date: str
    amount: Decimal | float | int
    description: str | None = None


@dataclass(frozen=True, slots=True)
class SuggestedTransaction(TransactionForDetection):
    """A :class:`TransactionForDetection` with its recurring suggestion flag."""

    recurring_suggestion: bool = False


# Either a dataclass view or a mapping-like record with the same keys.
type DetectionRecord = TransactionForDetection | Mapping[str, Any]

type Interval = Literal["weekly", "monthly"]


@dataclass(frozen=True, slots=True)
class RecurringGroup:
    """A group of same-description transactions that repeats regularly.

    ``members`` are sorted by date ascending (ties broken by id).
    """

    key: str
    interval: Interval
    median_amount: Decimal
    mean_gap_days: float
    members: tuple[DetectionRecord, ...] = field(default_factory=tuple)
    member_ids: tuple[str, ...] = field(default_factory=tuple)

    @property
    def transaction_ids(self) -> frozenset[str]:
        return frozenset(self.member_ids)


@dataclass(frozen=True, slots=True)
class RecurringPattern:
    """What a user confirmation of "this is recurring" would persist."""

    normalized_description: str | None
    amount_center: Decimal
    interval_type: str = "monthly"


# ---------------------------------------------------------------------------
# Ledger rows, budgets, insights
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LedgerTransaction:
    """A persisted transaction as exported from the host application.

    ``category`` is the user-confirmed category (``None`` when unset).
    """

    id: str
    date: str
    amount: Decimal
    currency: str = "MYR"
    description: str | None = None
    category: str | None = None
    source_file: str | None = None

    def for_detection(self) -> TransactionForDetection:
        return TransactionForDetection(
            id=self.id, date=self.date, amount=self.amount, description=self.description
        )


@dataclass(frozen=True, slots=True)
class Budget:
    category_name: str
    month: int
    year: int
    amount: Decimal


@dataclass(frozen=True, slots=True)
class Category:
    """A spending category and the description keywords that suggest it."""

    name: str
    keywords: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class BudgetStatus:
    budget: Decimal
    spent: Decimal


@dataclass(frozen=True, slots=True)
class InsightPayload:
    """Aggregated numbers for one month; no descriptions or raw text.

    ``budget_status`` is ``None`` when no budget applies to the month.
    """

    month: str
    total_spending: Decimal
    currency: str
    category_breakdown: Mapping[str, Decimal]
    previous_month_total: Decimal
    budget_status: Mapping[str, BudgetStatus] | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "month": self.month,
            "total_spending": float(self.total_spending),
            "currency": self.currency,
            "category_breakdown": {k: float(v) for k, v in self.category_breakdown.items()},
            "previous_month_total": float(self.previous_month_total),
        }
        if self.budget_status is not None:
            out["budget_status"] = {
                k: {"budget": float(v.budget), "spent": float(v.spent)}
                for k, v in self.budget_status.items()
            }
        return out


# ---------------------------------------------------------------------------
# DTOs for file I/O
# ---------------------------------------------------------------------------


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str) and not v.strip():
        return None
    return v


class TransactionRow(BaseModel):
    """Validated row of a transaction history file (CSV or JSON)."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True, coerce_numbers_to_str=True)

    id: str
    date: dt.date
    amount: Decimal
    currency: str = "MYR"
    description: str | None = None
    category: str | None = None
    source_file: str | None = None

    @field_validator("currency", mode="before")
    @classmethod
    def _default_currency(cls, v: Any) -> Any:
        v = _blank_to_none(v)
        return "MYR" if v is None else str(v).strip().upper()

    @field_validator("description", "category", "source_file", mode="before")
    @classmethod
    def _blank_optional(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("amount", mode="before")
    @classmethod
    def _strip_thousands(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.replace(",", "").strip()
        return v

    def to_ledger(self) -> LedgerTransaction:
        return LedgerTransaction(
            id=self.id,
            date=self.date.isoformat(),
            amount=self.amount,
            currency=self.currency,
            description=self.description,
            category=self.category,
            source_file=self.source_file,
        )


class BudgetRow(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    category_name: str
    month: int
    year: int
    amount: Decimal

    @field_validator("month")
    @classmethod
    def _month_in_range(cls, v: int) -> int:
        if not 1 <= v <= 12:
            raise ValueError("month must be within 1..12")
        return v

    def to_budget(self) -> Budget:
        return Budget(
            category_name=self.category_name, month=self.month, year=self.year, amount=self.amount
        )


class CategoryRow(BaseModel):
    """Row of a categories file.

    ``keywords`` is a JSON list, or a ``;``-separated string in CSV files.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    name: str
    keywords: list[str] = []

    @field_validator("name")
    @classmethod
    def _name_present(cls, v: str) -> str:
        if not v:
            raise ValueError("name must not be blank")
        return v

    @field_validator("keywords", mode="before")
    @classmethod
    def _split_keywords(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(";")
        if isinstance(v, list):
            return [s for s in (str(k).strip() for k in v if k is not None) if s]
        return v

    def to_category(self) -> Category:
        return Category(name=self.name, keywords=tuple(self.keywords))


__all__ = [
    "Budget",
    "BudgetRow",
    "BudgetStatus",
    "CandidateTransaction",
    "Category",
    "CategoryRow",
    "DetectionRecord",
    "InsightPayload",
    "Interval",
    "LedgerTransaction",
    "RecurringGroup",
    "RecurringPattern",
    "SuggestedTransaction",
    "TransactionForDetection",
    "TransactionRow",
]
