"""Public interface for the ``expense_insights`` package.

This module exposes the package's API functions and public models as the
stable import surface. There is no runtime logic here, only re-exports.
"""

from .categorize import confirm_category, suggest_category
from .detection import detect_transactions
from .export import render_transactions_csv
from .insights import aggregate_insight_data, month_range, previous_month
from .models import (
    Budget,
    BudgetStatus,
    CandidateTransaction,
    Category,
    InsightPayload,
    LedgerTransaction,
    RecurringGroup,
    RecurringPattern,
    SuggestedTransaction,
    TransactionForDetection,
)
from .recurring import (
    attach_recurring_suggestions,
    build_recurring_pattern,
    detect_recurring_transaction_ids,
    find_recurring_groups,
    normalize_description,
)

__all__ = [
    # API
    "detect_transactions",
    "detect_recurring_transaction_ids",
    "attach_recurring_suggestions",
    "find_recurring_groups",
    "normalize_description",
    "build_recurring_pattern",
    "aggregate_insight_data",
    "month_range",
    "previous_month",
    "render_transactions_csv",
    "suggest_category",
    "confirm_category",
    # Models
    "CandidateTransaction",
    "TransactionForDetection",
    "SuggestedTransaction",
    "RecurringGroup",
    "RecurringPattern",
    "LedgerTransaction",
    "Budget",
    "BudgetStatus",
    "Category",
    "InsightPayload",
]
