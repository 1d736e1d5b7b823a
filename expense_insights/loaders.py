"""Load transaction histories, budgets and categories from CSV or JSON files.

Accepted shapes
---------------
- JSON: a top-level list of objects.
- CSV: a header row. Field names are matched case-insensitively; the export
  headers written by :mod:`expense_insights.export` (``Date``,
  ``Description``, ``Category``, ``Amount``, ``Currency``, ``Source file``)
  are accepted as well, so an export can be loaded back.

Transaction rows without an ``id`` get their 1-based row number as id. Rows
are validated with the pydantic DTOs in :mod:`expense_insights.models`; the
first invalid row raises ``ValueError`` naming its position.
"""

from __future__ import annotations

import csv
import json
from collections.abc import Mapping
from os import PathLike
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from .logging_setup import get_logger
from .models import (
    Budget,
    BudgetRow,
    Category,
    CategoryRow,
    LedgerTransaction,
    TransactionRow,
)

_logger = get_logger("expense_insights.loaders")

_FIELD_ALIASES: dict[str, str] = {
    "source file": "source_file",
    "confirmed_category": "category",
    "category name": "category_name",
}


def _normalize_keys(row: Mapping[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for k, v in row.items():
        if k is None:
            continue
        key = str(k).strip().lower()
        out[_FIELD_ALIASES.get(key, key)] = v
    return out


def _read_records(path: str | PathLike[str]) -> list[dict[str, Any]]:
    p = Path(path)
    if p.suffix.lower() == ".json":
        with p.open(encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list) or not all(isinstance(r, Mapping) for r in data):
            raise ValueError(f"JSON file must contain a list of objects: {p}")
        return [_normalize_keys(r) for r in data]

    with p.open(encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        if not reader.fieldnames:
            raise csv.Error(f"CSV appears to have no header row: {p}")
        return [
            _normalize_keys(r)
            for r in reader
            if any((v or "").strip() for v in r.values() if isinstance(v, str))
        ]


def _validate[M: BaseModel](model: type[M], records: list[dict[str, Any]], kind: str) -> list[M]:
    out: list[M] = []
    for n, rec in enumerate(records, start=1):
        try:
            out.append(model.model_validate(rec))
        except ValidationError as exc:
            raise ValueError(f"invalid {kind} row {n}: {exc}") from exc
    return out


def load_transactions(path: str | PathLike[str]) -> list[LedgerTransaction]:
    """Read a transaction history file into :class:`LedgerTransaction` rows."""

    records = _read_records(path)
    for n, rec in enumerate(records, start=1):
        if rec.get("id") in (None, ""):
            rec["id"] = str(n)
    rows = _validate(TransactionRow, records, "transaction")
    _logger.debug("loaders:transactions path=%s rows=%d", path, len(rows))
    return [r.to_ledger() for r in rows]


def load_budgets(path: str | PathLike[str]) -> list[Budget]:
    """Read budgets (``category_name, month, year, amount``) from a file."""

    rows = _validate(BudgetRow, _read_records(path), "budget")
    _logger.debug("loaders:budgets path=%s rows=%d", path, len(rows))
    return [r.to_budget() for r in rows]


def load_categories(path: str | PathLike[str]) -> list[Category]:
    """Read categories (``name, keywords``) from a file, ordered by name."""

    rows = _validate(CategoryRow, _read_records(path), "category")
    _logger.debug("loaders:categories path=%s rows=%d", path, len(rows))
    return sorted((r.to_category() for r in rows), key=lambda c: c.name)


__all__ = ["load_budgets", "load_categories", "load_transactions"]
