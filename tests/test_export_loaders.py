# ruff: noqa: E501
import json
import textwrap
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from expense_insights import LedgerTransaction, render_transactions_csv
from expense_insights.export import export_filename, select_for_export
from expense_insights.loaders import load_budgets, load_transactions
from expense_insights.models import Budget


def _dedent(s: str) -> str:
    return textwrap.dedent(s).lstrip("\n")


LEDGER = [
    LedgerTransaction("1", "2024-03-01", Decimal("12.5"), "MYR", "Kopi", "Dining", "receipt.pdf"),
    LedgerTransaction("2", "2024-03-05", Decimal("40"), "USD", 'Lunch, "team"', None, None),
    LedgerTransaction("3", "2024-02-10", Decimal("7.25"), "MYR", None, "Transport", None),
]


# ---- export ------------------------------------------------------------------


def test_render_csv_snapshot():
    text = render_transactions_csv(LEDGER)

    assert text == _dedent(
        '''
        Date,Description,Category,Amount,Currency,Source file
        2024-03-05,"Lunch, ""team""",Other,40.00,USD,
        2024-03-01,Kopi,Dining,12.50,MYR,receipt.pdf
        2024-02-10,,Transport,7.25,MYR,
        '''
    )


def test_render_csv_quotes_line_breaks():
    row = LedgerTransaction("1", "2024-01-01", Decimal("1"), description="two\nlines")

    assert '"two\nlines"' in render_transactions_csv([row])


def test_select_for_export_filters():
    assert [t.id for t in select_for_export(LEDGER, date_from="2024-03-01")] == ["2", "1"]
    assert [t.id for t in select_for_export(LEDGER, date_to="2024-03-01")] == ["1", "3"]
    assert [t.id for t in select_for_export(LEDGER, category="Transport")] == ["3"]


def test_export_filename():
    assert export_filename(date(2024, 3, 1)) == "transactions-2024-03-01.csv"


# ---- loaders -------------------------------------------------------------------


def test_load_transactions_from_json(tmp_path: Path):
    path = tmp_path / "history.json"
    path.write_text(
        json.dumps(
            [
                {"id": 1, "date": "2024-01-05", "amount": 45, "description": "Netflix"},
                {"id": "b", "date": "2024-02-05", "amount": "1,046.10", "currency": "usd", "category": ""},
            ]
        ),
        encoding="utf-8",
    )

    rows = load_transactions(path)

    assert rows == [
        LedgerTransaction("1", "2024-01-05", Decimal("45"), "MYR", "Netflix", None, None),
        LedgerTransaction("b", "2024-02-05", Decimal("1046.10"), "USD", None, None, None),
    ]


def test_load_transactions_accepts_export_headers(tmp_path: Path):
    path = tmp_path / "export.csv"
    path.write_text(render_transactions_csv(LEDGER), encoding="utf-8")

    rows = load_transactions(path)

    # Export files carry no ids; row numbers are used instead.
    assert [r.id for r in rows] == ["1", "2", "3"]
    assert rows[0].description == 'Lunch, "team"'
    assert rows[0].category == "Other"
    assert rows[1].source_file == "receipt.pdf"


def test_load_transactions_reports_bad_row(tmp_path: Path):
    path = tmp_path / "history.csv"
    path.write_text(
        _dedent(
            """
            id,date,amount,description
            a,2024-01-05,45.00,Netflix
            b,2024-02-31,46.00,Netflix
            """
        ),
        encoding="utf-8",
    )

    with pytest.raises(ValueError, match="transaction row 2"):
        load_transactions(path)


def test_load_transactions_rejects_non_list_json(tmp_path: Path):
    path = tmp_path / "history.json"
    path.write_text('{"id": "a"}', encoding="utf-8")

    with pytest.raises(ValueError, match="list of objects"):
        load_transactions(path)


def test_load_budgets(tmp_path: Path):
    path = tmp_path / "budgets.csv"
    path.write_text(
        _dedent(
            """
            category_name,month,year,amount
            Groceries,3,2024,300
            Dining,3,2024,100.50
            """
        ),
        encoding="utf-8",
    )

    assert load_budgets(path) == [
        Budget("Groceries", 3, 2024, Decimal("300")),
        Budget("Dining", 3, 2024, Decimal("100.50")),
    ]


def test_load_budgets_rejects_bad_month(tmp_path: Path):
    path = tmp_path / "budgets.json"
    path.write_text(
        json.dumps([{"category_name": "Groceries", "month": 13, "year": 2024, "amount": 1}]),
        encoding="utf-8",
    )

    with pytest.raises(ValueError, match="budget row 1"):
        load_budgets(path)
