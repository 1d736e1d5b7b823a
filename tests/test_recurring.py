# ruff: noqa: E501
import copy
from decimal import Decimal

import pytest

from expense_insights import (
    RecurringPattern,
    SuggestedTransaction,
    TransactionForDetection,
    attach_recurring_suggestions,
    build_recurring_pattern,
    detect_recurring_transaction_ids,
    find_recurring_groups,
    normalize_description,
)
from expense_insights.recurring import pattern_from_group


def _tx(id_, date, amount, description="Netflix", **extra):
    return {"id": id_, "date": date, "amount": amount, "description": description, **extra}


def _netflix():
    return [
        _tx("a", "2024-01-05", 45, "Netflix"),
        _tx("b", "2024-02-05", 46, "netflix"),
        _tx("c", "2024-03-06", 44, "NETFLIX"),
    ]


# ---- detect_recurring_transaction_ids -----------------------------------------


def test_monthly_pattern_with_case_differences():
    assert detect_recurring_transaction_ids(_netflix()) == {"a", "b", "c"}


def test_empty_input():
    assert detect_recurring_transaction_ids([]) == set()


def test_two_occurrences_are_not_enough():
    assert detect_recurring_transaction_ids(_netflix()[:2]) == set()


def test_amount_outside_tolerance_rejects_group():
    txs = [
        _tx("a", "2024-01-05", 45),
        _tx("b", "2024-02-05", 45),
        _tx("c", "2024-03-06", 50),  # 11% above the median of 45
    ]
    assert detect_recurring_transaction_ids(txs) == set()


def test_mean_gap_between_ranges_rejects_group():
    txs = [
        _tx("a", "2024-01-01", 10),
        _tx("b", "2024-01-16", 10),
        _tx("c", "2024-01-31", 10),
    ]
    assert detect_recurring_transaction_ids(txs) == set()


def test_weekly_pattern():
    txs = [
        _tx("w1", "2024-05-01", 12.5, "Gym class"),
        _tx("w2", "2024-05-08", 12.5, "Gym class"),
        _tx("w3", "2024-05-15", 12.0, "Gym class"),
        _tx("w4", "2024-05-22", 12.5, "Gym class"),
    ]
    groups = find_recurring_groups(txs)

    assert [g.interval for g in groups] == ["weekly"]
    assert groups[0].mean_gap_days == 7
    assert detect_recurring_transaction_ids(txs) == {"w1", "w2", "w3", "w4"}


def test_only_mean_gap_is_checked():
    # Gaps of 2 and 12 days average to 7, which classifies as weekly.
    txs = [
        _tx("a", "2024-05-01", 20, "Laundry"),
        _tx("b", "2024-05-03", 20, "Laundry"),
        _tx("c", "2024-05-15", 20, "Laundry"),
    ]
    assert detect_recurring_transaction_ids(txs) == {"a", "b", "c"}


@pytest.mark.parametrize(
    ("dates", "expected"),
    [
        (["2024-01-01", "2024-01-10", "2024-01-19"], "weekly"),  # mean 9
        (["2024-01-01", "2024-01-06", "2024-01-11"], "weekly"),  # mean 5
        (["2024-01-01", "2024-01-28", "2024-02-24"], "monthly"),  # mean 27
        (["2024-01-01", "2024-02-04", "2024-03-09"], "monthly"),  # mean 34
        (["2024-01-01", "2024-01-11", "2024-01-21"], None),  # mean 10
        (["2024-01-01", "2024-01-05", "2024-01-09"], None),  # mean 4
        (["2024-01-01", "2024-02-05", "2024-03-11"], None),  # mean 35
    ],
)
def test_interval_boundaries_are_inclusive(dates, expected):
    txs = [_tx(str(i), d, 30, "Rent share") for i, d in enumerate(dates)]
    groups = find_recurring_groups(txs)

    assert [g.interval for g in groups] == ([expected] if expected else [])


def test_blank_descriptions_are_never_grouped():
    txs = [
        _tx("a", "2024-01-05", 45, None),
        _tx("b", "2024-02-05", 45, "   "),
        _tx("c", "2024-03-06", 45, ""),
    ]
    assert detect_recurring_transaction_ids(txs) == set()


def test_whitespace_and_case_are_normalized_for_grouping():
    txs = [
        _tx("a", "2024-01-10", 15.9, "Spotify  Premium"),
        _tx("b", "2024-02-10", 15.9, " spotify premium "),
        _tx("c", "2024-03-10", 15.9, "SPOTIFY\tPREMIUM"),
    ]
    groups = find_recurring_groups(txs)

    assert [g.key for g in groups] == ["spotify premium"]


def test_even_count_median_averages_middle_values():
    # Median is 105: every amount is within 5% of it (but 110 is not within 5% of 100).
    txs = [
        _tx("a", "2024-01-01", 100, "Insurance"),
        _tx("b", "2024-02-01", 110, "Insurance"),
        _tx("c", "2024-03-01", 100, "Insurance"),
        _tx("d", "2024-04-01", 110, "Insurance"),
    ]
    groups = find_recurring_groups(txs)

    assert len(groups) == 1
    assert groups[0].median_amount == Decimal("105")


def test_zero_median_requires_exact_amounts():
    zero = [_tx(str(i), d, 0, "Free trial") for i, d in enumerate(["2024-01-01", "2024-02-01", "2024-03-01"])]
    mixed = zero[:2] + [_tx("x", "2024-03-01", 1, "Free trial")]

    assert detect_recurring_transaction_ids(zero) == {"0", "1", "2"}
    assert detect_recurring_transaction_ids(mixed) == set()


def test_unparseable_dates_are_left_out():
    txs = _netflix()
    txs[2] = _tx("c", "not-a-date", 44, "Netflix")

    assert detect_recurring_transaction_ids(txs) == set()


def test_groups_are_independent():
    txs = _netflix() + [
        _tx("r1", "2024-01-01", 1200, "Rent"),
        _tx("r2", "2024-02-01", 1200, "Rent"),
        _tx("x", "2024-01-20", 9.9, "Random shop"),
    ]
    assert detect_recurring_transaction_ids(txs) == {"a", "b", "c"}


def test_result_does_not_depend_on_input_order():
    txs = _netflix()
    shuffled = [txs[2], txs[0], txs[1]]

    assert detect_recurring_transaction_ids(shuffled) == detect_recurring_transaction_ids(txs)
    assert find_recurring_groups(shuffled) == find_recurring_groups(txs)


def test_group_members_are_date_sorted():
    txs = list(reversed(_netflix()))
    (group,) = find_recurring_groups(txs)

    assert group.member_ids == ("a", "b", "c")
    assert group.interval == "monthly"
    assert group.median_amount == Decimal("45")
    assert group.transaction_ids == frozenset({"a", "b", "c"})


def test_dataclass_inputs_are_supported():
    txs = [
        TransactionForDetection(id="a", date="2024-01-05", amount=Decimal("45.00"), description="Netflix"),
        TransactionForDetection(id="b", date="2024-02-05", amount=Decimal("46.00"), description="Netflix"),
        TransactionForDetection(id="c", date="2024-03-06", amount=Decimal("44.00"), description="Netflix"),
    ]
    assert detect_recurring_transaction_ids(txs) == {"a", "b", "c"}


# ---- attach_recurring_suggestions -------------------------------------------------


def test_attach_adds_flag_without_mutating_input():
    txs = _netflix() + [_tx("z", "2024-03-09", 5, "Snacks", category="Food")]
    before = copy.deepcopy(txs)

    out = attach_recurring_suggestions(txs)

    assert txs == before
    assert [row["recurring_suggestion"] for row in out] == [True, True, True, False]
    for original, annotated in zip(txs, out, strict=True):
        assert annotated is not original
        assert {k: v for k, v in annotated.items() if k != "recurring_suggestion"} == original
    assert out[3]["category"] == "Food"


def test_attach_on_dataclasses_returns_suggested_transactions():
    txs = [TransactionForDetection(id="only", date="2024-01-01", amount=3, description="Once")]

    out = attach_recurring_suggestions(txs)

    assert out == [
        SuggestedTransaction(
            id="only", date="2024-01-01", amount=3, description="Once", recurring_suggestion=False
        )
    ]


def test_attach_is_idempotent():
    txs = _netflix()

    assert attach_recurring_suggestions(txs) == attach_recurring_suggestions(txs)


def test_attach_empty():
    assert attach_recurring_suggestions([]) == []


# ---- normalization and patterns -------------------------------------------------


def test_normalize_description():
    assert normalize_description(None) == ""
    assert normalize_description("  Grab   FOOD\n KL ") == "grab food kl"


def test_build_recurring_pattern():
    pattern = build_recurring_pattern(_tx("a", "2024-01-05", 45.9, "  Netflix  Premium "))

    assert pattern == RecurringPattern(
        normalized_description="netflix premium",
        amount_center=Decimal("45.9"),
        interval_type="monthly",
    )


def test_build_recurring_pattern_blank_description_and_bad_amount():
    pattern = build_recurring_pattern({"id": "a", "description": "  ", "amount": "n/a"})

    assert pattern.normalized_description is None
    assert pattern.amount_center == 0


def test_build_recurring_pattern_rejects_unknown_interval():
    with pytest.raises(ValueError, match="interval_type"):
        build_recurring_pattern(_netflix()[0], interval_type="yearly")


def test_pattern_from_group():
    (group,) = find_recurring_groups(_netflix())

    assert pattern_from_group(group) == RecurringPattern("netflix", Decimal("45"), "monthly")
