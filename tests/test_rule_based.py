"""
Tests for transaction-level red flags, severity and ranking.
"""

from __future__ import annotations

import pytest

from benford_screen.data_loader import TransactionRow
from benford_screen.detectors.rule_based import (
    RULE_DEFINITIONS,
    TransactionFlagger,
    flag_suspicious_transactions,
)

from conftest import make_rows

DUPLICATE_REASON = "Multiple identical amounts from same vendor"


# --- Duplicates ---


def test_duplicate_vendor_amounts_are_critical(benford_rows):
    duplicates = make_rows([1234.56] * 4, vendor="Dup Co")
    rows = benford_rows + duplicates
    flagged = flag_suspicious_transactions(rows)

    assert len(flagged) == 4
    assert {f.index for f in flagged} == {1000, 1001, 1002, 1003}
    for f in flagged:
        assert f.reason == DUPLICATE_REASON
        assert f.risk_level == "critical"
        assert f.vendor == "Dup Co"
        assert f.first_digit == 1


def test_three_identical_amounts_are_not_flagged(benford_rows):
    rows = benford_rows + make_rows([1234.56] * 3, vendor="Dup Co")
    assert flag_suspicious_transactions(rows) == []


def test_duplicates_need_a_vendor(benford_rows):
    rows = benford_rows + make_rows([1234.56] * 6, vendor=None)
    assert flag_suspicious_transactions(rows) == []


def test_duplicates_match_trimmed_vendor(benford_rows):
    rows = benford_rows + make_rows([1234.56] * 2, vendor="Dup") + make_rows([1234.56] * 2, vendor=" Dup ")
    flagged = flag_suspicious_transactions(rows)
    assert len(flagged) == 4
    assert all(DUPLICATE_REASON in f.reason for f in flagged)


def test_rows_without_digit_are_never_flagged():
    rows = make_rows([-5000] * 10, vendor="X") + make_rows([0] * 10, vendor="X") + make_rows([120.5, 130.5])
    flagged = flag_suspicious_transactions(rows)
    assert all(f.amount > 0 for f in flagged)


# --- Individual rules ---


def test_overrepresented_first_digit():
    rows = make_rows([900.5 + i for i in range(100)])
    flagged = flag_suspicious_transactions(rows)

    assert len(flagged) == 50
    assert all(f.reason == "Overrepresented first digit (9)" for f in flagged)
    assert all(f.risk_level == "high" for f in flagged)


def test_severity_is_highest_fired_rule(benford_rows):
    rows = benford_rows + make_rows([100000, 8000.5, 2000])
    flagged = flag_suspicious_transactions(rows)

    by_amount = {f.amount: f for f in flagged}
    assert by_amount[100000].reason == "Unusually high amount; Large round number"
    assert by_amount[100000].risk_level == "high"
    assert by_amount[8000.5].reason == "Unusually high amount; High amount with suspicious first digit"
    assert by_amount[8000.5].risk_level == "high"
    assert by_amount[2000].reason == "Large round number"
    assert by_amount[2000].risk_level == "medium"


def test_ordering_by_severity_then_amount(benford_rows):
    rows = benford_rows + make_rows([2000, 100000, 8000.5]) + make_rows([1234.56] * 4, vendor="Dup")
    flagged = flag_suspicious_transactions(rows)

    assert [f.amount for f in flagged] == [1234.56] * 4 + [100000, 8000.5, 2000]
    assert [f.risk_level for f in flagged] == ["critical"] * 4 + ["high", "high", "medium"]
    # equal severity and amount keep dataset order
    assert [f.index for f in flagged[:4]] == [1003, 1004, 1005, 1006]


def test_median_outlier(benford_rows):
    # mean stays high because of one huge amount, median does not
    rows = benford_rows + make_rows([5e6, 30000.5])
    flagged = {f.amount: f for f in flag_suspicious_transactions(rows)}
    assert "Unusually high amount" in flagged[30000.5].reason


# --- Limits ---


def test_output_never_exceeds_fifty():
    rows = make_rows([5000] * 200, vendor="X")
    flagged = flag_suspicious_transactions(rows)

    assert len(flagged) == 50
    assert all(f.risk_level == "critical" for f in flagged)
    assert [f.index for f in flagged] == list(range(50))


def test_empty_input():
    assert flag_suspicious_transactions([]) == []


def test_input_order_is_preserved():
    rows = [TransactionRow(amount=float(a)) for a in [900, 15, 7, 3000, 42]]
    before = list(rows)
    flag_suspicious_transactions(rows)
    assert rows == before


# --- Flagger state ---


def test_summary_counts_before_truncation():
    flagger = TransactionFlagger(verbose=False)
    with pytest.raises(ValueError):
        flagger.summary()

    flagger.flag(make_rows([5000] * 200, vendor="X"))
    summary = flagger.summary().set_index("name")

    assert list(summary["rule_id"]) == list(RULE_DEFINITIONS.keys())
    assert summary.loc["duplicate_vendor_amount", "count"] == 200
    assert summary.loc["large_round_number", "count"] == 200
    assert flagger.total_flagged == 200
    assert len(flagger.results) == 50


def test_custom_limit():
    flagger = TransactionFlagger(max_flagged=5, verbose=False)
    assert len(flagger.flag(make_rows([5000] * 20, vendor="X"))) == 5


def test_verbose_output(capsys):
    TransactionFlagger().flag(make_rows([5000] * 20, vendor="X"))
    out = capsys.readouterr().out
    assert "Step 2/3: Applying 5 rules..." in out
    assert "Flagged: 20, returning top 20" in out


def test_to_dict():
    flagged = flag_suspicious_transactions(make_rows([5000] * 4, vendor="X"))
    data = flagged[0].to_dict()
    assert data == {
        "index": 0,
        "amount": 5000,
        "vendor": "X",
        "first_digit": 5,
        "reason": "Large round number; Overrepresented first digit (5); " + DUPLICATE_REASON,
        "risk_level": "critical",
    }
