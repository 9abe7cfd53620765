"""
Tests for vendor-level Benford profiles, pattern checks and ranking.
"""

from __future__ import annotations

import copy
import pickle

import pytest

from benford_screen.data_loader import TransactionRow, dataset_from_records
from benford_screen.detectors.vendor import VendorRiskAnalyzer, analyze_vendors

from conftest import benford_exact_amounts, make_rows


# --- Partitioning ---


def test_vendor_with_nine_transactions_is_excluded():
    rows = make_rows([100 + i for i in range(9)], vendor="Small")
    assert analyze_vendors(rows) == []


def test_vendor_with_ten_transactions_is_included():
    rows = make_rows([100 + i for i in range(10)], vendor="Enough")
    vendors = analyze_vendors(rows)
    assert [v.vendor for v in vendors] == ["Enough"]
    assert vendors[0].transaction_count == 10


def test_vendor_names_are_trimmed_and_blank_vendors_ignored():
    rows = (
        make_rows([120 + i for i in range(5)], vendor="ACME")
        + make_rows([130 + i for i in range(5)], vendor="  ACME ")
        + make_rows([140 + i for i in range(20)], vendor=None)
        + make_rows([150 + i for i in range(20)], vendor="   ")
    )
    vendors = analyze_vendors(rows)
    assert [v.vendor for v in vendors] == ["ACME"]
    assert vendors[0].transaction_count == 10


def test_invalid_amounts_count_towards_partition_size():
    rows = make_rows([0, -5] + [300 + i for i in range(8)], vendor="Mixed")
    vendors = analyze_vendors(rows)
    assert vendors[0].transaction_count == 10
    assert sum(vendors[0].digit_distribution.values()) == pytest.approx(100.0)


# --- Patterns ---


def test_round_amount_vendor():
    """100 transactions of 1000 from one vendor: round numbers and digit 1 dominance."""
    vendors = analyze_vendors(make_rows([1000] * 100, vendor="X"))

    assert len(vendors) == 1
    analysis = vendors[0]
    assert analysis.risk_level == "critical"
    assert analysis.mad > 0.022
    assert analysis.suspicious_patterns == (
        "100.0% of amounts are round numbers",
        "Digit 1 dominates with 100.0%",
    )
    assert analysis.digit_distribution[1] == pytest.approx(100.0)
    assert analysis.digit_distribution[9] == 0


def test_high_digit_vendor():
    vendors = analyze_vendors(make_rows([801.5 + i for i in range(10)], vendor="Eights"))
    assert vendors[0].suspicious_patterns == (
        "High digits (7-9) represent 100.0% of transactions",
        "Digit 8 dominates with 100.0%",
    )


def test_patterns_below_limits_do_not_fire():
    # 3 of 10 round (30%, not above), digits 7-9 at 20% (not above), max digit share 40%
    amounts = [110, 120, 130, 151.5, 2.5, 2.25, 3.5, 4.5, 7.5, 9.5]
    vendors = analyze_vendors(make_rows(amounts, vendor="Plain"))
    assert vendors[0].suspicious_patterns == ()


def test_custom_thresholds():
    analyzer = VendorRiskAnalyzer(min_transactions=3, round_number_pct=90.0, verbose=False)
    vendors = analyzer.analyze(make_rows([1000, 2000, 3000], vendor="Tiny"))
    assert len(vendors) == 1
    assert vendors[0].suspicious_patterns == ("100.0% of amounts are round numbers",)


# --- Ranking ---


def test_vendors_ranked_by_risk_then_mad():
    rows = (
        make_rows(benford_exact_amounts(), vendor="Natural")
        + make_rows([150.5 + i for i in range(5)] + [250.5 + i for i in range(5)], vendor="Split")
        + make_rows([1000] * 10, vendor="Round")
    )
    vendors = analyze_vendors(rows)

    assert [v.vendor for v in vendors] == ["Round", "Split", "Natural"]
    assert [v.risk_level for v in vendors] == ["critical", "critical", "low"]
    assert vendors[0].mad > vendors[1].mad


def test_equal_risk_and_mad_keeps_first_seen_order():
    rows = make_rows([500.5] * 10, vendor="B") + make_rows([500.5] * 10, vendor="A")
    assert [v.vendor for v in analyze_vendors(rows)] == ["B", "A"]


# --- Results ---


def test_analysis_is_immutable():
    analysis = analyze_vendors(make_rows([1000] * 10, vendor="X"))[0]
    with pytest.raises(TypeError):
        analysis.digit_distribution[1] = 0.0
    with pytest.raises(AttributeError):
        analysis.mad = 0.0


def test_chi_square_scaled_to_whole_partition():
    # two rows without a leading digit, eight rows leading with 3
    rows = make_rows([0, -5] + [300 + i for i in range(8)], vendor="Mixed")
    analysis = analyze_vendors(rows)[0]

    assert analysis.transaction_count == 10
    assert analysis.digit_distribution[3] == pytest.approx(100.0)
    assert analysis.chi_square == pytest.approx(45.2)


def test_analysis_survives_pickle_and_deepcopy():
    analysis = analyze_vendors(make_rows([1000] * 10, vendor="X"))[0]

    restored = pickle.loads(pickle.dumps(analysis))
    assert restored == analysis
    assert restored.digit_distribution[1] == pytest.approx(100.0)
    with pytest.raises(TypeError):
        restored.digit_distribution[1] = 0.0

    assert copy.deepcopy(analysis) == analysis


def test_to_dict():
    analysis = analyze_vendors(make_rows([1000] * 10, vendor="X"))[0]
    data = analysis.to_dict()
    assert data["vendor"] == "X"
    assert data["transaction_count"] == 10
    assert data["suspicious_patterns"] == list(analysis.suspicious_patterns)
    assert sorted(data["digit_distribution"]) == list(range(1, 10))


def test_accepts_cleaned_dataset():
    dataset = dataset_from_records([{"amount": 120 + i, "vendor": "ACME"} for i in range(12)])
    assert analyze_vendors(dataset)[0].transaction_count == 12


def test_risk_distribution():
    analyzer = VendorRiskAnalyzer(verbose=False)
    with pytest.raises(ValueError):
        analyzer.risk_distribution()

    analyzer.analyze(make_rows([1000] * 10, vendor="X") + make_rows(benford_exact_amounts(), vendor="N"))
    dist = analyzer.risk_distribution().set_index("risk_level")
    assert dist.loc["critical", "count"] == 1
    assert dist.loc["low", "count"] == 1
    assert dist["percentage"].sum() == pytest.approx(100.0)


def test_verbose_output(capsys):
    VendorRiskAnalyzer().analyze(make_rows([1000] * 10, vendor="X"))
    out = capsys.readouterr().out
    assert "with 10+ transactions: 1" in out


def test_rows_are_not_modified():
    rows = [TransactionRow(amount=float(1000 + i), vendor=" X ") for i in range(10)]
    before = list(rows)
    analyze_vendors(rows)
    assert rows == before
