"""
Pytest fixtures for Benford screening tests.
"""

from __future__ import annotations

import pytest

from benford_screen.config import BENFORD_EXPECTED
from benford_screen.data_loader import TransactionRow


def benford_exact_amounts() -> list[float]:
    """1,000 distinct amounts whose first digits match Benford's table exactly."""
    amounts = []
    for digit, expected_pct in BENFORD_EXPECTED.items():
        count = round(expected_pct * 10)
        for j in range(count):
            amounts.append(digit * 100 + j % 100 + j / 1000)
    return amounts


def make_rows(amounts, vendor=None) -> list[TransactionRow]:
    """Rows sharing one vendor (or none)."""
    return [TransactionRow(amount=amount, vendor=vendor) for amount in amounts]


@pytest.fixture
def benford_amounts() -> list[float]:
    return benford_exact_amounts()


@pytest.fixture
def benford_rows() -> list[TransactionRow]:
    """Benford-exact population spread over 20 vendors, no repeated vendor/amount pair."""
    return [
        TransactionRow(amount=amount, vendor=f"V{i % 20}")
        for i, amount in enumerate(benford_exact_amounts())
    ]
