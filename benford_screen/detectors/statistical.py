"""
Statistical Screens for Benford's Law (digit-distribution analysis)

Building blocks shared by every level of the analysis:
1. First-digit extraction - leading significant digit of an amount
2. Digit frequencies - observed vs expected distribution over digits 1-9
3. Deviation metrics - Chi-square and MAD (Mean Absolute Deviation)
4. Compliance - MAD threshold ladder (Nigrini, 2012)

All functions here are pure: no printing, no state, same input -> same output.
Invalid amounts (non-numeric, <= 0, NaN, +-inf) never raise, they simply
yield no digit and are left out of the distribution.
"""

import math
from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, NamedTuple, Optional, Sequence

import numpy as np
from scipy import stats

from ..config import (
    BENFORD_EXPECTED,
    CHI2_CRITICAL,
    CHI2_DEGREES_OF_FREEDOM,
    DIGITS,
    Assessment,
    RiskLevel,
    Thresholds,
)


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class DigitFrequency:
    """Observed vs expected share of one leading digit."""
    digit: int
    count: int
    observed: float   # percentage
    expected: float   # percentage
    deviation: float  # |observed - expected|, percentage points


class Compliance(NamedTuple):
    """Outcome of the MAD threshold ladder."""
    assessment: str
    risk_level: str


@dataclass(frozen=True)
class StatisticalResult:
    """Result of a statistical test."""
    name: str
    statistic: float
    p_value: Optional[float]
    is_anomaly: bool
    threshold: float
    description: str


# =============================================================================
# First Digit
# =============================================================================

def extract_first_digit(amount) -> Optional[int]:
    """
    Extract the first significant (non-zero) digit of an amount.

    The amount is rendered as a plain positional decimal (no grouping, no
    exponent), so 0.0034 -> 3, 50000 -> 5 and 1e-7 -> 1.

    Returns:
        Digit 1-9, or None for non-numeric, non-positive or non-finite input
    """
    if isinstance(amount, (str, bytes, bool)):
        return None

    if isinstance(amount, Decimal):
        if not amount.is_finite() or amount <= 0:
            return None
        rendered = format(amount, "f")
    elif isinstance(amount, int):
        if amount <= 0:
            return None
        rendered = str(amount)
    else:
        try:
            value = float(amount)
        except (TypeError, ValueError):
            return None
        if not np.isfinite(value) or value <= 0:
            return None
        rendered = np.format_float_positional(value, trim="-")

    for char in rendered:
        if char.isdigit() and char != "0":
            return int(char)
    return None


# =============================================================================
# Digit Frequencies
# =============================================================================

def calculate_digit_frequencies(amounts: Iterable) -> List[DigitFrequency]:
    """
    Build the observed-vs-expected first-digit table.

    Args:
        amounts: Any iterable of amounts; invalid ones are skipped

    Returns:
        Nine DigitFrequency records, digits 1..9 in ascending order
    """
    counts = Counter()
    for amount in amounts:
        digit = extract_first_digit(amount)
        if digit is not None:
            counts[digit] += 1

    total_valid = sum(counts.values())

    frequencies = []
    for digit in DIGITS:
        count = counts.get(digit, 0)
        observed = count / total_valid * 100 if total_valid > 0 else 0.0
        expected = BENFORD_EXPECTED[digit]
        frequencies.append(DigitFrequency(
            digit=digit,
            count=count,
            observed=observed,
            expected=expected,
            deviation=abs(observed - expected),
        ))

    return frequencies


# =============================================================================
# Deviation Metrics
# =============================================================================

def calculate_chi_square(frequencies: Sequence[DigitFrequency], total_count: int) -> float:
    """Chi-square statistic of observed vs expected digit counts."""
    chi_sq = 0.0
    for freq in frequencies:
        expected_count = freq.expected / 100 * total_count
        if expected_count > 0:
            chi_sq += (freq.count - expected_count) ** 2 / expected_count
    return chi_sq


def calculate_mad(frequencies: Sequence[DigitFrequency]) -> float:
    """
    Mean Absolute Deviation of the digit table.

    Kept on the percentage-point scale of DigitFrequency.deviation; the
    compliance thresholds are compared against this value as-is.
    """
    if len(frequencies) == 0:
        return 0.0
    return sum(freq.deviation for freq in frequencies) / len(frequencies)


def assess_compliance(mad: float) -> Compliance:
    """
    Classify a MAD value.

    Ladder is evaluated in ascending order, first match wins:
        < 0.006  compliant / low
        < 0.012  acceptable / low
        < 0.015  acceptable / medium
        < 0.022  suspicious / high
        else     highly_suspicious / critical
    """
    if mad < Thresholds.MAD_COMPLIANT:
        return Compliance(Assessment.COMPLIANT, RiskLevel.LOW)
    elif mad < Thresholds.MAD_ACCEPTABLE:
        return Compliance(Assessment.ACCEPTABLE, RiskLevel.LOW)
    elif mad < Thresholds.MAD_MARGINAL:
        return Compliance(Assessment.ACCEPTABLE, RiskLevel.MEDIUM)
    elif mad < Thresholds.MAD_SUSPICIOUS:
        return Compliance(Assessment.SUSPICIOUS, RiskLevel.HIGH)
    else:
        return Compliance(Assessment.HIGHLY_SUSPICIOUS, RiskLevel.CRITICAL)


def chi_square_p_value(chi_square: float) -> float:
    """Upper-tail probability of the statistic (df=8)."""
    return float(stats.chi2.sf(chi_square, df=CHI2_DEGREES_OF_FREEDOM))


# =============================================================================
# Standalone Functions for Quick Analysis
# =============================================================================

def benford_test(values: Iterable, alpha: float = 0.05, min_samples: int = 30) -> StatisticalResult:
    """
    Test if a set of values follows Benford's Law.

    Args:
        values: Amounts (list, array or Series)
        alpha: Significance level (0.10, 0.05, 0.01 or 0.001)
        min_samples: Minimum valid amounts for a meaningful test

    Returns:
        StatisticalResult with test outcome
    """
    if alpha not in CHI2_CRITICAL:
        raise ValueError(f"Unknown alpha: {alpha}. Choose from: {list(CHI2_CRITICAL.keys())}")

    frequencies = calculate_digit_frequencies(values)
    total = sum(freq.count for freq in frequencies)
    critical = CHI2_CRITICAL[alpha]

    if total < min_samples:
        return StatisticalResult(
            name="Benford's Law",
            statistic=0.0,
            p_value=None,
            is_anomaly=False,
            threshold=critical,
            description=f"Insufficient data (need at least {min_samples} samples)"
        )

    chi_sq = calculate_chi_square(frequencies, total)

    return StatisticalResult(
        name="Benford's Law",
        statistic=chi_sq,
        p_value=chi_square_p_value(chi_sq),
        is_anomaly=chi_sq > critical,
        threshold=critical,
        description=f"Chi-square = {chi_sq:.2f}, critical = {critical:.2f}"
    )


# =============================================================================
# Helpers
# =============================================================================

def is_multiple_of(amount, base: int) -> bool:
    """True when a finite amount is an exact multiple of base."""
    try:
        return math.isfinite(amount) and amount % base == 0
    except (TypeError, ValueError):
        return False
