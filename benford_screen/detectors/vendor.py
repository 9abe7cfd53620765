"""
Vendor-Level Benford Screening

Partitions the ledger by vendor and runs the digit-distribution analysis on
every vendor with enough transactions (10+), then applies pattern checks:
1. High-digit concentration - digits 7-9 above 20% combined
2. Round-number concentration - more than 30% of amounts divisible by 10/100
3. Single-digit dominance - one digit above 50%

Vendors are ranked by risk level, then by MAD (both descending).
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from ..config import RISK_ORDER, RiskLevel, Thresholds
from ..data_loader import CleanedDataset, TransactionRow
from .statistical import (
    DigitFrequency,
    assess_compliance,
    calculate_chi_square,
    calculate_digit_frequencies,
    calculate_mad,
    is_multiple_of,
)


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class PatternConfig:
    """Configuration for a single vendor pattern check."""
    id: str
    name: str
    description: str


@dataclass(frozen=True)
class VendorAnalysis:
    """Benford profile of one vendor."""
    vendor: str
    transaction_count: int
    mad: float
    chi_square: float
    risk_level: str
    suspicious_patterns: Tuple[str, ...]
    digit_distribution: Mapping[int, float]  # digit -> observed %

    def to_dict(self) -> dict:
        return {
            "vendor": self.vendor,
            "transaction_count": self.transaction_count,
            "mad": self.mad,
            "chi_square": self.chi_square,
            "risk_level": self.risk_level,
            "suspicious_patterns": list(self.suspicious_patterns),
            "digit_distribution": dict(self.digit_distribution),
        }

    def __getstate__(self) -> dict:
        state = dict(self.__dict__)
        state["digit_distribution"] = dict(self.digit_distribution)
        return state

    def __setstate__(self, state: dict) -> None:
        state = dict(state)
        state["digit_distribution"] = MappingProxyType(dict(state["digit_distribution"]))
        for key, value in state.items():
            object.__setattr__(self, key, value)


# =============================================================================
# Pattern Definitions (evaluated in this order)
# =============================================================================

VENDOR_PATTERNS: Dict[str, PatternConfig] = {
    "V001": PatternConfig(
        id="V001",
        name="high_digit_concentration",
        description="Digits 7, 8 and 9 together lead too many amounts",
    ),
    "V002": PatternConfig(
        id="V002",
        name="round_number_concentration",
        description="Too many amounts are multiples of 10 or 100",
    ),
    "V003": PatternConfig(
        id="V003",
        name="single_digit_dominance",
        description="One leading digit accounts for most amounts",
    ),
}


# =============================================================================
# Vendor Risk Analyzer
# =============================================================================

class VendorRiskAnalyzer:
    """
    Per-vendor Benford analysis with suspicious pattern detection.

    Usage:
        analyzer = VendorRiskAnalyzer()
        vendors = analyzer.analyze(dataset)
        print(analyzer.risk_distribution())
    """

    def __init__(
        self,
        min_transactions: int = Thresholds.MIN_VENDOR_TRANSACTIONS,
        high_digit_pct: float = Thresholds.HIGH_DIGIT_PCT,
        round_number_pct: float = Thresholds.ROUND_NUMBER_PCT,
        dominance_pct: float = Thresholds.DIGIT_DOMINANCE_PCT,
        verbose: bool = True,
    ):
        """
        Initialize analyzer with thresholds.

        Args:
            min_transactions: Vendors with fewer transactions are skipped
            high_digit_pct: Limit for combined share of digits 7-9 (%)
            round_number_pct: Limit for share of round amounts (%)
            dominance_pct: Limit for share of the most common digit (%)
            verbose: Print progress
        """
        self.min_transactions = min_transactions
        self.high_digit_pct = high_digit_pct
        self.round_number_pct = round_number_pct
        self.dominance_pct = dominance_pct
        self.verbose = verbose

        self.results: Optional[List[VendorAnalysis]] = None

    def analyze(
        self,
        rows: Union[CleanedDataset, Sequence[TransactionRow]],
    ) -> List[VendorAnalysis]:
        """
        Analyze every vendor with enough transactions.

        Args:
            rows: CleanedDataset or sequence of rows

        Returns:
            VendorAnalysis list ordered by risk level then MAD, descending
        """
        if isinstance(rows, CleanedDataset):
            rows = rows.rows

        groups = self._group_by_vendor(rows)
        eligible = {
            vendor: transactions
            for vendor, transactions in groups.items()
            if len(transactions) >= self.min_transactions
        }
        self._log(f"  Vendors: {len(groups):,}, with {self.min_transactions}+ transactions: {len(eligible):,}")

        analyses = [
            self._analyze_vendor(vendor, transactions)
            for vendor, transactions in eligible.items()
        ]

        analyses.sort(key=lambda a: (-RISK_ORDER[a.risk_level], -a.mad))
        self.results = analyses

        flagged = sum(1 for a in analyses if a.suspicious_patterns)
        self._log(f"  Vendors with suspicious patterns: {flagged:,}")

        return analyses

    def _log(self, message: str) -> None:
        if self.verbose:
            print(message)

    @staticmethod
    def _group_by_vendor(rows: Sequence[TransactionRow]) -> Dict[str, List[TransactionRow]]:
        """Group rows by trimmed vendor name; rows without a vendor are left out."""
        groups: Dict[str, List[TransactionRow]] = {}
        for row in rows:
            if not row.vendor:
                continue
            vendor = row.vendor.strip()
            if not vendor:
                continue
            groups.setdefault(vendor, []).append(row)
        return groups

    def _analyze_vendor(self, vendor: str, transactions: List[TransactionRow]) -> VendorAnalysis:
        amounts = [t.amount for t in transactions]
        frequencies = calculate_digit_frequencies(amounts)
        mad = calculate_mad(frequencies)
        # Expected counts are scaled to the whole partition, invalid amounts included
        chi_square = calculate_chi_square(frequencies, len(transactions))
        _, risk_level = assess_compliance(mad)

        patterns = []
        for config in VENDOR_PATTERNS.values():
            finding = getattr(self, f"_check_{config.name}")(amounts, frequencies)
            if finding is not None:
                patterns.append(finding)

        return VendorAnalysis(
            vendor=vendor,
            transaction_count=len(transactions),
            mad=mad,
            chi_square=chi_square,
            risk_level=risk_level,
            suspicious_patterns=tuple(patterns),
            digit_distribution=MappingProxyType({f.digit: f.observed for f in frequencies}),
        )

    # =========================================================================
    # Pattern Checks
    # =========================================================================

    def _check_high_digit_concentration(
        self,
        amounts: list,
        frequencies: List[DigitFrequency],
    ) -> Optional[str]:
        """V001: Digits 7-9 over-represented."""
        high_pct = sum(f.observed for f in frequencies if f.digit >= 7)
        if high_pct > self.high_digit_pct:
            return f"High digits (7-9) represent {high_pct:.1f}% of transactions"
        return None

    def _check_round_number_concentration(
        self,
        amounts: list,
        frequencies: List[DigitFrequency],
    ) -> Optional[str]:
        """V002: Amounts ending in 0 or 00."""
        round_count = sum(
            1 for amount in amounts
            if is_multiple_of(amount, 10) or is_multiple_of(amount, 100)
        )
        round_pct = round_count / len(amounts) * 100
        if round_pct > self.round_number_pct:
            return f"{round_pct:.1f}% of amounts are round numbers"
        return None

    def _check_single_digit_dominance(
        self,
        amounts: list,
        frequencies: List[DigitFrequency],
    ) -> Optional[str]:
        """V003: One digit dominates; ties go to the lower digit."""
        dominant = max(frequencies, key=lambda f: f.observed)
        if dominant.observed > self.dominance_pct:
            return f"Digit {dominant.digit} dominates with {dominant.observed:.1f}%"
        return None

    # =========================================================================
    # Summary Methods
    # =========================================================================

    def risk_distribution(self) -> pd.DataFrame:
        """Get distribution of vendor risk levels."""
        if self.results is None:
            raise ValueError("Run analyze() first")

        total = len(self.results)
        rows = []
        for risk in [RiskLevel.CRITICAL, RiskLevel.HIGH, RiskLevel.MEDIUM, RiskLevel.LOW]:
            count = sum(1 for a in self.results if a.risk_level == risk)
            rows.append({
                "risk_level": risk,
                "count": count,
                "percentage": round(count / total * 100, 2) if total > 0 else 0.0,
            })
        return pd.DataFrame(rows)


def analyze_vendors(rows: Union[CleanedDataset, Sequence[TransactionRow]]) -> List[VendorAnalysis]:
    """Per-vendor analysis with default thresholds, no printing."""
    return VendorRiskAnalyzer(verbose=False).analyze(rows)
