"""
Benford Analysis for Financial Ledgers.

Combines the detectors into one result:
1. Population digit frequencies, Chi-square, MAD and compliance
2. Vendor-level Benford profiles (VendorRiskAnalyzer)
3. Transaction-level red flags (TransactionFlagger)

Steps 2 and 3 only read the dataset and do not depend on each other.
The result is built once, is immutable, and is never partial: a dataset
with no analyzable amount raises NoAnalyzableDataError instead.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

import pandas as pd

from .config import Assessment, RiskLevel, Thresholds, WarningMessages
from .data_loader import CleanedDataset, TransactionRow, ValidationSummary
from .detectors.rule_based import FlaggedTransaction, TransactionFlagger
from .detectors.statistical import (
    DigitFrequency,
    assess_compliance,
    calculate_chi_square,
    calculate_digit_frequencies,
    calculate_mad,
    chi_square_p_value,
)
from .detectors.vendor import VendorAnalysis, VendorRiskAnalyzer


class NoAnalyzableDataError(ValueError):
    """Raised when no row yields a leading digit."""


# =============================================================================
# Result
# =============================================================================

@dataclass(frozen=True)
class BenfordResult:
    """Complete outcome of a Benford analysis."""
    total_analyzed: int  # rows with a leading digit
    total_rows: int
    digit_frequencies: Tuple[DigitFrequency, ...]
    chi_square: float
    p_value: float
    mad: float
    overall_assessment: str
    risk_level: str
    suspicious_vendors: Tuple[VendorAnalysis, ...]
    flagged_transactions: Tuple[FlaggedTransaction, ...]
    warnings: Tuple[str, ...]
    validation: Optional[ValidationSummary] = None

    @property
    def is_compliant(self) -> bool:
        return self.overall_assessment in (Assessment.COMPLIANT, Assessment.ACCEPTABLE)

    @property
    def needs_investigation(self) -> bool:
        return self.risk_level in (RiskLevel.HIGH, RiskLevel.CRITICAL)

    def to_dict(self) -> dict:
        """Plain Python representation with every field."""
        validation = None
        if self.validation is not None:
            validation = {
                "total_rows": self.validation.total_rows,
                "valid_rows": self.validation.valid_rows,
                "removed_rows": self.validation.removed_rows,
                "errors": list(self.validation.errors),
                "warnings": list(self.validation.warnings),
            }

        return {
            "total_analyzed": self.total_analyzed,
            "total_rows": self.total_rows,
            "digit_frequencies": [
                {
                    "digit": f.digit,
                    "count": f.count,
                    "observed": f.observed,
                    "expected": f.expected,
                    "deviation": f.deviation,
                }
                for f in self.digit_frequencies
            ],
            "chi_square": self.chi_square,
            "p_value": self.p_value,
            "mad": self.mad,
            "overall_assessment": self.overall_assessment,
            "risk_level": self.risk_level,
            "suspicious_vendors": [v.to_dict() for v in self.suspicious_vendors],
            "flagged_transactions": [t.to_dict() for t in self.flagged_transactions],
            "warnings": list(self.warnings),
            "validation": validation,
        }

    def frequencies_frame(self) -> pd.DataFrame:
        """Digit table as a DataFrame."""
        return pd.DataFrame(self.to_dict()["digit_frequencies"])

    def vendors_frame(self) -> pd.DataFrame:
        """Vendor profiles as a DataFrame, one column per digit share."""
        records = []
        for vendor in self.suspicious_vendors:
            record = {
                "vendor": vendor.vendor,
                "transaction_count": vendor.transaction_count,
                "mad": vendor.mad,
                "chi_square": vendor.chi_square,
                "risk_level": vendor.risk_level,
                "suspicious_patterns": "; ".join(vendor.suspicious_patterns),
            }
            for digit, observed in vendor.digit_distribution.items():
                record[f"digit_{digit}"] = observed
            records.append(record)
        return pd.DataFrame(records)

    def transactions_frame(self) -> pd.DataFrame:
        """Flagged transactions as a DataFrame."""
        return pd.DataFrame([t.to_dict() for t in self.flagged_transactions])


# =============================================================================
# Analyzer
# =============================================================================

class BenfordAnalyzer:
    """
    Full Benford analysis of a cleaned ledger.

    Usage:
        analyzer = BenfordAnalyzer()
        result = analyzer.analyze(dataset)
        print(analyzer.summary())
    """

    def __init__(
        self,
        vendor_analyzer: Optional[VendorRiskAnalyzer] = None,
        flagger: Optional[TransactionFlagger] = None,
        verbose: bool = True,
    ):
        """
        Initialize analyzer.

        Args:
            vendor_analyzer: Vendor-level detector (default thresholds if None)
            flagger: Transaction-level detector (default thresholds if None)
            verbose: Print progress
        """
        self.verbose = verbose
        self.vendor_analyzer = vendor_analyzer or VendorRiskAnalyzer(verbose=verbose)
        self.flagger = flagger or TransactionFlagger(verbose=verbose)

        self.result: Optional[BenfordResult] = None

    def analyze(
        self,
        dataset: Union[CleanedDataset, Sequence[TransactionRow]],
    ) -> BenfordResult:
        """
        Run the population, vendor and transaction analyses.

        Args:
            dataset: CleanedDataset or sequence of rows

        Returns:
            BenfordResult

        Raises:
            NoAnalyzableDataError: no row has a positive finite amount
        """
        if isinstance(dataset, CleanedDataset):
            rows, validation = dataset.rows, dataset.validation
        else:
            rows, validation = tuple(dataset), None

        self._log(f"Processing {len(rows):,} transactions...")
        warnings: List[str] = []

        # Step 1: Population distribution
        self._log("Step 1/3: Computing digit frequencies...")
        frequencies = calculate_digit_frequencies(row.amount for row in rows)
        total_analyzed = sum(f.count for f in frequencies)

        if total_analyzed == 0:
            raise NoAnalyzableDataError("No valid amounts found for analysis")

        if total_analyzed < Thresholds.SAMPLE_VERY_SMALL:
            warnings.append(WarningMessages.VERY_SMALL_SAMPLE)
        elif total_analyzed < Thresholds.SAMPLE_SMALL:
            warnings.append(WarningMessages.SMALL_SAMPLE)

        mad = calculate_mad(frequencies)
        chi_square = calculate_chi_square(frequencies, total_analyzed)
        assessment, risk_level = assess_compliance(mad)
        self._log(f"  Valid amounts: {total_analyzed:,}, MAD: {mad:.4f}, assessment: {assessment}")

        # Step 2: Vendors
        self._log("Step 2/3: Analyzing vendors...")
        vendors = self.vendor_analyzer.analyze(rows)

        # Step 3: Transactions
        self._log("Step 3/3: Flagging transactions...")
        flagged = self.flagger.flag(rows)

        if mad >= Thresholds.MAD_SUSPICIOUS:
            warnings.append(WarningMessages.HIGH_DEVIATION)
        if len(vendors) > 0:
            warnings.append(WarningMessages.SUSPICIOUS_VENDORS.format(count=len(vendors)))
        if len(flagged) > len(rows) * Thresholds.FLAGGED_SHARE_WARNING:
            warnings.append(WarningMessages.HIGH_FLAG_VOLUME)

        self.result = BenfordResult(
            total_analyzed=total_analyzed,
            total_rows=len(rows),
            digit_frequencies=tuple(frequencies),
            chi_square=chi_square,
            p_value=chi_square_p_value(chi_square),
            mad=mad,
            overall_assessment=assessment,
            risk_level=risk_level,
            suspicious_vendors=tuple(vendors),
            flagged_transactions=tuple(flagged),
            warnings=tuple(warnings),
            validation=validation,
        )

        self._log("\nAnalysis complete!")
        self._log(f"  Risk level: {risk_level}")
        self._log(f"  Vendors analyzed: {len(vendors):,}")
        self._log(f"  Flagged transactions: {len(flagged):,}")

        return self.result

    def _log(self, message: str) -> None:
        if self.verbose:
            print(message)

    def summary(self) -> pd.DataFrame:
        """Get digit table of the last analysis."""
        if self.result is None:
            raise ValueError("Run analyze() first")
        return self.result.frequencies_frame()


def perform_benford_analysis(
    dataset: Union[CleanedDataset, Sequence[TransactionRow]],
) -> BenfordResult:
    """Full analysis with default thresholds, no printing."""
    return BenfordAnalyzer(verbose=False).analyze(dataset)
