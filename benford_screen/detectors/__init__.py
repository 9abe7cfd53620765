"""
Benford Detection Modules for Financial Ledgers.

3 levels:
1. Statistical: first digits, digit frequencies, Chi-square, MAD, compliance
2. VendorRiskAnalyzer: per-vendor Benford profiles and pattern checks
3. TransactionFlagger: per-transaction red flags

BenfordAnalyzer (benford_screen.analysis) combines all three.
"""

# Level 1: Statistical
from .statistical import (
    DigitFrequency,
    StatisticalResult,
    assess_compliance,
    benford_test,
    calculate_chi_square,
    calculate_digit_frequencies,
    calculate_mad,
    chi_square_p_value,
    extract_first_digit,
)

# Level 2: Vendors
from .vendor import VENDOR_PATTERNS, VendorAnalysis, VendorRiskAnalyzer, analyze_vendors

# Level 3: Transactions
from .rule_based import (
    RULE_DEFINITIONS,
    FlaggedTransaction,
    TransactionFlagger,
    flag_suspicious_transactions,
)

__all__ = [
    # Level 1
    "DigitFrequency",
    "StatisticalResult",
    "assess_compliance",
    "benford_test",
    "calculate_chi_square",
    "calculate_digit_frequencies",
    "calculate_mad",
    "chi_square_p_value",
    "extract_first_digit",
    # Level 2
    "VENDOR_PATTERNS",
    "VendorAnalysis",
    "VendorRiskAnalyzer",
    "analyze_vendors",
    # Level 3
    "RULE_DEFINITIONS",
    "FlaggedTransaction",
    "TransactionFlagger",
    "flag_suspicious_transactions",
]
