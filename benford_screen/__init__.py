"""
Benford's Law screening of financial transaction ledgers.

Usage:
    from benford_screen import dataset_from_frame, perform_benford_analysis

    result = perform_benford_analysis(dataset_from_frame(df))
"""

from .analysis import (
    BenfordAnalyzer,
    BenfordResult,
    NoAnalyzableDataError,
    perform_benford_analysis,
)
from .data_loader import (
    CleanedDataset,
    TransactionRow,
    ValidationSummary,
    dataset_from_frame,
    dataset_from_records,
    generate_sample_data,
)

__version__ = "0.1.0"

__all__ = [
    "BenfordAnalyzer",
    "BenfordResult",
    "NoAnalyzableDataError",
    "perform_benford_analysis",
    "CleanedDataset",
    "TransactionRow",
    "ValidationSummary",
    "dataset_from_frame",
    "dataset_from_records",
    "generate_sample_data",
]
