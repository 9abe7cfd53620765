"""
Data loading utilities for Benford screening.

The engine consumes an already cleaned dataset: parsing files, mapping
columns and validating raw rows happen upstream. This module only adapts
cleaned Pandas/Polars frames or record lists into a CleanedDataset, and
generates synthetic ledgers for demos and tests.
"""

import math
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from decimal import Decimal
from numbers import Number
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
import polars as pl

from .config import (
    CATEGORIES,
    RANDOM_STATE,
    SUSPICIOUS_VENDORS,
    VENDOR_NAMES,
)


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class TransactionRow:
    """One cleaned ledger row."""
    amount: Union[int, float, Decimal]
    vendor: Optional[str] = None
    date: Optional[date] = None
    category: Optional[str] = None


@dataclass(frozen=True)
class ValidationSummary:
    """Counts reported by the data-preparation step (echoed, never computed here)."""
    total_rows: int
    valid_rows: int
    removed_rows: int = 0
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return self.valid_rows > 0 and len(self.errors) == 0


@dataclass(frozen=True)
class CleanedDataset:
    """Rows plus the validation counts that came with them."""
    rows: Tuple[TransactionRow, ...]
    validation: ValidationSummary

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def amounts(self) -> List:
        return [row.amount for row in self.rows]


@dataclass(frozen=True)
class SampleDataConfig:
    """Configuration for synthetic ledgers."""
    total_transactions: int
    suspicious_vendor_percentage: float
    date_range_months: int
    include_natural_patterns: bool = True


SAMPLE_CONFIGS: Dict[str, SampleDataConfig] = {
    "small": SampleDataConfig(
        total_transactions=100,
        suspicious_vendor_percentage=15,
        date_range_months=6,
    ),
    "medium": SampleDataConfig(
        total_transactions=500,
        suspicious_vendor_percentage=20,
        date_range_months=12,
    ),
    "large": SampleDataConfig(
        total_transactions=1000,
        suspicious_vendor_percentage=25,
        date_range_months=24,
    ),
}


# =============================================================================
# Value Coercion
# =============================================================================

def _to_amount(value) -> Union[int, float, Decimal]:
    """Numbers pass through, numeric text is parsed, anything else becomes NaN."""
    if isinstance(value, (Decimal, float)):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, Number) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return math.nan
    return math.nan


def _to_text(value) -> Optional[str]:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    return str(value)


def _to_date(value) -> Optional[date]:
    # NaT is a datetime subclass, so it is caught here first
    if value is None or pd.isna(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = pd.to_datetime(value, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.date()


def _column_values(
    df: Union[pd.DataFrame, pl.DataFrame],
    column: Optional[str],
) -> list:
    """Column as a Python list, or all-None when the column is absent."""
    if column is None or column not in df.columns:
        return [None] * len(df)
    if isinstance(df, pl.DataFrame):
        return df.get_column(column).to_list()
    return df[column].tolist()


# =============================================================================
# Dataset Builders
# =============================================================================

def dataset_from_frame(
    df: Union[pd.DataFrame, pl.DataFrame],
    amount_col: str = "amount",
    vendor_col: Optional[str] = "vendor",
    date_col: Optional[str] = "date",
    category_col: Optional[str] = "category",
    validation: Optional[ValidationSummary] = None,
) -> CleanedDataset:
    """
    Build a CleanedDataset from a cleaned Pandas or Polars DataFrame.

    Args:
        df: Cleaned transactions, one row per transaction
        amount_col: Column with the monetary amount (required)
        vendor_col: Column with the vendor name (optional)
        date_col: Column with the transaction date (optional)
        category_col: Column with the expense category (optional)
        validation: Counts from the cleaning step. None = every row counted valid.

    Returns:
        CleanedDataset with rows in frame order

    Examples:
        >>> df = pd.DataFrame({"amount": [120.5, 87.0], "vendor": ["ACME", "ACME"]})
        >>> dataset = dataset_from_frame(df)
    """
    if amount_col not in df.columns:
        raise ValueError(f"Amount column '{amount_col}' not found. Available: {list(df.columns)}")

    amounts = _column_values(df, amount_col)
    vendors = _column_values(df, vendor_col)
    dates = _column_values(df, date_col)
    categories = _column_values(df, category_col)

    rows = tuple(
        TransactionRow(
            amount=_to_amount(amount),
            vendor=_to_text(vendor),
            date=_to_date(when),
            category=_to_text(category),
        )
        for amount, vendor, when, category in zip(amounts, vendors, dates, categories)
    )

    if validation is None:
        validation = ValidationSummary(total_rows=len(rows), valid_rows=len(rows))

    return CleanedDataset(rows=rows, validation=validation)


def dataset_from_records(
    records: Sequence[dict],
    validation: Optional[ValidationSummary] = None,
) -> CleanedDataset:
    """Build a CleanedDataset from dicts with amount/vendor/date/category keys."""
    rows = tuple(
        TransactionRow(
            amount=_to_amount(record.get("amount")),
            vendor=_to_text(record.get("vendor")),
            date=_to_date(record.get("date")),
            category=_to_text(record.get("category")),
        )
        for record in records
    )

    if validation is None:
        validation = ValidationSummary(total_rows=len(rows), valid_rows=len(rows))

    return CleanedDataset(rows=rows, validation=validation)


# =============================================================================
# Sample Data
# =============================================================================

def _natural_amount(rng: np.random.Generator) -> float:
    """Amount skewed towards small values, as real expense ledgers are."""
    bucket = rng.random()
    if bucket < 0.5:
        return rng.uniform(10, 500)
    elif bucket < 0.8:
        return rng.uniform(500, 5_000)
    elif bucket < 0.95:
        return rng.uniform(5_000, 50_000)
    else:
        return rng.uniform(50_000, 500_000)


def _suspicious_amount(rng: np.random.Generator) -> float:
    """Round, digit-biased or just-below-round amount."""
    kind = rng.random()
    if kind < 0.4:
        bases = [1000, 2000, 3000, 4000, 5000, 10000, 15000, 20000, 25000, 30000]
        return float(rng.choice(bases))
    elif kind < 0.7:
        digit = int(rng.choice([4, 5, 6]))
        magnitude = 10 ** int(rng.integers(2, 6))
        return digit * magnitude + rng.random() * magnitude * 0.99
    else:
        base = float(rng.choice([1000, 5000, 10000, 25000, 50000]))
        return base - rng.random() * 100


def generate_sample_data(
    config: Union[str, int, SampleDataConfig] = "small",
    random_state: int = RANDOM_STATE,
    end_date: Optional[date] = None,
    return_polars: bool = False,
) -> Union[pd.DataFrame, pl.DataFrame]:
    """
    Generate a synthetic ledger with a share of suspicious vendors.

    Args:
        config: Preset name ('small', 'medium', 'large'), row count or SampleDataConfig.
            A row count uses the 'small' preset's proportions.
        random_state: Random seed for reproducibility
        end_date: Last possible transaction date. None = today.
        return_polars: If True, return Polars DataFrame. Default False (Pandas).

    Returns:
        DataFrame with amount, vendor, date, category, description columns
    """
    if isinstance(config, str):
        if config not in SAMPLE_CONFIGS:
            raise ValueError(f"Unknown sample config: {config}. Choose from: {list(SAMPLE_CONFIGS.keys())}")
        config = SAMPLE_CONFIGS[config]
    elif isinstance(config, int):
        if config <= 0:
            raise ValueError(f"Row count must be positive, got {config}")
        config = replace(SAMPLE_CONFIGS["small"], total_transactions=config)

    rng = np.random.default_rng(random_state)
    end_date = end_date or date.today()
    span_days = max(config.date_range_months * 30, 1)

    suspicious_count = int(config.total_transactions * config.suspicious_vendor_percentage / 100)
    normal_count = config.total_transactions - suspicious_count

    records = []
    for i in range(config.total_transactions):
        is_suspicious = i >= normal_count
        vendor = str(rng.choice(SUSPICIOUS_VENDORS if is_suspicious else VENDOR_NAMES))
        category = str(rng.choice(CATEGORIES))
        if is_suspicious or not config.include_natural_patterns:
            amount = _suspicious_amount(rng)
        else:
            amount = _natural_amount(rng)
        records.append({
            "amount": round(float(amount), 2),
            "vendor": vendor,
            "date": end_date - timedelta(days=int(rng.integers(0, span_days))),
            "category": category,
            "description": f"{category} purchase from {vendor}",
        })

    order = rng.permutation(len(records))
    records = [records[i] for i in order]

    if return_polars:
        return pl.DataFrame(records)
    return pd.DataFrame(records)
