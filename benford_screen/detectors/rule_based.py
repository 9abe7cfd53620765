"""
Rule-Based Transaction Flagging

Applies per-transaction red flags relative to population statistics
(mean, median, first-digit distribution). Rules are evaluated in the order
of RULE_DEFINITIONS; every rule that fires adds its reason, and the
transaction takes the highest severity among them.

Rows without a leading digit (zero, negative, non-finite amounts) are
never flagged, but still count towards the population mean and median.
"""

import warnings
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..config import RISK_ORDER, RiskLevel, Thresholds
from ..data_loader import CleanedDataset, TransactionRow
from .statistical import calculate_digit_frequencies, extract_first_digit


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class RuleConfig:
    """Configuration for a single rule."""
    id: str
    name: str
    reason: str
    severity: str  # 'critical', 'high', 'medium'
    description: str


@dataclass(frozen=True)
class FlaggedTransaction:
    """A transaction that matched at least one rule."""
    index: int  # position in the cleaned dataset
    amount: float
    vendor: Optional[str]
    first_digit: int
    reason: str
    risk_level: str

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "amount": self.amount,
            "vendor": self.vendor,
            "first_digit": self.first_digit,
            "reason": self.reason,
            "risk_level": self.risk_level,
        }


# =============================================================================
# Rule Definitions
# =============================================================================

RULE_DEFINITIONS: Dict[str, RuleConfig] = {
    "T001": RuleConfig(
        id="T001",
        name="unusually_high_amount",
        reason="Unusually high amount",
        severity=RiskLevel.HIGH,
        description="Amount above 10x the population mean or 50x the median",
    ),
    "T002": RuleConfig(
        id="T002",
        name="large_round_number",
        reason="Large round number",
        severity=RiskLevel.MEDIUM,
        description="Amount above 1000 that is a multiple of 100 or 1000",
    ),
    "T003": RuleConfig(
        id="T003",
        name="overrepresented_first_digit",
        reason="Overrepresented first digit ({digit})",
        severity=RiskLevel.HIGH,
        description="First digit observed at more than twice its expected share",
    ),
    "T004": RuleConfig(
        id="T004",
        name="high_digit_high_amount",
        reason="High amount with suspicious first digit",
        severity=RiskLevel.HIGH,
        description="First digit 7-9 on an amount above 5000",
    ),
    "T005": RuleConfig(
        id="T005",
        name="duplicate_vendor_amount",
        reason="Multiple identical amounts from same vendor",
        severity=RiskLevel.CRITICAL,
        description="More than 3 transactions with the same vendor and amount",
    ),
}

_LEVEL_BY_RANK = {rank: level for level, rank in RISK_ORDER.items()}


def _as_float(amount) -> float:
    try:
        return float(amount)
    except (TypeError, ValueError):
        return np.nan


# =============================================================================
# Transaction Flagger
# =============================================================================

class TransactionFlagger:
    """
    Flags individual transactions using population-relative rules.

    Usage:
        flagger = TransactionFlagger()
        flagged = flagger.flag(dataset)
        print(flagger.summary())
    """

    def __init__(
        self,
        mean_multiplier: float = Thresholds.MEAN_MULTIPLIER,
        median_multiplier: float = Thresholds.MEDIAN_MULTIPLIER,
        large_round_amount: float = Thresholds.LARGE_ROUND_AMOUNT,
        high_digit_amount: float = Thresholds.HIGH_DIGIT_AMOUNT,
        overrepresented_factor: float = Thresholds.OVERREPRESENTED_FACTOR,
        duplicate_count: int = Thresholds.DUPLICATE_COUNT,
        max_flagged: int = Thresholds.MAX_FLAGGED_TRANSACTIONS,
        rule_configs: Optional[Dict[str, RuleConfig]] = None,
        verbose: bool = True,
    ):
        """
        Initialize flagger with thresholds.

        Args:
            mean_multiplier: T001 limit as a multiple of the mean
            median_multiplier: T001 limit as a multiple of the median
            large_round_amount: T002 minimum amount
            high_digit_amount: T004 minimum amount
            overrepresented_factor: T003 observed/expected ratio
            duplicate_count: T005 fires when the group size exceeds this
            max_flagged: Number of top transactions returned
            rule_configs: Rules to apply, in evaluation order
            verbose: Print progress
        """
        self.mean_multiplier = mean_multiplier
        self.median_multiplier = median_multiplier
        self.large_round_amount = large_round_amount
        self.high_digit_amount = high_digit_amount
        self.overrepresented_factor = overrepresented_factor
        self.duplicate_count = duplicate_count
        self.max_flagged = max_flagged
        self.rule_configs = rule_configs or RULE_DEFINITIONS
        self.verbose = verbose

        self.results: Optional[List[FlaggedTransaction]] = None
        self.rule_counts: Dict[str, int] = {}
        self.total_flagged: int = 0
        self._population: Dict = {}

    def flag(
        self,
        rows: Union[CleanedDataset, Sequence[TransactionRow]],
    ) -> List[FlaggedTransaction]:
        """
        Apply all rules and return the top flagged transactions.

        Args:
            rows: CleanedDataset or sequence of rows

        Returns:
            Up to max_flagged transactions, by severity then amount (descending)
        """
        if isinstance(rows, CleanedDataset):
            rows = rows.rows

        self._log(f"Processing {len(rows):,} transactions...")
        if len(rows) == 0:
            self.results = []
            self.rule_counts = {config.name: 0 for config in self.rule_configs.values()}
            self.total_flagged = 0
            return []

        df = self._prepare(rows)

        self._log("Step 1/3: Computing population statistics...")
        self._compute_population(rows, df)

        self._log(f"Step 2/3: Applying {len(self.rule_configs)} rules...")
        has_digit = df["first_digit"].notna()
        fired = pd.DataFrame(index=df.index)
        df["severity_rank"] = 0

        for rule_id, config in self.rule_configs.items():
            mask = getattr(self, f"_check_{config.name}")(df)
            mask = mask.fillna(False).astype(bool) & has_digit
            fired[config.name] = mask
            rank = RISK_ORDER[config.severity]
            df.loc[mask, "severity_rank"] = df.loc[mask, "severity_rank"].clip(lower=rank)

        self.rule_counts = {name: int(fired[name].sum()) for name in fired.columns}

        self._log("Step 3/3: Ranking flagged transactions...")
        flagged = []
        for i in df.index[fired.any(axis=1).to_numpy()]:
            digit = int(df.at[i, "first_digit"])
            reasons = [
                config.reason.format(digit=digit)
                for config in self.rule_configs.values()
                if fired.at[i, config.name]
            ]
            flagged.append(FlaggedTransaction(
                index=int(i),
                amount=rows[i].amount,
                vendor=rows[i].vendor,
                first_digit=digit,
                reason="; ".join(reasons),
                risk_level=_LEVEL_BY_RANK[int(df.at[i, "severity_rank"])],
            ))

        flagged.sort(key=lambda f: (-RISK_ORDER[f.risk_level], -_as_float(f.amount)))
        self.total_flagged = len(flagged)
        self.results = flagged[:self.max_flagged]

        self._log(f"  Flagged: {self.total_flagged:,}, returning top {len(self.results):,}")
        return self.results

    def _log(self, message: str) -> None:
        if self.verbose:
            print(message)

    # =========================================================================
    # Preparation
    # =========================================================================

    @staticmethod
    def _prepare(rows: Sequence[TransactionRow]) -> pd.DataFrame:
        """One row per transaction, indexed by dataset position."""
        return pd.DataFrame({
            "amount": [_as_float(row.amount) for row in rows],
            "vendor_key": [(row.vendor or "").strip() for row in rows],
            "first_digit": pd.array(
                [extract_first_digit(row.amount) for row in rows], dtype="Int64"
            ),
        })

    def _compute_population(self, rows: Sequence[TransactionRow], df: pd.DataFrame):
        """Population mean, median and first-digit frequencies."""
        amounts = df["amount"].to_numpy()
        with warnings.catch_warnings(), np.errstate(all="ignore"):
            warnings.simplefilter("ignore", RuntimeWarning)
            mean = float(np.mean(amounts))
        # Middle element of a sorted copy; NaN sorts last
        median = float(np.sort(amounts)[len(amounts) // 2])

        frequencies = calculate_digit_frequencies(row.amount for row in rows)
        self._population = {
            "mean": mean,
            "median": median,
            "observed": {f.digit: f.observed for f in frequencies},
            "expected": {f.digit: f.expected for f in frequencies},
        }

    # =========================================================================
    # Rules
    # =========================================================================

    def _check_unusually_high_amount(self, df: pd.DataFrame) -> pd.Series:
        """T001: Amount far above population mean or median."""
        with np.errstate(all="ignore"):
            return (
                (df["amount"] > self._population["mean"] * self.mean_multiplier) |
                (df["amount"] > self._population["median"] * self.median_multiplier)
            )

    def _check_large_round_number(self, df: pd.DataFrame) -> pd.Series:
        """T002: Large amount ending in 00 or 000."""
        with np.errstate(all="ignore"):
            is_round = (df["amount"] % 100 == 0) | (df["amount"] % 1000 == 0)
        return (df["amount"] > self.large_round_amount) & is_round

    def _check_overrepresented_first_digit(self, df: pd.DataFrame) -> pd.Series:
        """T003: First digit far above its Benford share population-wide."""
        digits = df["first_digit"].astype("float")
        observed = digits.map(self._population["observed"])
        expected = digits.map(self._population["expected"])
        return observed > expected * self.overrepresented_factor

    def _check_high_digit_high_amount(self, df: pd.DataFrame) -> pd.Series:
        """T004: First digit 7-9 on a large amount."""
        return (
            (df["first_digit"].astype("float") >= Thresholds.HIGH_FIRST_DIGIT) &
            (df["amount"] > self.high_digit_amount)
        )

    def _check_duplicate_vendor_amount(self, df: pd.DataFrame) -> pd.Series:
        """T005: Same vendor, same amount, more than duplicate_count times."""
        group_size = df.groupby(["vendor_key", "amount"], sort=False, dropna=False)["amount"].transform("size")
        return (df["vendor_key"] != "") & (group_size > self.duplicate_count)

    # =========================================================================
    # Summary Methods
    # =========================================================================

    def summary(self) -> pd.DataFrame:
        """Get number of transactions each rule fired on."""
        if self.results is None:
            raise ValueError("Run flag() first")

        summary_data = []
        for rule_id, config in self.rule_configs.items():
            summary_data.append({
                "rule_id": rule_id,
                "name": config.name,
                "severity": config.severity,
                "count": self.rule_counts.get(config.name, 0),
            })

        return pd.DataFrame(summary_data)


def flag_suspicious_transactions(
    rows: Union[CleanedDataset, Sequence[TransactionRow]],
) -> List[FlaggedTransaction]:
    """Transaction flagging with default thresholds, no printing."""
    return TransactionFlagger(verbose=False).flag(rows)
