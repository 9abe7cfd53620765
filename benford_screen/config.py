"""
Configuration and constants for Benford screening.
"""

from types import MappingProxyType

# === Benford's Law ===
# Expected first-digit percentages (digits 1-9)
BENFORD_EXPECTED = MappingProxyType({
    1: 30.1, 2: 17.6, 3: 12.5, 4: 9.7,
    5: 7.9, 6: 6.7, 7: 5.8, 8: 5.1, 9: 4.6
})

DIGITS = tuple(range(1, 10))

# Chi-square critical values (df=8, common alpha levels)
CHI2_DEGREES_OF_FREEDOM = 8
CHI2_CRITICAL = MappingProxyType({
    0.10: 13.36,
    0.05: 15.51,
    0.01: 20.09,
    0.001: 26.12
})


# === Thresholds ===
class Thresholds:
    # MAD ladder (Nigrini 2012), applied to the percentage-point MAD
    MAD_COMPLIANT = 0.006
    MAD_ACCEPTABLE = 0.012
    MAD_MARGINAL = 0.015
    MAD_SUSPICIOUS = 0.022

    # Sample size
    SAMPLE_VERY_SMALL = 50
    SAMPLE_SMALL = 100
    MIN_VENDOR_TRANSACTIONS = 10

    # Vendor patterns (% of partition)
    HIGH_DIGIT_PCT = 20.0                 # digits 7+8+9
    ROUND_NUMBER_PCT = 30.0
    DIGIT_DOMINANCE_PCT = 50.0

    # Transaction rules
    MEAN_MULTIPLIER = 10
    MEDIAN_MULTIPLIER = 50
    LARGE_ROUND_AMOUNT = 1000
    HIGH_DIGIT_AMOUNT = 5000
    HIGH_FIRST_DIGIT = 7
    OVERREPRESENTED_FACTOR = 2
    DUPLICATE_COUNT = 3                   # fires when count > 3
    MAX_FLAGGED_TRANSACTIONS = 50

    # Orchestrator warnings
    FLAGGED_SHARE_WARNING = 0.1


# === Risk Levels ===
class RiskLevel:
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


RISK_ORDER = MappingProxyType({
    RiskLevel.CRITICAL: 4,
    RiskLevel.HIGH: 3,
    RiskLevel.MEDIUM: 2,
    RiskLevel.LOW: 1,
})


# === Compliance Assessment ===
class Assessment:
    COMPLIANT = "compliant"
    ACCEPTABLE = "acceptable"
    SUSPICIOUS = "suspicious"
    HIGHLY_SUSPICIOUS = "highly_suspicious"


# === Warnings ===
class WarningMessages:
    VERY_SMALL_SAMPLE = "Sample size is very small (< 50). Results may not be reliable."
    SMALL_SAMPLE = "Sample size is small (< 100). Consider collecting more data for better accuracy."
    HIGH_DEVIATION = "Data shows significant deviation from Benford's Law. Consider investigating further."
    SUSPICIOUS_VENDORS = "{count} vendors show suspicious patterns."
    HIGH_FLAG_VOLUME = "High number of flagged transactions detected."


# === Sample Data ===
VENDOR_NAMES = [
    "ABC Corporation", "XYZ Industries", "Global Supplies Inc", "TechCorp Solutions",
    "Office Depot", "Professional Services LLC", "Metro Transit", "City Utilities",
    "QuickMart", "Premier Catering", "Elite Consulting", "Standard Equipment",
    "Digital Solutions", "Corporate Travel", "Express Delivery", "Quality Supplies",
]

SUSPICIOUS_VENDORS = [
    "Shell Company A", "Round Numbers Ltd", "Digit Manipulation Corp",
    "Fraudulent Patterns Inc", "Artificial Vendor Co",
]

CATEGORIES = [
    "Office Supplies", "Travel", "Utilities", "Consulting", "Equipment",
    "Software", "Meals", "Transportation", "Professional Services", "Maintenance",
]

# === Random State ===
RANDOM_STATE = 42
