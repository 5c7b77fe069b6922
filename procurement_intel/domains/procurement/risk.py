"""Supplier risk classification from vendor and quality scores."""

import numpy as np
import pandas as pd

HIGH = "HIGH"
MEDIUM = "MEDIUM"
LOW = "LOW"

HIGH_RISK_VENDOR_SCORE_BELOW = 50
HIGH_RISK_QUALITY_SCORE_BELOW = 5
MEDIUM_RISK_VENDOR_SCORE_RANGE = (50, 70)


def classify_risk_level(vendor_score: pd.Series, quality_score: pd.Series) -> pd.Series:
    """Assign HIGH, MEDIUM or LOW, first matching condition wins.

    HIGH when either score is below its floor, else MEDIUM when the vendor
    score is within 50..70 inclusive, else LOW. A condition that compares an
    absent score does not match, so a row with no scores at all is LOW.
    """
    low, high = MEDIUM_RISK_VENDOR_SCORE_RANGE
    is_high = (
        vendor_score.lt(HIGH_RISK_VENDOR_SCORE_BELOW) | quality_score.lt(HIGH_RISK_QUALITY_SCORE_BELOW)
    ).fillna(False).to_numpy(dtype=bool)
    is_medium = vendor_score.between(low, high).fillna(False).to_numpy(dtype=bool)

    levels = np.select([is_high, is_medium], [HIGH, MEDIUM], default=LOW)
    return pd.Series(levels, index=vendor_score.index, dtype=object)
