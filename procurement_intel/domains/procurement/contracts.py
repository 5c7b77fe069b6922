"""Contract eligibility classification for accepted procurement lines."""

import numpy as np
import pandas as pd

CONTRACT = "Contract"
NON_CONTRACT = "Non-Contract"

# Both thresholds must be met; absent scores never qualify
CONTRACT_MIN_VENDOR_SCORE = 75
CONTRACT_MIN_QUALITY_SCORE = 7


def classify_contract_status(vendor_score: pd.Series, quality_score: pd.Series) -> pd.Series:
    qualifies = (
        vendor_score.ge(CONTRACT_MIN_VENDOR_SCORE) & quality_score.ge(CONTRACT_MIN_QUALITY_SCORE)
    ).fillna(False).to_numpy(dtype=bool)
    return pd.Series(np.where(qualifies, CONTRACT, NON_CONTRACT), index=vendor_score.index, dtype=object)
