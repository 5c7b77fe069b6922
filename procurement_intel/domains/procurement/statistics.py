"""Spend statistics over accepted transactions and outlier flagging."""

import logging
import math
from dataclasses import dataclass

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

OUTLIER_SIGMA = 2


@dataclass(frozen=True)
class SpendStatistics:
    """Mean and standard deviation of accepted spend.

    Attributes:
        count: Number of amounts the statistics were computed from.
        mean: Arithmetic mean, ``None`` when undefined.
        stddev: Standard deviation, ``None`` when undefined.
        ddof: Delta degrees of freedom (0 population, 1 sample).
    """

    count: int
    mean: float | None
    stddev: float | None
    ddof: int = 0

    @property
    def defined(self) -> bool:
        return self.mean is not None and self.stddev is not None

    @property
    def outlier_threshold(self) -> float | None:
        if not self.defined:
            return None
        return self.mean + OUTLIER_SIGMA * self.stddev


def compute_spend_statistics(amounts: pd.Series, ddof: int = 0) -> SpendStatistics:
    """Compute mean and standard deviation, undefined for too few amounts."""
    values = amounts.dropna().to_numpy(dtype="float64")
    count = len(values)

    if count <= ddof:
        logger.info(f"Spend statistics undefined for {count} accepted amounts (ddof={ddof})")
        return SpendStatistics(count=count, mean=None, stddev=None, ddof=ddof)

    mean = float(np.mean(values))
    stddev = float(np.std(values, ddof=ddof))
    if not (math.isfinite(mean) and math.isfinite(stddev)):
        return SpendStatistics(count=count, mean=None, stddev=None, ddof=ddof)

    logger.info(f"Spend statistics over {count} rows: mean={mean:.2f} stddev={stddev:.2f}")
    return SpendStatistics(count=count, mean=mean, stddev=stddev, ddof=ddof)


def flag_outliers(amounts: pd.Series, stats: SpendStatistics) -> pd.Series:
    """Flag amounts strictly above mean + 2 * stddev; all False when undefined."""
    threshold = stats.outlier_threshold
    if threshold is None:
        return pd.Series(False, index=amounts.index, dtype=bool)
    return (amounts > threshold).fillna(False).astype(bool)
