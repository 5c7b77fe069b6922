"""Data quality gate: split staged rows into clean and rejected sets.

Every acceptance clause is a named rule evaluated exactly once per row.
The reject set is the Boolean negation of the combined accept mask, so the
two outputs always partition the input. Comparisons against an absent value
count as a failed clause, except that an absent optional score satisfies
its range rule.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

import pandas as pd

from procurement_intel.domains.procurement.models import QUALITY_FLAG_VALID, REJECT_REASON

logger = logging.getLogger(__name__)

type RuleCheck = Callable[[pd.DataFrame], pd.Series]

DUPLICATE_RULE = "DUPLICATE_PURCHASE_ID"
RULE_SEPARATOR = ","


def _present(column: str) -> RuleCheck:
    return lambda df: df[column].notna()


def _absent_or_between(column: str, low: int, high: int) -> RuleCheck:
    def check(df: pd.DataFrame) -> pd.Series:
        values = df[column]
        return (values.isna() | values.between(low, high)).fillna(False).astype(bool)
    return check


def _positive(column: str) -> RuleCheck:
    return lambda df: (df[column] > 0).fillna(False).astype(bool)


# Row-level rules in reporting order; True means the row passes
ROW_RULES: dict[str, RuleCheck] = {
    "PURCHASE_ID_MISSING": _present("purchase_id"),
    "VENDOR_NAME_MISSING": _present("vendor_name"),
    "SPEND_NOT_POSITIVE": _positive("spend_amount"),
    "PURCHASE_DATE_MISSING": _present("purchase_date"),
    "QUALITY_SCORE_OUT_OF_RANGE": _absent_or_between("quality_score", 1, 10),
    "VENDOR_SCORE_OUT_OF_RANGE": _absent_or_between("vendor_score", 1, 100),
}


@dataclass(frozen=True)
class GateResult:
    clean: pd.DataFrame
    rejects: pd.DataFrame


def evaluate_rules(raw: pd.DataFrame) -> pd.DataFrame:
    """Return one boolean pass/fail column per rule, indexed like ``raw``.

    The duplicate-key rule only looks at rows that pass every row-level rule:
    the first of them (in staging order) keeps the ``purchase_id``.
    """
    passes = pd.DataFrame({name: rule(raw) for name, rule in ROW_RULES.items()}, index=raw.index)

    eligible = passes.all(axis=1)
    duplicate = pd.Series(False, index=raw.index)
    duplicate[eligible] = raw.loc[eligible, "purchase_id"].duplicated(keep="first")
    passes[DUPLICATE_RULE] = ~duplicate

    return passes


def describe_failures(passes: pd.DataFrame) -> pd.Series:
    """Join the names of every failed rule per row, empty for clean rows."""
    failed = ~passes
    return failed.apply(lambda row: RULE_SEPARATOR.join(row.index[row.to_numpy()]), axis=1).astype(object)


def split_clean_and_rejects(raw: pd.DataFrame, load_timestamp: datetime) -> GateResult:
    """Partition staged rows into the clean gate and the rejects table."""
    raw = raw.reset_index(drop=True)
    passes = evaluate_rules(raw)
    accepted = passes.all(axis=1)
    rejected = ~accepted

    clean = raw.loc[accepted].copy()
    clean["quality_flag"] = QUALITY_FLAG_VALID
    clean["load_timestamp"] = pd.Timestamp(load_timestamp)

    rejects = pd.DataFrame(
        {
            "source_row": raw.index[rejected],
            "purchase_id": raw.loc[rejected, "purchase_id"],
            "reject_reason": REJECT_REASON,
            "failed_rules": describe_failures(passes.loc[rejected]) if rejected.any() else pd.Series(dtype=object),
            "reject_time": pd.Timestamp(load_timestamp),
        },
        index=raw.index[rejected],
    )

    if rejected.any():
        breakdown = (~passes.loc[rejected]).sum()
        counts = ", ".join(f"{rule}={int(n)}" for rule, n in breakdown.items() if n)
        logger.warning(f"Rejected {int(rejected.sum())} of {len(raw)} rows ({counts})")

    logger.info(f"Quality gate accepted {len(clean)} rows, rejected {len(rejects)}")
    return GateResult(clean=clean, rejects=rejects)
