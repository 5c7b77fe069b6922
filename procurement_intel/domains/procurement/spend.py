"""Build the procurement spend fact table from clean gate records."""

import logging
from datetime import datetime

import pandas as pd
from rich.console import Console

from procurement_intel.domains.procurement.contracts import classify_contract_status
from procurement_intel.domains.procurement.models import FACT_COLUMNS
from procurement_intel.domains.procurement.risk import classify_risk_level
from procurement_intel.domains.procurement.statistics import SpendStatistics, flag_outliers
from procurement_intel.utils.transforms import merge_datasets

logger = logging.getLogger(__name__)
console = Console()

PURCHASE_MONTH_FORMAT = "%Y-%m"


def resolve_vendor_names(clean: pd.DataFrame, vendor_map: pd.DataFrame) -> pd.DataFrame:
    """Left-join clean rows to the vendor map; misses keep a null clean name."""
    lookup = vendor_map[["raw_vendor_name", "clean_vendor_name"]].rename(
        columns={"raw_vendor_name": "vendor_name"}
    )
    resolved = merge_datasets(
        clean.reset_index(drop=True),
        lookup,
        on="vendor_name",
        how="left",
        validate="many_to_one",
    )
    resolved["clean_vendor_name"] = resolved["clean_vendor_name"].astype(object).where(
        resolved["clean_vendor_name"].notna(), None
    )
    return resolved


def build_spend_facts(
    clean: pd.DataFrame,
    vendor_map: pd.DataFrame,
    stats: SpendStatistics,
    load_timestamp: datetime,
) -> pd.DataFrame:
    """Produce exactly one classified fact row per clean gate row."""
    console.print("  Building spend fact table...")

    facts = resolve_vendor_names(clean, vendor_map)
    facts["purchase_month"] = facts["purchase_date"].dt.strftime(PURCHASE_MONTH_FORMAT).astype(object)
    facts["contract_status"] = classify_contract_status(facts["vendor_score"], facts["quality_score"])
    facts["risk_level"] = classify_risk_level(facts["vendor_score"], facts["quality_score"])
    facts["outlier_flag"] = flag_outliers(facts["spend_amount"], stats)
    facts["load_timestamp"] = pd.Timestamp(load_timestamp)
    facts = facts[list(FACT_COLUMNS)]

    unresolved = int(facts["clean_vendor_name"].isna().sum())
    if unresolved:
        logger.warning(f"{unresolved} fact rows have no resolved clean vendor name")

    outliers = int(facts["outlier_flag"].sum())
    console.print(f"  Built {len(facts):,} fact rows, {outliers} spend outliers")
    return facts
