"""Vendor name normalization into the vendor master map."""

import logging
from datetime import datetime

import pandas as pd
from rich.console import Console

from procurement_intel.domains.procurement.models import VENDOR_MAP_COLUMNS
from procurement_intel.utils.transforms import empty_frame

logger = logging.getLogger(__name__)
console = Console()

# Removed in this order by literal substring replacement, wherever they occur
LEGAL_SUFFIXES = (" PVT.", " PVT", " LTD.", " LTD", " INC")

NORMALIZATION_RULE = "UPPER + TRIM + REMOVE LEGAL SUFFIXES"


def normalize_vendor_name(raw_name: str) -> str:
    """Canonicalize one raw vendor string.

    >>> normalize_vendor_name("abc pvt ltd")
    'ABC'
    """
    cleaned = raw_name.upper()
    for suffix in LEGAL_SUFFIXES:
        cleaned = cleaned.replace(suffix, "")
    return cleaned.strip()


def build_vendor_map(vendor_names: pd.Series, created_at: datetime) -> pd.DataFrame:
    """Build one map entry per distinct (case-sensitive) raw vendor string."""
    absent = int(vendor_names.isna().sum())
    if absent:
        logger.warning(f"{absent} raw rows have no vendor name and get no map entry")

    distinct = sorted(str(name) for name in vendor_names.dropna().unique())
    if not distinct:
        return empty_frame(VENDOR_MAP_COLUMNS)

    return pd.DataFrame({
        "raw_vendor_name": distinct,
        "clean_vendor_name": [normalize_vendor_name(name) for name in distinct],
        "rule_applied": NORMALIZATION_RULE,
        "created_at": pd.Timestamp(created_at),
    })


def merge_vendor_map(existing: pd.DataFrame, fresh: pd.DataFrame) -> pd.DataFrame:
    """Upsert freshly derived entries into an existing map keyed by raw name.

    Entries whose rule is not the automatic one are manual curation: they win
    over the derived entry and survive even when the raw name has gone. Stale
    automatic entries are dropped. Surviving raw names keep their original
    ``created_at``.
    """
    if existing.empty:
        return fresh

    curated = existing[existing["rule_applied"].fillna("") != NORMALIZATION_RULE]
    first_seen = existing.set_index("raw_vendor_name")["created_at"]

    derived = fresh[~fresh["raw_vendor_name"].isin(curated["raw_vendor_name"])].copy()
    known = derived["raw_vendor_name"].isin(first_seen.index)
    derived.loc[known, "created_at"] = derived.loc[known, "raw_vendor_name"].map(first_seen)

    merged = pd.concat([curated, derived], ignore_index=True)
    return merged.sort_values("raw_vendor_name", ignore_index=True)


def refresh_vendor_map(
    raw: pd.DataFrame,
    existing: pd.DataFrame,
    strategy: str,
    created_at: datetime,
) -> pd.DataFrame:
    """Rebuild the vendor map for a run using the configured refresh strategy."""
    fresh = build_vendor_map(raw["vendor_name"], created_at)

    match strategy:
        case "replace":
            vendor_map = fresh
        case "merge":
            vendor_map = merge_vendor_map(existing, fresh)
        case other:
            raise ValueError(f"Unknown vendor map strategy: {other}")

    console.print(f"  Normalized {len(vendor_map):,} vendor names ({strategy})")
    return vendor_map
