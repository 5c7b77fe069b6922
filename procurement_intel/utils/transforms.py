"""Common data transformation utilities."""

import pandas as pd
from pandas.api.types import is_datetime64_any_dtype

from procurement_intel.utils.types import ColumnTypes

type ColumnMapping = dict[str, str]

_TRUE_VALUES = {"true", "yes", "1"}
_FALSE_VALUES = {"false", "no", "0"}


def normalize_columns(df: pd.DataFrame, mapping: ColumnMapping | None = None) -> pd.DataFrame:
    """Normalize column names to snake_case and apply optional mapping."""
    df = df.copy()
    df.columns = [str(col).strip().lower().replace(" ", "_").replace("-", "_") for col in df.columns]

    if mapping:
        df = df.rename(columns=mapping)

    return df


def merge_datasets(
    left: pd.DataFrame,
    right: pd.DataFrame,
    on: str | list[str],
    how: str = "left",
    validate: str | None = None,
) -> pd.DataFrame:
    """Merge two datasets with validation."""
    match how:
        case "left" | "right" | "inner" | "outer":
            result = pd.merge(left, right, on=on, how=how, validate=validate)
        case other:
            raise ValueError(f"Unsupported merge type: {other}")

    return result


def empty_frame(columns: ColumnTypes) -> pd.DataFrame:
    """Build a zero-row frame carrying the given column dtypes."""
    return pd.DataFrame({col: pd.Series(dtype=dtype) for col, dtype in columns.items()})


def coerce_columns(df: pd.DataFrame, columns: ColumnTypes) -> pd.DataFrame:
    """Cast columns to their canonical dtypes, adding absent ones as nulls.

    Unparseable values raise ``ValueError``/``TypeError``; callers decide
    whether that is an ingest or a store failure. Columns not listed are
    dropped and the result follows the order of ``columns``.
    """
    result = pd.DataFrame(index=df.index)

    for col, dtype in columns.items():
        if col not in df.columns:
            result[col] = pd.Series(index=df.index, dtype=dtype)
            continue

        values = df[col]
        match dtype:
            case "float64":
                result[col] = pd.to_numeric(values).astype("float64")
            case "Int64":
                result[col] = pd.to_numeric(values).astype("Int64")
            case "datetime64[ns]" if is_datetime64_any_dtype(values):
                result[col] = values.astype("datetime64[ns]")
            case "datetime64[ns]":
                result[col] = pd.to_datetime(values, format="ISO8601").astype("datetime64[ns]")
            case "bool" if values.dtype == bool:
                result[col] = values
            case "bool":
                result[col] = values.map(_parse_bool).astype(bool)
            case "object":
                result[col] = values.astype(object).where(values.notna(), None)
            case other:
                raise ValueError(f"Unsupported column dtype: {other}")

    return result


def _parse_bool(value: object) -> bool:
    match value:
        case bool():
            return value
        case str() if value.strip().lower() in _TRUE_VALUES:
            return True
        case str() if value.strip().lower() in _FALSE_VALUES:
            return False
        case int() | float() if value in (0, 1):
            return bool(value)
        case _:
            raise ValueError(f"Cannot interpret {value!r} as a boolean")
