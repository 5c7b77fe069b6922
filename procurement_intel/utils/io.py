"""File I/O utilities for reading and writing pipeline data."""

from pathlib import Path

import pandas as pd
from rich.console import Console

type FilePath = str | Path

console = Console()


def read_csv_files(directory: FilePath, pattern: str = "*.csv") -> pd.DataFrame:
    """Read all CSV files from a directory and concatenate them.

    Every value is read as a string; typing is the caller's job so that
    business keys such as ``000123`` keep their leading zeros.
    """
    directory = Path(directory)
    chunks = []

    for csv_file in sorted(directory.glob(pattern)):
        console.print(f"  Reading {csv_file.name}...")
        chunks.append(read_csv_file(csv_file))

    if not chunks:
        return pd.DataFrame()
    return pd.concat(chunks, ignore_index=True)


def read_csv_file(path: FilePath) -> pd.DataFrame:
    """Read one CSV as strings where only empty cells count as absent.

    Literal text such as ``NA`` or ``None`` is a real value (a region code or a
    vendor name), so pandas' default null markers are switched off.
    """
    return pd.read_csv(path, dtype=str, keep_default_na=False, na_values=[""])


def read_table_file(path: FilePath, fmt: str = "csv") -> pd.DataFrame:
    """Read a single table file written by ``write_output``."""
    path = Path(path)

    match fmt:
        case "csv":
            return read_csv_file(path)
        case "parquet":
            return pd.read_parquet(path)
        case "json":
            return pd.read_json(path, orient="records", dtype=False)
        case other:
            raise ValueError(f"Unsupported input format: {other}")


def write_output(df: pd.DataFrame, path: FilePath, fmt: str = "csv", quiet: bool = False) -> None:
    """Write a DataFrame to the specified format."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    match fmt:
        case "csv":
            df.to_csv(path, index=False)
        case "parquet":
            df.to_parquet(path, index=False)
        case "json":
            df.to_json(path, orient="records", indent=2, date_format="iso")
        case other:
            raise ValueError(f"Unsupported output format: {other}")

    if not quiet:
        console.print(f"  Wrote {len(df)} rows to {path}")
