"""Pipeline configuration and environment setup."""

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path

from procurement_intel.errors import ProcurementConfigError

type ConfigDict = dict[str, str | int | bool | list[str]]

PROJECT_ROOT = Path(__file__).parent.parent
ENV_VARIABLE = "PROCUREMENT_ENV"

STORE_FORMATS = ("csv", "parquet")
VENDOR_MAP_STRATEGIES = ("replace", "merge")


@dataclass(frozen=True)
class StoreConfig:
    root: Path
    fmt: str
    retain_snapshots: int


@dataclass(frozen=True)
class PipelineConfig:
    env: str
    store: StoreConfig
    vendor_map_strategy: str
    stddev_ddof: int
    run_expectations: bool
    strict_validation: bool


def load_pipeline_config(
    env: str | None = None,
    overrides: Mapping[str, object] | None = None,
) -> PipelineConfig:
    env = env or os.environ.get(ENV_VARIABLE, "development")

    match env:
        case "production":
            store = StoreConfig(
                root=Path("/data/procurement_intelligence"),
                fmt="parquet",
                retain_snapshots=5,
            )
            strict = True
        case "staging":
            store = StoreConfig(
                root=Path("/data/procurement_intelligence_staging"),
                fmt="csv",
                retain_snapshots=3,
            )
            strict = True
        case "development":
            store = StoreConfig(
                root=PROJECT_ROOT / "data",
                fmt="csv",
                retain_snapshots=2,
            )
            strict = False
        case other:
            raise ValueError(f"Unknown environment: {other}")

    config = PipelineConfig(
        env=env,
        store=store,
        vendor_map_strategy="replace",
        stddev_ddof=0,
        run_expectations=True,
        strict_validation=strict,
    )
    if overrides:
        config = apply_overrides(config, overrides)
    return config


def apply_overrides(config: PipelineConfig, overrides: Mapping[str, object]) -> PipelineConfig:
    """Layer flat override keys (from YAML or pyproject) onto a config."""
    store = config.store
    fields: dict[str, object] = {}

    for key, value in overrides.items():
        match key:
            case "store_root":
                store = replace(store, root=Path(str(value)).expanduser())
            case "store_format":
                if value not in STORE_FORMATS:
                    raise ProcurementConfigError(
                        f"store_format must be one of {', '.join(STORE_FORMATS)}, got {value!r}"
                    )
                store = replace(store, fmt=str(value))
            case "retain_snapshots":
                if not isinstance(value, int) or value < 1:
                    raise ProcurementConfigError(f"retain_snapshots must be a positive integer, got {value!r}")
                store = replace(store, retain_snapshots=value)
            case "vendor_map_strategy":
                if value not in VENDOR_MAP_STRATEGIES:
                    raise ProcurementConfigError(
                        f"vendor_map_strategy must be one of {', '.join(VENDOR_MAP_STRATEGIES)}, got {value!r}"
                    )
                fields["vendor_map_strategy"] = value
            case "stddev_ddof":
                if value not in (0, 1):
                    raise ProcurementConfigError(f"stddev_ddof must be 0 or 1, got {value!r}")
                fields["stddev_ddof"] = value
            case "run_expectations" | "strict_validation":
                fields[key] = bool(value)
            case unknown:
                raise ProcurementConfigError(f"Unknown configuration key: {unknown}")

    return replace(config, store=store, **fields)


def get_env_config() -> ConfigDict:
    """Read pipeline config from pyproject.toml."""
    pyproject = PROJECT_ROOT / "pyproject.toml"
    if not pyproject.exists():
        return {}
    with open(pyproject, "rb") as f:
        data = tomllib.load(f)
    return data.get("tool", {}).get("procurement_intel", {})
