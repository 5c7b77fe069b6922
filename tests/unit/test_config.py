"""Unit tests for environment config selection and overrides."""

from pathlib import Path

import pytest

from procurement_intel.config import (
    ENV_VARIABLE,
    PROJECT_ROOT,
    apply_overrides,
    get_env_config,
    load_pipeline_config,
)
from procurement_intel.errors import ProcurementConfigError


def test_development_config_defaults() -> None:
    """Development stores CSV snapshots under the project data directory."""
    config = load_pipeline_config("development")

    assert config.env == "development"
    assert config.store.root == PROJECT_ROOT / "data"
    assert config.store.fmt == "csv"
    assert config.vendor_map_strategy == "replace"
    assert config.stddev_ddof == 0
    assert config.run_expectations is True
    assert config.strict_validation is False


def test_production_config_is_strict_parquet() -> None:
    """Production publishes parquet snapshots and validates strictly."""
    config = load_pipeline_config("production")

    assert config.store.fmt == "parquet"
    assert config.strict_validation is True


def test_environment_variable_selects_config(monkeypatch) -> None:
    """The env var picks the environment when none is passed."""
    monkeypatch.setenv(ENV_VARIABLE, "staging")

    assert load_pipeline_config().env == "staging"


def test_unknown_environment_is_rejected() -> None:
    """Unknown environment names raise ValueError."""
    with pytest.raises(ValueError, match="Unknown environment"):
        load_pipeline_config("qa")


def test_overrides_update_store_and_pipeline_settings(tmp_path) -> None:
    """Flat override keys map onto nested config fields."""
    config = load_pipeline_config(
        "development",
        {
            "store_root": str(tmp_path),
            "store_format": "parquet",
            "retain_snapshots": 4,
            "vendor_map_strategy": "merge",
            "stddev_ddof": 1,
            "run_expectations": False,
        },
    )

    assert config.store.root == Path(tmp_path)
    assert config.store.fmt == "parquet"
    assert config.store.retain_snapshots == 4
    assert config.vendor_map_strategy == "merge"
    assert config.stddev_ddof == 1
    assert config.run_expectations is False


@pytest.mark.parametrize(
    "overrides",
    [
        {"store_format": "xlsx"},
        {"retain_snapshots": 0},
        {"vendor_map_strategy": "truncate"},
        {"stddev_ddof": 2},
        {"colour": "blue"},
    ],
)
def test_invalid_overrides_raise_config_error(overrides: dict) -> None:
    """Bad values and unknown keys are configuration errors."""
    with pytest.raises(ProcurementConfigError):
        apply_overrides(load_pipeline_config("development"), overrides)


def test_get_env_config_reads_pyproject_tool_table() -> None:
    """The repository pyproject carries a procurement_intel tool table."""
    settings = get_env_config()

    assert settings["vendor_map_strategy"] == "replace"
    assert settings["stddev_ddof"] == 0
