from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Generator

import numpy as np
import pandas as pd
import pytest
import yaml

import ml_recipes.config as config_module

# ---------------------------------------------------------------------------
# Global test isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _set_test_seed() -> Generator[None, None, None]:
    """Seed `random` (used for step ids) and numpy for every test."""
    random.seed(1234)
    np.random.seed(1234)
    yield


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Generator[None, None, None]:
    """Run each test without ML_RECIPES_* variables, a cached config, or a
    config file discovered from the working directory."""
    import os

    for key in list(os.environ):
        if key.startswith("ML_RECIPES_") and key not in {
            "ML_RECIPES_CONFIGURE_LOGGING",
            "ML_RECIPES_LOG_LEVEL",
        }:
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    config_module._config_cache = None
    yield
    config_module._config_cache = None


@pytest.fixture
def package_caplog(caplog: pytest.LogCaptureFixture) -> Generator[pytest.LogCaptureFixture, None, None]:
    """caplog that also sees records from the non-propagating `ml_recipes` logger."""
    package_logger = logging.getLogger("ml_recipes")
    package_logger.addHandler(caplog.handler)
    try:
        yield caplog
    finally:
        package_logger.removeHandler(caplog.handler)


# ---------------------------------------------------------------------------
# In-memory DataFrames
# ---------------------------------------------------------------------------


@pytest.fixture
def examples_df() -> pd.DataFrame:
    """Two date columns, ten days each.

    Dan runs 2002-03-05 (a Tuesday) to 2002-03-14; Stefan runs 2006-01-14
    (a Saturday) to 2006-01-23.
    """
    return pd.DataFrame(
        {
            "Dan": pd.date_range("2002-03-05", periods=10, freq="D"),
            "Stefan": pd.date_range("2006-01-14", periods=10, freq="D"),
        }
    )


@pytest.fixture
def mixed_df(examples_df: pd.DataFrame) -> pd.DataFrame:
    """examples_df plus a numeric predictor, a text column and an outcome."""
    df = examples_df.copy()
    df["amount"] = np.arange(len(df), dtype=float) * 1.5
    df["channel"] = ["web", "app"] * 5
    df["target"] = [0, 1] * 5
    return df


# ---------------------------------------------------------------------------
# Files under a temporary directory
# ---------------------------------------------------------------------------


@pytest.fixture
def orders_csv(tmp_path: Path, mixed_df: pd.DataFrame) -> Path:
    """mixed_df written as CSV with ISO-formatted dates."""
    path = tmp_path / "data" / "orders.csv"
    path.parent.mkdir(parents=True, exist_ok=True)
    mixed_df.to_csv(path, index=False, date_format="%Y-%m-%d")
    return path


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    """A flat YAML config with non-default date step settings."""
    config = {
        "env": "dev",
        "log_level": "INFO",
        "paths": {
            "base_dir": str(tmp_path),
            "data_dir": "data",
            "output_dir": "data/baked",
        },
        "date_step": {
            "features": ["year", "quarter", "month"],
            "abbreviate": False,
            "ordinal": True,
        },
    }
    path = tmp_path / "ml_recipes_test.yaml"
    path.write_text(yaml.safe_dump(config, sort_keys=False), encoding="utf-8")
    return path
