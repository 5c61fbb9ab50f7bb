"""
ml_recipes: declarative preprocessing recipes for tabular data.

The public API covers the calendar feature step and the pieces needed to
run it:

    from ml_recipes import all_predictors, recipe

    rec = recipe(df).step_date(all_predictors(), features=["year", "dow"])
    baked = rec.prep(df).bake(df)
"""

from __future__ import annotations

from importlib import metadata as _metadata

try:
    __version__ = _metadata.version("ml-recipes")
except _metadata.PackageNotFoundError:
    # Running from a source checkout without installation
    __version__ = "0.0.0"

from .config import AppConfig, get_config, get_paths  # noqa: F401
from .exceptions import (  # noqa: F401
    AppError,
    ConfigError,
    ConfigurationError,
    DataError,
    PipelineError,
    TypeMismatchError,
    UnboundStepError,
)
from .features.calendar import DATE_FEATURES, derive_date_features  # noqa: F401
from .logging_config import get_logger  # noqa: F401
from .recipes import (  # noqa: F401
    Recipe,
    StepDate,
    all_dates,
    all_outcomes,
    all_predictors,
    apply_date_step,
    bind_date_step,
    describe_date_step,
    has_role,
    has_type,
    make_date_step,
    names,
    recipe,
    step_date,
    tune,
)

__all__ = [
    "__version__",
    # Config
    "AppConfig",
    "get_config",
    "get_paths",
    # Logging
    "get_logger",
    # Exceptions
    "AppError",
    "ConfigError",
    "ConfigurationError",
    "DataError",
    "PipelineError",
    "TypeMismatchError",
    "UnboundStepError",
    # Features
    "DATE_FEATURES",
    "derive_date_features",
    # Recipes
    "Recipe",
    "StepDate",
    "all_dates",
    "all_outcomes",
    "all_predictors",
    "apply_date_step",
    "bind_date_step",
    "describe_date_step",
    "has_role",
    "has_type",
    "make_date_step",
    "names",
    "recipe",
    "step_date",
    "tune",
]
