"""
Declarative preprocessing recipes.

A recipe records *what* should happen to a table; ``prep`` fits it on
training data and ``bake`` applies it:

    from ml_recipes.recipes import all_predictors, recipe

    rec = recipe(train_df, outcomes=["target"]).step_date(all_predictors())
    rec = rec.prep(train_df)
    features = rec.bake(test_df)
"""

from __future__ import annotations

from .recipe import Recipe, recipe
from .schema import VariableInfo, infer_schema
from .selectors import (
    all_dates,
    all_outcomes,
    all_predictors,
    contains,
    ends_with,
    everything,
    has_role,
    has_type,
    matches,
    names,
    starts_with,
)
from .steps import (
    StepDate,
    apply_date_step,
    bind_date_step,
    describe_date_step,
    make_date_step,
    step_date,
    tune,
)

__all__ = [
    "Recipe",
    "StepDate",
    "VariableInfo",
    "all_dates",
    "all_outcomes",
    "all_predictors",
    "apply_date_step",
    "bind_date_step",
    "contains",
    "describe_date_step",
    "ends_with",
    "everything",
    "has_role",
    "has_type",
    "infer_schema",
    "make_date_step",
    "matches",
    "names",
    "recipe",
    "starts_with",
    "step_date",
    "tune",
]
