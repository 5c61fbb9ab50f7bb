"""
Stateless feature derivation for ml_recipes.

Recipe steps delegate their per-column arithmetic here, so the same helpers
can be used directly on a Series:

    from ml_recipes.features.calendar import derive_date_features

    derive_date_features(df["ordered_at"], ["year", "dow"])
"""

from __future__ import annotations

from .calendar import DATE_FEATURES, DEFAULT_DATE_FEATURES, derive_date_features

__all__ = ["DATE_FEATURES", "DEFAULT_DATE_FEATURES", "derive_date_features"]
