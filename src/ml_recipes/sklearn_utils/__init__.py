"""
Scikit-learn adapters for ml_recipes.

Import the concrete helpers directly, e.g.:

    from ml_recipes.sklearn_utils.date_transformer import DateFeatureTransformer
"""

from __future__ import annotations

__all__: list[str] = []
