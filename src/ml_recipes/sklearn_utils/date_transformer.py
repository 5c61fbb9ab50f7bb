from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, TransformerMixin
from sklearn.utils.validation import check_is_fitted

from ml_recipes.exceptions import DataError
from ml_recipes.features.calendar import DEFAULT_DATE_FEATURES
from ml_recipes.logging_config import get_logger
from ml_recipes.recipes.schema import infer_schema
from ml_recipes.recipes.selectors import all_dates, names
from ml_recipes.recipes.steps.date import StepDate, bind_date_step, make_date_step

logger = get_logger(__name__)


class DateFeatureTransformer(TransformerMixin, BaseEstimator):
    """scikit-learn wrapper around the recipe date step.

    ``fit`` infers the schema of the training DataFrame and binds a date
    step to it; ``transform`` appends the calendar columns. Use it ahead of
    a ColumnTransformer so the derived columns can be encoded like any other
    feature:

        pipe = Pipeline([
            ("dates", DateFeatureTransformer(features=("year", "month"))),
            ("preprocess", build_preprocessor(...)),
        ])

    Parameters
    ----------
    columns:
        Date columns to expand. None selects every date / datetime column.
    features, abbreviate, use_label, ordinal:
        Passed to ``make_date_step``.
    """

    def __init__(
        self,
        columns: Optional[Sequence[str]] = None,
        features: Sequence[str] = DEFAULT_DATE_FEATURES,
        abbreviate: bool = True,
        use_label: bool = True,
        ordinal: bool = False,
    ) -> None:
        self.columns = columns
        self.features = features
        self.abbreviate = abbreviate
        self.use_label = use_label
        self.ordinal = ordinal

    def _check_frame(self, X: object, method: str) -> pd.DataFrame:
        if not isinstance(X, pd.DataFrame):
            raise DataError(
                "DateFeatureTransformer expects a pandas DataFrame",
                code="date_transformer_not_dataframe",
                context={"type": type(X).__name__},
                location=f"{__name__}.DateFeatureTransformer.{method}",
            )
        return X

    def fit(self, X: pd.DataFrame, y: object = None) -> DateFeatureTransformer:
        X = self._check_frame(X, "fit")

        selector = names(*self.columns) if self.columns is not None else all_dates()
        step = make_date_step(
            selector,
            features=self.features,
            abbreviate=self.abbreviate,
            use_label=self.use_label,
            ordinal=self.ordinal,
        )
        self.step_: StepDate = bind_date_step(step, infer_schema(X))
        self.feature_names_in_ = np.asarray([str(c) for c in X.columns], dtype=object)
        self.n_features_in_ = len(self.feature_names_in_)

        logger.info(
            "Fitted DateFeatureTransformer",
            extra={"columns": list(self.step_.columns or ()), "features": list(self.step_.features)},  # type: ignore[arg-type]
        )
        return self

    def transform(self, X: pd.DataFrame) -> pd.DataFrame:
        check_is_fitted(self, "step_")
        X = self._check_frame(X, "transform")
        return self.step_.bake(X)

    def get_feature_names_out(self, input_features: Optional[Sequence[str]] = None) -> np.ndarray:
        check_is_fitted(self, "step_")
        base = list(input_features) if input_features is not None else list(self.feature_names_in_)
        return np.asarray(base + self.step_.output_columns, dtype=object)
