from __future__ import annotations

import numpy as np
import pandas as pd
import pytest
from sklearn.base import clone
from sklearn.exceptions import NotFittedError
from sklearn.pipeline import Pipeline

from ml_recipes.exceptions import DataError, TypeMismatchError
from ml_recipes.sklearn_utils.date_transformer import DateFeatureTransformer


def test_fit_transform_selects_all_date_columns(mixed_df: pd.DataFrame) -> None:
    transformer = DateFeatureTransformer(features=("year", "quarter"))
    out = transformer.fit_transform(mixed_df)

    assert transformer.step_.columns == ("Dan", "Stefan")
    assert transformer.n_features_in_ == mixed_df.shape[1]
    assert list(out.columns) == list(mixed_df.columns) + [
        "Dan_year",
        "Dan_quarter",
        "Stefan_year",
        "Stefan_quarter",
    ]
    assert out["Stefan_year"].iloc[0] == 2006


def test_explicit_columns(examples_df: pd.DataFrame) -> None:
    transformer = DateFeatureTransformer(columns=["Dan"], features=("dow",), abbreviate=False)
    out = transformer.fit(examples_df).transform(examples_df)

    assert out["Dan_dow"].iloc[0] == "Tuesday"
    assert "Stefan_dow" not in out.columns


def test_get_feature_names_out(examples_df: pd.DataFrame) -> None:
    transformer = DateFeatureTransformer(columns=["Stefan"], features=("month", "doy")).fit(examples_df)

    names = transformer.get_feature_names_out()
    assert isinstance(names, np.ndarray)
    assert names.tolist() == ["Dan", "Stefan", "Stefan_month", "Stefan_doy"]


def test_unfitted_transformer_raises(examples_df: pd.DataFrame) -> None:
    transformer = DateFeatureTransformer()

    with pytest.raises(NotFittedError):
        transformer.transform(examples_df)
    with pytest.raises(NotFittedError):
        transformer.get_feature_names_out()


def test_clone_keeps_parameters() -> None:
    transformer = DateFeatureTransformer(columns=["Dan"], features=("year",), ordinal=True)
    cloned = clone(transformer)

    assert cloned.get_params() == transformer.get_params()
    assert not hasattr(cloned, "step_")


def test_non_date_column_is_rejected(mixed_df: pd.DataFrame) -> None:
    with pytest.raises(TypeMismatchError):
        DateFeatureTransformer(columns=["amount"]).fit(mixed_df)


def test_requires_dataframe() -> None:
    with pytest.raises(DataError) as ctx:
        DateFeatureTransformer().fit(np.zeros((2, 2)))
    assert ctx.value.code == "date_transformer_not_dataframe"


def test_works_inside_pipeline(examples_df: pd.DataFrame) -> None:
    pipe = Pipeline([("dates", DateFeatureTransformer(features=("semester",)))])
    out = pipe.fit_transform(examples_df)

    assert out["Dan_semester"].tolist() == [1] * len(examples_df)
