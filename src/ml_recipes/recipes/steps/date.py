from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Iterable, Sequence

import pandas as pd

from ml_recipes.exceptions import (
    ConfigurationError,
    DataError,
    TypeMismatchError,
    UnboundStepError,
)
from ml_recipes.features.calendar import (
    DEFAULT_DATE_FEATURES,
    derive_date_features,
    feature_vocabulary_message,
    unknown_features,
)
from ml_recipes.logging_config import get_logger
from ml_recipes.recipes.schema import DATE_TYPES, SchemaLike, as_schema, infer_schema
from ml_recipes.recipes.selectors import (
    SelectorLike,
    as_selector,
    render_selectors,
    resolve_selectors,
)
from ml_recipes.recipes.steps.base import Deferred, IdGenerator, Step, is_deferred, make_id

if TYPE_CHECKING:
    from ml_recipes.recipes.recipe import Recipe

logger = get_logger(__name__)
_LOCATION_PREFIX = __name__


@dataclass(frozen=True)
class StepDate(Step):
    """Derive calendar features from date and date-time columns.

    Each selected column ``col`` gains one new column ``col_<feature>`` per
    requested feature. The original date columns are kept; remove them with
    a later step if they should not reach the model.
    """

    features: tuple[str, ...] | Deferred = DEFAULT_DATE_FEATURES
    abbreviate: bool = True
    use_label: bool = True
    ordinal: bool = False

    step_type = "date"

    def prep(self, training: pd.DataFrame, info: SchemaLike | None = None) -> StepDate:
        schema = info if info is not None else infer_schema(training)
        return bind_date_step(self, schema)

    def bake(self, new_data: pd.DataFrame) -> pd.DataFrame:
        return apply_date_step(self, new_data)

    def tidy(self) -> pd.DataFrame:
        return describe_date_step(self)

    def update(self, **changes: Any) -> StepDate:
        """Return a copy with `changes` applied, e.g. to fill in tuned features."""
        if "features" in changes:
            changes["features"] = _check_features(
                changes["features"], location=f"{_LOCATION_PREFIX}.StepDate.update"
            )
        return replace(self, **changes)

    @property
    def output_columns(self) -> list[str]:
        """Names of the columns `bake` adds. Only defined once trained."""
        if not self.trained or self.columns is None or is_deferred(self.features):
            return []
        return date_feature_names(self.columns, self.features)  # type: ignore[arg-type]

    def format(self, width: int = 50) -> str:
        return "Date features from " + super().format(width)


def date_feature_names(columns: Iterable[str], features: Sequence[str]) -> list[str]:
    """``<column>_<feature>`` for every column, then every feature."""
    return [f"{column}_{token}" for column in columns for token in features]


def _check_features(features: Any, *, location: str) -> tuple[str, ...] | Deferred:
    if is_deferred(features):
        return features

    if isinstance(features, str):
        features = (features,)
    features = tuple(features)

    if not features:
        raise ConfigurationError(
            "At least one date feature is required. " + feature_vocabulary_message(),
            context={"features": []},
            location=location,
        )

    unknown = unknown_features(features)
    if unknown:
        raise ConfigurationError(
            feature_vocabulary_message(),
            context={"features": list(features), "unknown_features": unknown},
            location=location,
        )

    deduplicated = tuple(dict.fromkeys(features))
    if len(deduplicated) != len(features):
        logger.warning(
            "Duplicate date features dropped",
            extra={"features": list(features), "kept": list(deduplicated)},
        )
    return deduplicated


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def make_date_step(
    *selectors: SelectorLike,
    role: str | None = "predictor",
    features: Sequence[str] | str | Deferred = DEFAULT_DATE_FEATURES,
    abbreviate: bool = True,
    use_label: bool = True,
    ordinal: bool = False,
    skip: bool = False,
    id: str | None = None,
    id_generator: IdGenerator | None = None,
) -> StepDate:
    """Create an untrained date step.

    Parameters
    ----------
    *selectors:
        Selectors (or plain column names) choosing the date columns to expand.
    role:
        Role given to the new columns in the recipe schema.
    features:
        Calendar features to derive: any of 'year', 'doy', 'week', 'decimal',
        'semester', 'quarter', 'dow', 'month'. A ``tune()`` marker defers the
        choice and skips validation.
    abbreviate:
        Use "Mon" / "Jan" rather than "Monday" / "January". Ignored when
        `use_label` is False.
    use_label:
        Render 'dow' and 'month' as labels; False gives integers
        (1 = Sunday for 'dow').
    ordinal:
        Keep labelled 'dow' / 'month' as ordered categoricals.
    skip:
        If True, the step is skipped when a prepped recipe bakes new data.
    id, id_generator:
        An explicit id, or a callable mapping the "date" prefix to an id.
        Defaults to ``rand_id``.

    Raises
    ------
    ConfigurationError
        If no selectors are given or `features` is empty or holds unknown tokens.
    """
    location = f"{_LOCATION_PREFIX}.make_date_step"

    if not selectors:
        raise ConfigurationError(
            "Please supply at least one selector to choose the date columns",
            code="step_missing_selectors",
            location=location,
        )

    return StepDate(
        terms=tuple(as_selector(s) for s in selectors),
        role=role,
        trained=False,
        features=_check_features(features, location=location),
        abbreviate=abbreviate,
        use_label=use_label,
        ordinal=ordinal,
        columns=None,
        skip=skip,
        id=id if id is not None else make_id(StepDate.step_type, id_generator),
    )


def step_date(recipe: Recipe, *selectors: SelectorLike, **kwargs: Any) -> Recipe:
    """Append a new date step to `recipe` and return the updated recipe."""
    return recipe.add_step(make_date_step(*selectors, **kwargs))


# ---------------------------------------------------------------------------
# Schema binding
# ---------------------------------------------------------------------------


def bind_date_step(step: StepDate, schema: SchemaLike) -> StepDate:
    """Resolve the step's selectors against `schema` and return a trained copy.

    Raises
    ------
    ConfigurationError
        If the features are still a ``tune()`` placeholder.
    TypeMismatchError
        If any selected column is not typed "date" or "datetime".
    DataError
        If the selectors name unknown columns or select nothing.
    """
    location = f"{_LOCATION_PREFIX}.bind_date_step"

    if is_deferred(step.features):
        raise ConfigurationError(
            "Date features must be finalized before the step is prepped",
            code="step_unresolved_features",
            context={"id": step.id, "features": str(step.features)},
            location=location,
        )

    variables = as_schema(schema)
    columns = resolve_selectors(step.terms, variables)

    types = {v.variable: v.type for v in variables}
    wrong_types = {c: types.get(c) for c in columns if types.get(c) not in DATE_TYPES}
    if wrong_types:
        raise TypeMismatchError(
            "All variables for the date step should be Date or date-time typed",
            context={"id": step.id, "columns": wrong_types},
            location=location,
        )

    logger.info(
        "Bound date step",
        extra={"id": step.id, "columns": columns, "features": list(step.features)},  # type: ignore[arg-type]
    )

    return replace(step, trained=True, columns=tuple(columns))


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


def apply_date_step(step: StepDate, data: pd.DataFrame) -> pd.DataFrame:
    """Append the derived calendar columns to a copy of `data`.

    Raises
    ------
    UnboundStepError
        If the step is untrained or `data` lacks one of its bound columns.
    DataError
        If a derived column name already exists in `data`.
    """
    location = f"{_LOCATION_PREFIX}.apply_date_step"

    if not step.trained or step.columns is None:
        raise UnboundStepError(
            "The date step must be prepped before it can be applied",
            context={"id": step.id, "terms": render_selectors(step.terms)},
            location=location,
        )

    missing = [c for c in step.columns if c not in data.columns]
    if missing:
        raise UnboundStepError(
            "Columns the date step was prepped on are missing from the data",
            code="step_missing_columns",
            context={
                "id": step.id,
                "missing_columns": missing,
                "available_columns": list(map(str, data.columns)),
            },
            location=location,
        )

    features: tuple[str, ...] = step.features  # type: ignore[assignment]
    new_names = date_feature_names(step.columns, features)

    clashes = [name for name in new_names if name in data.columns]
    if clashes:
        raise DataError(
            "Derived date feature names already exist in the data",
            code="date_step_name_collision",
            context={"id": step.id, "existing_columns": clashes},
            location=location,
        )

    pieces = []
    for column in step.columns:
        derived = derive_date_features(
            data[column],
            features,
            abbreviate=step.abbreviate,
            use_label=step.use_label,
            ordinal=step.ordinal,
            column=column,
        )
        derived.columns = [f"{column}_{token}" for token in derived.columns]
        pieces.append(derived)

    result = pd.concat([data.copy(), *pieces], axis=1)

    logger.info(
        "Applied date step",
        extra={
            "id": step.id,
            "n_rows": int(result.shape[0]),
            "n_new_columns": len(new_names),
        },
    )

    return result


# ---------------------------------------------------------------------------
# Description
# ---------------------------------------------------------------------------


def describe_date_step(step: StepDate) -> pd.DataFrame:
    """One row per (target, feature) with columns terms, value, ordinal, id.

    Targets are the bound column names once trained and the rendered
    selectors before that. Rows are ordered by target, then feature, the
    same order as the columns ``bake`` appends (recipes' ``expand.grid``
    listing in R varies the target fastest instead).
    """
    if step.trained and step.columns is not None:
        terms = list(step.columns)
    else:
        terms = render_selectors(step.terms)

    if is_deferred(step.features):
        values = [str(step.features)]
    else:
        values = list(step.features)  # type: ignore[arg-type]

    rows = [
        {"terms": term, "value": value, "ordinal": step.ordinal, "id": step.id}
        for term in terms
        for value in values
    ]
    return pd.DataFrame(rows, columns=["terms", "value", "ordinal", "id"])
