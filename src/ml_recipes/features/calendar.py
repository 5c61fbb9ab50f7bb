from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping, Sequence

import numpy as np
import pandas as pd

from ml_recipes.exceptions import ConfigurationError, DataError
from ml_recipes.logging_config import get_logger

logger = get_logger(__name__)
_LOCATION_PREFIX = __name__

# Closed vocabulary of calendar features, in documentation order.
DATE_FEATURES: tuple[str, ...] = (
    "year",
    "doy",
    "week",
    "decimal",
    "semester",
    "quarter",
    "dow",
    "month",
)
DEFAULT_DATE_FEATURES: tuple[str, ...] = ("dow", "month", "year")

# Features whose output depends on abbreviate / use_label / ordinal.
LABELLED_FEATURES = frozenset({"dow", "month"})

WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
WEEKDAY_ABBREVIATIONS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
MONTH_ABBREVIATIONS = tuple(name[:3] for name in MONTH_NAMES)


def unknown_features(features: Iterable[str]) -> list[str]:
    """Return the tokens in `features` that are not calendar features."""
    return [token for token in features if token not in DATE_FEATURES]


def feature_vocabulary_message() -> str:
    return "Possible values of `features` should include: " + ", ".join(
        f"'{token}'" for token in DATE_FEATURES
    )


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------


def as_datetime(values: Any, *, column: str | None = None) -> pd.Series:
    """Coerce date-like values to a naive ``datetime64`` Series.

    Accepts datetime64 data (naive or tz-aware), ``datetime.date`` /
    ``datetime.datetime`` objects and parseable strings. Timezone-aware
    values keep the wall-clock fields of their own zone. Anything that
    cannot be parsed becomes ``NaT``.
    """
    series = values if isinstance(values, pd.Series) else pd.Series(values)

    if not pd.api.types.is_datetime64_any_dtype(series.dtype):
        try:
            series = pd.to_datetime(series, errors="coerce", format="mixed")
        except (TypeError, ValueError) as exc:
            raise DataError.from_exception(
                exc,
                message=f"Failed to convert column '{column}' to datetime",
                code="feature_datetime_conversion_error",
                context={"column": column, "dtype": str(series.dtype)},
                location=f"{_LOCATION_PREFIX}.as_datetime",
            ) from exc

    if isinstance(series.dtype, pd.DatetimeTZDtype):
        series = series.dt.tz_localize(None)

    return series


# ---------------------------------------------------------------------------
# Calendar primitives
# ---------------------------------------------------------------------------


def year(dt: pd.Series) -> pd.Series:
    return dt.dt.year.astype("Int64")


def day_of_year(dt: pd.Series) -> pd.Series:
    return dt.dt.dayofyear.astype("Int64")


def week_of_year(dt: pd.Series) -> pd.Series:
    """Count of completed seven-day periods since January 1st, plus one.

    Unlike the ISO week this always starts on January 1st, so values run
    from 1 to 53 and never wrap into the previous or next year.
    """
    return (day_of_year(dt) - 1) // 7 + 1


def decimal_date(dt: pd.Series) -> pd.Series:
    """Year plus the fraction of that year elapsed, e.g. 2002-03-14 -> 2002.197."""
    start_of_year = (dt - pd.to_timedelta(dt.dt.dayofyear - 1, unit="D")).dt.normalize()
    elapsed_days = (dt - start_of_year) / pd.Timedelta(days=1)
    days_in_year = np.where(dt.dt.is_leap_year, 366.0, 365.0)
    return dt.dt.year.astype("float64") + elapsed_days / days_in_year


def quarter(dt: pd.Series) -> pd.Series:
    return dt.dt.quarter.astype("Int64")


def semester(dt: pd.Series) -> pd.Series:
    """1 for January to June, 2 for July to December."""
    return (dt.dt.month.astype("Int64") - 1) // 6 + 1


def _labelled(index: pd.Series, labels: Sequence[str], *, ordered: bool) -> pd.Series:
    # index is 1-based with <NA> for missing rows; code -1 is a missing category.
    codes = (index - 1).to_numpy(dtype="int64", na_value=-1)
    categorical = pd.Categorical.from_codes(codes, categories=list(labels), ordered=ordered)
    return pd.Series(categorical, index=index.index)


def day_of_week(
    dt: pd.Series,
    *,
    use_label: bool = True,
    abbreviate: bool = True,
    ordinal: bool = False,
) -> pd.Series:
    """Day of week, 1 = Sunday ... 7 = Saturday, or its name.

    With ``use_label`` the result is a categorical whose categories are the
    weekday names in calendar order starting on Sunday; ``ordinal`` decides
    whether that order is part of the dtype. Without ``use_label`` the
    integer index is returned and ``abbreviate`` / ``ordinal`` are ignored.
    """
    index = ((dt.dt.dayofweek.astype("Int64") + 1) % 7 + 1).rename(None)
    if not use_label:
        return index
    labels = WEEKDAY_ABBREVIATIONS if abbreviate else WEEKDAY_NAMES
    return _labelled(index, labels, ordered=ordinal)


def month(
    dt: pd.Series,
    *,
    use_label: bool = True,
    abbreviate: bool = True,
    ordinal: bool = False,
) -> pd.Series:
    """Month of year, 1-12, or its name. Same label rules as day_of_week."""
    index = dt.dt.month.astype("Int64").rename(None)
    if not use_label:
        return index
    labels = MONTH_ABBREVIATIONS if abbreviate else MONTH_NAMES
    return _labelled(index, labels, ordered=ordinal)


_NUMERIC_EXTRACTORS: Mapping[str, Callable[[pd.Series], pd.Series]] = {
    "year": year,
    "doy": day_of_year,
    "week": week_of_year,
    "decimal": decimal_date,
    "quarter": quarter,
    "semester": semester,
}

_LABELLED_EXTRACTORS: Mapping[str, Callable[..., pd.Series]] = {
    "dow": day_of_week,
    "month": month,
}


# ---------------------------------------------------------------------------
# Feature derivation
# ---------------------------------------------------------------------------


def derive_date_features(
    values: Any,
    features: Sequence[str],
    *,
    abbreviate: bool = True,
    use_label: bool = True,
    ordinal: bool = False,
    column: str | None = None,
) -> pd.DataFrame:
    """Compute calendar features for a single date or date-time column.

    Parameters
    ----------
    values:
        The column to expand: a Series (its index is preserved) or any
        sequence accepted by ``pd.Series``.
    features:
        Calendar feature tokens from DATE_FEATURES. The output has one column
        per token, named exactly as the token and in the same order.
    abbreviate, use_label, ordinal:
        Rendering options for the ``dow`` and ``month`` features.
    column:
        Optional source column name, used in logs and errors only.

    Returns
    -------
    pd.DataFrame
        Same length and index as `values`. Rows whose date is missing or
        unparseable hold missing values in every feature.
    """
    unknown = unknown_features(features)
    if unknown:
        raise ConfigurationError(
            feature_vocabulary_message(),
            context={"unknown_features": unknown, "column": column},
            location=f"{_LOCATION_PREFIX}.derive_date_features",
        )

    dt = as_datetime(values, column=column)

    n_missing = int(dt.isna().sum())
    if n_missing > 0:
        logger.warning(
            "Date column contains missing or unparseable values",
            extra={"column": column, "n_missing": n_missing, "n_rows": int(len(dt))},
        )

    derived: dict[str, pd.Series] = {}
    for token in features:
        if token in _LABELLED_EXTRACTORS:
            derived[token] = _LABELLED_EXTRACTORS[token](
                dt,
                use_label=use_label,
                abbreviate=abbreviate,
                ordinal=ordinal,
            )
        else:
            derived[token] = _NUMERIC_EXTRACTORS[token](dt)

    return pd.DataFrame(derived, index=dt.index)
