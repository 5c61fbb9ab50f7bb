from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence, Union

import pandas as pd

from ml_recipes.exceptions import DataError

# Type tags understood by selectors and steps.
DATE_TYPES = frozenset({"date", "datetime"})


@dataclass(frozen=True)
class VariableInfo:
    """One column of a recipe's schema."""

    variable: str
    type: str
    role: str | None = "predictor"
    source: str = "original"


Schema = Sequence[VariableInfo]
SchemaLike = Union[Sequence[VariableInfo], Mapping[str, str]]


def _object_date_type(series: pd.Series) -> str | None:
    """"date" / "datetime" for object columns holding only date objects."""
    non_null = series.dropna()
    if non_null.empty:
        return None
    if non_null.map(lambda v: isinstance(v, _dt.datetime)).all():
        return "datetime"
    # datetime.datetime is a datetime.date subclass, so this also covers mixes
    if non_null.map(lambda v: isinstance(v, _dt.date)).all():
        return "date"
    return None


def infer_type(series: pd.Series) -> str:
    """Map a pandas column to a schema type tag."""
    dtype = series.dtype
    if pd.api.types.is_datetime64_any_dtype(dtype):
        return "datetime"
    if pd.api.types.is_bool_dtype(dtype):
        return "logical"
    if pd.api.types.is_numeric_dtype(dtype):
        return "numeric"
    if dtype == object:
        date_type = _object_date_type(series)
        if date_type is not None:
            return date_type
    if isinstance(dtype, pd.CategoricalDtype) or pd.api.types.is_string_dtype(dtype):
        return "nominal"
    return "other"


def infer_schema(
    df: pd.DataFrame,
    *,
    outcomes: Iterable[str] = (),
    roles: Mapping[str, str | None] | None = None,
) -> tuple[VariableInfo, ...]:
    """Describe every column of `df`, in column order.

    Columns named in `outcomes` get role "outcome", everything else is a
    "predictor" unless `roles` assigns another role (or None).
    """
    outcomes = set(outcomes)
    roles = dict(roles or {})

    unknown = sorted((outcomes | set(roles)) - set(map(str, df.columns)))
    if unknown:
        raise DataError(
            "Roles were assigned to columns that are not in the dataframe",
            code="schema_unknown_columns",
            context={"unknown_columns": unknown, "columns": list(map(str, df.columns))},
            location=f"{__name__}.infer_schema",
        )

    variables = []
    for name in df.columns:
        name = str(name)
        role = "outcome" if name in outcomes else "predictor"
        role = roles.get(name, role)
        variables.append(VariableInfo(variable=name, type=infer_type(df[name]), role=role))
    return tuple(variables)


def as_schema(schema: SchemaLike) -> tuple[VariableInfo, ...]:
    """Normalise a schema given as VariableInfo records or a name -> type mapping."""
    if isinstance(schema, Mapping):
        return tuple(VariableInfo(variable=str(k), type=str(v)) for k, v in schema.items())
    return tuple(schema)


def schema_to_frame(schema: SchemaLike) -> pd.DataFrame:
    return pd.DataFrame(
        [(v.variable, v.type, v.role, v.source) for v in as_schema(schema)],
        columns=["variable", "type", "role", "source"],
    )
