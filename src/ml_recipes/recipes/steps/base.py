from __future__ import annotations

import random
import string
from dataclasses import dataclass, field
from typing import Callable, Sequence

import pandas as pd

from ml_recipes.recipes.schema import SchemaLike
from ml_recipes.recipes.selectors import Selector, render_selectors

IdGenerator = Callable[[str], str]

_ID_ALPHABET = string.ascii_letters + string.digits


def rand_id(prefix: str = "step", *, length: int = 5) -> str:
    """Return an id such as ``date_Xk3Pq``.

    Uses the module-level ``random`` state so seeding it makes ids
    reproducible.
    """
    suffix = "".join(random.choices(_ID_ALPHABET, k=length))
    return f"{prefix}_{suffix}"


@dataclass(frozen=True)
class Deferred:
    """Placeholder for an argument that a tuning process fills in later."""

    name: str | None = None

    def __str__(self) -> str:
        return f'tune("{self.name}")' if self.name else "tune()"


def tune(name: str | None = None) -> Deferred:
    return Deferred(name)


def is_deferred(value: object) -> bool:
    return isinstance(value, Deferred)


def make_id(prefix: str, id_generator: IdGenerator | None = None) -> str:
    return (id_generator or rand_id)(prefix)


def describe_targets(
    columns: Sequence[str] | None,
    terms: Sequence[Selector],
    trained: bool,
    *,
    width: int = 50,
) -> str:
    """Render the columns (once trained) or selectors a step targets."""
    if trained and columns is not None:
        text = ", ".join(columns) if columns else "<none>"
        suffix = " [trained]"
    else:
        text = ", ".join(render_selectors(terms))
        suffix = ""
    if len(text) > width:
        text = text[: max(width - 3, 0)].rstrip(", ") + "..."
    return text + suffix


@dataclass(frozen=True)
class Step:
    """Lifecycle shared by every recipe step.

    A step is created untrained from user arguments, replaced by a trained
    copy in ``prep``, applied with ``bake`` and summarised by ``tidy``.
    Instances are immutable; every transition returns a new object.
    """

    terms: tuple[Selector, ...] = ()
    role: str | None = "predictor"
    trained: bool = False
    columns: tuple[str, ...] | None = None
    skip: bool = False
    id: str = field(default="")

    # Subclasses set this; used for ids, tidy() output and printing.
    step_type = "step"

    def prep(self, training: pd.DataFrame, info: SchemaLike | None = None) -> Step:
        raise NotImplementedError

    def bake(self, new_data: pd.DataFrame) -> pd.DataFrame:
        raise NotImplementedError

    def tidy(self) -> pd.DataFrame:
        raise NotImplementedError

    def format(self, width: int = 50) -> str:
        return describe_targets(self.columns, self.terms, self.trained, width=width)

    def __str__(self) -> str:
        return self.format()
