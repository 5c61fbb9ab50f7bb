"""
Column selectors for recipe steps.

A selector is an unresolved description of which columns a step should
touch. It is stored on the step as-is and only turned into concrete column
names when the step is prepped against a schema:

    step_date(rec, all_predictors(), -names("signup_date"))

Resolution follows the usual select semantics: selectors are applied left to
right, positive selectors append their matches (without duplicates) and
negated selectors remove theirs. If the first selector is negated, the
selection starts from every column.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Iterable, Sequence, Union

from ml_recipes.exceptions import DataError
from ml_recipes.recipes.schema import SchemaLike, VariableInfo, as_schema


@dataclass(frozen=True)
class Selector:
    """Base class; subclasses implement `_matches` and `_render`."""

    negated: bool = False

    def _matches(self, variable: VariableInfo) -> bool:
        raise NotImplementedError

    def _render(self) -> str:
        raise NotImplementedError

    def select(self, schema: Sequence[VariableInfo]) -> list[str]:
        """Names matched by this selector, ignoring negation."""
        return [v.variable for v in schema if self._matches(v)]

    def __neg__(self) -> Selector:
        return replace(self, negated=not self.negated)

    def __str__(self) -> str:
        text = self._render()
        return f"-{text}" if self.negated else text


def _quoted(values: Iterable[str]) -> str:
    return ", ".join(f'"{v}"' for v in values)


@dataclass(frozen=True)
class NameSelector(Selector):
    columns: tuple[str, ...] = ()

    def _matches(self, variable: VariableInfo) -> bool:
        return variable.variable in self.columns

    def select(self, schema: Sequence[VariableInfo]) -> list[str]:
        # Explicit names keep the order they were given in.
        known = {v.variable for v in schema}
        missing = [c for c in self.columns if c not in known]
        if missing:
            raise DataError(
                "Can't select columns that don't exist",
                code="selector_unknown_columns",
                context={"missing_columns": missing, "columns": sorted(known)},
                location=f"{__name__}.NameSelector.select",
            )
        return list(self.columns)

    def _render(self) -> str:
        if len(self.columns) == 1:
            return self.columns[0]
        return f"c({', '.join(self.columns)})"


@dataclass(frozen=True)
class RoleSelector(Selector):
    role: str | None = "predictor"

    def _matches(self, variable: VariableInfo) -> bool:
        return variable.role == self.role

    def _render(self) -> str:
        if self.role == "predictor":
            return "all_predictors()"
        if self.role == "outcome":
            return "all_outcomes()"
        return f'has_role("{self.role}")'


@dataclass(frozen=True)
class TypeSelector(Selector):
    types: tuple[str, ...] = ()

    def _matches(self, variable: VariableInfo) -> bool:
        return variable.type in self.types

    def _render(self) -> str:
        return f"has_type({_quoted(self.types)})"


@dataclass(frozen=True)
class PatternSelector(Selector):
    """Name-based selection: starts_with / ends_with / contains / matches."""

    kind: str = "matches"
    pattern: str = ""
    ignore_case: bool = True

    def _matches(self, variable: VariableInfo) -> bool:
        name = variable.variable
        if self.kind == "matches":
            flags = re.IGNORECASE if self.ignore_case else 0
            return re.search(self.pattern, name, flags) is not None
        pattern = self.pattern
        if self.ignore_case:
            name, pattern = name.lower(), pattern.lower()
        if self.kind == "starts_with":
            return name.startswith(pattern)
        if self.kind == "ends_with":
            return name.endswith(pattern)
        return pattern in name

    def _render(self) -> str:
        return f'{self.kind}("{self.pattern}")'


@dataclass(frozen=True)
class EverythingSelector(Selector):
    def _matches(self, variable: VariableInfo) -> bool:
        return True

    def _render(self) -> str:
        return "everything()"


SelectorLike = Union[Selector, str]


def names(*columns: str) -> NameSelector:
    return NameSelector(columns=tuple(columns))


def all_predictors() -> RoleSelector:
    return RoleSelector(role="predictor")


def all_outcomes() -> RoleSelector:
    return RoleSelector(role="outcome")


def has_role(role: str | None) -> RoleSelector:
    return RoleSelector(role=role)


def has_type(*types: str) -> TypeSelector:
    return TypeSelector(types=tuple(types))


def all_dates() -> TypeSelector:
    return has_type("date", "datetime")


def starts_with(prefix: str, *, ignore_case: bool = True) -> PatternSelector:
    return PatternSelector(kind="starts_with", pattern=prefix, ignore_case=ignore_case)


def ends_with(suffix: str, *, ignore_case: bool = True) -> PatternSelector:
    return PatternSelector(kind="ends_with", pattern=suffix, ignore_case=ignore_case)


def contains(text: str, *, ignore_case: bool = True) -> PatternSelector:
    return PatternSelector(kind="contains", pattern=text, ignore_case=ignore_case)


def matches(regex: str, *, ignore_case: bool = True) -> PatternSelector:
    return PatternSelector(kind="matches", pattern=regex, ignore_case=ignore_case)


def everything() -> EverythingSelector:
    return EverythingSelector()


def as_selector(value: SelectorLike) -> Selector:
    """Plain strings are shorthand for names(); a leading '-' negates them."""
    if isinstance(value, Selector):
        return value
    if isinstance(value, str):
        if value.startswith("-") and len(value) > 1:
            return -names(value[1:])
        return names(value)
    raise TypeError(f"Expected a Selector or column name, got {type(value).__name__}")


def resolve_selectors(selectors: Sequence[Selector], schema: SchemaLike) -> list[str]:
    """Resolve `selectors` to an ordered list of column names in `schema`.

    Raises
    ------
    DataError
        If a named column is not in the schema or nothing is selected.
    """
    variables = as_schema(schema)

    selected: list[str] = []
    if selectors and selectors[0].negated:
        selected = [v.variable for v in variables]

    for selector in selectors:
        found = selector.select(variables)
        if selector.negated:
            drop = set(found)
            selected = [name for name in selected if name not in drop]
        else:
            selected.extend(name for name in found if name not in selected)

    if not selected:
        raise DataError(
            "No variables or terms were selected.",
            code="selector_empty",
            context={"selectors": render_selectors(selectors)},
            location=f"{__name__}.resolve_selectors",
        )

    return selected


def render_selectors(selectors: Sequence[Selector]) -> list[str]:
    """Textual form of each selector, used by tidy() and printing."""
    return [str(selector) for selector in selectors]
