from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, replace
from typing import Any, Iterable, Mapping

import pandas as pd

from ml_recipes.exceptions import AppError, DataError, PipelineError, UnboundStepError
from ml_recipes.logging_config import get_logger
from ml_recipes.recipes.schema import VariableInfo, infer_schema, infer_type, schema_to_frame
from ml_recipes.recipes.selectors import SelectorLike
from ml_recipes.recipes.steps.base import Step
from ml_recipes.recipes.steps.date import make_date_step

logger = get_logger(__name__)
_LOCATION_PREFIX = __name__


@dataclass(frozen=True)
class Recipe:
    """An ordered, immutable sequence of preprocessing steps.

    ``variables`` is the schema of the data the recipe was declared on.
    ``prep`` binds every step against that schema, in order, feeding each
    step the schema produced by the steps before it, and returns a trained
    recipe; ``bake`` then applies the trained steps to new data.
    """

    variables: tuple[VariableInfo, ...]
    steps: tuple[Step, ...] = ()
    trained: bool = False
    # Schema after the last step; only set once trained.
    term_info: tuple[VariableInfo, ...] | None = None

    @classmethod
    def from_dataframe(
        cls,
        df: pd.DataFrame,
        *,
        outcomes: Iterable[str] = (),
        roles: Mapping[str, str | None] | None = None,
    ) -> Recipe:
        return cls(variables=infer_schema(df, outcomes=outcomes, roles=roles))

    def add_step(self, step: Step) -> Recipe:
        return replace(
            self,
            steps=self.steps + (step,),
            trained=self.trained and step.trained,
        )

    def step_date(self, *selectors: SelectorLike, **kwargs: Any) -> Recipe:
        """Shorthand for ``add_step(make_date_step(...))``."""
        return self.add_step(make_date_step(*selectors, **kwargs))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def prep(self, training: pd.DataFrame) -> Recipe:
        """Train every step on `training` and return the trained recipe.

        Raises
        ------
        DataError
            If `training` lacks a column the recipe was declared with.
        AppError
            Whatever a step raises while binding, with ``step_number`` added
            to its context.
        """
        missing = [v.variable for v in self.variables if v.variable not in training.columns]
        if missing:
            raise DataError(
                "Training data is missing columns the recipe was declared with",
                code="recipe_missing_columns",
                context={"missing_columns": missing},
                location=f"{_LOCATION_PREFIX}.Recipe.prep",
            )

        info = self.variables
        data = training
        trained_steps: list[Step] = []

        for number, step in enumerate(self.steps, start=1):
            try:
                trained = step.prep(data, info)
            except AppError as exc:
                raise exc.add_context(step_number=number, step_id=step.id)
            data = trained.bake(data)
            info = _next_schema(info, data, role=trained.role)
            trained_steps.append(trained)

        logger.info(
            "Prepped recipe",
            extra={"n_steps": len(trained_steps), "n_rows": int(training.shape[0])},
        )

        return replace(self, steps=tuple(trained_steps), trained=True, term_info=info)

    def bake(self, new_data: pd.DataFrame) -> pd.DataFrame:
        """Apply the trained steps to `new_data`, leaving out ``skip`` steps."""
        if not self.trained:
            raise UnboundStepError(
                "The recipe must be prepped before it can bake new data",
                location=f"{_LOCATION_PREFIX}.Recipe.bake",
            )

        result = new_data
        for step in self.steps:
            if step.skip:
                logger.debug("Skipping step on new data", extra={"step_id": step.id})
                continue
            result = step.bake(result)
        return result

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def tidy(self, number: int | None = None) -> pd.DataFrame:
        """Summarise the steps, or describe step `number` (1-based)."""
        if number is None:
            return pd.DataFrame(
                [
                    {
                        "number": i,
                        "operation": "step",
                        "type": step.step_type,
                        "trained": step.trained,
                        "skip": step.skip,
                        "id": step.id,
                    }
                    for i, step in enumerate(self.steps, start=1)
                ],
                columns=["number", "operation", "type", "trained", "skip", "id"],
            )

        if not 1 <= number <= len(self.steps):
            raise PipelineError(
                f"The recipe has {len(self.steps)} step(s); there is no step {number}",
                code="recipe_step_out_of_range",
                context={"number": number, "n_steps": len(self.steps)},
                location=f"{_LOCATION_PREFIX}.Recipe.tidy",
            )
        return self.steps[number - 1].tidy()

    def summary(self) -> pd.DataFrame:
        """The schema as a frame: the trained schema when available."""
        return schema_to_frame(self.term_info if self.term_info is not None else self.variables)

    def __str__(self) -> str:
        lines = ["Recipe", "", "Inputs:"]
        counts = Counter(str(v.role) for v in self.variables)
        lines.extend(f"  {role}: {count}" for role, count in counts.items())
        if self.steps:
            lines.extend(["", "Operations:"])
            lines.extend(f"  {step}" for step in self.steps)
        return "\n".join(lines)


def recipe(
    df: pd.DataFrame,
    *,
    outcomes: Iterable[str] = (),
    roles: Mapping[str, str | None] | None = None,
) -> Recipe:
    """Declare a recipe on the columns of `df`."""
    return Recipe.from_dataframe(df, outcomes=outcomes, roles=roles)


def _next_schema(
    info: tuple[VariableInfo, ...],
    data: pd.DataFrame,
    *,
    role: str | None,
) -> tuple[VariableInfo, ...]:
    """Schema after a step: drop removed columns, append new ones as derived."""
    present = set(map(str, data.columns))
    kept = [v for v in info if v.variable in present]
    known = {v.variable for v in kept}
    added = [
        VariableInfo(variable=str(name), type=infer_type(data[name]), role=role, source="derived")
        for name in data.columns
        if str(name) not in known
    ]
    return tuple(kept + added)
