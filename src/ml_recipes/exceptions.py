"""
Structured errors raised by ml_recipes.

Every error carries a stable ``code`` that callers can branch on, a
``context`` dict describing what was being processed, and optionally the
``location`` that raised it and the lower-level ``cause``. Binding a date
step to a numeric column, for example, renders as::

    [date_step_type_mismatch] All variables for the date step should be
    Date or date-time typed (at ml_recipes.recipes.steps.date.bind_date_step)

with ``context == {"id": "date_Xk3Pq", "columns": {"amount": "numeric"}}``.

Hierarchy::

    AppError
    ├── ConfigError            config file loading and validation
    │   └── ConfigurationError invalid arguments to a step
    ├── DataError              reading tables, selecting columns
    │   └── TypeMismatchError  a step got a column of the wrong type
    └── PipelineError          recipe wiring
        └── UnboundStepError   a step was baked before it was prepped
"""

from __future__ import annotations

from typing import Any, Mapping


class AppError(Exception):
    """Base class for every error ml_recipes raises on purpose.

    Catch this in entry points (the CLI does) to report any expected
    failure without a traceback; ``to_dict()`` gives a form suitable for
    structured logs.
    """

    default_code: str = "app_error"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        cause: BaseException | None = None,
        context: Mapping[str, Any] | None = None,
        location: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code: str = code or self.default_code
        self.cause = cause
        self.context: dict[str, Any] = dict(context or {})
        self.location = location

        if cause is not None:
            self.__cause__ = cause  # type: ignore[assignment]

    def __str__(self) -> str:
        text = f"[{self.code}] {self.message}"
        if self.location:
            text += f" (at {self.location})"
        if self.cause is not None:
            text += f" (cause: {self.cause!r})"
        return text

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}, location={self.location!r})"

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly form, logged as ``extra={"error": ...}`` by the CLI."""
        data: dict[str, Any] = {"type": type(self).__name__, "code": self.code, "message": self.message}
        if self.location:
            data["location"] = self.location
        if self.context:
            data["context"] = dict(self.context)
        if self.cause is not None:
            data["cause"] = {"type": type(self.cause).__name__, "repr": repr(self.cause)}
        return data

    def add_context(self, **extra: Any) -> AppError:
        """Merge `extra` into the context and return self.

        ``Recipe.prep`` uses this to tag an error raised by a step with the
        step's position and id before re-raising it.
        """
        self.context.update(extra)
        return self

    @classmethod
    def from_exception(
        cls,
        exc: BaseException,
        *,
        message: str | None = None,
        code: str | None = None,
        context: Mapping[str, Any] | None = None,
        location: str | None = None,
    ) -> AppError:
        """Wrap a library exception, keeping it as the cause.

        >>> try:
        ...     pd.to_datetime(values, errors="coerce", format="mixed")
        ... except (TypeError, ValueError) as exc:
        ...     raise DataError.from_exception(
        ...         exc,
        ...         message="Failed to convert column 'Dan' to datetime",
        ...         code="feature_datetime_conversion_error",
        ...     ) from exc

        Without `message`, the wrapped exception's text (or the class name)
        is used.
        """
        return cls(
            message or str(exc) or cls.__name__,
            code=code,
            cause=exc,
            context=context,
            location=location,
        )


class ConfigError(AppError):
    """The application config file is missing, unreadable or invalid."""

    default_code = "config_error"


class ConfigurationError(ConfigError):
    """Invalid step configuration supplied when a step is built.

    Raised for unknown feature tokens, empty feature lists, steps created
    without selectors, and deferred features that reach schema binding.
    """

    default_code = "step_configuration_error"


class DataError(AppError):
    """A table could not be read or written, or its columns do not fit."""

    default_code = "data_error"


class TypeMismatchError(DataError):
    """A selected column does not have the type a step requires."""

    default_code = "date_step_type_mismatch"


class PipelineError(AppError):
    """Recipe wiring and step lifecycle errors."""

    default_code = "pipeline_error"


class UnboundStepError(PipelineError):
    """A step was applied before it was bound to a schema, or its bound
    columns are absent from the data it is applied to."""

    default_code = "step_not_trained"
