"""
Command-line interface for ml_recipes.

    ml-recipes bake orders.csv -o orders_baked.csv -c ordered_at -f year -f dow
    ml-recipes tidy -c ordered_at --no-label

Step options left unset on the command line fall back to the ``date_step``
section of the application config (see ml_recipes.config). Relative input
paths that do not exist are read from ``paths.data_dir``; relative output
paths are written under ``paths.output_dir``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional

import typer

from . import __version__
from .config import DateStepConfig, get_config
from .data.loading import (
    detect_date_columns,
    load_input_dataset,
    parse_date_columns,
    save_baked_dataset,
)
from .exceptions import AppError, DataError
from .logging_config import get_logger
from .recipes.recipe import recipe
from .recipes.selectors import all_dates, names
from .recipes.steps.date import describe_date_step, make_date_step

app = typer.Typer(
    help="Derive calendar features from date columns with recipe steps.",
    no_args_is_help=True,
)

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Shared options
# ---------------------------------------------------------------------------

ColumnOption = typer.Option(
    None,
    "--column",
    "-c",
    help="Date column to expand. Repeat for several columns.",
)
FeatureOption = typer.Option(
    None,
    "--feature",
    "-f",
    help="Calendar feature to derive (year, doy, week, decimal, semester, quarter, dow, month).",
)
AbbreviateOption = typer.Option(None, "--abbreviate/--no-abbreviate", help="Short day/month labels.")
LabelOption = typer.Option(None, "--label/--no-label", help="Day/month as labels or integers.")
OrdinalOption = typer.Option(None, "--ordinal/--no-ordinal", help="Ordered day/month labels.")
ConfigOption = typer.Option(None, "--config", dir_okay=False, help="Path to a YAML config file.")
EnvOption = typer.Option(None, "--env", help="Config profile name (e.g. 'dev', 'prod').")


def _step_options(
    defaults: DateStepConfig,
    *,
    features: Optional[List[str]],
    abbreviate: Optional[bool],
    label: Optional[bool],
    ordinal: Optional[bool],
) -> dict[str, Any]:
    """Merge command-line overrides over the configured step defaults."""
    return {
        "role": defaults.role,
        "features": tuple(features) if features else defaults.features,
        "abbreviate": defaults.abbreviate if abbreviate is None else abbreviate,
        "use_label": defaults.use_label if label is None else label,
        "ordinal": defaults.ordinal if ordinal is None else ordinal,
    }


def _fail(exc: AppError) -> None:
    logger.error("Command failed", extra={"error": exc.to_dict()})
    typer.echo(f"Error: {exc.message}", err=True)
    raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("version")
def version() -> None:
    """Print the installed ml_recipes version."""
    typer.echo(f"ml_recipes version: {__version__}")


@app.command("bake")
def bake(
    input_path: Path = typer.Argument(
        ...,
        dir_okay=False,
        help="CSV, parquet or feather table. Relative paths not found here are read from paths.data_dir.",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        dir_okay=False,
        help="Where to write the result. Relative paths go under paths.output_dir. "
        "Defaults to <input>_baked<suffix> there.",
    ),
    column: Optional[List[str]] = ColumnOption,
    feature: Optional[List[str]] = FeatureOption,
    abbreviate: Optional[bool] = AbbreviateOption,
    label: Optional[bool] = LabelOption,
    ordinal: Optional[bool] = OrdinalOption,
    config: Optional[Path] = ConfigOption,
    env: Optional[str] = EnvOption,
    save_config: bool = typer.Option(
        False,
        "--save-config/--no-save-config",
        help="Also write the effective config as <output stem>.config.yaml.",
    ),
) -> None:
    """Append calendar features for the date columns of a table."""
    try:
        cfg = get_config(config_path=config, env=env, force_reload=True)
        paths = cfg.resolved_paths()
        options = _step_options(
            cfg.date_step,
            features=feature,
            abbreviate=abbreviate,
            label=label,
            ordinal=ordinal,
        )

        raw = load_input_dataset(input_path, paths=paths)
        columns = list(column or cfg.date_step.columns or detect_date_columns(raw))
        if not columns:
            raise DataError(
                f"No date columns found in {input_path}; pass them with --column",
                code="cli_no_date_columns",
                context={"path": str(input_path)},
                location=f"{__name__}.bake",
            )

        data = parse_date_columns(raw, columns, path=input_path)
        rec = recipe(data).step_date(names(*columns), **options).prep(data)
        baked = rec.bake(data)

        if output is None:
            output = Path(f"{input_path.stem}_baked{input_path.suffix}")
        written = save_baked_dataset(baked, output, paths=paths)
        if save_config:
            cfg.to_yaml(written.with_suffix(".config.yaml"))
    except AppError as exc:
        _fail(exc)
        return

    typer.echo(f"Wrote {baked.shape[0]} rows x {baked.shape[1]} columns to {written}")


@app.command("tidy")
def tidy(
    column: Optional[List[str]] = ColumnOption,
    feature: Optional[List[str]] = FeatureOption,
    abbreviate: Optional[bool] = AbbreviateOption,
    label: Optional[bool] = LabelOption,
    ordinal: Optional[bool] = OrdinalOption,
    config: Optional[Path] = ConfigOption,
    env: Optional[str] = EnvOption,
) -> None:
    """Show what a date step built from these options would derive."""
    try:
        cfg = get_config(config_path=config, env=env, force_reload=True)
        options = _step_options(
            cfg.date_step,
            features=feature,
            abbreviate=abbreviate,
            label=label,
            ordinal=ordinal,
        )
        columns = list(column or cfg.date_step.columns)
        selector = names(*columns) if columns else all_dates()
        step = make_date_step(selector, **options)
    except AppError as exc:
        _fail(exc)
        return

    typer.echo(str(step))
    typer.echo(describe_date_step(step).to_string(index=False))


if __name__ == "__main__":
    app()
