from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Mapping

import pandas as pd

from ml_recipes.config import PathsConfig, get_paths
from ml_recipes.exceptions import DataError
from ml_recipes.logging_config import get_logger

logger = get_logger(__name__)

SUPPORTED_FORMATS = ("csv", "parquet", "feather")


def infer_format(path: Path) -> str:
    """Infer file format from suffix, defaulting to 'csv'."""
    suffix = path.suffix.lower().lstrip(".")
    return suffix if suffix in SUPPORTED_FORMATS else "csv"


def _check_format(fmt: str, path: Path, location: str) -> None:
    if fmt not in SUPPORTED_FORMATS:
        raise DataError(
            f"Unsupported data format: {fmt}",
            code="data_unsupported_format",
            context={"path": str(path), "format": fmt},
            location=location,
        )


def _is_text(series: pd.Series) -> bool:
    return series.dtype == object or pd.api.types.is_string_dtype(series.dtype)


def _parse_dates(series: pd.Series) -> pd.Series:
    # Each value is parsed on its own so one column may mix formats.
    return pd.to_datetime(series, errors="coerce", format="mixed")


def parse_date_columns(
    df: pd.DataFrame,
    columns: Iterable[str],
    *,
    path: Path | None = None,
) -> pd.DataFrame:
    """Return a copy of `df` with the text columns among `columns` parsed as datetime64.

    Values that do not parse become NaT, so the date step reports them as
    missing rather than failing the whole table. Columns that are not text
    (numbers, booleans, columns already typed as dates) are left untouched;
    the date step rejects them when it is bound if they are not dates.
    """
    columns = list(columns)
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise DataError(
            "Date columns to parse are missing from the dataset",
            code="data_missing_columns",
            context={
                "path": str(path) if path is not None else None,
                "missing_columns": missing,
                "available_columns": list(map(str, df.columns)),
            },
            location=f"{__name__}.parse_date_columns",
        )

    result = df.copy()
    for column in columns:
        if not _is_text(result[column]):
            logger.debug(
                "Leaving non-text column as is",
                extra={"column": column, "dtype": str(result[column].dtype)},
            )
            continue
        before = int(result[column].isna().sum())
        result[column] = _parse_dates(result[column])
        n_invalid = int(result[column].isna().sum()) - before
        if n_invalid > 0:
            logger.warning(
                "Unparseable dates replaced with NaT",
                extra={"column": column, "n_invalid": n_invalid},
            )
    return result


def detect_date_columns(df: pd.DataFrame) -> list[str]:
    """Date columns, plus text columns in which every non-missing value parses as a date."""
    detected = []
    for column in df.columns:
        series = df[column]
        if pd.api.types.is_datetime64_any_dtype(series.dtype):
            detected.append(str(column))
            continue
        if not _is_text(series):
            continue
        non_null = series.dropna()
        if non_null.empty:
            continue
        if _parse_dates(non_null).notna().all():
            detected.append(str(column))
    return detected


def load_dataframe(
    path: str | Path,
    *,
    format: str | None = None,
    date_columns: Iterable[str] | None = None,
    read_kwargs: Mapping[str, Any] | None = None,
) -> pd.DataFrame:
    """Load a table into a DataFrame with structured errors.

    Parameters
    ----------
    path:
        File to load.
    format:
        'csv', 'parquet' or 'feather'. Inferred from the suffix if omitted.
    date_columns:
        Columns to convert to datetime64 after loading.
    read_kwargs:
        Extra keyword arguments for the pandas reader.

    Raises
    ------
    DataError
        If the file does not exist, cannot be read, or lacks a date column.
    """
    path = Path(path)
    location = f"{__name__}.load_dataframe"

    if not path.exists():
        raise DataError(
            f"Data file not found: {path}",
            code="data_file_not_found",
            context={"path": str(path)},
            location=location,
        )

    fmt = (format or infer_format(path)).lower()
    _check_format(fmt, path, location)
    kwargs: dict[str, Any] = dict(read_kwargs or {})

    logger.info("Loading dataframe", extra={"path": str(path), "format": fmt})

    readers = {"csv": pd.read_csv, "parquet": pd.read_parquet, "feather": pd.read_feather}
    try:
        df = readers[fmt](path, **kwargs)
    except Exception as exc:
        raise DataError(
            f"Failed to load dataframe from {path}",
            code="data_load_error",
            cause=exc,
            context={"path": str(path), "format": fmt},
            location=location,
        ) from exc

    if date_columns:
        df = parse_date_columns(df, date_columns, path=path)

    logger.info(
        "Loaded dataframe",
        extra={"path": str(path), "n_rows": int(df.shape[0]), "n_cols": int(df.shape[1])},
    )
    return df


def save_dataframe(
    df: pd.DataFrame,
    path: str | Path,
    *,
    format: str | None = None,
) -> Path:
    """Write `df` to `path`, creating parent directories as needed."""
    path = Path(path)
    location = f"{__name__}.save_dataframe"
    fmt = (format or infer_format(path)).lower()
    _check_format(fmt, path, location)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if fmt == "csv":
            df.to_csv(path, index=False)
        elif fmt == "parquet":
            df.to_parquet(path, index=False)
        else:
            df.reset_index(drop=True).to_feather(path)
    except Exception as exc:
        raise DataError(
            f"Failed to write dataframe to {path}",
            code="data_write_error",
            cause=exc,
            context={"path": str(path), "format": fmt},
            location=location,
        ) from exc

    logger.info("Saved dataframe", extra={"path": str(path), "n_rows": int(df.shape[0])})
    return path


# ---------------------------------------------------------------------------
# Configured locations
# ---------------------------------------------------------------------------


def resolve_input_path(filename: str | Path, *, paths: PathsConfig | None = None) -> Path:
    """Locate an input table.

    Absolute paths, and relative paths that exist from the working directory,
    are used as given. Any other relative path is looked up under `data_dir`.
    """
    path = Path(filename)
    if path.is_absolute() or path.exists():
        return path
    if paths is None:
        paths = get_paths()
    return paths.data_dir / path


def resolve_output_path(filename: str | Path, *, paths: PathsConfig | None = None) -> Path:
    """Absolute paths are used as given; relative ones go under `output_dir`."""
    path = Path(filename)
    if path.is_absolute():
        return path
    if paths is None:
        paths = get_paths()
    return paths.output_dir / path


def load_input_dataset(
    filename: str | Path,
    *,
    paths: PathsConfig | None = None,
    date_columns: Iterable[str] | None = None,
    read_kwargs: Mapping[str, Any] | None = None,
) -> pd.DataFrame:
    """Convenience helper to load a dataset from the `data_dir`."""
    return load_dataframe(
        resolve_input_path(filename, paths=paths),
        date_columns=date_columns,
        read_kwargs=read_kwargs,
    )


def save_baked_dataset(
    df: pd.DataFrame,
    filename: str | Path,
    *,
    paths: PathsConfig | None = None,
    format: str | None = None,
) -> Path:
    """Convenience helper to write a baked dataset into the `output_dir`."""
    return save_dataframe(df, resolve_output_path(filename, paths=paths), format=format)
