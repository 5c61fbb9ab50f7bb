"""
Reading and writing tables for ml_recipes.

    from ml_recipes.data.loading import load_input_dataset, save_baked_dataset

Relative input paths fall back to ``paths.data_dir`` and relative output
paths land in ``paths.output_dir`` (see ml_recipes.config).
"""

from __future__ import annotations

from .loading import (
    detect_date_columns,
    load_dataframe,
    load_input_dataset,
    parse_date_columns,
    resolve_input_path,
    resolve_output_path,
    save_baked_dataset,
    save_dataframe,
)

__all__ = [
    "detect_date_columns",
    "load_dataframe",
    "load_input_dataset",
    "parse_date_columns",
    "resolve_input_path",
    "resolve_output_path",
    "save_baked_dataset",
    "save_dataframe",
]
