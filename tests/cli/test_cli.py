from __future__ import annotations

from pathlib import Path

import pandas as pd
from typer.testing import CliRunner

from ml_recipes import __version__
from ml_recipes.cli import app

runner = CliRunner()


# ---------------------------------------------------------------------------
# Root CLI behaviour
# ---------------------------------------------------------------------------


def test_cli_root_help_shows_commands() -> None:
    result = runner.invoke(app, ["--help"])

    assert result.exit_code == 0, result.output
    assert "bake" in result.output
    assert "tidy" in result.output


def test_version_command() -> None:
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0, result.output
    assert f"ml_recipes version: {__version__}" in result.output


# ---------------------------------------------------------------------------
# bake
# ---------------------------------------------------------------------------


def test_bake_detects_date_columns(orders_csv: Path, tmp_path: Path) -> None:
    output = tmp_path / "baked" / "orders.csv"

    result = runner.invoke(app, ["bake", str(orders_csv), "-o", str(output)])

    assert result.exit_code == 0, result.output
    assert "Wrote 10 rows x 11 columns" in result.output

    baked = pd.read_csv(output)
    assert "Dan_dow" in baked.columns
    assert baked["Dan_dow"].iloc[0] == "Tue"
    assert baked["Stefan_year"].iloc[0] == 2006


def test_bake_with_explicit_options(orders_csv: Path, tmp_path: Path) -> None:
    output = tmp_path / "baked.csv"

    result = runner.invoke(
        app,
        [
            "bake",
            str(orders_csv),
            "-o",
            str(output),
            "-c",
            "Dan",
            "-f",
            "dow",
            "-f",
            "semester",
            "--no-label",
        ],
    )

    assert result.exit_code == 0, result.output
    baked = pd.read_csv(output)
    assert [c for c in baked.columns if c.startswith("Dan_")] == ["Dan_dow", "Dan_semester"]
    assert baked["Dan_dow"].iloc[0] == 3


def test_bake_uses_config_defaults(orders_csv: Path, tmp_path: Path, config_path: Path) -> None:
    output = tmp_path / "baked.csv"

    result = runner.invoke(
        app,
        ["bake", str(orders_csv), "-o", str(output), "-c", "Stefan", "--config", str(config_path)],
    )

    assert result.exit_code == 0, result.output
    baked = pd.read_csv(output)
    assert [c for c in baked.columns if c.startswith("Stefan_")] == [
        "Stefan_year",
        "Stefan_quarter",
        "Stefan_month",
    ]
    assert baked["Stefan_month"].iloc[0] == "January"


def test_bake_missing_input_fails(tmp_path: Path) -> None:
    result = runner.invoke(app, ["bake", str(tmp_path / "nope.csv"), "-o", str(tmp_path / "out.csv")])

    assert result.exit_code == 1
    assert "Error" in result.output
    assert not (tmp_path / "out.csv").exists()


def test_bake_rejects_non_date_column(tmp_path: Path) -> None:
    source = tmp_path / "amounts.csv"
    pd.DataFrame({"amount": [12, 15]}).to_csv(source, index=False)
    output = tmp_path / "out.csv"

    result = runner.invoke(app, ["bake", str(source), "-o", str(output), "-c", "amount", "-f", "year"])

    assert result.exit_code == 1
    assert "Error: All variables for the date step should be Date or date-time typed" in result.output
    assert not output.exists()


def test_bake_parses_mixed_date_formats(tmp_path: Path) -> None:
    source = tmp_path / "mixed.csv"
    pd.DataFrame({"d": ["2002-03-05", "03/06/2002"]}).to_csv(source, index=False)
    output = tmp_path / "out.csv"

    result = runner.invoke(app, ["bake", str(source), "-o", str(output), "-f", "year", "-f", "doy"])

    assert result.exit_code == 0, result.output
    baked = pd.read_csv(output)
    assert baked["d_year"].tolist() == [2002, 2002]
    assert baked["d_doy"].tolist() == [64, 65]


def test_bake_uses_configured_directories(orders_csv: Path, tmp_path: Path) -> None:
    result = runner.invoke(app, ["bake", orders_csv.name, "--save-config"])

    assert result.exit_code == 0, result.output
    written = tmp_path / "data" / "baked" / "orders_baked.csv"
    assert written.exists()
    assert (tmp_path / "data" / "baked" / "orders_baked.config.yaml").exists()
    assert pd.read_csv(written).shape == (10, 11)


def test_bake_unknown_column_fails(orders_csv: Path, tmp_path: Path) -> None:
    result = runner.invoke(
        app,
        ["bake", str(orders_csv), "-o", str(tmp_path / "out.csv"), "-c", "Carl"],
    )

    assert result.exit_code == 1
    assert "Error: Date columns to parse are missing" in result.output


# ---------------------------------------------------------------------------
# tidy
# ---------------------------------------------------------------------------


def test_tidy_lists_features() -> None:
    result = runner.invoke(app, ["tidy", "-c", "Dan", "-f", "year", "-f", "dow"])

    assert result.exit_code == 0, result.output
    assert "Date features from Dan" in result.output
    assert "year" in result.output
    assert "dow" in result.output


def test_tidy_defaults_to_all_dates() -> None:
    result = runner.invoke(app, ["tidy"])

    assert result.exit_code == 0, result.output
    assert 'has_type("date", "datetime")' in result.output


def test_tidy_rejects_unknown_feature() -> None:
    result = runner.invoke(app, ["tidy", "-f", "hour"])

    assert result.exit_code == 1
    assert "'semester'" in result.output
