from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from ml_recipes.config import AppConfig, DateStepConfig, get_config, get_paths, load_config
from ml_recipes.exceptions import ConfigError
from ml_recipes.features.calendar import DEFAULT_DATE_FEATURES


def test_defaults_without_config_file() -> None:
    cfg = get_config(force_reload=True)

    assert isinstance(cfg, AppConfig)
    assert cfg.env == "dev"
    assert cfg.date_step.features == DEFAULT_DATE_FEATURES
    assert cfg.date_step.abbreviate is True
    assert cfg.date_step.use_label is True
    assert cfg.date_step.ordinal is False
    assert cfg.date_step.role == "predictor"
    assert cfg.source_path is None


def test_load_from_explicit_path(config_path: Path) -> None:
    cfg = get_config(config_path=config_path, force_reload=True)

    assert cfg.date_step.features == ("year", "quarter", "month")
    assert cfg.date_step.abbreviate is False
    assert cfg.date_step.ordinal is True
    assert cfg.source_path == config_path


def test_get_config_is_cached(config_path: Path) -> None:
    first = get_config(config_path=config_path, force_reload=True)
    second = get_config()
    assert first is second


def test_get_paths_resolves_relative_to_base_dir(config_path: Path, tmp_path: Path) -> None:
    paths = get_paths(config_path=config_path, force_reload=True)

    assert paths.data_dir == (tmp_path / "data").resolve()
    assert paths.output_dir == (tmp_path / "data" / "baked").resolve()


def test_config_discovered_from_env_var(
    monkeypatch: pytest.MonkeyPatch,
    config_path: Path,
) -> None:
    monkeypatch.setenv("ML_RECIPES_CONFIG_PATH", str(config_path))

    cfg = get_config(force_reload=True)
    assert cfg.date_step.features == ("year", "quarter", "month")


def test_config_discovered_in_working_directory(tmp_path: Path) -> None:
    (tmp_path / "ml_recipes.yaml").write_text(
        yaml.safe_dump({"date_step": {"use_label": False}}), encoding="utf-8"
    )

    cfg = load_config()
    assert cfg.date_step.use_label is False


def test_nested_env_var_override(monkeypatch: pytest.MonkeyPatch, config_path: Path) -> None:
    monkeypatch.setenv("ML_RECIPES_DATE_STEP__USE_LABEL", "false")

    cfg = load_config(config_path)
    assert cfg.date_step.use_label is False
    # Values from the file are kept
    assert cfg.date_step.ordinal is True


def test_profile_selection(tmp_path: Path) -> None:
    profiled = {
        "dev": {"env": "dev", "date_step": {"features": ["year"]}},
        "prod": {"env": "prod", "date_step": {"features": ["dow", "month"], "ordinal": True}},
    }
    path = tmp_path / "profiled.yaml"
    path.write_text(yaml.safe_dump(profiled), encoding="utf-8")

    prod = load_config(path, env="prod")
    dev = load_config(path, env="dev")

    assert prod.env == "prod"
    assert prod.date_step.features == ("dow", "month")
    assert prod.date_step.ordinal is True
    assert dev.date_step.features == ("year",)


def test_unknown_feature_fails_validation(tmp_path: Path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text(yaml.safe_dump({"date_step": {"features": ["year", "hour"]}}), encoding="utf-8")

    with pytest.raises(ConfigError) as ctx:
        load_config(path)

    assert ctx.value.code == "config_validation_error"
    assert ctx.value.context["errors"]


def test_empty_feature_list_fails_validation() -> None:
    with pytest.raises(ValueError):
        DateStepConfig(features=())


def test_missing_file_raises_config_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError) as ctx:
        load_config(tmp_path / "missing.yaml")
    assert ctx.value.code == "config_file_not_found"


def test_non_mapping_yaml_raises_config_error(tmp_path: Path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError) as ctx:
        load_config(path)
    assert ctx.value.code == "config_structure_error"


def test_invalid_yaml_raises_parse_error(tmp_path: Path) -> None:
    path = tmp_path / "broken.yaml"
    path.write_text("date_step: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError) as ctx:
        load_config(path)
    assert ctx.value.code == "config_parse_error"


def test_to_yaml_round_trips(config_path: Path, tmp_path: Path) -> None:
    cfg = load_config(config_path)
    out = tmp_path / "effective.yaml"
    cfg.to_yaml(out)

    reloaded = load_config(out)
    assert reloaded.date_step == cfg.date_step


def test_to_yaml_reports_write_failures(tmp_path: Path) -> None:
    cfg = load_config()

    with pytest.raises(ConfigError) as ctx:
        cfg.to_yaml(tmp_path / "missing" / "effective.yaml")
    assert ctx.value.code == "config_write_error"
