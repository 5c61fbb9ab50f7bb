from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ml_recipes.exceptions import ConfigError
from ml_recipes.features.calendar import DATE_FEATURES, DEFAULT_DATE_FEATURES

# ----------------------------------------------------------------------
# Environment + discovery defaults
# ----------------------------------------------------------------------

# Example: ML_RECIPES_ENV, ML_RECIPES_CONFIG_PATH, ML_RECIPES_DATE_STEP__ORDINAL
ENV_PREFIX = "ML_RECIPES_"
ENV_ENV_NAME = f"{ENV_PREFIX}ENV"
ENV_CONFIG_PATH = f"{ENV_PREFIX}CONFIG_PATH"

DEFAULT_ENV = os.getenv(ENV_ENV_NAME, "dev").lower()
DEFAULT_CONFIG_FILENAMES = ("ml_recipes.yaml", "ml_recipes.yml", "config.yaml", "config.yml")


# ----------------------------------------------------------------------
# Section models
# ----------------------------------------------------------------------


class PathsConfig(BaseModel):
    """Where input tables are read from and baked tables are written to."""

    model_config = ConfigDict(frozen=True)

    base_dir: Path = Path(".")
    data_dir: Path = Path("data")
    output_dir: Path = Path("data/baked")

    def resolve(self, base: Path | None = None) -> PathsConfig:
        """Return a copy of this config with all paths made absolute."""
        base_dir = Path(base) if base is not None else self.base_dir
        return PathsConfig(
            base_dir=base_dir,
            data_dir=(base_dir / self.data_dir).resolve(),
            output_dir=(base_dir / self.output_dir).resolve(),
        )


class DateStepConfig(BaseModel):
    """Defaults used when a date step is built from the command line."""

    model_config = ConfigDict(frozen=True)

    features: tuple[str, ...] = Field(
        DEFAULT_DATE_FEATURES,
        min_length=1,
        description="Calendar features to derive, in output order.",
    )
    abbreviate: bool = Field(True, description="Abbreviate day and month labels.")
    use_label: bool = Field(
        True,
        description="Render day-of-week and month as labels instead of integers.",
    )
    ordinal: bool = Field(False, description="Keep labels as an ordered categorical.")
    role: str = Field("predictor", description="Role assigned to derived columns.")
    columns: tuple[str, ...] = Field(
        (),
        description=(
            "Date columns to parse and expand. Empty means every column "
            "that parses as a date."
        ),
    )

    @field_validator("features")
    @classmethod
    def _check_features(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        unknown = [token for token in value if token not in DATE_FEATURES]
        if unknown:
            allowed = ", ".join(f"'{token}'" for token in DATE_FEATURES)
            raise ValueError(f"Unknown date features {unknown}; possible values are: {allowed}")
        return value


# ----------------------------------------------------------------------
# Top-level settings
# ----------------------------------------------------------------------


class AppConfig(BaseSettings):
    """Top-level application configuration.

    Values are read from (highest precedence first):

    1. Keyword arguments (usually the contents of a YAML file).
    2. Environment variables prefixed with ML_RECIPES_.
    3. A .env file, if present.
    4. Field defaults.

    Nested sections can be overridden with ``__``:

        ML_RECIPES_DATE_STEP__ABBREVIATE=false
        ML_RECIPES_PATHS__OUTPUT_DIR=/mnt/baked

    A YAML file may be flat, or hold one mapping per environment:

        dev:
          log_level: "DEBUG"
        prod:
          env: "prod"
          date_step:
            features: ["year", "month", "dow"]
            ordinal: true

    in which case ML_RECIPES_ENV (or the ``env`` argument) picks the profile.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    _source_path: Path | None = PrivateAttr(default=None)
    _loaded_env: str | None = PrivateAttr(default=None)

    env: str = Field("dev", description="Environment name, e.g. 'dev', 'prod', 'test'.")
    log_level: str = Field("INFO", description="Default log level for the application.")

    paths: PathsConfig = PathsConfig()
    date_step: DateStepConfig = DateStepConfig()

    def resolved_paths(self) -> PathsConfig:
        """Return a PathsConfig with all paths fully resolved."""
        return self.paths.resolve(self.paths.base_dir)

    @property
    def source_path(self) -> Path | None:
        return self._source_path

    def to_dict(self, *, include_private: bool = False) -> dict[str, Any]:
        """Return a plain dict representation of the effective configuration."""
        data = self.model_dump(mode="json")
        if include_private:
            data["_source_path"] = str(self._source_path) if self._source_path else None
            data["_loaded_env"] = self._loaded_env
        return data

    def to_yaml(self, path: Path | str) -> None:
        """Write the effective configuration next to a baked output."""
        try:
            Path(path).write_text(
                yaml.safe_dump(self.to_dict(), sort_keys=False),
                encoding="utf-8",
            )
        except OSError as exc:
            raise ConfigError(
                f"Failed to write config file: {path}",
                code="config_write_error",
                cause=exc,
                context={"config_path": str(path)},
                location=f"{__name__}.AppConfig.to_yaml",
            ) from exc


# ----------------------------------------------------------------------
# Loading + caching
# ----------------------------------------------------------------------

_config_cache: AppConfig | None = None


def _discover_default_config_path() -> Path | None:
    """ML_RECIPES_CONFIG_PATH if set, else the first default filename in cwd."""
    env_path = os.getenv(ENV_CONFIG_PATH)
    if env_path:
        # A missing explicit path is reported by load_config.
        return Path(env_path)

    cwd = Path.cwd()
    for name in DEFAULT_CONFIG_FILENAMES:
        candidate = cwd / name
        if candidate.exists():
            return candidate

    return None


def _select_profile(loaded: Mapping[str, Any], env: str) -> Any:
    section = loaded.get(env)
    if isinstance(section, Mapping):
        return section
    return loaded


def load_config(
    config_path: str | Path | None = None,
    *,
    env: str | None = None,
) -> AppConfig:
    """Load and validate application configuration.

    Raises
    ------
    ConfigError
        If the config file does not exist, cannot be parsed, or fails validation.
    """
    effective_env = (env or DEFAULT_ENV).lower()
    location = f"{__name__}.load_config"
    config_data: dict[str, Any] = {}

    path = Path(config_path) if config_path is not None else _discover_default_config_path()

    if path is not None:
        context = {"config_path": str(path), "env": effective_env}

        if not path.exists():
            raise ConfigError(
                f"Config file not found: {path}",
                code="config_file_not_found",
                context=context,
                location=location,
            )

        try:
            loaded = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(
                f"Failed to read config file: {path}",
                code="config_parse_error",
                cause=exc,
                context=context,
                location=location,
            ) from exc

        if not isinstance(loaded, Mapping):
            raise ConfigError(
                f"Top-level config in {path} must be a mapping, got {type(loaded).__name__}",
                code="config_structure_error",
                context=context,
                location=location,
            )

        profile = _select_profile(loaded, effective_env)
        if not isinstance(profile, Mapping):
            raise ConfigError(
                f"Profile '{effective_env}' in {path} must be a mapping",
                code="config_structure_error",
                context=context,
                location=location,
            )
        config_data.update(profile)

    try:
        cfg = AppConfig(**config_data)
    except ValidationError as exc:
        raise ConfigError(
            "Configuration validation failed",
            code="config_validation_error",
            cause=exc,
            context={
                "config_path": str(path) if path is not None else None,
                "env": effective_env,
                "errors": exc.errors(include_url=False),
            },
            location=location,
        ) from exc

    cfg._source_path = path
    cfg._loaded_env = effective_env
    return cfg


def get_config(
    config_path: str | Path | None = None,
    *,
    env: str | None = None,
    force_reload: bool = False,
) -> AppConfig:
    """Return the cached AppConfig, loading it on first use or when forced."""
    global _config_cache

    if _config_cache is None or force_reload:
        _config_cache = load_config(config_path=config_path, env=env)

    return _config_cache


def get_paths(
    config_path: str | Path | None = None,
    *,
    env: str | None = None,
    force_reload: bool = False,
) -> PathsConfig:
    """Convenience helper to get resolved PathsConfig directly."""
    cfg = get_config(config_path=config_path, env=env, force_reload=force_reload)
    return cfg.resolved_paths()
