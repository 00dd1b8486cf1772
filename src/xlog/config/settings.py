"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``XLOG_*`` prefix, ``__`` for nested sections
  3. TOML file    — ``xlog.toml`` discovered via walk-up
  4. Code defaults — baked into the section models

The data directory is resolved in the same order: ``--data-dir``, then
``XLOG_DATA_DIR``, then a ``data_dir`` key in ``xlog.toml`` (relative to
the file), then the directory holding ``xlog.toml``, then ``~/xLog``.
"""

from __future__ import annotations

import os
import threading
import tomllib
from datetime import date
from pathlib import Path
from typing import Any

import click
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from xlog.config.discovery import find_config
from xlog.config.models import DailyConfig, PluginsConfig, ProfileConfig

ENV_PREFIX = "XLOG_"
DEFAULT_DATA_DIRNAME = "xLog"


def default_data_dir() -> Path:
    return Path.home() / DEFAULT_DATA_DIRNAME


def load_toml(toml_path: Path | None) -> dict[str, Any]:
    """Parse *toml_path*, resolving a relative ``data_dir`` against its folder."""
    if not toml_path or not toml_path.is_file():
        return {}
    raw = toml_path.read_text(encoding="utf-8")
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {toml_path}: {exc}"
        raise click.ClickException(msg) from exc
    if "data_dir" in data:
        target = Path(data["data_dir"]).expanduser()
        if not target.is_absolute():
            target = toml_path.parent.resolve() / target
        data["data_dir"] = target
    return data


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Serve an already-parsed ``xlog.toml`` to pydantic-settings."""

    def __init__(self, settings_cls: type[BaseSettings], data: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._data = data

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        """Return the full TOML data dict for Pydantic to merge."""
        return self._data


# Parsed TOML data, handed to the settings source during construction.
_tls = threading.local()


class XlogSettings(BaseSettings):
    """Unified settings for the xlog CLI.

    Merges CLI flags, environment variables, TOML config sections,
    and code-baked defaults into a single frozen object.

    Attributes:
        data_dir: Directory holding ``xLog.db``, ``backups/`` and ``plugins/``.
        config_path: The ``xlog.toml`` that was loaded, if any.
        today: Override for the calendar date (testing and backfills).
    """

    model_config = {
        "frozen": True,
        "env_prefix": ENV_PREFIX,
        "env_nested_delimiter": "__",
    }

    # --- Resolved paths ---
    data_dir: Path = Field(default_factory=default_data_dir)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    no_interact: bool = False
    sync: bool = False
    today: date | None = None

    # --- TOML sections ---
    daily: DailyConfig = Field(default_factory=DailyConfig)
    profile: ProfileConfig = Field(default_factory=ProfileConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)

    @field_validator("data_dir")
    @classmethod
    def _expand_data_dir(cls, value: Path) -> Path:
        return value.expanduser()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_data = getattr(_tls, "toml_data", None) or {}
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_data),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        data_dir: Path | None = None,
        **cli_flags: Any,
    ) -> XlogSettings:
        """Construct settings from a CLI invocation.

        Discovers ``xlog.toml`` via walk-up (or explicit *config_path*) and
        merges CLI flags as highest-priority overrides. Flags left at
        ``None`` are not passed, so env vars and TOML still apply to them.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if not p.is_file():
                msg = f"Config file not found: {config_path}"
                raise click.ClickException(msg)
            toml_path = p
        else:
            toml_path = find_config()

        toml_data = load_toml(toml_path)
        env_data_dir = f"{ENV_PREFIX}DATA_DIR" in os.environ
        if data_dir is None and toml_path is not None and not env_data_dir:
            # A data_dir key in the file wins over the file's own folder
            if "data_dir" not in toml_data:
                data_dir = toml_path.parent.resolve()

        # Unset flags (None, or False for boolean switches) defer to env and TOML
        overrides = {k: v for k, v in cli_flags.items() if v is not None and v is not False}
        if data_dir is not None:
            overrides["data_dir"] = data_dir

        _tls.toml_data = toml_data
        try:
            return cls(config_path=toml_path, **overrides)
        finally:
            _tls.toml_data = None
