"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, xlog.toml only contains overrides.
An empty (or missing) xlog.toml is a valid configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# --- xlog.toml sections ---


class DailyConfig(BaseModel):
    """[daily] section."""

    model_config = {"frozen": True}

    auto_log: bool = True
    login_task: str = "daily_login"
    login_element: str = "Discipline"


class ProfileConfig(BaseModel):
    """[profile] section."""

    model_config = {"frozen": True}

    horizon_years: int = Field(default=4, ge=1)


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
