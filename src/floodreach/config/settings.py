# src/floodreach/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/floodreach/config/defaults.yaml`, then optionally overridden by:
- environment variables (e.g., `FLOODREACH_LOG_LEVEL`)
- an external YAML file via `FLOODREACH_CONFIG_PATH`

Design rule:
- Tuning knobs (zone codes, unit factors, prefilter switch) live in YAML, not in the engine.
"""

from __future__ import annotations

import copy
import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Literal
from floodreach.core.env import load_dotenv_if_present

import yaml
from pydantic import BaseModel, Field, field_validator


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `floodreach.config`."""
    text = resources.files("floodreach.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "floodreach"
    log_level: str = "INFO"


class EngineSettings(BaseModel):
    earth_radius_km: float = Field(6371.0, gt=0)
    bbox_prefilter: bool = True


class FloodplainSettings(BaseModel):
    zone_property: str = "FLD_ZONE"
    # FEMA special flood hazard area codes (the 1%-annual-chance floodplain).
    hundred_year_zones: list[str] = Field(default_factory=lambda: ["A", "AE", "AH", "AO", "VE"])

    @field_validator("hundred_year_zones")
    @classmethod
    def _normalize_zones(cls, zones: list[str]) -> list[str]:
        return [z.strip().upper() for z in zones if z and z.strip()]


class DisplaySettings(BaseModel):
    km_to_miles: float = Field(0.621371, gt=0)
    decimals: int = Field(2, ge=0, le=6)
    no_data_message: str = "No floodplain proximity data"


class DataSettings(BaseModel):
    community_centers_path: str = "data/houston-texas-community-centers.geojson"
    floodplain_path: str = "data/floodplain-100.geojson"
    distance_lines_path: str = "data/floodplain-distance-lines.geojson"
    reproject: Literal["auto", "always", "never"] = "auto"


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    engine: EngineSettings = Field(default_factory=EngineSettings)
    floodplain: FloodplainSettings = Field(default_factory=FloodplainSettings)
    display: DisplaySettings = Field(default_factory=DisplaySettings)
    data: DataSettings = Field(default_factory=DataSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small.
    """
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("FLOODREACH_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("FLOODREACH_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def _logging_config() -> dict[str, Any]:
    return _read_package_yaml("logging.yaml")


def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (a fresh copy; callers may mutate it)."""
    return copy.deepcopy(_logging_config())
