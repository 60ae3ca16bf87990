"""Configuration loader for the Codex canvas engine."""
from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from typing_extensions import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

LOGGER = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[2]

CONFIG_PATH_ENV_VAR = "CODEX_CONFIG_PATH"
THEME_ENV_VAR = "CODEX_DEFAULT_THEME"
THEME_NAMES = ("void", "manuscript", "eclipse")


class ConfigError(RuntimeError):
    """Raised when configuration cannot be loaded."""


class _FrozenModel(BaseModel):
    """Base model enforcing immutability for config sections."""

    model_config = ConfigDict(frozen=True)


class EngineConfig(_FrozenModel):
    """Engine-level metadata."""

    version: str = Field(..., min_length=1)


class ViewportConfig(_FrozenModel):
    """Pan/zoom limits and step factors for the canvas viewport."""

    width: float = Field(1280.0, gt=0)
    height: float = Field(800.0, gt=0)
    min_zoom: float = Field(0.1, gt=0)
    max_zoom: float = Field(3.0, gt=0)
    initial_zoom: float = Field(1.0, gt=0)
    wheel_zoom_in: float = Field(1.1, gt=1.0)
    wheel_zoom_out: float = Field(0.9, gt=0.0, lt=1.0)
    button_zoom_step: float = Field(1.2, gt=1.0)

    @model_validator(mode="after")
    def _validate_zoom_range(self) -> "ViewportConfig":
        if self.min_zoom > self.max_zoom:
            msg = "viewport.min_zoom cannot exceed viewport.max_zoom"
            raise ValueError(msg)
        if not self.min_zoom <= self.initial_zoom <= self.max_zoom:
            msg = "viewport.initial_zoom must lie within [min_zoom, max_zoom]"
            raise ValueError(msg)
        return self


class FilterConfig(_FrozenModel):
    """Default values and domains of the user-facing filter controls."""

    horizon_days: int = Field(30, ge=1)
    min_horizon_days: int = Field(1, ge=1)
    max_horizon_days: int = Field(90, ge=1)
    min_strength: float = Field(0.2, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _validate_horizon(self) -> "FilterConfig":
        if not self.min_horizon_days <= self.horizon_days <= self.max_horizon_days:
            msg = "filters.horizon_days must lie within [min_horizon_days, max_horizon_days]"
            raise ValueError(msg)
        return self


class RelaxationConfig(_FrozenModel):
    """Parameters of the pairwise repulsion pass."""

    min_spacing: float = Field(320.0, gt=0)
    stiffness: float = Field(0.05, gt=0.0, le=1.0)
    passes: int = Field(5, ge=1)
    strategy: Literal["pairwise", "grid"] = Field("pairwise")
    visible_only: bool = False


class RenderingConfig(_FrozenModel):
    """Sprite scaling and theme defaults for the rendering surface."""

    importance_scale_step: float = Field(0.15, ge=0.0)
    focus_scale: float = Field(1.1, gt=0.0)
    node_hit_radius: float = Field(120.0, gt=0.0)
    default_theme: Literal["void", "manuscript", "eclipse"] = Field("void")


class InteractionConfig(_FrozenModel):
    """Pointer handling thresholds."""

    tap_tolerance_px: float = Field(4.0, ge=0.0)
    deselect_on_empty_tap: bool = False


class PlacementConfig(_FrozenModel):
    """Scatter ring used when new fragments enter the plane."""

    min_radius: float = Field(50.0, ge=0.0)
    radius_spread: float = Field(150.0, ge=0.0)


class APIConfig(_FrozenModel):
    """HTTP surface settings."""

    allowed_origins: List[str] = Field(default_factory=list)

    @field_validator("allowed_origins")
    @classmethod
    def _strip_origins(cls, value: List[str]) -> List[str]:
        return [origin.strip() for origin in value if isinstance(origin, str) and origin.strip()]


class AppConfig(_FrozenModel):
    """Top-level application configuration composed from config.yaml."""

    engine: EngineConfig
    viewport: ViewportConfig
    filters: FilterConfig
    relaxation: RelaxationConfig
    rendering: RenderingConfig
    interaction: InteractionConfig = Field(default_factory=InteractionConfig)
    placement: PlacementConfig = Field(default_factory=PlacementConfig)
    api: APIConfig = Field(default_factory=APIConfig)

    @staticmethod
    def default_path() -> Path:
        """Return the default location of the configuration file.

        Returns:
            Path: Absolute path to config.yaml at the repository root.
        """
        return REPO_ROOT / "config.yaml"


def _resolve_config_path(path: Optional[Path]) -> Path:
    """Pick the explicit path, then the environment override, then the default."""

    if path is not None:
        return path
    override = os.getenv(CONFIG_PATH_ENV_VAR)
    if override and override.strip():
        candidate = Path(override.strip()).expanduser()
        LOGGER.info("Configuration path overridden from environment: %s", candidate)
        return candidate
    return AppConfig.default_path()


def _apply_environment_overrides(raw_content: Dict[str, Any]) -> Dict[str, Any]:
    """Merge environment-based overrides into the raw configuration mapping.

    Args:
        raw_content: Parsed YAML configuration prior to Pydantic validation.

    Returns:
        Dict[str, Any]: Configuration mapping with environment overrides applied.
    """

    theme = os.getenv(THEME_ENV_VAR)
    if theme and theme.strip():
        normalized = theme.strip().lower()
        if normalized not in THEME_NAMES:
            LOGGER.warning("Ignoring unknown theme override from environment: %s", theme)
            return raw_content
        rendering_section = raw_content.setdefault("rendering", {})
        rendering_section["default_theme"] = normalized
        LOGGER.info("Default theme overridden from environment (theme=%s)", normalized)
    return raw_content


def _read_yaml(path: Path) -> Dict[str, Any]:
    """Read YAML content from disk.

    Args:
        path: Location of the YAML file.

    Returns:
        Dict[str, Any]: Parsed YAML content.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except FileNotFoundError as exc:
        LOGGER.error("Configuration file missing at %s", path)
        raise ConfigError("Configuration file not found") from exc
    except yaml.YAMLError as exc:
        LOGGER.error("Invalid YAML syntax in %s", path)
        raise ConfigError("Invalid YAML syntax") from exc
    if not isinstance(data, dict):
        LOGGER.error("Configuration root must be a mapping: %s", path)
        raise ConfigError("Configuration root must be a mapping")
    return data


@lru_cache(maxsize=1)
def load_config(path: Optional[Path] = None) -> AppConfig:
    """Load application configuration from YAML.

    Args:
        path: Optional override path to the YAML file.

    Returns:
        AppConfig: Parsed configuration object.

    Raises:
        ConfigError: If the configuration cannot be loaded or validated.
    """
    config_path = _resolve_config_path(path)
    raw_content = _read_yaml(config_path)
    raw_content = _apply_environment_overrides(raw_content)
    try:
        return AppConfig(**raw_content)
    except ValidationError as exc:
        LOGGER.error("Invalid configuration values: %s", exc)
        raise ConfigError("Configuration validation failed") from exc
