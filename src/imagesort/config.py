"""
Configuration Module

Two layers of configuration:

- Settings: process-level settings from IMAGESORT_* environment variables
  (and an optional .env file), via pydantic-settings.
- SortConfig: run parameters (normalization constants, fallback input
  size, organizer rules, ONNX Runtime threading), read from an optional
  YAML file and validated with pydantic.

Usage:
    from imagesort.config import get_settings, load_config

    settings = get_settings()
    config = load_config(settings.CONFIG_FILE)
    config.normalization.mean
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from imagesort.errors import ConfigError, ResourceNotFound

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_IMAGE_EXTENSIONS: List[str] = [".jpg", ".jpeg", ".png", ".bmp", ".gif"]
DEFAULT_FALLBACK_FOLDER: str = "Unknown_Category"
DEFAULT_UNKNOWN_LABEL: str = "Unknown"


# =============================================================================
# Environment Settings
# =============================================================================

class Settings(BaseSettings):
    """Process settings loaded from environment variables.

    Attributes:
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        LOG_FORMAT: "text" for human-readable lines, "json" for structured logs
        CONFIG_FILE: Optional path to a YAML run configuration
        INTRA_OP_THREADS: ONNX Runtime intra-op threads (overrides the config file)
        INTER_OP_THREADS: ONNX Runtime inter-op threads (overrides the config file)
    """

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["text", "json"] = "text"
    CONFIG_FILE: Optional[str] = None
    INTRA_OP_THREADS: Optional[int] = Field(default=None, ge=0)
    INTER_OP_THREADS: Optional[int] = Field(default=None, ge=0)

    model_config = SettingsConfigDict(
        env_prefix="IMAGESORT_",
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached Settings instance (singleton pattern).

    Returns:
        Settings instance loaded from environment
    """
    return Settings()


# =============================================================================
# Run Configuration
# =============================================================================

class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid")


class NormalizationConfig(_Section):
    """Per-channel normalization constants [R, G, B]."""

    mean: List[float] = Field(default_factory=lambda: [0.485, 0.456, 0.406])
    std: List[float] = Field(default_factory=lambda: [0.229, 0.224, 0.225])

    @field_validator("mean", "std")
    @classmethod
    def _three_channels(cls, value: List[float]) -> List[float]:
        if len(value) != 3:
            raise ValueError(f"expected 3 values (R, G, B), got {len(value)}")
        return value

    @field_validator("std")
    @classmethod
    def _non_zero(cls, value: List[float]) -> List[float]:
        if any(v == 0 for v in value):
            raise ValueError("std values must be non-zero")
        return value


class PreprocessingConfig(_Section):
    """Input size used when the model does not declare a readable shape."""

    default_width: int = Field(default=224, ge=1)
    default_height: int = Field(default=224, ge=1)


class OrganizerConfig(_Section):
    """Folder organizer rules."""

    extensions: List[str] = Field(default_factory=lambda: list(DEFAULT_IMAGE_EXTENSIONS))
    fallback_folder: str = DEFAULT_FALLBACK_FOLDER
    unknown_label: str = DEFAULT_UNKNOWN_LABEL

    @field_validator("extensions")
    @classmethod
    def _normalize_extensions(cls, value: List[str]) -> List[str]:
        normalized = []
        for ext in value:
            ext = ext.strip().lower()
            if not ext:
                continue
            normalized.append(ext if ext.startswith(".") else f".{ext}")
        if not normalized:
            raise ValueError("at least one extension is required")
        return normalized

    @field_validator("fallback_folder")
    @classmethod
    def _non_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("fallback_folder must not be blank")
        return value


class OnnxRuntimeConfig(_Section):
    """ONNX Runtime session settings."""

    intra_op_num_threads: int = Field(default=2, ge=0)
    inter_op_num_threads: int = Field(default=1, ge=0)
    providers: List[str] = Field(default_factory=lambda: ["CPUExecutionProvider"])


class SortConfig(_Section):
    """Complete run configuration."""

    normalization: NormalizationConfig = Field(default_factory=NormalizationConfig)
    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    organizer: OrganizerConfig = Field(default_factory=OrganizerConfig)
    onnx_runtime: OnnxRuntimeConfig = Field(default_factory=OnnxRuntimeConfig)


def load_config(config_path: Optional[Path | str] = None) -> SortConfig:
    """
    Load run configuration from a YAML file, or use defaults.

    Sections and keys not present in the file keep their defaults.

    Args:
        config_path: Path to YAML file, or None for defaults

    Returns:
        Validated SortConfig

    Raises:
        ResourceNotFound: If config_path does not exist
        ConfigError: If the file is not valid YAML or has invalid values

    Example:
        >>> config = load_config("imagesort.yaml")
        >>> config.normalization.mean
        [0.485, 0.456, 0.406]
    """
    if config_path is None:
        return SortConfig()

    path = Path(config_path)
    if not path.is_file():
        raise ResourceNotFound(f"Config file not found: {config_path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping, got {type(data).__name__}")

    try:
        config = SortConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}:\n{e}") from e

    logger.info(f"Loaded configuration from {path}")
    return config


def config_to_dict(config: SortConfig) -> Dict[str, Any]:
    """Return a plain-dict form of config, suitable for YAML output."""
    return config.model_dump()


def save_config_template(path: Path | str) -> None:
    """Write the default configuration to path as YAML."""
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config_to_dict(SortConfig()), f, sort_keys=False)
