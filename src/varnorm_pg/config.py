"""Configuration file support for varnorm-pg."""

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .alleles import DEFAULT_MAX_ALLELE_LENGTH
from .population import EXAC_POPULATIONS, THOUSAND_GENOMES_POPULATIONS

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class ImportConfig:
    """Configuration for the population table imports."""

    release: str = "GRCh37"
    max_allele_length: int = DEFAULT_MAX_ALLELE_LENGTH
    exac_populations: list[str] = field(default_factory=lambda: list(EXAC_POPULATIONS))
    thousand_genomes_populations: list[str] = field(
        default_factory=lambda: list(THOUSAND_GENOMES_POPULATIONS)
    )
    log_level: str = "INFO"


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


def _validate_population_list(key: str, value: Any) -> None:
    if not isinstance(value, list) or not value:
        raise ConfigValidationError(f"{key} must be a non-empty list")
    for pop in value:
        if not isinstance(pop, str) or not pop:
            raise ConfigValidationError(f"{key} must contain population labels, got {pop!r}")


def validate_config(config_dict: dict[str, Any]) -> None:
    """Validate configuration values.

    Raises:
        ConfigValidationError: If any configuration value is invalid.
    """
    if "release" in config_dict:
        release = config_dict["release"]
        if not isinstance(release, str) or not release:
            raise ConfigValidationError(f"release must be a non-empty string, got {release!r}")
        if len(release) > 10:
            raise ConfigValidationError(f"release must be at most 10 characters, got '{release}'")

    if "max_allele_length" in config_dict:
        max_len = config_dict["max_allele_length"]
        if not isinstance(max_len, int) or isinstance(max_len, bool):
            raise ConfigValidationError(
                f"max_allele_length must be an integer, got {type(max_len).__name__}"
            )
        if max_len <= 0:
            raise ConfigValidationError(f"max_allele_length must be positive, got {max_len}")

    for key in ("exac_populations", "thousand_genomes_populations"):
        if key in config_dict:
            _validate_population_list(key, config_dict[key])

    if "log_level" in config_dict:
        log_level = config_dict["log_level"]
        if not isinstance(log_level, str):
            raise ConfigValidationError(
                f"log_level must be a string, got {type(log_level).__name__}"
            )
        if log_level.upper() not in VALID_LOG_LEVELS:
            raise ConfigValidationError(
                f"log_level must be one of {VALID_LOG_LEVELS}, got '{log_level}'"
            )


def load_config(config_path: Path, overrides: dict[str, Any] | None = None) -> ImportConfig:
    """Load configuration from a TOML file.

    Args:
        config_path: Path to the TOML configuration file.
        overrides: Optional dict of values to override loaded config.

    Returns:
        ImportConfig instance with loaded values.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ConfigValidationError: If any configuration value is invalid.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "rb") as f:
        toml_data = tomllib.load(f)

    config_dict = toml_data.get("varnorm_pg", {})

    if overrides:
        config_dict.update({k: v for k, v in overrides.items() if v is not None})

    validate_config(config_dict)

    valid_fields = {
        "release",
        "max_allele_length",
        "exac_populations",
        "thousand_genomes_populations",
        "log_level",
    }

    unknown = sorted(set(config_dict) - valid_fields)
    if unknown:
        logger.warning("Ignoring unknown configuration keys: %s", ", ".join(unknown))

    filtered_config = {k: v for k, v in config_dict.items() if k in valid_fields}

    return ImportConfig(**filtered_config)
