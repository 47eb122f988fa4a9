"""Configuration loader: YAML file plus environment variables."""

from pathlib import Path
from typing import Optional, Tuple

import yaml
from pydantic import ValidationError

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .models import AppConfig
from .validators import check_for_warnings, emit_warnings

DEFAULT_CONFIG_LOCATIONS = (
    Path("config.yaml"),
    Path("config") / "config.yaml",
)


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load and validate configuration from a YAML file and environment variables.

    Lookup order for the file: explicit ``config_path``, ``./config.yaml``,
    ``./config/config.yaml``.

    Args:
        config_path: Optional path to config file

    Returns:
        Tuple of (AppConfig, EnvironmentConfig)

    Raises:
        ConfigurationError: If configuration is invalid or no file is found
    """
    config_file = _find_config_file(config_path)
    app_config = parse_config_file(config_file)

    try:
        env_config = load_environment_config(app_config.email.transport)
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load environment configuration: {e}",
            suggestions=[
                "Copy .env.example to .env and fill in your credentials",
                "Ensure all required environment variables are set",
            ],
        ) from e

    return app_config, env_config


def parse_config_file(config_file: Path) -> AppConfig:
    """
    Parse and validate a YAML configuration file without touching the environment.

    Args:
        config_file: Path to the YAML file

    Returns:
        Validated AppConfig

    Raises:
        ConfigurationError: If the file cannot be read, parsed, or validated
    """
    try:
        with open(config_file, "r") as f:
            config_dict = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(
            f"Configuration file not found: {config_file}",
            suggestions=[
                "Copy config.example.yaml to config.yaml",
                f"Ensure {config_file} exists and is readable",
            ],
        ) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse YAML configuration: {e}",
            suggestions=[
                "Check YAML syntax in your config file",
                "Ensure proper indentation (use spaces, not tabs)",
            ],
        ) from e
    except OSError as e:
        raise ConfigurationError(
            f"Failed to read configuration file: {e}",
            suggestions=[f"Ensure {config_file} is readable", "Check file permissions"],
        ) from e

    if not config_dict:
        raise ConfigurationError(
            "Configuration file is empty",
            suggestions=["Copy config.example.yaml to config.yaml"],
        )

    if not isinstance(config_dict, dict):
        raise ConfigurationError(
            "Configuration file must contain a mapping at the top level",
            suggestions=["Review config.example.yaml for the expected structure"],
        )

    warnings = check_for_warnings(config_dict)
    if warnings:
        emit_warnings(warnings)

    try:
        return AppConfig.model_validate(config_dict)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            field_path = " -> ".join(str(loc) for loc in error["loc"]) or "(root)"
            if error["type"] == "missing":
                errors.append(f"Missing required field: {field_path}")
            elif error["type"] in ("string_type", "int_type", "bool_type", "float_type"):
                expected_type = error["type"].replace("_type", "")
                errors.append(
                    f"Invalid type for '{field_path}': expected {expected_type}, "
                    f"got {error.get('input')!r}"
                )
            else:
                errors.append(f"{field_path}: {error['msg']}")

        raise ConfigurationError(
            "Configuration validation failed",
            errors=errors,
            suggestions=[
                "Review config.example.yaml for correct format",
                "Check that all required fields are present",
            ],
        ) from e


def _find_config_file(config_path: Optional[Path] = None) -> Path:
    """
    Find the configuration file: explicit path first, then the default locations.

    Raises:
        ConfigurationError: If no configuration file exists
    """
    if config_path:
        if not config_path.exists():
            raise ConfigurationError(
                f"Specified configuration file not found: {config_path}",
                suggestions=[f"Ensure {config_path} exists", "Check the path and try again"],
            )
        return config_path

    for candidate in DEFAULT_CONFIG_LOCATIONS:
        if candidate.exists():
            return candidate

    raise ConfigurationError(
        "Configuration file not found",
        errors=[f"Tried: {candidate}" for candidate in DEFAULT_CONFIG_LOCATIONS],
        suggestions=[
            "Copy config.example.yaml to config.yaml",
            "Use --config to specify a custom location",
        ],
    )


def validate_config_file(config_path: Path) -> bool:
    """
    Validate a configuration file without loading environment variables.

    Useful for pre-deployment checks. Errors are printed, not raised.

    Args:
        config_path: Path to configuration file

    Returns:
        True if valid, False otherwise
    """
    try:
        parse_config_file(config_path)
        print(f"✓ Configuration file {config_path} is valid")
        return True
    except ConfigurationError as e:
        print(f"✗ Configuration validation failed:\n{e}")
        return False
