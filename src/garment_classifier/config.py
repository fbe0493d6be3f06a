"""
Classifier Configuration Module

This module provides a Python interface to classifier.yaml, which holds the
model names, runtime thread settings, distribution policy and label mode.

Usage:
    from garment_classifier.config import get_config, get_model_config

    # Get full config
    config = get_config()

    # Get model config
    color = get_model_config("color")

    # Load a different file (e.g. from the CLI --config flag)
    load_config(Path("my-classifier.yaml"))
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

import yaml


# =============================================================================
# Constants
# =============================================================================

DEFAULT_CONFIG_PATH = Path(__file__).parent / "classifier.yaml"

MODEL_ROLES: tuple[str, ...] = ("color", "type")

DOWNLOAD_TYPES: tuple[str, ...] = ("local_model", "latest_model")

_config_path: Path = DEFAULT_CONFIG_PATH


# =============================================================================
# Configuration Loading
# =============================================================================

@lru_cache(maxsize=1)
def get_config() -> Dict[str, Any]:
    """
    Load and cache the classifier configuration.

    Returns:
        Complete configuration dictionary

    Raises:
        FileNotFoundError: If the configuration file is not found
        yaml.YAMLError: If YAML parsing fails

    Example:
        >>> config = get_config()
        >>> config["models"]["color"]["name"]
        'color_model'
    """
    if not _config_path.exists():
        raise FileNotFoundError(
            f"Classifier configuration not found: {_config_path}\n"
            f"Expected location: {_config_path.absolute()}"
        )

    with open(_config_path, "r") as f:
        return yaml.safe_load(f) or {}


def reload_config() -> Dict[str, Any]:
    """
    Force reload of configuration (clears cache).

    Returns:
        Freshly loaded configuration dictionary
    """
    get_config.cache_clear()
    return get_config()


def load_config(path: Path) -> Dict[str, Any]:
    """
    Switch to a different configuration file and load it.

    Args:
        path: Path to a YAML file with the same layout as classifier.yaml

    Returns:
        Loaded configuration dictionary
    """
    global _config_path

    _config_path = Path(path)
    return reload_config()


def get_config_path() -> Path:
    """Path of the configuration file currently in use."""
    return _config_path


def _get_section(name: str) -> Dict[str, Any]:
    config = get_config()

    if name not in config:
        available = list(config.keys())
        raise KeyError(
            f"Section '{name}' not found in {_config_path.name}. "
            f"Available sections: {available}"
        )

    return config[name]


# =============================================================================
# Section Access
# =============================================================================

def get_model_config(role: str) -> Dict[str, Any]:
    """
    Get configuration for the model playing a role.

    Args:
        role: "color" or "type"

    Returns:
        Model configuration dictionary with "name" and "version"

    Raises:
        KeyError: If the role is not configured

    Example:
        >>> get_model_config("type")["name"]
        'type_model'
    """
    models = _get_section("models")

    if role not in models:
        raise KeyError(
            f"Model role '{role}' not found. Available: {list(models.keys())}"
        )

    return models[role]


def get_model_names() -> List[str]:
    """Model names in role order (color, type)."""
    return [get_model_config(role)["name"] for role in MODEL_ROLES]


def get_runtime_config() -> Dict[str, Any]:
    """Inference runtime settings (thread counts, execution providers)."""
    return _get_section("runtime")


def get_distribution_config() -> Dict[str, Any]:
    """Model distribution settings (bucket, download type, network policy)."""
    return _get_section("distribution")


def get_label_config() -> Dict[str, Any]:
    """Label lookup settings."""
    return _get_section("labels")


def get_metadata() -> Dict[str, Any]:
    """Configuration metadata (title, spec_version)."""
    return get_config().get("metadata", {})


# =============================================================================
# Validation
# =============================================================================

def validate_config() -> List[str]:
    """
    Validate the classifier configuration.

    Returns:
        List of validation error messages (empty if valid)

    Example:
        >>> errors = validate_config()
        >>> if errors:
        ...     print("Validation failed:", errors)
    """
    errors = []

    try:
        config = get_config()
    except (OSError, yaml.YAMLError) as e:
        return [f"Failed to load config: {e}"]

    for section in ["models", "runtime", "distribution", "labels"]:
        if section not in config:
            errors.append(f"Missing required section: {section}")

    models = config.get("models", {})
    for role in MODEL_ROLES:
        if role not in models:
            errors.append(f"Missing model configuration: {role}")
            continue
        for field in ["name", "version"]:
            if field not in models[role]:
                errors.append(f"Model {role} missing field: {field}")

    runtime = config.get("runtime", {})
    for field in ["intra_op_num_threads", "inter_op_num_threads"]:
        value = runtime.get(field)
        if not isinstance(value, int) or value < 1:
            errors.append(f"runtime.{field} must be a positive integer, got {value!r}")

    distribution = config.get("distribution", {})
    if "bucket" not in distribution:
        errors.append("Missing distribution field: bucket")
    download_type = distribution.get("download_type")
    if download_type not in DOWNLOAD_TYPES:
        errors.append(
            f"distribution.download_type must be one of {list(DOWNLOAD_TYPES)}, "
            f"got {download_type!r}"
        )

    strict = config.get("labels", {}).get("strict")
    if not isinstance(strict, bool):
        errors.append(f"labels.strict must be a boolean, got {strict!r}")

    return errors
