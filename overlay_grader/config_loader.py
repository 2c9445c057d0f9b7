"""
Configuration loader for the Overlay Grader system.

Handles parsing and validation of the YAML grading configuration.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .config import GRADING_CONFIG_FILENAME
from .errors import GradingConfigError
from .models import GradingSpec


def parse_grading_spec(config_data: Any) -> GradingSpec:
    """
    Validate already-parsed configuration data.

    Raises:
        GradingConfigError: If the data does not describe a valid grading spec.
    """
    if not isinstance(config_data, dict):
        raise GradingConfigError("Grading configuration must be a mapping")
    try:
        return GradingSpec.model_validate(config_data)
    except ValidationError as e:
        raise GradingConfigError(f"Invalid grading configuration:\n{e}") from e


def load_grading_spec(config_path: Path) -> GradingSpec:
    """
    Load the grading configuration from a YAML file.

    Args:
        config_path: Path to the YAML file, or to a directory containing
            the default configuration file.

    Returns:
        Validated GradingSpec.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        GradingConfigError: If the file is not valid YAML or fails validation.
    """
    if config_path.is_dir():
        config_path = config_path / GRADING_CONFIG_FILENAME
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        try:
            config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise GradingConfigError(f"Invalid YAML in {config_path}: {e}") from e

    return parse_grading_spec(config_data)
