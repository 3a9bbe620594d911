"""
Settings loading - YAML files plus environment overrides.
"""

import logging
import os
from pathlib import Path

import yaml

from ..utils.constants import ENV_ALGORITHM, ENV_THRESHOLD
from .schemas import MotionDetectionSettings
from .validator import ValidationResult, validate_settings

logger = logging.getLogger(__name__)


class ConfigValidationError(Exception):
    """Raised when config validation fails."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []


# ANSI color codes for terminal output
class Colors:
    GREEN = "\033[92m"
    RED = "\033[91m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"
    BOLD = "\033[1m"
    RESET = "\033[0m"


def read_config_file(path: str | Path) -> dict:
    """
    Read a YAML settings file.

    Supports pointer files: if the file only contains `use: other.yaml`,
    that file is loaded instead (resolved relative to the pointer file).

    Raises:
        ConfigValidationError: If the file is missing or not valid YAML
    """
    config_file = Path(path)
    if not config_file.exists():
        raise ConfigValidationError(f"Config file not found: {config_file}")

    try:
        with open(config_file, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if isinstance(data, dict) and list(data.keys()) == ["use"]:
            pointer_path = config_file.parent / data["use"]
            logger.info(f"Config pointer: {config_file} -> {pointer_path}")
            with open(pointer_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            config_file = pointer_path

    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML in {config_file}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigValidationError(f"Config root must be a mapping: {config_file}")

    logger.info(f"Configuration loaded from {config_file}")
    return data


def apply_env_overrides(data: dict) -> dict:
    """
    Apply environment variable overrides to raw settings.

    Args:
        data: Raw settings dictionary

    Returns:
        Settings with environment variables applied
    """
    if ENV_ALGORITHM in os.environ:
        data["algorithm"] = os.environ[ENV_ALGORITHM]
        logger.info(f"Using algorithm from environment: {ENV_ALGORITHM}")

    if ENV_THRESHOLD in os.environ:
        data["threshold"] = os.environ[ENV_THRESHOLD]
        logger.info(f"Using threshold from environment: {ENV_THRESHOLD}")

    return data


def load_settings(path: str | Path | None = None) -> MotionDetectionSettings:
    """
    Load, override and validate settings.

    Args:
        path: YAML file path. None starts from defaults.

    Returns:
        Validated settings

    Raises:
        ConfigValidationError: If the file cannot be read or fails validation
    """
    data = read_config_file(path) if path is not None else {}
    data = apply_env_overrides(data)

    result = validate_settings(data)
    if not result.valid:
        raise ConfigValidationError(
            f"Invalid settings ({len(result.errors)} error(s))", result.errors
        )

    for warning in result.warnings:
        logger.warning(warning)

    return result.settings


def print_validation_result(result: ValidationResult) -> None:
    """Print validation result in Terraform-like format."""
    print()
    print(f"{Colors.BOLD}Configuration Validation{Colors.RESET}")
    print("=" * 60)

    if result.valid:
        print(f"\n{Colors.GREEN}✓ Configuration is valid{Colors.RESET}")
    else:
        print(f"\n{Colors.RED}✗ Configuration has errors{Colors.RESET}")

    if result.errors:
        print(f"\n{Colors.RED}Errors:{Colors.RESET}")
        for error in result.errors:
            print(f"  {Colors.RED}✗{Colors.RESET} {error}")

    if result.warnings:
        print(f"\n{Colors.YELLOW}Warnings:{Colors.RESET}")
        for warning in result.warnings:
            print(f"  {Colors.YELLOW}!{Colors.RESET} {warning}")

    if result.valid and result.derived:
        print(f"\n{Colors.CYAN}Derived Configuration:{Colors.RESET}")
        print(f"  Algorithm: {result.derived.get('algorithm')}")
        print(f"  Frame history: {result.derived.get('frame_history')} frame(s)")

    print()
