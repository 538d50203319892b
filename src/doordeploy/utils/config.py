"""Deploy settings loaded from an optional YAML file"""
import logging
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional

import yaml

from doordeploy.core import ConfigLoader, FileSystemService
from doordeploy.deploy.exceptions import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_FILE = "doordeploy.yaml"


@dataclass(frozen=True)
class DeploySettings:
    """Project-level defaults. CLI flags override every field."""
    binary_name: str = "door-monitor"
    service_name: str = "door-monitor"
    default_target: str = "arm-unknown-linux-gnueabihf"
    project_dir: str = "."
    probe_timeout_seconds: int = 10
    grace_period_seconds: float = 2.0
    host: Optional[str] = None
    user: Optional[str] = None
    ssh_port: int = 22


_INT_KEYS = {'probe_timeout_seconds', 'ssh_port'}
_NUMBER_KEYS = {'grace_period_seconds'}


def _coerce(key: str, value: Any) -> Any:
    """Type-check one settings value."""
    if key in _INT_KEYS:
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValidationError(f"Setting '{key}' must be a positive integer, got {value!r}")
        if key == 'ssh_port' and value > 65535:
            raise ValidationError(f"Setting 'ssh_port' must be a TCP port (1-65535), got {value}")
        return value
    if key in _NUMBER_KEYS:
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            raise ValidationError(f"Setting '{key}' must be a non-negative number, got {value!r}")
        return float(value)
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Setting '{key}' must be a non-empty string, got {value!r}")
    return value.strip()


def parse_settings(raw: Optional[Dict[str, Any]], source: str = DEFAULT_SETTINGS_FILE) -> DeploySettings:
    """Build DeploySettings from a parsed YAML mapping.

    Args:
        raw: Parsed YAML (None for an empty file)
        source: File name used in error messages

    Raises:
        ValidationError: Unknown keys or wrongly typed values
    """
    if raw is None:
        return DeploySettings()
    if not isinstance(raw, dict):
        raise ValidationError(f"{source}: expected a mapping at top level")

    known = {f.name for f in fields(DeploySettings)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValidationError(
            f"{source}: unknown setting(s): {', '.join(unknown)}\n"
            f"Valid settings: {', '.join(sorted(known))}"
        )

    overrides = {key: _coerce(key, value) for key, value in raw.items()}
    return replace(DeploySettings(), **overrides)


def load_settings(
    config_path: Optional[str],
    loader: ConfigLoader,
    filesystem: FileSystemService
) -> DeploySettings:
    """Load deploy settings.

    An explicit config_path must exist. Without one, doordeploy.yaml in the
    current directory is used when present, otherwise built-in defaults.
    """
    if config_path is None:
        if not filesystem.exists(DEFAULT_SETTINGS_FILE):
            logger.debug(f"No {DEFAULT_SETTINGS_FILE} found, using built-in defaults")
            return DeploySettings()
        config_path = DEFAULT_SETTINGS_FILE
    elif not filesystem.exists(config_path):
        raise ValidationError(f"Settings file not found: {config_path}")

    try:
        raw = loader.load_yaml(config_path)
    except (yaml.YAMLError, OSError) as e:
        raise ValidationError(f"Could not parse {config_path}: {e}") from e

    settings = parse_settings(raw, source=config_path)
    logger.info(f"Loaded deploy settings from {config_path}")
    return settings
