"""
Decompiler Settings

Settings come from a YAML file (``settings.yaml`` by default) and can be
overridden through environment variables:

    MOVE_DECOMPILER_SETTINGS     path of the YAML file
    MOVE_DECOMPILER_LOG_LEVEL    logging level name
    MOVE_DECOMPILER_MAX_WORKERS  batch worker count
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_FILE = "settings.yaml"
SETTINGS_ENV = "MOVE_DECOMPILER_SETTINGS"
LOG_LEVEL_ENV = "MOVE_DECOMPILER_LOG_LEVEL"
MAX_WORKERS_ENV = "MOVE_DECOMPILER_MAX_WORKERS"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class SettingsError(ValueError):
    """Raised when a settings file or override holds an invalid value."""


@dataclass
class DecompilerSettings:
    """Rendering and pipeline options."""
    indent_width: int = 4
    placeholder: str = "?"
    include_header: bool = True
    empty_body_comment: str = "// no statements produced - see original disassembly"
    max_workers: int = 4
    show_progress: bool = False
    log_level: str = "INFO"

    def __post_init__(self):
        self.validate()

    @property
    def indent(self) -> str:
        return " " * self.indent_width

    def validate(self) -> None:
        if not isinstance(self.indent_width, int) or self.indent_width < 0:
            raise SettingsError(f"indent_width must be a non-negative integer, got {self.indent_width!r}")
        if not isinstance(self.max_workers, int) or self.max_workers < 1:
            raise SettingsError(f"max_workers must be a positive integer, got {self.max_workers!r}")
        if not isinstance(self.placeholder, str) or not self.placeholder:
            raise SettingsError("placeholder must be a non-empty string")
        if not isinstance(self.empty_body_comment, str):
            raise SettingsError("empty_body_comment must be a string")
        if str(self.log_level).upper() not in _LOG_LEVELS:
            raise SettingsError(f"Unknown log_level {self.log_level!r}")
        self.log_level = str(self.log_level).upper()

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "DecompilerSettings":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            logger.warning(f"Ignoring unknown settings: {', '.join(unknown)}")
        return cls(**{key: value for key, value in values.items() if key in known})

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r") as f:
            loaded = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise SettingsError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(loaded, dict):
        raise SettingsError(f"Settings file {path} must contain a mapping")
    return loaded


def load_settings(path: Optional[Union[str, Path]] = None) -> DecompilerSettings:
    """
    Load settings from YAML and environment variables.

    Args:
        path: Explicit settings file; must exist when given

    Returns:
        Validated DecompilerSettings
    """
    values: Dict[str, Any] = {}

    if path is not None:
        settings_path = Path(path)
        if not settings_path.exists():
            raise SettingsError(f"Settings file not found: {settings_path}")
    else:
        settings_path = Path(os.getenv(SETTINGS_ENV, DEFAULT_SETTINGS_FILE))

    if settings_path.exists():
        values.update(_read_yaml(settings_path))
        logger.debug(f"Loaded settings from {settings_path}")

    # Environment variables override file settings
    if os.getenv(LOG_LEVEL_ENV):
        values["log_level"] = os.getenv(LOG_LEVEL_ENV)
    if os.getenv(MAX_WORKERS_ENV):
        try:
            values["max_workers"] = int(os.getenv(MAX_WORKERS_ENV))
        except ValueError as e:
            raise SettingsError(f"{MAX_WORKERS_ENV} must be an integer") from e

    return DecompilerSettings.from_dict(values)
