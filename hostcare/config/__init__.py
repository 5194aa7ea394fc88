from .loader import RUNNER_NAMES, default_settings, load_settings
from .types import (
    ArtifactSettings,
    ConfigError,
    SelectionConfig,
    Settings,
    UnsupportedConfigFormatError,
)

__all__ = [
    "RUNNER_NAMES",
    "default_settings",
    "load_settings",
    "ArtifactSettings",
    "ConfigError",
    "SelectionConfig",
    "Settings",
    "UnsupportedConfigFormatError",
]
