"""veriseal configuration loading."""

from veriseal.config.global_config import (
    CONFIG_ENV_VAR,
    AuditSettings,
    ConfigError,
    EnvelopeDefaults,
    KeySettings,
    LogLevel,
    SigningSettings,
    VerisealConfig,
    default_config_path,
    load_config,
)

__all__ = [
    "CONFIG_ENV_VAR",
    "AuditSettings",
    "ConfigError",
    "EnvelopeDefaults",
    "KeySettings",
    "LogLevel",
    "SigningSettings",
    "VerisealConfig",
    "default_config_path",
    "load_config",
]
