"""veriseal config models and loading helpers."""

from __future__ import annotations

import json
import os
from enum import StrEnum
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from veriseal.kernel.envelope import PayloadEncoding

CONFIG_ENV_VAR = "VERISEAL_CONFIG"


class LogLevel(StrEnum):
    """Supported CLI log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class KeySettings(BaseModel):
    """Default key file locations."""

    model_config = ConfigDict(extra="forbid")

    private_key: Path | None = None
    public_key: Path | None = None


class EnvelopeDefaults(BaseModel):
    """Defaults applied to new templates."""

    model_config = ConfigDict(extra="forbid")

    kid: str | None = None
    payload_encoding: PayloadEncoding = PayloadEncoding.JCS


class SigningSettings(BaseModel):
    """Signing behavior defaults."""

    model_config = ConfigDict(extra="forbid")

    set_iat: bool = False


class AuditSettings(BaseModel):
    """Chain audit defaults."""

    model_config = ConfigDict(extra="forbid")

    strict_start: bool = False


class VerisealConfig(BaseModel):
    """Root veriseal configuration model."""

    model_config = ConfigDict(extra="forbid")

    log_level: LogLevel = LogLevel.WARNING
    keys: KeySettings = KeySettings()
    envelope: EnvelopeDefaults = EnvelopeDefaults()
    signing: SigningSettings = SigningSettings()
    audit: AuditSettings = AuditSettings()


class ConfigError(RuntimeError):
    """Raised when config cannot be decoded or validated."""


def default_config_path(cwd: Path | None = None) -> Path:
    """Return config path from VERISEAL_CONFIG or the working directory.

    Args:
        cwd: Directory to search; defaults to the process working directory.

    Returns:
        veriseal.yaml, or veriseal.json when only that exists.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    root = cwd or Path.cwd()
    yaml_path = root / "veriseal.yaml"
    json_path = root / "veriseal.json"
    if yaml_path.exists():
        return yaml_path
    if json_path.exists():
        return json_path
    return yaml_path


def _decode_config_payload(path: Path) -> dict[str, object]:
    """Decode config payload from JSON or YAML.

    Args:
        path: Config file path.

    Returns:
        Parsed mapping payload.

    Raises:
        ConfigError: If decode fails or payload is not an object.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read config {path}: {exc}") from exc
    if path.suffix.lower() == ".json":
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid config JSON: {exc}") from exc
    else:
        try:
            payload = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid config YAML: {exc}") from exc
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ConfigError("Invalid config payload: root must be an object")
    return payload


def load_config(path: Path) -> VerisealConfig:
    """Load veriseal config from disk, defaulting when missing.

    Relative key paths are resolved against the config file's directory.

    Args:
        path: Config file path.

    Returns:
        Parsed config payload, or defaults when file does not exist.

    Raises:
        ConfigError: If payload decode or validation fails.
    """
    if not path.exists():
        return VerisealConfig()
    payload = _decode_config_payload(path)
    try:
        config = VerisealConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config payload: {exc}") from exc
    base = path.parent
    keys = config.keys.model_copy(
        update={
            "private_key": _resolve(base, config.keys.private_key),
            "public_key": _resolve(base, config.keys.public_key),
        }
    )
    return config.model_copy(update={"keys": keys})


def _resolve(base: Path, value: Path | None) -> Path | None:
    if value is None or value.is_absolute():
        return value
    return base / value
