"""Global configuration for moodlog.

Configuration lives in ``$MOODLOG_HOME/config.yaml`` (default
``~/.config/moodlog/config.yaml``). A missing file means defaults.
"""

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


class GlobalConfig(BaseModel):
    """Settings read from config.yaml."""

    template_registry_path: str | None = None
    invitation_code_length: int = Field(default=8, ge=4, le=32)
    invitation_alphabet: str = DEFAULT_ALPHABET
    invitation_expiry_days: int = Field(default=7, ge=1)
    invitation_max_attempts: int = Field(default=10, ge=1)
    consistency_window_days: int = Field(default=30, ge=1)
    log_level: str = "INFO"

    @field_validator("invitation_alphabet")
    @classmethod
    def alphabet_is_usable(cls, value: str) -> str:
        value = value.upper()
        if len(set(value)) != len(value):
            raise ValueError("invitation_alphabet must not repeat characters")
        if len(value) < 10:
            raise ValueError("invitation_alphabet needs at least 10 characters")
        return value


def get_moodlog_home() -> Path:
    """Directory holding config.yaml (``MOODLOG_HOME`` overrides)."""
    env_home = os.environ.get("MOODLOG_HOME")
    if env_home:
        return Path(env_home)
    return Path.home() / ".config" / "moodlog"


def get_config_path() -> Path:
    return get_moodlog_home() / "config.yaml"


def load_global_config(path: Path | str | None = None) -> GlobalConfig:
    """Load config.yaml, falling back to defaults when it does not exist."""
    config_path = Path(path) if path else get_config_path()
    if not config_path.exists():
        return GlobalConfig()

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")
    return GlobalConfig.model_validate(data)


def save_global_config(config: GlobalConfig, path: Path | str | None = None) -> Path:
    """Write config.yaml, creating the home directory if needed."""
    config_path = Path(path) if path else get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        yaml.dump(config.model_dump(exclude_none=True), f, sort_keys=False)
    return config_path


def get_template_registry_path(config: GlobalConfig | None = None) -> Path:
    """Resolve the template registry directory.

    Order: ``MOODLOG_TEMPLATE_REGISTRY``, config.yaml, ``./register-templates``.
    """
    env_path = os.environ.get("MOODLOG_TEMPLATE_REGISTRY")
    if env_path:
        return Path(env_path)
    config = config or load_global_config()
    if config.template_registry_path:
        return Path(config.template_registry_path)
    return Path("register-templates")
