# config.py
# Description: Configuration for the TEM client: TOML defaults, user overrides, environment overrides.
#
# Imports
import copy
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional
#
# 3rd-Party Imports
import toml
from loguru import logger
from pydantic import BaseModel, Field, field_validator
#
# Local Imports
#
#######################################################################################################################
#
# Functions:

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "tem_client" / "config.toml"

# Environment variable -> (section, key)
ENV_OVERRIDES = {
    "TEM_ENDPOINT": ("gateway", "endpoint"),
    "TEM_API_TOKEN": ("gateway", "token"),
    "TEM_LOG_LEVEL": ("logging", "log_level"),
}

CONFIG_TOML_CONTENT = """
# Configuration for the Text Expansion Manager client
# Located at: ~/.config/tem_client/config.toml

[gateway]
# Script execution endpoint, e.g. https://script.googleapis.com/v1/scripts/<SCRIPT_ID>:run
# Leave empty to run without a backend (every remote call fails as "unavailable").
endpoint = ""
token = ""
timeout_seconds = 60.0
dev_mode = false

[retry]
# Retries after the first attempt; waits double each time starting at initial_delay_seconds.
max_attempts = 3
initial_delay_seconds = 1.0
# 0 disables the ceiling
max_delay_seconds = 0.0

[sync]
# Page width for fetchShortcutsBatch. The first page comes from the snapshot handler.
batch_size = 500
# Batch data only replaces a local record when it is at least as new (by updatedAt).
last_write_wins = true

[mutations]
rollback_upsert = true
rollback_delete = true
# Favorites are eventually consistent; failures are only logged.
rollback_toggle_favorite = false

[limits]
key_max = 80
body_max = 50000
tags_max = 512
description_max = 2000
application_max = 128
language_max = 64

[logging]
log_level = "INFO"
log_file = "~/.local/tem_client/Logs/tem_client.log"

[notifications]
timeout_seconds = 2.5
"""

try:
    DEFAULT_CONFIG_FROM_TOML: Dict[str, Any] = tomllib.loads(CONFIG_TOML_CONTENT)
except tomllib.TOMLDecodeError as e:
    logger.critical(f"FATAL: Could not parse internal CONFIG_TOML_CONTENT: {e}. Application cannot start correctly.")
    DEFAULT_CONFIG_FROM_TOML = {}


# --- Helper for deep merging dictionaries ---
def deep_merge_dicts(base: Dict, update: Dict) -> Dict:
    """Recursively merges update_dict into base_dict."""
    merged = copy.deepcopy(base)
    for key, value in update.items():
        if isinstance(value, dict) and key in merged and isinstance(merged[key], dict):
            merged[key] = deep_merge_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged


def _apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    for env_var, (section, key) in ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value:
            config.setdefault(section, {})[key] = value
            logger.debug(f"Config override from {env_var} -> [{section}].{key}")
    return config


# --- Primary Configuration Loading Logic ---
_CONFIG_CACHE: Dict[Path, Dict[str, Any]] = {}


def load_settings(config_path: Optional[Path] = None, force_reload: bool = False) -> Dict[str, Any]:
    """
    Loads settings from the user's config.toml (created with defaults if
    missing), merged over the built-in defaults, then environment overrides.
    """
    path = Path(config_path).expanduser() if config_path else DEFAULT_CONFIG_PATH
    if path in _CONFIG_CACHE and not force_reload:
        return _CONFIG_CACHE[path]

    loaded_config = copy.deepcopy(DEFAULT_CONFIG_FROM_TOML)

    if not path.exists():
        logger.info(f"Config file not found at {path}. Creating with default values.")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                # Write the commented default TOML, not the parsed dictionary
                f.write(CONFIG_TOML_CONTENT)
            logger.info(f"Created default config file at {path}")
        except OSError as e:
            logger.error(f"Could not create default config file {path}: {e}. Using internal defaults.")
    else:
        logger.info(f"Loading config from: {path}")
        try:
            with open(path, "rb") as f:
                user_config_from_file = tomllib.load(f)
            loaded_config = deep_merge_dicts(loaded_config, user_config_from_file)
        except tomllib.TOMLDecodeError as e:
            logger.error(f"Error decoding TOML config file {path}: {e}. Using internal defaults.")
        except OSError as e:
            logger.error(f"Could not read config file {path}: {e}. Using internal defaults.")

    loaded_config = _apply_env_overrides(loaded_config)
    _CONFIG_CACHE[path] = loaded_config
    logger.debug(f"load_settings returning config with sections: {list(loaded_config.keys())}")
    return loaded_config


def get_cli_setting(section: str, key: str, default: Any = None, config_path: Optional[Path] = None) -> Any:
    """Helper to get a specific setting from the loaded configuration."""
    section_data = load_settings(config_path).get(section)
    if isinstance(section_data, dict):
        return section_data.get(key, default)
    return default


def dump_settings(config: Dict[str, Any]) -> str:
    return toml.dumps(config)


# --- Typed sections ---

def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class GatewaySettings(BaseModel):
    endpoint: Optional[str] = None
    token: Optional[str] = None
    timeout_seconds: float = Field(default=60.0, gt=0)
    dev_mode: bool = False

    @field_validator("endpoint", "token", mode="before")
    @classmethod
    def empty_is_unset(cls, value: Any) -> Any:
        return _blank_to_none(value)


class RetrySettings(BaseModel):
    max_attempts: int = Field(default=3, ge=0)
    initial_delay_seconds: float = Field(default=1.0, ge=0)
    max_delay_seconds: float = Field(default=0.0, ge=0)


class SyncSettings(BaseModel):
    batch_size: int = Field(default=500, gt=0)
    last_write_wins: bool = True


class MutationSettings(BaseModel):
    rollback_upsert: bool = True
    rollback_delete: bool = True
    rollback_toggle_favorite: bool = False


class RecordLimits(BaseModel):
    key_max: int = 80
    body_max: int = 50000
    tags_max: int = 512
    description_max: int = 2000
    application_max: int = 128
    language_max: int = 64


class LoggingSettings(BaseModel):
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @field_validator("log_file", mode="before")
    @classmethod
    def empty_is_unset(cls, value: Any) -> Any:
        return _blank_to_none(value)


class NotificationSettings(BaseModel):
    timeout_seconds: float = 2.5


class ClientSettings(BaseModel):
    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    mutations: MutationSettings = Field(default_factory=MutationSettings)
    limits: RecordLimits = Field(default_factory=RecordLimits)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "ClientSettings":
        known = {name: config[name] for name in cls.model_fields if isinstance(config.get(name), dict)}
        return cls.model_validate(known)


def load_client_settings(config_path: Optional[Path] = None, force_reload: bool = False) -> ClientSettings:
    return ClientSettings.from_config(load_settings(config_path, force_reload=force_reload))

#
# End of config.py
########################################################################################################################
