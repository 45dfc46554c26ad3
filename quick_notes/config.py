# quick_notes/config.py
# Description: Configuration management for the Quick Notes sync engine.
#
# Imports
import copy
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
#
# Third-Party Imports
import toml
from loguru import logger
from pydantic import BaseModel, Field, ValidationError, field_validator
#
# Local Imports
from .Constants import (
    GITHUB_API_BASE_URL, REMOTE_NOTES_FILE, DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_AUTO_SYNC_INTERVAL_SECONDS, TOKEN_ENV_VARS,
)
from .github_api.exceptions import ConfigurationError
#
#######################################################################################################################
#
# Functions:

# --- Path to the configuration file ---
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "quick_notes" / "config.toml"
BASE_DATA_DIR = Path.home() / ".local" / "share" / "quick_notes"

CONFIG_TOML_CONTENT = f"""
[general]
log_level = "INFO"

[logging]
log_filename = "quick_notes_sync.log"
file_log_level = "INFO"
log_max_bytes = 10485760
log_backup_count = 5

[storage]
notes_file = "{(BASE_DATA_DIR / 'notes.json').as_posix()}"

[sync]
# https://github.com/<owner>/<repo> ; leave empty to disable remote sync
repo_url = ""
# Name of the environment variable holding the access token
token_env = "{TOKEN_ENV_VARS[0]}"
file_path = "{REMOTE_NOTES_FILE}"
branch = ""
api_base_url = "{GITHUB_API_BASE_URL}"
timeout = {DEFAULT_REQUEST_TIMEOUT_SECONDS}
# Seconds between background syncs; 0 or less disables them
auto_sync_interval = {DEFAULT_AUTO_SYNC_INTERVAL_SECONDS}
"""

try:
    DEFAULT_CONFIG_FROM_TOML: Dict[str, Any] = tomllib.loads(CONFIG_TOML_CONTENT)
except tomllib.TOMLDecodeError as e:
    logger.critical(f"FATAL: Could not parse internal CONFIG_TOML_CONTENT: {e}")
    DEFAULT_CONFIG_FROM_TOML = {}


class SyncSettings(BaseModel):
    """The [sync] section, validated."""
    repo_url: str = ""
    token_env: str = TOKEN_ENV_VARS[0]
    file_path: str = REMOTE_NOTES_FILE
    branch: Optional[str] = None
    api_base_url: str = GITHUB_API_BASE_URL
    timeout: float = Field(default=DEFAULT_REQUEST_TIMEOUT_SECONDS, gt=0)
    auto_sync_interval: float = DEFAULT_AUTO_SYNC_INTERVAL_SECONDS

    @field_validator("repo_url", mode="before")
    @classmethod
    def _strip_repo_url(cls, value: Any) -> str:
        return str(value or "").strip()

    @field_validator("branch", mode="before")
    @classmethod
    def _empty_branch_is_default(cls, value: Any) -> Optional[str]:
        return value or None

    @property
    def is_configured(self) -> bool:
        return bool(self.repo_url)

    @property
    def auto_sync_enabled(self) -> bool:
        return self.auto_sync_interval > 0


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


def get_config_path() -> Path:
    env_path = os.getenv("QUICK_NOTES_CONFIG")
    return Path(env_path).expanduser() if env_path else DEFAULT_CONFIG_PATH


# --- Primary Configuration Loading Logic ---
_CONFIG_CACHE: Optional[Tuple[Path, Dict[str, Any]]] = None

def load_settings(force_reload: bool = False, config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Loads settings from the TOML config file, merged over the built-in defaults.
    If the file doesn't exist, it's created with default values.
    """
    global _CONFIG_CACHE
    config_path = Path(config_path) if config_path else get_config_path()
    if _CONFIG_CACHE is not None and not force_reload and _CONFIG_CACHE[0] == config_path:
        return _CONFIG_CACHE[1]

    loaded_config = copy.deepcopy(DEFAULT_CONFIG_FROM_TOML)

    if not config_path.exists():
        logger.info(f"Config file not found at {config_path}. Creating with default values.")
        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(config_path, "w", encoding="utf-8") as f:
                f.write(CONFIG_TOML_CONTENT)
        except OSError as e:
            logger.error(f"Could not create default config file {config_path}: {e}. Using internal defaults.")
    else:
        try:
            with open(config_path, "rb") as f:
                user_config_from_file = tomllib.load(f)
            loaded_config = deep_merge_dicts(loaded_config, user_config_from_file)
            logger.debug(f"Loaded and merged config from {config_path}")
        except tomllib.TOMLDecodeError as e:
            logger.error(f"Error decoding TOML config file {config_path}: {e}. Using internal defaults.")
        except OSError as e:
            logger.error(f"Could not read config file {config_path}: {e}. Using internal defaults.")

    _CONFIG_CACHE = (config_path, loaded_config)
    return loaded_config


def get_cli_setting(section: str, key: str, default: Any = None, config: Optional[Dict[str, Any]] = None) -> Any:
    """Helper to get a specific setting from the loaded configuration."""
    config = config if config is not None else load_settings()
    section_data = config.get(section)
    if isinstance(section_data, dict):
        return section_data.get(key, default)
    return default


def get_sync_settings(config: Optional[Dict[str, Any]] = None) -> SyncSettings:
    """
    Builds SyncSettings from the [sync] section. `QUICK_NOTES_REPO_URL` and
    `QUICK_NOTES_AUTO_SYNC_INTERVAL` override the file.

    Raises:
        ConfigurationError: If a value has the wrong type or range.
    """
    config = config if config is not None else load_settings()
    section = dict(config.get("sync") or {})

    env_repo_url = os.getenv("QUICK_NOTES_REPO_URL")
    if env_repo_url is not None:
        section["repo_url"] = env_repo_url
    env_interval = os.getenv("QUICK_NOTES_AUTO_SYNC_INTERVAL")
    if env_interval is not None:
        section["auto_sync_interval"] = env_interval

    try:
        return SyncSettings.model_validate(section)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid [sync] settings: {e}") from e


def save_sync_settings(config_path: Optional[Path] = None, **updates: Any) -> SyncSettings:
    """
    Writes the given [sync] keys to the config file, keeping everything else the user has there.
    """
    config_path = Path(config_path) if config_path else get_config_path()
    unknown = set(updates) - set(SyncSettings.model_fields)
    if unknown:
        raise ConfigurationError(f"Unknown sync setting(s): {', '.join(sorted(unknown))}")

    file_config: Dict[str, Any] = {}
    if config_path.exists():
        try:
            with open(config_path, "rb") as f:
                file_config = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Cannot update {config_path}, it is not valid TOML: {e}") from e
    else:
        file_config = copy.deepcopy(DEFAULT_CONFIG_FROM_TOML)

    sync_section = dict(file_config.get("sync") or {})
    sync_section.update({key: ("" if value is None else value) for key, value in updates.items()})
    try:
        validated = SyncSettings.model_validate(sync_section)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid [sync] settings: {e}") from e
    file_config["sync"] = sync_section

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w", encoding="utf-8") as f:
        toml.dump(file_config, f)
    logger.info(f"Saved sync settings to {config_path}")

    load_settings(force_reload=True, config_path=config_path)
    return validated


def get_notes_file_path(config: Optional[Dict[str, Any]] = None) -> Path:
    notes_file = get_cli_setting("storage", "notes_file", str(BASE_DATA_DIR / "notes.json"), config=config)
    return Path(notes_file).expanduser()


def get_log_file_path(config: Optional[Dict[str, Any]] = None) -> Path:
    log_filename = get_cli_setting("logging", "log_filename", "quick_notes_sync.log", config=config)
    log_file_path = Path(log_filename).expanduser()
    if not log_file_path.is_absolute():
        log_file_path = BASE_DATA_DIR / "Logs" / log_file_path
    return log_file_path


def get_log_level(config: Optional[Dict[str, Any]] = None) -> str:
    return os.getenv("QUICK_NOTES_LOG_LEVEL", get_cli_setting("general", "log_level", "INFO", config=config)).upper()

#
# End of config.py
#######################################################################################################################
