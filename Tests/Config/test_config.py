# test_config.py
#
#
# Imports
import logging
import logging.handlers
import sys
import tomllib
#
# Third-Party Imports
import pytest
from loguru import logger
#
# Local Imports
from quick_notes import config as quick_notes_config
from quick_notes.Logging_Config import configure_logging
from quick_notes.config import (
    SyncSettings, deep_merge_dicts, get_cli_setting, get_config_path, get_log_file_path,
    get_log_level, get_notes_file_path, get_sync_settings, load_settings, save_sync_settings,
)
from quick_notes.github_api.exceptions import ConfigurationError
#
########################################################################################################################
#
# Functions:

@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "config" / "config.toml"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("QUICK_NOTES_CONFIG", "QUICK_NOTES_REPO_URL", "QUICK_NOTES_AUTO_SYNC_INTERVAL",
                 "QUICK_NOTES_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(quick_notes_config, "_CONFIG_CACHE", None)


def write_config(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


# --- Loading ---

def test_missing_config_is_created_with_defaults(config_path):
    config = load_settings(config_path=config_path)

    assert config_path.exists()
    assert config["sync"]["repo_url"] == ""
    assert config["sync"]["file_path"] == "notes.json"
    assert get_sync_settings(config).is_configured is False
    assert get_sync_settings(config).auto_sync_enabled is False


def test_user_config_is_merged_over_defaults(config_path):
    write_config(config_path, '[sync]\nrepo_url = "https://github.com/alice/notes"\nauto_sync_interval = 300\n')

    settings = get_sync_settings(load_settings(config_path=config_path))

    assert settings.repo_url == "https://github.com/alice/notes"
    assert settings.auto_sync_interval == 300
    assert settings.timeout == 30.0
    assert settings.auto_sync_enabled is True


def test_invalid_toml_falls_back_to_defaults(config_path):
    write_config(config_path, "[sync\nrepo_url = ")
    config = load_settings(config_path=config_path)
    assert config["sync"]["repo_url"] == ""


def test_load_settings_is_cached_until_forced(config_path):
    first = load_settings(config_path=config_path)
    write_config(config_path, '[general]\nlog_level = "DEBUG"\n')
    assert load_settings(config_path=config_path) is first
    assert load_settings(force_reload=True, config_path=config_path)["general"]["log_level"] == "DEBUG"


def test_config_path_env_override(monkeypatch, tmp_path):
    monkeypatch.setenv("QUICK_NOTES_CONFIG", str(tmp_path / "elsewhere.toml"))
    assert get_config_path() == tmp_path / "elsewhere.toml"


def test_get_cli_setting_defaults():
    config = {"general": {"log_level": "WARNING"}, "broken": "not-a-section"}
    assert get_cli_setting("general", "log_level", config=config) == "WARNING"
    assert get_cli_setting("general", "missing", "fallback", config=config) == "fallback"
    assert get_cli_setting("broken", "key", 1, config=config) == 1
    assert get_cli_setting("absent", "key", 2, config=config) == 2


def test_deep_merge_dicts_keeps_nested_defaults():
    base = {"sync": {"timeout": 30, "branch": ""}, "general": {"log_level": "INFO"}}
    merged = deep_merge_dicts(base, {"sync": {"branch": "main"}})
    assert merged == {"sync": {"timeout": 30, "branch": "main"}, "general": {"log_level": "INFO"}}
    assert base["sync"]["branch"] == ""


# --- Sync settings ---

def test_environment_overrides_sync_section(monkeypatch):
    monkeypatch.setenv("QUICK_NOTES_REPO_URL", "https://github.com/bob/notes")
    monkeypatch.setenv("QUICK_NOTES_AUTO_SYNC_INTERVAL", "45")
    settings = get_sync_settings({"sync": {"repo_url": "https://github.com/alice/notes"}})
    assert settings.repo_url == "https://github.com/bob/notes"
    assert settings.auto_sync_interval == 45


def test_invalid_sync_values_raise_configuration_error():
    with pytest.raises(ConfigurationError):
        get_sync_settings({"sync": {"timeout": -1}})
    with pytest.raises(ConfigurationError):
        get_sync_settings({"sync": {"auto_sync_interval": "soon"}})


def test_sync_settings_normalise_blank_values():
    settings = SyncSettings(repo_url="  https://github.com/alice/notes  ", branch="")
    assert settings.repo_url == "https://github.com/alice/notes"
    assert settings.branch is None
    assert SyncSettings(repo_url=None).is_configured is False


def test_save_sync_settings_preserves_other_sections(config_path):
    write_config(config_path, '[general]\nlog_level = "DEBUG"\n\n[sync]\ntimeout = 10.0\n')

    saved = save_sync_settings(config_path=config_path, repo_url="https://github.com/alice/notes",
                               auto_sync_interval=120)

    assert saved.is_configured is True
    with open(config_path, "rb") as f:
        on_disk = tomllib.load(f)
    assert on_disk["general"]["log_level"] == "DEBUG"
    assert on_disk["sync"] == {"timeout": 10.0, "repo_url": "https://github.com/alice/notes",
                               "auto_sync_interval": 120}
    assert get_sync_settings(load_settings(config_path=config_path)).auto_sync_interval == 120


def test_save_sync_settings_rejects_unknown_and_invalid_keys(config_path):
    with pytest.raises(ConfigurationError):
        save_sync_settings(config_path=config_path, repository="x")
    with pytest.raises(ConfigurationError):
        save_sync_settings(config_path=config_path, timeout=0)
    assert not config_path.exists()


# --- Paths and levels ---

def test_relative_log_filename_goes_under_data_dir():
    path = get_log_file_path({"logging": {"log_filename": "sync.log"}})
    assert path == quick_notes_config.BASE_DATA_DIR / "Logs" / "sync.log"


def test_absolute_paths_are_kept(tmp_path):
    assert get_log_file_path({"logging": {"log_filename": str(tmp_path / "a.log")}}) == tmp_path / "a.log"
    assert get_notes_file_path({"storage": {"notes_file": str(tmp_path / "n.json")}}) == tmp_path / "n.json"


def test_log_level_env_override(monkeypatch):
    assert get_log_level({"general": {"log_level": "warning"}}) == "WARNING"
    monkeypatch.setenv("QUICK_NOTES_LOG_LEVEL", "debug")
    assert get_log_level({"general": {"log_level": "warning"}}) == "DEBUG"


# --- Logging ---

@pytest.fixture
def restore_logging():
    root_logger = logging.getLogger()
    level = root_logger.level
    yield
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(level)
    logger.remove()
    logger.add(sys.stderr)


def test_configure_logging_forwards_loguru_to_rotating_file(tmp_path, restore_logging):
    log_file = tmp_path / "logs" / "sync.log"
    config = {"general": {"log_level": "WARNING"},
              "logging": {"file_log_level": "DEBUG", "log_max_bytes": 2048, "log_backup_count": 2}}

    assert configure_logging(config, log_file_path=log_file) == log_file

    root_logger = logging.getLogger()
    rotating = [h for h in root_logger.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
    assert len(rotating) == 1
    assert rotating[0].maxBytes == 2048
    assert rotating[0].backupCount == 2
    assert root_logger.level == logging.DEBUG

    logger.debug("merge finished for project p1")
    rotating[0].flush()
    assert "merge finished for project p1" in log_file.read_text(encoding="utf-8")

#
# End of test_config.py
########################################################################################################################
