"""
Tests for configuration management system.

Tests cover:
- Configuration file loading from explicit and searched paths
- Environment variable overrides
- Configuration validation
- Error handling for missing/invalid configs
"""

import pytest
import yaml
from pyfilehub.config.settings import (
    get_config_manager,
    ConfigManager,
    AppSettings,
    StorageSettings,
    DEFAULT_ALLOWED_EXTENSIONS,
    DEFAULT_MAX_FILE_SIZE,
)
from pyfilehub.core.api.dependencies import build_file_manager
from pydantic import ValidationError


@pytest.fixture(autouse=True)
def reset_config():
    """Reset config manager before each test."""
    ConfigManager.reset_instance()
    yield
    ConfigManager.reset_instance()


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "storage": {
            "upload_dir": "/srv/uploads",
            "max_file_size": 5000,
            "allowed_extensions": "pdf, .PNG ,txt,,",
        },
        "api": {
            "base_url": "http://files.example:9000",
            "port": 9000
        },
        "pagination": {
            "default_size": 10,
            "max_size": 100
        }
    }


@pytest.fixture
def config_file(tmp_path, valid_config):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(valid_config))
    return path


def test_storage_defaults():
    settings = StorageSettings()
    assert settings.upload_dir == "uploads"
    assert settings.max_file_size == DEFAULT_MAX_FILE_SIZE == 2 * 1024 ** 3
    assert settings.allowed_extensions == DEFAULT_ALLOWED_EXTENSIONS
    assert "pdf" in settings.allowed_extension_set()
    assert "exe" not in settings.allowed_extension_set()


def test_allowed_extension_parsing():
    settings = StorageSettings(allowed_extensions="pdf, .PNG ,txt,,")
    assert settings.allowed_extension_set() == frozenset({"pdf", "png", "txt"})


def test_invalid_values_are_rejected():
    with pytest.raises(ValidationError):
        StorageSettings(max_file_size=0)
    with pytest.raises(ValidationError):
        StorageSettings(max_filename_length=500)


def test_load_explicit_file(config_file):
    settings = AppSettings.from_yaml(str(config_file))
    assert settings.storage.upload_dir == "/srv/uploads"
    assert settings.storage.max_file_size == 5000
    assert settings.storage.default_upload_user == "system"
    assert settings.api.base_url == "http://files.example:9000"
    assert settings.api.host == "0.0.0.0"
    assert settings.pagination.max_size == 100


def test_env_overrides_yaml(config_file, monkeypatch):
    monkeypatch.setenv("PYFILEHUB_STORAGE__MAX_FILE_SIZE", "1234")
    monkeypatch.setenv("PYFILEHUB_API__PORT", "8123")

    settings = AppSettings.from_yaml(str(config_file))

    assert settings.storage.max_file_size == 1234
    assert settings.storage.upload_dir == "/srv/uploads"
    assert settings.api.port == 8123


def test_config_path_env_var(config_file, monkeypatch):
    monkeypatch.setenv("PYFILEHUB_CONFIG_PATH", str(config_file))
    settings = AppSettings.from_yaml()
    assert settings.storage.max_file_size == 5000


def test_falls_back_to_packaged_config(tmp_path, monkeypatch):
    monkeypatch.delenv("PYFILEHUB_CONFIG_PATH", raising=False)
    monkeypatch.chdir(tmp_path)

    settings = AppSettings.from_yaml()

    assert settings.storage.upload_dir == "uploads"
    assert settings.pagination.default_size == 20


def test_missing_explicit_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        AppSettings.from_yaml(str(tmp_path / "nope.yaml"))


def test_invalid_yaml(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("storage: [unclosed")
    with pytest.raises(ValueError, match="Invalid YAML"):
        AppSettings.from_yaml(str(path))


def test_non_mapping_yaml(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(ValueError, match="mapping"):
        AppSettings.from_yaml(str(path))


def test_invalid_values_in_file(tmp_path):
    path = tmp_path / "invalid.yaml"
    path.write_text("api:\n  port: 99999\n")
    with pytest.raises(ValueError, match="validation failed"):
        AppSettings.from_yaml(str(path))


def test_config_manager_singleton(config_file):
    manager = get_config_manager()
    assert manager is ConfigManager.get_instance()

    manager.load(str(config_file))

    assert manager.get_config_path() == str(config_file)
    assert manager.get("storage.max_file_size") == 5000
    assert manager.get("storage.missing", "fallback") == "fallback"
    assert manager.api_base_url == "http://files.example:9000"
    assert manager.api_port == 9000
    assert manager.storage.upload_dir == "/srv/uploads"
    assert manager.pagination.default_size == 10
    assert manager.get_config()["api"]["port"] == 9000
    assert isinstance(manager.logging_config, dict)


def test_build_file_manager_from_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({
        "storage": {
            "upload_dir": str(tmp_path / "files"),
            "max_file_size": 10,
            "allowed_extensions": "txt",
        },
        "pagination": {"default_size": 3, "max_size": 4},
    }))
    manager = get_config_manager()
    manager.load(str(path))

    file_manager = build_file_manager(manager)

    assert file_manager.storage.storage_root == (tmp_path / "files").resolve()
    assert file_manager.storage.max_file_size == 10
    assert file_manager.default_page_size == 3
    assert file_manager.max_page_size == 4
    assert (tmp_path / "files").is_dir()
