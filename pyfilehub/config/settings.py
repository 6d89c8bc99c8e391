"""
Configuration Manager for PyFileHub using Pydantic Settings.

This module provides a type-safe configuration system with:
- Automatic config file discovery
- Environment variable override support with proper type conversion
- Configuration validation with clear error messages
- No circular dependencies with logging

The storage core never parses configuration itself: the values below are
handed to it as plain constructor arguments.
"""

from __future__ import annotations

import os
import yaml
import logging
from typing import Any, ClassVar
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict, PydanticBaseSettingsSource


# Use basic logging during config initialization (before custom logger is
# set up)
_basic_logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_EXTENSIONS = (
    "jpg,jpeg,png,gif,pdf,doc,docx,xls,xlsx,txt,zip,rar,mp4,avi,mp3,wav"
)
DEFAULT_MAX_FILE_SIZE = 2 * 1024 * 1024 * 1024  # 2 GiB


class StorageSettings(BaseModel):
    """Upload storage configuration."""
    upload_dir: str = Field(
        default="uploads",
        description="Directory holding all uploaded files")
    max_file_size: int = Field(
        default=DEFAULT_MAX_FILE_SIZE,
        ge=1,
        description="Maximum upload size in bytes")
    allowed_extensions: str = Field(
        default=DEFAULT_ALLOWED_EXTENSIONS,
        description="Comma-separated list of allowed file extensions")
    max_filename_length: int = Field(default=200, ge=1, le=230)
    default_upload_user: str = Field(default="system")
    download_url_prefix: str = Field(default="/api/v1/files/download/")

    def allowed_extension_set(self) -> frozenset[str]:
        """Parse the comma-separated extension list."""
        return frozenset(
            ext.strip().lower().lstrip(".")
            for ext in self.allowed_extensions.split(",")
            if ext.strip().lstrip(".")
        )


class APISettings(BaseModel):
    """API configuration."""
    base_url: str = Field(
        default="http://127.0.0.1:8000",
        description="API base URL")
    host: str = Field(default="0.0.0.0", description="Host for uvicorn")
    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port for uvicorn")


class PaginationSettings(BaseModel):
    """Listing page sizes."""
    default_size: int = Field(default=20, ge=1)
    max_size: int = Field(default=200, ge=1)


class LoggingSettings(BaseModel):
    """Logging configuration (raw dict for logging.config.dictConfig)."""
    version: int = Field(default=1)
    disable_existing_loggers: bool = Field(default=False)
    formatters: dict[str, Any] = Field(default_factory=dict)
    handlers: dict[str, Any] = Field(default_factory=dict)
    root: dict[str, Any] = Field(default_factory=dict)
    loggers: dict[str, Any] = Field(default_factory=dict)

    # Allow extra fields for logging config flexibility
    model_config = {'extra': 'allow'}


class AppSettings(BaseSettings):
    """
    Main application settings using Pydantic Settings.

    This class automatically:
    - Loads configuration from YAML files
    - Overrides values from environment variables
    - Validates all settings

    Environment variables use the format: PYFILEHUB_SECTION__KEY
    Example: PYFILEHUB_STORAGE__UPLOAD_DIR=/srv/uploads
    """

    storage: StorageSettings = Field(default_factory=StorageSettings)
    api: APISettings = Field(default_factory=APISettings)
    pagination: PaginationSettings = Field(default_factory=PaginationSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_prefix="PYFILEHUB_",
        env_nested_delimiter="__",
        case_sensitive=False,
        # Allow extra fields for forward compatibility
        extra="ignore",
    )

    # Class variable to temporarily store YAML data
    _temp_config_data: ClassVar[dict[str, Any] | None] = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """
        Customize the sources and their priority for loading settings.

        Priority (highest to lowest):
        1. Environment variables
        2. YAML file data (if loaded via from_yaml)
        3. Init arguments and defaults
        """
        class YamlSettingsSource(PydanticBaseSettingsSource):
            def get_field_value(
                    self, field: Any, field_name: str) -> tuple[Any, str, bool]:
                if cls._temp_config_data and field_name in cls._temp_config_data:
                    return cls._temp_config_data[field_name], field_name, False
                return None, field_name, False

            def __call__(self) -> dict[str, Any]:
                return cls._temp_config_data or {}

        return (
            env_settings,
            YamlSettingsSource(settings_cls),
            init_settings,
        )

    @classmethod
    def from_yaml(cls, config_path: str | None = None) -> 'AppSettings':
        """
        Load configuration from YAML file with fallback search strategy.

        Search order:
        1. PYFILEHUB_CONFIG_PATH environment variable (if set)
        2. ./config.yaml (project root)
        3. pyfilehub/config/config.yaml (package location)

        When no file is found in any location the built-in defaults are
        used. Environment variables (PYFILEHUB_*) always override YAML values.

        Args:
            config_path: Explicit path to config file (skips search if provided)

        Returns:
            AppSettings instance

        Raises:
            FileNotFoundError: If an explicit config_path does not exist
            ValueError: If config file has invalid YAML, structure or values
        """
        if config_path is None:
            config_path = cls._find_config_file()

        config_data: dict[str, Any] = {}
        if config_path is None:
            _basic_logger.info(
                "No configuration file found, using defaults")
        else:
            _basic_logger.info(f"Loading configuration from: {config_path}")
            try:
                with open(config_path, "r") as f:
                    config_data = yaml.safe_load(f) or {}
            except FileNotFoundError:
                _basic_logger.error(
                    f"Configuration file not found: {config_path}")
                raise FileNotFoundError(
                    f"Configuration file not found: {config_path}\n"
                    f"Tried search paths: {cls._get_search_paths()}"
                )
            except yaml.YAMLError as e:
                _basic_logger.error(f"Invalid YAML in config file: {e}")
                raise ValueError(
                    f"Invalid YAML in configuration file {config_path}: {e}")

            if not isinstance(config_data, dict):
                raise ValueError(
                    f"Configuration file {config_path} must contain a mapping")

        cls._temp_config_data = config_data

        try:
            settings = cls()
            _basic_logger.info(
                "Configuration loaded and validated successfully")
            return settings
        except ValidationError as e:
            _basic_logger.error(f"Configuration validation failed: {e}")
            raise ValueError(f"Configuration validation failed:\n{e}")
        finally:
            cls._temp_config_data = None

    @staticmethod
    def _get_search_paths() -> list[str]:
        """Get list of paths to search for config file."""
        return [
            os.getenv("PYFILEHUB_CONFIG_PATH", ""),
            "./config.yaml",
            os.path.join(os.path.dirname(__file__), "config.yaml"),
        ]

    @classmethod
    def _find_config_file(cls) -> str | None:
        """Return the first existing config file, or None."""
        for path in cls._get_search_paths():
            if path and os.path.isfile(path):
                _basic_logger.debug(f"Found config file at: {path}")
                return path
        return None


class ConfigManager:
    """
    Singleton wrapper for AppSettings.

    Provides dotted-key access and convenience properties on top of the
    Pydantic-based settings.
    """

    _instance: 'ConfigManager' | None = None
    _settings: AppSettings | None = None
    _config_path: str | None = None

    @classmethod
    def get_instance(cls) -> 'ConfigManager':
        """Get singleton instance of ConfigManager."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls):
        """Reset singleton instance (for testing)."""
        cls._instance = None
        cls._settings = None
        cls._config_path = None

    def load(self, config_path: str | None = None) -> dict[str, Any]:
        """
        Load configuration from file.

        Args:
            config_path: Optional path to config file

        Returns:
            Configuration as dictionary
        """
        if self._settings is not None and config_path is None:
            return self._settings.model_dump()

        ConfigManager._config_path = config_path
        ConfigManager._settings = AppSettings.from_yaml(config_path)

        return self._settings.model_dump()

    @property
    def settings(self) -> AppSettings:
        """Get the validated settings object."""
        if self._settings is None:
            self.load()
        return self._settings

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key: Config key in dot notation (e.g., "storage.upload_dir")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value: Any = self.settings.model_dump()

        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def get_config(self) -> dict[str, Any]:
        """Get entire configuration as dictionary."""
        return self.settings.model_dump()

    def get_config_path(self) -> str | None:
        """Get path to loaded configuration file."""
        return self._config_path

    @property
    def storage(self) -> StorageSettings:
        return self.settings.storage

    @property
    def pagination(self) -> PaginationSettings:
        return self.settings.pagination

    @property
    def api_base_url(self) -> str:
        return self.settings.api.base_url

    @property
    def api_host(self) -> str:
        return self.settings.api.host

    @property
    def api_port(self) -> int:
        return self.settings.api.port

    @property
    def logging_config(self) -> dict[str, Any]:
        """Get logging configuration."""
        return self.settings.logging.model_dump()


def get_config_manager() -> ConfigManager:
    """
    Get the ConfigManager singleton instance.

    Returns:
        ConfigManager instance
    """
    return ConfigManager.get_instance()


__all__ = [
    'ConfigManager',
    'AppSettings',
    'get_config_manager',
    'StorageSettings',
    'APISettings',
    'PaginationSettings',
    'LoggingSettings',
    'DEFAULT_ALLOWED_EXTENSIONS',
    'DEFAULT_MAX_FILE_SIZE',
]
