"""
PyFileHub test configuration.

This module provides pytest fixtures for setting up test environments, including:
- Temporary project directories
- Configuration files
- Storage directories
- Logger setup
- API client setup
"""

import pytest
import os
from fastapi.testclient import TestClient
from pyfilehub.config.settings import ConfigManager, get_config_manager
from pyfilehub.core.storage.file import (
    FileManager,
    FileValidator,
    LocalStorageEngine,
    MetadataCache,
)


TEST_ALLOWED_EXTENSIONS = [
    "jpg", "jpeg", "png", "gif", "pdf", "doc", "docx", "xls", "xlsx",
    "txt", "zip", "rar", "mp4", "avi", "mp3", "wav", "py",
]


# Session-level fixture to clear environment variables before any tests run
@pytest.fixture(scope="session", autouse=True)
def clear_env_vars():
    """
    Clear PYFILEHUB environment variables at session start.

    This ensures that environment variables from .env files don't interfere
    with test isolation.
    """
    env_vars_to_clear = [
        "PYFILEHUB_CONFIG_PATH",
        "PYFILEHUB_STORAGE__UPLOAD_DIR",
        "PYFILEHUB_STORAGE__MAX_FILE_SIZE",
        "PYFILEHUB_STORAGE__ALLOWED_EXTENSIONS",
        "PYFILEHUB_API__BASE_URL",
        "PYFILEHUB_API__HOST",
        "PYFILEHUB_API__PORT",
        "PYFILEHUB_PAGINATION__DEFAULT_SIZE",
        "PYFILEHUB_PAGINATION__MAX_SIZE",
    ]

    original_values = {}
    for var in env_vars_to_clear:
        if var in os.environ:
            original_values[var] = os.environ[var]
            del os.environ[var]

    yield

    for var, value in original_values.items():
        os.environ[var] = value


@pytest.fixture(scope="module")
def test_project_dir(tmp_path_factory, request):
    """Creates a unique test project directory for each test module."""
    dirname = f"test_project_{request.module.__name__}"
    return tmp_path_factory.mktemp(dirname)


@pytest.fixture(scope="module")
def storage_base_dir(test_project_dir):
    """Creates the upload directory in the test project directory."""
    storage_dir = test_project_dir / "uploads"
    storage_dir.mkdir()
    return storage_dir


@pytest.fixture(scope="module")
def config_path(test_project_dir, storage_base_dir):
    """Writes a config file for the test module."""
    config_dir = test_project_dir / "test_config"
    config_dir.mkdir()
    config_path = config_dir / "test_config.yaml"
    log_dir = test_project_dir / "logs"

    config_path.write_text(f"""
storage:
    upload_dir: "{storage_base_dir}"
    max_file_size: 1048576
    allowed_extensions: "{','.join(TEST_ALLOWED_EXTENSIONS)}"
api:
    base_url: "http://testserver"
pagination:
    default_size: 20
    max_size: 50
logging:
    version: 1
    disable_existing_loggers: false
    formatters:
        standard:
            format: "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    handlers:
        file:
            class: logging.FileHandler
            formatter: standard
            filename: "{log_dir}/pyfilehub.log"
            level: DEBUG
    loggers:
        pyfilehub:
            level: DEBUG
            handlers: [file]
            propagate: true
""")
    return config_path


@pytest.fixture(scope="module", autouse=True)
def setup_config(config_path):
    """
    Point PYFILEHUB_CONFIG_PATH at the module's config file and load it.
    """
    original_config_path = os.environ.get("PYFILEHUB_CONFIG_PATH")
    os.environ["PYFILEHUB_CONFIG_PATH"] = str(config_path)

    ConfigManager.reset_instance()
    config_manager = get_config_manager()
    config_manager.load(str(config_path))

    from pyfilehub.logging.log_manager import LogManager
    LogManager.reset_instance()
    LogManager.get_instance(config_manager.logging_config)

    yield config_manager

    ConfigManager.reset_instance()

    if original_config_path:
        os.environ["PYFILEHUB_CONFIG_PATH"] = original_config_path
    else:
        os.environ.pop("PYFILEHUB_CONFIG_PATH", None)


@pytest.fixture
def validator():
    """Validator with a 1 MiB limit and the test extension whitelist."""
    return FileValidator(
        allowed_extensions=TEST_ALLOWED_EXTENSIONS,
        max_file_size=1024 * 1024,
    )


@pytest.fixture
def storage(tmp_path, validator):
    """A storage engine rooted in a fresh temporary directory."""
    return LocalStorageEngine(tmp_path / "uploads", validator, MetadataCache())


@pytest.fixture
def file_manager(storage):
    return FileManager(storage, default_page_size=2, max_page_size=5)


@pytest.fixture(scope="module")
def api_client(setup_config):
    """
    Creates an API client for the test module, backed by its own upload dir.
    """
    from pyfilehub.main import app

    with TestClient(app, base_url="http://testserver") as client:
        yield client
