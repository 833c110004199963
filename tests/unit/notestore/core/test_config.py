"""
Unit Tests for Configuration Management.

Black box tests against the public interface of config.py.
Tests run against the real project files (YAML configs).
Failure scenarios use tmp_path to create controlled filesystems.
"""

import pytest

from modules.notestore.core.config import (
    AppConfig,
    Settings,
    find_project_root,
    get_app_config,
    get_redis_url,
    get_settings,
    load_yaml_config,
    resolve_path,
    validate_project_root,
)
from modules.notestore.core.config_schema import (
    ApplicationSchema,
    LoggingSchema,
    NotesSchema,
    StorageSchema,
)


@pytest.fixture(autouse=True)
def _clear_config_cache():
    """Clear lru_cache between tests so each test gets a fresh load."""
    get_settings.cache_clear()
    get_app_config.cache_clear()
    yield
    get_settings.cache_clear()
    get_app_config.cache_clear()


def _write_project(tmp_path, files: dict[str, str]):
    (tmp_path / ".project_root").touch()
    settings_dir = tmp_path / "config" / "settings"
    settings_dir.mkdir(parents=True)
    for name, content in files.items():
        (settings_dir / name).write_text(content)
    return tmp_path


VALID_FILES = {
    "application.yaml": "name: t\nversion: '1'\ndescription: d\nenvironment: test\n",
    "logging.yaml": (
        "level: INFO\nformat: json\nhandlers:\n  console:\n    enabled: true\n"
        "  file:\n    enabled: false\n    path: logs/x.jsonl\n    max_bytes: 10\n    backup_count: 1\n"
    ),
    "storage.yaml": (
        "backend: memory\nfile:\n  directory: data\nredis:\n  host: localhost\n  port: 6379\n  db: 0\n"
    ),
    "notes.yaml": "backup:\n  directory: backups\n",
}


# =============================================================================
# find_project_root
# =============================================================================


class TestFindProjectRoot:
    """Tests for .project_root marker discovery."""

    def test_finds_root_from_project_directory(self):
        root = find_project_root()
        assert root.is_dir()
        assert (root / ".project_root").exists()

    def test_config_directory_exists_at_root(self):
        root = find_project_root()
        assert (root / "config" / "settings").is_dir()

    def test_raises_when_no_marker_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(RuntimeError, match="Project root not found"):
            find_project_root()


class TestValidateProjectRoot:
    """Tests for the SystemExit wrapper around find_project_root."""

    def test_returns_path_when_marker_exists(self):
        root = validate_project_root()
        assert (root / ".project_root").exists()

    def test_exits_when_marker_missing(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(SystemExit):
            validate_project_root()


# =============================================================================
# load_yaml_config / resolve_path
# =============================================================================


class TestLoadYamlConfig:
    """Tests for raw YAML loading."""

    @pytest.mark.parametrize(
        "filename",
        ["application.yaml", "logging.yaml", "storage.yaml", "notes.yaml"],
    )
    def test_loads_each_project_file(self, filename):
        data = load_yaml_config(filename)
        assert isinstance(data, dict)
        assert data

    def test_missing_file_raises(self):
        with pytest.raises(FileNotFoundError, match="Configuration file not found"):
            load_yaml_config("nope.yaml")

    def test_empty_file_returns_empty_dict(self, tmp_path, monkeypatch):
        _write_project(tmp_path, {"empty.yaml": ""})
        monkeypatch.chdir(tmp_path)
        assert load_yaml_config("empty.yaml") == {}


class TestResolvePath:
    def test_relative_path_is_under_project_root(self):
        assert resolve_path("backups") == find_project_root() / "backups"

    def test_absolute_path_is_unchanged(self, tmp_path):
        assert resolve_path(str(tmp_path)) == tmp_path


# =============================================================================
# AppConfig
# =============================================================================


class TestAppConfig:
    """Tests for validated, typed configuration sections."""

    def test_sections_are_typed(self):
        config = AppConfig()
        assert isinstance(config.application, ApplicationSchema)
        assert isinstance(config.logging, LoggingSchema)
        assert isinstance(config.storage, StorageSchema)
        assert isinstance(config.notes, NotesSchema)

    def test_project_notes_defaults(self):
        notes = AppConfig().notes
        assert notes.trash.retention_days == 30
        assert notes.theme.palette_size == 10
        assert notes.pin.length == 4
        assert notes.backup.filename_prefix == "notes_backup"

    def test_project_storage_keys(self):
        keys = AppConfig().storage.keys
        assert keys.active_notes == "notes:active"
        assert keys.trashed_notes == "notes:trash"
        assert keys.pin == "notes:pin"

    def test_get_app_config_is_cached(self):
        assert get_app_config() is get_app_config()

    def test_minimal_files_use_schema_defaults(self, tmp_path, monkeypatch):
        _write_project(tmp_path, VALID_FILES)
        monkeypatch.chdir(tmp_path)
        config = AppConfig()
        assert config.storage.backend == "memory"
        assert config.storage.retry.max_attempts == 3
        assert config.notes.trash.retention_days == 30

    def test_unknown_key_is_rejected(self, tmp_path, monkeypatch):
        files = dict(VALID_FILES)
        files["notes.yaml"] = "backup:\n  directory: backups\nsurprise: true\n"
        _write_project(tmp_path, files)
        monkeypatch.chdir(tmp_path)
        with pytest.raises(ValueError, match="Invalid configuration in notes.yaml"):
            AppConfig()

    def test_unknown_backend_is_rejected(self, tmp_path, monkeypatch):
        files = dict(VALID_FILES)
        files["storage.yaml"] = files["storage.yaml"].replace("backend: memory", "backend: sqlite")
        _write_project(tmp_path, files)
        monkeypatch.chdir(tmp_path)
        with pytest.raises(ValueError, match="storage.yaml"):
            AppConfig()


# =============================================================================
# Settings / URLs
# =============================================================================


class TestSettings:
    def test_password_defaults_to_empty(self, monkeypatch):
        monkeypatch.delenv("REDIS_PASSWORD", raising=False)
        assert Settings(_env_file=None).redis_password == ""

    def test_password_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("REDIS_PASSWORD", "s3cret")
        assert Settings(_env_file=None).redis_password == "s3cret"

    def test_redis_url_combines_yaml_and_secret(self, monkeypatch):
        monkeypatch.setenv("REDIS_PASSWORD", "pw")
        redis = get_app_config().storage.redis
        assert get_redis_url() == f"redis://:pw@{redis.host}:{redis.port}/{redis.db}"
