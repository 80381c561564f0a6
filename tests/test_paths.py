"""Tests for path utilities."""

from pathlib import Path

from contact_reminder.utils.paths import (
    CONFIG_DIR_ENV_VAR,
    DEFAULT_CONFIG_DIR,
    DEFAULT_DATABASE_FILE,
    DEFAULT_SETTINGS_FILE,
    MEMORY_DATABASE,
    resolve_config_dir,
    resolve_store_path,
)


class TestDefaults:
    """Test module constants."""

    def test_default_config_dir_is_in_home(self):
        """Default config dir should be in user's home directory."""
        assert Path.home() / ".contact-reminder" == DEFAULT_CONFIG_DIR

    def test_env_var_name(self):
        assert CONFIG_DIR_ENV_VAR == "CONTACT_REMINDER_CONFIG_DIR"

    def test_store_file_names(self):
        """Cache and settings live in separate files."""
        assert DEFAULT_DATABASE_FILE == "contacts.db"
        assert DEFAULT_SETTINGS_FILE == "settings.json"


class TestResolveConfigDir:
    """Test resolve_config_dir function."""

    def test_explicit_path(self, tmp_path):
        """Explicit paths are used as given, string or Path."""
        assert resolve_config_dir(str(tmp_path)) == tmp_path.resolve()
        assert resolve_config_dir(tmp_path) == tmp_path.resolve()

    def test_explicit_path_with_tilde(self):
        """Explicit path with ~ should be expanded."""
        result = resolve_config_dir("~/custom-config")
        assert result == (Path.home() / "custom-config").resolve()

    def test_env_var_override(self, tmp_path, monkeypatch):
        """Environment variable should override default when no explicit path."""
        monkeypatch.setenv(CONFIG_DIR_ENV_VAR, str(tmp_path))
        assert resolve_config_dir(None) == tmp_path.resolve()

    def test_empty_env_var_is_ignored(self, monkeypatch):
        """An empty variable falls through to the default."""
        monkeypatch.setenv(CONFIG_DIR_ENV_VAR, "")
        assert resolve_config_dir(None) == DEFAULT_CONFIG_DIR.expanduser().resolve()

    def test_default_when_no_explicit_and_no_env(self, monkeypatch):
        """Default should be used when no explicit path and no env var."""
        monkeypatch.delenv(CONFIG_DIR_ENV_VAR, raising=False)
        assert resolve_config_dir(None) == DEFAULT_CONFIG_DIR.expanduser().resolve()

    def test_explicit_overrides_env_var(self, tmp_path, monkeypatch):
        """Explicit path should override environment variable."""
        monkeypatch.setenv(CONFIG_DIR_ENV_VAR, str(tmp_path / "env"))

        result = resolve_config_dir(tmp_path / "explicit")

        assert result == (tmp_path / "explicit").resolve()

    def test_relative_path_becomes_absolute(self, tmp_path, monkeypatch):
        """Result should always be an absolute path."""
        monkeypatch.chdir(tmp_path)

        result = resolve_config_dir("relative-dir")

        assert result == tmp_path.resolve() / "relative-dir"


class TestResolveStorePath:
    """Test resolve_store_path function."""

    def test_default_file_in_config_dir(self, tmp_path):
        result = resolve_store_path(tmp_path, None, DEFAULT_DATABASE_FILE)
        assert result == tmp_path / "contacts.db"

    def test_absolute_override(self, tmp_path):
        target = tmp_path / "elsewhere" / "cache.db"
        assert resolve_store_path(tmp_path, str(target), DEFAULT_DATABASE_FILE) == target

    def test_relative_override_is_inside_config_dir(self, tmp_path):
        """Relative paths do not depend on the working directory."""
        result = resolve_store_path(tmp_path, "data/prefs.json", DEFAULT_SETTINGS_FILE)
        assert result == tmp_path / "data" / "prefs.json"

    def test_tilde_override(self, tmp_path):
        result = resolve_store_path(tmp_path, "~/cache.db", DEFAULT_DATABASE_FILE)
        assert result == Path.home() / "cache.db"

    def test_memory_database_kept(self, tmp_path):
        """The SQLite in-memory name must reach sqlite3 unchanged."""
        result = resolve_store_path(tmp_path, MEMORY_DATABASE, DEFAULT_DATABASE_FILE)
        assert str(result) == ":memory:"
