"""Tests for the Config class."""

import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from backlogr import DEFAULT_API_URL, Config


class TestConfig:
    """Tests for Config class."""

    def test_load_basic_config(self, tmp_path):
        """Test loading a basic config file."""
        config_content = """
taiga:
  api_url: http://localhost:8000/api/v1
  username: me
  password: secret
  project_name: My Project
  timeout: 10
"""
        config_file = tmp_path / ".backlogr.yml"
        config_file.write_text(config_content)

        config = Config.load(config_file)

        assert config.api_url == "http://localhost:8000/api/v1"
        assert config.username == "me"
        assert config.password == "secret"
        assert config.project_name == "My Project"
        assert config.timeout == 10.0
        assert config.status_names == {}

    def test_load_expands_env_vars(self, tmp_path, monkeypatch):
        """Test that environment variables are expanded."""
        monkeypatch.setenv("MY_TAIGA_PASSWORD", "secret-123")

        config_file = tmp_path / ".backlogr.yml"
        config_file.write_text("taiga:\n  password: ${MY_TAIGA_PASSWORD}\n")

        config = Config.load(config_file)

        assert config.password == "secret-123"

    def test_load_missing_env_var_becomes_empty(self, tmp_path, monkeypatch):
        """Test that missing env vars become empty."""
        monkeypatch.delenv("NONEXISTENT_VAR", raising=False)

        config_file = tmp_path / ".backlogr.yml"
        config_file.write_text("taiga:\n  username: ${NONEXISTENT_VAR}\n")

        config = Config.load(config_file)

        assert config.username == ""

    def test_defaults_for_missing_sections(self, tmp_path):
        """An empty file yields defaults."""
        config_file = tmp_path / ".backlogr.yml"
        config_file.write_text("")

        config = Config.load(config_file)

        assert config.api_url == DEFAULT_API_URL
        assert config.timeout == 30.0

    def test_explicit_path_must_exist(self, tmp_path):
        """Test FileNotFoundError for a missing explicit path."""
        with pytest.raises(FileNotFoundError):
            Config.load(tmp_path / "nope.yml")

    def test_no_file_found_gives_defaults(self, monkeypatch, tmp_path):
        """Without a config file anywhere, defaults are used."""
        monkeypatch.setattr(Config, "find_config_file", classmethod(lambda cls: None))

        config = Config.load()

        assert config == Config()

    def test_find_config_in_parent(self, tmp_path, monkeypatch):
        """Test config file search walks up parent directories."""
        config_file = tmp_path / ".backlogr.yml"
        config_file.write_text("taiga:\n  project_name: Found\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        assert Config.find_config_file() == config_file
        assert Config.load().project_name == "Found"

    def test_status_names(self, tmp_path):
        """The statuses section overrides workflow names."""
        config_file = tmp_path / ".backlogr.yml"
        config_file.write_text("statuses:\n  WIP: Doing\n  done: Closed\n")

        config = Config.load(config_file)

        assert config.status_names == {"wip": "Doing", "done": "Closed"}

    def test_unknown_status_rejected(self, tmp_path):
        config_file = tmp_path / ".backlogr.yml"
        config_file.write_text("statuses:\n  blocked: Blocked\n")

        with pytest.raises(ValueError, match="blocked"):
            Config.load(config_file)


class TestOverrides:
    """Tests for apply_overrides and missing."""

    def test_env_overrides_file(self, monkeypatch):
        monkeypatch.setenv("TAIGA_USERNAME", "env-user")
        monkeypatch.setenv("TAIGA_API_URL", "http://env/api/v1")

        config = Config(username="file-user", password="pw").apply_overrides()

        assert config.username == "env-user"
        assert config.password == "pw"
        assert config.api_url == "http://env/api/v1"

    def test_flags_override_env(self, monkeypatch):
        monkeypatch.setenv("TAIGA_PROJECT_NAME", "Env Project")

        config = Config().apply_overrides(project_name="Flag Project", username=None)

        assert config.project_name == "Flag Project"
        assert config.username == ""

    def test_missing(self):
        assert Config().missing() == ["username", "password", "project_name"]
        assert Config(username="u", password="p", project_name="x").missing() == []


class TestMalformedConfig:
    """Config files with the wrong shape are ValueErrors."""

    @pytest.mark.parametrize(
        "content",
        [
            "- just\n- a list\n",
            "taiga: just-a-string\n",
            "statuses:\n  - wip\n",
        ],
    )
    def test_non_mapping_rejected(self, tmp_path, content):
        config_file = tmp_path / ".backlogr.yml"
        config_file.write_text(content)

        with pytest.raises(ValueError, match="must be a mapping"):
            Config.load(config_file)
