"""Tests for policy configuration loading."""

import logging
from pathlib import Path

import pytest

from build_retention.config import (
    DEFAULT_STORAGE_ROOT,
    build_config,
    env_overrides,
    load_config,
    read_config_file,
    storage_root,
)
from build_retention.core.exceptions import ConfigurationError
from build_retention.logging_config import configure_logging

POLICY_YAML = """\
releaseRepos: libs-release
snapshotRepos: [libs-snapshot, plugins-snapshot]
archiveRepo: libs-archive
keepLatest: 3
keepDays: 90
selectProjects: "jfrog/app,jfrog/lib"
cleanupRoot: /com/jfrog/
"""


def _write(temp_dir: Path, text: str, name: str = "retention.yaml") -> Path:
    path = temp_dir / name
    path.write_text(text, encoding="utf-8")
    return path


class TestReadConfigFile:
    """Tests for read_config_file."""

    def test_missing_file(self, temp_dir: Path) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            read_config_file(temp_dir / "absent.yaml")
        assert exc_info.value.details["config_file"].endswith("absent.yaml")

    def test_malformed_yaml(self, temp_dir: Path) -> None:
        with pytest.raises(ConfigurationError):
            read_config_file(_write(temp_dir, "keepLatest: [1, 2\n"))

    def test_non_mapping(self, temp_dir: Path) -> None:
        with pytest.raises(ConfigurationError):
            read_config_file(_write(temp_dir, "- a\n- b\n"))

    def test_empty_file(self, temp_dir: Path) -> None:
        assert read_config_file(_write(temp_dir, "")) == {}

    def test_nested_under_retention_key(self, temp_dir: Path) -> None:
        data = read_config_file(_write(temp_dir, "retention:\n  keepLatest: 4\n"))
        assert data == {"keepLatest": 4}


class TestLoadConfig:
    """Tests for load_config."""

    def test_camel_case_file(self, temp_dir: Path) -> None:
        config = load_config(_write(temp_dir, POLICY_YAML), environ={})

        assert config.release_repos == ("libs-release",)
        assert config.snapshot_repos == ("libs-snapshot", "plugins-snapshot")
        assert config.archive_repo == "libs-archive"
        assert config.keep_latest == 3
        assert config.keep_days == 90
        assert config.select_projects == ("jfrog/app", "jfrog/lib")
        assert config.cleanup_root == "com/jfrog"
        assert config.dry_run is False

    def test_defaults_without_file(self, temp_dir: Path, monkeypatch) -> None:
        monkeypatch.chdir(temp_dir)

        config = load_config(environ={})

        assert config.keep_latest == 2
        assert config.keep_days == 180
        assert config.select_projects == ("*",)
        assert config.cleanup_root == "com/jfrog"

    def test_explicit_missing_file_fails(self, temp_dir: Path) -> None:
        with pytest.raises(ConfigurationError):
            load_config(temp_dir / "absent.yaml", environ={})

    def test_config_path_from_environment(self, temp_dir: Path) -> None:
        path = _write(temp_dir, POLICY_YAML, "custom.yaml")

        config = load_config(environ={"RETENTION_CONFIG": str(path)})

        assert config.keep_latest == 3

    def test_environment_overrides_file(self, temp_dir: Path) -> None:
        environ = {
            "RETENTION_KEEP_LATEST": "5",
            "RETENTION_SELECT_PROJECTS": "*",
            "RETENTION_DRY_RUN": "yes",
        }

        config = load_config(_write(temp_dir, POLICY_YAML), environ=environ)

        assert config.keep_latest == 5
        assert config.select_projects == ("*",)
        assert config.dry_run is True
        assert config.keep_days == 90

    def test_invalid_override(self, temp_dir: Path) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(_write(temp_dir, POLICY_YAML), environ={"RETENTION_KEEP_DAYS": "soon"})
        assert exc_info.value.details["env_var"] == "RETENTION_KEEP_DAYS"

    def test_invalid_values_reported(self, temp_dir: Path) -> None:
        path = _write(temp_dir, "releaseRepos: libs-release\nkeepLatest: -1\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(path, environ={})

        assert exc_info.value.details["validation_errors"]

    def test_unknown_key_rejected(self, temp_dir: Path) -> None:
        with pytest.raises(ConfigurationError):
            load_config(_write(temp_dir, "keepWeeks: 3\n"), environ={})


class TestHelpers:
    def test_env_overrides_ignores_blank(self) -> None:
        assert env_overrides({"RETENTION_ARCHIVE_REPO": "", "RETENTION_KEEP_DAYS": "30"}) == {"keep_days": 30}

    def test_invalid_boolean(self) -> None:
        with pytest.raises(ConfigurationError):
            env_overrides({"RETENTION_DRY_RUN": "maybe"})

    def test_build_config_snake_case(self) -> None:
        config = build_config({"snapshot_repos": ["s"], "keep_latest": 0})
        assert config.snapshot_repos == ("s",)
        assert config.keep_latest == 0

    def test_storage_root(self) -> None:
        assert storage_root({}) == DEFAULT_STORAGE_ROOT
        assert storage_root({"RETENTION_STORAGE_ROOT": "/srv/repos"}) == Path("/srv/repos")

    def test_configure_logging_level(self) -> None:
        configure_logging("DEBUG")
        assert logging.getLogger("build_retention").level == logging.DEBUG
        configure_logging("WARNING")
        assert logging.getLogger("build_retention").level == logging.WARNING
