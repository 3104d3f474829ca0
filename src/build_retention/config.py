"""
Policy configuration loading.

Reads a YAML policy document and applies environment overrides:

    RETENTION_CONFIG            path of the policy file (default etc/retention.yaml)
    RETENTION_RELEASE_REPOS     comma-separated release repository keys
    RETENTION_SNAPSHOT_REPOS    comma-separated snapshot repository keys
    RETENTION_SELECT_PROJECTS   comma-separated project substrings, or *
    RETENTION_ARCHIVE_REPO      archive repository key
    RETENTION_KEEP_LATEST       integer
    RETENTION_KEEP_DAYS         integer
    RETENTION_CLEANUP_ROOT      top-level path for batch cleanup
    RETENTION_DRY_RUN           true/false
    RETENTION_STORAGE_ROOT      filesystem repository root (default var/repositories)
"""

import logging
import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import ValidationError

from build_retention.core.exceptions import ConfigurationError
from build_retention.policy.models import PolicyConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("etc/retention.yaml")
DEFAULT_STORAGE_ROOT = Path("var/repositories")

CONFIG_ENV_VAR = "RETENTION_CONFIG"
STORAGE_ROOT_ENV_VAR = "RETENTION_STORAGE_ROOT"

# Environment variable -> PolicyConfig field
ENV_OVERRIDES = {
    "RETENTION_RELEASE_REPOS": "release_repos",
    "RETENTION_SNAPSHOT_REPOS": "snapshot_repos",
    "RETENTION_SELECT_PROJECTS": "select_projects",
    "RETENTION_ARCHIVE_REPO": "archive_repo",
    "RETENTION_KEEP_LATEST": "keep_latest",
    "RETENTION_KEEP_DAYS": "keep_days",
    "RETENTION_CLEANUP_ROOT": "cleanup_root",
    "RETENTION_DRY_RUN": "dry_run",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_env_value(env_var: str, field: str, raw: str) -> Any:
    if field in ("keep_latest", "keep_days"):
        try:
            return int(raw)
        except ValueError as e:
            raise ConfigurationError(
                f"Expected an integer, got {raw!r}", env_var=env_var, config_key=field
            ) from e
    if field == "dry_run":
        value = raw.strip().lower()
        if value in _TRUE_VALUES:
            return True
        if value in _FALSE_VALUES:
            return False
        raise ConfigurationError(
            f"Expected a boolean, got {raw!r}", env_var=env_var, config_key=field
        )
    return raw


def env_overrides(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Collect policy values set through environment variables."""
    environ = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}
    for env_var, field in ENV_OVERRIDES.items():
        raw = environ.get(env_var)
        if raw is None or raw == "":
            continue
        overrides[field] = _parse_env_value(env_var, field, raw)
    return overrides


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse a YAML policy file into a mapping."""
    if not path.exists():
        raise ConfigurationError("Policy configuration file not found", config_file=str(path))
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(
            f"Unable to read policy configuration: {e}", config_file=str(path)
        ) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            "Policy configuration must be a mapping", config_file=str(path)
        )
    # Accept documents nested under a top-level "retention" key
    if set(data) == {"retention"} and isinstance(data["retention"], dict):
        data = data["retention"]
    return data


def build_config(
    values: Mapping[str, Any],
    *,
    source: str | None = None,
) -> PolicyConfig:
    """Validate raw values into a PolicyConfig."""
    try:
        return PolicyConfig.model_validate(dict(values))
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
            for err in e.errors()
        ]
        raise ConfigurationError(
            "Invalid policy configuration",
            config_file=source,
            details={"validation_errors": errors},
        ) from e


def load_config(
    path: Path | str | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    require_file: bool | None = None,
) -> PolicyConfig:
    """
    Load the policy configuration.

    Args:
        path: Policy file; falls back to RETENTION_CONFIG, then etc/retention.yaml
        environ: Environment mapping (defaults to os.environ)
        require_file: Fail when the file is absent. Defaults to True when a
            path was given explicitly or through RETENTION_CONFIG.

    Returns:
        Validated, immutable PolicyConfig

    Raises:
        ConfigurationError: If the file is missing/malformed or values are invalid
    """
    environ = os.environ if environ is None else environ
    explicit = path is not None or bool(environ.get(CONFIG_ENV_VAR))
    config_path = Path(path or environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)
    if require_file is None:
        require_file = explicit

    values: dict[str, Any] = {}
    if config_path.exists() or require_file:
        values = read_config_file(config_path)
        logger.info(f"Loaded policy configuration from {config_path}")
    else:
        logger.info(f"No policy file at {config_path}, using defaults and environment")

    # Drop file keys that the override replaces, whichever spelling they used
    overrides = env_overrides(environ)
    if overrides:
        aliases = {
            name: field.alias for name, field in PolicyConfig.model_fields.items() if field.alias
        }
        for name in overrides:
            values.pop(name, None)
            values.pop(aliases.get(name, name), None)
        values.update(overrides)

    return build_config(values, source=str(config_path))


def storage_root(environ: Mapping[str, str] | None = None) -> Path:
    """Root directory of the filesystem repository service."""
    environ = os.environ if environ is None else environ
    return Path(environ.get(STORAGE_ROOT_ENV_VAR) or DEFAULT_STORAGE_ROOT)
