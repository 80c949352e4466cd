# config.py
from __future__ import annotations

import shlex
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .dsl import job
from .errors import ConfigurationError
from .model import Job


CONFIG_FILE = ".travis.yml"

PHASES = ("before_install", "install", "before_script", "script")


class _TravisLoader(yaml.SafeLoader):
    """SafeLoader that keeps floats as written, so `php: 7.10` stays "7.10"."""


_TravisLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:float"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def load_travis_config(project_dir: str | Path) -> Dict[str, Any]:
    """Read `.travis.yml` from the project root."""
    path = Path(project_dir) / CONFIG_FILE
    if not path.is_file():
        raise ConfigurationError("config", f"{CONFIG_FILE} not found in {project_dir}")
    try:
        data = yaml.load(path.read_text(encoding="utf-8"), Loader=_TravisLoader)
    except yaml.YAMLError as e:
        raise ConfigurationError("config", f"cannot parse {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError("config", f"{path} must contain a mapping")
    return data


def _as_list(value: Any, field: str) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, (str, int, float)):
        return [value]
    raise ConfigurationError(field, f"expected a string or a list, got {type(value).__name__}")


def runtime_versions(config: Dict[str, Any]) -> List[str]:
    return [str(v) for v in _as_list(config.get("php"), "php")]


def parse_env_row(row: Any) -> Dict[str, str]:
    """
    Parse one travis env row: `FOO=bar BAZ="two words"`.
    Encrypted `{secure: ...}` entries can't be decrypted locally and are skipped.
    """
    if isinstance(row, dict):
        if "secure" in row:
            return {}
        return {str(k): "" if v is None else str(v) for k, v in row.items()}

    env: Dict[str, str] = {}
    try:
        tokens = shlex.split(str(row))
    except ValueError as e:
        raise ConfigurationError("env", f"cannot parse env row {row!r}: {e}") from e
    for token in tokens:
        name, sep, value = token.partition("=")
        if not sep or not name:
            raise ConfigurationError("env", f"expected NAME=value, got {token!r}")
        env[name] = value
    return env


def resolve_env(config: Dict[str, Any], env_row: int = 0) -> Dict[str, str]:
    """Global rows first, then the selected matrix row."""
    raw = config.get("env")
    if isinstance(raw, dict):
        global_rows = _as_list(raw.get("global"), "env.global")
        matrix_rows = _as_list(raw.get("matrix", raw.get("jobs")), "env.matrix")
    else:
        global_rows = []
        matrix_rows = _as_list(raw, "env")

    env: Dict[str, str] = {}
    for row in global_rows:
        env.update(parse_env_row(row))

    if matrix_rows:
        if not 0 <= env_row < len(matrix_rows):
            raise ConfigurationError(
                "env",
                f"env row {env_row} out of range, {len(matrix_rows)} row(s) declared",
            )
        env.update(parse_env_row(matrix_rows[env_row]))
    elif env_row:
        raise ConfigurationError("env", f"env row {env_row} requested but no env matrix declared")
    return env


def job_from_config(
    project_dir: str | Path,
    *,
    runtime_version: Optional[str] = None,
    env_row: int = 0,
    job_id: Optional[str] = None,
    config: Optional[Dict[str, Any]] = None,
) -> Job:
    """Build the one Job to execute from the project's travis config."""
    if config is None:
        config = load_travis_config(project_dir)

    versions = runtime_versions(config)
    if runtime_version is None:
        runtime_version = versions[0] if versions else None
    elif versions and str(runtime_version) not in versions:
        raise ConfigurationError(
            "runtime_version",
            f"{runtime_version} is not one of the configured versions: {', '.join(versions)}",
        )

    phases = {name: [str(c) for c in _as_list(config.get(name), name)] for name in PHASES}

    return job(
        project_dir,
        runtime_version=runtime_version,
        env=resolve_env(config, env_row),
        job_id=job_id,
        **phases,
    )
