# dsl.py
from __future__ import annotations

import json
import re
import uuid
from pathlib import Path
from typing import Dict, Iterable, Optional

from .errors import ConfigurationError
from .model import Job


_NAME_INVALID = re.compile(r"[^a-z0-9._-]+")


# ---------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------

def normalize_project_name(raw: str) -> str:
    """Lowercase and strip everything a docker repository name can't hold."""
    name = _NAME_INVALID.sub("-", raw.strip().lower())
    return name.strip("._-")


def project_name_for(project_dir: Path) -> str:
    """
    Derive the project name from composer.json, falling back to the
    directory name. "vendor/package" becomes "vendor-package".
    """
    composer = project_dir / "composer.json"
    if composer.is_file():
        try:
            data = json.loads(composer.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            data = {}
        name = data.get("name") if isinstance(data, dict) else None
        if isinstance(name, str) and name.strip():
            return normalize_project_name(name.replace("/", "-"))
    return normalize_project_name(project_dir.name)


def is_version_controlled(path: Path) -> bool:
    return any((p / ".git").exists() for p in (path, *path.parents))


def new_job_id() -> str:
    return uuid.uuid4().hex[:12]


# ---------------------------------------------------------------------
# Validated Job helper
# ---------------------------------------------------------------------

def _commands(phase: str, commands: Optional[Iterable[str]]) -> tuple[str, ...]:
    if commands is None:
        return ()
    if isinstance(commands, str):
        commands = [commands]
    out = []
    for cmd in commands:
        if not isinstance(cmd, str):
            raise ConfigurationError(phase, f"commands must be strings, got {cmd!r}")
        if cmd.strip():
            out.append(cmd)
    return tuple(out)


def _env(env: Optional[Dict[str, str]]) -> Dict[str, str]:
    out = {}
    for key, val in (env or {}).items():
        key, val = str(key), str(val)
        if not key or any(c in key for c in " =\n\r") or any(c in val for c in "\n\r"):
            raise ConfigurationError("env", f"cannot express {key}={val!r} as an ENV instruction")
        out[key] = val
    return out


def job(
    project_dir: str | Path,
    *,
    runtime_version: Optional[str],
    script: Optional[Iterable[str]],
    before_install: Optional[Iterable[str]] = None,
    install: Optional[Iterable[str]] = None,
    before_script: Optional[Iterable[str]] = None,
    env: Optional[Dict[str, str]] = None,
    job_id: Optional[str] = None,
    project_name: Optional[str] = None,
) -> Job:
    """
    Validate raw inputs and build a Job.

    Raises ConfigurationError naming the offending field. Only reads the
    filesystem; nothing is created or changed.
    """
    if runtime_version is None or not str(runtime_version).strip():
        raise ConfigurationError("runtime_version", "no runtime version declared")

    run_phase = _commands("script", script)
    if not run_phase:
        raise ConfigurationError("script", "the script phase is empty, nothing would run")

    root = Path(project_dir).expanduser()
    if not root.is_dir():
        raise ConfigurationError("project_dir", f"directory does not exist: {root}")
    root = root.resolve()
    if not is_version_controlled(root):
        raise ConfigurationError("project_dir", f"not under version control: {root}")

    name = normalize_project_name(project_name) if project_name else project_name_for(root)
    if not name:
        raise ConfigurationError("project_name", f"cannot derive an image-safe name for {root}")

    jid = str(job_id) if job_id is not None else new_job_id()
    if not jid or normalize_project_name(jid) != jid.lower():
        raise ConfigurationError("id", f"job id {jid!r} is not usable in an image tag")

    return Job(
        id=jid,
        project_dir=root,
        project_name=name,
        runtime_version=str(runtime_version).strip(),
        env=_env(env),
        before_install=_commands("before_install", before_install),
        install=_commands("install", install),
        before_script=_commands("before_script", before_script),
        script=run_phase,
    )
