# git.py
# Small, focused wrapper around the Git CLI.
# This module centralizes all Git interactions so the rest of the codebase
# never needs to call subprocess("git ...") directly.

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import List, Optional

from ..errors import ProjectScanError


def _git(args: list[str], cwd: Optional[str | Path] = None) -> subprocess.CompletedProcess:
    """
    Execute a git command and return the completed process.

    This is the single low-level entry point for all Git operations in this file.
    Unlike check_output, a non-zero exit does not raise here: callers decide
    which error to surface, and they need git's own diagnostic text for it.

    Args:
        args: List of git arguments (e.g. ["ls-files"])
        cwd: Working directory in which to run the git command.

    Returns:
        CompletedProcess with text stdout/stderr.
    """
    return subprocess.run(
        ["git", *args],
        cwd=str(cwd) if cwd is not None else None,
        text=True,   # return output as str instead of bytes
        encoding="utf-8",
        capture_output=True,
        check=False,
    )


def ls_files(project_dir: str | Path) -> List[str]:
    """
    Return the tracked files of the repository containing `project_dir`,
    relative to `project_dir`, in the order git reports them.

    Raises:
        ProjectScanError: if git exits non-zero (e.g. not a repository)
            or git itself cannot be found.
    """
    try:
        # `git ls-files` lists the index: tracked files only, no untracked noise.
        # -z: NUL-terminated, verbatim paths (no C-quoting of non-ASCII names)
        proc = _git(["ls-files", "-z"], cwd=project_dir)
    except FileNotFoundError as e:
        raise ProjectScanError(Path(project_dir), 127, f"git command not found: {e}") from e

    if proc.returncode != 0:
        raise ProjectScanError(
            Path(project_dir),
            proc.returncode,
            (proc.stderr or "") + (proc.stdout or ""),
        )

    return [path for path in proc.stdout.split("\0") if path]


def repo_root(cwd: Optional[str | Path] = None) -> Path:
    """
    Return the absolute path to the root of the Git repository containing `cwd`.

    Raises:
        subprocess.CalledProcessError: if `cwd` is not inside a repository.
    """
    # `git rev-parse --show-toplevel` prints the repo root directory
    # regardless of where the command is run from inside the repo.
    proc = _git(["rev-parse", "--show-toplevel"], cwd=cwd)
    if proc.returncode != 0:
        raise subprocess.CalledProcessError(proc.returncode, proc.args, proc.stdout, proc.stderr)
    return Path(proc.stdout.strip())


class GitFileLister:
    """
    File listing capability backed by `git ls-files`.

    Anything with a `list_tracked_files(project_dir) -> list[str]` method can
    stand in for it (tests use a static list).
    """

    def list_tracked_files(self, project_dir: str | Path) -> List[str]:
        return ls_files(project_dir)
