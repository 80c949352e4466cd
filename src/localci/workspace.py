# workspace.py
from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .errors import StagingError
from .git_facts.git import GitFileLister
from .model import Job, PathEntry
from .ui.console import Console, get_console


# Always copied when present: dependency resolution inside the image must
# match the lock the developer has locally, tracked or not.
LOCKFILE = "composer.lock"

ENTRYPOINT_NAME = "travis-entrypoint"

DOCKER_IGNORE = [
    "src/.git",
    "src/vendor",
]


@dataclass(frozen=True)
class BuildContext:
    """
    Staging directory for one job's image build:

      <temp_root>/<project_name>/
        src/                      mirrored project tree
        Dockerfile.<job id>       build descriptor
        travis-entrypoint         entrypoint script
        .dockerignore
    """
    root: Path
    job_id: str

    @property
    def src_dir(self) -> Path:
        return self.root / "src"

    @property
    def descriptor_path(self) -> Path:
        return self.root / f"Dockerfile.{self.job_id}"

    @property
    def entrypoint_path(self) -> Path:
        return self.root / ENTRYPOINT_NAME

    @property
    def ignore_path(self) -> Path:
        return self.root / ".dockerignore"


# ---------------------------------------------------------------------
# Project listing
# ---------------------------------------------------------------------

def list_project_files(project_dir: str | Path, lister=None) -> List[PathEntry]:
    """
    Tracked files of the project (in the order the lister reports them),
    plus composer.lock when it exists at the project root.

    Raises ProjectScanError when the listing fails.
    """
    root = Path(project_dir)
    lister = lister or GitFileLister()

    entries: List[PathEntry] = []
    seen = set()
    for rel in lister.list_tracked_files(root):
        path = root / rel
        entries.append(PathEntry(path, rel, path.is_dir()))
        seen.add(rel)

    lock = root / LOCKFILE
    if lock.is_file() and LOCKFILE not in seen:
        entries.append(PathEntry(lock, LOCKFILE, False))

    return entries


# ---------------------------------------------------------------------
# Staging
# ---------------------------------------------------------------------

class WorkspaceStager:
    """Copies a job's project into an isolated docker build context."""

    def __init__(self, temp_root: str | Path, lister=None, console: Optional[Console] = None):
        self.temp_root = Path(temp_root)
        self.lister = lister or GitFileLister()
        self.console = console or get_console()

    def context_for(self, job: Job) -> BuildContext:
        root = self.temp_root / job.project_name
        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StagingError(root, str(e)) from e
        return BuildContext(root=root, job_id=job.id)

    def stage(self, job: Job) -> BuildContext:
        """
        Mirror the project into `<temp_root>/<project_name>/src` and write the
        ignore rules. `src/` is wiped first so files deleted from the project
        since the last run don't leak into the image.
        """
        context = self.context_for(job)
        entries = list_project_files(job.project_dir, self.lister)

        src = context.src_dir
        try:
            if src.exists():
                shutil.rmtree(src)
            src.mkdir(parents=True)
        except OSError as e:
            raise StagingError(src, str(e)) from e

        for entry in entries:
            self._copy_entry(entry, src / entry.relative_path)

        self.write_ignore(context)
        self.console.print_debug(f"staged {len(entries)} path(s) into {src}")
        return context

    def _copy_entry(self, entry: PathEntry, target: Path) -> None:
        try:
            if entry.is_dir:
                # submodules and other directory entries get mirrored whole
                shutil.copytree(entry.absolute_path, target, symlinks=True, dirs_exist_ok=True)
            elif entry.absolute_path.is_symlink() or entry.absolute_path.exists():
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(entry.absolute_path, target, follow_symlinks=False)
            else:
                # tracked but deleted in the working tree
                self.console.print_debug(f"skipping missing file {entry.relative_path}")
        except OSError as e:
            raise StagingError(target, str(e)) from e

    def write_ignore(self, context: BuildContext) -> Path:
        try:
            context.ignore_path.write_text("\n".join(DOCKER_IGNORE), encoding="utf-8")
        except OSError as e:
            raise StagingError(context.ignore_path, str(e)) from e
        return context.ignore_path
