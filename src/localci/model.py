# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Tuple


@dataclass(frozen=True)
class PathEntry:
    """One version-controlled path of the project."""
    absolute_path: Path
    relative_path: str
    is_dir: bool = False


@dataclass(frozen=True)
class Job:
    """
    A single build+run request: one runtime version, one env row.

    Script phases map onto the travis lifecycle:
      before_install -> install -> before_script  (baked into the image)
      script                                      (entrypoint, run at `docker run`)

    Build jobs through `localci.dsl.job()`, which validates the inputs;
    constructing Job directly skips validation.
    """
    id: str
    project_dir: Path
    project_name: str
    runtime_version: str
    env: Dict[str, str] = field(default_factory=dict)

    before_install: Tuple[str, ...] = ()
    install: Tuple[str, ...] = ()
    before_script: Tuple[str, ...] = ()
    script: Tuple[str, ...] = ()

    @property
    def image_tag(self) -> str:
        return f"{self.project_name.lower()}:v{self.id}"

    @property
    def build_phases(self) -> Tuple[Tuple[str, ...], ...]:
        # order matters: each command becomes one RUN instruction
        return (self.before_install, self.install, self.before_script)
