# descriptor.py
from __future__ import annotations

import json
import shlex
from pathlib import Path
from typing import List

from .errors import StagingError
from .model import Job
from .settings import BASE_IMAGE
from .workspace import BuildContext


BIN_DIR = "/usr/local/bin"
WORKDIR = "/build"


# ---------------------------------------------------------------------
# Entrypoint script
# ---------------------------------------------------------------------

def render_entrypoint(job: Job) -> str:
    """
    Shell script running the job's `script` phase.

    Every command is preceded by a banner echoing it; `set -e` stops at the
    first failing command.
    """
    lines = ["#!/bin/bash", "set -e", ""]
    for cmd in job.script:
        lines.append(f'echo "";echo "";echo {shlex.quote("> " + cmd)} ;echo "";')
        lines.append(cmd + "\n")
    return "\n".join(lines)


def write_entrypoint(job: Job, context: BuildContext) -> Path:
    path = context.entrypoint_path
    try:
        path.write_text(render_entrypoint(job), encoding="utf-8")
        path.chmod(0o755)
    except OSError as e:
        raise StagingError(path, str(e)) from e
    return path


# ---------------------------------------------------------------------
# Dockerfile
# ---------------------------------------------------------------------

def render_run(cmd: str) -> str:
    """
    One RUN instruction on one line. Multi-line commands (YAML block
    scalars) and commands ending in a line continuation go through the JSON
    exec form, where newlines are escaped.
    """
    body = cmd.rstrip("\r\n")
    if "\n" in body or "\r" in body or body.endswith("\\"):
        return "RUN " + json.dumps(["/bin/sh", "-c", body])
    return f"RUN {body}"


def render_descriptor(job: Job, entrypoint_name: str, *, base_image: str = BASE_IMAGE) -> List[str]:
    """
    Dockerfile instructions for the job, one per list item.

    before_install/install/before_script commands each get their own RUN so
    the engine's step counter maps 1:1 onto this list.
    """
    lines = [f"FROM {base_image}:{job.runtime_version}"]
    for key, val in job.env.items():
        lines.append(f"ENV {key} {val}")

    lines.append(f"COPY src/ {WORKDIR}")
    lines.append(f"WORKDIR {WORKDIR}")

    for phase in job.build_phases:
        for cmd in phase:
            lines.append(render_run(cmd))

    lines.append(f"COPY {entrypoint_name} {BIN_DIR}/")
    lines.append(f'CMD ["{BIN_DIR}/{entrypoint_name}"]')
    return lines


class DescriptorGenerator:
    """Writes the entrypoint and Dockerfile for a job into its build context."""

    def __init__(self, base_image: str = BASE_IMAGE):
        self.base_image = base_image

    def generate(self, job: Job, context: BuildContext) -> List[str]:
        entrypoint = write_entrypoint(job, context)
        lines = render_descriptor(job, entrypoint.name, base_image=self.base_image)
        try:
            context.descriptor_path.write_text("\n".join(lines), encoding="utf-8")
        except OSError as e:
            raise StagingError(context.descriptor_path, str(e)) from e
        return lines
