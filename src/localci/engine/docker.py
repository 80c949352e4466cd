# engine/docker.py
from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

from ..errors import EngineUnavailable
from ..settings import DOCKER_BIN
from ..ui.console import Console, get_console
from .process import StreamedProcess


TOOL_HINTS = {
    "docker": "Install Docker and ensure the daemon is running.",
}


# ---------------------------------------------------------------------
# Docker CLI client
# ---------------------------------------------------------------------

class DockerClient:
    """
    Thin wrapper over the docker CLI. Both operations return a
    StreamedProcess; callers consume the output and check the exit status.
    """

    def __init__(self, binary: str = DOCKER_BIN, console: Optional[Console] = None):
        self.binary = binary
        self.console = console or get_console()

    def ensure_available(self) -> None:
        """Check if Docker is available, raise helpful error if not."""
        try:
            subprocess.run(
                [self.binary, "--version"],
                capture_output=True,
                check=True,
            )
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            raise EngineUnavailable(
                message="Docker is not available",
                details={"hint": TOOL_HINTS["docker"], "binary": self.binary, "error": str(e)},
            ) from e

    def build_command(self, tag: str, descriptor_path: str | Path) -> List[str]:
        descriptor = Path(descriptor_path)
        return [
            self.binary, "build",
            "-t", tag,
            "-f", str(descriptor),
            str(descriptor.parent),
        ]

    def run_command(self, image: str, volumes: Dict[str, str]) -> List[str]:
        cmd = [self.binary, "run", "--rm"]
        for host_path, container_path in volumes.items():
            cmd.extend(["-v", f"{host_path}:{container_path}"])
        cmd.append(image)
        return cmd

    def build(self, tag: str, descriptor_path: str | Path) -> StreamedProcess:
        cmd = self.build_command(tag, descriptor_path)
        # the classic builder prints the "Step N/M :" markers progress relies on
        env = os.environ.copy()
        env["DOCKER_BUILDKIT"] = "0"
        self.console.print_debug("$ " + " ".join(cmd))
        return StreamedProcess(cmd, cwd=str(Path(descriptor_path).parent), env=env)

    def run(self, image: str, volumes: Dict[str, str]) -> StreamedProcess:
        cmd = self.run_command(image, volumes)
        self.console.print_debug(f"$ {self.binary} run --rm ({len(volumes)} volume(s)) {image}")
        return StreamedProcess(cmd)
