# errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


class LocalCIError(Exception):
    """Base exception for localci tooling failures."""


@dataclass(eq=False)
class ConfigurationError(LocalCIError):
    """The job description is invalid or incomplete."""
    field: str
    message: str

    def __str__(self) -> str:
        return f"invalid {self.field}: {self.message}"


@dataclass(eq=False)
class ProjectScanError(LocalCIError):
    """Listing the version-controlled files of the project failed."""
    project_dir: Path
    exit_code: int
    output: str = ""

    def __str__(self) -> str:
        lines = [f"could not list project files in {self.project_dir} (exit={self.exit_code})"]
        if self.output.strip():
            lines.append(self.output.strip())
        return "\n".join(lines)


@dataclass(eq=False)
class StagingError(LocalCIError):
    """Copying the project into the build context failed."""
    path: Path
    message: str

    def __str__(self) -> str:
        return f"staging failed at {self.path}: {self.message}"


@dataclass(eq=False)
class BuildFailedError(LocalCIError):
    """
    The image build exited non-zero.

    `output` holds everything the engine printed during the build, so the
    CLI can show the tail of it even when the progress bar hid it.
    """
    image: str
    exit_code: int
    output: str = ""

    def tail(self, lines: int = 20) -> list[str]:
        return self.output.rstrip("\n").splitlines()[-lines:]

    def __str__(self) -> str:
        return f"building image {self.image} failed (exit={self.exit_code})"


@dataclass(eq=False)
class EngineUnavailable(LocalCIError):
    message: str
    details: dict = field(default_factory=dict)

    @property
    def hint(self) -> str | None:
        return self.details.get("hint")

    def __str__(self) -> str:
        lines = [self.message]
        for k, v in self.details.items():
            lines.append(f"{k}={v}")
        return "\n".join(lines)
