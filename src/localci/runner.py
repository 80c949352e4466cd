# runner.py
from __future__ import annotations

import shutil
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Callable, Dict, List, Optional

from .descriptor import DescriptorGenerator
from .engine.process import Channel
from .errors import BuildFailedError
from .model import Job
from .progress import ProgressState, StepMarkerParser
from .ui.console import Console, get_console
from .ui.progress import ProgressSink
from .workspace import WorkspaceStager, list_project_files


CONTAINER_ROOT = "/build"


# ----------------------------------------------------------------------
# Outcomes
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class RunOutcome:
    """Result of running the built image. A failing job script is not a tooling error."""
    image: str
    exit_code: int

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


@dataclass(frozen=True)
class RunSuccess(RunOutcome):
    pass


@dataclass(frozen=True)
class RunFailure(RunOutcome):
    pass


# ----------------------------------------------------------------------
# Stream helpers
# ----------------------------------------------------------------------

class _LineAssembler:
    """Turns arbitrary chunks into complete lines; keeps the partial tail."""

    def __init__(self):
        self._pending = ""

    def feed(self, chunk: str) -> List[str]:
        data = self._pending + chunk
        lines = data.split("\n")
        self._pending = lines.pop()
        return [line.rstrip("\r") for line in lines]

    def flush(self) -> List[str]:
        rest, self._pending = self._pending, ""
        return [rest.rstrip("\r")] if rest else []


def _terminal_width() -> int:
    return shutil.get_terminal_size(fallback=(80, 24)).columns


def volume_map(project_dir: Path, lister=None) -> Dict[str, str]:
    """Host path -> container path for every project file (original tree, not the staged copy)."""
    return {
        str(entry.absolute_path): f"{CONTAINER_ROOT}/{entry.relative_path}"
        for entry in list_project_files(project_dir, lister)
    }


# ----------------------------------------------------------------------
# Orchestrator
# ----------------------------------------------------------------------

class BuildOrchestrator:
    """
    Stages a job, builds its image while tracking progress, then runs it.

    All collaborators are injected:
      engine          .build(tag, descriptor_path) / .run(image, volumes)
                      returning an iterable process with .wait()/.terminate()
      lister          .list_tracked_files(project_dir)
      sink            ProgressSink receiving step updates
      parser_factory  total_steps -> object with .match(line) -> step | None
    """

    def __init__(
        self,
        engine,
        temp_root: str | Path,
        *,
        lister=None,
        sink: Optional[ProgressSink] = None,
        console: Optional[Console] = None,
        generator: Optional[DescriptorGenerator] = None,
        parser_factory: Callable[[int], object] = StepMarkerParser,
        relay_build_output: bool = False,
        out: Optional[IO[str]] = None,
        err: Optional[IO[str]] = None,
        terminal_width: Callable[[], int] = _terminal_width,
    ):
        self.engine = engine
        self.lister = lister
        self.console = console or get_console()
        self.stager = WorkspaceStager(temp_root, lister, console=self.console)
        self.generator = generator or DescriptorGenerator()
        self.sink = sink or ProgressSink()
        self.parser_factory = parser_factory
        self.relay_build_output = relay_build_output
        self.out = out
        self.err = err
        self.terminal_width = terminal_width

        # last build's progress, kept for inspection
        self.progress: Optional[ProgressState] = None

    # ---- streams ----

    def _write(self, channel: Channel, data: str) -> None:
        stream = (self.out or sys.stdout) if channel is Channel.OUT else (self.err or sys.stderr)
        stream.write(data)
        stream.flush()

    def _consume(self, process, on_chunk: Callable[[Channel, str], None]) -> int:
        """Drain the process output through on_chunk; stop the process if we get interrupted."""
        try:
            for channel, chunk in process:
                on_chunk(channel, chunk)
            return process.wait()
        except KeyboardInterrupt:
            process.terminate()
            raise

    # ---- build ----

    def build_image(self, job: Job) -> str:
        self.console.print_build_started(job.id)

        context = self.stager.stage(job)
        lines = self.generator.generate(job, context)
        image = job.image_tag

        state = ProgressState(total_steps=len(lines))
        self.progress = state
        parser = self.parser_factory(state.total_steps)
        assembler = _LineAssembler()
        recorded: List[str] = []

        def handle_line(line: str) -> None:
            if self.relay_build_output:
                self._write(Channel.OUT, line + "\n")
            step = parser.match(line)
            if step is not None and state.advance(step, lines, self.terminal_width()):
                self.sink.update(state.current_step, state.total_steps, state.current_label)

        def on_chunk(channel: Channel, chunk: str) -> None:
            recorded.append(chunk)
            if channel is Channel.OUT:
                for line in assembler.feed(chunk):
                    handle_line(line)
            elif self.relay_build_output:
                self._write(Channel.ERR, chunk)

        self.sink.start(state.total_steps)
        try:
            process = self.engine.build(image, context.descriptor_path)
            exit_code = self._consume(process, on_chunk)
            for line in assembler.flush():
                handle_line(line)
        except BaseException:
            self.sink.abort()
            self.console.print_info("")
            raise

        if exit_code != 0:
            self.sink.abort()
            # keep the error off the progress bar's line
            self.console.print_info("")
            raise BuildFailedError(image=image, exit_code=exit_code, output="".join(recorded))

        state.current_step = state.total_steps
        self.sink.finish()
        self.console.print_info("")
        self.console.print_build_succeeded(image)
        return image

    # ---- run ----

    def run_image(self, job: Job, image: str) -> RunOutcome:
        volumes = volume_map(job.project_dir, self.lister)

        self.console.print_run_started(image)
        process = self.engine.run(image, volumes)
        exit_code = self._consume(process, self._write)

        outcome = RunSuccess(image, exit_code) if exit_code == 0 else RunFailure(image, exit_code)
        self.console.print_run_result(outcome.succeeded, exit_code)
        return outcome

    def execute(self, job: Job) -> RunOutcome:
        """Build, then run. A failed build raises and the image is never run."""
        self.console.print_job_started(job.id, job.project_name, job.runtime_version, job.image_tag)
        image = self.build_image(job)
        return self.run_image(job, image)
