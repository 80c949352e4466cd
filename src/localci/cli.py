# cli.py
from __future__ import annotations

import subprocess
import sys
from pathlib import Path

import click

from localci import settings
from localci.config import job_from_config
from localci.descriptor import render_descriptor, render_entrypoint
from localci.engine.docker import DockerClient
from localci.errors import (
    BuildFailedError,
    ConfigurationError,
    EngineUnavailable,
    LocalCIError,
    ProjectScanError,
    StagingError,
)
from localci.git_facts.git import repo_root
from localci.runner import BuildOrchestrator
from localci.ui.console import Console, get_console, set_console
from localci.ui.progress import ClickProgressSink, LineProgressSink, ProgressSink
from localci.workspace import ENTRYPOINT_NAME


def resolve_project_dir(project_arg: str | None) -> Path:
    """
    Use the given directory, or the root of the repository we're in,
    or the current directory as a last resort.
    """
    if project_arg:
        return Path(project_arg).expanduser().resolve()
    try:
        return repo_root(Path.cwd())
    except (subprocess.CalledProcessError, FileNotFoundError):
        return Path.cwd()


def _pick_sink(verbose: bool) -> ProgressSink:
    if verbose:
        # docker's own "Step N/M" lines are on screen already
        return ProgressSink()
    if sys.stdout.isatty():
        return ClickProgressSink()
    return LineProgressSink()


def report_error(console: Console, exc: LocalCIError) -> None:
    if isinstance(exc, ConfigurationError):
        console.print_error(
            "Invalid job configuration",
            str(exc),
            suggestion="Check .travis.yml and the command line options.",
        )
    elif isinstance(exc, ProjectScanError):
        console.print_error(
            "Could not list project files",
            f"git ls-files failed in {exc.project_dir} (exit={exc.exit_code})",
            details=exc.output.strip().splitlines() or None,
        )
    elif isinstance(exc, StagingError):
        console.print_error("Could not stage build context", str(exc))
    elif isinstance(exc, BuildFailedError):
        console.print_error(
            "Image build failed",
            str(exc),
            details=exc.tail(),
            suggestion="Re-run with --verbose to see the full build output.",
        )
    elif isinstance(exc, EngineUnavailable):
        console.print_error("Container engine unavailable", exc.message, suggestion=exc.hint)
    else:
        console.print_exception(exc)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, debug):
    """Run a .travis.yml job locally in a throwaway Docker image."""
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
@click.argument("project_dir", required=False)
@click.option("--php", "runtime_version", default=None, help="Runtime version (defaults to the first in .travis.yml)")
@click.option("--env-row", default=0, show_default=True, type=int, help="Index of the env matrix row to use")
@click.option("--job-id", default=None, help="Job identifier used for the image tag (random by default)")
@click.option("--temp-dir", default=settings.TEMP_DIR, show_default=True, help="Root for build contexts")
@click.option("--verbose", is_flag=True, default=False, help="Relay the raw docker build output")
@click.pass_context
def run(ctx, project_dir, runtime_version, env_row, job_id, temp_dir, verbose):
    """Build the job's image and run it."""
    console = get_console()
    project = resolve_project_dir(project_dir)

    try:
        job = job_from_config(project, runtime_version=runtime_version, env_row=env_row, job_id=job_id)

        engine = DockerClient(console=console)
        engine.ensure_available()

        orchestrator = BuildOrchestrator(
            engine,
            temp_dir,
            sink=_pick_sink(verbose),
            console=console,
            relay_build_output=verbose,
        )
        outcome = orchestrator.execute(job)

        if not outcome.succeeded:
            sys.exit(1)

    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except LocalCIError as e:
        report_error(console, e)
        if ctx.obj.get("debug", False):
            console.print_exception(e)
        sys.exit(1)


@cli.command()
@click.argument("project_dir", required=False)
@click.option("--php", "runtime_version", default=None, help="Runtime version (defaults to the first in .travis.yml)")
@click.option("--env-row", default=0, show_default=True, type=int, help="Index of the env matrix row to use")
@click.option("--job-id", default=None, help="Job identifier used for the image tag")
@click.pass_context
def dockerfile(ctx, project_dir, runtime_version, env_row, job_id):
    """Print the Dockerfile and entrypoint a run would generate."""
    console = get_console()
    project = resolve_project_dir(project_dir)

    try:
        job = job_from_config(project, runtime_version=runtime_version, env_row=env_row, job_id=job_id)
    except LocalCIError as e:
        report_error(console, e)
        sys.exit(1)

    console.print_header(f"Dockerfile.{job.id} ({job.image_tag})")
    for line in render_descriptor(job, ENTRYPOINT_NAME, base_image=settings.BASE_IMAGE):
        console.print_info(line)

    console.print_header(ENTRYPOINT_NAME)
    console.print_info(render_entrypoint(job))


if __name__ == "__main__":
    cli()
