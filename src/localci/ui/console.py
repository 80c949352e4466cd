"""Console output formatting utilities for localci."""

from __future__ import annotations

import sys
from typing import Optional


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def print_header(self, title: str) -> None:
        """Print a section header."""
        print(f"\n{title}")
        print("-" * len(title))

    def print_job_started(
        self,
        job_id: str,
        project: str,
        runtime_version: str,
        image: str,
    ) -> None:
        """Print job start information."""
        print("\nJOB STARTED")
        print(f"Job: {job_id}")
        print(f"Project: {project}")
        print(f"Runtime: {runtime_version}")
        print(f"Image: {image}")
        print()

    def print_build_started(self, job_id: str) -> None:
        print(f"Building docker image for job {job_id}")

    def print_build_succeeded(self, image: str) -> None:
        print(f"BUILD SUCCEEDED: {image}")

    def print_run_started(self, image: str) -> None:
        print(f"\nRUN STARTED: {image}")

    def print_run_result(self, succeeded: bool, exit_code: Optional[int] = None) -> None:
        """Print the banner closing the run phase."""
        if succeeded:
            print("\nSTATUS: success")
        else:
            print("\nSTATUS: failed")
            if exit_code is not None:
                print(f"Exit code: {exit_code}")

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exception(type(exc), exc, exc.__traceback__)
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
