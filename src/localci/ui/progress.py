"""Progress display for image builds."""

from __future__ import annotations

import contextlib
import sys
from typing import IO, Optional

import click


class ProgressSink:
    """
    Receives build progress. The base class ignores everything, which is
    what you want when nobody is watching (tests, --quiet pipelines).
    """

    def start(self, total: int) -> None:
        pass

    def update(self, current: int, total: int, label: str) -> None:
        pass

    def finish(self) -> None:
        """The build succeeded: show 100% and release the terminal line."""

    def abort(self) -> None:
        """The build failed or was interrupted: release the terminal line."""


class ClickProgressSink(ProgressSink):
    """Renders a click progress bar with the upcoming instruction as label."""

    def __init__(self, file: Optional[IO[str]] = None, label: str = "Building"):
        self.file = file
        self.label = label
        self._stack = contextlib.ExitStack()
        self._bar = None

    def start(self, total: int) -> None:
        self._bar = self._stack.enter_context(
            click.progressbar(
                length=total,
                label=self.label,
                show_pos=True,
                show_eta=False,
                item_show_func=lambda item: item,
                file=self.file,
            )
        )

    def update(self, current: int, total: int, label: str) -> None:
        if self._bar is None:
            return
        self._bar.update(max(0, current - self._bar.pos), label)

    def finish(self) -> None:
        if self._bar is not None:
            self._bar.update(max(0, self._bar.length - self._bar.pos), "")
        self._close()

    def abort(self) -> None:
        self._close()

    def _close(self) -> None:
        self._stack.close()
        self._bar = None


class LineProgressSink(ProgressSink):
    """One line per step; used when the build output itself is relayed."""

    def __init__(self, file: Optional[IO[str]] = None):
        self.file = file or sys.stdout

    def update(self, current: int, total: int, label: str) -> None:
        self.file.write(f"[{current}/{total}] {label}\n")
        self.file.flush()
