import io
from pathlib import Path

import pytest

from localci.engine.process import Channel
from localci.ui.console import Console, set_console
from localci.ui.progress import ProgressSink


class StaticLister:
    """File lister returning a fixed list, standing in for git ls-files."""

    def __init__(self, files):
        self.files = list(files)
        self.calls = 0

    def list_tracked_files(self, project_dir):
        self.calls += 1
        return list(self.files)


class FakeProcess:
    def __init__(self, chunks=(), exit_code=0, interrupt_after=None):
        self.chunks = list(chunks)
        self.exit_code = exit_code
        self.interrupt_after = interrupt_after
        self.terminated = False

    def __iter__(self):
        for i, item in enumerate(self.chunks):
            if self.interrupt_after is not None and i == self.interrupt_after:
                raise KeyboardInterrupt
            yield item

    def wait(self, timeout=None):
        return self.exit_code

    def terminate(self):
        self.terminated = True


class FakeEngine:
    def __init__(self, build_process=None, run_process=None):
        self.build_process = build_process or FakeProcess()
        self.run_process = run_process or FakeProcess()
        self.builds = []
        self.runs = []

    def build(self, tag, descriptor_path):
        self.builds.append((tag, Path(descriptor_path)))
        return self.build_process

    def run(self, image, volumes):
        self.runs.append((image, dict(volumes)))
        return self.run_process


class RecordingSink(ProgressSink):
    def __init__(self):
        self.events = []

    def start(self, total):
        self.events.append(("start", total))

    def update(self, current, total, label):
        self.events.append(("update", current, total, label))

    def finish(self):
        self.events.append(("finish",))

    def abort(self):
        self.events.append(("abort",))

    @property
    def steps(self):
        return [e[1] for e in self.events if e[0] == "update"]


def out(chunk):
    return (Channel.OUT, chunk)


def err(chunk):
    return (Channel.ERR, chunk)


@pytest.fixture(autouse=True)
def quiet_console():
    console = Console(debug=False)
    set_console(console)
    yield console
    set_console(None)


@pytest.fixture
def project(tmp_path):
    """A small PHP-ish project that looks version controlled."""
    root = tmp_path / "Demo"
    (root / ".git").mkdir(parents=True)
    (root / "src").mkdir()
    (root / "src" / "App.php").write_text("<?php echo 'hi';\n")
    (root / "composer.json").write_text('{"require": {}}\n')
    (root / "README.md").write_text("# demo\n")
    return root


@pytest.fixture
def lister():
    return StaticLister(["composer.json", "src/App.php", "README.md"])


@pytest.fixture
def streams():
    return io.StringIO(), io.StringIO()
