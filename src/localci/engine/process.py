# engine/process.py
from __future__ import annotations

import codecs
import enum
import os
import queue
import subprocess
import threading
from typing import IO, Iterator, List, Optional, Sequence, Tuple

from ..settings import TERMINATE_TIMEOUT


class Channel(enum.Enum):
    OUT = "out"
    ERR = "err"


_CHUNK_SIZE = 4096
_EOF = object()


def _pump(channel: Channel, pipe: IO[bytes], sink: "queue.Queue") -> None:
    # one reader per pipe so a chatty stderr never blocks stdout (or vice versa)
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    fd = pipe.fileno()
    try:
        while True:
            data = os.read(fd, _CHUNK_SIZE)
            if not data:
                break
            text = decoder.decode(data)
            if text:
                sink.put((channel, text))
        tail = decoder.decode(b"", final=True)
        if tail:
            sink.put((channel, tail))
    finally:
        pipe.close()
        sink.put((channel, _EOF))


class StreamedProcess:
    """
    A running subprocess whose stdout/stderr are yielded as they arrive.

        proc = StreamedProcess(["docker", "build", ...])
        for channel, chunk in proc:
            ...
        proc.wait()

    Iteration ends when both pipes are closed. Chunks of one channel keep
    their order; the relative order of OUT vs ERR is whatever the pipes give.
    """

    def __init__(self, cmd: Sequence[str], *, cwd: Optional[str] = None, env: Optional[dict] = None):
        self.cmd = list(cmd)
        self._proc = subprocess.Popen(
            self.cmd,
            cwd=cwd,
            env=env,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
        self._queue: "queue.Queue[Tuple[Channel, object]]" = queue.Queue()
        self._readers: List[threading.Thread] = [
            threading.Thread(target=_pump, args=(Channel.OUT, self._proc.stdout, self._queue), daemon=True),
            threading.Thread(target=_pump, args=(Channel.ERR, self._proc.stderr, self._queue), daemon=True),
        ]
        for t in self._readers:
            t.start()

    def __iter__(self) -> Iterator[Tuple[Channel, str]]:
        open_channels = {Channel.OUT, Channel.ERR}
        while open_channels:
            channel, chunk = self._queue.get()
            if chunk is _EOF:
                open_channels.discard(channel)
                continue
            yield channel, chunk

    def wait(self, timeout: Optional[float] = None) -> int:
        code = self._proc.wait(timeout=timeout)
        for t in self._readers:
            t.join(timeout=1)
        return code

    def is_successful(self) -> bool:
        return self.wait() == 0

    def terminate(self, timeout: float = TERMINATE_TIMEOUT) -> None:
        """SIGTERM, then SIGKILL if the process outlives `timeout` seconds."""
        if self._proc.poll() is not None:
            return
        self._proc.terminate()
        try:
            self._proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            self._proc.kill()
            self._proc.wait()
