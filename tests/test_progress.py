import io

import pytest

from localci.progress import ProgressState, StepMarkerParser, truncate_label
from localci.ui.progress import ClickProgressSink, LineProgressSink


LINES = ["FROM php:8.1", "ENV A 1", "COPY src/ /build", "WORKDIR /build", "RUN make"]


class TestStepMarkerParser:

    @pytest.mark.parametrize(
        "line,expected",
        [
            ("Step 1/5 : FROM php:8.1", 1),
            ("Step  3/5  : COPY src/ /build", 3),
            ("Step 5/5 : RUN make", 5),
            ("Step 2/6 : ENV A 1", None),
            ("Step 2/55 : ENV A 1", None),
            (" ---> Running in 0123abcd", None),
            ("Sending build context to Docker daemon  3.1kB", None),
            ("  Step 1/5 : indented", None),
        ],
    )
    def test_match(self, line, expected):
        assert StepMarkerParser(5).match(line) == expected


class TestProgressState:

    def test_label_is_next_instruction(self):
        state = ProgressState(total_steps=5)
        assert state.advance(1, LINES, 200)
        assert state.current_step == 1
        assert state.current_label == "ENV A 1"

    def test_last_step_has_empty_label(self):
        state = ProgressState(total_steps=5)
        state.advance(5, LINES, 200)
        assert state.current_step == 5
        assert state.current_label == ""
        assert state.fraction == 1.0

    def test_label_truncated_to_terminal(self):
        state = ProgressState(total_steps=5)
        state.advance(2, LINES, 44 + 4)
        assert state.current_label == "COPY"

    def test_narrow_terminal(self):
        assert truncate_label("RUN make", 20) == ""

    def test_never_decreases(self):
        state = ProgressState(total_steps=5)
        state.advance(3, LINES, 200)
        assert not state.advance(2, LINES, 200)
        assert state.current_step == 3

    def test_beyond_total_ignored(self):
        state = ProgressState(total_steps=5)
        assert not state.advance(6, LINES, 200)
        assert state.current_step == 0


class TestSinks:

    def test_line_sink(self):
        buf = io.StringIO()
        sink = LineProgressSink(buf)
        sink.start(5)
        sink.update(2, 5, "COPY src/ /build")
        sink.finish()
        assert buf.getvalue() == "[2/5] COPY src/ /build\n"

    def test_click_sink_runs_to_completion(self):
        buf = io.StringIO()
        sink = ClickProgressSink(file=buf)
        sink.start(5)
        sink.update(2, 5, "COPY src/ /build")
        sink.update(4, 5, "RUN make")
        sink.finish()
        assert "Building" in buf.getvalue()

    def test_click_sink_abort_without_start(self):
        ClickProgressSink(file=io.StringIO()).abort()
