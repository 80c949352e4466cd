# progress.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional


# Columns reserved for the bar itself, counters and percentage.
PROGRESS_RESERVED_WIDTH = 44


class StepMarkerParser:
    """
    Recognizes the classic docker builder's "Step <n>/<total> :" lines.

    The denominator must equal the number of instructions we generated;
    anything else (a different Dockerfile, an ONBUILD trigger) is not ours.
    """

    def __init__(self, total_steps: int):
        self.total_steps = total_steps
        self._pattern = re.compile(r"^Step\s+(\d+)/%d\s+:" % total_steps)

    def match(self, line: str) -> Optional[int]:
        m = self._pattern.match(line)
        return int(m.group(1)) if m else None


def truncate_label(label: str, terminal_width: int) -> str:
    return label[: max(0, terminal_width - PROGRESS_RESERVED_WIDTH)]


@dataclass
class ProgressState:
    """Where one image build is, measured in Dockerfile instructions."""
    total_steps: int
    current_step: int = 0
    current_label: str = ""

    def advance(self, step: int, descriptor_lines: List[str], terminal_width: int) -> bool:
        """
        Move to `step`. The label is the instruction about to run, i.e.
        descriptor_lines[step] (0-based list, 1-based engine steps).

        Returns False, leaving the state untouched, for steps that would go
        backwards or past the total.
        """
        if step < self.current_step or step > self.total_steps:
            return False
        label = descriptor_lines[step] if step < len(descriptor_lines) else ""
        self.current_step = step
        self.current_label = truncate_label(label, terminal_width)
        return True

    @property
    def fraction(self) -> float:
        if self.total_steps <= 0:
            return 1.0
        return self.current_step / self.total_steps
