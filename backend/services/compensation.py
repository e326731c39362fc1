"""
Minimal saga bookkeeping for multi-step operations.

Each completed side effect is recorded as a step. When the operation
fails, ``unwind()`` walks the steps in reverse order and runs their undo
actions. A step recorded without an undo action is reported as an orphan:
it is intentionally left in place, and the log says so.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class Step:
    label: str
    undo: Optional[Callable[[], None]] = None


class CompensationLog:
    def __init__(self, operation: str):
        self.operation = operation
        self.steps: List[Step] = []

    def record(self, label: str, undo: Optional[Callable[[], None]] = None) -> None:
        self.steps.append(Step(label=label, undo=undo))

    def unwind(self) -> List[str]:
        """
        Compensate completed steps, newest first.

        Returns:
            Labels of steps left behind, either orphans or undo actions that failed.
        """
        leftovers: List[str] = []
        while self.steps:
            step = self.steps.pop()
            if step.undo is None:
                logger.warning("%s: leaving %s in place (orphan)", self.operation, step.label)
                leftovers.append(step.label)
                continue
            try:
                step.undo()
            except Exception as e:
                logger.warning("%s: failed to compensate %s: %s", self.operation, step.label, e)
                leftovers.append(step.label)
        return leftovers
