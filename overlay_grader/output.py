"""
Captured grading output.

A GradingOutput is created per grading run and passed to the builders and
the orchestrator; everything written to it ends up in the report's
``output`` field.
"""

import logging
from typing import Literal

from .models import OutputSection

logger = logging.getLogger(__name__)

Visibility = Literal["visible", "hidden"]


class GradingOutput:
    """
    Accumulates output lines for one grading run.

    Visible lines are shown to the student. Hidden lines are only shown to
    instructors; the hidden stream also receives every visible line.
    """

    def __init__(self) -> None:
        self._lines: dict[str, list[str]] = {"visible": [], "hidden": []}

    def log(self, visibility: Visibility, message: str) -> None:
        if visibility not in self._lines:
            raise ValueError(f"Unknown output visibility: {visibility}")
        if visibility == "visible":
            self._lines["visible"].append(message)
        self._lines["hidden"].append(message)
        logger.debug("[%s] %s", visibility, message)

    def text(self, visibility: Visibility = "visible") -> str:
        return "\n".join(self._lines[visibility])

    def get_each_output(self) -> dict[str, OutputSection]:
        return {
            visibility: OutputSection(output="\n".join(lines), output_format="text")
            for visibility, lines in self._lines.items()
        }
