"""
Diagnostic trace: the append-only record of what a walk entered, skipped
and read.
"""

from __future__ import annotations

from typing import List, Optional, TextIO

from colorama import Fore, Style


class Trace:
    """Collects trace lines in order; optionally echoes them to *stream*.

    The core only appends. Warnings are kept twice: in ``lines`` at the
    position they happened, and in ``warnings`` for callers that only want
    the problems.
    """

    def __init__(self, stream: Optional[TextIO] = None, color: bool = True) -> None:
        self.lines: List[str] = []
        self.warnings: List[str] = []
        self._stream = stream
        self._color = color

    def info(self, line: str) -> None:
        self._append(line)

    def warn(self, line: str) -> None:
        line = f"Warning: {line}"
        self.warnings.append(line)
        self._append(line, Fore.YELLOW)

    def done(self, line: str) -> None:
        self._append(line, Fore.GREEN)

    def _append(self, line: str, color: str = "") -> None:
        self.lines.append(line)
        if self._stream is None:
            return
        msg = f"[packforllm] {line}"
        if color and self._color:
            msg = color + msg + Style.RESET_ALL
        print(msg, file=self._stream)
