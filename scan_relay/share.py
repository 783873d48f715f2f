"""Destinations for exported history text."""

from __future__ import annotations

import shutil
import subprocess
import sys
from pathlib import Path
from typing import Sequence, TextIO


class ClipboardUnavailable(RuntimeError):
    pass


class SystemClipboard:
    """Writes text using system clipboard helpers."""

    _WRITERS: Sequence[tuple[str, Sequence[str]]] = (
        ("wl-copy", ("wl-copy",)),
        ("xclip", ("xclip", "-selection", "clipboard")),
        ("xsel", ("xsel", "--clipboard", "--input")),
        ("pbcopy", ("pbcopy",)),
    )

    def __init__(self) -> None:
        self._write_cmd = self._find_command(self._WRITERS)
        if not self._write_cmd:
            raise ClipboardUnavailable(
                "clipboard helpers missing; install wl-copy, xclip, xsel, or pbcopy"
            )

    def _find_command(self, candidates: Sequence[tuple[str, Sequence[str]]]) -> list[str] | None:
        for name, cmd in candidates:
            if shutil.which(name):
                return list(cmd)
        return None

    def write_text(self, value: str) -> None:
        subprocess.run(self._write_cmd, check=True, input=value, text=True)


def write_export(text: str, output: str | None = None, stream: TextIO | None = None) -> None:
    if output:
        Path(output).write_text(text, encoding="utf-8")
        return
    target = stream or sys.stdout
    target.write(text if text.endswith("\n") else text + "\n")
