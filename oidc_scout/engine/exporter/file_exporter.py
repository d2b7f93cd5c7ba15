"""Append-only text file of discovered endpoint URLs."""

from __future__ import annotations

from pathlib import Path
from typing import TextIO

from .base import BaseExporter


class EndpointFileExporter(BaseExporter):
    """Append newline-terminated lines to a file, never truncating it.

    The file is opened on the first export, so a run that discovers nothing
    leaves no trace on disk. Not thread-safe; callers hold their own lock.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._file: TextIO | None = None

    def _ensure_open(self) -> TextIO:
        if self._file is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._file = self.path.open("a", encoding="utf-8", newline="\n")
        return self._file

    def export(self, line: str) -> None:
        stream = self._ensure_open()
        stream.write(line.rstrip("\n") + "\n")
        stream.flush()

    def flush(self) -> None:
        if self._file is not None:
            self._file.flush()

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None


__all__ = ["EndpointFileExporter"]
