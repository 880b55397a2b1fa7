"""Source positions and file access for diagnostics."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Span:
    """A range within a source file."""

    file: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int

    def __str__(self) -> str:
        return f"{self.file}:{self.start_line}:{self.start_col}"


class SourceFile:
    """A PHP source file, decoded leniently so legacy encodings still lex."""

    def __init__(self, path: Path, text: str | None = None) -> None:
        self.path = path
        self.content = text if text is not None else read_source(path)
        self.lines = self.content.splitlines()

    def line_at(self, n: int) -> str:
        """Return the 1-indexed line, or empty string if out of range."""
        if 1 <= n <= len(self.lines):
            return self.lines[n - 1]
        return ""


def read_source(path: Path) -> str:
    # Bytes outside UTF-8 only ever occur inside strings and comments,
    # which the parser never interprets.
    return path.read_bytes().decode("utf-8", errors="replace")
