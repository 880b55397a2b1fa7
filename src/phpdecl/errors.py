"""Parse errors and Rust-style diagnostic rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from phpdecl.source import SourceFile

if TYPE_CHECKING:
    from phpdecl.source import Span
    from phpdecl.tokens import Token


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"


# ANSI color codes
_COLORS = {
    Severity.ERROR: "\033[1;31m",    # bold red
    Severity.WARNING: "\033[1;33m",  # bold yellow
    Severity.NOTE: "\033[1;36m",     # bold cyan
}
_BOLD = "\033[1m"
_BLUE = "\033[1;34m"
_RESET = "\033[0m"

READ_ERROR = "E001"
LEX_ERROR = "E100"
UNEXPECTED_TOKEN = "E200"


@dataclass(frozen=True)
class DiagnosticLabel:
    """Points to a specific source location."""

    span: Span
    message: str


@dataclass
class Diagnostic:
    """A single diagnostic message with optional labels."""

    severity: Severity
    code: str
    message: str
    labels: list[DiagnosticLabel] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)


class DiagnosticRenderer:
    """Renders diagnostics in Rust-style format with colors."""

    def __init__(self, *, color: bool = True) -> None:
        self.color = color
        self._file_cache: dict[str, SourceFile | None] = {}

    def _c(self, code: str) -> str:
        return code if self.color else ""

    def _get_source_line(self, filename: str, line_num: int) -> str | None:
        """Load and cache source file, return the 1-indexed line."""
        if filename not in self._file_cache:
            path = Path(filename)
            try:
                self._file_cache[filename] = SourceFile(path) if path.is_file() else None
            except OSError:
                self._file_cache[filename] = None
        source = self._file_cache[filename]
        if source is None or not 1 <= line_num <= len(source.lines):
            return None
        return source.line_at(line_num)

    def render(self, diag: Diagnostic) -> str:
        color = _COLORS[diag.severity]
        width = max((len(str(label.span.start_line)) for label in diag.labels), default=1)
        pad = " " * width
        blue = self._c(_BLUE)
        reset = self._c(_RESET)

        lines = [
            f"{self._c(color)}{diag.severity.value}[{diag.code}]{reset}"
            f"{self._c(_BOLD)}: {diag.message}{reset}"
        ]
        for label in diag.labels:
            lines.append(f"{pad}{blue}-->{reset} {label.span}")
            lines.extend(self._render_snippet(label, width, color))
        for note in diag.notes:
            lines.append(f"{pad} {blue}={reset} note: {note}")
        return "\n".join(lines)

    def _render_snippet(self, label: DiagnosticLabel, width: int, color: str) -> list[str]:
        """Source line with carets under the span, label text after the carets."""
        span = label.span
        pad = " " * width
        bar = f"{self._c(_BLUE)}|{self._c(_RESET)}"
        source_line = self._get_source_line(span.file, span.start_line)
        if source_line is None:
            return [f"{pad} {bar} {label.message}"] if label.message else []

        if span.start_line == span.end_line:
            caret_len = max(1, span.end_col - span.start_col + 1)
        else:
            caret_len = max(1, len(source_line) - span.start_col + 1)
        marker = "^" * caret_len
        if label.message:
            marker += f" {label.message}"
        return [
            f"{pad} {bar}",
            f"{self._c(_BLUE)}{span.start_line:>{width}}{self._c(_RESET)} {bar} {source_line}",
            f"{pad} {bar} {' ' * (span.start_col - 1)}{self._c(color)}{marker}{self._c(_RESET)}",
        ]


class CompileError(Exception):
    """Error carrying one or more diagnostics for a single source file."""

    def __init__(self, diagnostics: list[Diagnostic]) -> None:
        self.diagnostics = diagnostics
        messages = [d.message for d in diagnostics]
        super().__init__(f"{len(diagnostics)} error(s): {'; '.join(messages)}")


class ParseError(CompileError):
    """The parser met a token for which the active grammar rule has no case."""

    def __init__(self, token: Token, expected: str | None = None) -> None:
        self.token = token
        self.expected = expected
        super().__init__([
            Diagnostic(
                severity=Severity.ERROR,
                code=UNEXPECTED_TOKEN,
                message=f"unexpected {token.kind.name} ({token.value!r})",
                labels=[DiagnosticLabel(span=token.span, message="")],
                notes=[f"expected {expected}"] if expected else [],
            )
        ])

    @property
    def span(self) -> Span:
        return self.token.span


class SourceReadError(CompileError):
    """A source file could not be read; there is no span to point at."""

    def __init__(self, path: Path, cause: OSError) -> None:
        self.path = path
        self.cause = cause
        super().__init__([
            Diagnostic(
                severity=Severity.ERROR,
                code=READ_ERROR,
                message=f"cannot read {path}: {cause.strerror or cause}",
            )
        ])
