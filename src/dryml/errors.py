"""Error types with formatted source context."""

from __future__ import annotations

from dryml.tokens import Position, Span


def _context(message: str, source: str, line: int, col: int, underline_len: int, filename: str) -> str:
    lines = source.splitlines(keepends=True)
    line_idx = line - 1

    if 0 <= line_idx < len(lines):
        source_line = lines[line_idx].rstrip("\n").rstrip("\r")
    else:
        source_line = ""

    pad = " " * (col - 1)
    carets = "^" * underline_len

    line_num = str(line)
    gutter_width = len(line_num) + 1

    blank_gutter = " " * gutter_width + "|"
    line_gutter = f"{line_num:>{gutter_width - 1}} |"

    return (
        f"error: {message}\n"
        f"{' ' * gutter_width}--> {filename}:{line}:{col}\n"
        f"{blank_gutter}\n"
        f"{line_gutter} {source_line}\n"
        f"{blank_gutter} {pad}{carets}"
    )


class LexError(Exception):
    """Raised on the first lexing error, with position and source context."""

    def __init__(self, message: str, position: Position, source: str) -> None:
        self.message = message
        self.position = position
        self.source = source
        super().__init__(self.format())

    @property
    def line(self) -> int:
        return self.position.line

    def format(self, filename: str = "input.dryml") -> str:
        return _context(
            self.message, self.source, self.position.line, self.position.column, 1, filename
        )


class ParseError(Exception):
    """Raised on the first parse error, with span and source context."""

    def __init__(self, message: str, span: Span, source: str) -> None:
        self.message = message
        self.span = span
        self.source = source
        super().__init__(self.format())

    @property
    def line(self) -> int:
        return self.span.start.line

    def format(self, filename: str = "input.dryml") -> str:
        col = self.span.start.column
        if self.span.end.line == self.span.start.line:
            underline_len = max(1, self.span.end.column - col)
        else:
            underline_len = 1
        return _context(self.message, self.source, self.span.start.line, col, underline_len, filename)


class DrymlError(Exception):
    """Raised on the first compile error, attributed to a template path and line."""

    def __init__(self, message: str, template_path: str, line: int | None) -> None:
        self.message = message
        self.template_path = template_path
        self.line = line
        super().__init__(self.format())

    def format(self) -> str:
        where = self.template_path
        if self.line is not None:
            where += f":{self.line}"
        return f"{self.message}\n  --> {where}"
