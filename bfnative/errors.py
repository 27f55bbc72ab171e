from __future__ import annotations

from typing import Optional


class CompileError(Exception):
    pass


class ConfigurationError(CompileError):
    pass


class SourceError(CompileError):
    pass


class UnmatchedBracketError(SourceError):
    """Raised when a loop bracket has no partner in the source text."""

    def __init__(self, bracket: str, offset: int, source: Optional[str] = None) -> None:
        self.bracket = bracket
        self.offset = offset
        self.line, self.column = _line_and_column(source, offset)
        super().__init__(
            f"Unmatched '{bracket}' at line {self.line}, column {self.column} (offset {offset})"
        )


class BackendError(CompileError):
    pass


class LinkerError(CompileError):
    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = "") -> None:
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip()
        super().__init__(f"{message}: {detail}" if detail else message)


def _line_and_column(source: Optional[str], offset: int) -> tuple[int, int]:
    if source is None:
        return 1, offset + 1
    preceding = source[:offset]
    line = preceding.count("\n") + 1
    column = offset - (preceding.rfind("\n") + 1) + 1
    return line, column


__all__ = [
    "BackendError",
    "CompileError",
    "ConfigurationError",
    "LinkerError",
    "SourceError",
    "UnmatchedBracketError",
]
