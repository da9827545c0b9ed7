# SPDX-License-Identifier: MIT
"""Source locations for error reporting."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SourceLocation:
    """A position in a parsed input file.

    Attributes:
        filename: Path of the file, as given to the parser.
        line: 1-based line number, or None if unknown.
        text: The offending line, if available.
    """

    filename: str
    line: int | None = None
    text: str | None = None

    def __str__(self) -> str:
        if self.line is None:
            return self.filename
        return f"{self.filename}:{self.line}"
