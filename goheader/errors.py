from __future__ import annotations

from typing import Optional


class TranslationError(Exception):
    def __init__(self, msg: str, filename: Optional[str] = None, lineno: Optional[int] = None) -> None:
        loc = ""
        if filename:
            loc = f"{filename}:{lineno}: " if lineno else f"{filename}: "
        elif lineno:
            loc = f"line {lineno}: "
        super().__init__(f"{loc}{msg}")
        self.msg = msg
        self.filename = filename
        self.lineno = lineno


class UnbalancedBlockError(TranslationError):
    """A struct, enum or block comment was still open at end of input."""


class FormatError(TranslationError):
    """gofmt rejected the translated source or could not be run."""
