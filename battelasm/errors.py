"""
Assembler exceptions.

Everything the assembler raises for bad input derives from AssemblerError,
which carries the 1-based source line. ConsistencyError is the exception:
it means the pre-scan and the main pass disagree, i.e. an assembler bug.
"""

from __future__ import annotations

__all__ = [
    'AssemblerError', 'HeaderError', 'EncodeError', 'DirectiveError',
    'ConsistencyError',
]


class AssemblerError(Exception):
    """Raised on assembly errors."""
    kind = 'error'

    def __init__(self, message: str, line_num: int = 0, line_text: str = "",
                 kind: str = None):
        self.message = message
        self.line_num = line_num
        self.line_text = line_text
        if kind is not None:
            self.kind = kind
        super().__init__(f"Line {line_num}: {message}" if line_num else message)


class HeaderError(AssemblerError):
    """Missing or malformed `<name> <offset>` header."""
    kind = 'malformed-header'


class EncodeError(AssemblerError):
    """An instruction line could not be encoded."""


class DirectiveError(AssemblerError):
    """A `#directive` line failed."""


class ConsistencyError(AssemblerError):
    """Pre-scanned instruction count differs from the emitted count."""
    kind = 'internal-consistency'
