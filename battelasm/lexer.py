"""
Line tokenizer for BattelASM source.

Source is strictly line oriented. Each line is one of:

    (blank)                        nothing
    ; comment                      nothing
    #directive args...             build-time side effect
    MNEMONIC op, op  ; comment     one instruction word

Space, tab, comma and CR/LF are all separators, so `ADD R1, R0` and
`ADD R1 R0` tokenize the same. A token starting with `;` ends the line.
"""

from __future__ import annotations
import enum
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .errors import HeaderError

__all__ = [
    'LineKind', 'SourceLine', 'Header', 'tokenize', 'classify_line',
    'read_lines', 'split_directive', 'parse_header',
]

_DELIMS_RE = re.compile(r'[ ,\t\r\n]+')
_IDENT_RE = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')
_INT_RE = re.compile(r"^-?[0-9]+$")
_NEWLINE_RE = re.compile(r'\r\n|\r|\n')


class LineKind(enum.Enum):
    BLANK = "blank"
    COMMENT = "comment"
    DIRECTIVE = "directive"
    INSTRUCTION = "instruction"


@dataclass
class SourceLine:
    """One classified source line."""
    line_num: int
    raw: str
    kind: LineKind
    tokens: List[str] = field(default_factory=list)

    @property
    def mnemonic(self) -> Optional[str]:
        if self.kind is LineKind.INSTRUCTION:
            return self.tokens[0]
        return None

    @property
    def operands(self) -> List[str]:
        if self.kind is LineKind.INSTRUCTION:
            return self.tokens[1:]
        return []

    @property
    def directive(self) -> Optional[str]:
        """Lower-cased directive name (`#starts`), or None."""
        if self.kind is LineKind.DIRECTIVE:
            return self.tokens[0].lower()
        return None

    @property
    def text(self) -> str:
        """Source text without its line terminator."""
        return self.raw.rstrip('\r\n')


@dataclass
class Header:
    """The mandatory `<name> <offset>` first line."""
    name: str
    offset: int
    line_num: int


def tokenize(line: str) -> List[str]:
    """Split a line on separators, stopping at the first `;` token."""
    tokens = []
    for token in _DELIMS_RE.split(line):
        if not token:
            continue
        if token.startswith(';'):
            break
        tokens.append(token)
    return tokens


def classify_line(line: str, line_num: int = 0) -> SourceLine:
    """Classify a raw line as blank, comment, directive or instruction."""
    stripped = line.strip()
    if not stripped:
        return SourceLine(line_num, line, LineKind.BLANK)
    if stripped.startswith('#'):
        return SourceLine(line_num, line, LineKind.DIRECTIVE, tokenize(stripped))

    tokens = tokenize(line)
    if not tokens:
        # Separator-only lines (",,") behave like comments
        return SourceLine(line_num, line, LineKind.COMMENT)
    return SourceLine(line_num, line, LineKind.INSTRUCTION, tokens)


def read_lines(source: str) -> List[SourceLine]:
    """Materialize a whole source text as classified lines (1-based numbers).

    Only CR, LF and CRLF end a line; form feeds and other Unicode line
    breaks stay inside the line they appear on.
    """
    texts = _NEWLINE_RE.split(source)
    if texts and texts[-1] == '':
        texts.pop()
    return [classify_line(line, num) for num, line in enumerate(texts, 1)]


def split_directive(line: SourceLine) -> Tuple[str, List[str]]:
    """Return (directive name, arguments) for a directive line."""
    return line.tokens[0].lower(), line.tokens[1:]


def is_identifier(name: str) -> bool:
    """True if `name` can be used as a C identifier."""
    return bool(_IDENT_RE.match(name))


def parse_header(lines: List[SourceLine]) -> Header:
    """Find and parse the header: the first non-blank, non-comment line."""
    for line in lines:
        if line.kind in (LineKind.BLANK, LineKind.COMMENT):
            continue
        tokens = line.tokens
        if line.kind is not LineKind.INSTRUCTION or len(tokens) != 2:
            raise HeaderError(
                f"Expected header '<name> <offset>', got '{line.text.strip()}'",
                line.line_num, line.raw)
        name, offset_text = tokens
        if not is_identifier(name):
            raise HeaderError(f"Program name '{name}' is not a valid identifier",
                              line.line_num, line.raw)
        offset = int(offset_text) if _INT_RE.match(offset_text) else None
        if offset is None or offset < -1:
            raise HeaderError(
                f"Offset must be a non-negative integer or -1, got '{offset_text}'",
                line.line_num, line.raw)
        return Header(name, offset, line.line_num)

    raise HeaderError("Missing header line '<name> <offset>'", kind='missing-header')
