"""
Directive argument parsing shared by the pre-scan and the main pass.

    #starts N        pad with FLAG words until instruction N
    #free name       drop a variable binding
    #repeat W T      emit the next W instructions T times in total

Directive names are case-insensitive. Any other `#word` line is ignored.
"""

from __future__ import annotations
import re
from typing import Tuple

from .errors import DirectiveError
from .lexer import SourceLine, split_directive

__all__ = [
    'STARTS', 'FREE', 'REPEAT', 'REPEAT_CAPACITY',
    'parse_starts', 'parse_free', 'parse_repeat',
]

STARTS = '#starts'
FREE = '#free'
REPEAT = '#repeat'

REPEAT_CAPACITY = 64   # max instructions in one #repeat block

_INT_RE = re.compile(r'^[0-9]+$')


def _int_arg(line: SourceLine, args, index: int, what: str) -> int:
    if index >= len(args) or not _INT_RE.match(args[index]):
        name = line.tokens[0]
        got = args[index] if index < len(args) else 'nothing'
        raise DirectiveError(f"{name} expects {what}, got {got}", line.line_num,
                             line.raw, kind='malformed-directive')
    return int(args[index])


def parse_starts(line: SourceLine) -> int:
    """`#starts N` -> N."""
    _, args = split_directive(line)
    return _int_arg(line, args, 0, 'an instruction number')


def parse_free(line: SourceLine) -> str:
    """`#free name` -> name."""
    _, args = split_directive(line)
    if not args:
        raise DirectiveError("#free expects a variable name", line.line_num,
                             line.raw, kind='malformed-directive')
    return args[0]


def parse_repeat(line: SourceLine) -> Tuple[int, int]:
    """`#repeat W T` -> (W, T), with 1 <= W <= REPEAT_CAPACITY and T >= 1."""
    _, args = split_directive(line)
    count = _int_arg(line, args, 0, 'an instruction count')
    times = _int_arg(line, args, 1, 'a repetition count')
    if count < 1 or times < 1:
        raise DirectiveError(f"#repeat needs positive arguments, got {count} {times}",
                             line.line_num, line.raw, kind='malformed-directive')
    if count > REPEAT_CAPACITY:
        raise DirectiveError(
            f"#repeat block of {count} instructions exceeds the buffer "
            f"({REPEAT_CAPACITY} max)", line.line_num, line.raw,
            kind='repeat-buffer-overflow')
    return count, times
