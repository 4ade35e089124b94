"""
Instruction-count pre-scan.

`#size` and `#after` need the final program length before the first word is
encoded, so the source is walked once to count what the main pass will
emit. The walk is purely structural: mnemonics and operands are not checked.
"""

from __future__ import annotations
import logging
from typing import List, Optional

from .directives import REPEAT, STARTS, parse_repeat, parse_starts
from .errors import DirectiveError
from .lexer import LineKind, SourceLine

__all__ = ['count_instructions']

logger = logging.getLogger(__name__)


def count_instructions(lines: List[SourceLine]) -> int:
    """Return the number of words the main pass will emit for `lines`.

    `lines` is the whole source including the header. The header classifies
    as an instruction line, so the count starts at -1.
    """
    count = -1
    pending = 0                       # instructions still owed to an open #repeat
    repeat_line: Optional[SourceLine] = None

    for line in lines:
        if line.kind is LineKind.INSTRUCTION:
            count += 1
            if pending:
                pending -= 1
            continue

        if line.kind is not LineKind.DIRECTIVE:
            continue

        name = line.directive
        if name == STARTS:
            if pending:
                raise DirectiveError("#starts inside a #repeat block", line.line_num,
                                     line.raw, kind='starts-inside-repeat')
            count = parse_starts(line)
        elif name == REPEAT:
            if pending:
                raise DirectiveError("Nested #repeat is not supported", line.line_num,
                                     line.raw, kind='nested-repeat-unsupported')
            block, times = parse_repeat(line)
            count += block * (times - 1)
            pending = block
            repeat_line = line

    if pending:
        raise DirectiveError(
            f"#repeat block ends {pending} instruction(s) short",
            repeat_line.line_num, repeat_line.raw, kind='unterminated-repeat')

    logger.debug("pre-scan: %d instructions", count)
    return count
