"""
C source emitter.

Renders an assembled program as a C array that the BattelASM host program
can #include:

    static uint16_t mars_mem[] = {
    	0b0000000000010011, // LDI 19
    	0b1111110000000000,
    	...
    };
    static uint16_t mars_size = 9;
    static uint16_t mars_offset = 377;
"""

from __future__ import annotations
import logging
import random
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .errors import AssemblerError

__all__ = [
    'EmitOptions', 'EmittedWord', 'MEMORY_WORDS',
    'render_word', 'render_program', 'resolve_offset', 'check_size',
]

logger = logging.getLogger(__name__)

MEMORY_WORDS = 1024   # size of the BattelASM program memory
RANDOM_OFFSET = -1


@dataclass
class EmitOptions:
    """Output switches.

    comments   echo each source line as a trailing // comment
    var_table  list live variable bindings after the array
    decimal    write words as decimal instead of 0b... literals
    variables  allow variable names as register operands
    """
    comments: bool = True
    var_table: bool = False
    decimal: bool = False
    variables: bool = True

    def __post_init__(self):
        if self.var_table and not self.variables:
            raise ValueError("var_table requires variables to be enabled")


@dataclass
class EmittedWord:
    """One output word and the source text it came from (None for padding)."""
    word: int
    source: Optional[str] = None


def render_word(word: int, decimal: bool = False) -> str:
    """Format a word as `0b` + 16 bits, or as a plain decimal integer."""
    if decimal:
        return str(word)
    return f"0b{word:016b}"


def check_size(size: int):
    """Reject programs that cannot fit in program memory at any offset."""
    if size > MEMORY_WORDS:
        raise AssemblerError(
            f"Program is {size} words, memory holds only {MEMORY_WORDS}",
            kind='program-too-large')


def resolve_offset(offset: int, size: int, rng: random.Random = None) -> int:
    """Pick the load offset; -1 means anywhere the program still fits."""
    check_size(size)
    if offset == RANDOM_OFFSET:
        rng = rng or random.Random()
        chosen = rng.randint(0, MEMORY_WORDS - size)
        logger.debug("random offset %d for %d words", chosen, size)
        return chosen
    if offset + size > MEMORY_WORDS:
        logger.warning("offset %d + size %d runs past %d words of memory",
                       offset, size, MEMORY_WORDS)
    return offset


def render_program(name: str, words: List[EmittedWord], offset: int,
                   options: EmitOptions,
                   variables: Iterable[Tuple[str, int]] = ()) -> str:
    """Render the full C fragment for one program."""
    lines = [f"static uint16_t {name}_mem[] = {{"]
    for item in words:
        text = render_word(item.word, options.decimal)
        if options.comments and item.source is not None:
            lines.append(f"\t{text}, // {item.source}")
        else:
            lines.append(f"\t{text},")
    lines.append("};")
    lines.append(f"static uint16_t {name}_size = {len(words)};")
    lines.append(f"static uint16_t {name}_offset = {offset};")

    if options.var_table:
        lines.append("")
        for var, index in variables:
            lines.append(f"// {var}: r{index}")

    return "\n".join(lines) + "\n"
