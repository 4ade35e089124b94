"""
BattelASM two-pass assembler.

Turns BattelASM source into 16-bit instruction words and renders them as a
C array for the host program.

Input:  source text, first non-comment line `<name> <offset>`
Output: list of words, C source text, or a listing

How the two passes work:
  Pass 1: count the words the program will produce (see prescan.py) so
          that #size / #after are known up front.
  Pass 2: walk the lines again, encode instructions, apply directives,
          and append words. At the end the emitted count must equal the
          pass 1 count; a mismatch is an assembler bug, not a user error.

The source is materialized as a list of lines once, so both passes read
the same data and there is nothing to rewind.
"""

from __future__ import annotations
import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .directives import FREE, REPEAT, STARTS, parse_free, parse_repeat, parse_starts
from .emitter import (EmitOptions, EmittedWord, check_size, render_program,
                      render_word, resolve_offset)
from .encoder import encode_instruction
from .errors import AssemblerError, ConsistencyError, DirectiveError
from .lexer import Header, LineKind, SourceLine, parse_header, read_lines
from .opcodes import FILLER_WORD
from .prescan import count_instructions
from .symbols import SymbolError, SymbolTable

__all__ = [
    'Assembler', 'AssemblerError', 'AssemblyState', 'RepeatBuffer',
    'assemble', 'assemble_to_c',
]

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Running state
# ──────────────────────────────────────────────

@dataclass
class RepeatBuffer:
    """Words captured for an open `#repeat W T` block."""
    count: int
    times: int
    line_num: int
    words: List[EmittedWord] = field(default_factory=list)

    @property
    def full(self) -> bool:
        return len(self.words) >= self.count

    def capture(self, item: EmittedWord):
        self.words.append(item)


@dataclass
class AssemblyState:
    """Counters carried from line to line during pass 2."""
    program_size: int = 0
    instruction_num: int = 0
    repeat: Optional[RepeatBuffer] = None


# ──────────────────────────────────────────────
# The Assembler
# ──────────────────────────────────────────────

class Assembler:
    """Two-pass BattelASM assembler.

    Usage:
        asm = Assembler(EmitOptions(decimal=True))
        words = asm.assemble(source_text)
        c_text = asm.to_c()
    """

    def __init__(self, options: EmitOptions = None, rng: random.Random = None):
        self.options = options or EmitOptions()
        self.rng = rng
        self.symbols = SymbolTable()
        self.state = AssemblyState()
        self.header: Optional[Header] = None
        self.offset: int = 0
        self.words: List[EmittedWord] = []
        self._lines: List[SourceLine] = []

    def assemble(self, source: str) -> List[int]:
        """Assemble source text and return the instruction words.

        The resolved load offset is stored in self.offset.
        """
        self.symbols = SymbolTable()
        self.words = []
        self._lines = read_lines(source)

        self.header = parse_header(self._lines)

        # Pass 1: count
        self.state = AssemblyState(program_size=count_instructions(self._lines))
        check_size(self.state.program_size)

        # Pass 2: encode
        for line in self._lines[self.header.line_num:]:
            self._assemble_line(line)

        if self.state.repeat is not None:
            raise DirectiveError("#repeat block is not complete at end of input",
                                 self.state.repeat.line_num,
                                 kind='unterminated-repeat')

        if (self.state.instruction_num != self.state.program_size
                or len(self.words) != self.state.program_size):
            raise ConsistencyError(
                f"Pre-scan counted {self.state.program_size} instructions but "
                f"{len(self.words)} were emitted")

        self.offset = resolve_offset(self.header.offset, len(self.words), self.rng)
        logger.info("%s: %d words at offset %d",
                    self.header.name, len(self.words), self.offset)
        return [item.word for item in self.words]

    def _assemble_line(self, line: SourceLine):
        if line.kind is LineKind.DIRECTIVE:
            self._directive(line)
        elif line.kind is LineKind.INSTRUCTION:
            self._instruction(line)

    # ── Directives ──

    def _directive(self, line: SourceLine):
        name = line.directive
        if name == STARTS:
            self._starts(line)
        elif name == FREE:
            self._free(line)
        elif name == REPEAT:
            self._repeat(line)
        else:
            logger.debug("Line %d: ignoring directive %s", line.line_num, line.tokens[0])

    def _starts(self, line: SourceLine):
        target = parse_starts(line)
        current = self.state.instruction_num
        if self.state.repeat is not None:
            raise DirectiveError("#starts inside a #repeat block", line.line_num,
                                 line.raw, kind='starts-inside-repeat')
        if target < current:
            raise DirectiveError(
                f"#starts directive wants to go back (current instruction: "
                f"{current}, wanted instruction: {target})",
                line.line_num, line.raw, kind='backward-starts')
        logger.debug("Line %d: padding %d word(s) up to %d",
                     line.line_num, target - current, target)
        while self.state.instruction_num < target:
            self._emit(EmittedWord(FILLER_WORD))

    def _free(self, line: SourceLine):
        name = parse_free(line)
        try:
            index = self.symbols.free(name)
        except SymbolError as e:
            raise DirectiveError(str(e), line.line_num, line.raw, kind=e.kind) from e
        logger.debug("Line %d: freed %s (r%d)", line.line_num, name, index)

    def _repeat(self, line: SourceLine):
        if self.state.repeat is not None:
            raise DirectiveError("Nested #repeat is not supported", line.line_num,
                                 line.raw, kind='nested-repeat-unsupported')
        count, times = parse_repeat(line)
        self.state.repeat = RepeatBuffer(count, times, line.line_num)

    # ── Instructions ──

    def _instruction(self, line: SourceLine):
        word = encode_instruction(
            line.mnemonic, line.operands,
            self.state.program_size, self.state.instruction_num,
            self.symbols, self.options.variables, line.line_num)
        item = EmittedWord(word, line.text.strip())
        self._emit(item)

        repeat = self.state.repeat
        if repeat is None:
            return
        repeat.capture(item)
        if repeat.full:
            self.state.repeat = None
            logger.debug("Line %d: replaying %d word(s) %d more time(s)",
                         repeat.line_num, repeat.count, repeat.times - 1)
            for _ in range(repeat.times - 1):
                for captured in repeat.words:
                    self._emit(EmittedWord(captured.word, captured.source))

    def _emit(self, item: EmittedWord):
        """Append a word and advance the instruction counter."""
        self.words.append(item)
        self.state.instruction_num += 1

    # ── Output ──

    def to_c(self) -> str:
        """Render the assembled program as a C array."""
        if self.header is None:
            raise AssemblerError("Nothing assembled yet")
        return render_program(self.header.name, self.words, self.offset,
                              self.options, self.symbols.variables())

    def get_listing(self) -> str:
        """Return a human-readable listing: index, hex word, binary, source."""
        lines = [f"{'IDX':>5}  {'HEX':<6}  {'BINARY':<18}  SOURCE"]
        lines.append("-" * 60)
        for index, item in enumerate(self.words):
            source = item.source if item.source is not None else "(fill)"
            lines.append(f"{index:5d}  {item.word:04X}    "
                         f"{render_word(item.word):<18}  {source}")
        return "\n".join(lines)


# ──────────────────────────────────────────────
# Convenience functions
# ──────────────────────────────────────────────

def assemble(source: str, options: EmitOptions = None,
             rng: random.Random = None) -> Tuple[List[int], int]:
    """Assemble source text, return (words, offset)."""
    asm = Assembler(options, rng)
    words = asm.assemble(source)
    return words, asm.offset


def assemble_to_c(source: str, options: EmitOptions = None,
                  rng: random.Random = None) -> str:
    """Assemble source text, return the C array fragment."""
    asm = Assembler(options, rng)
    asm.assemble(source)
    return asm.to_c()
