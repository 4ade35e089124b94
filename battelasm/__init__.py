"""
BattelASM assembler
===================
Assembles BattelASM source for the 16-bit BattelASM CPU into instruction
words, emitted as a C array for inclusion in the host program.

Architecture:
    ┌──────────┐    ┌──────────┐    ┌──────────┐    ┌──────────┐    ┌──────────┐
    │ .asm     │───>│  Lexer   │───>│ Pre-scan │───>│ Encoder  │───>│ Emitter  │
    │ source   │    │ (lines)  │    │ (count)  │    │ (words)  │    │ (C text) │
    └──────────┘    └──────────┘    └──────────┘    └──────────┘    └──────────┘

    - lexer.py:      line classification and tokenizing, header parsing
    - prescan.py:    pass 1, counts the words the program will produce
    - symbols.py:    32-slot register / variable table
    - opcodes.py:    opcode table and word layout
    - encoder.py:    operand resolution and bit packing
    - directives.py: #starts / #free / #repeat argument parsing
    - assembler.py:  pass 2 driver, padding and #repeat replay
    - emitter.py:    C array rendering and offset placement
"""

__version__ = "1.0.0"

from .errors import (AssemblerError, ConsistencyError, DirectiveError,
                     EncodeError, HeaderError)
from .symbols import SymbolTable, SymbolError
from .opcodes import OPCODES, FILLER_WORD, decode
from .lexer import LineKind, SourceLine, classify_line, read_lines, tokenize
from .encoder import encode_instruction, parse_constant, parse_number
from .prescan import count_instructions
from .emitter import EmitOptions, render_program, render_word, resolve_offset
from .assembler import Assembler, assemble, assemble_to_c
