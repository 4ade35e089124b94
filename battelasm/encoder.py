"""
Instruction encoder: one mnemonic + operand tokens -> one 16-bit word.

Operand kinds:
  - immediates (LDI operand, second operand of ADDI/SUBI/SHLI/SHRI):
      compile-time constant  #size  #before  #after  [:delta[:multiplier]]
      binary                 0b1010.0101   (dots are visual separators)
      hexadecimal            0x3F
      decimal                42
  - everything else: a register (r0..r31, sp, pc) or a variable name

Older sources write binary and hex as `b1010` / `x3F`; those prefixes
are still accepted.
"""

from __future__ import annotations
import logging
import re
from typing import List, Optional

from .errors import EncodeError
from .opcodes import OPCODE_SHIFT, lookup, operand_shift
from .symbols import SymbolError, SymbolTable, parse_register

__all__ = ['parse_number', 'parse_constant', 'encode_instruction']

logger = logging.getLogger(__name__)

_BIN_RE = re.compile(r'^[01.]*[01][01.]*$')
_HEX_RE = re.compile(r'^[0-9A-Fa-f]+$')
_DEC_RE = re.compile(r'^[0-9]+$')
_SIGNED_RE = re.compile(r'^[+-]?[0-9]+$')


# ──────────────────────────────────────────────
# Numeric literals
# ──────────────────────────────────────────────

def parse_number(text: str, line_num: int = 0) -> int:
    """Parse a non-negative binary, hex or decimal literal."""
    lowered = text.lower()

    if lowered.startswith('0b') or lowered.startswith('b'):
        digits = text[2:] if lowered.startswith('0b') else text[1:]
        if not _BIN_RE.match(digits):
            raise EncodeError(f"Invalid binary number: {text}", line_num,
                              kind='invalid-number')
        return int(digits.replace('.', ''), 2)

    if lowered.startswith('0x') or lowered.startswith('x'):
        digits = text[2:] if lowered.startswith('0x') else text[1:]
        if not _HEX_RE.match(digits):
            raise EncodeError(f"Invalid hexadecimal number: {text}", line_num,
                              kind='invalid-number')
        return int(digits, 16)

    if not _DEC_RE.match(text):
        raise EncodeError(f"Invalid decimal number: {text}", line_num,
                          kind='invalid-number')
    return int(text)


# ──────────────────────────────────────────────
# Compile-time constants
# ──────────────────────────────────────────────

def parse_constant(text: str, program_size: int, instruction_num: int,
                   line_num: int = 0) -> Optional[int]:
    """Evaluate `#name[:delta[:multiplier]]`, or return None for non-constants.

    size   -> program_size * multiplier + delta
    before -> instruction_num * multiplier + delta
    after  -> (program_size - instruction_num - 1) * multiplier + delta
    """
    if not text.startswith('#'):
        return None

    parts = text[1:].split(':')
    name = parts[0]
    if len(parts) > 3 or not all(_SIGNED_RE.match(p) for p in parts[1:]):
        raise EncodeError(f"Malformed compile-time constant '{text}'", line_num,
                          kind='invalid-number')
    delta = int(parts[1]) if len(parts) > 1 else 0
    multiplier = int(parts[2]) if len(parts) > 2 else 1

    key = name.lower()
    if key == 'size':
        base = program_size
    elif key == 'before':
        base = instruction_num
    elif key == 'after':
        base = program_size - instruction_num - 1
    else:
        raise EncodeError(f"Unknown compile-time constant '{name}'", line_num,
                          kind='unknown-constant')
    return base * multiplier + delta


def _parse_immediate(text: str, limit: int, program_size: int,
                     instruction_num: int, line_num: int) -> int:
    val = parse_constant(text, program_size, instruction_num, line_num)
    if val is None:
        val = parse_number(text, line_num)
    if val < 0 or val >= limit:
        exp = limit.bit_length() - 1
        raise EncodeError(f"Number not in range [0, 2^{exp}): '{text}' -> {val}",
                          line_num, kind='value-out-of-range')
    return val


def _resolve_register(text: str, symbols: SymbolTable, allow_variables: bool,
                      line_num: int) -> int:
    try:
        index = symbols.resolve(text, allow_variables)
    except SymbolError as e:
        raise EncodeError(str(e), line_num, kind=e.kind) from e
    if parse_register(text) is not None and symbols.is_variable_slot(index):
        logger.warning("Line %d: %s aliases variable '%s'",
                       line_num, text, symbols[index])
    return index


# ──────────────────────────────────────────────
# Instruction encoding
# ──────────────────────────────────────────────

def encode_instruction(mnemonic: str, operands: List[str], program_size: int,
                       instruction_num: int, symbols: SymbolTable,
                       allow_variables: bool = True, line_num: int = 0) -> int:
    """Encode one instruction into a 16-bit word.

    Operands are checked left to right, so an excess operand is reported
    before any later operand is resolved.
    """
    op = lookup(mnemonic)
    if op is None:
        raise EncodeError(f"Unknown instruction: '{mnemonic}'", line_num,
                          kind='unknown-instruction')

    word = op.code << OPCODE_SHIFT

    for slot, text in enumerate(operands):
        if slot >= op.arity:
            raise EncodeError(f"Too many parameters ({op.arity} expected)", line_num,
                              kind='too-many-parameters')

        if op.is_immediate(slot):
            val = _parse_immediate(text, op.immediate_limit, program_size,
                                   instruction_num, line_num)
            if op.arity == 1:
                word |= val
            else:
                word |= val << operand_shift(slot)
        else:
            reg = _resolve_register(text, symbols, allow_variables, line_num)
            word |= reg << operand_shift(slot)

    if len(operands) < op.arity:
        raise EncodeError(f"Too few parameters ({op.arity} expected)", line_num,
                          kind='too-few-parameters')

    return word
