"""
BattelASM opcode table.

Every instruction is one 16-bit word:

    15      10 9       5 4       0
    ┌─────────┬─────────┬─────────┐
    │ opcode  │ operand0│ operand1│
    └─────────┴─────────┴─────────┘

The operand payload depends on the opcode class:
  - FLAG           no operands, payload is zero
  - LDI            one immediate, OR-ed into the word unshifted (0..0xFFFF)
  - NOT/JMP/PUSH/POP
                   one register in bits 9-5
  - ADDI/SUBI/SHLI/SHRI
                   register in bits 9-5, 6-bit immediate in bits 5-0
                   (bit 5 is shared, the two are OR-ed together)
  - everything else
                   two registers, bits 9-5 and 4-0
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

__all__ = [
    'Opcode', 'OPCODES', 'lookup', 'decode', 'operand_shift',
    'OPCODE_SHIFT', 'REGISTER_BITS', 'FILLER_WORD', 'WORD_MASK',
    'LDI_LIMIT', 'SHORT_IMM_LIMIT',
]

OPCODE_SHIFT = 10
REGISTER_BITS = 5
WORD_MASK = 0xFFFF

LDI_LIMIT = 1 << 16        # LDI operand range: [0, 2^16)
SHORT_IMM_LIMIT = 1 << 6   # *I immediate range: [0, 2^6)

# Immediate kinds
IMM_NONE = None
IMM_WIDE = 'wide'    # LDI
IMM_SHORT = 'short'  # ADDI/SUBI/SHLI/SHRI, second operand


@dataclass(frozen=True)
class Opcode:
    """One mnemonic: numeric code, operand count, and which slot is immediate."""
    mnemonic: str
    code: int
    arity: int
    immediate: Optional[str] = IMM_NONE
    immediate_slot: int = -1

    def is_immediate(self, slot: int) -> bool:
        return self.immediate is not None and slot == self.immediate_slot

    @property
    def immediate_limit(self) -> int:
        return LDI_LIMIT if self.immediate == IMM_WIDE else SHORT_IMM_LIMIT


# ──────────────────────────────────────────────
# Opcode table
# ──────────────────────────────────────────────

OPCODES: Dict[str, Opcode] = {}


def _op(mnemonic: str, code: int, arity: int,
        immediate: Optional[str] = IMM_NONE, immediate_slot: int = -1):
    """Register an opcode entry."""
    OPCODES[mnemonic] = Opcode(mnemonic, code, arity, immediate, immediate_slot)


# ── Zero operands ──
_op('FLAG', 0x3F, 0)

# ── Load immediate ──
_op('LDI',  0x00, 1, IMM_WIDE, 0)

# ── Register / register ──
_op('MV',   0x20, 2)
_op('ADD',  0x21, 2)
_op('SUB',  0x22, 2)
_op('NOT',  0x23, 1)
_op('AND',  0x24, 2)
_op('OR',   0x25, 2)
_op('XOR',  0x26, 2)
_op('SHL',  0x27, 2)
_op('SHR',  0x28, 2)

# ── Jumps ──
_op('JMP',  0x29, 1)
_op('JZ',   0x2A, 2)
_op('JNZ',  0x2B, 2)
_op('JN',   0x2C, 2)
_op('JP',   0x2D, 2)

# ── Memory / stack ──
_op('LD',   0x2E, 2)
_op('ST',   0x2F, 2)
_op('PUSH', 0x30, 1)
_op('POP',  0x31, 1)

# ── Register / 6-bit immediate ──
_op('ADDI', 0x32, 2, IMM_SHORT, 1)
_op('SUBI', 0x33, 2, IMM_SHORT, 1)
_op('SHLI', 0x34, 2, IMM_SHORT, 1)
_op('SHRI', 0x35, 2, IMM_SHORT, 1)

FILLER_WORD = OPCODES['FLAG'].code << OPCODE_SHIFT   # 0b1111110000000000

_BY_CODE: Dict[int, Opcode] = {op.code: op for op in OPCODES.values()}


def lookup(mnemonic: str) -> Optional[Opcode]:
    """Case-insensitive mnemonic lookup. Returns None for unknown mnemonics."""
    return OPCODES.get(mnemonic.upper())


def operand_shift(slot: int) -> int:
    """Bit position of operand `slot` (0 -> bits 9-5, 1 -> bits 4-0)."""
    return (1 - slot) * REGISTER_BITS


def decode(word: int) -> Tuple[Optional[Opcode], Tuple[int, ...]]:
    """Split an encoded word back into (opcode, operand values).

    LDI words carry a 16-bit immediate in the same bits as the opcode,
    so anything with a clear top bit decodes as LDI. LDI values of 0x8000
    and above are indistinguishable from other opcodes.
    """
    word &= WORD_MASK
    if not word & 0x8000:
        return OPCODES['LDI'], (word,)

    op = _BY_CODE.get(word >> OPCODE_SHIFT)
    if op is None:
        return None, ()
    first = (word >> operand_shift(0)) & 0x1F
    if op.arity == 0:
        return op, ()
    if op.arity == 1:
        return op, (first,)
    if op.immediate == IMM_SHORT:
        return op, (first, word & (SHORT_IMM_LIMIT - 1))
    return op, (first, word & 0x1F)
