"""
Register / variable symbol table.

BattelASM has 32 registers. Variables are nothing more than names for
registers: the first time an unknown name is used it is bound to the
lowest free slot, and `#free name` drops the binding again so the slot can
be handed out to the next new name.

Slots 30 and 31 are permanently bound to `sp` and `pc`.

Numeric register syntax (`r0`..`r31`) never touches the table, so `r3` and
a variable that happens to live in slot 3 refer to the same register.
That aliasing is part of the language; the table only reports it.
"""

from __future__ import annotations
import logging
import re
from typing import Dict, Iterator, List, Optional, Tuple

__all__ = [
    'SymbolTable', 'SymbolError', 'parse_register',
    'NUM_REGISTERS', 'SP', 'PC', 'RESERVED',
]

NUM_REGISTERS = 32
SP = 30
PC = 31

RESERVED: Dict[int, str] = {SP: 'sp', PC: 'pc'}

logger = logging.getLogger(__name__)

_REGISTER_RE = re.compile(r'^[rR]([0-9]{1,2})$')


class SymbolError(Exception):
    """Raised on symbol table errors. Carries a machine-readable `kind`."""
    def __init__(self, kind: str, message: str):
        self.kind = kind
        super().__init__(message)


def parse_register(token: str) -> Optional[int]:
    """Return the index for `rN`/`RN` syntax, or None if `token` isn't one.

    Raises SymbolError for well-formed register syntax outside 0..31.
    """
    m = _REGISTER_RE.match(token)
    if not m:
        return None
    num = int(m.group(1))
    if num >= NUM_REGISTERS:
        raise SymbolError('invalid-register', f"Unknown register: '{token}'")
    return num


class SymbolTable:
    """Fixed 32-slot name -> register mapping with first-fit allocation."""

    def __init__(self):
        self._slots: List[str] = [''] * NUM_REGISTERS
        for index, name in RESERVED.items():
            self._slots[index] = name

    def __len__(self) -> int:
        return sum(1 for name in self._slots if name)

    def __getitem__(self, index: int) -> str:
        return self._slots[index]

    def find(self, name: str) -> Optional[int]:
        """Case-insensitive lookup of a bound name."""
        folded = name.lower()
        for index, bound in enumerate(self._slots):
            if bound and bound.lower() == folded:
                return index
        return None

    def resolve(self, token: str, allow_variables: bool = True) -> int:
        """Resolve a register operand to its slot index.

        `rN` resolves directly; `sp`/`pc` resolve to their fixed slots.
        Any other name is a variable: looked up, or bound to the first free
        slot when unseen.
        """
        num = parse_register(token)
        if num is not None:
            return num

        reserved = self.find(token)
        if reserved in RESERVED:
            return reserved

        if not allow_variables:
            raise SymbolError('invalid-register', f"Unknown register: '{token}'")

        if token[0].isdigit() or token[0] == '#':
            raise SymbolError('invalid-variable-name',
                              f"Invalid variable name: '{token}'")

        if reserved is not None:
            return reserved
        return self._allocate(token)

    def _allocate(self, name: str) -> int:
        for index, bound in enumerate(self._slots):
            if index in RESERVED:
                continue
            if not bound:
                self._slots[index] = name
                logger.debug("bound variable %s -> r%d", name, index)
                return index
        raise SymbolError('symbol-table-exhausted', f"Too many variables: '{name}'")

    def free(self, name: str) -> int:
        """Drop the binding for `name` and return the slot it occupied."""
        index = self.find(name)
        if index is None or index in RESERVED:
            raise SymbolError('unbound-variable',
                              f"Trying to free the variable {name} which isn't in use")
        self._slots[index] = ''
        return index

    def is_variable_slot(self, index: int) -> bool:
        """True if `index` currently holds a user variable."""
        return index not in RESERVED and bool(self._slots[index])

    def variables(self) -> Iterator[Tuple[str, int]]:
        """Yield live (name, index) variable bindings in slot order."""
        for index, name in enumerate(self._slots):
            if name and index not in RESERVED:
                yield name, index
