"""
Symbol table tests: first-fit allocation, #free, reserved sp/pc slots.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from battelasm.symbols import PC, SP, SymbolError, SymbolTable, parse_register


class TestRegisterSyntax:
    def test_plain_registers(self):
        assert parse_register("r0") == 0
        assert parse_register("R7") == 7
        assert parse_register("r31") == 31

    def test_not_register_syntax(self):
        for token in ("r", "r100", "rx", "reg", "sp", "r1a", "r\u0661", "r\uff13"):
            assert parse_register(token) is None

    def test_out_of_range(self):
        with pytest.raises(SymbolError) as exc:
            parse_register("r45")
        assert exc.value.kind == 'invalid-register'

    def test_numeric_registers_skip_table(self):
        table = SymbolTable()
        assert table.resolve("r12") == 12
        assert list(table.variables()) == []


class TestAllocation:
    def test_reserved_slots(self):
        table = SymbolTable()
        assert table[SP] == 'sp'
        assert table[PC] == 'pc'
        assert table.resolve("sp") == 30
        assert table.resolve("PC") == 31
        assert len(table) == 2

    def test_first_fit_order(self):
        table = SymbolTable()
        assert [table.resolve(n) for n in ("a", "b", "c")] == [0, 1, 2]
        assert table.resolve("b") == 1

    def test_lookup_is_case_insensitive(self):
        table = SymbolTable()
        assert table.resolve("Total") == 0
        assert table.resolve("TOTAL") == 0
        assert table.find("total") == 0

    def test_exhaustion_skips_reserved(self):
        table = SymbolTable()
        indexes = [table.resolve(f"v{i}x") for i in range(30)]
        assert indexes == list(range(30))
        with pytest.raises(SymbolError) as exc:
            table.resolve("one_too_many")
        assert exc.value.kind == 'symbol-table-exhausted'

    def test_variables_disabled(self):
        table = SymbolTable()
        with pytest.raises(SymbolError) as exc:
            table.resolve("x", allow_variables=False)
        assert exc.value.kind == 'invalid-register'
        assert table.resolve("sp", allow_variables=False) == SP

    def test_invalid_names(self):
        table = SymbolTable()
        for name in ("9lives", "#size"):
            with pytest.raises(SymbolError) as exc:
                table.resolve(name)
            assert exc.value.kind == 'invalid-variable-name'


class TestFree:
    def test_free_reuses_slot(self):
        table = SymbolTable()
        table.resolve("a")
        table.resolve("b")
        assert table.free("a") == 0
        assert table.resolve("c") == 0
        assert table.resolve("b") == 1
        assert list(table.variables()) == [("c", 0), ("b", 1)]

    def test_free_is_case_insensitive(self):
        table = SymbolTable()
        table.resolve("Loop")
        assert table.free("LOOP") == 0

    def test_free_unbound(self):
        table = SymbolTable()
        with pytest.raises(SymbolError) as exc:
            table.free("ghost")
        assert exc.value.kind == 'unbound-variable'

    def test_cannot_free_reserved(self):
        table = SymbolTable()
        for name in ("sp", "pc"):
            with pytest.raises(SymbolError):
                table.free(name)
        assert table[SP] == 'sp' and table[PC] == 'pc'

    def test_aliasing_is_reported(self):
        table = SymbolTable()
        table.resolve("a")
        assert table.is_variable_slot(0)
        assert not table.is_variable_slot(1)
        assert not table.is_variable_slot(SP)
