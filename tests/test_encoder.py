"""
Encoder Tests for the BattelASM assembler.

Checks word layout per opcode class, numeric literal and compile-time
constant parsing, operand-count checking and register/variable operands.
"""
import logging
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from battelasm.encoder import encode_instruction, parse_constant, parse_number
from battelasm.errors import EncodeError
from battelasm.opcodes import FILLER_WORD, OPCODES, decode
from battelasm.symbols import SymbolTable


def _enc(text: str, program_size: int = 0, instruction_num: int = 0,
         symbols: SymbolTable = None, variables: bool = True) -> int:
    """Encode one instruction written as source text."""
    tokens = text.replace(',', ' ').split()
    return encode_instruction(tokens[0], tokens[1:], program_size, instruction_num,
                              symbols or SymbolTable(), variables, line_num=1)


class TestWordLayout:
    """Opcode in bits 15-10, operands packed below it."""

    def test_flag_is_filler(self):
        assert _enc("FLAG") == FILLER_WORD == 0b1111110000000000

    def test_ldi_is_raw_value(self):
        assert _enc("LDI 19") == 19
        assert _enc("LDI 65535") == 0xFFFF

    def test_two_registers(self):
        assert _enc("ADD r1, r0") == 0x8420
        assert _enc("MV r1, pc") == 0x803F
        assert _enc("ST r3, r4") == 0xBC64
        assert _enc("SHL r3, r29") == 0x9C7D

    def test_one_register(self):
        assert _enc("NOT r3") == 0x8C60
        assert _enc("JMP r1") == 0xA420
        assert _enc("PUSH r1") == 0xC020
        assert _enc("POP r2") == 0xC440

    def test_register_and_short_immediate(self):
        assert _enc("ADDI r0, 63") == 0xC83F
        assert _enc("ADDI r2, 5") == 0xC845
        assert _enc("SHRI r0, 0b101") == (0x35 << 10) | 5

    def test_commas_are_whitespace(self):
        assert _enc("ADD R1, R0") == _enc("ADD R1 R0") == _enc("ADD R1,R0")

    def test_every_opcode_in_top_bits(self):
        for name, op in OPCODES.items():
            operands = {0: "", 1: "r0" if name != 'LDI' else "0", 2: "r0 r0"}[op.arity]
            if op.immediate == 'short':
                operands = "r0 0"
            word = _enc(f"{name} {operands}")
            assert word >> 10 == op.code, name


class TestCaseInsensitivity:
    def test_mnemonics(self):
        assert _enc("LDI 5") == _enc("ldi 5") == _enc("LdI 5")

    def test_registers(self):
        assert _enc("mv r5, r1") == _enc("MV R5, R1")
        assert _enc("mv SP, PC") == _enc("mv sp, pc") == 0x8000 | (30 << 5) | 31

    def test_variables(self):
        table = SymbolTable()
        assert _enc("mv Count, r1", symbols=table) == _enc("mv COUNT, r1", symbols=table)
        assert table.find("count") == 0


class TestNumbers:
    def test_decimal(self):
        assert parse_number("0") == 0
        assert parse_number("1234") == 1234

    def test_binary_with_separators(self):
        assert parse_number("0b1111.0000") == 240
        assert parse_number("0B1.0.1") == 5

    def test_hexadecimal(self):
        assert parse_number("0xFF") == 255
        assert parse_number("0Xbeef") == 0xBEEF

    def test_bare_prefixes(self):
        assert parse_number("b101000111000000") == 0x51C0
        assert parse_number("xFF") == 255

    @pytest.mark.parametrize("text", ["-1", "12a", "0x", "0x1G", "0b102", "b", "0b..", "1.5"])
    def test_invalid(self, text):
        with pytest.raises(EncodeError) as exc:
            parse_number(text, line_num=7)
        assert exc.value.kind == 'invalid-number'
        assert exc.value.line_num == 7


class TestConstants:
    def test_not_a_constant(self):
        assert parse_constant("42", 10, 3) is None

    def test_size_before_after(self):
        assert parse_constant("#size", 9, 0) == 9
        assert parse_constant("#before", 9, 6) == 6
        assert parse_constant("#after", 9, 5) == 3

    def test_delta_and_multiplier(self):
        assert parse_constant("#before:-2", 9, 6) == 4
        assert parse_constant("#before:+10:-1", 9, 8) == 2
        assert parse_constant("#SIZE:1:2", 9, 0) == 19

    def test_unknown_constant(self):
        with pytest.raises(EncodeError) as exc:
            parse_constant("#length", 9, 0)
        assert exc.value.kind == 'unknown-constant'

    @pytest.mark.parametrize("text", ["#size:x", "#size:1:2:3", "#after::"])
    def test_malformed(self, text):
        with pytest.raises(EncodeError):
            parse_constant(text, 9, 0)

    def test_constant_as_short_immediate(self):
        assert _enc("ADDI r0, #after", program_size=10, instruction_num=2) == 0xC800 | 7


class TestRanges:
    def test_ldi_full_range(self):
        for k in range(1 << 16):
            word = _enc(f"LDI {k}")
            assert word == k
            if k < 0x8000:
                op, operands = decode(word)
                assert op.mnemonic == 'LDI' and operands == (k,)

    def test_short_immediate_full_range(self):
        for name in ('ADDI', 'SUBI', 'SHLI', 'SHRI'):
            for k in range(64):
                op, operands = decode(_enc(f"{name} r0, {k}"))
                assert op.mnemonic == name
                assert operands[1] == k

    def test_ldi_out_of_range(self):
        with pytest.raises(EncodeError) as exc:
            _enc("LDI 65536")
        assert exc.value.kind == 'value-out-of-range'
        assert "'65536' -> 65536" in str(exc.value)

    def test_short_immediate_out_of_range(self):
        with pytest.raises(EncodeError) as exc:
            _enc("ADDI r1, 0x40")
        assert exc.value.kind == 'value-out-of-range'
        assert "'0x40' -> 64" in str(exc.value)

    def test_negative_constant_result(self):
        with pytest.raises(EncodeError) as exc:
            _enc("LDI #before:-5", instruction_num=2)
        assert exc.value.kind == 'value-out-of-range'


class TestArity:
    def test_flag_takes_nothing(self):
        with pytest.raises(EncodeError) as exc:
            _enc("FLAG r1")
        assert exc.value.kind == 'too-many-parameters'
        assert exc.value.line_num == 1

    def test_add_needs_two(self):
        with pytest.raises(EncodeError) as exc:
            _enc("ADD r1")
        assert exc.value.kind == 'too-few-parameters'

    def test_one_operand_opcodes(self):
        for name in ('LDI', 'NOT', 'JMP', 'PUSH', 'POP'):
            with pytest.raises(EncodeError) as exc:
                _enc(f"{name} r1 r2" if name != 'LDI' else "LDI 1 2")
            assert exc.value.kind == 'too-many-parameters'
            with pytest.raises(EncodeError) as exc:
                _enc(name)
            assert exc.value.kind == 'too-few-parameters'

    def test_excess_reported_before_bad_operand(self):
        with pytest.raises(EncodeError) as exc:
            _enc("JMP r1 notanumber!")
        assert exc.value.kind == 'too-many-parameters'

    def test_unknown_instruction(self):
        with pytest.raises(EncodeError) as exc:
            _enc("NOP")
        assert exc.value.kind == 'unknown-instruction'
        assert "'NOP'" in str(exc.value)


class TestRegisterOperands:
    def test_register_out_of_range(self):
        with pytest.raises(EncodeError) as exc:
            _enc("MV r32, r0")
        assert exc.value.kind == 'invalid-register'

    def test_variables_disabled(self):
        with pytest.raises(EncodeError) as exc:
            _enc("MV total, r0", variables=False)
        assert exc.value.kind == 'invalid-register'
        assert _enc("MV sp, r0", variables=False) == 0x8000 | (30 << 5)

    def test_bad_variable_names(self):
        for name in ("1st", "#size"):
            with pytest.raises(EncodeError) as exc:
                _enc(f"MV {name}, r0")
            assert exc.value.kind == 'invalid-variable-name'

    def test_numeric_register_aliases_variable(self, caplog):
        table = SymbolTable()
        _enc("MV a, r2", symbols=table)          # a -> slot 0
        _enc("MV b, r2", symbols=table)          # b -> slot 1
        with caplog.at_level(logging.WARNING, logger="battelasm"):
            by_number = _enc("MV r1, r2", symbols=table)
        assert by_number == _enc("MV b, r2", symbols=table)
        assert "aliases variable 'b'" in caplog.text
