"""
TileScript Bytecode Tests

Tests for command encoding and the chunk disassembler.
"""

import pytest
from tilescript import parse_script
from tilescript.bytecode import (
    OpCode, OPCODE_NAMES, BytecodeReader, encode, decode_command, disassemble,
)
from tilescript.symbols import Symbols
from tilescript.ast import (
    Symbol, Coordinate, Tag, FlagSet, FlagClear, Then, ThenElse,
    Msg, TMsg, Tp, If, SetFlag, UnsetFlag, ReadFlag, End,
)


class TestOpcodes:
    """Opcode numbering tests."""

    def test_declaration_order(self):
        assert [op.value for op in OpCode] == list(range(8))

    def test_names_match_opcodes(self):
        assert len(OPCODE_NAMES) == len(OpCode)
        assert OPCODE_NAMES[OpCode.TP] == "Tp"
        assert OPCODE_NAMES[OpCode.END] == "End"


class TestEncodeCommands:
    """Byte layout of each command."""

    @pytest.mark.parametrize("command,expected", [
        (Msg(Symbol("a", 0)), [0, 0, 0]),
        (Msg(Symbol("b", 0x0102)), [0, 0x02, 0x01]),
        (SetFlag(Symbol("flag_a", 3)), [4, 3, 0]),
        (UnsetFlag(Symbol("flag_a", 3)), [5, 3, 0]),
        (ReadFlag(Symbol("flag_a", 256)), [6, 0, 1]),
        (End(), [7]),
    ])
    def test_simple_commands(self, command, expected):
        assert list(encode(command)) == expected

    def test_tmsg(self):
        command = TMsg(Coordinate(1, 2), Symbol("hi", 5))
        assert list(encode(command)) == [1, 0, 1, 0, 2, 0, 5, 0]

    def test_tp_coordinates(self):
        command = Tp(Coordinate(256, 256), Coordinate(0, 0))
        assert list(encode(command)) == [2, 0, 0, 1, 0, 1, 0, 0, 0, 0, 0]

    def test_tp_named(self):
        command = Tp(Tag(Symbol("door", 2)), Coordinate(3, 4))
        assert list(encode(command)) == [2, 1, 2, 0, 0, 3, 0, 4, 0]


class TestEncodeIf:
    """Inline branch encoding."""

    def test_then(self):
        command = If(FlagSet(Symbol("flag_x", 0)), Then(SetFlag(Symbol("flag_y", 1))))
        assert list(encode(command)) == [3, 0, 0, 0, 1, 4, 1, 0]

    def test_then_else(self):
        command = If(
            FlagClear(Symbol("flag_x", 0)),
            ThenElse(SetFlag(Symbol("flag_y", 1)), UnsetFlag(Symbol("flag_y", 1))),
        )
        assert list(encode(command)) == [3, 1, 0, 0, 0, 4, 1, 0, 5, 1, 0]

    def test_nested_if_is_inlined(self):
        body = parse_script(
            "if flag_X then if !flag_Y then msg {deep} endif endif;", Symbols()
        )
        assert list(encode(body[0])) == [
            3, 0, 0, 0, 1,      # if flag_X then
            3, 1, 1, 0, 1,      # if !flag_Y then
            0, 0, 0,            # msg {deep}
        ]

    def test_encode_subtree(self):
        assert list(encode(Coordinate(7, 9))) == [0, 7, 0, 9, 0]
        assert list(encode(FlagClear(Symbol("flag_z", 2)))) == [1, 2, 0]


class TestReader:
    """Decoding and disassembly tests."""

    def test_decode_command(self):
        command = If(
            FlagSet(Symbol("#0", 0)),
            ThenElse(Tp(Coordinate(1, 2), Tag(Symbol("#3", 3))), End()),
        )
        data = encode(command) + b"\xff"
        decoded, offset = decode_command(data)
        assert decoded == command
        assert offset == len(data) - 1

    def test_names_from_symbols(self):
        symbols = Symbols()
        body = parse_script("msg {hello} setflag flag_open;", symbols)
        data = b"".join(encode(cmd) + b"\x00" for cmd in body)
        commands = BytecodeReader(data, symbols).read_chunk()
        assert commands == [
            (0, Msg(Symbol("hello", 0))),
            (4, SetFlag(Symbol("flag_open", 0))),
        ]

    def test_disassemble(self):
        symbols = Symbols()
        body = parse_script(
            "msg {hi} if !flag_a then tp 1 2 3 4 else readflag flag_b endif;", symbols
        )
        data = b"".join(encode(cmd) + b"\x00" for cmd in body)
        listing = disassemble(data, symbols).splitlines()
        assert listing[0].split() == ["0000:", "MSG", "msg", "{hi}"]
        assert listing[1].startswith("  0004: IF")
        assert listing[1].endswith(
            "if !flag_a then tp 1 2 3 4 else readflag flag_b endif"
        )

    def test_missing_terminator(self):
        data = encode(Msg(Symbol("a", 0))) + b"\x07"
        with pytest.raises(ValueError, match="Missing terminator"):
            BytecodeReader(data).read_chunk()

    def test_invalid_opcode(self):
        with pytest.raises(ValueError, match="Invalid opcode 9"):
            decode_command(b"\x09\x00")

    def test_truncated(self):
        with pytest.raises(ValueError, match="Unexpected end"):
            decode_command(b"\x02\x00\x01")

    @pytest.mark.parametrize("data", [
        b"",
        b"\x03\x00\x00\x00\x01",
        b"\x03\x00\x00\x00",
    ])
    def test_truncated_command(self, data):
        with pytest.raises(ValueError, match="Unexpected end"):
            decode_command(data)

    def test_truncated_after_terminator(self):
        data = b"\x00\x00\x00\x00\x03\x00\x00\x00\x00"
        with pytest.raises(ValueError, match="Unexpected end of bytecode at offset 9"):
            BytecodeReader(data).read_chunk()
