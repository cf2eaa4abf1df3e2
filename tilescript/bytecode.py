"""
TileScript Bytecode Format

Defines the opcodes, the AST -> bytes encoder and a reader for chunk
bytecode.

Every command starts with a one-byte opcode followed by its payload in
field order. Symbol indices and coordinates are u16 little-endian.
Nested if branches are embedded inline; the runtime tree-walks them.

    Msg        00 text:u16
    TMsg       01 location text:u16
    Tp         02 location location
    If         03 condition branch
    SetFlag    04 flag:u16
    UnsetFlag  05 flag:u16
    ReadFlag   06 flag:u16
    End        07

    location   00 x:u16 y:u16 | 01 tag:u16
    condition  00 flag:u16 (set) | 01 flag:u16 (clear)
    branch     00 cmd cmd (then/else) | 01 cmd (then)

Inside a chunk each top-level command is followed by a 0x00 terminator.
"""

from enum import IntEnum
from typing import List, Optional, Tuple
import struct

from .ast import (
    ASTNode, ASTVisitor, ASTPrinter, Command, Location, Condition, Branch, Symbol,
    Coordinate, Tag, FlagSet, FlagClear, Then, ThenElse,
    Msg, TMsg, Tp, If, SetFlag, UnsetFlag, ReadFlag, End,
)
from .symbols import Symbols, SymbolTable

TERMINATOR = 0x00


class OpCode(IntEnum):
    """Runtime opcodes, one per command variant."""

    MSG = 0
    TMSG = 1
    TP = 2
    IF = 3
    SET_FLAG = 4
    UNSET_FLAG = 5
    READ_FLAG = 6
    END = 7


# Variant names as exposed to the runtime's opcode enum
OPCODE_NAMES = (
    "Msg",
    "TMsg",
    "Tp",
    "If",
    "SetFlag",
    "UnsetFlag",
    "ReadFlag",
    "End",
)


class LocationKind(IntEnum):
    COORDINATE = 0
    NAMED = 1


class ConditionKind(IntEnum):
    FLAG_SET = 0
    FLAG_CLEAR = 1


class BranchKind(IntEnum):
    THEN_ELSE = 0
    THEN = 1


class BytecodeEncoder(ASTVisitor):
    """Encodes AST nodes into bytes."""

    def __init__(self):
        self.code = bytearray()

    def encode(self, node: ASTNode) -> bytes:
        """Encode a command (or any subtree) into a new byte string."""
        self.code = bytearray()
        node.accept(self)
        return bytes(self.code)

    def emit_byte(self, byte: int) -> None:
        self.code.append(byte & 0xFF)

    def emit_u16(self, value: int) -> None:
        """Emit a 16-bit unsigned integer (little-endian)."""
        self.code.extend(struct.pack('<H', value))

    def emit_symbol(self, symbol: Symbol) -> None:
        self.emit_u16(symbol.index)

    # Locations

    def visit_coordinate(self, node: Coordinate) -> None:
        self.emit_byte(LocationKind.COORDINATE)
        self.emit_u16(node.x)
        self.emit_u16(node.y)

    def visit_tag(self, node: Tag) -> None:
        self.emit_byte(LocationKind.NAMED)
        self.emit_symbol(node.tag)

    # Conditions

    def visit_flag_set(self, node: FlagSet) -> None:
        self.emit_byte(ConditionKind.FLAG_SET)
        self.emit_symbol(node.flag)

    def visit_flag_clear(self, node: FlagClear) -> None:
        self.emit_byte(ConditionKind.FLAG_CLEAR)
        self.emit_symbol(node.flag)

    # Branches

    def visit_then(self, node: Then) -> None:
        self.emit_byte(BranchKind.THEN)
        node.command.accept(self)

    def visit_then_else(self, node: ThenElse) -> None:
        self.emit_byte(BranchKind.THEN_ELSE)
        node.then_command.accept(self)
        node.else_command.accept(self)

    # Commands

    def visit_msg(self, node: Msg) -> None:
        self.emit_byte(OpCode.MSG)
        self.emit_symbol(node.text)

    def visit_tmsg(self, node: TMsg) -> None:
        self.emit_byte(OpCode.TMSG)
        node.location.accept(self)
        self.emit_symbol(node.text)

    def visit_tp(self, node: Tp) -> None:
        self.emit_byte(OpCode.TP)
        node.from_.accept(self)
        node.to.accept(self)

    def visit_if(self, node: If) -> None:
        self.emit_byte(OpCode.IF)
        node.condition.accept(self)
        node.branches.accept(self)

    def visit_set_flag(self, node: SetFlag) -> None:
        self.emit_byte(OpCode.SET_FLAG)
        self.emit_symbol(node.flag)

    def visit_unset_flag(self, node: UnsetFlag) -> None:
        self.emit_byte(OpCode.UNSET_FLAG)
        self.emit_symbol(node.flag)

    def visit_read_flag(self, node: ReadFlag) -> None:
        self.emit_byte(OpCode.READ_FLAG)
        self.emit_symbol(node.flag)

    def visit_end(self, node: End) -> None:
        self.emit_byte(OpCode.END)


def encode(node: ASTNode) -> bytes:
    """Encode a command or AST subtree."""
    return BytecodeEncoder().encode(node)


class BytecodeReader:
    """Decodes chunk bytecode back into commands.

    Symbol names are looked up in ``symbols`` when given; otherwise they
    are rendered as ``#<index>``.
    """

    def __init__(self, data: bytes, symbols: Optional[Symbols] = None):
        self.data = bytes(data)
        self.symbols = symbols
        self.offset = 0

    def read_byte(self) -> int:
        if self.offset >= len(self.data):
            raise ValueError(f"Unexpected end of bytecode at offset {self.offset}")
        value = self.data[self.offset]
        self.offset += 1
        return value

    def read_u16(self) -> int:
        if self.offset + 2 > len(self.data):
            raise ValueError(f"Unexpected end of bytecode at offset {self.offset}")
        value = struct.unpack_from('<H', self.data, self.offset)[0]
        self.offset += 2
        return value

    def _name(self, table: Optional[SymbolTable], index: int) -> str:
        if table is not None and index < len(table):
            return table.name_of(index)
        return f"#{index}"

    def read_symbol(self, kind: str) -> Symbol:
        index = self.read_u16()
        table = getattr(self.symbols, kind) if self.symbols is not None else None
        return Symbol(self._name(table, index), index)

    def read_location(self) -> Location:
        kind = self.read_byte()
        if kind == LocationKind.COORDINATE:
            x = self.read_u16()
            return Coordinate(x, self.read_u16())
        if kind == LocationKind.NAMED:
            return Tag(self.read_symbol('tags'))
        raise ValueError(f"Invalid location kind {kind} at offset {self.offset - 1}")

    def read_condition(self) -> Condition:
        kind = self.read_byte()
        if kind == ConditionKind.FLAG_SET:
            return FlagSet(self.read_symbol('flags'))
        if kind == ConditionKind.FLAG_CLEAR:
            return FlagClear(self.read_symbol('flags'))
        raise ValueError(f"Invalid condition kind {kind} at offset {self.offset - 1}")

    def read_branch(self) -> Branch:
        kind = self.read_byte()
        if kind == BranchKind.THEN_ELSE:
            then_command = self.read_command()
            return ThenElse(then_command, self.read_command())
        if kind == BranchKind.THEN:
            return Then(self.read_command())
        raise ValueError(f"Invalid branch kind {kind} at offset {self.offset - 1}")

    def read_command(self) -> Command:
        """Decode one command (without terminator)."""
        start = self.offset
        byte = self.read_byte()
        try:
            opcode = OpCode(byte)
        except ValueError:
            raise ValueError(f"Invalid opcode {byte} at offset {start}") from None

        if opcode == OpCode.MSG:
            return Msg(self.read_symbol('texts'))
        if opcode == OpCode.TMSG:
            location = self.read_location()
            return TMsg(location, self.read_symbol('texts'))
        if opcode == OpCode.TP:
            from_ = self.read_location()
            return Tp(from_, self.read_location())
        if opcode == OpCode.IF:
            condition = self.read_condition()
            return If(condition, self.read_branch())
        if opcode == OpCode.SET_FLAG:
            return SetFlag(self.read_symbol('flags'))
        if opcode == OpCode.UNSET_FLAG:
            return UnsetFlag(self.read_symbol('flags'))
        if opcode == OpCode.READ_FLAG:
            return ReadFlag(self.read_symbol('flags'))
        return End()

    def read_chunk(self) -> List[Tuple[int, Command]]:
        """Decode terminated commands until the data runs out.

        Returns:
            (offset, command) pairs
        """
        commands = []
        while self.offset < len(self.data):
            start = self.offset
            command = self.read_command()
            terminator = self.read_byte()
            if terminator != TERMINATOR:
                raise ValueError(
                    f"Missing terminator after command at offset {start}, got {terminator:#04x}"
                )
            commands.append((start, command))
        return commands


def decode_command(data: bytes, offset: int = 0,
                   symbols: Optional[Symbols] = None) -> Tuple[Command, int]:
    """Decode the command at ``offset``, returning it and the next offset."""
    reader = BytecodeReader(data, symbols)
    reader.offset = offset
    command = reader.read_command()
    return command, reader.offset


def disassemble(data: bytes, symbols: Optional[Symbols] = None) -> str:
    """Disassemble one chunk's bytecode to a human-readable listing."""
    printer = ASTPrinter()
    lines = []
    for offset, command in BytecodeReader(data, symbols).read_chunk():
        opcode = OpCode(data[offset])
        lines.append(f"  {offset:04x}: {opcode.name:10s} {printer.print(command)}")
    return "\n".join(lines)
