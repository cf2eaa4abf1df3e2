"""
TileScript Abstract Syntax Tree

Defines AST node classes for the TileScript language.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


# =============================================================================
# Base Classes
# =============================================================================

class ASTNode(ABC):
    """Base class for all AST nodes."""

    @abstractmethod
    def accept(self, visitor: 'ASTVisitor') -> Any:
        """Accept a visitor for traversal."""
        pass


class Location(ASTNode):
    """Base class for teleport and message targets."""
    pass


class Condition(ASTNode):
    """Base class for if conditions."""
    pass


class Branch(ASTNode):
    """Base class for the arms of an if command."""
    pass


class Command(ASTNode):
    """Base class for command nodes."""
    pass


@dataclass
class Symbol:
    """An interned name: a text literal, flag or tag and its table index."""
    name: str
    index: int


# =============================================================================
# Locations
# =============================================================================

@dataclass
class Coordinate(Location):
    """Tile coordinates, either literal or resolved from a tag."""
    x: int
    y: int

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_coordinate(self)


@dataclass
class Tag(Location):
    """Named location kept as a reference into the tag table."""
    tag: Symbol

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_tag(self)


# =============================================================================
# Conditions
# =============================================================================

@dataclass
class FlagSet(Condition):
    """True when the flag is set (`if flag_x`)."""
    flag: Symbol

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_flag_set(self)


@dataclass
class FlagClear(Condition):
    """True when the flag is clear (`if !flag_x`)."""
    flag: Symbol

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_flag_clear(self)


# =============================================================================
# Branches
# =============================================================================

@dataclass
class Then(Branch):
    """Single-armed if."""
    command: 'Command'

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_then(self)


@dataclass
class ThenElse(Branch):
    """If with both arms."""
    then_command: 'Command'
    else_command: 'Command'

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_then_else(self)


# =============================================================================
# Commands
# =============================================================================

@dataclass
class Msg(Command):
    """`msg {text}`"""
    text: Symbol

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_msg(self)


@dataclass
class TMsg(Command):
    """`tmsg <location> {text}`"""
    location: Location
    text: Symbol

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_tmsg(self)


@dataclass
class Tp(Command):
    """`tp <from> <to>`"""
    from_: Location
    to: Location

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_tp(self)


@dataclass
class If(Command):
    """`if <cond> then <cmd> [else <cmd> endif]`"""
    condition: Condition
    branches: Branch

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_if(self)


@dataclass
class SetFlag(Command):
    flag: Symbol

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_set_flag(self)


@dataclass
class UnsetFlag(Command):
    flag: Symbol

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_unset_flag(self)


@dataclass
class ReadFlag(Command):
    flag: Symbol

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_read_flag(self)


@dataclass
class End(Command):
    """Stops the script. Has no payload."""

    def accept(self, visitor: 'ASTVisitor') -> Any:
        return visitor.visit_end(self)


@dataclass(frozen=True)
class Script:
    """One compiled script object placed on the tile grid."""
    script_id: int
    tile_x: int
    tile_y: int
    body: List[Command] = field(default_factory=list)
    source: Optional[str] = None


# =============================================================================
# Visitor
# =============================================================================

class ASTVisitor(ABC):
    """Base class for AST visitors."""

    # Locations
    @abstractmethod
    def visit_coordinate(self, node: Coordinate) -> Any:
        pass

    @abstractmethod
    def visit_tag(self, node: Tag) -> Any:
        pass

    # Conditions
    @abstractmethod
    def visit_flag_set(self, node: FlagSet) -> Any:
        pass

    @abstractmethod
    def visit_flag_clear(self, node: FlagClear) -> Any:
        pass

    # Branches
    @abstractmethod
    def visit_then(self, node: Then) -> Any:
        pass

    @abstractmethod
    def visit_then_else(self, node: ThenElse) -> Any:
        pass

    # Commands
    @abstractmethod
    def visit_msg(self, node: Msg) -> Any:
        pass

    @abstractmethod
    def visit_tmsg(self, node: TMsg) -> Any:
        pass

    @abstractmethod
    def visit_tp(self, node: Tp) -> Any:
        pass

    @abstractmethod
    def visit_if(self, node: If) -> Any:
        pass

    @abstractmethod
    def visit_set_flag(self, node: SetFlag) -> Any:
        pass

    @abstractmethod
    def visit_unset_flag(self, node: UnsetFlag) -> Any:
        pass

    @abstractmethod
    def visit_read_flag(self, node: ReadFlag) -> Any:
        pass

    @abstractmethod
    def visit_end(self, node: End) -> Any:
        pass


# =============================================================================
# AST Printer (for debugging and disassembly listings)
# =============================================================================

class ASTPrinter(ASTVisitor):
    """Renders commands back into script-like text."""

    def print(self, node: ASTNode) -> str:
        return node.accept(self)

    def visit_coordinate(self, node: Coordinate) -> str:
        return f"{node.x} {node.y}"

    def visit_tag(self, node: Tag) -> str:
        return f"@{node.tag.name}"

    def visit_flag_set(self, node: FlagSet) -> str:
        return node.flag.name

    def visit_flag_clear(self, node: FlagClear) -> str:
        return f"!{node.flag.name}"

    def visit_then(self, node: Then) -> str:
        return f"then {node.command.accept(self)} endif"

    def visit_then_else(self, node: ThenElse) -> str:
        then = node.then_command.accept(self)
        else_ = node.else_command.accept(self)
        return f"then {then} else {else_} endif"

    def visit_msg(self, node: Msg) -> str:
        return f"msg {{{node.text.name}}}"

    def visit_tmsg(self, node: TMsg) -> str:
        return f"tmsg {node.location.accept(self)} {{{node.text.name}}}"

    def visit_tp(self, node: Tp) -> str:
        return f"tp {node.from_.accept(self)} {node.to.accept(self)}"

    def visit_if(self, node: If) -> str:
        return f"if {node.condition.accept(self)} {node.branches.accept(self)}"

    def visit_set_flag(self, node: SetFlag) -> str:
        return f"setflag {node.flag.name}"

    def visit_unset_flag(self, node: UnsetFlag) -> str:
        return f"unsetflag {node.flag.name}"

    def visit_read_flag(self, node: ReadFlag) -> str:
        return f"readflag {node.flag.name}"

    def visit_end(self, node: End) -> str:
        return "end"


# =============================================================================
# Symbol renumbering
# =============================================================================

class SymbolRemapper(ASTVisitor):
    """Rebuilds a command tree with symbol indices translated.

    ``remap`` maps a table kind ('tag', 'flag', 'text') to a
    {old index: new index} dictionary.
    """

    def __init__(self, remap: Dict[str, Dict[int, int]]):
        self.remap = remap

    def _symbol(self, kind: str, symbol: Symbol) -> Symbol:
        return Symbol(symbol.name, self.remap[kind][symbol.index])

    def visit_coordinate(self, node: Coordinate) -> Coordinate:
        return Coordinate(node.x, node.y)

    def visit_tag(self, node: Tag) -> Tag:
        return Tag(self._symbol('tag', node.tag))

    def visit_flag_set(self, node: FlagSet) -> FlagSet:
        return FlagSet(self._symbol('flag', node.flag))

    def visit_flag_clear(self, node: FlagClear) -> FlagClear:
        return FlagClear(self._symbol('flag', node.flag))

    def visit_then(self, node: Then) -> Then:
        return Then(node.command.accept(self))

    def visit_then_else(self, node: ThenElse) -> ThenElse:
        return ThenElse(node.then_command.accept(self), node.else_command.accept(self))

    def visit_msg(self, node: Msg) -> Msg:
        return Msg(self._symbol('text', node.text))

    def visit_tmsg(self, node: TMsg) -> TMsg:
        return TMsg(node.location.accept(self), self._symbol('text', node.text))

    def visit_tp(self, node: Tp) -> Tp:
        return Tp(node.from_.accept(self), node.to.accept(self))

    def visit_if(self, node: If) -> If:
        return If(node.condition.accept(self), node.branches.accept(self))

    def visit_set_flag(self, node: SetFlag) -> SetFlag:
        return SetFlag(self._symbol('flag', node.flag))

    def visit_unset_flag(self, node: UnsetFlag) -> UnsetFlag:
        return UnsetFlag(self._symbol('flag', node.flag))

    def visit_read_flag(self, node: ReadFlag) -> ReadFlag:
        return ReadFlag(self._symbol('flag', node.flag))

    def visit_end(self, node: End) -> End:
        return End()
