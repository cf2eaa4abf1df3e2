"""
TileScript Token Definitions

Defines all token types and the Token class for lexical analysis.
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any


class TokenType(Enum):
    """All token types in TileScript."""

    IDENTIFIER = auto()    # msg, flag_door, ...
    NUMBER = auto()        # 0..65535
    TEXT = auto()          # {free text}
    TAG = auto()           # @name
    NOT = auto()           # !name
    END = auto()           # ;


# Command keywords. Keywords are lexed as identifiers; the parser decides.
MSG = 'msg'
TMSG = 'tmsg'
TP = 'tp'
IF = 'if'
SET_FLAG = 'setflag'
UNSET_FLAG = 'unsetflag'
READ_FLAG = 'readflag'

# Structural keywords of the if command
THEN = 'then'
ELSE = 'else'
ENDIF = 'endif'

COMMAND_KEYWORDS = frozenset({MSG, TMSG, TP, IF, SET_FLAG, UNSET_FLAG, READ_FLAG})
FLAG_COMMANDS = frozenset({SET_FLAG, UNSET_FLAG, READ_FLAG})


@dataclass
class Token:
    """Represents a single token from a script's source text."""

    type: TokenType
    lexeme: str
    value: Any
    column: int

    def __repr__(self) -> str:
        if self.value is not None:
            return f"Token({self.type.name}, {self.lexeme!r}, {self.value!r}, col={self.column})"
        return f"Token({self.type.name}, {self.lexeme!r}, col={self.column})"

    def is_keyword(self, word: str) -> bool:
        """Check if this token is the identifier ``word``."""
        return self.type == TokenType.IDENTIFIER and self.value == word

    def describe(self) -> str:
        """Human readable form used in error messages."""
        if self.type == TokenType.IDENTIFIER:
            return f"identifier {self.value!r}"
        if self.type == TokenType.NUMBER:
            return f"number {self.value}"
        if self.type == TokenType.TEXT:
            return f"text {self.lexeme}"
        if self.type == TokenType.END:
            return "end of script ';'"
        return repr(self.lexeme)
