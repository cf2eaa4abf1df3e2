"""
TileScript Parser

Recursive descent parser that produces a command list from one script,
interning texts, flags and tags into the shared symbol tables as it goes.

Grammar:

    script    ::= command* ';'
    command   ::= 'msg' TEXT
                | 'tmsg' location TEXT
                | 'tp' location location
                | 'if' condition 'then' command ('else' command 'endif' | 'endif'?)
                | ('setflag' | 'unsetflag' | 'readflag') FLAG
    location  ::= NUMBER NUMBER | '@' IDENT
    condition ::= IDENT | '!' IDENT
"""

from typing import List, Mapping, Optional, Tuple
from .tokens import (
    Token, TokenType,
    MSG, TMSG, TP, IF, SET_FLAG, UNSET_FLAG, READ_FLAG, THEN, ELSE, ENDIF,
)
from .lexer import Lexer, U16_MAX
from .ast import (
    Command, Location, Condition, Symbol,
    Coordinate, Tag, FlagSet, FlagClear, Then, ThenElse,
    Msg, TMsg, Tp, If, SetFlag, UnsetFlag, ReadFlag,
)
from .symbols import Symbols
from .errors import ParseError, LocationResolutionError

FLAG_PREFIX = 'flag_'

LocationTable = Mapping[str, Tuple[int, int]]


class Parser:
    """Recursive descent parser for one TileScript script."""

    def __init__(self, lexer: Lexer, symbols: Symbols,
                 locations: Optional[LocationTable] = None,
                 script_id: Optional[int] = None,
                 flag_prefix: str = FLAG_PREFIX,
                 named_locations: bool = False):
        """
        Initialize the parser.

        Args:
            lexer: Token source for the script
            symbols: Symbol tables shared across the compilation run
            locations: Tag name -> tile coordinate lookup table
            script_id: Identifier of the script object, used in errors
            flag_prefix: Required prefix of flag names in flag commands
            named_locations: Keep resolved @tags as tag references instead
                of inlining their coordinates
        """
        self.lexer = lexer
        self.symbols = symbols
        self.locations = locations if locations is not None else {}
        self.script_id = script_id
        self.flag_prefix = flag_prefix
        self.named_locations = named_locations
        self._lookahead: Optional[Token] = None

        self.commands = {
            MSG: self.msg_command,
            TMSG: self.tmsg_command,
            TP: self.tp_command,
            IF: self.if_command,
            SET_FLAG: self.flag_command,
            UNSET_FLAG: self.flag_command,
            READ_FLAG: self.flag_command,
        }

    def parse(self) -> List[Command]:
        """
        Parse the whole script.

        Returns:
            The script body, in source order
        """
        body = []
        while not self.check(TokenType.END):
            body.append(self.parse_command())
        self.advance()
        return body

    # =========================================================================
    # Commands
    # =========================================================================

    def parse_command(self) -> Command:
        """Parse one command, dispatching on its keyword."""
        token = self.advance()
        if token.type != TokenType.IDENTIFIER:
            raise self.error(f"Expected command, got {token.describe()}", token)

        handler = self.commands.get(token.value)
        if handler is None:
            raise self.error(f"Unknown command {token.value!r}", token)
        return handler(token)

    def msg_command(self, keyword: Token) -> Msg:
        return Msg(self.text())

    def tmsg_command(self, keyword: Token) -> TMsg:
        location = self.location()
        return TMsg(location, self.text())

    def tp_command(self, keyword: Token) -> Tp:
        from_ = self.location()
        to = self.location()
        return Tp(from_, to)

    def if_command(self, keyword: Token) -> If:
        condition = self.condition()

        self.consume_keyword(THEN, "Expected 'then' after if condition")
        then_command = self.parse_command()

        if self.match_keyword(ELSE):
            else_command = self.parse_command()
            self.consume_keyword(ENDIF, "Expected 'endif' after else branch")
            return If(condition, ThenElse(then_command, else_command))

        # Without else the closing keyword is optional
        self.match_keyword(ENDIF)
        return If(condition, Then(then_command))

    def flag_command(self, keyword: Token) -> Command:
        token = self.advance()
        if token.type != TokenType.IDENTIFIER or not token.value.startswith(self.flag_prefix):
            raise self.error(
                f"Invalid flag {token.describe()} after {keyword.value!r}, "
                f"flag names must start with {self.flag_prefix!r}",
                token,
            )

        flag = self.intern_flag(token.value)
        if keyword.value == SET_FLAG:
            return SetFlag(flag)
        if keyword.value == UNSET_FLAG:
            return UnsetFlag(flag)
        return ReadFlag(flag)

    # =========================================================================
    # Operands
    # =========================================================================

    def text(self) -> Symbol:
        """Parse a text literal and intern it."""
        token = self.consume(TokenType.TEXT, "Expected text literal")
        return Symbol(token.value, self.symbols.texts.intern(token.value))

    def location(self) -> Location:
        """Parse `x y` coordinates or an `@tag` reference."""
        token = self.advance()

        if token.type == TokenType.NUMBER:
            y = self.consume(TokenType.NUMBER, "Expected second coordinate")
            return Coordinate(token.value, y.value)

        if token.type == TokenType.TAG:
            name = token.value
            index = self.symbols.tags.intern(name)
            coords = self.locations.get(name)
            if coords is None:
                raise LocationResolutionError(name, self.script_id, token.column)
            if not all(0 <= c <= U16_MAX for c in coords):
                raise self.error(f"Location {name!r} at {tuple(coords)} is not a valid tile", token)
            if self.named_locations:
                return Tag(Symbol(name, index))
            return Coordinate(coords[0], coords[1])

        raise self.error(f"Expected location, got {token.describe()}", token)

    def condition(self) -> Condition:
        """Parse `flag` or `!flag`."""
        token = self.advance()

        if token.type == TokenType.IDENTIFIER:
            return FlagSet(self.intern_flag(token.value))
        if token.type == TokenType.NOT:
            return FlagClear(self.intern_flag(token.value))

        raise self.error(f"Expected flag condition, got {token.describe()}", token)

    def intern_flag(self, name: str) -> Symbol:
        return Symbol(name, self.symbols.flags.intern(name))

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def peek(self) -> Token:
        """Return the current token without consuming it."""
        if self._lookahead is None:
            try:
                self._lookahead = next(self.lexer)
            except StopIteration:
                raise self.error("Unexpected token after end of script") from None
        return self._lookahead

    def advance(self) -> Token:
        """Consume and return the current token."""
        token = self.peek()
        self._lookahead = None
        return token

    def check(self, type: TokenType) -> bool:
        """Check if current token is of given type."""
        return self.peek().type == type

    def consume(self, type: TokenType, message: str) -> Token:
        """Consume a token of the expected type or raise an error."""
        if self.check(type):
            return self.advance()

        token = self.peek()
        raise self.error(f"{message}, got {token.describe()}", token)

    def match_keyword(self, word: str) -> bool:
        """Consume the current token if it is the keyword ``word``."""
        if self.peek().is_keyword(word):
            self.advance()
            return True
        return False

    def consume_keyword(self, word: str, message: str) -> Token:
        if self.peek().is_keyword(word):
            return self.advance()

        token = self.peek()
        raise self.error(f"{message}, got {token.describe()}", token)

    def error(self, message: str, token: Optional[Token] = None) -> ParseError:
        column = token.column if token is not None else None
        return ParseError(message, self.script_id, column)


def parse_script(source: str, symbols: Symbols,
                 locations: Optional[LocationTable] = None,
                 script_id: Optional[int] = None, **options) -> List[Command]:
    """Lex and parse one script's source text."""
    lexer = Lexer(source, script_id)
    return Parser(lexer, symbols, locations, script_id, **options).parse()
