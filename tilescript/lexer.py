"""
TileScript Lexer

Breaks one script's source text into a lazy stream of tokens.

Lexical items:

    Identifier ::= [A-Za-z_][A-Za-z0-9_]*
    Number     ::= [0-9]+            (fits in u16)
    Text       ::= '{' .*? '}'       (no nesting)
    Tag        ::= '@' Identifier
    Not        ::= '!' Identifier
    End        ::= ';'

Keywords (msg, tp, if, ...) come out as identifiers; the parser interprets
them. Every script must end with ';'.
"""

from typing import Iterator, List, Optional
from .tokens import Token, TokenType
from .errors import LexError

U16_MAX = 0xFFFF
WHITESPACE = ' \t\r'


def is_identifier_start(c: str) -> bool:
    return c.isascii() and (c.isalpha() or c == '_')


def is_identifier_char(c: str) -> bool:
    return c.isascii() and (c.isalnum() or c == '_')


class Lexer:
    """Lexical analyzer for a single TileScript script.

    The lexer is an iterator: tokens are produced one at a time and the
    stream cannot be restarted. After the ``;`` terminator has been
    produced, iteration stops.
    """

    def __init__(self, source: str, script_id: Optional[int] = None):
        """
        Initialize the lexer.

        Args:
            source: Script source text
            script_id: Identifier of the script object, used in errors
        """
        self.source = source
        self.script_id = script_id
        self.start = 0      # Start of current token
        self.current = 0    # Current position
        self.finished = False

    def __iter__(self) -> Iterator[Token]:
        return self

    def __next__(self) -> Token:
        if self.finished:
            raise StopIteration

        self.skip_whitespace()

        if self.is_at_end():
            raise self.error("Missing end of script ';'")

        self.start = self.current
        return self.scan_token()

    def tokenize(self) -> List[Token]:
        """
        Tokenize the rest of the script.

        Returns:
            List of tokens, the last one being the END token
        """
        return list(self)

    def scan_token(self) -> Token:
        """Scan the next token."""
        c = self.advance()

        if c == ';':
            self.finished = True
            return self.make_token(TokenType.END)
        if c == '@':
            return self.reference(TokenType.TAG)
        if c == '!':
            return self.reference(TokenType.NOT)
        if c == '{':
            return self.text()
        if c.isascii() and c.isdigit():
            return self.number()
        if is_identifier_start(c):
            return self.identifier()

        raise self.error(f"Unexpected character {c!r}", self.start + 1)

    def advance(self) -> str:
        """Consume and return the current character."""
        c = self.source[self.current]
        self.current += 1
        return c

    def peek(self) -> str:
        """Return the current character without consuming it."""
        if self.is_at_end():
            return '\0'
        return self.source[self.current]

    def is_at_end(self) -> bool:
        """Check if we've reached the end of the source."""
        return self.current >= len(self.source)

    def skip_whitespace(self) -> None:
        while not self.is_at_end() and self.peek() in WHITESPACE:
            self.current += 1

    def make_token(self, type: TokenType, value=None) -> Token:
        lexeme = self.source[self.start:self.current]
        return Token(type, lexeme, value, self.start + 1)

    def error(self, message: str, column: Optional[int] = None) -> LexError:
        if column is None:
            column = self.current + 1
        return LexError(message, self.script_id, column)

    def read_identifier(self) -> str:
        begin = self.current
        while is_identifier_char(self.peek()):
            self.advance()
        return self.source[begin:self.current]

    def identifier(self) -> Token:
        """Scan an identifier (the first character is already consumed)."""
        self.read_identifier()
        return self.make_token(TokenType.IDENTIFIER, self.source[self.start:self.current])

    def reference(self, type: TokenType) -> Token:
        """Scan the identifier following an '@' or '!' sigil."""
        sigil = self.source[self.start]
        if not is_identifier_start(self.peek()):
            if self.is_at_end():
                raise self.error(f"Expected name after {sigil!r}, got end of input")
            raise self.error(f"Expected name after {sigil!r}, got {self.peek()!r}")

        name = self.read_identifier()
        return self.make_token(type, name)

    def text(self) -> Token:
        """Scan a free text literal up to the closing brace."""
        while self.peek() != '}' and not self.is_at_end():
            self.advance()

        if self.is_at_end():
            raise self.error("Unterminated text, no closing '}' found")

        value = self.source[self.start + 1:self.current]
        self.advance()  # closing brace
        return self.make_token(TokenType.TEXT, value)

    def number(self) -> Token:
        """Scan a decimal number literal."""
        while self.peek().isascii() and self.peek().isdigit():
            self.advance()

        value = int(self.source[self.start:self.current])
        if value > U16_MAX:
            raise LexError(f"Value too large for uint16: {value}",
                           self.script_id, self.start + 1)
        return self.make_token(TokenType.NUMBER, value)
