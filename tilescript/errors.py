"""
TileScript Compiler Errors

Defines exception classes for compilation errors.
"""

from typing import Optional


class TileScriptError(Exception):
    """Base exception for all TileScript errors."""

    def __init__(self, message: str, script_id: Optional[int] = None,
                 column: Optional[int] = None):
        self.message = message
        self.script_id = script_id
        self.column = column
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with script and column information."""
        parts = []

        if self.script_id is not None:
            parts.append(f"script {self.script_id}")

        if self.column is not None:
            if parts:
                parts.append(f"{self.column}")
            else:
                parts.append(f"column {self.column}")

        if parts:
            return f"{':'.join(parts)}: {self.message}"
        return self.message

    def with_script_id(self, script_id: int) -> 'TileScriptError':
        """Attribute this error to a script unless it already names one."""
        if self.script_id is None:
            self.script_id = script_id
            self.args = (self._format_message(),)
        return self


class LexError(TileScriptError):
    """Raised for invalid characters and malformed literals."""
    pass


class ParseError(TileScriptError):
    """Raised when the token stream does not match the grammar."""
    pass


class LocationResolutionError(ParseError):
    """Raised when an @tag has no entry in the location table."""

    def __init__(self, tag: str, script_id: Optional[int] = None,
                 column: Optional[int] = None):
        self.tag = tag
        super().__init__(f"location {tag!r} not found", script_id, column)


class CompileError(TileScriptError):
    """Raised for semantic errors during compilation."""
    pass


class ChunkOverflowError(CompileError):
    """Raised when a chunk's bytecode exceeds the configured bank size."""

    def __init__(self, chunk_index: int, size: int, max_size: int):
        self.chunk_index = chunk_index
        self.size = size
        self.max_size = max_size
        super().__init__(
            f"chunk {chunk_index} too large: {size} bytes exceeds maximum of {max_size}"
        )
