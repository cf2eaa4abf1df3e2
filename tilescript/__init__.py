"""
TileScript Compiler Package

Compiles the scripting language embedded in tile-map objects into
chunked bytecode for the fixed-bank runtime.

Example:
    import tilescript as ts

    output = ts.compile_scripts(
        [ts.ScriptEntry(id=1, x=16, y=16, script='msg {hello world};')],
    )
    output.chunks[0]    # b'\\x00\\x00\\x00\\x00'
    output.offsets      # [0]
"""

from .tokens import Token, TokenType
from .lexer import Lexer
from .ast import *
from .symbols import Symbols, SymbolTable
from .parser import Parser, parse_script
from .bytecode import BytecodeEncoder, BytecodeReader, OpCode, encode, disassemble
from .config import BuildConfig
from .assembler import ChunkAssembler, ChunkGrid, CompiledOutput
from .project import (
    Project, ScriptEntry, LocationEntry,
    build_location_table, parse_scripts, compile_scripts,
)
from .errors import (
    TileScriptError, LexError, ParseError, LocationResolutionError,
    CompileError, ChunkOverflowError,
)

__version__ = "0.1.0"
__all__ = [
    "Token",
    "TokenType",
    "Lexer",
    "Symbols",
    "SymbolTable",
    "Parser",
    "parse_script",
    "BytecodeEncoder",
    "BytecodeReader",
    "OpCode",
    "encode",
    "disassemble",
    "BuildConfig",
    "ChunkAssembler",
    "ChunkGrid",
    "CompiledOutput",
    "Project",
    "ScriptEntry",
    "LocationEntry",
    "build_location_table",
    "parse_scripts",
    "compile_scripts",
    "TileScriptError",
    "LexError",
    "ParseError",
    "LocationResolutionError",
    "CompileError",
    "ChunkOverflowError",
    "compile_source",
    "compile_file",
]


def compile_source(source: str, locations=None, config=None) -> CompiledOutput:
    """
    Compile a single script placed at the world origin.

    Args:
        source: Script source text
        locations: Tag name -> tile coordinate lookup table
        config: Build configuration

    Returns:
        CompiledOutput for the whole chunk grid
    """
    return compile_scripts([ScriptEntry(0, 0, 0, source)], locations, config)


def compile_file(filepath: str, locations=None, config=None) -> CompiledOutput:
    """Compile a script stored in a text file, placed at the world origin."""
    with open(filepath, 'r', encoding='utf-8') as f:
        source = f.read()
    return compile_source(source, locations, config)
