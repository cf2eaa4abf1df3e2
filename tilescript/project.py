"""
TileScript Project

The main interface for compiling a map's script objects into chunked
bytecode.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .assembler import ChunkAssembler, ChunkGrid, CompiledOutput
from .ast import Script, SymbolRemapper
from .config import BuildConfig, DEFAULT_CONFIG, TILE_SIZE
from .errors import CompileError, TileScriptError
from .lexer import Lexer, U16_MAX
from .parser import LocationTable, Parser
from .symbols import Symbols, merge_symbols

logger = logging.getLogger(__name__)


@dataclass
class ScriptEntry:
    """A script object from the map editor, positioned in pixels."""
    id: int
    x: float
    y: float
    script: str


@dataclass
class LocationEntry:
    """A named location object from the map editor, positioned in pixels."""
    id: int
    name: str
    x: float
    y: float


def _saturate(tile: float) -> int:
    return min(max(int(tile), 0), U16_MAX)


def build_location_table(entries: Iterable[LocationEntry],
                         tile_size: int = TILE_SIZE) -> Dict[str, Tuple[int, int]]:
    """
    Build the tag name -> tile coordinate lookup table.

    Pixel positions are truncated to whole tiles and saturated to the
    u16 range, and a leading '@' is stripped from names. Later entries win
    on duplicate names.
    """
    table = {}
    for entry in entries:
        name = entry.name[1:] if entry.name.startswith('@') else entry.name
        table[name] = (_saturate(entry.x // tile_size), _saturate(entry.y // tile_size))
    return table


def _parse_entry(entry: ScriptEntry, symbols: Symbols,
                 locations: LocationTable, config: BuildConfig) -> Script:
    lexer = Lexer(entry.script, entry.id)
    parser = Parser(lexer, symbols, locations, entry.id,
                    flag_prefix=config.flag_prefix,
                    named_locations=config.named_locations)
    try:
        body = parser.parse()
    except TileScriptError as e:
        raise e.with_script_id(entry.id)
    except RecursionError:
        raise CompileError("Commands nested too deeply", entry.id) from None

    return Script(entry.id, config.tile_of(entry.x), config.tile_of(entry.y),
                  body, entry.script)


def _parse_local(entry: ScriptEntry, locations: LocationTable,
                 config: BuildConfig) -> Tuple[Script, Symbols]:
    local = Symbols()
    return _parse_entry(entry, local, locations, config), local


def parse_scripts(entries: Sequence[ScriptEntry],
                  locations: Optional[LocationTable] = None,
                  config: Optional[BuildConfig] = None,
                  symbols: Optional[Symbols] = None) -> Tuple[List[Script], Symbols]:
    """
    Parse every script entry in order.

    Symbol indices are assigned by first occurrence across ``entries`` in
    their given order. With ``config.workers > 1`` scripts are parsed
    concurrently against local tables and then renumbered in entry order,
    which yields the same indices as sequential parsing.

    Returns:
        Parsed scripts in entry order and the populated symbol tables
    """
    config = config if config is not None else DEFAULT_CONFIG
    locations = locations if locations is not None else {}
    symbols = symbols if symbols is not None else Symbols()

    if config.workers <= 1 or len(entries) <= 1:
        scripts = [_parse_entry(entry, symbols, locations, config) for entry in entries]
        return scripts, symbols

    with ThreadPoolExecutor(max_workers=config.workers) as executor:
        results = list(executor.map(lambda e: _parse_local(e, locations, config), entries))

    scripts = []
    for script, local in results:
        remapper = SymbolRemapper(merge_symbols(symbols, local))
        try:
            body = [command.accept(remapper) for command in script.body]
        except RecursionError:
            raise CompileError("Commands nested too deeply", script.script_id) from None
        scripts.append(Script(script.script_id, script.tile_x, script.tile_y,
                              body, script.source))
    return scripts, symbols


def compile_scripts(entries: Sequence[ScriptEntry],
                    locations: Optional[LocationTable] = None,
                    config: Optional[BuildConfig] = None) -> CompiledOutput:
    """
    Compile script entries into chunked bytecode.

    Raises:
        TileScriptError: On the first script or chunk that fails
    """
    config = config if config is not None else DEFAULT_CONFIG

    scripts, symbols = parse_scripts(entries, locations, config)

    grid = ChunkGrid(config)
    grid.extend(scripts)

    output = ChunkAssembler(config).assemble(grid, symbols)

    logger.info(
        "compiled %d scripts: %d commands in %d chunks, %d bytes "
        "(%d tags, %d flags, %d texts)",
        len(scripts), output.command_count(), len(output.non_empty_chunks()),
        len(output.blob()), len(symbols.tags), len(symbols.flags), len(symbols.texts),
    )
    return output


class Project:
    """
    TileScript compilation context.

    Holds the build configuration and the location table of one map.

    Example:
        project = Project(locations={'door': (3, 4)})
        output = project.compile([ScriptEntry(1, 16, 16, 'tp @door 0 0;')])
        banks = output.to_banks()
    """

    def __init__(self, config: Optional[BuildConfig] = None,
                 locations: Optional[LocationTable] = None):
        self.config = config if config is not None else DEFAULT_CONFIG
        self.locations: Dict[str, Tuple[int, int]] = dict(locations or {})

    def add_locations(self, entries: Iterable[LocationEntry]) -> None:
        """Add location objects (pixel positions) to the lookup table."""
        self.locations.update(build_location_table(entries, self.config.tile_size))

    def compile(self, entries: Sequence[ScriptEntry]) -> CompiledOutput:
        return compile_scripts(entries, self.locations, self.config)

    def compile_source(self, source: str, x: float = 0, y: float = 0,
                       script_id: int = 0) -> CompiledOutput:
        """Compile a single script placed at pixel position (x, y)."""
        return self.compile([ScriptEntry(script_id, x, y, source)])
