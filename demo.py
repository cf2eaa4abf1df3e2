"""
TileScript Demo

Compiles a handful of map scripts and prints each non-empty chunk as a
disassembly listing, followed by the symbol tables.
"""
import logging
import sys
sys.path.insert(0, '.')
from tilescript import (
    LocationEntry, Project, ScriptEntry, TileScriptError, disassemble,
)

LOCATIONS = [
    LocationEntry(100, '@spawn', 32.0, 48.0),
    LocationEntry(101, 'shop', 160.0, 80.0),
]

SCRIPTS = [
    ScriptEntry(1, 16, 16, 'msg {Welcome to the village!} setflag flag_visited;'),
    ScriptEntry(2, 40, 20, 'if flag_visited then tmsg @shop {Back again?} '
                           'else msg {First time here?} endif;'),
    ScriptEntry(3, 180, 70, 'if !flag_key then msg {The door is locked.} '
                            'else tp @shop @spawn endif;'),
    ScriptEntry(4, 2000, 1200, 'readflag flag_key unsetflag flag_visited;'),
]


def main():
    logging.basicConfig(level=logging.INFO, format='%(levelname)s %(name)s: %(message)s')

    print('=== TileScript Demo ===')
    print()

    project = Project()
    project.add_locations(LOCATIONS)
    print(f'[1] Loaded {len(project.locations)} locations: {project.locations}')

    try:
        output = project.compile(SCRIPTS)
    except TileScriptError as e:
        print(f'Compilation failed: {e}')
        return 1
    print(f'[2] Compiled {len(SCRIPTS)} scripts into {len(output.blob())} bytes')

    print()
    print('=== Chunks ===')
    for index, data in output.non_empty_chunks():
        print(f'chunk {index} ({len(data)}/{output.config.max_chunk_size} bytes)')
        print(disassemble(data, output.symbols))

    print()
    print('=== Symbols ===')
    for table in output.symbols.tables():
        print(f'{table.kind}s: {table.as_dict()}')

    banks = output.to_banks()
    print()
    print(f'Bank image: {banks.shape[0]} x {banks.shape[1]} bytes')
    return 0


if __name__ == '__main__':
    sys.exit(main())
