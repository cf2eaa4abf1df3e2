"""
TileScript Symbol Tables

Interning maps for tags, flags and texts. Each distinct name receives a
dense 16-bit index in order of first occurrence across the whole
compilation run.
"""

from typing import Dict, Iterator, List, Tuple
from .errors import CompileError

MAX_SYMBOLS = 0x10000


class SymbolTable:
    """Append-only name -> index registry."""

    def __init__(self, kind: str):
        self.kind = kind
        self._indices: Dict[str, int] = {}
        self._names: List[str] = []
        self.frozen = False

    def intern(self, name: str) -> int:
        """Return the index of ``name``, allocating the next one if new."""
        index = self._indices.get(name)
        if index is not None:
            return index

        if self.frozen:
            raise CompileError(f"Cannot add {self.kind} {name!r}: table is finalized")
        if len(self._names) >= MAX_SYMBOLS:
            raise CompileError(f"Too many {self.kind}s (limit {MAX_SYMBOLS})")

        index = len(self._names)
        self._indices[name] = index
        self._names.append(name)
        return index

    def index_of(self, name: str) -> int:
        return self._indices[name]

    def name_of(self, index: int) -> str:
        return self._names[index]

    def freeze(self) -> 'SymbolTable':
        self.frozen = True
        return self

    def items(self) -> List[Tuple[str, int]]:
        """(name, index) pairs in index order."""
        return [(name, i) for i, name in enumerate(self._names)]

    def as_dict(self) -> Dict[str, int]:
        return dict(self._indices)

    def __contains__(self, name: object) -> bool:
        return name in self._indices

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._names))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SymbolTable):
            return NotImplemented
        return self.kind == other.kind and self._names == other._names

    def __repr__(self) -> str:
        return f"SymbolTable({self.kind!r}, {self._names!r})"


class Symbols:
    """The three independent symbol tables of a compilation unit."""

    def __init__(self):
        self.tags = SymbolTable('tag')
        self.flags = SymbolTable('flag')
        self.texts = SymbolTable('text')

    def tables(self) -> Tuple[SymbolTable, SymbolTable, SymbolTable]:
        return (self.tags, self.flags, self.texts)

    def freeze(self) -> 'Symbols':
        """Finalize all tables; they become read-only."""
        for table in self.tables():
            table.freeze()
        return self

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Symbols):
            return NotImplemented
        return self.tables() == other.tables()

    def __repr__(self) -> str:
        return f"Symbols(tags={len(self.tags)}, flags={len(self.flags)}, texts={len(self.texts)})"


def merge_symbols(target: Symbols, local: Symbols) -> Dict[str, Dict[int, int]]:
    """
    Intern a script's local tables into ``target``.

    Names are taken in local index order, which is the script's own
    first-occurrence order, so merging scripts one after another in their
    original order reproduces sequential numbering exactly.

    Returns:
        For each table kind, a mapping from local index to global index
    """
    remap: Dict[str, Dict[int, int]] = {}
    for global_table, local_table in zip(target.tables(), local.tables()):
        remap[local_table.kind] = {
            i: global_table.intern(name) for name, i in local_table.items()
        }
    return remap
