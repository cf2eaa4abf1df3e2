"""
TileScript Chunk Assembler

Groups scripts into the world's chunk grid and lays out each chunk's
bytecode under the runtime's per-bank byte budget.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

import numpy as np

from .ast import Script
from .bytecode import BytecodeEncoder, TERMINATOR
from .config import BuildConfig, DEFAULT_CONFIG
from .errors import ChunkOverflowError, CompileError
from .symbols import Symbols

logger = logging.getLogger(__name__)


class ChunkGrid:
    """Fixed-size grid of script buckets, one per chunk.

    The grid always holds ``config.total_chunks`` buckets, empty or not.
    """

    def __init__(self, config: BuildConfig = DEFAULT_CONFIG):
        self.config = config
        self.chunks: List[List[Script]] = [[] for _ in range(config.total_chunks)]

    def assign(self, script: Script) -> int:
        """Place a script in the chunk containing its tile; return the index."""
        if not self.config.in_world(script.tile_x, script.tile_y):
            raise CompileError(
                f"Tile ({script.tile_x}, {script.tile_y}) lies outside the "
                f"{self.config.map_width}x{self.config.map_height} world",
                script.script_id,
            )

        index = self.config.chunk_index(script.tile_x, script.tile_y)
        self.chunks[index].append(script)
        logger.debug("script %s has %d commands for chunk %d at %d,%d",
                     script.script_id, len(script.body), index,
                     script.tile_x, script.tile_y)
        return index

    def extend(self, scripts: List[Script]) -> None:
        for script in scripts:
            self.assign(script)

    def __len__(self) -> int:
        return len(self.chunks)

    def __getitem__(self, index: int) -> List[Script]:
        return self.chunks[index]

    def __iter__(self) -> Iterator[List[Script]]:
        return iter(self.chunks)


@dataclass
class CompiledOutput:
    """Result of assembling a chunk grid.

    Command offsets are relative to the start of their own chunk, which
    is the address the runtime sees once a chunk is mapped into its bank.
    ``offsets`` lists them for every command in grid order;
    ``chunk_offsets`` keeps them grouped per chunk.
    """

    chunks: List[bytes]
    chunk_offsets: List[List[int]]
    symbols: Symbols
    config: BuildConfig = DEFAULT_CONFIG
    offsets: List[int] = field(init=False)

    def __post_init__(self):
        self.offsets = [offset for group in self.chunk_offsets for offset in group]

    def blob(self) -> bytes:
        """All chunks concatenated in grid order."""
        return b''.join(self.chunks)

    def chunk_bases(self) -> List[int]:
        """Start of each chunk within ``blob()``."""
        bases = []
        position = 0
        for data in self.chunks:
            bases.append(position)
            position += len(data)
        return bases

    def absolute_offsets(self) -> List[int]:
        """Command offsets within ``blob()`` instead of within their chunk."""
        return [
            base + offset
            for base, group in zip(self.chunk_bases(), self.chunk_offsets)
            for offset in group
        ]

    def offsets_array(self) -> np.ndarray:
        return np.array(self.offsets, dtype=np.uint16)

    def to_banks(self) -> np.ndarray:
        """
        Lay the chunks out as fixed-size memory banks.

        Returns:
            uint8 array of shape (total_chunks, max_chunk_size), each row
            holding one chunk's bytecode zero-padded to the bank size
        """
        banks = np.zeros((len(self.chunks), self.config.max_chunk_size), dtype=np.uint8)
        for index, data in enumerate(self.chunks):
            if data:
                banks[index, :len(data)] = np.frombuffer(data, dtype=np.uint8)
        return banks

    def command_count(self) -> int:
        return len(self.offsets)

    def non_empty_chunks(self) -> List[Tuple[int, bytes]]:
        return [(i, data) for i, data in enumerate(self.chunks) if data]


class ChunkAssembler:
    """Encodes every chunk of a grid into its bytecode bank."""

    def __init__(self, config: Optional[BuildConfig] = None):
        self.config = config if config is not None else DEFAULT_CONFIG
        self.encoder = BytecodeEncoder()

    def assemble_chunk(self, index: int, scripts: List[Script]) -> Tuple[bytes, List[int]]:
        """
        Encode one chunk.

        Each command is followed by a single terminator byte.

        Raises:
            ChunkOverflowError: If the chunk exceeds ``max_chunk_size``
            CompileError: If a command is nested too deeply to encode
        """
        code = bytearray()
        offsets = []

        for script in scripts:
            for command in script.body:
                offsets.append(len(code))
                try:
                    code.extend(self.encoder.encode(command))
                except RecursionError:
                    raise CompileError(
                        f"Commands nested too deeply for chunk {index}", script.script_id
                    ) from None
                code.append(TERMINATOR)

        if len(code) > self.config.max_chunk_size:
            raise ChunkOverflowError(index, len(code), self.config.max_chunk_size)

        if code:
            logger.debug("chunk %d: %d commands, %d/%d bytes",
                         index, len(offsets), len(code), self.config.max_chunk_size)
        return bytes(code), offsets

    def assemble(self, grid: ChunkGrid, symbols: Symbols) -> CompiledOutput:
        """Assemble every chunk of the grid in index order."""
        chunks = []
        chunk_offsets = []

        for index, scripts in enumerate(grid):
            data, offsets = self.assemble_chunk(index, scripts)
            chunks.append(data)
            chunk_offsets.append(offsets)

        return CompiledOutput(chunks, chunk_offsets, symbols.freeze(), self.config)
