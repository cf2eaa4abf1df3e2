"""
TileScript Build Configuration

World and chunk geometry of the target runtime, and the single place where
tile coordinates are mapped to chunk indices.
"""

from dataclasses import dataclass

# World size in tiles
MAP_W = 256
MAP_H = 256

# Chunk size in tiles
CHUNK_W = 8
CHUNK_H = 4

CHUNK_COLS = MAP_W // CHUNK_W   # 32
CHUNK_ROWS = MAP_H // CHUNK_H   # 64
TOTAL_CHUNKS = CHUNK_COLS * CHUNK_ROWS  # 2048

# Size of one runtime memory bank holding a chunk's bytecode
MAX_CHUNK_SIZE = 128

# Pixels per tile in the map editor
TILE_SIZE = 16

FLAG_PREFIX = 'flag_'

# Chunk-relative command offsets are stored as u16
MAX_BANK_SIZE = 0x10000


@dataclass(frozen=True)
class BuildConfig:
    """Build-time constants for one compilation run."""

    map_width: int = MAP_W
    map_height: int = MAP_H
    chunk_width: int = CHUNK_W
    chunk_height: int = CHUNK_H
    max_chunk_size: int = MAX_CHUNK_SIZE
    tile_size: int = TILE_SIZE
    flag_prefix: str = FLAG_PREFIX
    named_locations: bool = False
    workers: int = 1

    def __post_init__(self):
        for name in ('map_width', 'map_height', 'chunk_width', 'chunk_height',
                     'max_chunk_size', 'tile_size', 'workers'):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")

        if self.map_width % self.chunk_width or self.map_height % self.chunk_height:
            raise ValueError(
                f"Map {self.map_width}x{self.map_height} is not divisible into "
                f"{self.chunk_width}x{self.chunk_height} chunks"
            )
        if self.max_chunk_size > MAX_BANK_SIZE:
            raise ValueError(f"max_chunk_size must not exceed {MAX_BANK_SIZE}")

    @property
    def chunk_cols(self) -> int:
        return self.map_width // self.chunk_width

    @property
    def chunk_rows(self) -> int:
        return self.map_height // self.chunk_height

    @property
    def total_chunks(self) -> int:
        return self.chunk_cols * self.chunk_rows

    def tile_of(self, pixels: float) -> int:
        """Convert a pixel position to a tile coordinate."""
        return int(pixels // self.tile_size)

    def in_world(self, tile_x: int, tile_y: int) -> bool:
        return 0 <= tile_x < self.map_width and 0 <= tile_y < self.map_height

    def chunk_index(self, tile_x: int, tile_y: int) -> int:
        """Row-major index of the chunk containing a tile."""
        if not self.in_world(tile_x, tile_y):
            raise ValueError(
                f"Tile ({tile_x}, {tile_y}) lies outside the "
                f"{self.map_width}x{self.map_height} world"
            )
        cx = tile_x // self.chunk_width
        cy = tile_y // self.chunk_height
        return cy * self.chunk_cols + cx


DEFAULT_CONFIG = BuildConfig()
