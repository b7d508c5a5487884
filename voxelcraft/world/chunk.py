from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from voxelcraft.world.blocks import BlockType
from voxelcraft.world.params import ChunkDims


def index_of(x: int, y: int, z: int, dims: ChunkDims | None = None) -> int:
    """Linear offset of (x, y, z) in a voxel buffer: X-major, then Z, then Y."""
    d = dims or ChunkDims()
    return y + z * d.height + x * d.height * d.depth


def column_coords(cx: int, cz: int, dims: ChunkDims | None = None) -> tuple[np.ndarray, np.ndarray]:
    """World X/Z of every column of chunk (cx, cz), as (width, depth) float64 grids."""
    d = dims or ChunkDims()
    xs = cx * d.width + np.arange(d.width, dtype=np.float64)
    zs = cz * d.depth + np.arange(d.depth, dtype=np.float64)
    grid_x, grid_z = np.meshgrid(xs, zs, indexing="ij")
    return grid_x, grid_z


@dataclass(eq=False)
class VoxelGrid:
    """Dense block grid of one chunk.

    blocks is a uint8 array of shape (width, depth, height) indexed [x, z, y];
    its C-order bytes are the voxel buffer exchanged with callers.
    """

    blocks: np.ndarray
    dims: ChunkDims = field(default_factory=ChunkDims)

    def __post_init__(self) -> None:
        if self.blocks.shape != self.dims.shape:
            raise ValueError(f"grid shape {self.blocks.shape} does not match {self.dims.shape}")
        if self.blocks.dtype != np.uint8:
            raise ValueError(f"grid dtype must be uint8, got {self.blocks.dtype}")

    @classmethod
    def empty(cls, dims: ChunkDims | None = None) -> "VoxelGrid":
        d = dims or ChunkDims()
        return cls(np.zeros(d.shape, dtype=np.uint8), d)

    @classmethod
    def from_bytes(cls, data: bytes, dims: ChunkDims | None = None) -> "VoxelGrid":
        """Wrap a voxel buffer. Caller must have checked the length."""
        d = dims or ChunkDims()
        arr = np.frombuffer(bytes(data), dtype=np.uint8).reshape(d.shape).copy()
        return cls(arr, d)

    def to_bytes(self) -> bytes:
        return np.ascontiguousarray(self.blocks).tobytes()

    def in_bounds(self, x: int, y: int, z: int) -> bool:
        d = self.dims
        return 0 <= x < d.width and 0 <= y < d.height and 0 <= z < d.depth

    def get(self, x: int, y: int, z: int) -> int:
        if not self.in_bounds(x, y, z):
            return int(BlockType.AIR)
        return int(self.blocks[x, z, y])

    def set(self, x: int, y: int, z: int, block: int) -> None:
        # Out-of-range writes are dropped.
        if self.in_bounds(x, y, z):
            self.blocks[x, z, y] = block

    def copy(self) -> "VoxelGrid":
        return VoxelGrid(self.blocks.copy(), self.dims)

    def freeze(self) -> "VoxelGrid":
        self.blocks.flags.writeable = False
        return self

    @property
    def frozen(self) -> bool:
        return not self.blocks.flags.writeable
