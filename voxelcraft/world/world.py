from __future__ import annotations

from typing import Dict, Optional, Tuple

import numpy as np

from voxelcraft.config import PLAYER_EYE_HEIGHT, SPAWN_CLEARANCE
from voxelcraft.world.blocks import BlockType
from voxelcraft.world.chunk import VoxelGrid
from voxelcraft.world.chunk_manager import ChunkManager, ChunkResult
from voxelcraft.world.features import surface_heights
from voxelcraft.world.mesh_builder import MeshBuffers
from voxelcraft.world.params import ChunkDims
from voxelcraft.world.pipeline import GenerateResult


def chunk_key(cx: int, cz: int) -> str:
    """Storage key used by persistence layers: '<cx>_<cz>'."""
    return f"{cx}_{cz}"


class World:
    """Loaded chunks addressed in world block coordinates.

    Holds frozen VoxelGrids keyed by (cx, cz). Edits never touch a stored
    grid; set_block swaps in an edited copy, so meshes or buffers handed out
    earlier stay valid. The latest mesh of each chunk, as delivered by the
    worker pool, is kept in meshes.
    """

    def __init__(self, dims: ChunkDims | None = None) -> None:
        self.dims = dims or ChunkDims()
        self.chunks: Dict[Tuple[int, int], VoxelGrid] = {}
        self.meshes: Dict[Tuple[int, int], MeshBuffers] = {}

    def world_to_chunk(self, x: float, z: float) -> tuple[int, int]:
        cx = int(np.floor(x / self.dims.width))
        cz = int(np.floor(z / self.dims.depth))
        return cx, cz

    def _locate(self, x: float, y: float, z: float) -> Optional[tuple[tuple[int, int], int, int, int]]:
        cx, cz = self.world_to_chunk(x, z)
        lx = int(np.floor(x)) - cx * self.dims.width
        ly = int(np.floor(y))
        lz = int(np.floor(z)) - cz * self.dims.depth
        if ly < 0 or ly >= self.dims.height:
            return None
        return (cx, cz), lx, ly, lz

    def put(self, cx: int, cz: int, grid: VoxelGrid) -> None:
        if grid.dims != self.dims:
            raise ValueError(f"chunk dims {grid.dims} do not match world dims {self.dims}")
        self.chunks[(cx, cz)] = grid if grid.frozen else grid.copy().freeze()

    def get_chunk(self, cx: int, cz: int) -> Optional[VoxelGrid]:
        return self.chunks.get((cx, cz))

    def get_block(self, x: float, y: float, z: float) -> int:
        loc = self._locate(x, y, z)
        if loc is None:
            return int(BlockType.AIR)
        key, lx, ly, lz = loc
        grid = self.chunks.get(key)
        if grid is None:
            return int(BlockType.AIR)
        return grid.get(lx, ly, lz)

    def set_block(
        self, x: float, y: float, z: float, block: int, cm: Optional[ChunkManager] = None
    ) -> Optional[VoxelGrid]:
        """Write one block. Returns the chunk's new grid, or None if nothing was written.

        With cm the edited chunk is queued for a remesh on the worker pool.
        """
        loc = self._locate(x, y, z)
        if loc is None:
            return None
        key, lx, ly, lz = loc
        grid = self.chunks.get(key)
        if grid is None:
            return None
        edited = grid.copy()
        edited.set(lx, ly, lz, int(block))
        self.chunks[key] = edited.freeze()
        if cm is not None:
            cm.request_remesh(key, edited)
        return edited

    def ingest(self, results: list[ChunkResult]) -> int:
        """Store successful worker results; returns how many chunks were added.

        Remesh results only replace the mesh of a chunk that is still loaded.
        """
        added = 0
        for r in results:
            if r.result is None:
                continue
            key = (r.cx, r.cz)
            if isinstance(r.result, GenerateResult):
                if key in self.chunks:
                    continue
                self.put(r.cx, r.cz, r.result.voxels)
                added += 1
            elif key not in self.chunks:
                continue
            self.meshes[key] = r.result.mesh
        return added

    def update_requests(self, cm: ChunkManager, x: float, z: float) -> None:
        """Ask cm for missing chunks around (x, z) and evict chunks outside the window."""
        cam_cx, cam_cz = self.world_to_chunk(x, z)
        needed = cm.needed_chunks(cam_cx, cam_cz)

        for key in list(self.chunks.keys()):
            if key not in needed:
                self.chunks.pop(key)
                self.meshes.pop(key, None)

        cm.cancel_outside(needed)
        cm.request_missing(needed, set(self.chunks.keys()))

    def spawn_point(self, cx: int = 0, cz: int = 0) -> Optional[tuple[float, float, float]]:
        """Eye position above the highest solid block at the centre column of a chunk."""
        grid = self.chunks.get((cx, cz))
        if grid is None:
            return None
        lx, lz = self.dims.width // 2, self.dims.depth // 2
        wx = float(cx * self.dims.width + lx)
        wz = float(cz * self.dims.depth + lz)
        top = int(surface_heights(grid)[lx, lz])
        if top < 0:
            return (wx, float(self.dims.height), wz)
        return (wx, top + PLAYER_EYE_HEIGHT + SPAWN_CLEARANCE, wz)
