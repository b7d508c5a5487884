from __future__ import annotations

import numpy as np

from voxelcraft.world.blocks import BlockType
from voxelcraft.world.chunk import VoxelGrid, column_coords
from voxelcraft.world.noise import point_noise
from voxelcraft.world.params import WorldParams


class CaveCarver:
    """Second pass: turns stone into air where 3D cave noise is high.

    Only STONE is eligible, so surface soil never opens up in this pass. The
    topmost layer is never evaluated.
    """

    def __init__(self, params: WorldParams | None = None) -> None:
        self.params = params or WorldParams()

    def cave_mask(self, cx: int, cz: int, seed: float) -> np.ndarray:
        """Bool (width, depth, height - 1) array of cells whose noise exceeds the threshold."""
        p = self.params
        grid_x, grid_z = column_coords(cx, cz, p.dims)
        ys = np.arange(p.dims.height - 1, dtype=np.float64)[None, None, :]
        n = point_noise(
            grid_x[:, :, None] * p.cave_scale,
            ys * p.cave_scale,
            grid_z[:, :, None] * p.cave_scale,
            seed + p.cave_seed_offset,
        )
        return n > p.cave_threshold

    def carve(self, grid: VoxelGrid, cx: int, cz: int, seed: float) -> VoxelGrid:
        """Return a copy of grid with caves carved out."""
        out = grid.copy()
        body = out.blocks[:, :, :-1]
        hollow = (body == int(BlockType.STONE)) & self.cave_mask(cx, cz, seed)
        body[hollow] = int(BlockType.AIR)
        return out
