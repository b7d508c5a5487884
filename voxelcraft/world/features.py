from __future__ import annotations

import numpy as np

from voxelcraft.world.biome import BiomeClassifier
from voxelcraft.world.blocks import Biome, BlockType
from voxelcraft.world.cancel import CancelToken, check
from voxelcraft.world.chunk import VoxelGrid, column_coords
from voxelcraft.world.noise import point_noise
from voxelcraft.world.params import WorldParams


def surface_heights(grid: VoxelGrid) -> np.ndarray:
    """Highest non-air y of every column as a (width, depth) int array; -1 for all-air columns."""
    solid = grid.blocks != int(BlockType.AIR)
    height = grid.dims.height
    # argmax on the reversed Y axis finds the first solid cell from the top
    from_top = np.argmax(solid[:, :, ::-1], axis=2)
    out = (height - 1 - from_top).astype(np.int64)
    out[~solid.any(axis=2)] = -1
    return out


class FeaturePlacer:
    """Third pass: decorates the carved terrain with trees and cacti.

    Runs after caves so the surface it finds is the real one. Features stay
    inside the chunk: trees too close to a horizontal edge are skipped rather
    than clipped, and nothing is written past the height ceiling.
    """

    def __init__(self, params: WorldParams | None = None, biomes: BiomeClassifier | None = None) -> None:
        self.params = params or WorldParams()
        self.biomes = biomes or BiomeClassifier(self.params)

    def place(self, grid: VoxelGrid, cx: int, cz: int, seed: float, *, cancel: CancelToken | None = None) -> VoxelGrid:
        """Return a copy of grid with features added."""
        p = self.params
        out = grid.copy()
        grid_x, grid_z = column_coords(cx, cz, p.dims)

        biome = self.biomes.biome_grid(grid_x, grid_z, seed)
        feature = point_noise(grid_x, 0.0, grid_z, seed + p.feature_seed_offset)
        size = point_noise(grid_x, 1.0, grid_z, seed + p.feature_size_seed_offset)

        for x in range(p.dims.width):
            check(cancel)
            for z in range(p.dims.depth):
                # Rescan per column: leaves of earlier trees can become this column's surface.
                solid = np.flatnonzero(out.blocks[x, z])
                if solid.size == 0:
                    continue
                sy = int(solid[-1])
                top = out.get(x, sy, z)
                kind = int(biome[x, z])
                if kind == Biome.FOREST and top == BlockType.GRASS:
                    if feature[x, z] > p.tree_threshold and self._tree_fits_horizontally(x, z):
                        height = p.tree_min_height + int(np.floor(size[x, z] * p.tree_height_range))
                        self._place_tree(out, x, sy, z, height)
                elif kind == Biome.DESERT and top == BlockType.SAND:
                    if feature[x, z] > p.cactus_threshold:
                        height = p.cactus_min_height + int(np.floor(size[x, z] * p.cactus_height_range))
                        self._place_cactus(out, x, sy, z, height)
        return out

    def _tree_fits_horizontally(self, x: int, z: int) -> bool:
        m = self.params.tree_edge_margin
        d = self.params.dims
        return m < x < d.width - m and m < z < d.depth - m

    def _place_tree(self, grid: VoxelGrid, x: int, sy: int, z: int, trunk: int) -> None:
        r = self.params.leaves_radius
        if sy + trunk + r >= grid.dims.height:
            return
        for i in range(1, trunk + 1):
            grid.set(x, sy + i, z, int(BlockType.LOG))

        cy = sy + trunk
        for ly in range(-r, r + 1):
            for lx in range(-r, r + 1):
                for lz in range(-r, r + 1):
                    if lx * lx + ly * ly + lz * lz > r * r:
                        continue
                    # Leaves only fill air; trunk, terrain and earlier leaves stay.
                    if grid.get(x + lx, cy + ly, z + lz) == BlockType.AIR:
                        grid.set(x + lx, cy + ly, z + lz, int(BlockType.LEAVES))

    def _place_cactus(self, grid: VoxelGrid, x: int, sy: int, z: int, height: int) -> None:
        if sy + height >= grid.dims.height:
            return
        for i in range(1, height + 1):
            grid.set(x, sy + i, z, int(BlockType.CACTUS))
