from __future__ import annotations

import numpy as np

from voxelcraft.world.biome import BiomeClassifier
from voxelcraft.world.blocks import BlockType
from voxelcraft.world.chunk import VoxelGrid, column_coords
from voxelcraft.world.params import WorldParams


class TerrainColumnBuilder:
    """First pass: fills each column with surface, soil and stone layers."""

    def __init__(self, params: WorldParams | None = None, biomes: BiomeClassifier | None = None) -> None:
        self.params = params or WorldParams()
        self.biomes = biomes or BiomeClassifier(self.params)

    def column_heights(self, cx: int, cz: int, seed: float) -> tuple[np.ndarray, np.ndarray]:
        """Return (biome, terrain_height) grids of shape (width, depth).

        The height of a column is floor(base + amplitude * fractal) with the
        constants of that column's biome profile.
        """
        grid_x, grid_z = column_coords(cx, cz, self.params.dims)
        biome = self.biomes.biome_grid(grid_x, grid_z, seed)

        heights = np.zeros(biome.shape, dtype=np.int64)
        for kind, profile in self.params.profiles.items():
            mask = biome == int(kind)
            if not np.any(mask):
                continue
            n = np.asarray(profile.noise.sample(grid_x[mask], grid_z[mask], seed))
            heights[mask] = np.floor(profile.base + profile.amplitude * n).astype(np.int64)
        return biome, heights

    def build(self, cx: int, cz: int, seed: float) -> VoxelGrid:
        dims = self.params.dims
        biome, heights = self.column_heights(cx, cz, seed)

        surface = np.full(biome.shape, int(BlockType.GRASS), dtype=np.uint8)
        subsurface = np.full(biome.shape, int(BlockType.DIRT), dtype=np.uint8)
        for kind, profile in self.params.profiles.items():
            mask = biome == int(kind)
            surface[mask] = int(profile.surface)
            subsurface[mask] = int(profile.subsurface)

        # Broadcast (width, depth, 1) against y (height,)
        y = np.arange(dims.height, dtype=np.int64)[None, None, :]
        h = heights[:, :, None]
        blocks = np.zeros(dims.shape, dtype=np.uint8)
        blocks[y <= h - self.params.soil_depth] = int(BlockType.STONE)
        soil = (y > h - self.params.soil_depth) & (y < h)
        blocks[soil] = np.broadcast_to(subsurface[:, :, None], dims.shape)[soil]
        top = y == h
        blocks[top] = np.broadcast_to(surface[:, :, None], dims.shape)[top]
        # Heights outside [0, height) simply select no cells, which drops those writes.
        return VoxelGrid(blocks, dims)
