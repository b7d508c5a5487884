from __future__ import annotations

import numpy as np

from voxelcraft.world.blocks import Biome
from voxelcraft.world.params import WorldParams


class BiomeClassifier:
    """Maps world columns to biomes from low-frequency fractal noise.

    Uses seed + biome_seed_offset so the biome field is decorrelated from the
    height field built on the same base seed.
    """

    def __init__(self, params: WorldParams | None = None) -> None:
        self.params = params or WorldParams()

    def biome_noise(self, world_x, world_z, seed):
        return self.params.biome_noise.sample(world_x, world_z, seed + self.params.biome_seed_offset)

    def classify(self, world_x: float, world_z: float, seed: float) -> Biome:
        n = float(self.biome_noise(world_x, world_z, seed))
        if n < self.params.desert_max:
            return Biome.DESERT
        if n < self.params.plains_max:
            return Biome.PLAINS
        return Biome.FOREST

    def biome_grid(self, world_x: np.ndarray, world_z: np.ndarray, seed: float) -> np.ndarray:
        """Vectorized classify(); returns an int8 array of Biome values."""
        n = np.asarray(self.biome_noise(world_x, world_z, seed))
        out = np.full(n.shape, int(Biome.FOREST), dtype=np.int8)
        out[n < self.params.plains_max] = int(Biome.PLAINS)
        out[n < self.params.desert_max] = int(Biome.DESERT)
        return out
