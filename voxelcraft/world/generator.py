from __future__ import annotations

from voxelcraft.world.biome import BiomeClassifier
from voxelcraft.world.cancel import CancelToken, check
from voxelcraft.world.caves import CaveCarver
from voxelcraft.world.chunk import VoxelGrid
from voxelcraft.world.features import FeaturePlacer
from voxelcraft.world.params import WorldParams
from voxelcraft.world.terrain import TerrainColumnBuilder


class ChunkGenerator:
    """Runs terrain -> caves -> features for one chunk.

    The order is fixed: caves need finished terrain, and features need the
    carved surface. The returned grid is frozen.
    """

    def __init__(self, params: WorldParams | None = None) -> None:
        self.params = params or WorldParams()
        biomes = BiomeClassifier(self.params)
        self.terrain = TerrainColumnBuilder(self.params, biomes)
        self.caves = CaveCarver(self.params)
        self.features = FeaturePlacer(self.params, biomes)

    def generate(self, cx: int, cz: int, seed: float, *, cancel: CancelToken | None = None) -> VoxelGrid:
        check(cancel)
        grid = self.terrain.build(cx, cz, seed)
        check(cancel)
        grid = self.caves.carve(grid, cx, cz, seed)
        check(cancel)
        grid = self.features.place(grid, cx, cz, seed, cancel=cancel)
        return grid.freeze()
