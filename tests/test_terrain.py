"""
Tests for biome classification and the terrain column pass.
"""

import math

import numpy as np

from voxelcraft.world.biome import BiomeClassifier
from voxelcraft.world.blocks import Biome, BlockType
from voxelcraft.world.chunk import VoxelGrid, column_coords, index_of
from voxelcraft.world.params import ChunkDims, WorldParams
from voxelcraft.world.terrain import TerrainColumnBuilder

BASES = {Biome.DESERT: 60, Biome.PLAINS: 64, Biome.FOREST: 70}


class TestBiomeClassifier:
    def setup_method(self):
        self.classifier = BiomeClassifier()

    def test_total_and_repeatable(self):
        for wx in range(-400, 400, 37):
            for wz in range(-400, 400, 41):
                first = self.classifier.classify(wx, wz, 12345)
                assert first in (Biome.DESERT, Biome.PLAINS, Biome.FOREST)
                assert self.classifier.classify(wx, wz, 12345) == first

    def test_thresholds(self):
        params = WorldParams()
        for wx in range(0, 2000, 53):
            n = float(self.classifier.biome_noise(wx, 17, 5))
            got = self.classifier.classify(wx, 17, 5)
            if n < params.desert_max:
                assert got == Biome.DESERT
            elif n < params.plains_max:
                assert got == Biome.PLAINS
            else:
                assert got == Biome.FOREST

    def test_grid_matches_scalar(self):
        gx, gz = column_coords(3, -2)
        grid = self.classifier.biome_grid(gx, gz, 77)
        assert grid.shape == (16, 16)
        for x in range(0, 16, 5):
            for z in range(0, 16, 5):
                assert grid[x, z] == self.classifier.classify(gx[x, z], gz[x, z], 77)

    def test_grid_repeatable(self):
        gx, gz = column_coords(0, 0)
        assert np.array_equal(
            self.classifier.biome_grid(gx, gz, 9),
            self.classifier.biome_grid(gx, gz, 9),
        )


class TestChunkLayout:
    def test_index_formula(self):
        assert index_of(0, 0, 0) == 0
        assert index_of(0, 1, 0) == 1
        assert index_of(0, 0, 1) == 128
        assert index_of(1, 0, 0) == 128 * 16
        assert index_of(15, 127, 15) == 16 * 128 * 16 - 1

    def test_bytes_follow_index_formula(self):
        grid = VoxelGrid.empty()
        grid.set(3, 70, 9, int(BlockType.LOG))
        buf = grid.to_bytes()
        assert len(buf) == 32768
        assert buf[index_of(3, 70, 9)] == int(BlockType.LOG)
        assert sum(1 for b in buf if b) == 1

    def test_out_of_range_access(self):
        grid = VoxelGrid.empty()
        grid.set(-1, 0, 0, int(BlockType.STONE))
        grid.set(0, 128, 0, int(BlockType.STONE))
        grid.set(0, 0, 16, int(BlockType.STONE))
        assert not grid.blocks.any()
        assert grid.get(16, 0, 0) == BlockType.AIR
        assert grid.get(0, -1, 0) == BlockType.AIR

    def test_from_bytes_roundtrip_copy(self):
        grid = VoxelGrid.empty()
        grid.set(1, 2, 3, int(BlockType.SAND))
        other = VoxelGrid.from_bytes(grid.to_bytes())
        assert other.get(1, 2, 3) == BlockType.SAND
        other.set(1, 2, 3, int(BlockType.AIR))
        assert grid.get(1, 2, 3) == BlockType.SAND


class TestTerrainColumnBuilder:
    def setup_method(self):
        self.builder = TerrainColumnBuilder()

    def test_layers(self):
        grid = self.builder.build(2, -1, 31)
        biome, heights = self.builder.column_heights(2, -1, 31)
        for x in range(16):
            for z in range(16):
                h = int(heights[x, z])
                desert = biome[x, z] == Biome.DESERT
                col = grid.blocks[x, z]
                assert np.all(col[h + 1:] == BlockType.AIR)
                assert col[h] == (BlockType.SAND if desert else BlockType.GRASS)
                soil = BlockType.SAND if desert else BlockType.DIRT
                assert np.all(col[h - 3:h] == soil)
                assert np.all(col[:h - 3] == BlockType.STONE)

    def test_heights_follow_profile(self):
        biome, heights = self.builder.column_heights(0, 0, 4)
        gx, gz = column_coords(0, 0)
        params = WorldParams()
        for x, z in [(0, 0), (5, 11), (15, 15)]:
            profile = params.profiles[Biome(int(biome[x, z]))]
            n = profile.noise.sample(gx[x, z], gz[x, z], 4)
            assert heights[x, z] == math.floor(profile.base + profile.amplitude * n)

    def test_values_are_block_types(self):
        grid = self.builder.build(-5, 8, 1)
        assert grid.blocks.dtype == np.uint8
        assert int(grid.blocks.max()) <= int(BlockType.CACTUS)

    def test_heights_above_ceiling_are_dropped(self):
        dims = ChunkDims(width=4, height=32, depth=4)
        builder = TerrainColumnBuilder(WorldParams(dims=dims))
        grid = builder.build(0, 0, 3)
        # Every base height exceeds 32, so the whole short grid is stone.
        assert np.all(grid.blocks == BlockType.STONE)

    def test_origin_column_at_seed_zero(self):
        # With seed 0 every octave at the origin hashes sin(0) = 0, so the
        # column height is exactly the biome base.
        n = 43758.5453 * math.sin(1 * 1013.0)
        n = n - math.floor(n)
        expected = Biome.DESERT if n < 0.33 else Biome.PLAINS if n < 0.66 else Biome.FOREST
        biome, heights = self.builder.column_heights(0, 0, 0)
        assert biome[0, 0] == expected
        assert heights[0, 0] == BASES[expected]
