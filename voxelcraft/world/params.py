from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from voxelcraft import config
from voxelcraft.world.blocks import Biome, BlockType
from voxelcraft.world.noise import NoiseConfig


@dataclass(frozen=True)
class ChunkDims:
    width: int = config.CHUNK_SIZE  # X
    height: int = config.CHUNK_HEIGHT  # Y
    depth: int = config.CHUNK_SIZE  # Z

    @property
    def volume(self) -> int:
        return self.width * self.height * self.depth

    @property
    def shape(self) -> tuple[int, int, int]:
        # numpy storage shape: [x, z, y] so that C order matches the wire layout
        return (self.width, self.depth, self.height)


@dataclass(frozen=True)
class BiomeProfile:
    base: float
    amplitude: float
    noise: NoiseConfig
    surface: BlockType = BlockType.GRASS
    subsurface: BlockType = BlockType.DIRT


def _default_profiles() -> Mapping[Biome, BiomeProfile]:
    return MappingProxyType({
        Biome.DESERT: BiomeProfile(
            base=60.0,
            amplitude=10.0,
            noise=NoiseConfig(octaves=4, persistence=0.5, lacunarity=2.0, scale=0.02),
            surface=BlockType.SAND,
            subsurface=BlockType.SAND,
        ),
        Biome.PLAINS: BiomeProfile(
            base=64.0,
            amplitude=15.0,
            noise=NoiseConfig(octaves=5, persistence=0.5, lacunarity=2.0, scale=0.02),
        ),
        Biome.FOREST: BiomeProfile(
            base=70.0,
            amplitude=30.0,
            noise=NoiseConfig(octaves=6, persistence=0.5, lacunarity=2.0, scale=0.015),
        ),
    })


@dataclass(frozen=True)
class WorldParams:
    """Immutable generation settings shared by every stage of one world.

    Two pipelines built with different WorldParams never see each other's
    values, so independently configured worlds can run side by side.
    """

    dims: ChunkDims = field(default_factory=ChunkDims)

    # Biomes
    biome_seed_offset: int = config.BIOME_SEED_OFFSET
    biome_noise: NoiseConfig = NoiseConfig(
        octaves=config.BIOME_OCTAVES,
        persistence=config.BIOME_PERSISTENCE,
        lacunarity=config.BIOME_LACUNARITY,
        scale=config.BIOME_SCALE,
    )
    desert_max: float = config.DESERT_MAX
    plains_max: float = config.PLAINS_MAX
    profiles: Mapping[Biome, BiomeProfile] = field(default_factory=_default_profiles)
    soil_depth: int = config.SOIL_DEPTH

    # Caves
    cave_seed_offset: int = config.CAVE_SEED_OFFSET
    cave_scale: float = config.CAVE_SCALE
    cave_threshold: float = config.CAVE_THRESHOLD

    # Features
    feature_seed_offset: int = config.FEATURE_SEED_OFFSET
    feature_size_seed_offset: int = config.FEATURE_SIZE_SEED_OFFSET
    tree_threshold: float = config.TREE_THRESHOLD
    tree_edge_margin: int = config.TREE_EDGE_MARGIN
    tree_min_height: int = config.TREE_MIN_HEIGHT
    tree_height_range: int = config.TREE_HEIGHT_RANGE
    leaves_radius: int = config.LEAVES_RADIUS
    cactus_threshold: float = config.CACTUS_THRESHOLD
    cactus_min_height: int = config.CACTUS_MIN_HEIGHT
    cactus_height_range: int = config.CACTUS_HEIGHT_RANGE

    @property
    def max_feature_height(self) -> int:
        """Tallest a feature can reach above its surface cell."""
        tree = self.tree_min_height + self.tree_height_range - 1 + self.leaves_radius
        cactus = self.cactus_min_height + self.cactus_height_range - 1
        return max(tree, cactus)
