from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

import numpy as np


class BlockType(IntEnum):
    AIR = 0
    DIRT = 1
    GRASS = 2
    STONE = 3
    SAND = 4
    LOG = 5
    LEAVES = 6
    CACTUS = 7


class Biome(IntEnum):
    PLAINS = 0
    DESERT = 1
    FOREST = 2


@dataclass(frozen=True)
class Material:
    r: int
    g: int
    b: int

    @classmethod
    def from_hex(cls, color: int) -> "Material":
        return cls((color >> 16) & 255, (color >> 8) & 255, color & 255)

    def rgb01(self) -> tuple[float, float, float]:
        return (self.r / 255.0, self.g / 255.0, self.b / 255.0)


# AIR has no material on purpose: it is never meshed.
MATERIALS: dict[BlockType, Material] = {
    BlockType.DIRT: Material.from_hex(0x8B5A2B),
    BlockType.GRASS: Material.from_hex(0x4CAF50),
    BlockType.STONE: Material.from_hex(0x9E9E9E),
    BlockType.SAND: Material.from_hex(0xF4A460),
    BlockType.LOG: Material.from_hex(0x663300),
    BlockType.LEAVES: Material.from_hex(0x006400),
    BlockType.CACTUS: Material.from_hex(0x228B22),
}


def material_colors() -> tuple[np.ndarray, np.ndarray]:
    """Return (colors, has_material) lookup arrays indexed by raw byte value.

    colors is (256, 3) float32 in [0,1]; has_material is a (256,) bool mask.
    Bytes with no material (AIR, unknown values) map to black and False.
    """
    colors = np.zeros((256, 3), dtype=np.float32)
    has_material = np.zeros(256, dtype=bool)
    for block, mat in MATERIALS.items():
        colors[int(block)] = mat.rgb01()
        has_material[int(block)] = True
    return colors, has_material
