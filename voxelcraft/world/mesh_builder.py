from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from voxelcraft.world.blocks import material_colors
from voxelcraft.world.chunk import VoxelGrid

# Face table in emission order: -Y, +Y, -X, +X, -Z, +Z.
# Corners are unit-cube offsets (x, y, z) for p1..p4 of each quad.
FACE_DIRS = np.array([
    [0, -1, 0],
    [0, 1, 0],
    [-1, 0, 0],
    [1, 0, 0],
    [0, 0, -1],
    [0, 0, 1],
], dtype=np.int64)

FACE_CORNERS = np.array([
    [[0, 0, 1], [1, 0, 1], [1, 0, 0], [0, 0, 0]],  # -Y (bottom)
    [[0, 1, 0], [1, 1, 0], [1, 1, 1], [0, 1, 1]],  # +Y (top)
    [[0, 0, 1], [0, 1, 1], [0, 1, 0], [0, 0, 0]],  # -X (left)
    [[1, 0, 0], [1, 1, 0], [1, 1, 1], [1, 0, 1]],  # +X (right)
    [[1, 0, 0], [0, 0, 0], [0, 1, 0], [1, 1, 0]],  # -Z (back)
    [[0, 0, 1], [1, 0, 1], [1, 1, 1], [0, 1, 1]],  # +Z (front)
], dtype=np.float32)

# Two triangles per quad: (p1, p2, p3) and (p1, p3, p4)
QUAD_TRIANGLES = np.array([0, 1, 2, 0, 2, 3], dtype=np.int64)

VERTS_PER_FACE = 6

_COLORS, _HAS_MATERIAL = material_colors()


def _readonly(a: np.ndarray) -> np.ndarray:
    a = np.ascontiguousarray(a, dtype=np.float32).reshape(-1)
    a.flags.writeable = False
    return a


@dataclass(frozen=True, eq=False)
class MeshBuffers:
    """Flat, write-once vertex streams for one chunk.

    positions/normals/colors carry 3 floats per vertex, uvs 2 (always zero).
    Every 6 vertices form one face (two triangles).
    """

    positions: np.ndarray
    normals: np.ndarray
    uvs: np.ndarray
    colors: np.ndarray

    @property
    def vertex_count(self) -> int:
        return int(self.positions.shape[0] // 3)

    @property
    def face_count(self) -> int:
        return self.vertex_count // VERTS_PER_FACE

    def equals(self, other: "MeshBuffers") -> bool:
        return (
            np.array_equal(self.positions, other.positions)
            and np.array_equal(self.normals, other.normals)
            and np.array_equal(self.uvs, other.uvs)
            and np.array_equal(self.colors, other.colors)
        )

    def interleaved(self) -> np.ndarray:
        """(N, 11) float32: pos3 + norm3 + uv2 + color3 per vertex."""
        n = self.vertex_count
        return np.concatenate(
            [
                self.positions.reshape(n, 3),
                self.normals.reshape(n, 3),
                self.uvs.reshape(n, 2),
                self.colors.reshape(n, 3),
            ],
            axis=1,
        ).astype(np.float32)


def visible_faces(blocks: np.ndarray) -> np.ndarray:
    """Bool (sx, sz, sy, 6) array: face f of cell [x, z, y] is visible.

    A face is visible when its cell has a material and the neighbour in the
    face direction is air. Cells outside the grid count as air.
    """
    sx, sz, sy = blocks.shape
    padded = np.zeros((sx + 2, sz + 2, sy + 2), dtype=blocks.dtype)
    padded[1:-1, 1:-1, 1:-1] = blocks
    solid = _HAS_MATERIAL[blocks]

    out = np.zeros((sx, sz, sy, len(FACE_DIRS)), dtype=bool)
    for f, (dx, dy, dz) in enumerate(FACE_DIRS):
        # storage order is [x, z, y]
        neighbour = padded[1 + dx:1 + dx + sx, 1 + dz:1 + dz + sz, 1 + dy:1 + dy + sy]
        out[..., f] = solid & (neighbour == 0)
    return out


def build_mesh(blocks: np.ndarray) -> MeshBuffers:
    """Face-culled mesh of a [x, z, y] block array of any extents.

    Faces come out X outer, Z middle, Y inner, then in face-table order,
    the same order a cell-by-cell walk of the storage layout produces.
    """
    blocks = np.asarray(blocks, dtype=np.uint8)
    vis = visible_faces(blocks)
    xi, zi, yi, fi = np.nonzero(vis)  # C order == traversal order
    n_faces = int(fi.shape[0])

    origin = np.stack([xi, yi, zi], axis=-1).astype(np.float32)  # (F, 3)
    corners = FACE_CORNERS[fi][:, QUAD_TRIANGLES, :]  # (F, 6, 3)
    positions = corners + origin[:, None, :]

    normals = np.repeat(FACE_DIRS[fi].astype(np.float32)[:, None, :], VERTS_PER_FACE, axis=1)
    cell_color = _COLORS[blocks[xi, zi, yi]]
    colors = np.repeat(cell_color[:, None, :], VERTS_PER_FACE, axis=1)
    uvs = np.zeros((n_faces, VERTS_PER_FACE, 2), dtype=np.float32)

    return MeshBuffers(
        positions=_readonly(positions),
        normals=_readonly(normals),
        uvs=_readonly(uvs),
        colors=_readonly(colors),
    )


def build_chunk_mesh(grid: VoxelGrid) -> MeshBuffers:
    return build_mesh(grid.blocks)
