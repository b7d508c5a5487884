from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Union

import numpy as np

from voxelcraft.world.cancel import CancelToken, ChunkCancelled, check
from voxelcraft.world.chunk import VoxelGrid
from voxelcraft.world.generator import ChunkGenerator
from voxelcraft.world.mesh_builder import MeshBuffers, build_chunk_mesh
from voxelcraft.world.params import WorldParams

__all__ = [
    "CancelToken",
    "ChunkCancelled",
    "ChunkPipeline",
    "GenerateRequest",
    "GenerateResult",
    "InvalidInputError",
    "RemeshRequest",
    "RemeshResult",
]


class InvalidInputError(ValueError):
    """A request the pipeline cannot process. No partial output exists."""


def _require(msg: Mapping[str, Any], key: str) -> Any:
    if key not in msg:
        raise InvalidInputError(f"missing field {key!r}")
    return msg[key]


def _as_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidInputError(f"field {key!r} must be an integer, got {type(value).__name__}")
    try:
        float(value)
    except OverflowError:
        raise InvalidInputError(f"field {key!r} is too large") from None
    return int(value)


def _as_seed(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, np.integer, np.floating)):
        raise InvalidInputError(f"field 'seed' must be a number, got {type(value).__name__}")
    try:
        seed = float(value)
    except OverflowError:
        raise InvalidInputError("field 'seed' is too large") from None
    if not math.isfinite(seed):
        raise InvalidInputError(f"field 'seed' must be finite, got {seed}")
    return value


@dataclass(frozen=True)
class GenerateRequest:
    chunk_x: int
    chunk_z: int
    seed: float = 0

    @classmethod
    def from_message(cls, msg: Mapping[str, Any]) -> "GenerateRequest":
        return cls(
            chunk_x=_as_int(_require(msg, "chunkX"), "chunkX"),
            chunk_z=_as_int(_require(msg, "chunkZ"), "chunkZ"),
            seed=_as_seed(_require(msg, "seed")),
        )


@dataclass(frozen=True)
class RemeshRequest:
    voxel_buffer: bytes

    @classmethod
    def from_message(cls, msg: Mapping[str, Any]) -> "RemeshRequest":
        buf = _require(msg, "voxelBuffer")
        if not isinstance(buf, (bytes, bytearray, memoryview)):
            raise InvalidInputError(f"field 'voxelBuffer' must be bytes, got {type(buf).__name__}")
        return cls(voxel_buffer=bytes(buf))


def _mesh_message(mesh: MeshBuffers) -> dict[str, Any]:
    return {
        "positions": mesh.positions,
        "normals": mesh.normals,
        "uv": mesh.uvs,
        "colors": mesh.colors,
    }


@dataclass(frozen=True, eq=False)
class GenerateResult:
    chunk_x: int
    chunk_z: int
    voxels: VoxelGrid
    mesh: MeshBuffers

    @property
    def voxel_buffer(self) -> bytes:
        return self.voxels.to_bytes()

    def to_message(self) -> dict[str, Any]:
        msg = {"voxelBuffer": self.voxel_buffer}
        msg.update(_mesh_message(self.mesh))
        return msg


@dataclass(frozen=True, eq=False)
class RemeshResult:
    mesh: MeshBuffers

    def to_message(self) -> dict[str, Any]:
        return _mesh_message(self.mesh)


Request = Union[GenerateRequest, RemeshRequest]
Result = Union[GenerateResult, RemeshResult]


class ChunkPipeline:
    """Task boundary: one request in, one complete result out.

    A pipeline holds only immutable settings, so one instance may serve any
    number of threads at once.
    """

    def __init__(self, params: WorldParams | None = None) -> None:
        self.params = params or WorldParams()
        self.generator = ChunkGenerator(self.params)

    def handle(self, request: Request, *, cancel: CancelToken | None = None) -> Result:
        if isinstance(request, GenerateRequest):
            return self.generate(request, cancel=cancel)
        if isinstance(request, RemeshRequest):
            return self.remesh(request, cancel=cancel)
        raise InvalidInputError(f"unsupported request type {type(request).__name__}")

    def generate(self, request: GenerateRequest, *, cancel: CancelToken | None = None) -> GenerateResult:
        cx = _as_int(request.chunk_x, "chunkX")
        cz = _as_int(request.chunk_z, "chunkZ")
        grid = self.generator.generate(cx, cz, _as_seed(request.seed), cancel=cancel)
        check(cancel)
        mesh = build_chunk_mesh(grid)
        return GenerateResult(chunk_x=cx, chunk_z=cz, voxels=grid, mesh=mesh)

    def remesh(self, request: RemeshRequest, *, cancel: CancelToken | None = None) -> RemeshResult:
        dims = self.params.dims
        buf = request.voxel_buffer
        if not isinstance(buf, (bytes, bytearray, memoryview)):
            raise InvalidInputError(f"voxel buffer must be bytes, got {type(buf).__name__}")
        nbytes = memoryview(buf).nbytes
        if nbytes != dims.volume:
            raise InvalidInputError(f"voxel buffer must be {dims.volume} bytes, got {nbytes}")
        check(cancel)
        grid = VoxelGrid.from_bytes(buf, dims).freeze()
        return RemeshResult(mesh=build_chunk_mesh(grid))

    def handle_message(self, msg: Mapping[str, Any], *, cancel: CancelToken | None = None) -> dict[str, Any]:
        """Dict-in, dict-out form of handle() using the wire field names."""
        if "voxelBuffer" in msg:
            request: Request = RemeshRequest.from_message(msg)
        elif "chunkX" in msg or "chunkZ" in msg:
            request = GenerateRequest.from_message(msg)
        else:
            raise InvalidInputError("message is neither a generate nor a remesh request")
        return self.handle(request, cancel=cancel).to_message()
