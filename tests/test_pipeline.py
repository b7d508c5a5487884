"""
Tests for the chunk pipeline task boundary.
"""

import numpy as np
import pytest

from voxelcraft.world.biome import BiomeClassifier
from voxelcraft.world.blocks import Biome, BlockType
from voxelcraft.world.chunk import index_of
from voxelcraft.world.pipeline import (
    CancelToken,
    ChunkCancelled,
    ChunkPipeline,
    GenerateRequest,
    GenerateResult,
    InvalidInputError,
    RemeshRequest,
    RemeshResult,
)


@pytest.fixture(scope="module")
def pipeline():
    return ChunkPipeline()


@pytest.fixture(scope="module")
def origin_chunk(pipeline):
    return pipeline.handle(GenerateRequest(chunk_x=0, chunk_z=0, seed=0))


class TestGenerate:
    @pytest.mark.parametrize("cx,cz,seed", [(0, 0, 0), (2, -3, 12345), (-9, 4, 777)])
    def test_deterministic(self, pipeline, cx, cz, seed):
        a = pipeline.handle(GenerateRequest(chunk_x=cx, chunk_z=cz, seed=seed))
        b = ChunkPipeline().handle(GenerateRequest(chunk_x=cx, chunk_z=cz, seed=seed))
        assert a.voxel_buffer == b.voxel_buffer
        assert a.mesh.equals(b.mesh)

    def test_result_shape(self, origin_chunk):
        assert isinstance(origin_chunk, GenerateResult)
        assert len(origin_chunk.voxel_buffer) == 16 * 128 * 16
        mesh = origin_chunk.mesh
        assert mesh.face_count > 0
        assert mesh.positions.size == mesh.face_count * 6 * 3
        assert mesh.normals.size == mesh.face_count * 6 * 3
        assert mesh.uvs.size == mesh.face_count * 6 * 2
        assert mesh.colors.size == mesh.face_count * 6 * 3

    def test_block_values_in_range(self, origin_chunk):
        buf = np.frombuffer(origin_chunk.voxel_buffer, dtype=np.uint8)
        assert int(buf.max()) <= int(BlockType.CACTUS)

    def test_voxels_are_frozen(self, origin_chunk):
        with pytest.raises(ValueError):
            origin_chunk.voxels.blocks[0, 0, 0] = int(BlockType.AIR)

    def test_origin_column_scenario(self, origin_chunk):
        # seed 0 at the origin: the biome noise falls in the desert band and
        # every height octave hashes sin(0) = 0, so the column sits at base 60
        assert BiomeClassifier().classify(0, 0, 0) == Biome.DESERT
        assert origin_chunk.voxel_buffer[index_of(0, 60, 0)] == BlockType.SAND
        assert origin_chunk.voxels.get(0, 59, 0) == BlockType.SAND
        assert origin_chunk.voxels.get(0, 61, 0) in (BlockType.AIR, BlockType.CACTUS)

    def test_different_seeds_differ(self, pipeline):
        a = pipeline.handle(GenerateRequest(chunk_x=1, chunk_z=1, seed=1))
        b = pipeline.handle(GenerateRequest(chunk_x=1, chunk_z=1, seed=2))
        assert a.voxel_buffer != b.voxel_buffer

    def test_message(self, origin_chunk):
        msg = origin_chunk.to_message()
        assert set(msg) == {"voxelBuffer", "positions", "normals", "uv", "colors"}
        assert msg["positions"].dtype == np.float32


class TestRemesh:
    def test_remesh_reproduces_generated_mesh(self, pipeline, origin_chunk):
        res = pipeline.handle(RemeshRequest(voxel_buffer=origin_chunk.voxel_buffer))
        assert isinstance(res, RemeshResult)
        assert res.mesh.equals(origin_chunk.mesh)

    def test_remesh_message_has_no_voxels(self, pipeline, origin_chunk):
        msg = pipeline.handle(RemeshRequest(voxel_buffer=origin_chunk.voxel_buffer)).to_message()
        assert "voxelBuffer" not in msg

    @pytest.mark.parametrize("size", [0, 32767, 32769, 16 * 16 * 16])
    def test_wrong_length(self, pipeline, size):
        with pytest.raises(InvalidInputError):
            pipeline.handle(RemeshRequest(voxel_buffer=bytes(size)))

    @pytest.mark.parametrize(
        "buf",
        [np.zeros(32768, dtype=np.int64), "x" * 32768, [0] * 32768, None],
    )
    def test_not_a_byte_buffer(self, pipeline, buf):
        with pytest.raises(InvalidInputError):
            pipeline.handle(RemeshRequest(voxel_buffer=buf))

    def test_memoryview_counts_bytes(self, pipeline):
        wide = memoryview(np.zeros(32768, dtype=np.int64))
        with pytest.raises(InvalidInputError):
            pipeline.handle(RemeshRequest(voxel_buffer=wide))
        res = pipeline.handle(RemeshRequest(voxel_buffer=memoryview(np.zeros(4096, dtype=np.int64))))
        assert res.mesh.vertex_count == 0

    def test_all_air(self, pipeline):
        res = pipeline.handle(RemeshRequest(voxel_buffer=bytes(32768)))
        assert res.mesh.vertex_count == 0


class TestRequests:
    def test_unknown_request(self, pipeline):
        with pytest.raises(InvalidInputError):
            pipeline.handle((0, 0, 0))

    def test_generate_message(self, pipeline):
        msg = pipeline.handle_message({"chunkX": 0, "chunkZ": 0, "seed": 0})
        assert len(msg["voxelBuffer"]) == 32768

    def test_remesh_message(self, pipeline, origin_chunk):
        msg = pipeline.handle_message({"voxelBuffer": origin_chunk.voxel_buffer})
        assert np.array_equal(msg["positions"], origin_chunk.mesh.positions)

    @pytest.mark.parametrize(
        "msg",
        [
            {},
            {"chunkX": 0, "seed": 1},
            {"chunkX": "0", "chunkZ": 0, "seed": 1},
            {"chunkX": 0, "chunkZ": 0, "seed": "abc"},
            {"voxelBuffer": [0] * 32768},
            {"voxelBuffer": b"\x00" * 10},
            {"chunkX": 0, "chunkZ": 0, "seed": 10**400},
            {"chunkX": 0, "chunkZ": 0, "seed": float("nan")},
            {"chunkX": 0, "chunkZ": 0, "seed": float("inf")},
            {"chunkX": 0, "chunkZ": 0, "seed": True},
            {"chunkX": 10**400, "chunkZ": 0, "seed": 1},
        ],
    )
    def test_bad_messages(self, pipeline, msg):
        with pytest.raises(InvalidInputError):
            pipeline.handle_message(msg)

    @pytest.mark.parametrize("seed", [float("nan"), float("-inf"), 10**400])
    def test_bad_seed_on_request(self, pipeline, seed):
        with pytest.raises(InvalidInputError):
            pipeline.handle(GenerateRequest(chunk_x=0, chunk_z=0, seed=seed))

    def test_float_seed_accepted(self, pipeline):
        msg = pipeline.handle_message({"chunkX": 0, "chunkZ": 0, "seed": 2.5})
        assert len(msg["voxelBuffer"]) == 32768


class TestCancellation:
    def test_cancelled_before_start(self, pipeline):
        token = CancelToken()
        token.cancel()
        with pytest.raises(ChunkCancelled):
            pipeline.handle(GenerateRequest(chunk_x=0, chunk_z=0, seed=0), cancel=token)

    def test_cancelled_remesh(self, pipeline):
        token = CancelToken()
        token.cancel()
        with pytest.raises(ChunkCancelled):
            pipeline.handle(RemeshRequest(voxel_buffer=bytes(32768)), cancel=token)

    def test_token_unset_runs(self, pipeline):
        token = CancelToken()
        res = pipeline.handle(GenerateRequest(chunk_x=0, chunk_z=0, seed=0), cancel=token)
        assert not token.cancelled
        assert res.mesh.face_count > 0
