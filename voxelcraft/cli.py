from __future__ import annotations

import argparse
import random
import sys
import time
from pathlib import Path

import numpy as np

from voxelcraft.config import (
    APP_VERSION,
    DEFAULT_SEED,
    DEFAULT_WORKERS,
    RENDER_DISTANCE,
)
from voxelcraft.world.chunk_manager import ChunkManager, ChunkWindow
from voxelcraft.world.pipeline import (
    ChunkPipeline,
    GenerateRequest,
    GenerateResult,
    InvalidInputError,
    RemeshRequest,
    RemeshResult,
)
from voxelcraft.world.world import World, chunk_key


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="voxelcraft", description=f"Voxel chunk generator and mesher v{APP_VERSION}")
    p.add_argument("--seed", default=str(DEFAULT_SEED), help="int seed or 'random' (default: 12345)")
    p.add_argument("--chunk", type=int, nargs=2, default=[0, 0], metavar=("CX", "CZ"), help="chunk coordinates (default: 0 0)")
    p.add_argument(
        "--radius",
        type=int,
        default=0,
        help=f"also generate every chunk within this many chunks on worker threads (the viewer uses {RENDER_DISTANCE})",
    )
    p.add_argument("--workers", type=int, default=DEFAULT_WORKERS, help="worker threads for --radius")
    p.add_argument("--out", type=Path, default=None, help="write voxels and mesh arrays of the centre chunk to an .npz file")
    p.add_argument("--remesh", type=Path, default=None, help="mesh a raw voxel buffer file instead of generating")
    p.add_argument("--debug", action="store_true", help="print diagnostics")
    return p.parse_args(argv)


def _seed_from_arg(value: str) -> int:
    if value.lower() == "random":
        return random.randint(0, 2**31 - 1)
    return int(value)


def _save_npz(path: Path, res: GenerateResult | RemeshResult) -> None:
    msg = res.to_message()
    arrays = {k: np.asarray(v, dtype=np.float32) for k, v in msg.items() if k != "voxelBuffer"}
    # one (N, 11) vertex stream ready for a single VBO
    arrays["vertices"] = res.mesh.interleaved()
    if "voxelBuffer" in msg:
        arrays["voxelBuffer"] = np.frombuffer(msg["voxelBuffer"], dtype=np.uint8)
    np.savez_compressed(path, **arrays)


def _run_window(pipeline: ChunkPipeline, seed: int, cx: int, cz: int, radius: int, workers: int, debug: bool) -> World:
    world = World(pipeline.params.dims)
    window = ChunkWindow(render_distance=radius)
    with ChunkManager(seed=seed, pipeline=pipeline, window=window, workers=workers, debug=debug) as cm:
        dims = pipeline.params.dims
        world.update_requests(cm, (cx + 0.5) * dims.width, (cz + 0.5) * dims.depth)
        results = cm.wait_all()
    for r in results:
        if r.error is not None:
            print(f"[voxelcraft] chunk {chunk_key(r.cx, r.cz)} failed: {r.error!r}", file=sys.stderr)
    world.ingest(results)
    return world


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    pipeline = ChunkPipeline()

    if args.remesh is not None:
        try:
            res = pipeline.handle(RemeshRequest(voxel_buffer=args.remesh.read_bytes()))
        except InvalidInputError as e:
            print(f"[voxelcraft] invalid input: {e}", file=sys.stderr)
            return 2
        print(f"remesh {args.remesh}: faces={res.mesh.face_count} vertices={res.mesh.vertex_count}")
        if args.out is not None:
            _save_npz(args.out, res)
        return 0

    seed = _seed_from_arg(args.seed)
    cx, cz = args.chunk

    t0 = time.perf_counter()
    res = pipeline.handle(GenerateRequest(chunk_x=cx, chunk_z=cz, seed=seed))
    dt = time.perf_counter() - t0
    print(f"chunk {chunk_key(cx, cz)} seed={seed}: faces={res.mesh.face_count} vertices={res.mesh.vertex_count}")
    if args.debug:
        counts = np.bincount(res.voxels.blocks.reshape(-1), minlength=8)
        print(f"[voxelcraft] generated in {dt * 1000.0:.1f} ms, block counts={counts.tolist()}")

    if args.radius > 0:
        world = _run_window(pipeline, seed, cx, cz, int(args.radius), int(args.workers), bool(args.debug))
        print(f"window radius={args.radius}: loaded {len(world.chunks)} chunk(s)")
        spawn = world.spawn_point(cx, cz)
        if spawn is not None:
            print(f"spawn at ({spawn[0]:.1f}, {spawn[1]:.1f}, {spawn[2]:.1f})")

    if args.out is not None:
        _save_npz(args.out, res)
        if args.debug:
            print(f"[voxelcraft] wrote {args.out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
