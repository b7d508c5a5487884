from __future__ import annotations

import queue
import threading
from dataclasses import dataclass
from typing import Dict, Optional, Set, Tuple, Union

import numpy as np

from voxelcraft.config import DEFAULT_WORKERS, POLL_MAX_ITEMS, RENDER_DISTANCE
from voxelcraft.world.cancel import CancelToken, ChunkCancelled
from voxelcraft.world.chunk import VoxelGrid
from voxelcraft.world.pipeline import (
    ChunkPipeline,
    GenerateRequest,
    GenerateResult,
    RemeshRequest,
    RemeshResult,
)

ChunkKey = Tuple[int, int]


@dataclass(frozen=True)
class ChunkWindow:
    render_distance: int = RENDER_DISTANCE

    def keys_around(self, cx: int, cz: int) -> Set[ChunkKey]:
        r = self.render_distance
        return {(cx + dx, cz + dz) for dx in range(-r, r + 1) for dz in range(-r, r + 1)}


@dataclass
class ChunkTask:
    cx: int
    cz: int
    seed: float
    token: CancelToken
    # set for chunks whose voxels already exist; only the mesh is rebuilt
    voxel_buffer: Optional[bytes] = None


@dataclass
class ChunkResult:
    cx: int
    cz: int
    result: Optional[Union[GenerateResult, RemeshResult]] = None
    error: Optional[BaseException] = None
    token: Optional[CancelToken] = None

    @property
    def ok(self) -> bool:
        return self.result is not None


class ChunkWorker(threading.Thread):
    def __init__(
        self,
        task_q: "queue.Queue[ChunkTask]",
        out_q: "queue.Queue[ChunkResult]",
        pipeline: ChunkPipeline,
        *,
        debug: bool = False,
    ) -> None:
        super().__init__(daemon=True)
        self.task_q = task_q
        self.out_q = out_q
        self.pipeline = pipeline
        self.debug = debug
        self._stop_event = threading.Event()

    def stop(self) -> None:
        self._stop_event.set()

    def run(self) -> None:
        while not self._stop_event.is_set():
            try:
                task = self.task_q.get(timeout=0.1)
            except queue.Empty:
                continue
            try:
                if task.token.cancelled:
                    continue
                if task.voxel_buffer is not None:
                    req = RemeshRequest(voxel_buffer=task.voxel_buffer)
                else:
                    req = GenerateRequest(chunk_x=task.cx, chunk_z=task.cz, seed=task.seed)
                try:
                    res = self.pipeline.handle(req, cancel=task.token)
                except ChunkCancelled:
                    if self.debug:
                        print(f"[voxelcraft] chunk ({task.cx},{task.cz}) cancelled")
                    continue
                except Exception as e:
                    if self.debug:
                        print(f"[voxelcraft] chunk ({task.cx},{task.cz}) failed: {e!r}")
                    self.out_q.put(ChunkResult(cx=task.cx, cz=task.cz, error=e, token=task.token))
                    continue
                self.out_q.put(ChunkResult(cx=task.cx, cz=task.cz, result=res, token=task.token))
            finally:
                self.task_q.task_done()


class ChunkManager:
    """Generates chunks on a pool of worker threads.

    Results arrive in completion order, which is not request order.
    """

    def __init__(
        self,
        *,
        seed: float,
        pipeline: ChunkPipeline | None = None,
        window: ChunkWindow | None = None,
        workers: int = DEFAULT_WORKERS,
        debug: bool = False,
    ) -> None:
        self.seed = seed
        self.pipeline = pipeline or ChunkPipeline()
        self.window = window or ChunkWindow()
        self.debug = debug

        self.task_q: "queue.Queue[ChunkTask]" = queue.Queue()
        self.out_q: "queue.Queue[ChunkResult]" = queue.Queue()

        self.workers = [
            ChunkWorker(self.task_q, self.out_q, self.pipeline, debug=debug)
            for _ in range(max(1, int(workers)))
        ]
        for w in self.workers:
            w.start()

        self.pending: Dict[ChunkKey, CancelToken] = {}
        self._lock = threading.Lock()

    def shutdown(self) -> None:
        with self._lock:
            for token in self.pending.values():
                token.cancel()
            self.pending.clear()
        for w in self.workers:
            w.stop()
        for w in self.workers:
            w.join(timeout=1.0)

    def __enter__(self) -> "ChunkManager":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()

    def world_to_chunk(self, x: float, z: float) -> tuple[int, int]:
        size = self.pipeline.params.dims
        cx = int(np.floor(x / size.width))
        cz = int(np.floor(z / size.depth))
        return cx, cz

    def needed_chunks(self, cam_cx: int, cam_cz: int) -> Set[ChunkKey]:
        return self.window.keys_around(cam_cx, cam_cz)

    def request(self, key: ChunkKey) -> bool:
        with self._lock:
            if key in self.pending:
                return False
            token = CancelToken()
            self.pending[key] = token
        self.task_q.put(ChunkTask(cx=key[0], cz=key[1], seed=self.seed, token=token))
        return True

    def request_remesh(self, key: ChunkKey, grid: VoxelGrid) -> None:
        """Rebuild the mesh of an already generated chunk from its current voxels.

        Supersedes any task still pending for key, so the newest edit wins.
        """
        token = CancelToken()
        with self._lock:
            old = self.pending.get(key)
            if old is not None:
                old.cancel()
            self.pending[key] = token
        self.task_q.put(
            ChunkTask(cx=key[0], cz=key[1], seed=self.seed, token=token, voxel_buffer=grid.to_bytes())
        )

    def request_missing(self, needed: Set[ChunkKey], existing: Set[ChunkKey]) -> None:
        # Stable order so nearby requests are at least queued deterministically.
        for key in sorted(needed):
            if key in existing:
                continue
            self.request(key)

    def cancel_outside(self, needed: Set[ChunkKey]) -> list[ChunkKey]:
        dropped = []
        with self._lock:
            for key in list(self.pending.keys()):
                if key not in needed:
                    self.pending.pop(key).cancel()
                    dropped.append(key)
        if dropped and self.debug:
            print(f"[voxelcraft] cancelled {len(dropped)} chunk(s) outside window")
        return dropped

    def poll_ready(self, max_items: int = POLL_MAX_ITEMS) -> list[ChunkResult]:
        ready = []
        for _ in range(max_items):
            try:
                ch = self.out_q.get_nowait()
            except queue.Empty:
                break
            with self._lock:
                token = self.pending.get((ch.cx, ch.cz))
                if token is None or (ch.token is not None and ch.token is not token):
                    # cancelled or superseded after it finished; drop the stale result
                    continue
                del self.pending[(ch.cx, ch.cz)]
            ready.append(ch)
        return ready

    def wait_all(self, timeout_s: float = 30.0) -> list[ChunkResult]:
        """Block until every pending chunk has a result or the timeout expires."""
        import time as _time
        deadline = _time.perf_counter() + float(timeout_s)
        out: list[ChunkResult] = []
        while _time.perf_counter() < deadline:
            with self._lock:
                if not self.pending:
                    break
            got = self.poll_ready(max_items=POLL_MAX_ITEMS)
            if not got:
                _time.sleep(0.01)
                continue
            out.extend(got)
        return out
