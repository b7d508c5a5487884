from __future__ import annotations

from dataclasses import dataclass

import numpy as np

# Hash coefficients. Changing any of these changes every generated world.
_CX = 127.1
_CY = 311.7
_CZ = 522.1
_CSEED = 1013.0
_K = 43758.5453


def point_noise(x, y, z, seed=0):
    """Deterministic sine hash in [0,1).

    Accepts scalars or numpy arrays (broadcast together). Always evaluated in
    float64 so that the same inputs give the same bits on every call.

    Note: this is a spatial hash, not a smooth noise; neighbouring inputs
    are uncorrelated once multiplied by a large enough frequency.
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    z = np.asarray(z, dtype=np.float64)
    n = np.sin(x * _CX + y * _CY + z * _CZ + np.float64(seed) * _CSEED) * _K
    out = n - np.floor(n)
    if out.ndim == 0:
        return float(out)
    return out


def fractal_noise(x, z, seed, octaves: int, persistence: float, lacunarity: float, scale: float):
    """Octave sum of point_noise on the y=0 plane, normalized to [0,1]."""
    x = np.asarray(x, dtype=np.float64)
    z = np.asarray(z, dtype=np.float64)
    total = np.zeros(np.broadcast(x, z).shape, dtype=np.float64)
    frequency = float(scale)
    amplitude = 1.0
    norm = 0.0
    for _ in range(int(octaves)):
        total += np.asarray(point_noise(x * frequency, 0.0, z * frequency, seed)) * amplitude
        norm += amplitude
        amplitude *= persistence
        frequency *= lacunarity
    total = total / max(norm, 1e-9)
    if total.ndim == 0:
        return float(total)
    return total


@dataclass(frozen=True)
class NoiseConfig:
    octaves: int = 4
    persistence: float = 0.5
    lacunarity: float = 2.0
    scale: float = 0.02

    def sample(self, x, z, seed):
        return fractal_noise(x, z, seed, self.octaves, self.persistence, self.lacunarity, self.scale)
