from __future__ import annotations

# App
APP_VERSION = "0.4.0"

# World
DEFAULT_SEED = 12345

# Chunks
CHUNK_SIZE = 16  # X and Z extents
CHUNK_HEIGHT = 128
CHUNK_VOLUME = CHUNK_SIZE * CHUNK_HEIGHT * CHUNK_SIZE  # bytes per voxel buffer

# Streaming
RENDER_DISTANCE = 3  # in chunks (3 = 7x7 window)
DEFAULT_WORKERS = 2
POLL_MAX_ITEMS = 4

# Spawn
PLAYER_EYE_HEIGHT = 1.8
SPAWN_CLEARANCE = 0.5

# Biome noise
BIOME_SEED_OFFSET = 1
BIOME_OCTAVES = 3
BIOME_PERSISTENCE = 0.5
BIOME_LACUNARITY = 2.0
BIOME_SCALE = 0.005
DESERT_MAX = 0.33  # n < DESERT_MAX -> desert
PLAINS_MAX = 0.66  # n < PLAINS_MAX -> plains, otherwise forest

# Terrain layering
SOIL_DEPTH = 4  # cells of dirt/sand under the surface before stone

# Caves
CAVE_SEED_OFFSET = 2
CAVE_SCALE = 0.08
CAVE_THRESHOLD = 0.75

# Features
FEATURE_SEED_OFFSET = 3
FEATURE_SIZE_SEED_OFFSET = 4
TREE_THRESHOLD = 0.95
TREE_EDGE_MARGIN = 2  # trunk column must satisfy margin < x < size - margin
TREE_MIN_HEIGHT = 4
TREE_HEIGHT_RANGE = 3
LEAVES_RADIUS = 2
CACTUS_THRESHOLD = 0.98
CACTUS_MIN_HEIGHT = 2
CACTUS_HEIGHT_RANGE = 2
