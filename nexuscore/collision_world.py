"""Collision constants, the tile world and the state collision works on."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

TILE_SIZE = 16
CHUNK_SIZE = 128
LAYOUT_STRIDE_SHIFT = 8
LAYOUT_TILE_COUNT = 0x10000
CHUNK_COUNT = 0x200
CHUNK_TILES = 64
COLLISION_TILE_COUNT = 0x400
SENSOR_COUNT = 6


class CollisionSide(IntEnum):
    FLOOR = 0
    LWALL = 1
    RWALL = 2
    ROOF = 3


class CollisionMode(IntEnum):
    FLOOR = 0
    LWALL = 1
    ROOF = 2
    RWALL = 3


class Solidity(IntEnum):
    ALL = 0
    TOP = 1
    LRB = 2
    NONE = 3


class ObjectCollisionType(IntEnum):
    TOUCH = 0
    BOX = 1
    PLATFORM = 2


class TileFlip(IntEnum):
    NONE = 0
    X = 1
    Y = 2
    XY = 3


@dataclass
class CollisionSensor:
    """A probe point; positions are 16.16 fixed point until a hit stores pixels."""

    x_pos: int = 0
    y_pos: int = 0
    angle: int = 0
    collided: bool = False


def _masks(size: int) -> list[int]:
    return [0] * size


@dataclass
class CollisionMasks:
    """Per-column and per-row heights of each collision tile, with packed angles."""

    floor_masks: list[int] = field(default_factory=lambda: _masks(COLLISION_TILE_COUNT * TILE_SIZE))
    lwall_masks: list[int] = field(default_factory=lambda: _masks(COLLISION_TILE_COUNT * TILE_SIZE))
    rwall_masks: list[int] = field(default_factory=lambda: _masks(COLLISION_TILE_COUNT * TILE_SIZE))
    roof_masks: list[int] = field(default_factory=lambda: _masks(COLLISION_TILE_COUNT * TILE_SIZE))
    angles: list[int] = field(default_factory=lambda: _masks(COLLISION_TILE_COUNT))


@dataclass
class ChunkTiles:
    """The 8x8 tiles of every 128x128 chunk: tile index, flip and solidity per plane."""

    tile_index: list[int] = field(default_factory=lambda: _masks(CHUNK_COUNT * CHUNK_TILES))
    direction: list[int] = field(default_factory=lambda: _masks(CHUNK_COUNT * CHUNK_TILES))
    collision_flags: list[list[int]] = field(
        default_factory=lambda: [_masks(CHUNK_COUNT * CHUNK_TILES) for _ in range(2)]
    )


@dataclass
class StageLayout:
    """The foreground chunk map, 256 chunks to a row."""

    xsize: int = 0
    ysize: int = 0
    tiles: list[int] = field(default_factory=lambda: _masks(LAYOUT_TILE_COUNT))


@dataclass
class CollisionWorld:
    """A stage layout with its chunk tiles and two collision planes."""

    layout: StageLayout = field(default_factory=StageLayout)
    chunks: ChunkTiles = field(default_factory=ChunkTiles)
    masks: list[CollisionMasks] = field(default_factory=lambda: [CollisionMasks(), CollisionMasks()])

    def tile_at(self, x: int, y: int) -> int:
        """Index into the chunk-tile tables for the pixel at (x, y)."""
        if x < 0 or y < 0:
            raise ValueError(f"position outside the stage: ({x}, {y})")
        chunk_x, tile_x = x >> 7, (x & 0x7F) >> 4
        chunk_y, tile_y = y >> 7, (y & 0x7F) >> 4
        chunk = self.layout.tiles[chunk_x + (chunk_y << LAYOUT_STRIDE_SHIFT)]
        return (chunk << 6) + tile_x + (tile_y << 3)


@dataclass
class Player:
    """The physics state of a player that terrain and object collision change."""

    x_pos: int = 0
    y_pos: int = 0
    x_velocity: int = 0
    y_velocity: int = 0
    speed: int = 0
    angle: int = 0
    rotation: int = 0
    gravity: int = 0
    collision_mode: int = CollisionMode.FLOOR
    collision_plane: int = 0
    flailing: list[int] = field(default_factory=lambda: [0, 0, 0])
    pushing: int = 0
    left: bool = False
    right: bool = False
    direction: int = TileFlip.NONE


@dataclass
class Entity:
    """An object's position in 16.16 fixed point."""

    x_pos: int = 0
    y_pos: int = 0


@dataclass
class SensorRig:
    """The six sensors and the current hitbox bounds shared by collision passes."""

    sensors: list[CollisionSensor] = field(
        default_factory=lambda: [CollisionSensor() for _ in range(SENSOR_COUNT)]
    )
    collision_left: int = 0
    collision_top: int = 0
    collision_right: int = 0
    collision_bottom: int = 0

    def load_bounds(self, hitbox, direction: int) -> None:
        """Take the collision bounds from one direction of ``hitbox``."""
        self.collision_left = hitbox.left[direction]
        self.collision_top = hitbox.top[direction]
        self.collision_right = hitbox.right[direction]
        self.collision_bottom = hitbox.bottom[direction]