"""Terrain probes that let a grounded player keep hold of the path surface.

Each probe looks at up to three tiles along its direction. It starts one
tile before the sensor and stops at the first solid surface it finds. A hit
stores the surface position in whole pixels and the surface angle in the
sensor. A hit that lies too far from the start position is thrown away, and
the sensor gets its fixed-point start position back.
"""

from __future__ import annotations

from .collision_world import (
    TILE_SIZE,
    CollisionMasks,
    CollisionSensor,
    CollisionWorld,
    Player,
    Solidity,
    TileFlip,
)

_TSM1 = TILE_SIZE - 1
_MASK_LIMIT = 0x40
_ANGLE_TOLERANCE = 0x20
_WALL_ANGLE_TOLERANCE = 0x200
_PROBE_STEPS = (0, TILE_SIZE, TILE_SIZE * 2)

_Hit = tuple[int, int]


def _packed_angle(masks: CollisionMasks, tile_index: int, shift: int) -> int:
    return ((masks.angles[tile_index] & 0xFFFFFFFF) >> shift) & 0xFF


def _flipped(angle: int) -> int:
    return (-0x80 - angle) & 0xFF


def _normalise(sensor: CollisionSensor) -> None:
    if sensor.angle < 0:
        sensor.angle += 0x100
    if sensor.angle > 0xFF:
        sensor.angle -= 0x100


def _lookup(world: CollisionWorld, player: Player, x: int, y: int):
    tile = world.tile_at(x, y)
    flags = world.chunks.collision_flags[player.collision_plane][tile]
    return (
        tile,
        world.chunks.tile_index[tile],
        world.chunks.direction[tile],
        flags,
        world.masks[player.collision_plane],
    )


def _floor_hit(masks: CollisionMasks, flip: int, x: int, y: int, tile_index: int) -> _Hit | None:
    base = y - (y & _TSM1)
    if flip == TileFlip.NONE:
        height = masks.floor_masks[(x & _TSM1) + (tile_index << 4)]
        if height >= _MASK_LIMIT:
            return None
        return height + base, _packed_angle(masks, tile_index, 0)
    if flip == TileFlip.X:
        height = masks.floor_masks[_TSM1 - (x & _TSM1) + (tile_index << 4)]
        if height >= _MASK_LIMIT:
            return None
        return height + base, 0x100 - _packed_angle(masks, tile_index, 0)
    if flip == TileFlip.Y:
        height = masks.roof_masks[(x & 15) + (tile_index << 4)]
        if height <= -_MASK_LIMIT:
            return None
        return _TSM1 - height + base, _flipped(_packed_angle(masks, tile_index, 24))
    if flip == TileFlip.XY:
        height = masks.roof_masks[_TSM1 - (x & _TSM1) + (tile_index << 4)]
        if height <= -_MASK_LIMIT:
            return None
        return _TSM1 - height + base, 0x100 - _flipped(_packed_angle(masks, tile_index, 24))
    return None


def _roof_hit(masks: CollisionMasks, flip: int, x: int, y: int, tile_index: int) -> _Hit | None:
    base = y - (y & _TSM1)
    if flip == TileFlip.NONE:
        height = masks.roof_masks[(x & _TSM1) + (tile_index << 4)]
        if height <= -_MASK_LIMIT:
            return None
        return height + base, _packed_angle(masks, tile_index, 24)
    if flip == TileFlip.X:
        height = masks.roof_masks[_TSM1 - (x & _TSM1) + (tile_index << 4)]
        if height <= -_MASK_LIMIT:
            return None
        return height + base, 0x100 - _packed_angle(masks, tile_index, 24)
    if flip == TileFlip.Y:
        height = masks.floor_masks[(x & _TSM1) + (tile_index << 4)]
        if height >= _MASK_LIMIT:
            return None
        return _TSM1 - height + base, _flipped(_packed_angle(masks, tile_index, 0))
    if flip == TileFlip.XY:
        height = masks.floor_masks[_TSM1 - (x & _TSM1) + (tile_index << 4)]
        if height >= _MASK_LIMIT:
            return None
        return _TSM1 - height + base, 0x100 - _flipped(_packed_angle(masks, tile_index, 0))
    return None


def _lwall_hit(masks: CollisionMasks, flip: int, x: int, y: int, tile_index: int) -> _Hit | None:
    base = x - (x & _TSM1)
    if flip == TileFlip.NONE:
        depth = masks.lwall_masks[(y & _TSM1) + (tile_index << 4)]
        if depth >= _MASK_LIMIT:
            return None
        return depth + base, _packed_angle(masks, tile_index, 8)
    if flip == TileFlip.X:
        depth = masks.rwall_masks[(y & _TSM1) + (tile_index << 4)]
        if depth <= -_MASK_LIMIT:
            return None
        return _TSM1 - depth + base, 0x100 - _packed_angle(masks, tile_index, 16)
    if flip == TileFlip.Y:
        depth = masks.lwall_masks[_TSM1 - (y & _TSM1) + (tile_index << 4)]
        if depth >= _MASK_LIMIT:
            return None
        return depth + base, _flipped(_packed_angle(masks, tile_index, 8))
    if flip == TileFlip.XY:
        depth = masks.rwall_masks[_TSM1 - (y & _TSM1) + (tile_index << 4)]
        if depth <= -_MASK_LIMIT:
            return None
        return _TSM1 - depth + base, 0x100 - _flipped(_packed_angle(masks, tile_index, 16))
    return None


def _rwall_hit(masks: CollisionMasks, flip: int, x: int, y: int, tile_index: int) -> _Hit | None:
    base = x - (x & _TSM1)
    if flip == TileFlip.NONE:
        depth = masks.rwall_masks[(y & _TSM1) + (tile_index << 4)]
        if depth <= -_MASK_LIMIT:
            return None
        return depth + base, _packed_angle(masks, tile_index, 16)
    if flip == TileFlip.X:
        depth = masks.lwall_masks[(y & _TSM1) + (tile_index << 4)]
        if depth >= _MASK_LIMIT:
            return None
        return _TSM1 - depth + base, 0x100 - _packed_angle(masks, tile_index, 8)
    if flip == TileFlip.Y:
        depth = masks.rwall_masks[_TSM1 - (y & _TSM1) + (tile_index << 4)]
        if depth <= -_MASK_LIMIT:
            return None
        return depth + base, _flipped(_packed_angle(masks, tile_index, 16))
    if flip == TileFlip.XY:
        depth = masks.lwall_masks[_TSM1 - (y & _TSM1) + (tile_index << 4)]
        if depth >= _MASK_LIMIT:
            return None
        return _TSM1 - depth + base, 0x100 - _flipped(_packed_angle(masks, tile_index, 8))
    return None


def find_floor_position(
    world: CollisionWorld, player: Player, sensor: CollisionSensor, start_y: int
) -> None:
    """Search downwards for the floor under ``sensor``, updating it in place."""
    angle = sensor.angle
    for step in _PROBE_STEPS:
        if sensor.collided:
            continue
        x = sensor.x_pos >> 16
        y = (sensor.y_pos >> 16) + step - TILE_SIZE
        if x < 0 or y < 0:
            continue
        _, tile_index, flip, flags, masks = _lookup(world, player, x, y)
        if flags not in (Solidity.LRB, Solidity.NONE):
            hit = _floor_hit(masks, flip, x, y, tile_index)
            if hit is not None:
                sensor.y_pos, sensor.angle = hit
                sensor.collided = True
        if not sensor.collided:
            continue
        _normalise(sensor)
        if (
            abs(sensor.angle - angle) > _ANGLE_TOLERANCE
            and abs(sensor.angle - 0x100 - angle) > _ANGLE_TOLERANCE
            and abs(sensor.angle + 0x100 - angle) > _ANGLE_TOLERANCE
        ):
            sensor.y_pos = start_y << 16
            sensor.collided = False
            sensor.angle = angle
            break
        if sensor.y_pos - start_y > TILE_SIZE // 2 or sensor.y_pos - start_y < -(TILE_SIZE // 2):
            sensor.y_pos = start_y << 16
            sensor.collided = False


def find_lwall_position(
    world: CollisionWorld, player: Player, sensor: CollisionSensor, start_x: int
) -> None:
    """Search rightwards for a wall facing left, updating ``sensor`` in place."""
    angle = sensor.angle
    for step in _PROBE_STEPS:
        if sensor.collided:
            continue
        x = (sensor.x_pos >> 16) + step - TILE_SIZE
        y = sensor.y_pos >> 16
        if x < 0 or y < 0:
            continue
        _, tile_index, flip, flags, masks = _lookup(world, player, x, y)
        if flags < Solidity.NONE:
            hit = _lwall_hit(masks, flip, x, y, tile_index)
            if hit is not None:
                sensor.x_pos, sensor.angle = hit
                sensor.collided = True
        if not sensor.collided:
            continue
        _normalise(sensor)
        if abs(angle - sensor.angle) > _WALL_ANGLE_TOLERANCE:
            sensor.x_pos = start_x << 16
            sensor.collided = False
            sensor.angle = angle
            break
        if sensor.x_pos - start_x > TILE_SIZE // 2 or sensor.x_pos - start_x < -(TILE_SIZE // 2):
            sensor.x_pos = start_x << 16
            sensor.collided = False


def find_roof_position(
    world: CollisionWorld, player: Player, sensor: CollisionSensor, start_y: int
) -> None:
    """Search upwards for the ceiling over ``sensor``, updating it in place."""
    for step in _PROBE_STEPS:
        if sensor.collided:
            continue
        x = sensor.x_pos >> 16
        y = (sensor.y_pos >> 16) + TILE_SIZE - step
        if x < 0 or y < 0:
            continue
        _, tile_index, flip, flags, masks = _lookup(world, player, x, y)
        if flags < Solidity.NONE:
            hit = _roof_hit(masks, flip, x, y, tile_index)
            if hit is not None:
                sensor.y_pos, sensor.angle = hit
                sensor.collided = True
        if not sensor.collided:
            continue
        _normalise(sensor)
        if sensor.y_pos - start_y > _TSM1:
            sensor.y_pos = start_y << 16
            sensor.collided = False
        if sensor.y_pos - start_y < -_TSM1:
            sensor.y_pos = start_y << 16
            sensor.collided = False


def find_rwall_position(
    world: CollisionWorld, player: Player, sensor: CollisionSensor, start_x: int
) -> None:
    """Search leftwards for a wall facing right, updating ``sensor`` in place."""
    angle = sensor.angle
    for step in _PROBE_STEPS:
        if sensor.collided:
            continue
        x = (sensor.x_pos >> 16) + TILE_SIZE - step
        y = sensor.y_pos >> 16
        if x < 0 or y < 0:
            continue
        _, tile_index, flip, flags, masks = _lookup(world, player, x, y)
        if flags < Solidity.NONE:
            hit = _rwall_hit(masks, flip, x, y, tile_index)
            if hit is not None:
                sensor.x_pos, sensor.angle = hit
                sensor.collided = True
        if not sensor.collided:
            continue
        _normalise(sensor)
        if abs(sensor.angle - angle) > _ANGLE_TOLERANCE:
            sensor.x_pos = start_x << 16
            sensor.collided = False
            sensor.angle = angle
            break
        if sensor.x_pos - start_x > TILE_SIZE // 2:
            # The too-far case on this side stores the start position unscaled.
            sensor.x_pos = start_x >> 16
            sensor.collided = False
        elif sensor.x_pos - start_x < -(TILE_SIZE // 2):
            sensor.x_pos = start_x << 16
            sensor.collided = False