"""Contact checks for a player moving through the air.

Each check looks at up to three tiles along its direction, starting one tile
behind the sensor. It reports a hit only where the sensor has gone into the
solid part of a tile. A hit stores the surface position in whole pixels
and, for floors and ceilings, the surface angle. A hit too far from where
the sensor started is thrown away, and the sensor gets its fixed-point start
position back.
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
_PROBE_STEPS = (0, TILE_SIZE, TILE_SIZE * 2)


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
    plane = player.collision_plane
    return (
        world.chunks.tile_index[tile],
        world.chunks.direction[tile],
        world.chunks.collision_flags[plane][tile],
        world.masks[plane],
    )


def _floor_contact(masks, flip, x, y, tile_index, step):
    offset = step - TILE_SIZE
    base = y - (y & _TSM1)
    column = (x & _TSM1) if flip in (TileFlip.NONE, TileFlip.Y) else _TSM1 - (x & _TSM1)
    index = column + (tile_index << 4)
    if flip in (TileFlip.NONE, TileFlip.X):
        height = masks.floor_masks[index]
        if (y & _TSM1) <= height + offset or height >= _TSM1:
            return None
        angle = _packed_angle(masks, tile_index, 0)
        if flip == TileFlip.X:
            angle = 0x100 - angle
        return height + base, angle
    if flip in (TileFlip.Y, TileFlip.XY):
        height = masks.roof_masks[index]
        if (y & _TSM1) <= _TSM1 - height + offset:
            return None
        angle = _flipped(_packed_angle(masks, tile_index, 24))
        if flip == TileFlip.XY:
            angle = 0x100 - angle
        return _TSM1 - height + base, angle
    return None


def _roof_contact(masks, flip, x, y, tile_index, step):
    offset = TILE_SIZE - step
    base = y - (y & _TSM1)
    column = (x & _TSM1) if flip in (TileFlip.NONE, TileFlip.Y) else _TSM1 - (x & _TSM1)
    index = column + (tile_index << 4)
    if flip in (TileFlip.NONE, TileFlip.X):
        height = masks.roof_masks[index]
        if (y & _TSM1) >= height + offset:
            return None
        angle = _packed_angle(masks, tile_index, 24)
        if flip == TileFlip.X:
            angle = 0x100 - angle
        return height + base, angle
    if flip in (TileFlip.Y, TileFlip.XY):
        height = masks.floor_masks[index]
        if (y & _TSM1) >= _TSM1 - height + offset:
            return None
        angle = _flipped(_packed_angle(masks, tile_index, 0))
        if flip == TileFlip.XY:
            angle = 0x100 - angle
        return _TSM1 - height + base, angle
    return None


def _lwall_contact(masks, flip, x, y, tile_index, step):
    offset = step - TILE_SIZE
    base = x - (x & _TSM1)
    row = (y & _TSM1) if flip in (TileFlip.NONE, TileFlip.X) else _TSM1 - (y & _TSM1)
    index = row + (tile_index << 4)
    if flip in (TileFlip.NONE, TileFlip.Y):
        depth = masks.lwall_masks[index]
        if (x & _TSM1) <= depth + offset:
            return None
        return depth + base
    if flip in (TileFlip.X, TileFlip.XY):
        depth = masks.rwall_masks[index]
        if (x & _TSM1) <= _TSM1 - depth + offset:
            return None
        return _TSM1 - depth + base
    return None


def _rwall_contact(masks, flip, x, y, tile_index, step):
    offset = TILE_SIZE - step
    base = x - (x & _TSM1)
    row = (y & _TSM1) if flip in (TileFlip.NONE, TileFlip.X) else _TSM1 - (y & _TSM1)
    index = row + (tile_index << 4)
    if flip in (TileFlip.NONE, TileFlip.Y):
        depth = masks.rwall_masks[index]
        if (x & _TSM1) >= depth + offset:
            return None
        return depth + base
    if flip in (TileFlip.X, TileFlip.XY):
        depth = masks.lwall_masks[index]
        if (x & _TSM1) >= _TSM1 - depth + offset:
            return None
        return _TSM1 - depth + base
    return None


def floor_collision(world: CollisionWorld, player: Player, sensor: CollisionSensor) -> None:
    """Check whether ``sensor`` has landed in a floor, updating it in place."""
    start_y = sensor.y_pos >> 16
    for step in _PROBE_STEPS:
        if sensor.collided:
            break
        x = sensor.x_pos >> 16
        y = (sensor.y_pos >> 16) + step - TILE_SIZE
        if x < 0 or y < 0:
            continue
        tile_index, flip, flags, masks = _lookup(world, player, x, y)
        if flags not in (Solidity.LRB, Solidity.NONE):
            hit = _floor_contact(masks, flip, x, y, tile_index, step)
            if hit is not None:
                sensor.y_pos, sensor.angle = hit
                sensor.collided = True
        if sensor.collided:
            _normalise(sensor)
            distance = sensor.y_pos - start_y
            if distance > TILE_SIZE - 2 or distance < -(TILE_SIZE + 1):
                sensor.y_pos = start_y << 16
                sensor.collided = False


def lwall_collision(world: CollisionWorld, player: Player, sensor: CollisionSensor) -> None:
    """Check whether ``sensor`` has run into a wall on its right, updating it in place."""
    start_x = sensor.x_pos >> 16
    for step in _PROBE_STEPS:
        if sensor.collided:
            break
        x = (sensor.x_pos >> 16) + step - TILE_SIZE
        y = sensor.y_pos >> 16
        if x < 0 or y < 0:
            continue
        tile_index, flip, flags, masks = _lookup(world, player, x, y)
        if flags != Solidity.TOP and flags < Solidity.NONE:
            hit = _lwall_contact(masks, flip, x, y, tile_index, step)
            if hit is not None:
                sensor.x_pos = hit
                sensor.collided = True
        if sensor.collided:
            distance = sensor.x_pos - start_x
            if distance > _TSM1 or distance < -_TSM1:
                sensor.x_pos = start_x << 16
                sensor.collided = False


def roof_collision(world: CollisionWorld, player: Player, sensor: CollisionSensor) -> None:
    """Check whether ``sensor`` has risen into a ceiling, updating it in place."""
    start_y = sensor.y_pos >> 16
    for step in _PROBE_STEPS:
        if sensor.collided:
            break
        x = sensor.x_pos >> 16
        y = (sensor.y_pos >> 16) + TILE_SIZE - step
        if x < 0 or y < 0:
            continue
        tile_index, flip, flags, masks = _lookup(world, player, x, y)
        if flags != Solidity.TOP and flags < Solidity.NONE:
            hit = _roof_contact(masks, flip, x, y, tile_index, step)
            if hit is not None:
                sensor.y_pos, sensor.angle = hit
                sensor.collided = True
        if sensor.collided:
            _normalise(sensor)
            distance = sensor.y_pos - start_y
            if distance > TILE_SIZE - 2 or distance < -(TILE_SIZE - 2):
                sensor.y_pos = start_y << 16
                sensor.collided = False


def rwall_collision(world: CollisionWorld, player: Player, sensor: CollisionSensor) -> None:
    """Check whether ``sensor`` has run into a wall on its left, updating it in place."""
    start_x = sensor.x_pos >> 16
    for step in _PROBE_STEPS:
        if sensor.collided:
            break
        x = (sensor.x_pos >> 16) + TILE_SIZE - step
        y = sensor.y_pos >> 16
        if x < 0 or y < 0:
            continue
        tile_index, flip, flags, masks = _lookup(world, player, x, y)
        if flags != Solidity.TOP and flags < Solidity.NONE:
            hit = _rwall_contact(masks, flip, x, y, tile_index, step)
            if hit is not None:
                sensor.x_pos = hit
                sensor.collided = True
        if sensor.collided:
            distance = sensor.x_pos - start_x
            if distance > _TSM1 or distance < -_TSM1:
                sensor.x_pos = start_x << 16
                sensor.collided = False