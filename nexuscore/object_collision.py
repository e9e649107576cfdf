"""Collision between objects and the terrain, and between the player and object boxes.

Object positions are 16.16 fixed point. The terrain checks take their
offsets in whole pixels. The player box checks take their box edges in
fixed point, except ``touch_collision``, whose edges are whole pixels.
"""

from __future__ import annotations

from .animation import Hitbox
from .collision_world import (
    CHUNK_SIZE,
    TILE_SIZE,
    CollisionMode,
    CollisionMasks,
    CollisionWorld,
    Entity,
    Player,
    SensorRig,
    Solidity,
    TileFlip,
)

_TSM1 = TILE_SIZE - 1
_GRIP_MASK_LIMIT = 64
_SIDE_PROBE_ABOVE = 0x20000
_SIDE_PROBE_BELOW = 0x80000

# Results reported by box_collision.
BOX_NONE = 0
BOX_TOP = 1
BOX_LEFT = 2
BOX_RIGHT = 3
BOX_BOTTOM = 4


def _check_plane(world: CollisionWorld, c_path: int) -> None:
    if not 0 <= c_path < len(world.masks):
        raise ValueError(f"collision plane out of range: {c_path}")


def _inside_stage(world: CollisionWorld, x: int, y: int) -> bool:
    layout = world.layout
    return 0 < x < layout.xsize * CHUNK_SIZE and 0 < y < layout.ysize * CHUNK_SIZE


def _tile_info(world: CollisionWorld, x: int, y: int, c_path: int):
    tile = world.tile_at(x, y)
    chunks = world.chunks
    return (
        chunks.tile_index[tile],
        chunks.direction[tile],
        chunks.collision_flags[c_path][tile],
    )


def _floor_surface(masks: CollisionMasks, flip: int, x: int, tile_index: int):
    """Return (mask value, surface offset within the tile) for a floor check."""
    column = (x & _TSM1) if flip in (TileFlip.NONE, TileFlip.Y) else _TSM1 - (x & _TSM1)
    index = column + (tile_index << 4)
    if flip in (TileFlip.NONE, TileFlip.X):
        height = masks.floor_masks[index]
        return height, height
    if flip in (TileFlip.Y, TileFlip.XY):
        height = masks.roof_masks[index]
        return height, _TSM1 - height
    return None


def object_floor_collision(
    world: CollisionWorld, entity: Entity, x_offset: int, y_offset: int, c_path: int
) -> bool:
    """Snap ``entity`` onto the floor it has sunk into; return whether it did."""
    _check_plane(world, c_path)
    x = (entity.x_pos >> 16) + x_offset
    y = (entity.y_pos >> 16) + y_offset
    if not _inside_stage(world, x, y):
        return False
    tile_index, flip, flags = _tile_info(world, x, y, c_path)
    if flags in (Solidity.LRB, Solidity.NONE):
        return False
    surface = _floor_surface(world.masks[c_path], flip, x, tile_index)
    if surface is None:
        return False
    _, offset = surface
    if (y & _TSM1) <= offset:
        return False
    new_y = offset + (y - (y & _TSM1))
    entity.y_pos = (new_y - y_offset) << 16
    return True


def object_floor_grip(
    world: CollisionWorld, entity: Entity, x_offset: int, y_offset: int, c_path: int
) -> bool:
    """Keep ``entity`` on a floor within a tile of its position; return whether it held."""
    _check_plane(world, c_path)
    x = (entity.x_pos >> 16) + x_offset
    start_y = (entity.y_pos >> 16) + y_offset
    masks = world.masks[c_path]
    found = False
    surface_y = 0
    for y in (start_y - TILE_SIZE, start_y, start_y + TILE_SIZE):
        if found or not _inside_stage(world, x, y):
            continue
        tile_index, flip, flags = _tile_info(world, x, y, c_path)
        if flags in (Solidity.LRB, Solidity.NONE):
            continue
        surface = _floor_surface(masks, flip, x, tile_index)
        if surface is None:
            continue
        height, offset = surface
        if flip in (TileFlip.NONE, TileFlip.X):
            if height >= _GRIP_MASK_LIMIT:
                continue
        elif height <= -_GRIP_MASK_LIMIT:
            continue
        surface_y = offset + (y - (y & _TSM1))
        found = True
    if not found:
        return False
    if abs(surface_y - start_y) < TILE_SIZE:
        entity.y_pos = (surface_y - y_offset) << 16
        return True
    entity.y_pos = (start_y - y_offset) << 16
    return False


def touch_collision(
    rig: SensorRig, player: Player, hitbox: Hitbox, left: int, top: int, right: int, bottom: int
) -> bool:
    """Whether the player's box, in pixels, overlaps the given pixel box."""
    x = player.x_pos >> 16
    y = player.y_pos >> 16
    rig.collision_left = x + hitbox.left[0]
    rig.collision_top = y + hitbox.top[0]
    rig.collision_right = x + hitbox.right[0]
    rig.collision_bottom = y + hitbox.bottom[0]
    return (
        rig.collision_right > left
        and rig.collision_left < right
        and rig.collision_bottom > top
        and rig.collision_top < bottom
    )


def _land_on_top(rig: SensorRig, player: Player, top: int) -> None:
    if not player.gravity and player.collision_mode in (CollisionMode.RWALL, CollisionMode.LWALL):
        player.x_velocity = 0
        player.speed = 0
    player.y_pos = top - (rig.collision_bottom << 16)
    player.gravity = 0
    player.y_velocity = 0
    player.angle = 0
    player.rotation = 0


def _box_top(rig: SensorRig, player: Player, left: int, top: int, right: int) -> int:
    s = rig.sensors
    for sensor in s[:3]:
        sensor.collided = False
    s[0].x_pos = player.x_pos + ((rig.collision_left + 2) << 16)
    s[1].x_pos = player.x_pos
    s[2].x_pos = player.x_pos + ((rig.collision_right - 2) << 16)
    s[0].y_pos = player.y_pos + (rig.collision_bottom << 16)
    s[1].y_pos = s[0].y_pos
    s[2].y_pos = s[0].y_pos
    if player.y_velocity > -1:
        for index, sensor in enumerate(s[:3]):
            if (
                left < sensor.x_pos < right
                and sensor.y_pos >= top
                and player.y_pos - player.y_velocity < top
            ):
                sensor.collided = True
                player.flailing[index] = 1
    if not any(sensor.collided for sensor in s[:3]):
        return BOX_NONE
    _land_on_top(rig, player, top)
    return BOX_TOP


def _box_bottom(rig: SensorRig, player: Player, left: int, right: int, bottom: int) -> int:
    s = rig.sensors
    s[0].collided = False
    s[1].collided = False
    s[0].x_pos = player.x_pos + ((rig.collision_left + 2) << 16)
    s[1].x_pos = player.x_pos + ((rig.collision_right - 2) << 16)
    s[0].y_pos = player.y_pos + (rig.collision_top << 16)
    s[1].y_pos = s[0].y_pos
    for sensor in s[:2]:
        if (
            left < sensor.x_pos < right
            and sensor.y_pos <= bottom
            and player.y_pos - player.y_velocity > bottom
        ):
            sensor.collided = True
    if not (s[0].collided or s[1].collided):
        return BOX_NONE
    if player.gravity == 1:
        player.y_pos = bottom - (rig.collision_top << 16)
    if player.y_velocity < 1:
        player.y_velocity = 0
    return BOX_BOTTOM


def _place_side_sensors(rig: SensorRig, player: Player, edge: int) -> None:
    s = rig.sensors
    s[0].collided = False
    s[1].collided = False
    s[0].x_pos = player.x_pos + (edge << 16)
    s[1].x_pos = s[0].x_pos
    s[0].y_pos = player.y_pos - _SIDE_PROBE_ABOVE
    s[1].y_pos = player.y_pos + _SIDE_PROBE_BELOW


def _box_left(rig: SensorRig, player: Player, left: int, top: int, bottom: int) -> int:
    s = rig.sensors
    _place_side_sensors(rig, player, rig.collision_right)
    for sensor in s[:2]:
        if (
            sensor.x_pos >= left
            and player.x_pos - player.x_velocity < left
            and s[1].y_pos > top
            and s[0].y_pos < bottom
        ):
            sensor.collided = True
    if not (s[0].collided or s[1].collided):
        return BOX_NONE
    player.x_pos = left - (rig.collision_right << 16)
    if player.x_velocity > 0:
        if not player.direction:
            player.pushing = 2
        player.x_velocity = 0
        player.speed = 0
    return BOX_LEFT


def _box_right(rig: SensorRig, player: Player, top: int, right: int, bottom: int) -> int:
    s = rig.sensors
    _place_side_sensors(rig, player, rig.collision_left)
    for sensor in s[:2]:
        if (
            sensor.x_pos <= right
            and player.x_pos - player.x_velocity > right
            and s[1].y_pos > top
            and s[0].y_pos < bottom
        ):
            sensor.collided = True
    if not (s[0].collided or s[1].collided):
        return BOX_NONE
    player.x_pos = right - (rig.collision_left << 16)
    if player.x_velocity < 0:
        if player.direction == TileFlip.X:
            player.pushing = 2
        player.x_velocity = 0
        player.speed = 0
    return BOX_RIGHT


def box_collision(
    rig: SensorRig, player: Player, hitbox: Hitbox, left: int, top: int, right: int, bottom: int
) -> int:
    """Push the player out of a solid box.

    Returns 0 for no contact, 1 for landing on top, 2 for the left side,
    3 for the right side and 4 for hitting the underside.
    """
    rig.load_bounds(hitbox, 0)
    mode = player.collision_mode
    speed = 0
    if mode in (CollisionMode.FLOOR, CollisionMode.ROOF):
        speed = abs(player.x_velocity) if player.x_velocity else abs(player.speed)
    elif mode in (CollisionMode.LWALL, CollisionMode.RWALL):
        speed = abs(player.x_velocity)

    vertical_checks = (
        lambda: _box_top(rig, player, left, top, right),
        lambda: _box_bottom(rig, player, left, right, bottom),
    )
    side_checks = (
        lambda: _box_left(rig, player, left, top, bottom),
        lambda: _box_right(rig, player, top, right, bottom),
    )
    if speed <= abs(player.y_velocity):
        checks = vertical_checks + side_checks
    else:
        checks = side_checks + vertical_checks
    for check in checks:
        result = check()
        if result:
            return result
    return BOX_NONE


def platform_collision(
    rig: SensorRig, player: Player, hitbox: Hitbox, left: int, top: int, right: int, bottom: int
) -> bool:
    """Land the player on a platform it is falling onto; return whether it did."""
    rig.load_bounds(hitbox, 0)
    s = rig.sensors
    for sensor in s[:3]:
        sensor.collided = False
    s[0].x_pos = player.x_pos + ((rig.collision_left + 1) << 16)
    s[1].x_pos = player.x_pos
    s[2].x_pos = player.x_pos + (rig.collision_right << 16)
    s[0].y_pos = player.y_pos + (rig.collision_bottom << 16)
    s[1].y_pos = s[0].y_pos
    s[2].y_pos = s[0].y_pos
    for index, sensor in enumerate(s[:3]):
        if (
            left < sensor.x_pos < right
            and top - 2 < sensor.y_pos < bottom
            and player.y_velocity >= 0
        ):
            sensor.collided = True
            player.flailing[index] = 1
    if not any(sensor.collided for sensor in s[:3]):
        return False
    _land_on_top(rig, player, top)
    return True