"""Player movement against the stage terrain.

A player who is airborne (``gravity == 1``) is traced along its velocity
one pixel at a time. A grounded player follows the path surface. Positions
are 16.16 fixed point. Angles run from 0 to 255 for a full turn.
"""

from __future__ import annotations

import math

from .collision_world import CollisionMode, CollisionWorld, Player, SensorRig
from .contacts import floor_collision, lwall_collision, roof_collision, rwall_collision
from .probes import (
    find_floor_position,
    find_lwall_position,
    find_roof_position,
    find_rwall_position,
)

_ONE = 0x10000
_WALL_PROBE_OFFSET = 0x40000


def _trig_tables() -> tuple[tuple[int, ...], tuple[int, ...]]:
    sines = [int(math.sin(i / 128.0 * math.pi) * 256.0) for i in range(256)]
    cosines = [int(math.cos(i / 128.0 * math.pi) * 256.0) for i in range(256)]
    for index, (sine, cosine) in {0x00: (0, 0x100), 0x40: (0x100, 0), 0x80: (0, -0x100), 0xC0: (-0x100, 0)}.items():
        sines[index] = sine
        cosines[index] = cosine
    return tuple(sines), tuple(cosines)


_SIN256, _COS256 = _trig_tables()


def _sin(angle: int) -> int:
    return _SIN256[angle & 0xFF]


def _cos(angle: int) -> int:
    return _COS256[angle & 0xFF]


def _trunc_div(numerator: int, denominator: int) -> int:
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator >= 0) else -quotient


def set_path_grip_sensors(rig: SensorRig, player: Player, hitbox) -> None:
    """Place sensors 0-3 around sensor 4 for the player's collision mode."""
    s = rig.sensors
    centre = s[4]
    mode = player.collision_mode
    if mode == CollisionMode.FLOOR:
        rig.load_bounds(hitbox, 0)
        s[0].y_pos = centre.y_pos + (rig.collision_bottom << 16)
        s[1].y_pos = s[0].y_pos
        s[2].y_pos = s[0].y_pos
        s[3].y_pos = centre.y_pos + _WALL_PROBE_OFFSET
        s[0].x_pos = centre.x_pos + ((hitbox.left[1] - 1) << 16)
        s[1].x_pos = centre.x_pos
        s[2].x_pos = centre.x_pos + (hitbox.right[1] << 16)
        if player.speed > 0:
            s[3].x_pos = centre.x_pos + ((rig.collision_right + 1) << 16)
        else:
            s[3].x_pos = centre.x_pos + ((rig.collision_left - 1) << 16)
    elif mode == CollisionMode.LWALL:
        rig.load_bounds(hitbox, 2)
        s[0].x_pos = centre.x_pos + (rig.collision_right << 16)
        s[1].x_pos = s[0].x_pos
        s[2].x_pos = s[0].x_pos
        s[3].x_pos = centre.x_pos + _WALL_PROBE_OFFSET
        s[0].y_pos = centre.y_pos + ((hitbox.top[3] - 1) << 16)
        s[1].y_pos = centre.y_pos
        s[2].y_pos = centre.y_pos + (hitbox.bottom[3] << 16)
        if player.speed > 0:
            s[3].y_pos = centre.y_pos + (rig.collision_top << 16)
        else:
            s[3].y_pos = centre.y_pos + ((rig.collision_bottom - 1) << 16)
    elif mode == CollisionMode.ROOF:
        rig.load_bounds(hitbox, 4)
        s[0].y_pos = centre.y_pos + ((rig.collision_top - 1) << 16)
        s[1].y_pos = s[0].y_pos
        s[2].y_pos = s[0].y_pos
        s[3].y_pos = centre.y_pos - _WALL_PROBE_OFFSET
        s[0].x_pos = centre.x_pos + ((hitbox.left[5] - 1) << 16)
        s[1].x_pos = centre.x_pos
        s[2].x_pos = centre.x_pos + (hitbox.right[5] << 16)
        if player.speed < 0:
            s[3].x_pos = centre.x_pos + ((rig.collision_right + 1) << 16)
        else:
            s[3].x_pos = centre.x_pos + ((rig.collision_left - 1) << 16)
    elif mode == CollisionMode.RWALL:
        rig.load_bounds(hitbox, 6)
        s[0].x_pos = centre.x_pos + ((rig.collision_left - 1) << 16)
        s[1].x_pos = s[0].x_pos
        s[2].x_pos = s[0].x_pos
        s[3].x_pos = centre.x_pos - _WALL_PROBE_OFFSET
        s[0].y_pos = centre.y_pos + ((hitbox.top[7] - 1) << 16)
        s[1].y_pos = centre.y_pos
        s[2].y_pos = centre.y_pos + (hitbox.bottom[7] << 16)
        if player.speed > 0:
            s[3].y_pos = centre.y_pos + (rig.collision_bottom << 16)
        else:
            s[3].y_pos = centre.y_pos + ((rig.collision_top - 1) << 16)


def _closest(sensors, better) -> int:
    chosen = -1
    for index in range(3):
        sensor = sensors[index]
        if chosen > -1:
            if better(sensor, sensors[chosen]):
                chosen = index
        elif sensor.collided:
            chosen = index
    return chosen


def _floor_better(sensor, current) -> bool:
    if not sensor.collided:
        return False
    chosen = sensor.y_pos < current.y_pos
    if sensor.y_pos == current.y_pos and (sensor.angle < 0x08 or sensor.angle > 0xF8):
        chosen = True
    return chosen


def _switch_from_horizontal(player: Player, angle: int) -> None:
    if 0xA0 < angle < 0xE0 and player.collision_mode != CollisionMode.LWALL:
        player.collision_mode = CollisionMode.LWALL
    if 0x20 < angle < 0x60 and player.collision_mode != CollisionMode.RWALL:
        player.collision_mode = CollisionMode.RWALL


def _switch_from_vertical(player: Player, angle: int) -> None:
    if (angle < 0x20 or angle > 0xE0) and player.collision_mode != CollisionMode.FLOOR:
        player.collision_mode = CollisionMode.FLOOR
    if 0x60 < angle < 0xA0 and player.collision_mode != CollisionMode.ROOF:
        player.collision_mode = CollisionMode.ROOF


def _spread(sensors, chosen: int, attr: str) -> None:
    value = getattr(sensors[chosen], attr) << 16
    angle = sensors[chosen].angle
    for sensor in sensors[:3]:
        setattr(sensor, attr, value)
        sensor.angle = angle


def _grip_step(world, rig, player, cos, sin) -> int:
    s = rig.sensors
    for sensor in s[:3]:
        sensor.collided = False
    s[4].x_pos += cos
    s[4].y_pos += sin
    for sensor in s[:3]:
        sensor.x_pos += cos
        sensor.y_pos += sin

    mode = player.collision_mode
    chosen = -1
    if mode == CollisionMode.FLOOR:
        for sensor in s[:3]:
            find_floor_position(world, player, sensor, sensor.y_pos >> 16)
        chosen = _closest(s, _floor_better)
        if chosen > -1:
            _spread(s, chosen, "y_pos")
            s[3].y_pos = s[0].y_pos - _WALL_PROBE_OFFSET
            s[3].angle = s[0].angle
            s[4].x_pos = s[1].x_pos
            s[4].y_pos = s[0].y_pos - (rig.collision_bottom << 16)
        s[3].x_pos += cos
        if player.speed > 0:
            lwall_collision(world, player, s[3])
        if player.speed < 0:
            rwall_collision(world, player, s[3])
        _switch_from_horizontal(player, s[0].angle)
    elif mode == CollisionMode.LWALL:
        for sensor in s[:3]:
            find_lwall_position(world, player, sensor, sensor.x_pos >> 16)
        chosen = _closest(s, lambda a, b: a.x_pos < b.x_pos and a.collided)
        if chosen > -1:
            _spread(s, chosen, "x_pos")
            s[4].y_pos = s[1].y_pos
            s[4].x_pos = s[1].x_pos - (rig.collision_right << 16)
        _switch_from_vertical(player, s[0].angle)
    elif mode == CollisionMode.ROOF:
        for sensor in s[:3]:
            find_roof_position(world, player, sensor, sensor.y_pos >> 16)
        chosen = _closest(s, lambda a, b: a.y_pos > b.y_pos and a.collided)
        if chosen > -1:
            _spread(s, chosen, "y_pos")
            s[3].y_pos = s[0].y_pos + _WALL_PROBE_OFFSET
            s[3].angle = s[0].angle
            s[4].x_pos = s[1].x_pos
            s[4].y_pos = s[0].y_pos - ((rig.collision_top - 1) << 16)
        s[3].x_pos += cos
        if player.speed > 0:
            rwall_collision(world, player, s[3])
        if player.speed < 0:
            lwall_collision(world, player, s[3])
        _switch_from_horizontal(player, s[0].angle)
    elif mode == CollisionMode.RWALL:
        for sensor in s[:3]:
            find_rwall_position(world, player, sensor, sensor.x_pos >> 16)
        chosen = _closest(s, lambda a, b: a.x_pos > b.x_pos and a.collided)
        if chosen > -1:
            _spread(s, chosen, "x_pos")
            s[4].y_pos = s[1].y_pos
            s[4].x_pos = s[1].x_pos - ((rig.collision_left - 1) << 16)
        _switch_from_vertical(player, s[0].angle)
    return chosen


def _fall_off(player: Player) -> None:
    player.gravity = 1
    player.collision_mode = CollisionMode.FLOOR
    player.x_velocity = _cos(player.angle) * player.speed >> 8
    player.y_velocity = _sin(player.angle) * player.speed >> 8
    player.speed = player.x_velocity
    player.angle = 0


def _drop_to_floor(player: Player) -> None:
    player.gravity = 1
    player.angle = 0
    player.collision_mode = CollisionMode.FLOOR
    player.speed = player.x_velocity


def _push_against_wall(rig: SensorRig, player: Player, count_push: bool) -> None:
    wall = rig.sensors[3]
    if player.speed > 0:
        player.x_pos = (wall.x_pos - rig.collision_right) << 16
    if player.speed < 0:
        player.x_pos = (wall.x_pos - rig.collision_left + 1) << 16
    player.speed = 0
    if count_push and (player.left or player.right) and player.pushing < 2:
        player.pushing += 1


def process_path_grip(world: CollisionWorld, rig: SensorRig, player: Player, hitbox) -> None:
    """Move a grounded player along the path surface by its speed."""
    s = rig.sensors
    s[4].x_pos = player.x_pos
    s[4].y_pos = player.y_pos
    for sensor in s:
        sensor.angle = player.angle
        sensor.collided = False
    set_path_grip_sensors(rig, player, hitbox)

    abs_speed = abs(player.speed)
    check_dist = abs_speed >> 18
    abs_speed &= 0x3FFFF
    start_mode = player.collision_mode

    while check_dist > -1:
        if check_dist >= 1:
            cos = _cos(player.angle) << 10
            sin = _sin(player.angle) << 10
            check_dist -= 1
        else:
            cos = abs_speed * _cos(player.angle) >> 8
            sin = abs_speed * _sin(player.angle) >> 8
            check_dist = -1
        if player.speed < 0:
            cos, sin = -cos, -sin

        chosen = _grip_step(world, rig, player, cos, sin)
        if chosen <= -1:
            check_dist = -1
        else:
            player.angle = s[0].angle

        if not s[3].collided:
            set_path_grip_sensors(rig, player, hitbox)
        else:
            check_dist = -2

    any_ground = s[0].collided or s[1].collided or s[2].collided
    if start_mode == CollisionMode.FLOOR:
        if any_ground:
            player.angle = s[0].angle
            player.rotation = player.angle
            player.flailing[0] = s[0].collided
            player.flailing[1] = s[1].collided
            player.flailing[2] = s[2].collided
            if not s[3].collided:
                player.pushing = 0
                player.x_pos = s[4].x_pos
            else:
                _push_against_wall(rig, player, True)
            player.y_pos = s[4].y_pos
        else:
            _fall_off(player)
            if not s[3].collided:
                player.pushing = 0
                player.x_pos += player.x_velocity
            else:
                _push_against_wall(rig, player, True)
            player.y_pos += player.y_velocity
    elif start_mode == CollisionMode.LWALL:
        if not any_ground:
            _fall_off(player)
        elif player.speed >= 0x20000 or player.speed <= -1:
            player.angle = s[0].angle
            player.rotation = player.angle
        else:
            _drop_to_floor(player)
        player.x_pos = s[4].x_pos
        player.y_pos = s[4].y_pos
    elif start_mode == CollisionMode.ROOF:
        if not any_ground:
            _fall_off(player)
        elif player.speed <= -0x20000 or player.speed >= 0x20000:
            player.angle = s[0].angle
            player.rotation = player.angle
        else:
            _drop_to_floor(player)
        if not s[3].collided:
            player.x_pos = s[4].x_pos
        else:
            _push_against_wall(rig, player, False)
        player.y_pos = s[4].y_pos
    elif start_mode == CollisionMode.RWALL:
        if not any_ground:
            _fall_off(player)
        elif player.speed <= -0x20000 or player.speed >= 1:
            player.angle = s[0].angle
            player.rotation = player.angle
        else:
            _drop_to_floor(player)
        player.x_pos = s[4].x_pos
        player.y_pos = s[4].y_pos


def process_traced_collision(world: CollisionWorld, rig: SensorRig, player: Player, hitbox) -> None:
    """Move an airborne player by its velocity, stopping at walls, floors and ceilings."""
    rig.load_bounds(hitbox, 0)
    left, top = rig.collision_left, rig.collision_top
    right, bottom = rig.collision_right, rig.collision_bottom
    s = rig.sensors

    moving_right = 0
    moving_left = 0
    if player.x_velocity >= 0:
        moving_right = 1
        s[0].y_pos = ((top + 4) << 16) + player.y_pos
        s[1].y_pos = ((bottom - 4) << 16) + player.y_pos
        s[0].x_pos = (right << 16) + player.x_pos
        s[1].x_pos = (right << 16) + player.x_pos
    if player.x_velocity <= 0:
        moving_left = 1
        s[2].y_pos = ((top + 4) << 16) + player.y_pos
        s[3].y_pos = ((bottom - 4) << 16) + player.y_pos
        s[2].x_pos = ((left - 1) << 16) + player.x_pos
        s[3].x_pos = ((left - 1) << 16) + player.x_pos
    s[4].x_pos = ((left + 1) << 16) + player.x_pos
    s[5].x_pos = ((right - 2) << 16) + player.x_pos
    for sensor in s:
        sensor.collided = False

    moving_down = 0
    moving_up = 0
    if player.y_velocity < 0:
        moving_up = 1
        s[4].y_pos = ((top - 1) << 16) + player.y_pos
        s[5].y_pos = ((top - 1) << 16) + player.y_pos
    elif player.y_velocity > 0:
        moving_down = 1
        s[4].y_pos = (bottom << 16) + player.y_pos
        s[5].y_pos = (bottom << 16) + player.y_pos

    x_dif = ((player.x_velocity + player.x_pos) >> 16) - (player.x_pos >> 16)
    y_dif = ((player.y_velocity + player.y_pos) >> 16) - (player.y_pos >> 16)
    abs_x_dif, abs_y_dif = abs(x_dif), abs(y_dif)
    count = 1
    x_vel, y_vel = player.x_velocity, player.y_velocity
    if abs_x_dif or abs_y_dif:
        if abs_x_dif <= abs_y_dif:
            x_vel = _trunc_div(x_dif << 16, abs_y_dif)
            count = abs_y_dif
            y_vel = _ONE if y_dif >= 0 else -_ONE
        else:
            y_vel = _trunc_div(y_dif << 16, abs_x_dif)
            count = abs_x_dif
            x_vel = _ONE if x_dif >= 0 else -_ONE

    def advance(indices, check) -> bool:
        for index in indices:
            if not s[index].collided:
                s[index].x_pos += x_vel
                s[index].y_pos += y_vel
                check(world, player, s[index])
        return any(s[index].collided for index in indices)

    while count > 0:
        count -= 1
        if moving_right == 1 and advance((0, 1), lwall_collision):
            moving_right = 2
            count = 0
            x_vel = 0
        if moving_left == 1 and advance((2, 3), rwall_collision):
            moving_left = 2
            count = 0
            x_vel = 0
        if moving_down == 1:
            if advance((4, 5), floor_collision):
                moving_down = 2
                count = 0
        elif moving_up == 1 and advance((4, 5), roof_collision):
            moving_up = 2
            count = 0

    if moving_left == 2 or moving_right == 2:
        if moving_right == 2:
            player.x_velocity = 0
            player.speed = 0
            if not s[0].collided or not s[1].collided:
                if s[0].collided:
                    player.x_pos = (s[0].x_pos - right) << 16
                elif s[1].collided:
                    player.x_pos = (s[1].x_pos - right) << 16
            elif s[0].x_pos >= s[1].x_pos:
                player.x_pos = (s[1].x_pos - right) << 16
            else:
                player.x_pos = (s[0].x_pos - right) << 16
        if moving_left == 2:
            player.x_velocity = 0
            player.speed = 0
            if not s[2].collided or not s[3].collided:
                if s[2].collided:
                    player.x_pos = (s[2].x_pos - left + 1) << 16
                elif s[3].collided:
                    player.x_pos = (s[3].x_pos - left + 1) << 16
            elif s[2].x_pos <= s[3].x_pos:
                player.x_pos = (s[3].x_pos - left + 1) << 16
            else:
                player.x_pos = (s[2].x_pos - left + 1) << 16
    else:
        player.x_pos += player.x_velocity

    if moving_up < 2 and moving_down < 2:
        player.y_pos += player.y_velocity
        return

    if moving_down == 2:
        player.gravity = 0
        landed = None
        if s[4].collided and s[5].collided:
            landed = s[5] if s[4].y_pos >= s[5].y_pos else s[4]
        elif s[4].collided:
            landed = s[4]
        elif s[5].collided:
            landed = s[5]
        if landed is not None:
            player.y_pos = (landed.y_pos - bottom) << 16
            player.angle = landed.angle
        if 0xA0 < player.angle < 0xE0 and player.collision_mode != CollisionMode.LWALL:
            player.collision_mode = CollisionMode.LWALL
        if 0x20 < player.angle < 0x60 and player.collision_mode != CollisionMode.RWALL:
            player.collision_mode = CollisionMode.RWALL
        player.rotation = player.angle
        player.speed += player.y_velocity * _sin(player.angle) >> 8
        player.y_velocity = 0

    if moving_up == 2:
        player.y_velocity = 0
        hit = None
        if s[4].collided and s[5].collided:
            hit = s[5] if s[4].y_pos <= s[5].y_pos else s[4]
        elif s[4].collided:
            hit = s[4]
        elif s[5].collided:
            hit = s[5]
        if hit is not None:
            player.y_pos = (hit.y_pos - top + 1) << 16


def process_player_tile_collisions(
    world: CollisionWorld, rig: SensorRig, player: Player, hitbox
) -> None:
    """Clear the flailing flags and run the airborne or grounded pass."""
    player.flailing[:] = [0, 0, 0]
    if player.gravity == 1:
        process_traced_collision(world, rig, player, hitbox)
    else:
        process_path_grip(world, rig, player, hitbox)