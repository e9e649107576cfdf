import pytest

from nexuscore.collision_world import (
    CollisionSensor,
    CollisionWorld,
    Player,
    Solidity,
    TileFlip,
)
from nexuscore.probes import (
    find_floor_position,
    find_lwall_position,
    find_roof_position,
    find_rwall_position,
)


def _fill(values, value):
    values[:] = [value] * len(values)


@pytest.fixture
def world():
    return CollisionWorld()


def test_floor_hit_uses_floor_mask(world):
    world.masks[0].floor_masks[:16] = [5] * 16
    sensor = CollisionSensor(x_pos=20 << 16, y_pos=40 << 16)
    find_floor_position(world, Player(), sensor, 40)
    assert sensor.collided is True
    assert sensor.y_pos & 15 == 5
    assert abs(sensor.y_pos - 40) <= 8
    assert sensor.angle == 0


def test_floor_no_hit_on_passable_tiles(world):
    _fill(world.chunks.collision_flags[0], Solidity.NONE)
    sensor = CollisionSensor(x_pos=20 << 16, y_pos=40 << 16)
    find_floor_position(world, Player(), sensor, 40)
    assert sensor.collided is False
    assert sensor.y_pos == 40 << 16


def test_floor_ignores_lrb_tiles(world):
    _fill(world.chunks.collision_flags[0], Solidity.LRB)
    sensor = CollisionSensor(x_pos=20 << 16, y_pos=40 << 16)
    find_floor_position(world, Player(), sensor, 40)
    assert sensor.collided is False


def test_floor_empty_mask_is_not_a_hit(world):
    _fill(world.masks[0].floor_masks, 0x40)
    sensor = CollisionSensor(x_pos=20 << 16, y_pos=40 << 16)
    find_floor_position(world, Player(), sensor, 40)
    assert sensor.collided is False
    assert sensor.y_pos == 40 << 16


def test_floor_angle_mismatch_restores_sensor(world):
    world.masks[0].angles[0] = 0x40
    sensor = CollisionSensor(x_pos=20 << 16, y_pos=40 << 16, angle=0)
    find_floor_position(world, Player(), sensor, 40)
    assert sensor.collided is False
    assert sensor.y_pos == 40 << 16
    assert sensor.angle == 0


def test_floor_flip_x_mirrors_angle(world):
    world.masks[0].angles[0] = 0x10
    _fill(world.chunks.direction, TileFlip.X)
    sensor = CollisionSensor(x_pos=20 << 16, y_pos=40 << 16, angle=0xF0)
    find_floor_position(world, Player(), sensor, 40)
    assert sensor.collided is True
    assert sensor.angle == 0x100 - 0x10


def test_floor_negative_position_is_untouched(world):
    sensor = CollisionSensor(x_pos=-(1 << 16), y_pos=40 << 16)
    find_floor_position(world, Player(), sensor, 40)
    assert sensor.collided is False
    assert sensor.x_pos == -(1 << 16)


def test_floor_uses_player_plane(world):
    _fill(world.chunks.collision_flags[0], Solidity.NONE)
    world.masks[1].floor_masks[:16] = [7] * 16
    sensor = CollisionSensor(x_pos=20 << 16, y_pos=40 << 16)
    find_floor_position(world, Player(collision_plane=1), sensor, 40)
    assert sensor.collided is True
    assert sensor.y_pos & 15 == 7


def test_lwall_hit_uses_lwall_mask(world):
    world.masks[0].lwall_masks[:16] = [3] * 16
    sensor = CollisionSensor(x_pos=40 << 16, y_pos=20 << 16)
    find_lwall_position(world, Player(), sensor, 40)
    assert sensor.collided is True
    assert sensor.x_pos & 15 == 3
    assert abs(sensor.x_pos - 40) <= 8


def test_lwall_passable_tiles(world):
    _fill(world.chunks.collision_flags[0], Solidity.NONE)
    sensor = CollisionSensor(x_pos=40 << 16, y_pos=20 << 16)
    find_lwall_position(world, Player(), sensor, 40)
    assert sensor.collided is False
    assert sensor.x_pos == 40 << 16


def test_roof_hit_uses_roof_mask(world):
    world.masks[0].roof_masks[:16] = [3] * 16
    sensor = CollisionSensor(x_pos=20 << 16, y_pos=40 << 16)
    find_roof_position(world, Player(), sensor, 40)
    assert sensor.collided is True
    assert sensor.y_pos & 15 == 3
    assert abs(sensor.y_pos - 40) <= 15


def test_roof_empty_mask_is_not_a_hit(world):
    _fill(world.masks[0].roof_masks, -0x40)
    sensor = CollisionSensor(x_pos=20 << 16, y_pos=40 << 16)
    find_roof_position(world, Player(), sensor, 40)
    assert sensor.collided is False
    assert sensor.y_pos == 40 << 16


def test_rwall_hit_uses_rwall_mask(world):
    sensor = CollisionSensor(x_pos=40 << 16, y_pos=20 << 16)
    find_rwall_position(world, Player(), sensor, 40)
    assert sensor.collided is True
    assert sensor.x_pos & 15 == 0
    assert abs(sensor.x_pos - 40) <= 8


def test_rwall_angle_mismatch_restores_sensor(world):
    world.masks[0].angles[0] = 0x40 << 16
    sensor = CollisionSensor(x_pos=40 << 16, y_pos=20 << 16, angle=0)
    find_rwall_position(world, Player(), sensor, 40)
    assert sensor.collided is False
    assert sensor.x_pos == 40 << 16
    assert sensor.angle == 0


def test_rwall_far_hits_are_rejected(world):
    world.masks[0].rwall_masks[:16] = [2] * 16
    sensor = CollisionSensor(x_pos=40 << 16, y_pos=20 << 16)
    find_rwall_position(world, Player(), sensor, 40)
    assert sensor.collided is False


def test_probe_outside_layout_raises(world):
    sensor = CollisionSensor(x_pos=(256 * 128) << 16, y_pos=(256 * 128) << 16)
    with pytest.raises(IndexError):
        find_floor_position(world, Player(), sensor, 256 * 128)