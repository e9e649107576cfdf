import pytest

from nexuscore.collision_world import (
    TILE_SIZE,
    CollisionSensor,
    CollisionWorld,
    Player,
    Solidity,
    TileFlip,
)
from nexuscore.contacts import (
    floor_collision,
    lwall_collision,
    roof_collision,
    rwall_collision,
)

SOLID_INDEX = 1


def empty_world() -> CollisionWorld:
    world = CollisionWorld()
    size = len(world.chunks.collision_flags[0])
    world.chunks.collision_flags = [[Solidity.NONE] * size for _ in range(2)]
    return world


def place(world, tx, ty, flip=TileFlip.NONE, flags=Solidity.ALL, plane=0):
    tile = tx + (ty << 3)
    world.chunks.tile_index[tile] = SOLID_INDEX
    world.chunks.direction[tile] = flip
    world.chunks.collision_flags[plane][tile] = flags


def set_masks(world, plane=0, floor=None, roof=None, lwall=None, rwall=None, angles=0):
    masks = world.masks[plane]
    span = slice(SOLID_INDEX * TILE_SIZE, (SOLID_INDEX + 1) * TILE_SIZE)
    if floor is not None:
        masks.floor_masks[span] = [floor] * TILE_SIZE
    if roof is not None:
        masks.roof_masks[span] = [roof] * TILE_SIZE
    if lwall is not None:
        masks.lwall_masks[span] = [lwall] * TILE_SIZE
    if rwall is not None:
        masks.rwall_masks[span] = [rwall] * TILE_SIZE
    masks.angles[SOLID_INDEX] = angles


def sensor_at(x, y):
    return CollisionSensor(x_pos=x << 16, y_pos=y << 16)


# Floor


def test_floor_lands_on_surface():
    world = empty_world()
    place(world, 1, 3)
    height = 4
    set_masks(world, floor=height, angles=0x10)
    sensor = sensor_at(20, 54)
    floor_collision(world, Player(), sensor)
    assert sensor.collided
    assert sensor.y_pos == 3 * TILE_SIZE + height
    assert sensor.angle == 0x10


def test_floor_not_yet_reached_stays_clear():
    world = empty_world()
    place(world, 1, 3)
    set_masks(world, floor=4)
    sensor = sensor_at(20, 50)
    floor_collision(world, Player(), sensor)
    assert not sensor.collided
    assert sensor.y_pos == 50 << 16


def test_floor_flip_x_mirrors_angle():
    world = empty_world()
    place(world, 1, 3, flip=TileFlip.X)
    set_masks(world, floor=4, angles=0x10)
    sensor = sensor_at(20, 54)
    floor_collision(world, Player(), sensor)
    assert sensor.collided
    assert sensor.angle == 0x100 - 0x10


def test_floor_flip_y_uses_roof_mask():
    world = empty_world()
    place(world, 1, 3, flip=TileFlip.Y)
    roof = 3
    set_masks(world, roof=roof, angles=0x20 << 24)
    sensor = sensor_at(20, 62)
    floor_collision(world, Player(), sensor)
    assert sensor.collided
    assert sensor.y_pos == 3 * TILE_SIZE + (TILE_SIZE - 1 - roof)
    assert sensor.angle == 0x60


def test_floor_flip_y_and_xy_angles_sum_to_full_turn():
    angles = []
    for flip in (TileFlip.Y, TileFlip.XY):
        world = empty_world()
        place(world, 1, 3, flip=flip)
        set_masks(world, roof=3, angles=0x20 << 24)
        sensor = sensor_at(20, 62)
        floor_collision(world, Player(), sensor)
        assert sensor.collided
        angles.append(sensor.angle)
    assert sum(angles) == 0x100


def test_floor_too_far_above_is_rejected():
    world = empty_world()
    place(world, 1, 3)
    set_masks(world, floor=0)
    sensor = sensor_at(20, 79)
    floor_collision(world, Player(), sensor)
    assert not sensor.collided
    assert sensor.y_pos == 79 << 16


@pytest.mark.parametrize("flags", [Solidity.LRB, Solidity.NONE])
def test_floor_ignores_non_floor_solidity(flags):
    world = empty_world()
    place(world, 1, 3, flags=flags)
    set_masks(world, floor=4)
    sensor = sensor_at(20, 54)
    floor_collision(world, Player(), sensor)
    assert not sensor.collided
    assert sensor.y_pos == 54 << 16


def test_floor_uses_players_collision_plane():
    world = empty_world()
    place(world, 1, 3, plane=0)
    set_masks(world, plane=0, floor=4)
    sensor = sensor_at(20, 54)
    floor_collision(world, Player(collision_plane=1), sensor)
    assert not sensor.collided


def test_floor_already_collided_sensor_is_untouched():
    world = empty_world()
    place(world, 1, 3)
    set_masks(world, floor=4)
    sensor = CollisionSensor(x_pos=20 << 16, y_pos=54 << 16, angle=7, collided=True)
    floor_collision(world, Player(), sensor)
    assert (sensor.y_pos, sensor.angle, sensor.collided) == (54 << 16, 7, True)


def test_floor_negative_position_is_skipped():
    world = empty_world()
    sensor = CollisionSensor(x_pos=-(5 << 16), y_pos=54 << 16)
    floor_collision(world, Player(), sensor)
    assert not sensor.collided
    assert sensor.x_pos == -(5 << 16)


# Left wall (moving right)


def test_lwall_hits_wall():
    world = empty_world()
    place(world, 2, 1)
    depth = 5
    set_masks(world, lwall=depth)
    sensor = sensor_at(40, 20)
    lwall_collision(world, Player(), sensor)
    assert sensor.collided
    assert sensor.x_pos == 2 * TILE_SIZE + depth


def test_lwall_flip_x_with_mirrored_mask_matches_unflipped():
    positions = []
    for flip, masks in ((TileFlip.NONE, {"lwall": 5}), (TileFlip.X, {"rwall": TILE_SIZE - 1 - 5})):
        world = empty_world()
        place(world, 2, 1, flip=flip)
        set_masks(world, **masks)
        sensor = sensor_at(40, 20)
        lwall_collision(world, Player(), sensor)
        assert sensor.collided
        positions.append(sensor.x_pos)
    assert positions[0] == positions[1]


def test_lwall_ignores_top_only_tiles():
    world = empty_world()
    place(world, 2, 1, flags=Solidity.TOP)
    set_masks(world, lwall=5)
    sensor = sensor_at(40, 20)
    lwall_collision(world, Player(), sensor)
    assert not sensor.collided
    assert sensor.x_pos == 40 << 16


def test_lwall_too_far_is_rejected():
    world = empty_world()
    place(world, 2, 1)
    set_masks(world, lwall=0)
    sensor = sensor_at(63, 20)
    lwall_collision(world, Player(), sensor)
    assert not sensor.collided
    assert sensor.x_pos == 63 << 16


# Roof


def test_roof_hits_ceiling():
    world = empty_world()
    place(world, 1, 1)
    height = 10
    set_masks(world, roof=height, angles=0x80 << 24)
    sensor = sensor_at(20, 22)
    roof_collision(world, Player(), sensor)
    assert sensor.collided
    assert sensor.y_pos == TILE_SIZE + height
    assert sensor.angle == 0x80


def test_roof_below_ceiling_stays_clear():
    world = empty_world()
    place(world, 1, 1)
    set_masks(world, roof=10)
    sensor = sensor_at(20, 28)
    roof_collision(world, Player(), sensor)
    assert not sensor.collided
    assert sensor.y_pos == 28 << 16


def test_roof_ignores_top_only_tiles():
    world = empty_world()
    place(world, 1, 1, flags=Solidity.TOP)
    set_masks(world, roof=10)
    sensor = sensor_at(20, 22)
    roof_collision(world, Player(), sensor)
    assert not sensor.collided


def test_roof_angle_stays_in_byte_range():
    world = empty_world()
    place(world, 1, 1, flip=TileFlip.X)
    set_masks(world, roof=10, angles=0)
    sensor = sensor_at(20, 22)
    roof_collision(world, Player(), sensor)
    assert sensor.collided
    assert 0 <= sensor.angle <= 0xFF


# Right wall (moving left)


def test_rwall_hits_wall():
    world = empty_world()
    place(world, 1, 1)
    depth = 10
    set_masks(world, rwall=depth)
    sensor = sensor_at(22, 20)
    rwall_collision(world, Player(), sensor)
    assert sensor.collided
    assert sensor.x_pos == TILE_SIZE + depth


def test_rwall_flip_x_with_mirrored_mask_matches_unflipped():
    positions = []
    for flip, masks in ((TileFlip.NONE, {"rwall": 10}), (TileFlip.X, {"lwall": TILE_SIZE - 1 - 10})):
        world = empty_world()
        place(world, 1, 1, flip=flip)
        set_masks(world, **masks)
        sensor = sensor_at(22, 20)
        rwall_collision(world, Player(), sensor)
        assert sensor.collided
        positions.append(sensor.x_pos)
    assert positions[0] == positions[1]


def test_rwall_not_reached_stays_clear():
    world = empty_world()
    place(world, 1, 1)
    set_masks(world, rwall=10)
    sensor = sensor_at(28, 20)
    rwall_collision(world, Player(), sensor)
    assert not sensor.collided
    assert sensor.x_pos == 28 << 16