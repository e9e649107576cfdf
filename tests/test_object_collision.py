import pytest

from nexuscore.animation import HITBOX_DIR_COUNT, Hitbox
from nexuscore.collision_world import (
    CollisionMode,
    CollisionWorld,
    Entity,
    Player,
    SensorRig,
    Solidity,
    TileFlip,
)
from nexuscore.object_collision import (
    BOX_BOTTOM,
    BOX_LEFT,
    BOX_NONE,
    BOX_RIGHT,
    BOX_TOP,
    box_collision,
    object_floor_collision,
    object_floor_grip,
    platform_collision,
    touch_collision,
)


def make_world(floor_height=0):
    world = CollisionWorld()
    world.layout.xsize = 4
    world.layout.ysize = 4
    for plane in world.masks:
        plane.floor_masks[:16] = [floor_height] * 16
    return world


def make_hitbox(left=-10, top=-20, right=10, bottom=20):
    n = HITBOX_DIR_COUNT
    return Hitbox((left,) * n, (top,) * n, (right,) * n, (bottom,) * n)


def fixed(value):
    return value << 16


# Object floor collision


def test_floor_collision_snaps_to_tile_surface():
    world = make_world()
    entity = Entity(fixed(20), fixed(37))
    assert object_floor_collision(world, entity, 0, 0, 0) is True
    surface = entity.y_pos >> 16
    assert surface % 16 == 0
    assert 37 - 16 < surface <= 37
    assert entity.y_pos & 0xFFFF == 0


def test_floor_collision_offset_is_removed_from_result():
    world = make_world()
    plain = Entity(fixed(20), fixed(37))
    shifted = Entity(fixed(20), fixed(35))
    object_floor_collision(world, plain, 0, 0, 0)
    object_floor_collision(world, shifted, 0, 2, 0)
    assert shifted.y_pos == plain.y_pos - fixed(2)


def test_floor_collision_outside_stage_leaves_entity():
    world = make_world()
    world.layout.xsize = 0
    entity = Entity(fixed(20), fixed(37))
    assert object_floor_collision(world, entity, 0, 0, 0) is False
    assert entity.y_pos == fixed(37)


def test_floor_collision_ignores_non_solid_tiles():
    world = make_world()
    world.chunks.collision_flags[0][:] = [Solidity.NONE] * len(world.chunks.collision_flags[0])
    entity = Entity(fixed(20), fixed(37))
    assert object_floor_collision(world, entity, 0, 0, 0) is False
    assert entity.y_pos == fixed(37)


def test_floor_collision_above_flipped_surface_misses():
    world = make_world()
    world.chunks.direction[:] = [TileFlip.Y] * len(world.chunks.direction)
    entity = Entity(fixed(20), fixed(37))
    assert object_floor_collision(world, entity, 0, 0, 0) is False
    assert entity.y_pos == fixed(37)


def test_floor_collision_rejects_bad_plane():
    with pytest.raises(ValueError):
        object_floor_collision(make_world(), Entity(fixed(20), fixed(37)), 0, 0, 5)


# Object floor grip


def test_floor_grip_holds_nearby_floor():
    world = make_world(floor_height=10)
    entity = Entity(fixed(20), fixed(40))
    assert object_floor_grip(world, entity, 0, 0, 0) is True
    surface = entity.y_pos >> 16
    assert abs(surface - 40) < 16
    assert surface % 16 == 10


def test_floor_grip_restores_position_when_floor_too_far():
    world = make_world(floor_height=0)
    entity = Entity(fixed(20), fixed(40))
    assert object_floor_grip(world, entity, 0, 0, 0) is False
    assert entity.y_pos == fixed(40)


def test_floor_grip_without_floor_leaves_entity():
    world = make_world(floor_height=64)
    entity = Entity(fixed(20), fixed(41))
    assert object_floor_grip(world, entity, 0, 0, 0) is False
    assert entity.y_pos == fixed(41)


# Touch collision


def test_touch_collision_overlap_and_bounds():
    rig = SensorRig()
    player = Player(x_pos=fixed(100), y_pos=fixed(100))
    assert touch_collision(rig, player, make_hitbox(), 95, 95, 105, 105) is True
    assert (rig.collision_left, rig.collision_right) == (100 - 10, 100 + 10)
    assert (rig.collision_top, rig.collision_bottom) == (100 - 20, 100 + 20)


def test_touch_collision_no_overlap():
    rig = SensorRig()
    player = Player(x_pos=fixed(100), y_pos=fixed(100))
    assert touch_collision(rig, player, make_hitbox(), 200, 200, 300, 300) is False


# Box collision


def test_box_landing_on_top():
    rig = SensorRig()
    hitbox = make_hitbox()
    player = Player(x_pos=fixed(100), y_pos=fixed(100), y_velocity=fixed(4), gravity=1)
    top = fixed(118)
    result = box_collision(rig, player, hitbox, fixed(80), top, fixed(120), fixed(200))
    assert result == BOX_TOP
    assert player.y_pos == top - fixed(hitbox.bottom[0])
    assert player.gravity == 0
    assert player.y_velocity == 0
    assert player.flailing == [1, 1, 1]


def test_box_left_side_pushes_player_back():
    rig = SensorRig()
    hitbox = make_hitbox()
    player = Player(x_pos=fixed(100), y_pos=fixed(100), x_velocity=fixed(4), gravity=1)
    left = fixed(108)
    result = box_collision(rig, player, hitbox, left, fixed(50), fixed(300), fixed(200))
    assert result == BOX_LEFT
    assert player.x_pos == left - fixed(hitbox.right[0])
    assert player.x_velocity == 0
    assert player.speed == 0
    assert player.pushing == 2


@pytest.mark.parametrize("direction, pushing", [(TileFlip.NONE, 0), (TileFlip.X, 2)])
def test_box_right_side(direction, pushing):
    rig = SensorRig()
    hitbox = make_hitbox()
    player = Player(
        x_pos=fixed(100), y_pos=fixed(100), x_velocity=-fixed(4), gravity=1, direction=direction
    )
    right = fixed(92)
    result = box_collision(rig, player, hitbox, 0, fixed(50), right, fixed(200))
    assert result == BOX_RIGHT
    assert player.x_pos == right - fixed(hitbox.left[0])
    assert player.x_velocity == 0
    assert player.pushing == pushing


def test_box_underside_stops_rising_player():
    rig = SensorRig()
    hitbox = make_hitbox()
    player = Player(x_pos=fixed(100), y_pos=fixed(100), y_velocity=-fixed(4), gravity=1)
    bottom = fixed(82)
    result = box_collision(rig, player, hitbox, fixed(80), 0, fixed(120), bottom)
    assert result == BOX_BOTTOM
    assert player.y_pos == bottom - fixed(hitbox.top[0])
    assert player.y_velocity == 0


def test_box_far_away_reports_nothing():
    rig = SensorRig()
    player = Player(x_pos=fixed(100), y_pos=fixed(100), y_velocity=fixed(4), gravity=1)
    result = box_collision(rig, player, make_hitbox(), fixed(500), fixed(500), fixed(600), fixed(600))
    assert result == BOX_NONE
    assert player.y_pos == fixed(100)
    assert player.y_velocity == fixed(4)


# Platform collision


def test_platform_landing():
    rig = SensorRig()
    hitbox = make_hitbox()
    player = Player(x_pos=fixed(100), y_pos=fixed(100), y_velocity=fixed(1), gravity=1)
    top = fixed(119)
    assert platform_collision(rig, player, hitbox, fixed(80), top, fixed(120), fixed(130)) is True
    assert player.y_pos == top - fixed(hitbox.bottom[0])
    assert player.gravity == 0
    assert player.angle == 0


def test_platform_ignored_when_rising():
    rig = SensorRig()
    player = Player(x_pos=fixed(100), y_pos=fixed(100), y_velocity=-fixed(1), gravity=1)
    assert platform_collision(rig, player, make_hitbox(), fixed(80), fixed(119), fixed(120), fixed(130)) is False
    assert player.y_pos == fixed(100)
    assert player.gravity == 1


def test_platform_stops_wall_running_player():
    rig = SensorRig()
    player = Player(
        x_pos=fixed(100),
        y_pos=fixed(100),
        x_velocity=fixed(5),
        speed=fixed(5),
        gravity=0,
        collision_mode=CollisionMode.LWALL,
    )
    assert platform_collision(rig, player, make_hitbox(), fixed(80), fixed(119), fixed(120), fixed(130)) is True
    assert player.x_velocity == 0
    assert player.speed == 0