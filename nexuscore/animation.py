"""Player animation files: sprite sheets, animations, frames and hitboxes."""

from __future__ import annotations

from dataclasses import dataclass, field

ANIFILE_COUNT = 0x100
ANIMATION_COUNT = 0x400
SPRITEFRAME_COUNT = 0x1000
HITBOX_COUNT = 0x20
HITBOX_DIR_COUNT = 0x8

SHEETS_PER_PLAYER = 4
PLAYER_SHEET_BASE = 16
FRAMES_PER_PLAYER_SHIFT = 10
HITBOXES_PER_PLAYER_SHIFT = 3
PLAYER_SLOTS = SPRITEFRAME_COUNT >> FRAMES_PER_PLAYER_SHIFT

ANIMATION_DIR = "Data/Animations/"
SPRITE_DIR = "Data/Sprites/"
HEADER_SIZE = 5


@dataclass(frozen=True)
class SpriteFrame:
    """One frame: where it sits on its sheet and where its pivot is."""

    spr_x: int = 0
    spr_y: int = 0
    width: int = 0
    height: int = 0
    pivot_x: int = 0
    pivot_y: int = 0
    sheet_id: int = 0
    hitbox_id: int = 0


@dataclass(frozen=True)
class SpriteAnimation:
    """A sequence of frames with a playback speed and loop point."""

    speed: int = 0
    loop_point: int = 0
    frames: tuple[SpriteFrame, ...] = ()

    @property
    def frame_count(self) -> int:
        return len(self.frames)


@dataclass(frozen=True)
class Hitbox:
    """Box edges for each of the eight collision directions."""

    left: tuple[int, ...] = (0,) * HITBOX_DIR_COUNT
    top: tuple[int, ...] = (0,) * HITBOX_DIR_COUNT
    right: tuple[int, ...] = (0,) * HITBOX_DIR_COUNT
    bottom: tuple[int, ...] = (0,) * HITBOX_DIR_COUNT


@dataclass
class PlayerAnimationSet:
    """Everything a player animation file provides."""

    player_id: int
    sheets: dict[int, str] = field(default_factory=dict)
    animations: list[SpriteAnimation] = field(default_factory=list)
    hitboxes: list[Hitbox] = field(default_factory=list)

    @property
    def first_frame_id(self) -> int:
        return self.player_id << FRAMES_PER_PLAYER_SHIFT

    @property
    def first_hitbox_id(self) -> int:
        return self.player_id << HITBOXES_PER_PLAYER_SHIFT


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def read(self, size: int) -> bytes:
        end = self._pos + size
        if end > len(self._data):
            raise ValueError("animation file ends unexpectedly")
        chunk = self._data[self._pos : end]
        self._pos = end
        return chunk

    def byte(self) -> int:
        return self.read(1)[0]

    def sbyte(self) -> int:
        value = self.byte()
        return value - 0x100 if value >= 0x80 else value


def parse_player_animation(data: bytes, player_id: int) -> PlayerAnimationSet:
    """Parse a player animation file for the player slot ``player_id``."""
    if not 0 <= player_id < PLAYER_SLOTS:
        raise ValueError(f"player id out of range: {player_id}")
    reader = _Reader(data)
    reader.read(HEADER_SIZE)

    result = PlayerAnimationSet(player_id=player_id)
    sheet_ids = [0] * SHEETS_PER_PLAYER
    for slot in range(SHEETS_PER_PLAYER):
        length = reader.byte()
        if not length:
            continue
        name = reader.read(length).decode("latin-1")
        sheet_id = SHEETS_PER_PLAYER * player_id + PLAYER_SHEET_BASE + slot
        result.sheets[sheet_id] = SPRITE_DIR + name
        sheet_ids[slot] = sheet_id

    for _ in range(reader.byte()):
        frame_count = reader.byte()
        speed = reader.byte()
        loop_point = reader.byte()
        frames = []
        for _ in range(frame_count):
            slot = reader.byte()
            if slot >= SHEETS_PER_PLAYER:
                raise ValueError(f"frame refers to sheet slot {slot}")
            hitbox_id = reader.byte()
            spr_x, spr_y, width, height = (reader.byte() for _ in range(4))
            pivot_x = reader.sbyte()
            pivot_y = reader.sbyte()
            frames.append(
                SpriteFrame(
                    spr_x=spr_x,
                    spr_y=spr_y,
                    width=width,
                    height=height,
                    pivot_x=pivot_x,
                    pivot_y=pivot_y,
                    sheet_id=sheet_ids[slot],
                    hitbox_id=hitbox_id,
                )
            )
        result.animations.append(SpriteAnimation(speed, loop_point, tuple(frames)))

    for _ in range(reader.byte()):
        edges: list[list[int]] = [[], [], [], []]
        for _ in range(HITBOX_DIR_COUNT):
            for edge in edges:
                edge.append(reader.sbyte())
        result.hitboxes.append(Hitbox(*(tuple(edge) for edge in edges)))
    return result