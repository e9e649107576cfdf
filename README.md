# nexuscore

This package holds the core of a classic side-scrolling platform engine in plain
Python. It has three parts:

- fixed-point tile collision against 128×128 chunk layouts,
- player animation and hitbox data,
- a small software mixer for sound effects and music.

It has no runtime dependencies. You supply the data: stage layouts, collision
masks, file bytes and sample buffers. The package works out where things end up
and what the mixed output is.

## Installing

```
pip install .
pip install ".[test]"   # with pytest
```

## Modules

### `nexuscore.audio_mix`

Sample helpers and audio records.

- `clamp_sample(value)` clamps a mixed value to the signed 16-bit range.
- `mix_samples(dst, src, volume, pan)` adds `src` into `dst` in place and
  returns `dst`. The volume is capped at 100. Even positions are the left
  channel and odd positions the right. A pan outside -128..127 raises
  `ValueError`.
- `decode_sfx(data, encrypted)` handles a stored sound effect. When `encrypted`
  is true it XORs every byte with 0xFF. It then decodes the WAV data with the
  standard `wave` module. The result is a tuple of interleaved 16-bit stereo
  samples at 44100 Hz. Mono is duplicated, 8-bit data is widened, and other
  rates are resampled by nearest neighbour. Unreadable data, or an unsupported
  width or channel count, raises `ValueError`.
- `parse_global_sfx_names(data)` reads the bytes of a game config file and
  returns the list of global sound-effect names.
- It also defines `MusicStatus` (`STOPPED`, `PLAYING`, `PAUSED`, `LOADING`,
  `READY`), `SoundEffect` and `Channel`.

### `nexuscore.audio`

`AudioMixer` keeps 256 sound-effect slots, four effect channels and 16 music
track slots (`MusicTrack`).

- Effects:
  - `load_sfx(sfx_id, name, samples)` stores decoded samples in a slot.
  - `play_sfx(sfx, loop)` plays an effect. It reuses the channel already
    playing that effect, or else takes the next channel in turn.
  - `stop_sfx(sfx)` and `stop_all_sfx()` stop effects.
  - `set_sfx_attributes(sfx, loop_count, pan)` changes the loop setting and pan
    of an effect. A `loop_count` of -1 keeps the current loop setting.
  - `release_global_sfx()` and `release_stage_sfx()` unload effects.
- Music:
  - `set_music_track(file_path, track_id, loop)` records `Data/Music/<file_path>`
    for a track slot.
  - `play_music(track, source)` starts playing already-decoded interleaved
    samples for a track that has a file name set.
  - `stop_music()`, `pause_sound()` and `resume_sound()` control playback.
  - `set_music_volume(volume)` sets the master volume, clamped to 0..100.
- `render(sample_count)` mixes music and effects in blocks of 256 samples and
  returns a list of clamped 16-bit values. When audio is disabled it returns
  silence.

### `nexuscore.animation`

`parse_player_animation(data, player_id)` reads the bytes of a player animation
file and returns a `PlayerAnimationSet` with these fields:

- `sheets`: maps each sheet id to its `Data/Sprites/...` path.
- `animations`: a list of `SpriteAnimation`, each with frames given as
  `SpriteFrame`.
- `hitboxes`: a list of `Hitbox`, each with eight directions of
  left/top/right/bottom edges.

Truncated data, an out-of-range player id, or a frame that refers to a sheet
slot above 3 raises `ValueError`.

### `nexuscore.collision_world`

The world model:

- `StageLayout`
- `ChunkTiles`
- `CollisionMasks`
- `CollisionWorld`, whose `tile_at(x, y)` maps a pixel to its chunk-tile index
- `Player`
- `Entity`
- `CollisionSensor`
- `SensorRig`, whose `load_bounds(hitbox, direction)` copies one direction of a
  hitbox into the rig's bounds
- the enums `CollisionMode`, `CollisionSide`, `Solidity`, `TileFlip` and
  `ObjectCollisionType`

### `nexuscore.probes` and `nexuscore.contacts`

`probes` has the ground-following probes: `find_floor_position`,
`find_lwall_position`, `find_roof_position` and `find_rwall_position`.

`contacts` has the airborne checks: `floor_collision`, `lwall_collision`,
`roof_collision` and `rwall_collision`.

Each function updates the sensor it is given in place.

### `nexuscore.terrain`

`process_player_tile_collisions(world, rig, player, hitbox)` clears the
player's flailing flags. It then runs one of two passes:

- `process_traced_collision`: the player is airborne (`gravity == 1`) and moves
  along its velocity pixel by pixel.
- `process_path_grip`: the player is grounded and follows the surface, changing
  collision mode on slopes, walls and ceilings.

`set_path_grip_sensors` places the grip sensors for the current mode.

### `nexuscore.object_collision`

- `object_floor_collision` and `object_floor_grip` snap an `Entity` to the
  floor and return whether it landed.
- `touch_collision` tests the player's box for overlap with a box given in
  whole pixels.
- `box_collision` pushes the player out of a solid box given in fixed point. It
  returns `BOX_NONE`, `BOX_TOP`, `BOX_LEFT`, `BOX_RIGHT` or `BOX_BOTTOM`
  (0–4).
- `platform_collision` lands the player on a platform it is falling onto.

## Examples

```python
from nexuscore.audio import AudioMixer

mixer = AudioMixer()
mixer.load_sfx(0, "Jump.wav", [1000, -1000] * 64)
mixer.play_sfx(0, False)
samples = mixer.render(256)   # list of clamped 16-bit samples
```

```python
from nexuscore.animation import Hitbox
from nexuscore.collision_world import Player, SensorRig
from nexuscore.object_collision import touch_collision

hitbox = Hitbox(left=(-8,) * 8, top=(-16,) * 8, right=(8,) * 8, bottom=(16,) * 8)
player = Player(x_pos=100 << 16, y_pos=100 << 16)
touch_collision(SensorRig(), player, hitbox, 95, 90, 120, 110)   # True
```

Positions use fixed point, with the whole-pixel part in the upper 16 bits
(`x << 16`). A probe that hits stores the surface position in whole pixels.
Angles run from 0 to 255 for a full turn.

## What it does not do

The package is a library of state and calculations. It has no command-line
program and does not open windows, draw sprites or play sound on a device. It
does not decode Ogg music: `play_music` expects decoded samples. It does not
read files from disk: the parsers take bytes you have already loaded. It does
not load stages, palettes or scripts.