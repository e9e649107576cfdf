"""Sample mixing, sound-effect decoding and game-config sound listing."""

from __future__ import annotations

import io
import sys
import wave
from array import array
from dataclasses import dataclass, field
from enum import IntEnum
from typing import MutableSequence, Sequence

TRACK_COUNT = 0x10
SFX_COUNT = 0x100
CHANNEL_COUNT = 0x4
MAX_VOLUME = 100
MIX_BUFFER_SAMPLES = 256

AUDIO_FREQUENCY = 44100
AUDIO_CHANNELS = 2

SAMPLE_MAX = (1 << 15) - 1
SAMPLE_MIN = -(1 << 15)


class MusicStatus(IntEnum):
    """Playback state of the music stream."""

    STOPPED = 0
    PLAYING = 1
    PAUSED = 2
    LOADING = 3
    READY = 4


@dataclass
class SoundEffect:
    """A loaded sound effect as interleaved signed 16-bit samples."""

    name: str = ""
    samples: Sequence[int] = ()
    loaded: bool = False

    @property
    def length(self) -> int:
        return len(self.samples)


@dataclass
class Channel:
    """One sound-effect voice: what it plays, where it is, how it is panned."""

    sfx_id: int = -1
    samples: Sequence[int] = field(default=())
    position: int = 0
    loop: bool = False
    pan: int = 0

    @property
    def active(self) -> bool:
        return self.sfx_id >= 0

    @property
    def remaining(self) -> int:
        return max(0, len(self.samples) - self.position)

    def reset(self) -> None:
        """Silence the channel and mark it free."""
        self.sfx_id = -1
        self.samples = ()
        self.position = 0
        self.loop = False
        self.pan = 0


def clamp_sample(value: int) -> int:
    """Clamp a mixed sample to the signed 16-bit range."""
    if value > SAMPLE_MAX:
        return SAMPLE_MAX
    if value < SAMPLE_MIN:
        return SAMPLE_MIN
    return value


def _trunc_div(numerator: int, denominator: int) -> int:
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator >= 0) else -quotient


def mix_samples(
    dst: MutableSequence[int], src: Sequence[int], volume: int, pan: int
) -> MutableSequence[int]:
    """Add ``src`` into ``dst`` scaled by volume and panned; returns ``dst``.

    Even positions are the left channel, odd positions the right one.
    """
    if not -128 <= pan <= 127:
        raise ValueError(f"pan out of range: {pan}")
    if len(dst) < len(src):
        raise ValueError("destination buffer is shorter than the source")
    if volume == 0:
        return dst
    volume = min(volume, MAX_VOLUME)

    pan_left = pan_right = 0.0
    if pan < 0:
        pan_right = 1.0 - abs(pan / 100.0)
        pan_left = 1.0
    elif pan > 0:
        pan_left = 1.0 - abs(pan / 100.0)
        pan_right = 1.0

    for index, value in enumerate(src):
        sample = _trunc_div(value * volume, MAX_VOLUME)
        if pan:
            sample = int(sample * (pan_right if index % 2 else pan_left))
        dst[index] += sample
    return dst


def _resample(frames: list[tuple[int, ...]], rate: int) -> list[tuple[int, ...]]:
    if rate == AUDIO_FREQUENCY or not frames:
        return frames
    count = len(frames) * AUDIO_FREQUENCY // rate
    return [frames[i * rate // AUDIO_FREQUENCY] for i in range(count)]


def decode_sfx(data: bytes, encrypted: bool) -> tuple[int, ...]:
    """Decrypt a sound-effect file and decode its WAV data.

    The result is interleaved signed 16-bit stereo at the output rate.
    Raises ValueError when the data is not a readable WAV file.
    """
    if encrypted:
        data = bytes(b ^ 0xFF for b in data)
    try:
        with wave.open(io.BytesIO(data), "rb") as wav:
            channels = wav.getnchannels()
            width = wav.getsampwidth()
            rate = wav.getframerate()
            raw = wav.readframes(wav.getnframes())
    except (wave.Error, EOFError) as exc:
        raise ValueError(f"unable to read sfx: {exc}") from exc

    if channels not in (1, 2):
        raise ValueError(f"unsupported channel count: {channels}")
    if width == 1:
        values = [(b - 128) << 8 for b in raw]
    elif width == 2:
        pcm = array("h")
        pcm.frombytes(raw[: len(raw) - len(raw) % 2])
        if sys.byteorder == "big":
            pcm.byteswap()
        values = pcm.tolist()
    else:
        raise ValueError(f"unsupported sample width: {width}")

    frames = [
        tuple(values[start : start + channels])
        for start in range(0, len(values) - len(values) % channels, channels)
    ]
    if channels == 1:
        frames = [(left, left) for (left,) in frames]
    frames = _resample(frames, rate)
    return tuple(sample for frame in frames for sample in frame)


class _ConfigReader:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def read(self, size: int) -> bytes:
        end = self._pos + size
        if end > len(self._data):
            raise ValueError("game config ends unexpectedly")
        chunk = self._data[self._pos : end]
        self._pos = end
        return chunk

    def byte(self) -> int:
        return self.read(1)[0]

    def string(self) -> str:
        return self.read(self.byte()).decode("latin-1")


def parse_global_sfx_names(data: bytes) -> list[str]:
    """List the global sound-effect file names held in a game config."""
    reader = _ConfigReader(data)
    for _ in range(3):
        reader.string()
    for _ in range(reader.byte()):
        reader.string()
    for _ in range(reader.byte()):
        reader.string()
        reader.read(4)
    return [reader.string() for _ in range(reader.byte())]