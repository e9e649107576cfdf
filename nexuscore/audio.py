"""Sound-effect channels, music playback state and the output mixer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .audio_mix import (
    CHANNEL_COUNT,
    MAX_VOLUME,
    MIX_BUFFER_SAMPLES,
    SFX_COUNT,
    TRACK_COUNT,
    Channel,
    MusicStatus,
    SoundEffect,
    clamp_sample,
    mix_samples,
)

MUSIC_DIR = "Data/Music/"


@dataclass
class MusicTrack:
    """A music slot: the file it plays and whether it loops."""

    file_name: str = ""
    loop: bool = False


class AudioMixer:
    """Holds loaded sounds, sound channels and music, and renders output."""

    def __init__(self, audio_enabled: bool = True) -> None:
        self.audio_enabled = audio_enabled
        self.master_volume = MAX_VOLUME
        self.sfx_volume = MAX_VOLUME
        self.bgm_volume = MAX_VOLUME
        self.track_id = -1
        self.music_status = MusicStatus.STOPPED
        self.music_tracks = [MusicTrack() for _ in range(TRACK_COUNT)]
        self.sfx_list = [SoundEffect() for _ in range(SFX_COUNT)]
        self.channels = [Channel() for _ in range(CHANNEL_COUNT)]
        self.next_channel_pos = 0
        self.global_sfx_count = 0
        self.stage_sfx_count = 0
        self._music: Sequence[int] = ()
        self._music_pos = 0
        self._music_loop = False
        self._music_loaded = False

    @property
    def music_loaded(self) -> bool:
        return self._music_loaded

    @staticmethod
    def _check_sfx(sfx: int) -> None:
        if not 0 <= sfx < SFX_COUNT:
            raise IndexError(f"sound effect id out of range: {sfx}")

    # Sound effects

    def load_sfx(self, sfx_id: int, name: str, samples: Sequence[int]) -> None:
        """Store decoded samples under ``sfx_id``; ignored when audio is off."""
        if not self.audio_enabled:
            return
        self._check_sfx(sfx_id)
        self.sfx_list[sfx_id] = SoundEffect(name=name, samples=tuple(samples), loaded=True)

    def play_sfx(self, sfx: int, loop: bool) -> None:
        """Start a sound, reusing the channel already playing it if any."""
        self._check_sfx(sfx)
        channel_id = self.next_channel_pos
        self.next_channel_pos += 1
        for index, channel in enumerate(self.channels):
            if channel.sfx_id == sfx:
                channel_id = index
                break

        channel = self.channels[channel_id]
        channel.sfx_id = sfx
        channel.samples = self.sfx_list[sfx].samples
        channel.position = 0
        channel.loop = bool(loop)
        channel.pan = 0
        if self.next_channel_pos == CHANNEL_COUNT:
            self.next_channel_pos = 0

    def stop_sfx(self, sfx: int) -> None:
        """Silence every channel playing ``sfx``."""
        for channel in self.channels:
            if channel.sfx_id == sfx:
                channel.reset()

    def stop_all_sfx(self) -> None:
        """Mark every channel free."""
        for channel in self.channels:
            channel.sfx_id = -1

    def set_sfx_attributes(self, sfx: int, loop_count: int, pan: int) -> None:
        """Restart ``sfx`` on its channel (or a free one) with a loop flag and pan.

        A ``loop_count`` of -1 keeps the channel's current loop flag.
        """
        self._check_sfx(sfx)
        if not -128 <= pan <= 127:
            raise ValueError(f"pan out of range: {pan}")
        target = next(
            (channel for channel in self.channels if channel.sfx_id in (sfx, -1)),
            None,
        )
        if target is None:
            return
        target.samples = self.sfx_list[sfx].samples
        target.position = 0
        if loop_count != -1:
            target.loop = bool(loop_count & 0xFF)
        target.pan = pan
        target.sfx_id = sfx

    def _unload(self, index: int) -> None:
        if self.sfx_list[index].loaded:
            self.sfx_list[index] = SoundEffect()

    def release_global_sfx(self) -> None:
        """Stop all sounds and unload the global ones."""
        self.stop_all_sfx()
        for index in range(self.global_sfx_count - 1, -1, -1):
            self._unload(index)
        self.global_sfx_count = 0

    def release_stage_sfx(self) -> None:
        """Unload the sounds loaded for the current stage."""
        top = min(self.stage_sfx_count + self.global_sfx_count, SFX_COUNT - 1)
        for index in range(top, self.global_sfx_count - 1, -1):
            self._unload(index)
        self.stage_sfx_count = 0

    # Music

    def set_music_track(self, file_path: str, track_id: int, loop: bool) -> None:
        """Assign a music file under the music directory to a track slot."""
        if not 0 <= track_id < TRACK_COUNT:
            raise IndexError(f"track id out of range: {track_id}")
        track = self.music_tracks[track_id]
        track.file_name = MUSIC_DIR + file_path
        track.loop = bool(loop)

    def play_music(self, track: int, source: Sequence[int]) -> bool:
        """Start playing ``track`` from decoded interleaved samples.

        Returns False when audio is off or the track id is out of range.
        """
        if not self.audio_enabled:
            return False
        if not 0 <= track < TRACK_COUNT:
            self.stop_music()
            return False
        self.music_status = MusicStatus.LOADING
        self._load_music(track, source)
        return True

    def _load_music(self, track: int, source: Sequence[int]) -> None:
        info = self.music_tracks[track]
        if not info.file_name:
            self.stop_music()
            return
        if self._music_loaded:
            self.stop_music()
        self._music = tuple(source)
        self._music_pos = 0
        self._music_loop = info.loop
        self._music_loaded = True
        self.music_status = MusicStatus.PLAYING
        self.master_volume = MAX_VOLUME
        self.track_id = track

    def stop_music(self) -> None:
        """Stop the music and drop the loaded stream."""
        self.music_status = MusicStatus.STOPPED
        if self._music_loaded:
            self._music = ()
            self._music_pos = 0
            self._music_loop = False
            self._music_loaded = False

    def pause_sound(self) -> None:
        if self.music_status == MusicStatus.PLAYING:
            self.music_status = MusicStatus.PAUSED

    def resume_sound(self) -> None:
        if self.music_status == MusicStatus.PAUSED:
            self.music_status = MusicStatus.PLAYING

    def set_music_volume(self, volume: int) -> None:
        """Set the master volume, clamped to 0..MAX_VOLUME."""
        self.master_volume = max(0, min(volume, MAX_VOLUME))

    # Rendering

    def _mix_music(self, mix: list[int]) -> None:
        if not self._music_loaded:
            return
        if self.music_status not in (MusicStatus.PLAYING, MusicStatus.READY):
            return
        wanted = len(mix)
        chunk: list[int] = []
        while len(chunk) < wanted:
            if self._music_pos >= len(self._music):
                if self._music_loop and self._music:
                    self._music_pos = 0
                    continue
                self.music_status = MusicStatus.STOPPED
                break
            piece = self._music[self._music_pos : self._music_pos + wanted - len(chunk)]
            chunk.extend(piece)
            self._music_pos += len(piece)
        if chunk:
            volume = (self.bgm_volume * self.master_volume) // MAX_VOLUME
            mix_samples(mix, chunk, volume, 0)

    def _mix_channel(self, channel: Channel, mix: list[int]) -> None:
        if not channel.active or not channel.samples:
            return
        wanted = len(mix)
        buffer: list[int] = []
        while len(buffer) < wanted:
            piece = channel.samples[channel.position : channel.position + wanted - len(buffer)]
            buffer.extend(piece)
            channel.position += len(piece)
            if channel.remaining == 0:
                if channel.loop:
                    channel.samples = self.sfx_list[channel.sfx_id].samples
                    channel.position = 0
                    if not channel.samples:
                        break
                else:
                    self.stop_sfx(channel.sfx_id)
                    break
        mix_samples(mix, buffer, self.sfx_volume, channel.pan)

    def render(self, sample_count: int) -> list[int]:
        """Mix music and sound effects into ``sample_count`` clamped samples."""
        if sample_count < 0:
            raise ValueError("sample count must not be negative")
        if not self.audio_enabled:
            return [0] * sample_count
        output: list[int] = []
        remaining = sample_count
        while remaining:
            todo = min(remaining, MIX_BUFFER_SAMPLES)
            mix = [0] * todo
            self._mix_music(mix)
            for channel in self.channels:
                self._mix_channel(channel, mix)
            output.extend(clamp_sample(value) for value in mix)
            remaining -= todo
        return output