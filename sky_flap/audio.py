"""Synthesised sound cues for flap, score and collision."""

from __future__ import annotations

import logging

import numpy as np
import pygame

from .config import SAMPLE_RATE, SOUND_VOLUME
from .session import SessionListener, SoundCue

logger = logging.getLogger(__name__)

# (start Hz, end Hz, seconds) per cue
CUE_SWEEPS = {
    SoundCue.FLAP: (600.0, 400.0, 0.1),
    SoundCue.SCORE: (800.0, 1000.0, 0.1),
    SoundCue.COLLISION: (200.0, 100.0, 0.2),
}


def synthesize_sweep(start_hz: float, end_hz: float, duration: float, sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """Exponential frequency sweep with an exponential decay from 1.0 to 0.01.

    Returns float32 samples in [-1, 1].
    """
    samples = max(1, int(sample_rate * duration))
    t = np.linspace(0.0, duration, samples, endpoint=False, dtype=np.float64)
    ratio = end_hz / start_hz
    # Instantaneous frequency f(t) = start * ratio**(t/duration); integrate for phase
    if abs(ratio - 1.0) < 1e-9:
        phase = 2.0 * np.pi * start_hz * t
    else:
        k = np.log(ratio) / duration
        phase = 2.0 * np.pi * start_hz * (np.exp(k * t) - 1.0) / k
    envelope = np.power(0.01, t / duration)
    return (np.sin(phase) * envelope).astype(np.float32)


def wave_to_pcm(wave: np.ndarray, channels: int = 1) -> np.ndarray:
    """Convert float samples to contiguous int16 PCM shaped for the mixer."""
    pcm = (np.clip(wave, -1.0, 1.0) * 32767).astype(np.int16)
    if channels > 1:
        pcm = np.repeat(pcm[:, None], channels, axis=1)
    return np.ascontiguousarray(pcm)


class SoundBank(SessionListener):
    """Plays a short tone for every sound cue the session emits."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self.available = False
        self.sounds: dict[SoundCue, pygame.mixer.Sound] = {}
        self._init_audio()

    def _init_audio(self) -> None:
        try:
            if not pygame.mixer.get_init():
                pygame.mixer.init(frequency=SAMPLE_RATE, size=-16, channels=1)
            freq, _size, channels = pygame.mixer.get_init()
            for cue, (start_hz, end_hz, duration) in CUE_SWEEPS.items():
                wave = synthesize_sweep(start_hz, end_hz, duration, freq)
                sound = pygame.sndarray.make_sound(wave_to_pcm(wave, channels))
                sound.set_volume(SOUND_VOLUME)
                self.sounds[cue] = sound
        except (pygame.error, ValueError) as exc:
            logger.warning("Audio unavailable, running silent: %s", exc)
            self.sounds.clear()
            return
        self.available = True

    def toggle(self) -> bool:
        self.enabled = not self.enabled
        return self.enabled

    def on_sound(self, cue: SoundCue) -> None:
        if not (self.enabled and self.available):
            return
        sound = self.sounds.get(cue)
        if sound is not None:
            sound.play()
