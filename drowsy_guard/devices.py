"""
Alert Output Devices Module
pygame-backed alarm and volume control, haptic pulse loop, overlay flag

Repeating outputs run as RepeatingTask threads; each checks its stop
event before every re-issue, so stop() is signal-and-return.
"""

import logging
import os
import threading
from array import array

import pygame

from .config import (
    ALARM_TONE_HZ,
    ALARM_TONE_SECONDS,
    HAPTIC_INTERVAL_SECONDS,
)

logger = logging.getLogger(__name__)


class RepeatingTask:
    """
    Background thread calling `action(stop_event)` until stopped.

    `action` returns how long to wait before the next call; the wait ends
    early when the stop event is set.
    """

    def __init__(self, action, name="repeating-task"):
        self._action = action
        self._name = name
        self._stop_event = threading.Event()
        self._thread = None

    def start(self) -> bool:
        """Start the loop. Returns False if it is already running."""
        if self.is_running:
            return False
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self._stop_event,), name=self._name, daemon=True
        )
        self._thread.start()
        return True

    def _run(self, stop_event):
        while not stop_event.is_set():
            try:
                delay = self._action(stop_event)
            except Exception as e:
                logger.warning("%s stopped after error: %s", self._name, e)
                return
            if delay:
                stop_event.wait(delay)

    def stop(self):
        self._stop_event.set()

    def join(self, timeout=None):
        if self._thread is not None:
            self._thread.join(timeout)

    @property
    def is_running(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and not self._stop_event.is_set()
        )


def make_tone(frequency_hz: int, duration_s: float, sample_rate: int = 22050) -> bytes:
    """Square-wave tone as 16-bit mono PCM."""
    n_samples = int(duration_s * sample_rate)
    buf = array("h")
    period = max(1, int(sample_rate / max(1, frequency_hz)))
    amp = 12000
    for i in range(n_samples):
        buf.append(amp if (i % period) < (period // 2) else -amp)
    return buf.tobytes()


def _ensure_mixer():
    if not pygame.mixer.get_init():
        pygame.mixer.init(frequency=22050, size=-16, channels=1, buffer=512)


class MixerVolume:
    """
    Alarm output level in [0, 1].

    pygame resets a channel to full volume whenever a sound starts on it,
    so the level is stored here and re-applied by AlarmPlayer on every
    playback.
    """

    def __init__(self, level=1.0):
        self._level = min(1.0, max(0.0, float(level)))
        self._lock = threading.Lock()

    def get(self) -> float:
        with self._lock:
            return self._level

    def set(self, level: float):
        level = min(1.0, max(0.0, float(level)))
        with self._lock:
            self._level = level
        # Sounds already playing pick up the new level too
        if pygame.mixer.get_init():
            for i in range(pygame.mixer.get_num_channels()):
                channel = pygame.mixer.Channel(i)
                if channel.get_busy():
                    channel.set_volume(level)

    def apply(self, channel):
        """Set `channel` to the stored level."""
        if channel is not None:
            channel.set_volume(self.get())
        return channel


class AlarmPlayer:
    """
    Plays the alarm asset in a loop until stopped.

    The sound is re-issued after each natural completion at the level held
    by `volume`. A missing asset falls back to a synthesized tone.
    """

    def __init__(self, asset_dir=".", volume=None):
        self.asset_dir = asset_dir
        self.volume = volume if volume is not None else MixerVolume()
        self._sounds = {}
        self._channel = None
        self._task = None
        # Serializes check-and-play against stop-and-silence
        self._lock = threading.Lock()

    def _load(self, asset_id):
        if asset_id not in self._sounds:
            _ensure_mixer()
            path = os.path.join(self.asset_dir, asset_id)
            if os.path.exists(path):
                self._sounds[asset_id] = pygame.mixer.Sound(path)
            else:
                logger.warning("Alarm asset %s not found, using generated tone", path)
                self._sounds[asset_id] = pygame.mixer.Sound(
                    buffer=make_tone(ALARM_TONE_HZ, ALARM_TONE_SECONDS)
                )
        return self._sounds[asset_id]

    def start_loop(self, asset_id):
        if self._task is not None and self._task.is_running:
            return
        sound = self._load(asset_id)

        def play_once(stop_event):
            with self._lock:
                if stop_event.is_set():
                    return 0
                self._channel = self.volume.apply(sound.play())
            return sound.get_length()

        self._task = RepeatingTask(play_once, name="alarm-loop")
        self._task.start()

    def stop(self):
        with self._lock:
            if self._task is not None:
                self._task.stop()
            if self._channel is not None:
                self._channel.stop()
                self._channel = None

    @property
    def is_playing(self) -> bool:
        return self._task is not None and self._task.is_running

    def close(self):
        self.stop()
        self._sounds.clear()
        if pygame.mixer.get_init():
            pygame.mixer.quit()


def log_pulse(pattern):
    logger.debug("haptic pulse: %s", pattern)


class HapticPulser:
    """
    Issues `pulse(pattern)` every interval until stopped.

    `pulse` is the vibration driver hook; the default only logs.
    """

    def __init__(self, pulse=log_pulse, interval=HAPTIC_INTERVAL_SECONDS):
        self.pulse = pulse
        self.interval = interval
        self._task = None
        self._lock = threading.Lock()

    def start_loop(self, pattern):
        if self._task is not None and self._task.is_running:
            return

        def pulse_once(stop_event):
            with self._lock:
                if stop_event.is_set():
                    return 0
                self.pulse(pattern)
            return self.interval

        self._task = RepeatingTask(pulse_once, name="haptic-loop")
        self._task.start()

    def stop(self):
        with self._lock:
            if self._task is not None:
                self._task.stop()

    @property
    def is_running(self) -> bool:
        return self._task is not None and self._task.is_running


class OverlayState:
    """Alerting flag shared between the engine and the visualizer."""

    def __init__(self):
        self._alerting = threading.Event()

    def set_alerting(self, alerting: bool):
        if alerting:
            self._alerting.set()
        else:
            self._alerting.clear()

    @property
    def is_alerting(self) -> bool:
        return self._alerting.is_set()
