"""
Drowsy Guard -- Output Device Tests
===================================
Repeating loops stop on signal. Most tests mock pygame; the volume tests
run a real mixer on the SDL dummy audio driver.
"""

import threading
import time
from unittest.mock import MagicMock, patch

import pygame
import pytest

from drowsy_guard.devices import (
    AlarmPlayer,
    HapticPulser,
    MixerVolume,
    OverlayState,
    RepeatingTask,
    make_tone,
)


# ── Helpers ───────────────────────────────────────────────────

def _wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return False


# ── RepeatingTask ─────────────────────────────────────────────

def test_repeating_task_runs_until_stopped():
    calls = []
    task = RepeatingTask(lambda stop: calls.append(1) or 0.005)
    assert task.start()
    assert _wait_for(lambda: len(calls) >= 3)

    task.stop()
    task.join(2)
    count = len(calls)
    time.sleep(0.05)
    assert len(calls) == count
    assert not task.is_running


def test_repeating_task_start_is_idempotent():
    task = RepeatingTask(lambda stop: 0.01)
    assert task.start()
    assert task.start() is False
    task.stop()
    task.join(2)


def test_repeating_task_stop_interrupts_wait():
    task = RepeatingTask(lambda stop: 60)
    task.start()
    task.stop()
    task.join(2)
    assert not task.is_running


def test_repeating_task_exits_on_error():
    def boom(stop):
        raise RuntimeError("pulse failed")

    task = RepeatingTask(boom)
    task.start()
    task.join(2)
    assert not task.is_running


# ── Haptic ────────────────────────────────────────────────────

def test_haptic_pulser_pulses_pattern():
    pulses = []
    haptic = HapticPulser(pulse=pulses.append, interval=0.005)
    haptic.start_loop("heavy")
    haptic.start_loop("heavy")
    assert _wait_for(lambda: len(pulses) >= 3)
    haptic.stop()
    assert set(pulses) == {"heavy"}
    assert _wait_for(lambda: not haptic.is_running)


def test_haptic_no_pulse_after_stop():
    pulses = []
    gate = threading.Event()

    def pulse(pattern):
        pulses.append(pattern)
        gate.set()

    haptic = HapticPulser(pulse=pulse, interval=0.05)
    haptic.start_loop("heavy")
    assert gate.wait(2)
    haptic.stop()
    count = len(pulses)
    time.sleep(0.15)
    assert len(pulses) == count


# ── Overlay ───────────────────────────────────────────────────

def test_overlay_flag():
    overlay = OverlayState()
    assert not overlay.is_alerting
    overlay.set_alerting(True)
    assert overlay.is_alerting
    overlay.set_alerting(False)
    assert not overlay.is_alerting


# ── pygame-backed devices ─────────────────────────────────────

def test_make_tone_length():
    pcm = make_tone(880, 0.1, sample_rate=1000)
    assert len(pcm) == 100 * 2


@patch("drowsy_guard.devices.pygame")
def test_alarm_player_replays_until_stopped(mock_pygame, tmp_path):
    sound = MagicMock()
    sound.get_length.return_value = 0.005
    mock_pygame.mixer.Sound.return_value = sound

    player = AlarmPlayer(asset_dir=str(tmp_path))
    player.start_loop("alarm.wav")
    assert _wait_for(lambda: sound.play.call_count >= 2)

    # Missing asset falls back to a generated tone
    assert "buffer" in mock_pygame.mixer.Sound.call_args.kwargs

    player.stop()
    assert _wait_for(lambda: not player.is_playing)
    count = sound.play.call_count
    time.sleep(0.05)
    assert sound.play.call_count == count


@patch("drowsy_guard.devices.pygame")
def test_alarm_player_loads_existing_asset(mock_pygame, tmp_path):
    (tmp_path / "alarm.wav").write_bytes(b"RIFF")
    mock_pygame.mixer.Sound.return_value.get_length.return_value = 1.0

    player = AlarmPlayer(asset_dir=str(tmp_path))
    player.start_loop("alarm.wav")
    player.stop()

    mock_pygame.mixer.Sound.assert_called_once_with(str(tmp_path / "alarm.wav"))


def test_alarm_stop_during_playback_silences_channel():
    channel = MagicMock()
    sound = MagicMock()
    sound.get_length.return_value = 0.005
    player = None
    stoppers = []

    def play():
        if not stoppers:
            stopper = threading.Thread(target=player.stop)
            stopper.start()
            stoppers.append(stopper)
            stopper.join(0.05)
        return channel

    sound.play.side_effect = play
    with patch("drowsy_guard.devices.pygame") as mock_pygame:
        mock_pygame.mixer.Sound.return_value = sound
        player = AlarmPlayer()
        player.start_loop("alarm.wav")
        assert _wait_for(lambda: stoppers)
        stoppers[0].join(2)

        # stop() waited for the play in progress, then silenced its channel
        channel.stop.assert_called_once()
        assert player._channel is None
        time.sleep(0.05)
        assert sound.play.call_count == 1


def test_haptic_stop_during_pulse_ends_loop():
    pulses = []
    stoppers = []
    haptic = HapticPulser(pulse=lambda p: None, interval=0.005)

    def pulse(pattern):
        pulses.append(pattern)
        if not stoppers:
            stopper = threading.Thread(target=haptic.stop)
            stopper.start()
            stoppers.append(stopper)
            stopper.join(0.05)

    haptic.pulse = pulse
    haptic.start_loop("heavy")
    assert _wait_for(lambda: stoppers)
    stoppers[0].join(2)
    time.sleep(0.05)
    assert pulses == ["heavy"]
    assert not haptic.is_running


# ── Volume ────────────────────────────────────────────────────

def test_mixer_volume_stores_clamped_level():
    volume = MixerVolume()
    assert volume.get() == 1.0
    volume.set(1.7)
    assert volume.get() == 1.0
    volume.set(-0.2)
    assert volume.get() == 0.0
    volume.set(0.4)
    assert volume.get() == 0.4


@patch("drowsy_guard.devices.pygame")
def test_mixer_volume_updates_only_busy_channels(mock_pygame):
    idle, busy = MagicMock(), MagicMock()
    idle.get_busy.return_value = False
    busy.get_busy.return_value = True
    mock_pygame.mixer.get_init.return_value = True
    mock_pygame.mixer.get_num_channels.return_value = 2
    mock_pygame.mixer.Channel.side_effect = [idle, busy]

    MixerVolume().set(0.3)

    idle.set_volume.assert_not_called()
    busy.set_volume.assert_called_once_with(0.3)


@patch("drowsy_guard.devices.pygame")
def test_mixer_volume_set_before_mixer_init(mock_pygame):
    mock_pygame.mixer.get_init.return_value = None
    volume = MixerVolume()
    volume.set(0.6)
    assert volume.get() == 0.6
    mock_pygame.mixer.Channel.assert_not_called()


@pytest.fixture
def dummy_mixer(monkeypatch):
    monkeypatch.setenv("SDL_AUDIODRIVER", "dummy")
    if pygame.mixer.get_init():
        pygame.mixer.quit()
    try:
        pygame.mixer.init(frequency=22050, size=-16, channels=1, buffer=512)
    except pygame.error as e:
        pytest.skip(f"no SDL audio driver available: {e}")
    yield
    if pygame.mixer.get_init():
        pygame.mixer.quit()


def test_alarm_plays_at_stored_level_on_real_mixer(dummy_mixer, tmp_path):
    volume = MixerVolume()
    volume.set(0.7)
    player = AlarmPlayer(asset_dir=str(tmp_path), volume=volume)
    player.start_loop("alarm.wav")
    try:
        assert _wait_for(lambda: player._channel is not None)
        channel = player._channel
        assert channel.get_volume() == pytest.approx(0.7, abs=0.01)
        assert volume.get() == pytest.approx(0.7)
    finally:
        player.stop()
    player.close()
    assert not pygame.mixer.get_init()
