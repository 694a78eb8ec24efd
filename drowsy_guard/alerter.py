"""
Alert Coordinator Module
Translates state-machine transitions into audio, haptic, visual and
volume commands

Entry: overlay on -> save volume -> raise volume -> settle -> audio -> haptic
Exit:  overlay off -> haptic stop -> audio stop -> restore volume

Every device call is isolated: a failing channel is logged and the
remaining channels are still driven.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional

from .config import AlertSettings
from .observation import Transition

logger = logging.getLogger(__name__)


@dataclass
class AlertChannelState:
    """Which outputs are currently running, and the volume to restore."""
    audio_active: bool = False
    haptic_active: bool = False
    saved_system_volume: Optional[float] = None


class AlertCoordinator:
    """
    Drives the alert outputs for one drowsiness engine.

    Calls must be serialized by the caller; the coordinator does not guard
    against overlapping transitions.
    """

    def __init__(self, audio, haptic, volume, overlay, settings=None, sleep=time.sleep):
        """
        Initialize alert coordinator.

        Args:
            audio: Sink with start_loop(asset_id) / stop()
            haptic: Sink with start_loop(pattern) / stop()
            volume: Sink with get() -> float / set(level)
            overlay: Sink with set_alerting(flag)
            settings: AlertSettings (defaults from config)
            sleep: Used for the volume settle delay
        """
        self.audio = audio
        self.haptic = haptic
        self.volume = volume
        self.overlay = overlay
        self.settings = settings or AlertSettings()
        self.channels = AlertChannelState()
        self._sleep = sleep
        self._closed = False

    def _safely(self, action, fn, *args):
        """Run one device call; log and swallow its failure."""
        try:
            return True, fn(*args)
        except Exception as e:
            logger.warning("Alert device error during %s: %s", action, e)
            return False, None

    def on_transition(self, transition: Transition, is_night: bool):
        """
        Apply the device commands for a transition.

        Args:
            transition: Output of DrowsinessStateMachine.on_observation
            is_night: Whether the transition happened inside the night window
        """
        if transition is Transition.ENTERED_ALERT:
            self._enter_alert(is_night)
        elif transition is Transition.EXITED_ALERT:
            self._exit_alert()

    def _enter_alert(self, is_night: bool):
        logger.info("[ALERT] Drowsiness detected (%s)", "night" if is_night else "day")
        self._safely("overlay on", self.overlay.set_alerting, True)

        if self.channels.saved_system_volume is None:
            ok, current = self._safely("volume read", self.volume.get)
            if not ok or current is None:
                current = self.settings.default_restore_volume
            self.channels.saved_system_volume = current

            level = self.settings.night_volume if is_night else self.settings.day_volume
            self._safely("volume set", self.volume.set, level)
            if self.settings.settle_seconds > 0:
                self._sleep(self.settings.settle_seconds)

        if not self.channels.audio_active:
            ok, _ = self._safely("audio start", self.audio.start_loop, self.settings.asset_id)
            self.channels.audio_active = ok

        if not self.channels.haptic_active:
            ok, _ = self._safely("haptic start", self.haptic.start_loop, self.settings.haptic_pattern)
            self.channels.haptic_active = ok

    def _exit_alert(self):
        logger.info("[ALERT RESET] Eyes open again - alert cleared")
        self._safely("overlay off", self.overlay.set_alerting, False)

        if self.channels.haptic_active:
            self._safely("haptic stop", self.haptic.stop)
            self.channels.haptic_active = False
        if self.channels.audio_active:
            self._safely("audio stop", self.audio.stop)
            self.channels.audio_active = False

        self._restore_volume()

    def _restore_volume(self):
        saved = self.channels.saved_system_volume
        if saved is None:
            return
        self.channels.saved_system_volume = None
        self._safely("volume restore", self.volume.set, saved)

    @property
    def is_active(self) -> bool:
        return (
            self.channels.audio_active
            or self.channels.haptic_active
            or self.channels.saved_system_volume is not None
        )

    def shutdown(self):
        """
        Stop every channel and restore the volume, whatever the current state.

        Safe to call repeatedly and without any prior alert.
        """
        self._safely("haptic stop", self.haptic.stop)
        self._safely("audio stop", self.audio.stop)
        self.channels.haptic_active = False
        self.channels.audio_active = False
        self._restore_volume()
        self._safely("overlay off", self.overlay.set_alerting, False)

        if self._closed:
            return
        self._closed = True
        for sink in (self.haptic, self.audio, self.volume, self.overlay):
            close = getattr(sink, "close", None)
            if callable(close):
                self._safely("release", close)
