"""
Drowsiness Engine Module
Observation source -> frame gate -> state machine -> alert coordinator
"""

import logging
from datetime import datetime

from .frame_gate import FrameGate
from .observation import NO_FACE, Transition
from .state_machine import DrowsinessStateMachine

logger = logging.getLogger(__name__)


class DrowsinessEngine:
    """
    Inbound entry point for eye-state observations.

    feed() and feed_no_face() may be called from any thread; frames that
    arrive while another one is being analyzed are dropped.
    """

    def __init__(self, coordinator, config=None, clock=datetime.now, event_logger=None):
        """
        Initialize drowsiness engine.

        Args:
            coordinator: AlertCoordinator driving the outputs
            config: DetectionConfig (defaults from config.py)
            clock: Returns the local datetime used for each analyzed frame
            event_logger: Optional SupabaseLogger for alert events
        """
        self.state_machine = DrowsinessStateMachine(config)
        self.coordinator = coordinator
        self.event_logger = event_logger
        self._clock = clock
        self._gate = FrameGate(self._analyze)
        self.alert_count = 0

    @property
    def config(self):
        return self.state_machine.config

    @property
    def gate(self) -> FrameGate:
        return self._gate

    def feed(self, observation) -> bool:
        """Submit one frame's EyeObservation. Returns False if dropped."""
        return self._gate.submit(observation)

    def feed_no_face(self) -> bool:
        """Submit a frame in which no face was detected."""
        return self._gate.submit(NO_FACE)

    def _analyze(self, observation):
        now = self._clock()
        transition = self.state_machine.on_observation(observation, now)
        if transition in (Transition.NO_CHANGE, Transition.REAFFIRMED):
            return

        night = self.state_machine.is_night(now)
        if transition is Transition.ENTERED_ALERT:
            self.alert_count += 1
        self.coordinator.on_transition(transition, night)

        if self.event_logger is not None:
            self.event_logger.log_alert(
                transition,
                is_night=night,
                closed_eye_run=self.state_machine.closed_eye_run,
            )

    @property
    def is_alerting(self) -> bool:
        return self.state_machine.is_alerting

    def shutdown(self):
        """
        Stop analysis, silence every alert channel and restore the volume.

        Waits for the frame in flight, so a transition it produces is
        applied before the outputs are shut down.
        """
        self._gate.close()
        self.state_machine.reset()
        self.coordinator.shutdown()
        if self.event_logger is not None:
            self.event_logger.end_session(alert_count=self.alert_count)
        logger.info(
            "Engine shut down (%d frames analyzed, %d dropped, %d alerts)",
            self._gate.admitted, self._gate.dropped, self.alert_count,
        )
