"""
Drowsiness State Machine Module
Turns consecutive closed-eye observations into alert transitions

The transition logic is a pure function over an immutable EngineState so
it can be driven with fixed timestamps; DrowsinessStateMachine holds the
current state between frames.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional, Tuple, Union

from .config import DetectionConfig
from .observation import EyeObservation, NoFace, Transition


@dataclass(frozen=True)
class EngineState:
    """State carried from one frame to the next."""
    closed_eye_run: int = 0
    last_alert_at: Optional[datetime] = None
    is_alerting: bool = False


def is_night(now: datetime, config: DetectionConfig) -> bool:
    """
    Check whether the local hour of `now` falls inside the night window.

    Endpoints are inclusive. A window whose start is after its end wraps
    midnight (22..5 covers 22:00 through 05:59).
    """
    start, end = config.night_start_hour, config.night_end_hour
    if start > end:
        return now.hour >= start or now.hour <= end
    return start <= now.hour <= end


def effective_threshold(now: datetime, config: DetectionConfig) -> float:
    """Closed-eye threshold for `now`, raised during the night window."""
    if is_night(now, config):
        return config.closed_eye_threshold * config.night_multiplier
    return config.closed_eye_threshold


def _eyes_open(state: EngineState) -> Tuple[EngineState, Transition]:
    # last_alert_at is kept so the retrigger debounce spans episodes
    if state.is_alerting:
        return replace(state, closed_eye_run=0, is_alerting=False), Transition.EXITED_ALERT
    return replace(state, closed_eye_run=0), Transition.NO_CHANGE


def step(
    state: EngineState,
    observation: Union[EyeObservation, NoFace],
    now: datetime,
    config: DetectionConfig,
) -> Tuple[EngineState, Transition]:
    """
    Compute the next state and the transition for one observation.

    Args:
        state: State before this frame
        observation: EyeObservation or NO_FACE
        now: Instant used for both the night window and the retrigger check
        config: Detection parameters

    Returns:
        (new_state, transition)
    """
    if isinstance(observation, NoFace) or not observation.is_complete:
        return _eyes_open(state)

    threshold = effective_threshold(now, config)
    if not (observation.left_open_probability < threshold
            and observation.right_open_probability < threshold):
        return _eyes_open(state)

    state = replace(state, closed_eye_run=state.closed_eye_run + 1)

    if state.is_alerting:
        return state, Transition.REAFFIRMED

    if state.closed_eye_run >= config.drowsy_frame_threshold:
        if (state.last_alert_at is None
                or now - state.last_alert_at >= config.alert_retrigger_interval):
            return replace(state, last_alert_at=now, is_alerting=True), Transition.ENTERED_ALERT

    return state, Transition.NO_CHANGE


class DrowsinessStateMachine:
    """
    Holds the EngineState between frames.

    Not thread-safe on its own; callers serialize access (see FrameGate).
    """

    def __init__(self, config: Optional[DetectionConfig] = None):
        self.config = config or DetectionConfig()
        self.state = EngineState()

    def on_observation(self, observation, now: datetime) -> Transition:
        self.state, transition = step(self.state, observation, now, self.config)
        return transition

    def is_night(self, now: datetime) -> bool:
        return is_night(now, self.config)

    @property
    def closed_eye_run(self) -> int:
        return self.state.closed_eye_run

    @property
    def is_alerting(self) -> bool:
        return self.state.is_alerting

    def reset(self):
        """Return to the initial state (used on shutdown)."""
        self.state = EngineState()
