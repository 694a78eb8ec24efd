"""
Observation Types Module
Per-frame eye-state inputs and the transitions produced from them
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class EyeObservation:
    """
    Eye-open probabilities reported for one analyzed frame.

    A probability is None when the detector could not classify that eye.
    """
    left_open_probability: Optional[float]
    right_open_probability: Optional[float]
    captured_at: Optional[datetime] = None

    @property
    def is_complete(self) -> bool:
        return (
            self.left_open_probability is not None
            and self.right_open_probability is not None
        )


class NoFace:
    """Signal for a frame in which no face was detected."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "NO_FACE"


NO_FACE = NoFace()


class Transition(Enum):
    """Outcome of feeding one observation to the state machine."""
    NO_CHANGE = "no_change"
    ENTERED_ALERT = "entered_alert"
    EXITED_ALERT = "exited_alert"
    REAFFIRMED = "reaffirmed"
