"""
Drowsy Guard - eye-closure drowsiness detection engine

This package contains:
- Observation types and the frame gate (single-flight analysis)
- Drowsiness state machine (debounced, night-sensitive)
- Alert coordinator and output devices (alarm, haptic, overlay, volume)
- MediaPipe eye observation source, camera and visualization helpers
- Supabase alert event logging
"""

from .alerter import AlertChannelState, AlertCoordinator
from .config import AlertSettings, DetectionConfig
from .engine import DrowsinessEngine
from .frame_gate import FrameGate
from .observation import NO_FACE, EyeObservation, NoFace, Transition
from .state_machine import DrowsinessStateMachine, EngineState, is_night, step

__version__ = "1.0.0"
