"""
Configuration file for drowsiness detection thresholds and settings
"""

from dataclasses import dataclass, field
from datetime import timedelta

# Eye-open probability thresholds
# Both eyes below threshold => frame counts as "closed" (strict <)
CLOSED_EYE_THRESHOLD = 0.5
NIGHT_MULTIPLIER = 1.2                # More sensitive at night: 0.5 * 1.2 = 0.6

# Night window (local wall-clock hours, inclusive, wraps midnight)
NIGHT_START_HOUR = 22
NIGHT_END_HOUR = 5

# Consecutive closed-eye frames before the drowsy alert fires
DROWSY_FRAME_THRESHOLD = 8

# Minimum time between two alert entries (debounce)
ALERT_RETRIGGER_SECONDS = 3

# Alert output settings
ALARM_ASSET = "alarm.wav"             # Replayed after each natural completion
DAY_ALERT_VOLUME = 0.7
NIGHT_ALERT_VOLUME = 1.0
DEFAULT_RESTORE_VOLUME = 0.5          # Used when the current volume cannot be read
VOLUME_SETTLE_SECONDS = 0.1           # Delay between volume change and first playback
HAPTIC_PATTERN = "heavy"
HAPTIC_INTERVAL_SECONDS = 0.1         # One pulse every 100ms

# Fallback alarm tone (when ALARM_ASSET is missing)
ALARM_TONE_HZ = 880
ALARM_TONE_SECONDS = 0.6

# EAR -> eye-open probability mapping
# Typical EAR(open) ~ 0.25–0.35, EAR(closed) < 0.15 (varies per camera/face).
EAR_CLOSED_REFERENCE = 0.10           # EAR at or below => probability 0.0
EAR_OPEN_REFERENCE = 0.30             # EAR at or above => probability 1.0

# Camera settings
CAMERA_INDEX = 0
FRAME_WIDTH = 640
FRAME_HEIGHT = 480
TARGET_FPS = 30

# Camera backend (mainly for Windows reliability)
# Options: "AUTO", "DSHOW", "MSMF"
CAMERA_BACKEND = "AUTO"

# How many camera indices to try if CAMERA_INDEX fails (0..N-1)
CAMERA_SCAN_COUNT = 4

WINDOW_TITLE = "Drowsy Guard"

# Supabase Cloud Integration Configuration
# Set these via environment variables: SUPABASE_URL and SUPABASE_KEY
# Or pass them when initializing SupabaseLogger
SUPABASE_ENABLED = True  # Set to False to disable cloud logging


@dataclass(frozen=True)
class DetectionConfig:
    """Tunable parameters of the drowsiness state machine."""

    closed_eye_threshold: float = CLOSED_EYE_THRESHOLD
    night_multiplier: float = NIGHT_MULTIPLIER
    night_start_hour: int = NIGHT_START_HOUR
    night_end_hour: int = NIGHT_END_HOUR
    drowsy_frame_threshold: int = DROWSY_FRAME_THRESHOLD
    alert_retrigger_interval: timedelta = field(
        default_factory=lambda: timedelta(seconds=ALERT_RETRIGGER_SECONDS)
    )

    def __post_init__(self):
        if not 0.0 <= self.closed_eye_threshold <= 1.0:
            raise ValueError(
                f"closed_eye_threshold must be in [0, 1], got {self.closed_eye_threshold}"
            )
        if self.night_multiplier <= 0:
            raise ValueError(f"night_multiplier must be positive, got {self.night_multiplier}")
        for name in ("night_start_hour", "night_end_hour"):
            hour = getattr(self, name)
            if not 0 <= hour <= 23:
                raise ValueError(f"{name} must be in 0..23, got {hour}")
        if self.drowsy_frame_threshold < 1:
            raise ValueError(
                f"drowsy_frame_threshold must be >= 1, got {self.drowsy_frame_threshold}"
            )
        if self.alert_retrigger_interval < timedelta(0):
            raise ValueError("alert_retrigger_interval must not be negative")


@dataclass(frozen=True)
class AlertSettings:
    """Output levels and timings used by the alert coordinator."""

    asset_id: str = ALARM_ASSET
    haptic_pattern: str = HAPTIC_PATTERN
    day_volume: float = DAY_ALERT_VOLUME
    night_volume: float = NIGHT_ALERT_VOLUME
    default_restore_volume: float = DEFAULT_RESTORE_VOLUME
    settle_seconds: float = VOLUME_SETTLE_SECONDS
