"""
Visualization Module
Draws the drowsiness status badge and eye metrics on the video frame
"""

import cv2

ALERT_COLOR = (0, 0, 230)       # Red (BGR)
MONITOR_COLOR = (230, 120, 0)   # Blue (BGR)


def format_probability(p):
    return "--" if p is None else f"{p:.2f}"


def status_text(alerting):
    return "Drowsiness detected!" if alerting else "Monitoring..."


def draw_overlay(frame, alerting, observation=None, closed_eye_run=0, night=False):
    """
    Draw the status badge and eye metrics on the frame.

    Args:
        frame: BGR image frame
        alerting: Whether the drowsiness alert is active
        observation: Latest EyeObservation, or None when no face was found
        closed_eye_run: Current consecutive closed-eye frame count
        night: Whether the night sensitivity is in effect
    """
    text = status_text(alerting)
    color = ALERT_COLOR if alerting else MONITOR_COLOR

    # Badge background
    (tw, th), _ = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, 0.7, 2)
    x, y = 20, 40
    cv2.rectangle(frame, (x - 10, y - th - 12), (x + tw + 10, y + 12), color, -1)
    cv2.putText(frame, text, (x, y), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255, 255, 255), 2)

    if observation is None:
        cv2.putText(frame, "No face", (10, 90), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 0, 255), 2)
    else:
        left = observation.left_open_probability
        right = observation.right_open_probability
        cv2.putText(
            frame,
            f"Eyes open L: {format_probability(left)}  R: {format_probability(right)}",
            (10, 90),
            cv2.FONT_HERSHEY_SIMPLEX,
            0.6,
            (0, 0, 0),
            2,
        )

    cv2.putText(
        frame,
        f"Closed frames: {closed_eye_run}" + ("  (night mode)" if night else ""),
        (10, 115),
        cv2.FONT_HERSHEY_SIMPLEX,
        0.5,
        (0, 0, 0),
        1,
    )
    return frame
