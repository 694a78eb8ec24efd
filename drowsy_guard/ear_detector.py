"""
EAR (Eye Aspect Ratio) Detection Module
Calculates EAR for a single eye and maps it to an eye-open probability
"""

import numpy as np

from .config import EAR_CLOSED_REFERENCE, EAR_OPEN_REFERENCE


def calculate_ear(eye_landmarks):
    """
    Calculate EAR for a single eye given 6 (x, y) points.

    Args:
        eye_landmarks: List of 6 (x, y) tuples representing eye landmarks

    Returns:
        EAR value (float) or None if invalid
    """
    if len(eye_landmarks) != 6:
        return None

    pts = np.array(eye_landmarks, dtype=np.float32)
    # vertical distances
    v1 = np.linalg.norm(pts[1] - pts[5])
    v2 = np.linalg.norm(pts[2] - pts[4])
    # horizontal distance
    h = np.linalg.norm(pts[0] - pts[3])

    if h == 0:
        return None

    return float((v1 + v2) / (2.0 * h))


def ear_to_open_probability(ear, closed_ref=EAR_CLOSED_REFERENCE, open_ref=EAR_OPEN_REFERENCE):
    """
    Linearly map an EAR value onto [0, 1].

    Args:
        ear: Eye Aspect Ratio, or None
        closed_ref: EAR at or below which the eye counts as fully closed
        open_ref: EAR at or above which the eye counts as fully open

    Returns:
        Eye-open probability (float) or None if ear is None
    """
    if ear is None:
        return None
    if open_ref <= closed_ref:
        raise ValueError("open_ref must be greater than closed_ref")
    return float(np.clip((ear - closed_ref) / (open_ref - closed_ref), 0.0, 1.0))


def eye_open_probabilities(left_eye, right_eye):
    """
    Eye-open probabilities for both eyes.

    Args:
        left_eye: List of 6 (x, y) tuples for left eye
        right_eye: List of 6 (x, y) tuples for right eye

    Returns:
        (left_probability, right_probability); an entry is None when that
        eye's landmarks are unusable
    """
    return (
        ear_to_open_probability(calculate_ear(left_eye)),
        ear_to_open_probability(calculate_ear(right_eye)),
    )
