"""
Camera Utilities Module
Opens a working capture device, probing backends and indices
"""

import logging
import time

import cv2

from .config import (
    CAMERA_INDEX,
    CAMERA_BACKEND,
    CAMERA_SCAN_COUNT,
    FRAME_WIDTH,
    FRAME_HEIGHT,
    TARGET_FPS
)

logger = logging.getLogger(__name__)


def backend_candidates(backend=CAMERA_BACKEND):
    """
    List the capture backends to try, in order.

    Returns:
        List of backend constants; None stands for OpenCV's default
    """
    backend = str(backend).upper()
    named = {"DSHOW": "CAP_DSHOW", "MSMF": "CAP_MSMF"}
    if backend in named and hasattr(cv2, named[backend]):
        return [getattr(cv2, named[backend])]

    candidates = [getattr(cv2, name) for name in named.values() if hasattr(cv2, name)]
    candidates.append(None)
    return candidates


def _warm_up(cap, attempts=10):
    for _ in range(attempts):
        ret, _frame = cap.read()
        if ret:
            return True
        time.sleep(0.05)
    return False


def open_camera(index=CAMERA_INDEX, backend=CAMERA_BACKEND, scan_count=CAMERA_SCAN_COUNT):
    """
    Open the first camera that delivers frames.

    Returns:
        cv2.VideoCapture object

    Raises:
        RuntimeError: If no camera can be opened
    """
    indices = [index] + [i for i in range(scan_count) if i != index]
    backends = backend_candidates(backend)

    last_error = None
    for api in backends:
        for idx in indices:
            try:
                cap = cv2.VideoCapture(idx, api) if api is not None else cv2.VideoCapture(idx)
                if not cap.isOpened():
                    cap.release()
                    continue

                cap.set(cv2.CAP_PROP_FRAME_WIDTH, FRAME_WIDTH)
                cap.set(cv2.CAP_PROP_FRAME_HEIGHT, FRAME_HEIGHT)
                cap.set(cv2.CAP_PROP_FPS, TARGET_FPS)

                if _warm_up(cap):
                    logger.info("Camera opened: index=%s, backend=%s", idx, api or "DEFAULT")
                    return cap
                cap.release()
            except cv2.error as e:
                last_error = e

    msg = (
        f"Could not read frames from any camera "
        f"(indices {indices}, backends {['DEFAULT' if b is None else b for b in backends]})"
    )
    if last_error:
        msg += f": {last_error}"
    raise RuntimeError(msg)
