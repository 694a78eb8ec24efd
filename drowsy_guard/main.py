"""
Main Entry Point for Drowsy Guard

Camera frames are analyzed by MediaPipe, turned into eye observations and
fed to the drowsiness engine, which drives the alarm, haptic pulses,
overlay badge and output volume.

Run with: python -m drowsy_guard.main
"""

import logging
import time
from datetime import datetime

import cv2

from .alerter import AlertCoordinator
from .camera_utils import open_camera
from .config import WINDOW_TITLE
from .devices import AlarmPlayer, HapticPulser, MixerVolume, OverlayState
from .engine import DrowsinessEngine
from .face_detector import FaceDetector
from .supabase_logger import SupabaseLogger
from .visualizer import draw_overlay

logger = logging.getLogger(__name__)


def build_engine(overlay, event_logger=None):
    """Wire the engine to the desktop output devices."""
    volume = MixerVolume()
    coordinator = AlertCoordinator(
        audio=AlarmPlayer(volume=volume),
        haptic=HapticPulser(),
        volume=volume,
        overlay=overlay,
    )
    return DrowsinessEngine(coordinator, event_logger=event_logger)


def main():
    """Main detection loop."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    logger.info("Starting Drowsy Guard...")

    cap = open_camera()
    face_detector = FaceDetector()
    overlay = OverlayState()
    cloud = SupabaseLogger()
    cloud.start_session()
    engine = build_engine(overlay, event_logger=cloud)

    consecutive_failures = 0

    try:
        while True:
            ret, frame = cap.read()

            if not ret or frame is None or frame.size == 0:
                consecutive_failures += 1

                # Few transient failures: silently retry (common camera glitches)
                if consecutive_failures <= 5:
                    time.sleep(0.01)
                    continue
                if consecutive_failures <= 20:
                    logger.warning("Camera glitch detected (%d failures), retrying...",
                                   consecutive_failures)
                    time.sleep(0.05)
                    continue

                logger.error("Camera appears stuck, attempting to re-open...")
                cap.release()
                time.sleep(0.5)
                cap = open_camera()
                consecutive_failures = 0
                continue

            consecutive_failures = 0
            now = datetime.now()

            observation = face_detector.observe(frame, captured_at=now)
            if observation is None:
                engine.feed_no_face()
            else:
                engine.feed(observation)

            draw_overlay(
                frame,
                overlay.is_alerting,
                observation,
                closed_eye_run=engine.state_machine.closed_eye_run,
                night=engine.state_machine.is_night(now),
            )
            cv2.imshow(WINDOW_TITLE, frame)

            if cv2.waitKey(1) & 0xFF == ord('q'):
                break

    finally:
        engine.shutdown()
        face_detector.close()
        cap.release()
        cv2.destroyAllWindows()
        logger.info("Shutdown complete.")


if __name__ == "__main__":
    main()
