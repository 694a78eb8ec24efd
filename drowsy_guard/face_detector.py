"""
Face Detection Module
MediaPipe Face Mesh detection producing per-frame eye observations
"""

from datetime import datetime

import cv2
import mediapipe as mp

from .ear_detector import eye_open_probabilities
from .observation import EyeObservation

mp_face_mesh = mp.solutions.face_mesh


class FaceDetector:
    """
    MediaPipe Face Mesh detector reporting eye-open probabilities for one face.
    """

    # MediaPipe Face Mesh landmark indices
    LEFT_EYE_INDICES = [33, 160, 158, 133, 153, 144]
    RIGHT_EYE_INDICES = [362, 385, 387, 263, 373, 380]

    def __init__(self, min_detection_confidence=0.5, min_tracking_confidence=0.5):
        self.face_mesh = mp_face_mesh.FaceMesh(
            static_image_mode=False,
            max_num_faces=1,
            refine_landmarks=True,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )

    def detect(self, frame):
        """
        Detect face landmarks from frame.

        Args:
            frame: BGR image frame

        Returns:
            MediaPipe face landmarks object or None if no face detected
        """
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        results = self.face_mesh.process(rgb)

        if not results.multi_face_landmarks:
            return None

        return results.multi_face_landmarks[0]

    def get_eye_landmarks(self, face_landmarks, frame_shape):
        """
        Extract eye landmark coordinates.

        Args:
            face_landmarks: MediaPipe face landmarks object
            frame_shape: Shape of frame (H, W, C)

        Returns:
            Tuple of (left_eye, right_eye) where each is a list of 6 (x, y) tuples
        """
        h, w = frame_shape[:2]

        def points(indices):
            return [
                (int(face_landmarks.landmark[idx].x * w), int(face_landmarks.landmark[idx].y * h))
                for idx in indices
            ]

        return points(self.LEFT_EYE_INDICES), points(self.RIGHT_EYE_INDICES)

    def observe(self, frame, captured_at=None):
        """
        Analyze one frame.

        Returns:
            EyeObservation, or None if no face was detected
        """
        face_landmarks = self.detect(frame)
        if face_landmarks is None:
            return None

        left_eye, right_eye = self.get_eye_landmarks(face_landmarks, frame.shape)
        left_prob, right_prob = eye_open_probabilities(left_eye, right_eye)
        return EyeObservation(
            left_open_probability=left_prob,
            right_open_probability=right_prob,
            captured_at=captured_at or datetime.now(),
        )

    def close(self):
        self.face_mesh.close()
