import numpy as np
import mediapipe as mp
from .exceptions import DetectorUnavailableError
from .signals import FaceLandmarks


class FaceMeshDetector:
    def __init__(self, max_faces=1, det_conf=0.5, track_conf=0.5):
        try:
            self.face_mesh = mp.solutions.face_mesh.FaceMesh(
                static_image_mode=False,
                max_num_faces=max_faces,
                min_detection_confidence=det_conf,
                min_tracking_confidence=track_conf,
                refine_landmarks=True,
            )
        except Exception as exc:
            raise DetectorUnavailableError(f"MediaPipe face mesh unavailable: {exc}") from exc

    def process(self, frame_rgb: np.ndarray) -> FaceLandmarks | None:
        if frame_rgb.shape[2] == 4:
            frame_rgb = np.ascontiguousarray(frame_rgb[:, :, :3])
        results = self.face_mesh.process(frame_rgb)

        if not results.multi_face_landmarks:
            return None

        face_landmarks = results.multi_face_landmarks[0]
        points = [(lm.x, lm.y) for lm in face_landmarks.landmark]
        frame_height, frame_width = frame_rgb.shape[:2]

        return FaceLandmarks(
            points=points,
            frame_width=frame_width,
            frame_height=frame_height,
        )

    def close(self) -> None:
        self.face_mesh.close()
