# Turns face landmarks into control signals: blink edges and smoothed head tilt

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np


@dataclass
class FaceLandmarks:
    points: Sequence[Tuple[float, float]]  # normalized (x, y)
    frame_width: int
    frame_height: int


@dataclass
class LandmarkFrame:
    landmarks: np.ndarray  # Shape: (N, 2), pixel coordinates
    timestamp: float
    frame_id: int = 0


def to_pixel_frame(
    points: Sequence[Tuple[float, float]],
    frame_width: int,
    frame_height: int,
    timestamp: float,
    frame_id: int = 0,
) -> LandmarkFrame:
    """Scale normalized (x, y) landmarks to pixels so angles and ratios are isotropic."""
    landmarks_px = np.array(points, dtype=np.float32).reshape(-1, 2)
    landmarks_px[:, 0] *= frame_width
    landmarks_px[:, 1] *= frame_height
    return LandmarkFrame(landmarks=landmarks_px, timestamp=timestamp, frame_id=frame_id)


class BlinkDetector:
    # Fires once per closing edge of the Eye Aspect Ratio (EAR), then ignores edges for a cooldown

    # MediaPipe face mesh indices: corner, upper, upper, corner, lower, lower
    RIGHT_EYE = [33, 159, 158, 133, 153, 145]
    LEFT_EYE = [362, 385, 386, 263, 374, 380]

    def __init__(self, threshold: float = 0.25, cooldown_s: float = 0.4):
        self.threshold = threshold
        self.cooldown_s = cooldown_s

        self._prev_ear: Optional[float] = None
        self._cooldown_until: Optional[float] = None
        self._blink_count = 0
        self._last_ear: Optional[float] = None

    def _compute_ear(self, eye_landmarks: np.ndarray) -> float:
        vertical1 = np.linalg.norm(eye_landmarks[1] - eye_landmarks[5])
        vertical2 = np.linalg.norm(eye_landmarks[2] - eye_landmarks[4])
        horizontal = np.linalg.norm(eye_landmarks[0] - eye_landmarks[3])

        if horizontal < 1e-6:
            return 0.0

        return float((vertical1 + vertical2) / (2.0 * horizontal))

    def _extract_eye_landmarks(self, landmarks: np.ndarray, eye_indices: List[int]) -> Optional[np.ndarray]:
        if len(landmarks) <= max(eye_indices):
            return None
        return landmarks[eye_indices]

    def compute_average_ear(self, landmarks: np.ndarray) -> Optional[float]:
        left_eye = self._extract_eye_landmarks(landmarks, self.LEFT_EYE)
        right_eye = self._extract_eye_landmarks(landmarks, self.RIGHT_EYE)

        if left_eye is None or right_eye is None:
            return None

        return (self._compute_ear(left_eye) + self._compute_ear(right_eye)) / 2.0

    def in_cooldown(self, timestamp: float) -> bool:
        return self._cooldown_until is not None and timestamp < self._cooldown_until

    def update(self, lm: LandmarkFrame) -> bool:
        """Feed one landmark frame. Returns True when a blink should trigger."""
        current_ear = self.compute_average_ear(lm.landmarks)
        if current_ear is None:
            return False
        self._last_ear = current_ear

        closing = (
            self._prev_ear is not None
            and self._prev_ear >= self.threshold
            and current_ear < self.threshold
        )
        self._prev_ear = current_ear

        if not closing or self.in_cooldown(lm.timestamp):
            return False

        self._cooldown_until = lm.timestamp + self.cooldown_s
        self._blink_count += 1
        return True

    def metrics(self) -> dict:
        return {
            "blink_count": self._blink_count,
            "ear": self._last_ear if self._last_ear is not None else 0.0,
        }

    def reset(self) -> None:
        self._prev_ear = None
        self._cooldown_until = None
        self._blink_count = 0
        self._last_ear = None


def tilt_to_hue(angle_deg: float, max_tilt_deg: float = 60.0) -> float:
    """Map a tilt in [-max, +max] degrees linearly onto a 0-360 hue."""
    clamped = max(-max_tilt_deg, min(max_tilt_deg, angle_deg))
    return (clamped + max_tilt_deg) / (2.0 * max_tilt_deg) * 360.0


class TiltTracker:
    # Head roll from the outer eye corners, smoothed with an EMA

    EYE_CORNERS = (33, 263)

    def __init__(self, ema_alpha: float = 0.3, max_tilt_deg: float = 60.0):
        self.ema_alpha = ema_alpha
        self.max_tilt_deg = max_tilt_deg
        self._ema_angle: Optional[float] = None

    @property
    def angle(self) -> float:
        return self._ema_angle if self._ema_angle is not None else 0.0

    def compute_angle(self, landmarks: np.ndarray) -> Optional[float]:
        first, second = self.EYE_CORNERS
        if len(landmarks) <= max(first, second):
            return None
        dx, dy = landmarks[second] - landmarks[first]
        return math.degrees(math.atan2(float(dy), float(dx)))

    def _update_ema(self, new_value: float) -> None:
        if self._ema_angle is None:
            self._ema_angle = new_value
        else:
            self._ema_angle = self.ema_alpha * new_value + (1 - self.ema_alpha) * self._ema_angle

    def update(self, lm: LandmarkFrame) -> Optional[float]:
        """Feed one landmark frame. Returns the hue for the smoothed tilt."""
        angle = self.compute_angle(lm.landmarks)
        if angle is None:
            return None
        self._update_ema(angle)
        return tilt_to_hue(self.angle, self.max_tilt_deg)

    def reset(self) -> None:
        self._ema_angle = None
