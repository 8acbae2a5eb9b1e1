from __future__ import annotations

import logging
import math
from functools import lru_cache
from typing import Optional

import cv2
import numpy as np

from .camera import Camera

logger = logging.getLogger(__name__)

IDLE_DOWNSAMPLE = 4
IDLE_TIME_STEP = 0.02
IDLE_SPATIAL_FREQ = 0.02


@lru_cache(maxsize=4)
def _idle_grid(width: int, height: int) -> tuple[np.ndarray, np.ndarray]:
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float32)
    return xs * IDLE_SPATIAL_FREQ, ys * IDLE_SPATIAL_FREQ


def idle_pattern(width: int, height: int, t: float, rng: np.random.Generator) -> np.ndarray:
    """Drifting two-wave noise with grain, rendered small and upsampled bilinearly."""
    w = math.ceil(width / IDLE_DOWNSAMPLE)
    h = math.ceil(height / IDLE_DOWNSAMPLE)
    nx, ny = _idle_grid(w, h)

    wave1 = np.sin(nx + t) * np.cos(ny + t * 0.7)
    wave2 = np.sin(nx * 2.5 - t * 1.3) * np.cos(ny * 2.5 + t * 0.5)
    grain = (rng.random((h, w), dtype=np.float32) - 0.5) * 0.3
    combined = (wave1 * 0.6 + wave2 * 0.3 + grain * 0.1) * 0.5 + 0.5

    value = np.floor(combined * 35 + 8)
    small = np.empty((h, w, 4), dtype=np.uint8)
    small[:, :, 0] = value
    small[:, :, 1] = value
    small[:, :, 2] = np.clip(value + np.floor(combined * 15), 0, 255)  # blue tint
    small[:, :, 3] = 255
    return cv2.resize(small, (width, height), interpolation=cv2.INTER_LINEAR)


def copy_frame(buffer: np.ndarray, frame_bgr: np.ndarray, mirrored: bool) -> np.ndarray:
    """Copy a BGR camera frame into the RGBA buffer, scaling and mirroring as needed.

    Returns the RGB frame as shown, for the landmark detector.
    """
    height, width = buffer.shape[:2]
    rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
    if mirrored:
        rgb = cv2.flip(rgb, 1)
    if rgb.shape[:2] != (height, width):
        rgb = cv2.resize(rgb, (width, height), interpolation=cv2.INTER_LINEAR)
    buffer[:, :, :3] = rgb
    buffer[:, :, 3] = 255
    return rgb


class FrameSource:
    def __init__(self, rng: Optional[np.random.Generator] = None) -> None:
        self.camera: Optional[Camera] = None
        self.noise_time = 0.0
        self.last_frame: Optional[np.ndarray] = None
        self._rng = rng if rng is not None else np.random.default_rng()

    @property
    def live(self) -> bool:
        return self.camera is not None and self.camera.is_open

    def attach(self, camera: Camera) -> None:
        self.camera = camera

    def detach(self) -> None:
        if self.camera is not None:
            self.camera.release()
        self.camera = None
        self.last_frame = None

    def fill(self, buffer: np.ndarray) -> bool:
        """Write the current frame into ``buffer``. Returns True for a live camera frame."""
        if self.live:
            ok, frame = self.camera.read()
            if ok and frame is not None:
                self.last_frame = copy_frame(buffer, frame, self.camera.mirrored)
                return True
            logger.warning("Camera stopped delivering frames, showing idle pattern")
            self.detach()

        self.noise_time += IDLE_TIME_STEP
        height, width = buffer.shape[:2]
        buffer[...] = idle_pattern(width, height, self.noise_time, self._rng)
        return False
