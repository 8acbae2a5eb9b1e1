"""Bridges the blocking face landmark detector into the frame loop.

Requests run on a single background worker. Results are only applied to the
accent colour when the loop thread calls :meth:`LandmarkFeed.poll`, so the
accent keeps one writer per frame turn.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from enum import Enum
from typing import Callable, Optional, Protocol

import numpy as np

from .accent import AccentColor
from .exceptions import DetectorUnavailableError
from .signals import BlinkDetector, FaceLandmarks, TiltTracker, to_pixel_frame

logger = logging.getLogger(__name__)


class Detector(Protocol):
    def process(self, frame_rgb: np.ndarray) -> Optional[FaceLandmarks]: ...

    def close(self) -> None: ...


class FeedState(Enum):
    IDLE = "idle"
    AWAITING = "awaiting"
    ACTIVE = "active"


class LandmarkFeed:
    def __init__(
        self,
        accent: AccentColor,
        detector_factory: Callable[[], Detector],
        blink: Optional[BlinkDetector] = None,
        tilt: Optional[TiltTracker] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        self.accent = accent
        self.blink = blink or BlinkDetector()
        self.tilt = tilt or TiltTracker()
        self.tilt_enabled = False
        self.blink_enabled = False
        self.state = FeedState.IDLE
        self.available = True
        self.requests = 0
        self.suppressed = 0

        self._detector_factory = detector_factory
        self._detector: Optional[Detector] = None
        self._executor = executor
        self._owns_executor = executor is None
        self._pending: Optional[Future] = None
        self._pending_meta: tuple[int, float] = (0, 0.0)
        self._generation = 0

    @property
    def enabled(self) -> bool:
        return self.tilt_enabled or self.blink_enabled

    @property
    def in_flight(self) -> bool:
        return self._pending is not None

    def set_features(self, tilt: bool, blink: bool) -> None:
        was_enabled = self.enabled
        self.tilt_enabled, self.blink_enabled = tilt, blink

        if self.enabled and not was_enabled:
            if not self._ensure_detector():
                self.tilt_enabled = self.blink_enabled = False
                return
            self._generation += 1
            self.tilt.reset()
            self.state = FeedState.AWAITING
            logger.info("Landmark feed enabled (tilt=%s, blink=%s)", tilt, blink)
        elif was_enabled and not self.enabled:
            # in-flight request completes but its result is dropped
            self._generation += 1
            self.state = FeedState.IDLE
            logger.info("Landmark feed disabled")

    def _ensure_detector(self) -> bool:
        if self._detector is not None:
            return True
        if not self.available:
            logger.warning("Face landmark detector unavailable, face controls stay off")
            return False
        try:
            self._detector = self._detector_factory()
        except DetectorUnavailableError as exc:
            self.available = False
            logger.warning("Face landmark detector unavailable, face controls disabled: %s", exc)
            return False
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="landmarks")
        return True

    def dispatch(self, frame_rgb: np.ndarray, timestamp: float) -> bool:
        """Submit one detection request unless one is already in flight."""
        self.poll()
        if not self.enabled or self._detector is None:
            return False
        if self._pending is not None:
            self.suppressed += 1
            return False

        self.requests += 1
        self._pending_meta = (self._generation, timestamp)
        self._pending = self._executor.submit(self._detect, frame_rgb.copy())
        return True

    def _detect(self, frame_rgb: np.ndarray) -> Optional[FaceLandmarks]:
        try:
            return self._detector.process(frame_rgb)
        except Exception:
            logger.warning("Face landmark detection failed", exc_info=True)
            return None

    def poll(self) -> bool:
        """Apply a finished request, if any. Returns True when one was consumed."""
        if self._pending is None or not self._pending.done():
            return False
        future, self._pending = self._pending, None
        generation, timestamp = self._pending_meta
        if future.cancelled() or generation != self._generation or not self.enabled:
            return True
        self.on_landmarks(future.result(), timestamp)
        return True

    def on_landmarks(self, face: Optional[FaceLandmarks], timestamp: float) -> None:
        if self.state is FeedState.AWAITING:
            self.state = FeedState.ACTIVE
        if face is None:
            return

        lm = to_pixel_frame(face.points, face.frame_width, face.frame_height, timestamp)
        if self.tilt_enabled:
            hue = self.tilt.update(lm)
            if hue is not None:
                self.accent.set_hue(hue)
        if self.blink_enabled and self.blink.update(lm):
            self.accent.invert()
            logger.debug("Blink detected, accent inverted to %s", self.accent.hex)

    def close(self) -> None:
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=True, cancel_futures=True)
        if self._detector is not None:
            self._detector.close()
            self._detector = None
