'''Frame loop driver.

One call to FrameLoop.step per display refresh:
source -> tone -> effect -> landmark dispatch.

Frame-rate telemetry over a rolling one-second window.'''

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from .effects import apply_effect
from .frame_source import FrameSource
from .landmark_feed import LandmarkFeed
from .session import ViewerSession
from .tone import apply_tone

logger = logging.getLogger(__name__)


@dataclass
class FrameStats:
    fps: int = 0
    total_frames: int = 0
    window_frames: int = 0
    window_start: Optional[float] = None

    def tick(self, now: float) -> bool:
        """Count one frame. Returns True when the fps reading was refreshed."""
        self.total_frames += 1
        self.window_frames += 1
        if self.window_start is None:
            self.window_start = now
            return False
        if now - self.window_start >= 1.0:
            self.fps = self.window_frames
            self.window_frames = 0
            self.window_start = now
            return True
        return False


class FrameLoop:
    def __init__(
        self,
        session: ViewerSession,
        source: FrameSource,
        feed: Optional[LandmarkFeed] = None,
        rng: Optional[np.random.Generator] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.session = session
        self.source = source
        self.feed = feed
        self.stats = FrameStats()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.clock = clock

    def step(self) -> np.ndarray:
        now = self.clock()
        if self.stats.tick(now):
            logger.debug("fps=%d frames=%d", self.stats.fps, self.stats.total_frames)

        # landmark results land here, before this frame reads the accent
        if self.feed is not None:
            self.feed.poll()

        session = self.session
        live = self.source.fill(session.buffer)
        apply_tone(session.buffer, session.tone)
        apply_effect(session.buffer, session.mode, session.intensity, session.accent.rgb, self.rng)

        if live and self.feed is not None and self.feed.enabled and self.source.last_frame is not None:
            self.feed.dispatch(self.source.last_frame, now)
        return session.buffer
