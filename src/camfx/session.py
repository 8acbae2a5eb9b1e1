from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np

from .accent import AccentColor
from .config import ViewerSettings, clamp_control
from .effects import EffectMode
from .tone import ToneSettings

logger = logging.getLogger(__name__)


def blank_buffer(width: int, height: int) -> np.ndarray:
    buffer = np.zeros((height, width, 4), dtype=np.uint8)
    buffer[:, :, 3] = 255
    return buffer


@dataclass
class ViewerSession:
    """Everything one frame iteration reads or writes, passed explicitly."""

    width: int = 1920
    height: int = 1080
    accent: AccentColor = field(default_factory=AccentColor)
    mode: EffectMode = EffectMode.NORMAL
    intensity: int = 50
    tone: ToneSettings = field(default_factory=ToneSettings)
    facing: str = "front"
    tilt_color: bool = False
    blink_invert: bool = False
    buffer: np.ndarray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.buffer = blank_buffer(self.width, self.height)

    def resize(self, width: int, height: int) -> None:
        if (width, height) == (self.width, self.height):
            return
        self.width, self.height = width, height
        self.buffer = blank_buffer(width, height)

    def set_mode(self, mode: EffectMode) -> None:
        if mode is not self.mode:
            logger.info("Effect: %s", mode.label)
        self.mode = mode

    def set_intensity(self, value: int) -> None:
        self.intensity = clamp_control(value, 100)

    def set_brightness(self, value: int) -> None:
        self.tone.brightness = clamp_control(value, 200)

    def set_contrast(self, value: int) -> None:
        self.tone.contrast = clamp_control(value, 200)

    @classmethod
    def from_settings(cls, settings: ViewerSettings) -> "ViewerSession":
        try:
            mode = EffectMode.from_tag(settings.effect)
        except ValueError:
            logger.warning("Unknown effect %r, using normal", settings.effect)
            mode = EffectMode.NORMAL
        accent = AccentColor()
        accent.set_hex(settings.accent_hex)
        return cls(
            width=settings.canvas_width,
            height=settings.canvas_height,
            accent=accent,
            mode=mode,
            intensity=clamp_control(settings.intensity, 100),
            tone=ToneSettings(
                brightness=clamp_control(settings.brightness, 200),
                contrast=clamp_control(settings.contrast, 200),
            ),
            facing=settings.facing,
            tilt_color=settings.tilt_color,
            blink_invert=settings.blink_invert,
        )
