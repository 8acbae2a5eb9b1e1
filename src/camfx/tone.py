from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

import numpy as np

NEUTRAL = 100


@dataclass
class ToneSettings:
    brightness: int = NEUTRAL
    contrast: int = NEUTRAL

    @property
    def is_neutral(self) -> bool:
        return self.brightness == NEUTRAL and self.contrast == NEUTRAL


def contrast_factor(contrast: float) -> float:
    # 0..200% mapped onto -255..255 around mid-gray
    c = (contrast - NEUTRAL) * 2.55
    return (259.0 * (c + 255.0)) / (255.0 * (259.0 - c))


@lru_cache(maxsize=32)
def tone_lut(brightness: int, contrast: int) -> np.ndarray:
    """256-entry lookup: brightness scale first, then contrast stretch."""
    values = np.arange(256, dtype=np.float64)
    out = contrast_factor(contrast) * (values * (brightness / 100.0) - 128.0) + 128.0
    return np.clip(np.rint(out), 0, 255).astype(np.uint8)


def apply_tone(buffer: np.ndarray, tone: ToneSettings) -> np.ndarray:
    """Brightness/contrast on R, G and B in place. Alpha is untouched."""
    if tone.is_neutral:
        return buffer
    lut = tone_lut(int(tone.brightness), int(tone.contrast))
    rgb = buffer[:, :, :3]
    rgb[...] = lut[rgb]
    return buffer
