"""Accent colour shared by the colourising effects and the HUD."""

from __future__ import annotations

import colorsys
import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_ACCENT = (0, 122, 255)
DARK_LABEL = (0, 0, 0)
LIGHT_LABEL = (255, 255, 255)

# ITU-R BT.601 weights, shared with the glow effect
LUMA_WEIGHTS = (0.299, 0.587, 0.114)

_HEX_RE = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)


def luminance(r: float, g: float, b: float) -> float:
    """Relative luminance in [0, 1]."""
    wr, wg, wb = LUMA_WEIGHTS
    return (wr * r + wg * g + wb * b) / 255.0


def hex_to_rgb(value: str) -> tuple[int, int, int]:
    match = _HEX_RE.match(value.strip())
    if match is None:
        logger.warning("Invalid accent colour %r, using default", value)
        return DEFAULT_ACCENT
    return tuple(int(part, 16) for part in match.groups())  # type: ignore[return-value]


def hue_to_rgb(hue: float) -> tuple[int, int, int]:
    """Full saturation, 50% lightness HSL colour for a hue in degrees."""
    r, g, b = colorsys.hls_to_rgb((hue % 360.0) / 360.0, 0.5, 1.0)
    return (round(r * 255), round(g * 255), round(b * 255))


@dataclass
class AccentColor:
    r: int = DEFAULT_ACCENT[0]
    g: int = DEFAULT_ACCENT[1]
    b: int = DEFAULT_ACCENT[2]
    label: tuple[int, int, int] = LIGHT_LABEL

    def __post_init__(self) -> None:
        self._refresh_label()

    @property
    def rgb(self) -> tuple[int, int, int]:
        return (self.r, self.g, self.b)

    @property
    def hex(self) -> str:
        return "#{:02X}{:02X}{:02X}".format(*self.rgb)

    def set_rgb(self, r: int, g: int, b: int) -> None:
        self.r, self.g, self.b = (max(0, min(255, int(c))) for c in (r, g, b))
        self._refresh_label()

    def set_hex(self, value: str) -> None:
        self.set_rgb(*hex_to_rgb(value))

    def set_hue(self, hue: float) -> None:
        self.set_rgb(*hue_to_rgb(hue))

    def invert(self) -> None:
        self.set_rgb(255 - self.r, 255 - self.g, 255 - self.b)

    def _refresh_label(self) -> None:
        self.label = DARK_LABEL if luminance(self.r, self.g, self.b) > 0.5 else LIGHT_LABEL
