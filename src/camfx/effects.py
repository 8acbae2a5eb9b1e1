"""Per-frame effect filters.

Every filter works in place on an RGBA ``uint8`` buffer of shape (H, W, 4)
and reads ``intensity`` as a 0-100 control.  Dispatch is by ``EffectMode``
through the ``EFFECTS`` table, one handler per mode.
"""

from __future__ import annotations

import math
from enum import Enum
from functools import lru_cache
from typing import Callable, Optional

import cv2
import numpy as np

from .accent import LUMA_WEIGHTS

Rgb = tuple[int, int, int]

ASCII_RAMP = " .:-=+*#%@"
GLITCH_SKIP_PROBABILITY = 0.3
GLOW_SCREEN_ALPHA = 0.1
KALEIDOSCOPE_TINT_ALPHA = 0.1


class EffectMode(str, Enum):
    NORMAL = "normal"
    AURA = "aura"
    THERMAL = "thermal"
    GLITCH = "glitch"
    PIXELATE = "pixelate"
    EDGE = "edge"
    ASCII = "ascii"
    MIRROR = "mirror"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @classmethod
    def from_tag(cls, tag: str) -> "EffectMode":
        tag = tag.strip().lower()
        return cls(_ALIASES.get(tag, tag))


_ALIASES = {
    "none": "normal",
    "glow": "aura",
    "edge-detect": "edge",
    "kaleidoscope": "mirror",
}


def _commit(buffer: np.ndarray, rgb: np.ndarray) -> None:
    buffer[:, :, :3] = np.clip(np.rint(rgb), 0, 255).astype(np.uint8)


def screen_blend(base: np.ndarray, color: np.ndarray, alpha: float) -> np.ndarray:
    """Screen a flat colour over ``base`` (0-255 floats) at ``alpha`` opacity."""
    screened = base + color - base * color / 255.0
    return base * (1.0 - alpha) + screened * alpha


def overlay_blend(base: np.ndarray, color: np.ndarray, alpha: float) -> np.ndarray:
    """Overlay a flat colour over ``base`` (0-255 floats) at ``alpha`` opacity."""
    cb = base / 255.0
    cs = color / 255.0
    blended = np.where(cb <= 0.5, 2.0 * cb * cs, 1.0 - 2.0 * (1.0 - cb) * (1.0 - cs))
    return base * (1.0 - alpha) + blended * 255.0 * alpha


def apply_glow(buffer: np.ndarray, intensity: float, accent: Rgb) -> np.ndarray:
    strength = intensity / 100.0
    rgb = buffer[:, :, :3].astype(np.float32)
    color = np.array(accent, dtype=np.float32)

    luma = rgb @ np.array(LUMA_WEIGHTS, dtype=np.float32) / 255.0
    aura = luma * luma * strength
    rgb += aura[..., None] * color * 0.5
    np.clip(rgb, 0, 255, out=rgb)

    alpha = GLOW_SCREEN_ALPHA * strength
    if alpha > 0:
        rgb = screen_blend(rgb, color, alpha)
    _commit(buffer, rgb)
    return buffer


def thermal_ramp(level: np.ndarray) -> np.ndarray:
    """Blue -> cyan -> yellow -> red ramp for levels in [0, 1], scaled to 0-255."""
    four = np.asarray(level, dtype=np.float32) * 4.0
    r = np.clip(four - 2.0, 0.0, 1.0)
    g = np.minimum(np.minimum(four, 1.0), 4.0 - four)
    b = np.clip(2.0 - four, 0.0, 1.0)
    return np.stack([r, np.clip(g, 0.0, 1.0), b], axis=-1) * 255.0


def apply_thermal(buffer: np.ndarray, intensity: float, accent: Rgb) -> np.ndarray:
    strength = intensity / 100.0
    rgb = buffer[:, :, :3].astype(np.float32)
    level = rgb.sum(axis=2) / (3.0 * 255.0)
    rgb = rgb * (1.0 - strength) + thermal_ramp(level) * strength
    _commit(buffer, rgb)
    return buffer


def _displace_band(buffer: np.ndarray, top: int, height: int, offset: int) -> None:
    width = buffer.shape[1]
    bottom = min(buffer.shape[0], top + height)
    if offset == 0 or abs(offset) >= width or bottom <= top:
        return
    band = buffer[top:bottom].copy()
    if offset > 0:
        buffer[top:bottom, offset:] = band[:, : width - offset]
    else:
        buffer[top:bottom, : width + offset] = band[:, -offset:]


def apply_glitch(
    buffer: np.ndarray,
    intensity: float,
    accent: Rgb,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    rng = rng if rng is not None else np.random.default_rng()
    strength = intensity / 100.0
    height, width = buffer.shape[:2]

    for _ in range(int(5 + strength * 15)):
        if rng.random() < GLITCH_SKIP_PROBABILITY:
            continue
        top = int(rng.random() * height)
        band = int(rng.random() * 30 + 5)
        offset = int((rng.random() - 0.5) * 50 * strength)
        _displace_band(buffer, top, band, offset)

    # chromatic tear: red channel only
    if rng.random() > 0.5:
        shift = int(strength * 10)
        if shift:
            source = np.minimum(np.arange(width) + shift, width - 1)
            buffer[:, :, 0] = buffer[:, source, 0]
    return buffer


def pixel_block_size(intensity: float) -> int:
    return max(2, int(2 + (intensity / 100.0) * 30))


def apply_pixelate(buffer: np.ndarray, intensity: float, accent: Rgb) -> np.ndarray:
    size = pixel_block_size(intensity)
    height, width = buffer.shape[:2]
    small = cv2.resize(
        buffer,
        (math.ceil(width / size), math.ceil(height / size)),
        interpolation=cv2.INTER_NEAREST,
    )
    buffer[...] = cv2.resize(small, (width, height), interpolation=cv2.INTER_NEAREST)
    return buffer


def apply_edges(buffer: np.ndarray, intensity: float, accent: Rgb) -> np.ndarray:
    """Sobel edges tinted with the accent colour.

    Only interior pixels are rewritten; the one-pixel border keeps whatever
    the buffer already held.
    """
    height, width = buffer.shape[:2]
    if height < 3 or width < 3:
        return buffer
    strength = intensity / 100.0
    rgb = buffer[:, :, :3].astype(np.float32)
    gray = rgb.sum(axis=2) / 3.0

    gx = cv2.Sobel(gray, cv2.CV_32F, 1, 0, ksize=3)
    gy = cv2.Sobel(gray, cv2.CV_32F, 0, 1, ksize=3)
    edge = np.clip(cv2.magnitude(gx, gy) * strength, 0, 255)

    color = np.array(accent, dtype=np.float32)
    out = rgb * (1.0 - strength) + (edge[..., None] * color / 255.0) * strength
    inner = (slice(1, -1), slice(1, -1))
    buffer[inner + (slice(0, 3),)] = np.clip(np.rint(out[inner]), 0, 255).astype(np.uint8)
    buffer[inner + (3,)] = 255
    return buffer


def ascii_cell_size(intensity: float) -> int:
    return max(4, 16 - int(intensity // 10))


@lru_cache(maxsize=16)
def glyph_atlas(cell: int) -> np.ndarray:
    """(len(ASCII_RAMP), cell, cell) coverage masks, 0-255."""
    font = cv2.FONT_HERSHEY_PLAIN
    (tw, th), _ = cv2.getTextSize("@", font, 1.0, 1)
    scale = (cell * 0.8) / max(tw, th)
    atlas = np.zeros((len(ASCII_RAMP), cell, cell), dtype=np.uint8)
    for index, char in enumerate(ASCII_RAMP):
        if char == " ":
            continue
        (cw, ch), _ = cv2.getTextSize(char, font, scale, 1)
        origin = ((cell - cw) // 2, (cell + ch) // 2)
        cv2.putText(atlas[index], char, origin, font, scale, 255, 1, cv2.LINE_AA)
    return atlas


def apply_ascii(buffer: np.ndarray, intensity: float, accent: Rgb) -> np.ndarray:
    cell = ascii_cell_size(intensity)
    height, width = buffer.shape[:2]
    rows, cols = height // cell, width // cell

    gray = buffer[: rows * cell, : cols * cell, :3].astype(np.float32).sum(axis=2) / 3.0
    buffer[:, :, :3] = 0
    buffer[:, :, 3] = 255
    if rows == 0 or cols == 0:
        return buffer

    bright = cv2.resize(gray, (cols, rows), interpolation=cv2.INTER_AREA)
    index = np.clip((bright / 255.0 * (len(ASCII_RAMP) - 1)).astype(np.int32), 0, len(ASCII_RAMP) - 1)

    tiles = glyph_atlas(cell)[index]
    mask = tiles.transpose(0, 2, 1, 3).reshape(rows * cell, cols * cell)
    color = np.array(accent, dtype=np.float32)
    _commit(buffer[: rows * cell, : cols * cell], mask[..., None].astype(np.float32) / 255.0 * color)
    return buffer


def kaleidoscope_segments(intensity: float) -> int:
    return max(4, int(4 + (intensity / 100.0) * 12))


@lru_cache(maxsize=8)
def wedge_maps(width: int, height: int, segments: int) -> tuple[np.ndarray, np.ndarray]:
    """Remap tables folding every wedge back onto the wedge around +x."""
    cx, cy = width / 2.0, height / 2.0
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float32)
    px = xs + 0.5 - cx
    py = ys + 0.5 - cy

    step = 2.0 * np.pi / segments
    theta = np.arctan2(py, px)
    wedge = np.rint(theta / step)
    local = theta - wedge * step
    # parity of the wedge number counted 0..segments-1 from +x
    mirrored = np.mod(np.mod(wedge, segments), 2) == 1
    local = np.where(mirrored, -local, local)

    radius = np.hypot(px, py)
    map_x = (radius * np.cos(local) + cx - 0.5).astype(np.float32)
    map_y = (radius * np.sin(local) + cy - 0.5).astype(np.float32)
    return map_x, map_y


def mirror_wedges(buffer: np.ndarray, segments: int) -> np.ndarray:
    height, width = buffer.shape[:2]
    map_x, map_y = wedge_maps(width, height, segments)
    buffer[...] = cv2.remap(buffer, map_x, map_y, cv2.INTER_LINEAR, borderMode=cv2.BORDER_REPLICATE)
    return buffer


def apply_kaleidoscope(buffer: np.ndarray, intensity: float, accent: Rgb) -> np.ndarray:
    mirror_wedges(buffer, kaleidoscope_segments(intensity))
    rgb = buffer[:, :, :3].astype(np.float32)
    _commit(buffer, overlay_blend(rgb, np.array(accent, dtype=np.float32), KALEIDOSCOPE_TINT_ALPHA))
    return buffer


def _passthrough(buffer: np.ndarray, intensity: float, accent: Rgb) -> np.ndarray:
    return buffer


EffectHandler = Callable[[np.ndarray, float, Rgb], np.ndarray]

EFFECTS: dict[EffectMode, EffectHandler] = {
    EffectMode.NORMAL: _passthrough,
    EffectMode.AURA: apply_glow,
    EffectMode.THERMAL: apply_thermal,
    EffectMode.GLITCH: apply_glitch,
    EffectMode.PIXELATE: apply_pixelate,
    EffectMode.EDGE: apply_edges,
    EffectMode.ASCII: apply_ascii,
    EffectMode.MIRROR: apply_kaleidoscope,
}


def apply_effect(
    buffer: np.ndarray,
    mode: EffectMode,
    intensity: float,
    accent: Rgb,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    if mode is EffectMode.GLITCH:
        return apply_glitch(buffer, intensity, accent, rng)
    return EFFECTS[mode](buffer, intensity, accent)
