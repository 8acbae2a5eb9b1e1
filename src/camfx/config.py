from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off"}


def clamp_control(value: int, upper: int) -> int:
    return max(0, min(upper, int(value)))


@dataclass
class ViewerSettings:
    front_camera: int = 0
    back_camera: int = 1
    facing: str = "front"
    use_camera: bool = True
    canvas_width: int = 1920
    canvas_height: int = 1080
    camera_timeout_s: float = 5.0
    effect: str = "normal"
    intensity: int = 50
    brightness: int = 100
    contrast: int = 100
    accent_hex: str = "#007AFF"
    tilt_color: bool = False
    blink_invert: bool = False
    blink_threshold: float = 0.25
    blink_cooldown_s: float = 0.4
    tilt_alpha: float = 0.3
    tilt_range_deg: float = 60.0
    snapshot_dir: Path = Path(".")
    log_level: str = "INFO"
    log_json: bool = False
    log_file: Path | None = None

    def camera_index(self, facing: str | None = None) -> int:
        facing = facing or self.facing
        return self.front_camera if facing == "front" else self.back_camera

    @classmethod
    def from_env(cls) -> "ViewerSettings":
        log_file = os.getenv("CAMFX_LOG_FILE")
        return cls(
            front_camera=_env_int("CAMFX_FRONT_CAMERA", 0),
            back_camera=_env_int("CAMFX_BACK_CAMERA", 1),
            facing="back" if os.getenv("CAMFX_FACING", "front").strip().lower() == "back" else "front",
            use_camera=_env_bool("CAMFX_USE_CAMERA", True),
            canvas_width=max(16, _env_int("CAMFX_CANVAS_WIDTH", 1920)),
            canvas_height=max(16, _env_int("CAMFX_CANVAS_HEIGHT", 1080)),
            camera_timeout_s=max(0.1, _env_float("CAMFX_CAMERA_TIMEOUT", 5.0)),
            effect=os.getenv("CAMFX_EFFECT", "normal").strip().lower(),
            intensity=clamp_control(_env_int("CAMFX_INTENSITY", 50), 100),
            brightness=clamp_control(_env_int("CAMFX_BRIGHTNESS", 100), 200),
            contrast=clamp_control(_env_int("CAMFX_CONTRAST", 100), 200),
            accent_hex=os.getenv("CAMFX_ACCENT", "#007AFF"),
            tilt_color=_env_bool("CAMFX_TILT_COLOR", False),
            blink_invert=_env_bool("CAMFX_BLINK_INVERT", False),
            blink_threshold=_env_float("CAMFX_BLINK_THRESHOLD", 0.25),
            blink_cooldown_s=max(0.0, _env_float("CAMFX_BLINK_COOLDOWN", 0.4)),
            tilt_alpha=min(1.0, max(0.0, _env_float("CAMFX_TILT_ALPHA", 0.3))),
            tilt_range_deg=max(1.0, _env_float("CAMFX_TILT_RANGE", 60.0)),
            snapshot_dir=Path(os.getenv("CAMFX_SNAPSHOT_DIR", ".")),
            log_level=os.getenv("CAMFX_LOG_LEVEL", "INFO").upper(),
            log_json=_env_bool("CAMFX_LOG_JSON", False),
            log_file=Path(log_file) if log_file else None,
        )
