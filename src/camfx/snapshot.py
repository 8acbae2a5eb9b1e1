from __future__ import annotations

import logging
import time
from pathlib import Path

import cv2
import numpy as np

logger = logging.getLogger(__name__)


def encode_png(buffer: np.ndarray) -> bytes:
    ok, encoded = cv2.imencode(".png", cv2.cvtColor(buffer, cv2.COLOR_RGBA2BGRA))
    if not ok:
        raise ValueError("PNG encoding failed")
    return encoded.tobytes()


def save_snapshot(buffer: np.ndarray, directory: Path) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"vision-{int(time.time() * 1000)}.png"
    path.write_bytes(encode_png(buffer))
    logger.info("Snapshot saved to %s", path)
    return path
