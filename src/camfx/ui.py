import logging

import cv2
import numpy as np

from .effects import EffectMode

logger = logging.getLogger(__name__)

EFFECT_KEYS = {ord(str(i)): mode for i, mode in enumerate(EffectMode)}
STEP = 5

HELP = "0-7 effect  [ ] intensity  - = brightness  , . contrast  f flip  t tilt  b blink  s save  h hud  q quit"


def to_display(buffer):
    return cv2.cvtColor(buffer, cv2.COLOR_RGBA2BGR)


def draw_hud(frame, session, stats, face_status="off"):
    h, w = frame.shape[:2]
    accent_bgr = session.accent.rgb[::-1]
    label_bgr = session.accent.label[::-1]

    # Dark translucent header keeps the text readable over any effect
    header_h = 90
    overlay = frame.copy()
    cv2.rectangle(overlay, (0, 0), (w, header_h), (20, 20, 20), -1)
    cv2.addWeighted(overlay, 0.4, frame, 0.6, 0, frame)

    font = cv2.FONT_HERSHEY_DUPLEX

    # Left: controls
    cv2.putText(frame, f"INTENSITY: {session.intensity}%", (25, 35), font, 0.6, (255, 255, 255), 1)
    cv2.putText(
        frame,
        f"BRIGHTNESS: {session.tone.brightness}%  CONTRAST: {session.tone.contrast}%",
        (25, 65), font, 0.6, (255, 255, 255), 1,
    )

    # Right: telemetry
    cv2.putText(frame, f"{stats.fps} FPS", (w - 180, 35), font, 0.7, (0, 255, 255), 1)
    cv2.putText(frame, f"FRAMES: {stats.total_frames}", (w - 180, 65), font, 0.5, (200, 200, 200), 1)

    # Centre: effect name on an accent pill
    status_text = session.mode.label
    text_size = cv2.getTextSize(status_text, font, 0.9, 2)[0]
    text_x = (w - text_size[0]) // 2
    cv2.rectangle(frame, (text_x - 16, 22), (text_x + text_size[0] + 16, 68), accent_bgr, -1)
    cv2.putText(frame, status_text, (text_x, 56), font, 0.9, label_bgr, 2)

    # Accent swatch with hex and face-control status
    cv2.putText(frame, f"{session.accent.hex}  FACE: {face_status}", (25, h - 20), font, 0.5, accent_bgr, 1)
    return frame


class Controls:
    """Keyboard bindings for the viewer window.

    Session values are changed directly; actions the app has to carry out
    (quit, flip, snapshot, feature toggles) are returned by name.
    """

    def __init__(self, session):
        self.session = session
        self.show_hud = True

    def handle_key(self, key):
        if key == 255 or key < 0:
            return None
        session = self.session
        if key in EFFECT_KEYS:
            session.set_mode(EFFECT_KEYS[key])
        elif key == ord("["):
            session.set_intensity(session.intensity - STEP)
        elif key == ord("]"):
            session.set_intensity(session.intensity + STEP)
        elif key == ord("-"):
            session.set_brightness(session.tone.brightness - STEP)
        elif key == ord("="):
            session.set_brightness(session.tone.brightness + STEP)
        elif key == ord(","):
            session.set_contrast(session.tone.contrast - STEP)
        elif key == ord("."):
            session.set_contrast(session.tone.contrast + STEP)
        elif key == ord("h"):
            self.show_hud = not self.show_hud
        elif key in (ord("q"), 27):
            return "quit"
        elif key == ord("f"):
            return "flip"
        elif key == ord("s"):
            return "snapshot"
        elif key == ord("t"):
            return "toggle_tilt"
        elif key == ord("b"):
            return "toggle_blink"
        return None
