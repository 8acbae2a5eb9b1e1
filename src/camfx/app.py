'''Viewer entry point.

Builds the session, acquires the camera, runs the frame loop.

Displays frames & handles keyboard controls.'''

import argparse
import logging
import time
from pathlib import Path

import cv2

from . import ui
from .camera import Camera
from .config import ViewerSettings
from .effects import EffectMode
from .exceptions import CameraError, DetectorUnavailableError
from .frame_source import FrameSource
from .landmark_feed import LandmarkFeed
from .logger import configure_logger
from .loop import FrameLoop
from .session import ViewerSession
from .signals import BlinkDetector, TiltTracker
from .snapshot import save_snapshot

logger = logging.getLogger(__name__)

WINDOW = "camfx"


def parse_args(argv=None, defaults=None):
    d = defaults or ViewerSettings.from_env()
    p = argparse.ArgumentParser(description="Real-time webcam effects viewer")
    p.add_argument("--camera", type=int, default=d.front_camera, help="front-facing device index")
    p.add_argument("--back-camera", type=int, default=d.back_camera, help="back-facing device index")
    p.add_argument("--facing", choices=["front", "back"], default=d.facing)
    p.add_argument("--no-camera", action="store_true", default=not d.use_camera, help="idle pattern only")
    p.add_argument("--effect", choices=[m.value for m in EffectMode], default=d.effect)
    p.add_argument("--intensity", type=int, default=d.intensity)
    p.add_argument("--brightness", type=int, default=d.brightness)
    p.add_argument("--contrast", type=int, default=d.contrast)
    p.add_argument("--accent", default=d.accent_hex, help="accent colour as #RRGGBB")
    p.add_argument("--tilt-color", action="store_true", default=d.tilt_color)
    p.add_argument("--blink-invert", action="store_true", default=d.blink_invert)
    p.add_argument("--snapshot-dir", type=Path, default=d.snapshot_dir)
    p.add_argument("--log-level", default=d.log_level)
    p.add_argument("--log-json", action="store_true", default=d.log_json)
    p.add_argument("--log-file", type=Path, default=d.log_file)
    return p.parse_args(argv)


def settings_from_args(args, defaults):
    settings = defaults
    settings.front_camera = args.camera
    settings.back_camera = args.back_camera
    settings.facing = args.facing
    settings.use_camera = not args.no_camera
    settings.effect = args.effect
    settings.intensity = args.intensity
    settings.brightness = args.brightness
    settings.contrast = args.contrast
    settings.accent_hex = args.accent
    settings.tilt_color = args.tilt_color
    settings.blink_invert = args.blink_invert
    settings.snapshot_dir = args.snapshot_dir
    settings.log_level = args.log_level
    settings.log_json = args.log_json
    settings.log_file = args.log_file
    return settings


def face_mesh_factory():
    try:
        from .landmarks import FaceMeshDetector
    except ImportError as exc:
        raise DetectorUnavailableError(f"mediapipe could not be imported: {exc}") from exc
    return FaceMeshDetector(max_faces=1)


def start_camera(source, session, settings):
    camera = Camera(
        index=settings.camera_index(session.facing),
        fallback_index=settings.front_camera,
        facing=session.facing,
        timeout_s=settings.camera_timeout_s,
    )
    try:
        width, height = camera.open()
    except CameraError as exc:
        logger.error(exc.user_message, extra={"category": exc.category.value, "detail": exc.detail})
        return False
    session.resize(width, height)
    source.attach(camera)
    return True


def take_snapshot(buffer, directory):
    try:
        return save_snapshot(buffer, directory)
    except (OSError, ValueError) as exc:
        logger.error("Snapshot failed: %s", exc, extra={"directory": str(directory)})
        return None


def sync_features(feed, session):
    feed.set_features(session.tilt_color, session.blink_invert)
    session.tilt_color, session.blink_invert = feed.tilt_enabled, feed.blink_enabled


def main(argv=None):
    defaults = ViewerSettings.from_env()
    settings = settings_from_args(parse_args(argv, defaults), defaults)
    configure_logger(settings.log_level, settings.log_json, settings.log_file)

    session = ViewerSession.from_settings(settings)
    source = FrameSource()
    feed = LandmarkFeed(
        session.accent,
        face_mesh_factory,
        blink=BlinkDetector(threshold=settings.blink_threshold, cooldown_s=settings.blink_cooldown_s),
        tilt=TiltTracker(ema_alpha=settings.tilt_alpha, max_tilt_deg=settings.tilt_range_deg),
    )
    sync_features(feed, session)

    if settings.use_camera:
        start_camera(source, session, settings)

    loop = FrameLoop(session, source, feed)
    controls = ui.Controls(session)
    session_start = time.time()

    logger.info("Starting viewer. %s", ui.HELP)
    cv2.namedWindow(WINDOW, cv2.WINDOW_NORMAL)

    try:
        while True:
            buffer = loop.step()

            frame = ui.to_display(buffer)
            if controls.show_hud:
                status = feed.state.value if feed.enabled else "off"
                frame = ui.draw_hud(frame, session, loop.stats, status)
            cv2.imshow(WINDOW, frame)

            action = controls.handle_key(cv2.waitKey(1) & 0xFF)
            if action == "quit":
                break
            if action == "snapshot":
                take_snapshot(buffer, settings.snapshot_dir)
            elif action == "flip":
                source.detach()
                session.facing = "back" if session.facing == "front" else "front"
                start_camera(source, session, settings)
            elif action == "toggle_tilt":
                session.tilt_color = not session.tilt_color
                sync_features(feed, session)
            elif action == "toggle_blink":
                session.blink_invert = not session.blink_invert
                sync_features(feed, session)

    except KeyboardInterrupt:  # ctrl + c
        pass
    finally:
        source.detach()
        feed.close()
        cv2.destroyAllWindows()

        logger.info(
            "Session summary: frames=%d duration=%.2fs",
            loop.stats.total_frames,
            time.time() - session_start,
        )


if __name__ == "__main__":
    main()
