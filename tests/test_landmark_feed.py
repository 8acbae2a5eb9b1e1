import numpy as np
import pytest

from camfx.accent import AccentColor
from camfx.exceptions import DetectorUnavailableError
from camfx.landmark_feed import FeedState, LandmarkFeed
from camfx.signals import FaceLandmarks

FRAME = np.zeros((4, 4, 3), dtype=np.uint8)


def landmarks(ear=0.3, tilt_y=0.0):
    """Normalized 478-point face on a 1000x1000 frame."""
    pts = np.zeros((478, 2))
    for corners, top, bottom, ox in (
        ((33, 133), (159, 158), (145, 153), 0.1),
        ((362, 263), (385, 386), (380, 374), 0.2),
    ):
        pts[corners[0]] = (ox, 0.5)
        pts[corners[1]] = (ox + 0.04, 0.5)
        half = ear * 0.04 / 2
        for t, b in zip(top, bottom):
            pts[t] = (ox + 0.02, 0.5 - half)
            pts[b] = (ox + 0.02, 0.5 + half)
    pts[263] = (0.24, 0.5 + tilt_y)
    return FaceLandmarks(points=[tuple(p) for p in pts], frame_width=1000, frame_height=1000)


class ScriptedDetector:
    def __init__(self, results=()):
        self.results = list(results)
        self.closed = False

    def process(self, frame):
        return self.results.pop(0) if self.results else None

    def close(self):
        self.closed = True


@pytest.fixture
def accent():
    return AccentColor(0, 122, 255)


def make_feed(accent, executor, detector=None):
    detector = detector or ScriptedDetector()
    return LandmarkFeed(accent, lambda: detector, executor=executor), detector


def test_state_machine(accent, manual_executor):
    feed, _ = make_feed(accent, manual_executor)
    assert feed.state is FeedState.IDLE
    feed.set_features(tilt=True, blink=False)
    assert feed.state is FeedState.AWAITING
    assert feed.dispatch(FRAME, 0.0)
    manual_executor.finish()
    feed.poll()
    assert feed.state is FeedState.ACTIVE
    feed.set_features(tilt=False, blink=False)
    assert feed.state is FeedState.IDLE


def test_second_dispatch_is_suppressed_while_pending(accent, manual_executor):
    feed, _ = make_feed(accent, manual_executor)
    feed.set_features(tilt=True, blink=True)
    assert feed.dispatch(FRAME, 0.0)
    assert not feed.dispatch(FRAME, 0.016)
    assert len(manual_executor.calls) == 1
    assert feed.suppressed == 1

    manual_executor.finish()
    assert feed.dispatch(FRAME, 0.033)
    assert len(manual_executor.calls) == 2


def test_no_dispatch_when_disabled(accent, manual_executor):
    feed, _ = make_feed(accent, manual_executor)
    assert not feed.dispatch(FRAME, 0.0)
    assert manual_executor.calls == []


def test_tilt_sets_accent_hue(accent, manual_executor):
    feed, _ = make_feed(accent, manual_executor, ScriptedDetector([landmarks()]))
    feed.set_features(tilt=True, blink=False)
    feed.dispatch(FRAME, 0.0)
    manual_executor.finish()
    feed.poll()
    # level head -> hue 180 -> cyan
    assert accent.rgb == (0, 255, 255)


def test_blink_inverts_accent_once(accent, manual_executor):
    detector = ScriptedDetector([landmarks(0.3), landmarks(0.2), landmarks(0.3)])
    feed, _ = make_feed(accent, manual_executor, detector)
    feed.set_features(tilt=False, blink=True)
    for ts in (0.0, 0.05, 0.1):
        feed.dispatch(FRAME, ts)
        manual_executor.finish()
        feed.poll()
    assert accent.rgb == (255, 133, 0)
    assert feed.blink.metrics()["blink_count"] == 1


def test_result_after_disable_is_ignored(accent, manual_executor):
    feed, _ = make_feed(accent, manual_executor, ScriptedDetector([landmarks()]))
    feed.set_features(tilt=True, blink=False)
    feed.dispatch(FRAME, 0.0)
    feed.set_features(tilt=False, blink=False)
    manual_executor.finish()
    assert feed.poll()
    assert accent.rgb == (0, 122, 255)
    assert not feed.in_flight


def test_stale_result_from_previous_window_is_ignored(accent, manual_executor):
    feed, _ = make_feed(accent, manual_executor, ScriptedDetector([landmarks()]))
    feed.set_features(tilt=True, blink=False)
    feed.dispatch(FRAME, 0.0)
    feed.set_features(tilt=False, blink=False)
    feed.set_features(tilt=True, blink=False)
    manual_executor.finish()
    feed.poll()
    assert accent.rgb == (0, 122, 255)
    assert feed.state is FeedState.AWAITING


def test_unavailable_detector_disables_features(accent, manual_executor, caplog):
    def broken():
        raise DetectorUnavailableError("no model")

    feed = LandmarkFeed(accent, broken, executor=manual_executor)
    feed.set_features(tilt=True, blink=True)
    assert not feed.enabled
    assert not feed.available
    assert feed.state is FeedState.IDLE
    assert not feed.dispatch(FRAME, 0.0)
    assert "unavailable" in caplog.text


def test_detector_error_is_logged_not_raised(accent, manual_executor, caplog):
    class Exploding(ScriptedDetector):
        def process(self, frame):
            raise RuntimeError("boom")

    feed, _ = make_feed(accent, manual_executor, Exploding())
    feed.set_features(tilt=True, blink=False)
    feed.dispatch(FRAME, 0.0)
    manual_executor.finish()
    feed.poll()
    assert accent.rgb == (0, 122, 255)
    assert feed.state is FeedState.ACTIVE
    assert "detection failed" in caplog.text


def test_close_releases_detector(accent, manual_executor):
    feed, detector = make_feed(accent, manual_executor)
    feed.set_features(tilt=True, blink=False)
    feed.close()
    assert detector.closed
