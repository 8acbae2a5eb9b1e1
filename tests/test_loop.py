import numpy as np

from camfx import loop as loop_module
from camfx.effects import EffectMode
from camfx.loop import FrameLoop, FrameStats
from camfx.session import ViewerSession


class Clock:
    def __init__(self, step=1 / 60):
        self.now = 0.0
        self.step = step

    def __call__(self):
        value = self.now
        self.now += self.step
        return value


class RecordingSource:
    def __init__(self, calls, live=False):
        self.calls = calls
        self.live = live
        self.last_frame = np.zeros((2, 2, 3), dtype=np.uint8) if live else None

    def fill(self, buffer):
        self.calls.append("source")
        buffer[:, :, :3] = 100
        return self.live


class RecordingFeed:
    def __init__(self, calls, enabled=True):
        self.calls = calls
        self.enabled = enabled

    def poll(self):
        self.calls.append("poll")

    def dispatch(self, frame, timestamp):
        self.calls.append("dispatch")
        return True


def test_stats_report_frames_per_completed_second():
    stats = FrameStats()
    refreshed = [stats.tick(i / 60) for i in range(61)]
    assert stats.total_frames == 61
    assert refreshed.count(True) == 1
    assert stats.fps == 61
    assert not stats.tick(61 / 60)
    assert stats.fps == 61


def test_step_runs_stages_in_order(monkeypatch):
    calls = []
    monkeypatch.setattr(loop_module, "apply_tone", lambda buffer, tone: calls.append("tone"))
    monkeypatch.setattr(
        loop_module, "apply_effect", lambda buffer, mode, intensity, accent, rng: calls.append("effect")
    )
    frame_loop = FrameLoop(
        ViewerSession(8, 4), RecordingSource(calls, live=True), RecordingFeed(calls), clock=Clock()
    )
    frame_loop.step()
    assert calls == ["poll", "source", "tone", "effect", "dispatch"]


def test_no_dispatch_for_idle_pattern():
    calls = []
    frame_loop = FrameLoop(ViewerSession(8, 4), RecordingSource(calls, live=False), RecordingFeed(calls), clock=Clock())
    frame_loop.step()
    assert "dispatch" not in calls


def test_no_dispatch_when_face_features_off():
    calls = []
    feed = RecordingFeed(calls, enabled=False)
    frame_loop = FrameLoop(ViewerSession(8, 4), RecordingSource(calls, live=True), feed, clock=Clock())
    frame_loop.step()
    assert "dispatch" not in calls


def test_step_applies_tone_and_effect_to_session_buffer():
    session = ViewerSession(8, 4)
    session.tone.brightness = 50
    session.mode = EffectMode.THERMAL
    session.intensity = 0
    frame_loop = FrameLoop(session, RecordingSource([]), clock=Clock())
    out = frame_loop.step()
    assert out is session.buffer
    assert np.all(out[:, :, :3] == 50)
    assert frame_loop.stats.total_frames == 1
