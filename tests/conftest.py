from concurrent.futures import Future

import numpy as np
import pytest


def solid(width, height, rgb):
    buffer = np.empty((height, width, 4), dtype=np.uint8)
    buffer[:, :, :3] = rgb
    buffer[:, :, 3] = 255
    return buffer


@pytest.fixture
def random_buffer():
    rng = np.random.default_rng(7)
    buffer = rng.integers(0, 256, size=(48, 64, 4), dtype=np.uint8)
    buffer[:, :, 3] = 255
    return buffer


class ManualExecutor:
    """Executor whose futures only finish when the test says so."""

    def __init__(self):
        self.calls = []

    def submit(self, fn, *args):
        future = Future()
        self.calls.append((future, fn, args))
        return future

    def finish(self, index=-1):
        future, fn, args = self.calls[index]
        future.set_result(fn(*args))

    def shutdown(self, wait=True, cancel_futures=False):
        pass


class FakeCapture:
    def __init__(self, frames=None, opened=True, accepts_size=True):
        self.frames = list(frames or [])
        self.opened = opened
        self.accepts_size = accepts_size
        self.props = {}
        self.released = False

    def isOpened(self):
        return self.opened

    def set(self, prop, value):
        self.props[prop] = value
        return self.accepts_size

    def read(self):
        if not self.frames:
            return False, None
        frame = self.frames[0]
        if len(self.frames) > 1:
            self.frames.pop(0)
        return True, frame

    def release(self):
        self.released = True


@pytest.fixture
def manual_executor():
    return ManualExecutor()


@pytest.fixture
def solid_buffer():
    return solid


@pytest.fixture
def fake_capture():
    return FakeCapture
