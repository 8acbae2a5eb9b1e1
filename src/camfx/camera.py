import logging
import time

import cv2
import numpy as np

from .exceptions import CameraError, CameraFailure

logger = logging.getLogger(__name__)

# Tried in order until one delivers a frame; None keeps the device default
RESOLUTIONS = [(1920, 1080), (1280, 720), None]


class Camera:
	def __init__(self, index=0, fallback_index=0, facing="front", timeout_s=5.0, capture_factory=cv2.VideoCapture):
		self.index = index
		self.fallback_index = fallback_index
		self.facing = facing
		self.timeout_s = timeout_s
		self.cap = None
		self._capture_factory = capture_factory

	@property
	def mirrored(self) -> bool:
		return self.facing == "front"

	@property
	def is_open(self) -> bool:
		return self.cap is not None

	def _attempts(self):
		attempts = [(self.index, size) for size in RESOLUTIONS]
		if self.fallback_index != self.index:
			attempts.append((self.fallback_index, None))
		return attempts

	def open(self) -> tuple[int, int]:
		"""Acquire the device, degrading resolution on failure. Returns (width, height)."""
		self.release()
		last_error = None
		for index, size in self._attempts():
			try:
				cap = self._capture_factory(index)
			except PermissionError as exc:
				last_error = CameraError(CameraFailure.PERMISSION_DENIED, str(exc))
				logger.warning("Camera constraint failed: index=%s size=%s: %s", index, size, exc)
				continue
			except cv2.error as exc:
				last_error = CameraError(CameraFailure.OTHER, str(exc))
				logger.warning("Camera constraint failed: index=%s size=%s: %s", index, size, exc)
				continue

			try:
				self._configure(cap, size)
				frame = self._await_first_frame(cap)
			except CameraError as exc:
				cap.release()
				last_error = exc
				logger.warning("Camera constraint failed: index=%s size=%s: %s", index, size, exc.detail)
				continue

			self.cap = cap
			height, width = frame.shape[:2]
			logger.info("Camera %s open at %dx%d (%s-facing)", index, width, height, self.facing)
			return width, height

		raise last_error or CameraError(CameraFailure.OTHER, "no acquisition attempts")

	def _configure(self, cap, size) -> None:
		if not cap.isOpened():
			raise CameraError(CameraFailure.NO_DEVICE, "device did not open")
		if size is None:
			return
		width, height = size
		ok_w = cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
		ok_h = cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
		if not (ok_w or ok_h):
			raise CameraError(CameraFailure.OVERCONSTRAINED, f"{width}x{height} rejected")

	def _await_first_frame(self, cap) -> np.ndarray:
		deadline = time.monotonic() + self.timeout_s
		while True:
			ok, frame = cap.read()
			if ok and frame is not None:
				return frame
			if time.monotonic() >= deadline:
				raise CameraError(CameraFailure.DEVICE_BUSY, "timed out waiting for the first frame")
			time.sleep(0.01)

	def read(self) -> tuple[bool, np.ndarray]:
		if self.cap is None:
			return False, None
		return self.cap.read()

	def release(self) -> None:
		if self.cap is not None:
			self.cap.release()
			self.cap = None
