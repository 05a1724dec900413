from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

from posecam.config import CameraConfig, get_config
from posecam.models import LensFacing


logger = logging.getLogger(__name__)

MAX_ZOOM = 10.0


def crop_zoom(frame: Any, zoom: float) -> Any:
	"""
	Digital zoom: centre crop by 1/zoom, resized back to the input size.
	"""
	if frame is None or zoom <= 1.0:
		return frame
	import cv2  # type: ignore

	h, w = int(frame.shape[0]), int(frame.shape[1])
	cw = max(1, int(round(w / zoom)))
	ch = max(1, int(round(h / zoom)))
	x0 = (w - cw) // 2
	y0 = (h - ch) // 2
	return cv2.resize(frame[y0:y0 + ch, x0:x0 + cw], (w, h), interpolation=cv2.INTER_LINEAR)


class CameraSource:
	"""
	OpenCV capture with a front/back device pair and digital zoom.

	`read()` is blocking and meant to run in an executor; `switch()` and
	`set_zoom()` are called from the event loop, hence the lock.
	"""

	def __init__(self, cfg: Optional[CameraConfig] = None) -> None:
		self._cfg = cfg or get_config().camera
		self._lock = threading.Lock()
		self._lens_facing = LensFacing(self._cfg.lens_facing)
		self._zoom = 1.0
		self._cap = None
		self._last_error: Optional[str] = None

	@property
	def zoom(self) -> float:
		return self._zoom

	def _device_index(self) -> int:
		if self._lens_facing == LensFacing.FRONT:
			return int(self._cfg.front_index)
		return int(self._cfg.back_index)

	def _open_locked(self) -> None:
		try:
			import cv2  # type: ignore
		except Exception as e:
			raise RuntimeError("OpenCV is not installed. Install with: pip install opencv-python") from e

		idx = self._device_index()
		cap = cv2.VideoCapture(idx)
		if self._cfg.width:
			cap.set(cv2.CAP_PROP_FRAME_WIDTH, int(self._cfg.width))
		if self._cfg.height:
			cap.set(cv2.CAP_PROP_FRAME_HEIGHT, int(self._cfg.height))
		if not cap.isOpened():
			self._last_error = f"camera {idx} ({self._lens_facing.value}) could not be opened"
			logger.warning(self._last_error)
		else:
			self._last_error = None
			logger.info("Opened camera %d (%s)", idx, self._lens_facing.value)
		self._cap = cap

	def _release_locked(self) -> None:
		if self._cap is not None:
			try:
				self._cap.release()
			finally:
				self._cap = None

	def read(self) -> Optional[Any]:
		with self._lock:
			if self._cap is None:
				self._open_locked()
			ok, frame = self._cap.read()
			zoom = self._zoom
		if not ok:
			return None
		return crop_zoom(frame, zoom)

	def switch(self) -> LensFacing:
		with self._lock:
			self._lens_facing = LensFacing.BACK if self._lens_facing == LensFacing.FRONT else LensFacing.FRONT
			if self._lens_facing == LensFacing.FRONT:
				self._zoom = 1.0
			if self._cap is not None:
				self._release_locked()
				self._open_locked()
			return self._lens_facing

	def set_zoom(self, zoom: float) -> float:
		with self._lock:
			self._zoom = max(1.0, min(MAX_ZOOM, float(zoom)))
			return self._zoom

	def get_status(self) -> Dict[str, Any]:
		with self._lock:
			return {
				"lens_facing": self._lens_facing.value,
				"device_index": self._device_index(),
				"zoom": self._zoom,
				"open": self._cap is not None,
				"error": self._last_error,
			}

	def close(self) -> None:
		with self._lock:
			self._release_locked()
