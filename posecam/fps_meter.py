from __future__ import annotations

import time
from typing import Callable, Optional


class FpsMeter:
	"""
	Frame-rate counter over a fixed window.

	Frames are counted until at least `window_ms` has elapsed since the last
	update; then the rate (frames * 1000 / elapsed_ms) is emitted once and the
	window restarts. Between updates `tick()` returns None.
	"""

	def __init__(self, window_ms: float = 1000.0, clock: Optional[Callable[[], float]] = None) -> None:
		self.window_ms = float(window_ms) if window_ms > 0 else 1000.0
		# clock returns seconds
		self._clock: Callable[[], float] = clock or time.monotonic
		self._frames = 0
		self._last_update = self._clock()

	def reset(self) -> None:
		self._frames = 0
		self._last_update = self._clock()

	def tick(self) -> Optional[float]:
		self._frames += 1
		now = self._clock()
		elapsed_ms = (now - self._last_update) * 1000.0
		if elapsed_ms < self.window_ms:
			return None
		fps = self._frames * 1000.0 / elapsed_ms
		self._frames = 0
		self._last_update = now
		return fps
