from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from typing import Any, Deque, Dict, Optional

from posecam.controller import CameraInferenceController
from posecam.inference.base import InferenceEngine


logger = logging.getLogger(__name__)


class InferenceRunner:
	"""
	Background task that pulls frames from the engine, runs inference and
	delivers results to the session on the event loop.

	Blocking capture/inference runs in the default executor; every callback
	into the controller happens on the loop thread.
	"""

	def __init__(
		self,
		engine: InferenceEngine,
		controller: CameraInferenceController,
		metrics_every: int = 30,
		idle_sleep_seconds: float = 0.05,
	) -> None:
		self._engine = engine
		self._controller = controller
		self._metrics_every = max(1, int(metrics_every))
		self._idle_sleep = max(0.0, float(idle_sleep_seconds))
		self._task: Optional[asyncio.Task] = None
		self._frame_times: Deque[float] = deque(maxlen=self._metrics_every + 1)
		self._frames = 0
		self._errors = 0
		self._last_error: Optional[str] = None

	@property
	def running(self) -> bool:
		return self._task is not None and not self._task.done()

	def get_status(self) -> Dict[str, Any]:
		return {
			"running": self.running,
			"frames": self._frames,
			"errors": self._errors,
			"last_error": self._last_error,
		}

	def start(self) -> None:
		if self.running:
			return
		self._frame_times.clear()
		self._task = asyncio.create_task(self._loop())

	async def stop(self) -> None:
		task = self._task
		self._task = None
		if task is None:
			return
		task.cancel()
		try:
			await task
		except asyncio.CancelledError:
			pass

	async def step(self) -> bool:
		"""
		Process a single frame. Returns False when no frame was available.
		"""
		loop = asyncio.get_running_loop()
		frame = await loop.run_in_executor(None, self._engine.capture)
		if frame is None:
			return False
		results = await loop.run_in_executor(None, self._engine.infer, frame)
		self._frames += 1
		self._controller.on_detection_results(results)

		self._frame_times.append(time.monotonic())
		if self._frames % self._metrics_every == 0 and len(self._frame_times) >= 2:
			span = self._frame_times[-1] - self._frame_times[0]
			if span > 0:
				self._controller.on_performance_metrics((len(self._frame_times) - 1) / span)
		return True

	async def _loop(self) -> None:
		while not self._controller.is_disposed:
			if self._controller.is_model_loading:
				await asyncio.sleep(self._idle_sleep)
				continue
			try:
				got_frame = await self.step()
			except Exception as e:
				self._errors += 1
				self._last_error = repr(e)
				logger.exception("Inference step failed")
				got_frame = False
			if not got_frame:
				await asyncio.sleep(self._idle_sleep)
