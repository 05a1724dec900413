from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from posecam.config import AppConfig, CameraConfig, InferenceConfig, ModelsConfig, SessionConfig
from posecam.controller import CameraInferenceController
from posecam.inference.base import InferenceEngine
from posecam.models import ModelType, YoloTask


class FakeEngine(InferenceEngine):
	def __init__(self, frames: Optional[List[Any]] = None, results: Optional[List[Any]] = None) -> None:
		self.calls: List[tuple] = []
		self.frames = list(frames or [])
		self.results = results if results is not None else []
		self.fail_set_model: Optional[Exception] = None

	def name(self) -> str:
		return "fake"

	def set_model(self, path: str, task: YoloTask) -> None:
		if self.fail_set_model is not None:
			raise self.fail_set_model
		self.calls.append(("set_model", path, task))

	def set_thresholds(self, confidence_threshold: float, iou_threshold: float, num_items_threshold: int) -> None:
		self.calls.append(("set_thresholds", confidence_threshold, iou_threshold, num_items_threshold))

	def set_confidence_threshold(self, value: float) -> None:
		self.calls.append(("set_confidence_threshold", value))

	def set_iou_threshold(self, value: float) -> None:
		self.calls.append(("set_iou_threshold", value))

	def set_num_items_threshold(self, value: int) -> None:
		self.calls.append(("set_num_items_threshold", value))

	def set_zoom_level(self, zoom: float) -> None:
		self.calls.append(("set_zoom_level", zoom))

	def switch_camera(self) -> None:
		self.calls.append(("switch_camera",))

	def capture(self) -> Optional[Any]:
		return self.frames.pop(0) if self.frames else None

	def infer(self, frame: Any) -> List[Dict[str, Any]]:
		self.calls.append(("infer", frame))
		return list(self.results)

	def close(self) -> None:
		self.calls.append(("close",))

	def names(self) -> List[str]:
		return [c[0] for c in self.calls]


class FakeModelManager:
	"""
	Resolves models from a dict; optionally blocks on `gate` until released.
	"""

	def __init__(self, paths: Optional[Dict[str, Optional[str]]] = None, error: Optional[Exception] = None) -> None:
		self.paths = paths if paths is not None else {m.value: f"/models/{m.model_name}.pt" for m in ModelType}
		self.error = error
		self.requests: List[str] = []
		self.gate: Optional[asyncio.Event] = None
		self.started: Optional[asyncio.Event] = None

	async def _wait(self) -> None:
		if self.started is not None:
			self.started.set()
		if self.gate is not None:
			await self.gate.wait()

	async def get_model_path(self, model: ModelType) -> Optional[str]:
		self.requests.append(model.value)
		await self._wait()
		if self.error is not None:
			raise self.error
		return self.paths.get(model.value)

	async def get_custom_model_path(self, url: str) -> Optional[str]:
		self.requests.append(url)
		await self._wait()
		if self.error is not None:
			raise self.error
		return self.paths.get(url)


class FakeClock:
	def __init__(self, t: float = 0.0) -> None:
		self.t = t

	def __call__(self) -> float:
		return self.t


def make_cfg(default_model: str = "detect", **session: Any) -> AppConfig:
	return AppConfig(
		inference=InferenceConfig(),
		models=ModelsConfig(default_model=default_model),
		camera=CameraConfig(),
		session=SessionConfig(**session),
	)


def make_controller(
	default_model: str = "detect",
	engine: Optional[FakeEngine] = None,
	manager: Optional[FakeModelManager] = None,
	clock: Optional[FakeClock] = None,
) -> CameraInferenceController:
	return CameraInferenceController(
		engine or FakeEngine(),
		model_manager=manager or FakeModelManager(),
		cfg=make_cfg(default_model),
		clock=clock or FakeClock(),
	)


def pose_pairs() -> List[List[float]]:
	"""
	17 COCO joints; left arm bent at 90 degrees, right arm straight.
	"""
	kps = [[float(i), float(i)] for i in range(17)]
	kps[5] = [0.0, 0.0]    # left shoulder
	kps[7] = [0.0, 10.0]   # left elbow
	kps[9] = [10.0, 10.0]  # left wrist
	kps[6] = [20.0, 0.0]   # right shoulder
	kps[8] = [20.0, 10.0]  # right elbow
	kps[10] = [20.0, 20.0]  # right wrist
	return kps


@pytest.fixture
def engine() -> FakeEngine:
	return FakeEngine()


@pytest.fixture
def manager() -> FakeModelManager:
	return FakeModelManager()
