from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from posecam.models import YoloTask


class InferenceEngine(ABC):
	"""
	Control surface of the inference engine.

	The session only pushes settings through here; frames and results flow
	through `capture()` / `infer()`, driven by the runner. Detections are
	returned as opaque records (the YOLO engine uses dicts).
	"""

	@abstractmethod
	def name(self) -> str: ...

	@abstractmethod
	def set_model(self, path: str, task: YoloTask) -> None: ...

	@abstractmethod
	def set_thresholds(self, confidence_threshold: float, iou_threshold: float, num_items_threshold: int) -> None: ...

	@abstractmethod
	def set_confidence_threshold(self, value: float) -> None: ...

	@abstractmethod
	def set_iou_threshold(self, value: float) -> None: ...

	@abstractmethod
	def set_num_items_threshold(self, value: int) -> None: ...

	@abstractmethod
	def set_zoom_level(self, zoom: float) -> None: ...

	@abstractmethod
	def switch_camera(self) -> None: ...

	@abstractmethod
	def capture(self) -> Optional[Any]: ...

	@abstractmethod
	def infer(self, frame: Any) -> List[Dict[str, Any]]: ...

	@abstractmethod
	def close(self) -> None: ...

	# Engine-side zoom changes (e.g. clamping) are reported here.
	on_zoom_changed: Optional[Callable[[float], None]] = None
