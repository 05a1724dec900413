from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

from posecam.camera import CameraSource
from posecam.config import InferenceConfig, get_config
from posecam.inference.base import InferenceEngine
from posecam.models import YoloTask


logger = logging.getLogger(__name__)


class YoloInferenceEngine(InferenceEngine):
	"""
	Ultralytics YOLO behind the engine control surface.

	Thresholds map onto predict(conf=, iou=, max_det=). Each detection is a dict:
	    {
	        "id": 0,
	        "class_id": 0,
	        "class": "person",
	        "confidence": 0.87,
	        "bbox": [x1, y1, x2, y2],
	        "keypoints": [{"x": .., "y": .., "score": ..}, ...],  # pose only
	    }
	"""

	def __init__(self, cfg: Optional[InferenceConfig] = None, camera: Optional[CameraSource] = None) -> None:
		try:
			from ultralytics import YOLO  # type: ignore
		except Exception as e:
			raise RuntimeError("Ultralytics is not installed. Install with: pip install ultralytics") from e

		self._YOLO = YOLO
		self._cfg = cfg or get_config().inference
		self._camera = camera or CameraSource()
		self._lock = threading.Lock()
		self._model = None
		self._task: Optional[YoloTask] = None
		self._conf = float(self._cfg.confidence_threshold)
		self._iou = float(self._cfg.iou_threshold)
		self._max_det = int(self._cfg.num_items_threshold)

	def name(self) -> str:
		return "ultralytics_yolo"

	def set_model(self, path: str, task: YoloTask) -> None:
		model = self._YOLO(path, task=task.value)
		with self._lock:
			self._model = model
			self._task = task
		logger.info("Loaded %s model from %s", task.value, path)

	def set_thresholds(self, confidence_threshold: float, iou_threshold: float, num_items_threshold: int) -> None:
		with self._lock:
			self._conf = float(confidence_threshold)
			self._iou = float(iou_threshold)
			self._max_det = int(num_items_threshold)

	def set_confidence_threshold(self, value: float) -> None:
		with self._lock:
			self._conf = float(value)

	def set_iou_threshold(self, value: float) -> None:
		with self._lock:
			self._iou = float(value)

	def set_num_items_threshold(self, value: int) -> None:
		with self._lock:
			self._max_det = max(1, int(value))

	def set_zoom_level(self, zoom: float) -> None:
		applied = self._camera.set_zoom(zoom)
		if abs(applied - float(zoom)) > 1e-9 and self.on_zoom_changed is not None:
			self.on_zoom_changed(applied)

	def switch_camera(self) -> None:
		self._camera.switch()

	def capture(self) -> Optional[Any]:
		return self._camera.read()

	def infer(self, frame: Any) -> List[Dict[str, Any]]:
		with self._lock:
			model = self._model
			task = self._task
			kwargs = {
				"conf": self._conf,
				"iou": self._iou,
				"max_det": self._max_det,
				"imgsz": int(self._cfg.image_size),
				"verbose": False,
			}
		if model is None or frame is None:
			return []
		if self._cfg.device:
			kwargs["device"] = self._cfg.device

		results = model.predict(frame, **kwargs)
		if not results:
			return []
		r = results[0]
		names = getattr(r, "names", None) or {}
		if task == YoloTask.CLASSIFY:
			return self._classification(r, names)
		return self._detections(r, names, task)

	def _classification(self, r: Any, names: Dict[int, str]) -> List[Dict[str, Any]]:
		probs = getattr(r, "probs", None)
		if probs is None:
			return []
		cls = int(probs.top1)
		conf = float(probs.top1conf)
		if conf < self._conf:
			return []
		return [{"id": 0, "class_id": cls, "class": names.get(cls, str(cls)), "confidence": conf}]

	def _detections(self, r: Any, names: Dict[int, str], task: Optional[YoloTask]) -> List[Dict[str, Any]]:
		boxes = getattr(r, "obb", None) if task == YoloTask.OBB else getattr(r, "boxes", None)
		if boxes is None:
			return []
		keypoints = getattr(r, "keypoints", None) if task == YoloTask.POSE else None
		kp_data = keypoints.data.tolist() if keypoints is not None else []

		out: List[Dict[str, Any]] = []
		for idx in range(len(boxes)):
			cls = int(boxes.cls[idx])
			det: Dict[str, Any] = {
				"id": idx,
				"class_id": cls,
				"class": names.get(cls, str(cls)),
				"confidence": float(boxes.conf[idx]),
				"bbox": [float(v) for v in boxes.xyxy[idx].tolist()],
			}
			if idx < len(kp_data):
				det["keypoints"] = [
					{"x": float(k[0]), "y": float(k[1]), "score": float(k[2]) if len(k) > 2 else None}
					for k in kp_data[idx]
				]
			out.append(det)
		return out

	def close(self) -> None:
		self._camera.close()
