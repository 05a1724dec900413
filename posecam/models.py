from __future__ import annotations

from enum import Enum


class YoloTask(str, Enum):
	DETECT = "detect"
	SEGMENT = "segment"
	CLASSIFY = "classify"
	POSE = "pose"
	OBB = "obb"


class ModelType(str, Enum):
	"""
	Selectable built-in models. The value is what clients send.
	"""

	DETECT = "detect"
	SEGMENT = "segment"
	CLASSIFY = "classify"
	POSE = "pose"
	OBB = "obb"

	@property
	def model_name(self) -> str:
		return _MODEL_NAMES[self]

	@property
	def task(self) -> YoloTask:
		return YoloTask(self.value)

	@property
	def label(self) -> str:
		return self.value.upper()


_MODEL_NAMES = {
	ModelType.DETECT: "yolo11n",
	ModelType.SEGMENT: "yolo11n-seg",
	ModelType.CLASSIFY: "yolo11n-cls",
	ModelType.POSE: "yolo11n-pose",
	ModelType.OBB: "yolo11n-obb",
}


class SliderType(str, Enum):
	NONE = "none"
	NUM_ITEMS = "num_items"
	CONFIDENCE = "confidence"
	IOU = "iou"


class LensFacing(str, Enum):
	FRONT = "front"
	BACK = "back"
