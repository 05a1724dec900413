"""Pydantic request body models for the session endpoints."""
from pydantic import BaseModel, Field

from posecam.models import LensFacing, ModelType, SliderType, YoloTask


class ModelChangePayload(BaseModel):
	"""Request body for POST /session/model. Switch to a built-in model."""

	model: ModelType = Field(..., description="detect, segment, classify, pose or obb")


class CustomModelPayload(BaseModel):
	"""Request body for POST /session/model/custom. Load a model artifact from a URL."""

	url: str = Field(..., min_length=1, description="http(s) or file URL of the model artifact")
	task: YoloTask = Field(YoloTask.DETECT, description="Task the custom model was trained for")


class SliderTogglePayload(BaseModel):
	"""Request body for POST /session/slider/toggle."""

	slider: SliderType = Field(..., description="num_items, confidence, iou (or none)")


class SliderValuePayload(BaseModel):
	"""Request body for POST /session/slider/value. Applies to the active slider."""

	value: float = Field(..., ge=0.0, description="Threshold value; num_items is truncated to int")


class ZoomPayload(BaseModel):
	"""Request body for POST /session/zoom."""

	zoom: float = Field(..., gt=0.0, description="Zoom level, 1.0 = no zoom")


class LensFacingPayload(BaseModel):
	"""Request body for POST /session/camera/facing."""

	facing: LensFacing = Field(..., description="front or back")

