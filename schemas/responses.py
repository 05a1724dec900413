"""Pydantic response models for API docs (routes may still return dicts)."""
from typing import Optional

from pydantic import BaseModel


class SessionStatusResponse(BaseModel):
	"""Response from GET /session/status."""

	detection_count: int
	current_fps: float
	confidence_threshold: float
	iou_threshold: float
	num_items_threshold: int
	active_slider: str
	selected_model: str
	custom_model_url: Optional[str] = None
	task: str
	is_model_loading: bool
	model_path: Optional[str] = None
	loading_message: str
	download_progress: float
	current_zoom_level: float
	lens_facing: str
	is_front_camera: bool
	left_elbow_angle: Optional[float] = None
	right_elbow_angle: Optional[float] = None
	keypoint_count: Optional[int] = None


class StatsResponse(BaseModel):
	"""Response from GET /session/stats."""

	text: str
	show_angles: bool


class ModelChangeResponse(BaseModel):
	"""Response from POST /session/model and /session/model/custom."""

	detail: str
	model_path: Optional[str] = None
