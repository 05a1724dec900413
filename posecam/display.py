"""
Text and widget-model rendering for clients.

Stateless: everything here is a pure function of session values.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from posecam.models import ModelType
from posecam.pose.types import is_undefined


PLACEHOLDER = "--"
CUSTOM_LABEL = "CUSTOM"


def format_angle(angle: Optional[float]) -> str:
	if is_undefined(angle):
		return f"{PLACEHOLDER}°"
	return f"{angle:.0f}°"


def format_detection_stats(
	detection_count: int,
	current_fps: float,
	left_elbow_angle: Optional[float] = None,
	right_elbow_angle: Optional[float] = None,
	show_angles: bool = False,
	debug_keypoint_count: Optional[int] = None,
) -> str:
	"""
	One-line overlay, e.g. "DETECTIONS: 1  FPS: 29.7  L-ELBOW: 92°  R-ELBOW: --°  KP: 17".
	"""
	parts = [f"DETECTIONS: {detection_count}", f"FPS: {current_fps:.1f}"]
	if show_angles:
		parts.append(f"L-ELBOW: {format_angle(left_elbow_angle)}")
		parts.append(f"R-ELBOW: {format_angle(right_elbow_angle)}")
		if debug_keypoint_count is not None:
			parts.append(f"KP: {debug_keypoint_count}")
	return "  ".join(parts)


def should_change_model(model: ModelType, selected_model: ModelType, is_model_loading: bool) -> bool:
	return not is_model_loading and model != selected_model


def model_selector_items(selected_model: ModelType, is_model_loading: bool) -> List[Dict[str, Any]]:
	items: List[Dict[str, Any]] = [
		{
			"value": model.value,
			"label": model.label,
			"model_name": model.model_name,
			"selected": model == selected_model,
			"enabled": should_change_model(model, selected_model, is_model_loading),
		}
		for model in ModelType
	]
	items.append({
		"value": "custom",
		"label": CUSTOM_LABEL,
		"model_name": None,
		"selected": False,
		"enabled": not is_model_loading,
	})
	return items
