"""Session routes. Routes: /session/status, stats, model, slider, zoom, camera, runner; /models."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from app_state import AppState
from deps import get_controller, get_state
from posecam.controller import CameraInferenceController
from posecam.display import format_detection_stats, model_selector_items
from posecam.errors import ModelLoadError
from posecam.models import YoloTask
from schemas.requests import (
	CustomModelPayload,
	LensFacingPayload,
	ModelChangePayload,
	SliderTogglePayload,
	SliderValuePayload,
	ZoomPayload,
)
from schemas.responses import ModelChangeResponse, SessionStatusResponse, StatsResponse

router = APIRouter(tags=["session"])


@router.get("/session/status", response_model=SessionStatusResponse)
async def session_status(ctrl: CameraInferenceController = Depends(get_controller)):
	return ctrl.snapshot().to_dict()


@router.get("/session/stats", response_model=StatsResponse)
async def session_stats(
	show_keypoint_count: Optional[bool] = None,
	state: AppState = Depends(get_state),
	ctrl: CameraInferenceController = Depends(get_controller),
):
	"""Rendered overlay line (detections, FPS and, for pose models, elbow angles)."""
	show_angles = ctrl.active_task == YoloTask.POSE
	if show_keypoint_count is None:
		show_keypoint_count = bool(state.cfg and state.cfg.session.show_keypoint_count)
	text = format_detection_stats(
		detection_count=ctrl.detection_count,
		current_fps=ctrl.current_fps,
		left_elbow_angle=ctrl.left_elbow_angle,
		right_elbow_angle=ctrl.right_elbow_angle,
		show_angles=show_angles,
		debug_keypoint_count=ctrl.keypoint_count if show_keypoint_count else None,
	)
	return {"text": text, "show_angles": show_angles}


@router.get("/models")
async def list_models(ctrl: CameraInferenceController = Depends(get_controller)):
	"""Model selector entries; disabled entries cannot be chosen right now."""
	return {"items": model_selector_items(ctrl.selected_model, ctrl.is_model_loading)}


@router.post("/session/model", response_model=ModelChangeResponse)
async def change_model(payload: ModelChangePayload, ctrl: CameraInferenceController = Depends(get_controller)):
	"""Switch to a built-in model and wait for it to load."""
	try:
		accepted = await ctrl.change_model(payload.model)
	except ModelLoadError as e:
		raise HTTPException(status_code=502, detail=e.message)
	if not accepted:
		raise HTTPException(
			status_code=409,
			detail="Model switch ignored: a model is loading or this model is already selected.",
		)
	return {"detail": f"Model {payload.model.model_name} loaded.", "model_path": ctrl.model_path}


@router.post("/session/model/custom", response_model=ModelChangeResponse)
async def load_custom_model(payload: CustomModelPayload, ctrl: CameraInferenceController = Depends(get_controller)):
	"""Load a model artifact from a URL."""
	try:
		accepted = await ctrl.load_custom_model(payload.url, payload.task)
	except ModelLoadError as e:
		raise HTTPException(status_code=502, detail=e.message)
	if not accepted:
		raise HTTPException(status_code=409, detail="Custom model ignored: a model is loading.")
	return {"detail": "Custom model loaded.", "model_path": ctrl.model_path}


@router.post("/session/slider/toggle")
async def toggle_slider(payload: SliderTogglePayload, ctrl: CameraInferenceController = Depends(get_controller)):
	ctrl.toggle_slider(payload.slider)
	return {"active_slider": ctrl.active_slider.value}


@router.post("/session/slider/value")
async def update_slider_value(payload: SliderValuePayload, ctrl: CameraInferenceController = Depends(get_controller)):
	"""Update the threshold behind the active slider; forwarded to the engine immediately."""
	ctrl.update_slider_value(payload.value)
	return {
		"active_slider": ctrl.active_slider.value,
		"confidence_threshold": ctrl.confidence_threshold,
		"iou_threshold": ctrl.iou_threshold,
		"num_items_threshold": ctrl.num_items_threshold,
	}


@router.post("/session/zoom")
async def set_zoom(payload: ZoomPayload, ctrl: CameraInferenceController = Depends(get_controller)):
	ctrl.set_zoom_level(payload.zoom)
	return {"current_zoom_level": ctrl.current_zoom_level}


@router.post("/session/camera/flip")
async def flip_camera(ctrl: CameraInferenceController = Depends(get_controller)):
	ctrl.flip_camera()
	return {"lens_facing": ctrl.lens_facing.value, "current_zoom_level": ctrl.current_zoom_level}


@router.post("/session/camera/facing")
async def set_lens_facing(payload: LensFacingPayload, ctrl: CameraInferenceController = Depends(get_controller)):
	ctrl.set_lens_facing(payload.facing)
	return {"lens_facing": ctrl.lens_facing.value, "current_zoom_level": ctrl.current_zoom_level}


@router.post("/session/runner/start")
async def runner_start(state: AppState = Depends(get_state)):
	"""Start feeding camera frames through the engine."""
	if state.runner is None:
		raise HTTPException(status_code=503, detail="Inference runner not available")
	state.runner.start()
	return {"detail": "Inference started.", "status": state.runner.get_status()}


@router.post("/session/runner/stop")
async def runner_stop(state: AppState = Depends(get_state)):
	if state.runner is None:
		raise HTTPException(status_code=503, detail="Inference runner not available")
	await state.runner.stop()
	return {"detail": "Inference stopped.", "status": state.runner.get_status()}


@router.get("/session/runner/status")
async def runner_status(state: AppState = Depends(get_state)):
	if state.runner is None:
		raise HTTPException(status_code=503, detail="Inference runner not available")
	return state.runner.get_status()
