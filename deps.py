"""
FastAPI dependencies. Use Depends(get_state) / Depends(get_controller) in route handlers.
"""
from fastapi import Depends, HTTPException, Request

from app_state import AppState
from posecam.controller import CameraInferenceController


def get_state(request: Request) -> AppState:
	"""Return the app state instance attached in lifespan."""
	return request.app.state.state


def get_controller(state: AppState = Depends(get_state)) -> CameraInferenceController:
	"""Return the live session controller, or 503 once the session is gone."""
	ctrl = state.controller
	if ctrl is None or ctrl.is_disposed:
		raise HTTPException(status_code=503, detail="Camera session is not available")
	return ctrl
