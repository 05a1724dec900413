"""Pydantic request/response models for API validation and docs."""
from schemas.requests import (
	CustomModelPayload,
	LensFacingPayload,
	ModelChangePayload,
	SliderTogglePayload,
	SliderValuePayload,
	ZoomPayload,
)
from schemas.responses import ModelChangeResponse, SessionStatusResponse, StatsResponse

__all__ = [
	"CustomModelPayload",
	"LensFacingPayload",
	"ModelChangePayload",
	"SliderTogglePayload",
	"SliderValuePayload",
	"ZoomPayload",
	"ModelChangeResponse",
	"SessionStatusResponse",
	"StatsResponse",
]
