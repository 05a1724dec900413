"""
Explicit app state – single source of truth for runtime lifecycle.
Created in lifespan, attached to app.state.state; injected into routes via Depends(get_state).
"""
from typing import Any, Optional

from posecam.config import AppConfig
from posecam.controller import CameraInferenceController
from posecam.inference.base import InferenceEngine
from posecam.runner import InferenceRunner


class AppState:
	"""
	Holds the runtime objects of one camera session.
	"""

	cfg: Optional[AppConfig] = None
	engine: Optional[InferenceEngine] = None
	controller: Optional[CameraInferenceController] = None
	runner: Optional[InferenceRunner] = None

	# WebSocket manager (routers.ws.ConnectionManager)
	manager: Any = None

	# Unsubscribe callable for the controller -> WebSocket bridge
	unsubscribe: Any = None

	def __init__(
		self,
		cfg: Optional[AppConfig] = None,
		engine: Optional[InferenceEngine] = None,
		controller: Optional[CameraInferenceController] = None,
		runner: Optional[InferenceRunner] = None,
		manager: Any = None,
	) -> None:
		self.cfg = cfg
		self.engine = engine
		self.controller = controller
		self.runner = runner
		self.manager = manager
