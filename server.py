import argparse
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app_state import AppState
from posecam import __version__
from posecam.camera import CameraSource
from posecam.config import AppConfig, get_config, set_config_path
from posecam.controller import CameraInferenceController
from posecam.errors import ModelLoadError
from posecam.inference.yolo_engine import YoloInferenceEngine
from posecam.runner import InferenceRunner
from routers import session as session_router
from routers import ws as ws_router

LOG_LEVEL = os.getenv("POSECAM_LOG_LEVEL", "INFO").upper()
CONFIG_PATH = os.getenv("POSECAM_CONFIG")  # optional override of ./config.json
AUTOSTART = os.getenv("POSECAM_AUTOSTART", "1").strip().lower() in ("1", "true", "yes", "on")

logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO), format="%(levelname)s:%(name)s:%(message)s")
logger = logging.getLogger("posecam.server")

if CONFIG_PATH:
	set_config_path(CONFIG_PATH)


def build_state(cfg: Optional[AppConfig] = None) -> AppState:
	"""
	Wire camera -> engine -> session controller -> runner for one camera session.
	"""
	cfg = cfg or get_config()
	camera = CameraSource(cfg.camera)
	engine = YoloInferenceEngine(cfg.inference, camera)
	controller = CameraInferenceController(engine, cfg=cfg)
	runner = InferenceRunner(engine, controller)
	return AppState(cfg=cfg, engine=engine, controller=controller, runner=runner, manager=ws_router.manager)


@asynccontextmanager
async def lifespan(app: FastAPI):
	state = build_state()
	app.state.state = state
	state.unsubscribe = state.controller.add_listener(ws_router.broadcast_session)
	try:
		try:
			await state.controller.initialize()
		except ModelLoadError as e:
			# Keep serving: the client sees the message and can pick another model.
			logger.error("Initial model load failed: %s", e.message)
		if AUTOSTART:
			state.runner.start()
		yield
	finally:
		await state.runner.stop()
		state.controller.dispose()
		try:
			state.engine.close()
		except Exception:
			logger.exception("Engine close failed")


app = FastAPI(title="posecam", version=__version__, lifespan=lifespan)
app.add_middleware(
	CORSMiddleware,
	allow_origins=["*"],
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)
app.include_router(session_router.router)
app.include_router(ws_router.router)


def main() -> None:
	parser = argparse.ArgumentParser(description="posecam inference server")
	parser.add_argument("--host", default=os.getenv("POSECAM_HOST", "127.0.0.1"))
	parser.add_argument("--port", type=int, default=int(os.getenv("POSECAM_PORT", "8000")))
	args = parser.parse_args()

	import uvicorn

	uvicorn.run(app, host=args.host, port=args.port, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
	main()
